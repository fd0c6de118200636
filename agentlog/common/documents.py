"""Document and content-block types shared by the store and the retriever."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Document:
    """A log file's text, as handed to the retriever for one search"""
    path: str
    text: str


@dataclass(frozen=True)
class ContentBlock:
    """A bounded slice of a document, uploaded as one blob"""
    path: str
    content: str
