"""
Log Entry Schemas

Shapes returned by the local log store and surfaced through the MCP tools.
"""

from typing import List
from pydantic import BaseModel, Field


class RecordedLog(BaseModel):
    """Result of writing a new log file"""
    file_path: str
    file_name: str
    number: int
    log_dir: str


class LogSummary(BaseModel):
    """One row of the log listing"""
    number: int
    file_name: str
    title: str
    created_at: str  # ISO-8601, UTC


class LogListing(BaseModel):
    logs: List[LogSummary] = Field(default_factory=list)
    total: int = 0
    log_dir: str


class LogEntry(BaseModel):
    """A single log with its full Markdown content"""
    number: int
    file_name: str
    title: str
    content: str
    created_at: str
