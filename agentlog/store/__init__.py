"""
Local work-log store.

Numbered Markdown files, a .gitignore entry, and document collection for search.
"""

from .log_store import LogStore, sanitize_title, build_log_content, parse_log_file_name

__all__ = [
    "LogStore",
    "sanitize_title",
    "build_log_content",
    "parse_log_file_name",
]
