"""
agentlog

Work-log recording and semantic search for coding agents.

Philosophy:
- Every log is a plain Markdown file under a numbered name
- Search is delegated to a remote retrieval service; nothing is indexed locally
- Network failures are always surfaced, never turned into empty results

Usage:
    from agentlog.common import load_config
    from agentlog.store import LogStore
    from agentlog.retriever import LogSearcher, SessionContext
"""

__version__ = "0.1.0"
