"""
Agent Log MCP Server.

Transport: stdio only (launched by the agent's MCP client).

Expected MCP Tool Return Format:
{
    "ok": bool,
    ...                      # Tool-specific fields, present if ok is True
    "error": str,            # Present if ok is False
    "error_type": str        # Error class name, present if ok is False
}
"""

import argparse
import logging
import os
import signal
import sys
from contextlib import asynccontextmanager
from typing import Annotated, Any, AsyncIterator, Dict, Optional, Union

from dotenv import load_dotenv
from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from agentlog.common import AgentLogConfig, AgentLogError, load_config
from agentlog.retriever import LogSearcher, SessionContext
from agentlog.store import LogStore

logger = logging.getLogger("agentlog.mcp")

SEARCH_DESCRIPTION = """**Prefer this tool whenever you need to look up past work.**

Search the historical work logs in natural language. Semantic search only,
served by the configured retrieval service.

## When to use
- Finding earlier tasks related to the current one
- Reviewing how a feature was implemented over time
- Recalling a previous fix before starting a new task

## Example queries
- "logs about the database connection pool"
- "what API work have we done before?"
- "the login bug fix"

## Returns
Formatted retrieval text with log paths and the relevant excerpts.

## Requirements
ACE_BASE_URL and ACE_API_KEY must be set."""


def _error(exc: Exception) -> Dict[str, Any]:
    return {"ok": False, "error": str(exc), "error_type": type(exc).__name__}


class AgentLogServerApp:
    """
    Main application class for the agent log MCP server.

    Local operations (record, list, read) go to the LogStore; search goes
    through the LogSearcher and the remote retrieval service.
    """
    def __init__(
            self,
            store: LogStore,
            searcher: LogSearcher,
            mcp_server_name: str = "agent-log-server",
        ) -> None:
        """
        Args:
            store (LogStore): The local log store.
            searcher (LogSearcher): Semantic search over the store's logs.
            mcp_server_name (str): The name of the MCP server.
        """
        self.store = store
        self.searcher = searcher
        self.mcp = FastMCP(name=mcp_server_name, lifespan=self._lifespan)

        # ---------- MCP Tools: Record Log ---------- #
        @self.mcp.tool(
            name="record-agent-log",
            description=(
                "Record an agent work log as a sequentially numbered Markdown file. "
                "The log directory is added to .gitignore automatically."
            ),
            annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False)
        )
        async def tool_record_agent_log(
            title: Annotated[str, Field(description="title of the work item")],
            content: Annotated[str, Field(description="work log body (Markdown)")] = "",
        ) -> Dict[str, Any]:
            try:
                recorded = self.store.record(title=title, content=content)
            except (AgentLogError, OSError) as e:
                logger.error("record-agent-log failed: %s", e)
                return _error(e)
            return {"ok": True, **recorded.model_dump()}

        # ---------- MCP Tools: List Logs ---------- #
        @self.mcp.tool(
            name="list-logs",
            description=(
                f"List every work log in the log directory ({self.store.log_dir_name}) "
                "with its number, file name, title and creation time."
            ),
            annotations=ToolAnnotations(readOnlyHint=True, destructiveHint=False)
        )
        async def tool_list_logs() -> Dict[str, Any]:
            try:
                listing = self.store.list_logs()
            except (AgentLogError, OSError) as e:
                return _error(e)
            return {"ok": True, **listing.model_dump()}

        # ---------- MCP Tools: Read Log ---------- #
        @self.mcp.tool(
            name="read-log",
            description="Read the full content of a work log by number or file name.",
            annotations=ToolAnnotations(readOnlyHint=True, destructiveHint=False)
        )
        async def tool_read_log(
            identifier: Annotated[Union[int, str], Field(
                description='log number (e.g. 1 or "1") or file name (e.g. "0001-task-title.md")'
            )],
        ) -> Dict[str, Any]:
            try:
                entry = self.store.read_log(identifier)
            except (AgentLogError, OSError) as e:
                return _error(e)
            return {"ok": True, **entry.model_dump()}

        # ---------- MCP Tools: Search Logs ---------- #
        @self.mcp.tool(
            name="search-logs",
            description=SEARCH_DESCRIPTION,
            annotations=ToolAnnotations(readOnlyHint=True, destructiveHint=False, openWorldHint=True)
        )
        async def tool_search_logs(
            query: Annotated[str, Field(description="natural language search query")],
        ) -> Dict[str, Any]:
            """
            Search work logs semantically.

            Configuration, validation and retrieval failures are reported with
            ``ok: False`` and the failing error class in ``error_type``; they
            are never turned into an empty result.
            """
            try:
                outcome = await self.searcher.search(query)
            except (AgentLogError, OSError) as e:
                logger.error("search-logs failed: %s: %s", type(e).__name__, e)
                return _error(e)
            return {"ok": True, **outcome.to_dict()}

    @asynccontextmanager
    async def _lifespan(self, server: FastMCP) -> AsyncIterator[None]:
        """Close the searcher's HTTP client when the server shuts down."""
        try:
            yield
        finally:
            await self.searcher.aclose()

    def run(self) -> None:
        """Runs the MCP server using stdio transport."""
        self.mcp.run(transport="stdio")


def build_app(config: AgentLogConfig, session: Optional[SessionContext] = None) -> AgentLogServerApp:
    """Wire the store, session context and searcher from a loaded config."""
    store = LogStore(root_dir=config.store.root_dir, log_dir=config.store.log_dir)
    searcher = LogSearcher(
        store=store,
        ace_config=config.ace,
        session=session or SessionContext(),
    )
    return AgentLogServerApp(store=store, searcher=searcher, mcp_server_name=config.server.name)


def main() -> None:
    load_dotenv()
    config = load_config()

    parser = argparse.ArgumentParser(description="Run the agent log MCP server (stdio).")
    parser.add_argument(
        "--server-name",
        default=config.server.name,
        help="Advertised MCP server name.",
    )
    parser.add_argument(
        "--log-dir",
        default=config.store.log_dir,
        help="Log directory, relative to the working directory.",
    )
    args = parser.parse_args()
    config.server.name = args.server_name
    config.store.log_dir = args.log_dir

    # stdout carries the MCP transport
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, config.server.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if config.ace.is_configured:
        logger.info("Retrieval service configured: %s", config.ace.base_url)
    else:
        logger.warning("ACE_BASE_URL / ACE_API_KEY not set - search-logs will be unavailable")

    app = build_app(config)

    def _handle_shutdown(signum, frame):
        raise SystemExit(0)
    for sig in (signal.SIGINT, getattr(signal, "SIGTERM", None)):
        if sig is not None:
            signal.signal(sig, _handle_shutdown)

    logger.info("Starting %s (log dir: %s)", config.server.name, os.path.join(config.store.root_dir, config.store.log_dir))
    app.run()


if __name__ == "__main__":
    main()
