# tests/test_server.py
import httpx
import pytest

from fastmcp import Client

from agentlog.common.config import AceConfig, AgentLogConfig, StoreConfig
from agentlog.retriever import LogSearcher, NOTHING_TO_SEARCH_MESSAGE
from agentlog.store import LogStore
from mcp_server.server import AgentLogServerApp, build_app

UPLOAD = "/batch-upload"
RETRIEVE = "/agents/codebase-retrieval"


def _data(result):
    return getattr(result, "data", None) or getattr(result, "structured", None) \
           or getattr(result, "structured_content", None)


@pytest.fixture
def store(tmp_path):
    return LogStore(root_dir=tmp_path, log_dir="AgentLogs")


@pytest.fixture
def mcp_server(store, session, executor):
    """
    FastMCP server with a real store in a temp directory and the fake
    retrieval service behind the executor.
    """
    searcher = LogSearcher(
        store=store,
        ace_config=AceConfig(base_url="ace.example.com", api_key="test-key"),
        session=session,
        executor=executor,
    )
    app = AgentLogServerApp(store=store, searcher=searcher, mcp_server_name="test-agent-log")
    return app.mcp


@pytest.fixture
def unconfigured_mcp_server(store, session):
    searcher = LogSearcher(store=store, ace_config=AceConfig(), session=session)
    return AgentLogServerApp(store=store, searcher=searcher).mcp


# ----------- Tool Registration ----------- #
@pytest.mark.asyncio
async def test_tools_registered(mcp_server):
    async with Client(mcp_server) as client:
        tools = await client.list_tools()
        names = {t.name for t in tools}
        assert names == {"record-agent-log", "list-logs", "read-log", "search-logs"}


@pytest.mark.asyncio
async def test_read_only_annotations(mcp_server):
    async with Client(mcp_server) as client:
        tools = {t.name: t for t in await client.list_tools()}
        assert tools["list-logs"].annotations.readOnlyHint is True
        assert tools["search-logs"].annotations.readOnlyHint is True
        assert tools["record-agent-log"].annotations.readOnlyHint is False


# ----------- Record / List / Read ----------- #
@pytest.mark.asyncio
async def test_record_list_read_roundtrip(mcp_server):
    async with Client(mcp_server) as client:
        recorded = _data(await client.call_tool(
            "record-agent-log", {"title": "Fix login bug", "content": "Reset the session cookie."}
        ))
        assert recorded["ok"] is True
        assert recorded["number"] == 1
        assert recorded["file_name"] == "0001-Fix-login-bug.md"

        listing = _data(await client.call_tool("list-logs", {}))
        assert listing["ok"] is True
        assert listing["total"] == 1
        assert listing["logs"][0]["title"] == "Fix login bug"

        entry = _data(await client.call_tool("read-log", {"identifier": 1}))
        assert entry["ok"] is True
        assert entry["content"] == "# Fix login bug\n\nReset the session cookie.\n"

        by_name = _data(await client.call_tool("read-log", {"identifier": "0001-Fix-login-bug.md"}))
        assert by_name["number"] == 1


@pytest.mark.asyncio
async def test_read_missing_log_reports_error(mcp_server):
    async with Client(mcp_server) as client:
        data = _data(await client.call_tool("read-log", {"identifier": "7"}))
        assert data["ok"] is False
        assert data["error_type"] == "LogNotFoundError"


@pytest.mark.asyncio
async def test_record_blank_title_reports_error(mcp_server):
    async with Client(mcp_server) as client:
        data = _data(await client.call_tool("record-agent-log", {"title": "   "}))
        assert data["ok"] is False
        assert data["error_type"] == "ValidationError"


# ----------- Search ----------- #
@pytest.mark.asyncio
async def test_search_happy_path(mcp_server, service):
    service.reply(UPLOAD, httpx.Response(200, json={"blob_names": ["b1"]}))
    service.reply(RETRIEVE, httpx.Response(200, json={"formatted_retrieval": "0001-Fix-login-bug.md: cookie"}))

    async with Client(mcp_server) as client:
        await client.call_tool("record-agent-log", {"title": "Fix login bug", "content": "cookie"})
        data = _data(await client.call_tool("search-logs", {"query": "login"}))

    assert data["ok"] is True
    assert data["query"] == "login"
    assert data["results"] == "0001-Fix-login-bug.md: cookie"
    assert data["log_dir"] == "AgentLogs"


@pytest.mark.asyncio
async def test_search_empty_log_dir(mcp_server, service):
    async with Client(mcp_server) as client:
        data = _data(await client.call_tool("search-logs", {"query": "anything"}))

    assert data["ok"] is True
    assert data["results"] == NOTHING_TO_SEARCH_MESSAGE
    assert service.requests == []


@pytest.mark.asyncio
async def test_search_service_failure_is_structured(mcp_server, service):
    service.reply(UPLOAD, httpx.Response(500, text="down"))

    async with Client(mcp_server) as client:
        await client.call_tool("record-agent-log", {"title": "a"})
        data = _data(await client.call_tool("search-logs", {"query": "a"}))

    assert data["ok"] is False
    assert data["error_type"] == "ServiceError"
    assert "500" in data["error"]
    assert len(service.calls(UPLOAD)) == 3
    assert service.calls(RETRIEVE) == []


@pytest.mark.asyncio
async def test_search_protocol_failure_is_structured(mcp_server, service):
    service.reply(UPLOAD, httpx.Response(200, json={"blob_names": []}))

    async with Client(mcp_server) as client:
        await client.call_tool("record-agent-log", {"title": "a"})
        data = _data(await client.call_tool("search-logs", {"query": "a"}))

    assert data["ok"] is False
    assert data["error_type"] == "ProtocolError"
    assert service.calls(RETRIEVE) == []


@pytest.mark.asyncio
async def test_search_without_configuration(unconfigured_mcp_server):
    async with Client(unconfigured_mcp_server) as client:
        await client.call_tool("record-agent-log", {"title": "a"})
        data = _data(await client.call_tool("search-logs", {"query": "a"}))

    assert data["ok"] is False
    assert data["error_type"] == "ConfigurationError"
    assert "ACE_BASE_URL" in data["error"]


# ----------- App wiring ----------- #
def test_build_app_from_config(tmp_path):
    config = AgentLogConfig(
        ace=AceConfig(base_url="ace.example.com", api_key="k"),
        store=StoreConfig(root_dir=str(tmp_path), log_dir="MyLogs"),
    )
    config.server.name = "wired"

    app = build_app(config)

    assert app.store.log_dir == (tmp_path / "MyLogs").resolve()
    assert app.searcher.config is config.ace
    assert app.mcp.name == "wired"


@pytest.mark.asyncio
async def test_search_with_unparseable_base_url(store, session, service):
    searcher = LogSearcher(
        store=store,
        ace_config=AceConfig(base_url="ace.example.com:notaport", api_key="k"),
        session=session,
    )
    server = AgentLogServerApp(store=store, searcher=searcher).mcp

    async with Client(server) as client:
        await client.call_tool("record-agent-log", {"title": "a"})
        data = _data(await client.call_tool("search-logs", {"query": "a"}))

    assert data["ok"] is False
    assert data["error_type"] == "ConfigurationError"
    assert service.requests == []


@pytest.mark.asyncio
async def test_shutdown_closes_searcher(store, session, monkeypatch):
    searcher = LogSearcher(store=store, ace_config=AceConfig(), session=session)
    closed = []

    async def fake_aclose():
        closed.append(True)
    monkeypatch.setattr(searcher, "aclose", fake_aclose)
    server = AgentLogServerApp(store=store, searcher=searcher).mcp

    async with Client(server) as client:
        await client.call_tool("list-logs", {})
        assert closed == []

    assert closed
