# conftest.py
import json
from typing import Callable, Dict, List, Union

import httpx
import pytest

from agentlog.retriever import RequestExecutor, SessionContext

Reply = Union[httpx.Response, Exception, Callable[[httpx.Request], httpx.Response]]


class FakeRetrievalService:
    """
    In-process stand-in for the remote retrieval service.

    Replies are queued per endpoint path and consumed in order; once a queue
    has a single reply left it is reused for every further request.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self._replies: Dict[str, List[Reply]] = {}
        self.transport = httpx.MockTransport(self._handle)

    def reply(self, path: str, *replies: Reply) -> None:
        self._replies.setdefault(path, []).extend(replies)

    def calls(self, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def bodies(self, path: str) -> List[dict]:
        return [json.loads(r.content) for r in self.calls(path)]

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._replies.get(request.url.path)
        if not queue:
            return httpx.Response(404, text=f"no reply queued for {request.url.path}")
        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(request)
        return reply


class SleepRecorder:
    """Replaces asyncio.sleep; records requested waits in seconds."""

    def __init__(self):
        self.waits: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.waits.append(seconds)


@pytest.fixture
def service():
    return FakeRetrievalService()


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def session():
    return SessionContext(session_id="test-session")


@pytest.fixture
def executor(service, sleeper, session):
    return RequestExecutor(
        api_key="test-key",
        session=session,
        http_client=httpx.AsyncClient(transport=service.transport),
        timeout_ms=1000,
        sleep=sleeper,
    )
