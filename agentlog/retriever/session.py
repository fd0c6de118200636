"""
Session/identity context for requests to the retrieval service.

One SessionContext is created at server start and passed to every client.
The session id is generated on first use and then reused for the life of
the process; every network attempt gets its own request id.
"""

import threading
import uuid
from typing import Optional


class SessionContext:
    def __init__(self, session_id: Optional[str] = None):
        self._session_id = session_id
        self._lock = threading.Lock()

    @property
    def session_id(self) -> str:
        if self._session_id is None:
            with self._lock:
                if self._session_id is None:
                    self._session_id = str(uuid.uuid4())
        return self._session_id

    @staticmethod
    def new_request_id() -> str:
        return str(uuid.uuid4())
