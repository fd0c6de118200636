from .server import AgentLogServerApp, build_app

__all__ = [
    "AgentLogServerApp",
    "build_app",
]
