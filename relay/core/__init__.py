from .registry import SessionRegistry
from .router import ResponseDispatcher
from .server import RelayServer
from .session import Session, SessionStats

__all__ = ["Session", "SessionStats", "SessionRegistry", "ResponseDispatcher", "RelayServer"]
