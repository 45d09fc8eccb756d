"""Room domain services: the per-room game state machine and the registry.

This package contains pure logic that is driven by the Socket.IO handlers
and HTTP routes, keeping transport concerns separated from the game rules.
"""

from .registry import RoomRegistry
from .session import Event, JoinError, RoomFull, RoomNotFound, RoomSession

__all__ = [
    'Event',
    'JoinError',
    'RoomFull',
    'RoomNotFound',
    'RoomRegistry',
    'RoomSession',
]
