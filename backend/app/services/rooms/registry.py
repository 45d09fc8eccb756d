import logging
import random
import threading
from typing import Any, Dict, List, Optional

from app.models import generate_room_id
from .session import Event, RoomNotFound, RoomSession


class RoomRegistry:
    """Owns the live rooms and routes commands to them.

    The registry lock only guards the room map. Game state, including who
    is seated, is read and mutated under each room's own lock, so rooms
    never block one another.
    """

    def __init__(self, logger: Optional[logging.Logger] = None, rng: Optional[random.Random] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._rng = rng or random.Random()
        self._rooms: Dict[str, RoomSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._rooms

    def get(self, room_id: str) -> Optional[RoomSession]:
        return self._rooms.get(room_id)

    def snapshot(self, room_id: str) -> Dict[str, Any]:
        room = self.get(room_id)
        if room is None:
            raise RoomNotFound(room_id)
        with room.lock:
            return room.to_dict()

    # -------------------- Lifecycle -------------------- #

    def create_room(self, creator_id: str) -> str:
        with self._lock:
            room_id = generate_room_id(self._rooms, self._rng)
            self._rooms[room_id] = RoomSession(room_id, creator_id)
        self.logger.info(f"[room-create] room={room_id} sid={creator_id}")
        return room_id

    def join_room(self, room_id: str, joiner_id: str) -> str:
        """Seat the joiner in the room and return their mark.

        Raises RoomNotFound or RoomFull; the room is left untouched on failure.
        """
        room = self.get(room_id)
        if room is None:
            raise RoomNotFound(room_id)
        with room.lock:
            # The room may have emptied and been dropped while we waited
            if room.is_empty:
                raise RoomNotFound(room_id)
            mark = room.add_player(joiner_id)
        self.logger.info(f"[room-join] room={room_id} sid={joiner_id} mark={mark}")
        return mark

    def leave(self, room_id: str, player_id: str) -> List[str]:
        """Remove the player from one room.

        Returns the ids of rooms that still have an occupant to notify.
        """
        room = self.get(room_id)
        if room is None:
            return []
        with room.lock:
            removed = room.remove_player(player_id)
            emptied = room.is_empty
        if not removed:
            return []
        if emptied:
            with self._lock:
                # Only drop the entry if it still refers to this session
                if self._rooms.get(room_id) is room:
                    del self._rooms[room_id]
            self.logger.info(f"[room-close] room={room_id} last_sid={player_id}")
            return []
        self.logger.info(f"[room-leave] room={room_id} sid={player_id} scores reset")
        return [room_id]

    def disconnect(self, player_id: str) -> List[str]:
        """Remove the connection from every room it occupies.

        Seats are checked under each room's lock, so a join that is still
        seating the same connection finishes first and is then undone.
        """
        with self._lock:
            room_ids = sorted(self._rooms)
        notify: List[str] = []
        for room_id in room_ids:
            notify.extend(self.leave(room_id, player_id))
        return notify

    # -------------------- Game commands -------------------- #

    def apply_move(self, room_id: str, player_id: str, index: Any) -> List[Event]:
        room = self.get(room_id)
        if room is None:
            return []
        with room.lock:
            events = room.move(player_id, index)
        if not events:
            self.logger.debug(f"[move-discard] room={room_id} sid={player_id} index={index!r}")
        elif events[-1].name == 'game_over':
            self.logger.info(f"[round-over] room={room_id} winner={events[-1].payload['winner']}")
        return events

    def reset_round(self, room_id: str, player_id: Optional[str] = None) -> List[Event]:
        room = self.get(room_id)
        if room is None:
            return []
        with room.lock:
            if player_id is not None and player_id not in room.players:
                self.logger.debug(f"[reset-discard] room={room_id} sid={player_id} not an occupant")
                return []
            events = room.reset()
        self.logger.info(f"[round-reset] room={room_id} turn={room.turn}")
        return events
