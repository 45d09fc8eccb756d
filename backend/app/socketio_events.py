from typing import Any, List, Optional

from flask import current_app, request
from flask_socketio import emit, join_room, leave_room

from app import socketio
from app.models import X
from app.services.rooms import Event, JoinError, RoomRegistry


def _registry() -> RoomRegistry:
    return current_app.extensions['rooms']


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _room_id_from(data: Any) -> Optional[str]:
    """Accept either {'room_id': ...} or the bare id."""
    if isinstance(data, dict):
        data = data.get('room_id')
    if isinstance(data, int) and not isinstance(data, bool):
        data = str(data)
    if isinstance(data, str) and data.strip():
        return data.strip()
    return None


def _still_connected(sid: str) -> bool:
    # False as soon as the server starts tearing the connection down
    return socketio.server.manager.is_connected(sid, request.namespace)


def _broadcast(room_id: str, events: List[Event]) -> None:
    for event in events:
        emit(event.name, event.payload, to=room_id)


def _notify_opponent_left(room_ids: List[str]) -> None:
    for room_id in room_ids:
        socketio.emit('opponent_disconnected', {'room_id': room_id}, to=room_id, namespace=request.namespace)


def handle_connect(auth=None):
    current_app.logger.info(f"[connect] sid={_get_sid()}")


def handle_disconnect(*args):
    sid = _get_sid()
    notify = _registry().disconnect(sid)
    _notify_opponent_left(notify)
    current_app.logger.info(f"[disconnect] sid={sid} notified_rooms={notify}")


def handle_create_room(data=None):
    sid = _get_sid()
    room_id = _registry().create_room(sid)
    if not _still_connected(sid):
        _registry().leave(room_id, sid)
        return
    join_room(room_id)
    emit('room_created', {'room_id': room_id})
    emit('joined', {'room_id': room_id, 'mark': X})


def handle_join_room(data=None):
    room_id = _room_id_from(data)
    if not room_id:
        emit('error', {'message': 'room_id is required'})
        return
    sid = _get_sid()
    try:
        mark = _registry().join_room(room_id, sid)
    except JoinError as exc:
        current_app.logger.info(f"[join-rejected] room={room_id} sid={sid} reason={exc.message}")
        emit('error', {'message': exc.message})
        return
    if not _still_connected(sid):
        # Disconnected mid-join; its disconnect handler may already have run
        _registry().leave(room_id, sid)
        current_app.logger.info(f"[join-abandoned] room={room_id} sid={sid}")
        return
    join_room(room_id)
    emit('joined', {'room_id': room_id, 'mark': mark})
    emit('player_joined', {'room_id': room_id}, to=room_id)


def handle_move(data=None):
    if not isinstance(data, dict):
        return
    room_id = _room_id_from(data)
    if not room_id:
        return
    events = _registry().apply_move(room_id, _get_sid(), data.get('index'))
    _broadcast(room_id, events)


def handle_reset_game(data=None):
    room_id = _room_id_from(data)
    if not room_id:
        return
    events = _registry().reset_round(room_id, _get_sid())
    _broadcast(room_id, events)


def handle_leave_room(data=None):
    room_id = _room_id_from(data)
    if not room_id:
        return
    sid = _get_sid()
    # Leave the Socket.IO room first so only the remaining occupant is notified
    leave_room(room_id)
    notify = _registry().leave(room_id, sid)
    _notify_opponent_left(notify)


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register the room protocol handlers on `namespace`."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('create_room', handle_create_room, namespace=namespace)
    socketio.on_event('join_room', handle_join_room, namespace=namespace)
    socketio.on_event('move', handle_move, namespace=namespace)
    socketio.on_event('reset_game', handle_reset_game, namespace=namespace)
    socketio.on_event('leave_room', handle_leave_room, namespace=namespace)
