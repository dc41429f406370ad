"""Delivery of server events to clients over Socket.IO rooms keyed by room code."""

from crazyemoji import socketio

NAMESPACE = '/ws'


def send_to_one(connection_id, event, payload=None):
    if connection_id:
        socketio.emit(event, payload, to=connection_id, namespace=NAMESPACE)


def send_to_group(room_code, event, payload=None):
    socketio.emit(event, payload, to=room_code, namespace=NAMESPACE)


def send_to_group_except(room_code, excluded_connection_id, event, payload=None):
    socketio.emit(event, payload, to=room_code, skip_sid=excluded_connection_id, namespace=NAMESPACE)


def close_group(room_code):
    socketio.close_room(room_code, namespace=NAMESPACE)


def remove_from_group(connection_id, room_code):
    if connection_id:
        socketio.server.leave_room(connection_id, room_code, namespace=NAMESPACE)
