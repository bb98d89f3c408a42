from flask import current_app, request
from flask_socketio import emit

from sword_shield import socketio
from sword_shield.services.games.errors import GameError, ValidationError

NAMESPACE = '/ws'


def get_game():
    return current_app.extensions['sword_shield']


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _payload(data) -> dict:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Malformed payload.')
    return data


def _report(exc: GameError) -> None:
    current_app.logger.info(f"[error] sid={_get_sid()} {type(exc).__name__}: {exc.message}")
    emit('error_message', {'message': exc.message})


def handle_connect():
    # Late joiners render immediately instead of waiting for the next broadcast
    emit('game_state_update', get_game().snapshot())


def handle_disconnect(*_args):
    get_game().disconnect(_get_sid())


def handle_join_lobby(data):
    try:
        data = _payload(data)
        get_game().join(data.get('identity', data.get('username')), _get_sid())
    except GameError as exc:
        _report(exc)


def handle_submit_choice(data):
    try:
        data = _payload(data)
        ack = get_game().submit(_get_sid(), data.get('choice'), data.get('prediction'))
    except GameError as exc:
        _report(exc)
        return
    emit('submission_ack', ack)


def handle_admin_action(data):
    try:
        data = _payload(data)
        get_game().admin(data.get('action'), data.get('secret', data.get('password')))
    except GameError as exc:
        _report(exc)


def broadcast_state(payload: dict) -> None:
    socketio.emit('game_state_update', payload, namespace=NAMESPACE)


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on the '/ws' namespace."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('join_lobby', handle_join_lobby, namespace=NAMESPACE)
    socketio.on_event('submit_choice', handle_submit_choice, namespace=NAMESPACE)
    socketio.on_event('admin_action', handle_admin_action, namespace=NAMESPACE)
