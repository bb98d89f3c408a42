from flask import Blueprint, current_app, jsonify

status = Blueprint('status', __name__)


@status.route('/', methods=['GET'])
def index():
    return jsonify(current_app.extensions['sword_shield'].status())


@status.route('/debug/state', methods=['GET'])
def debug_state():
    """Full internal state, unrounded, for operational inspection."""
    return jsonify(current_app.extensions['sword_shield'].dump())
