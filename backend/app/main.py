import os

from flask import Blueprint, current_app, jsonify, send_from_directory
from app.services.rooms import RoomNotFound

main = Blueprint('main', __name__)

@main.route('/')
def index():
    static_folder = current_app.config.get('STATIC_FOLDER')
    if static_folder and os.path.isfile(os.path.join(static_folder, 'index.html')):
        return send_from_directory(os.path.abspath(static_folder), 'index.html')
    return jsonify({'message': 'Welcome to the tic-tac-toe room server!'})

@main.route('/health')
def health():
    return jsonify({'status': 'ok', 'rooms': len(current_app.extensions['rooms'])})

@main.route('/api/rooms/<string:room_id>')
def get_room_state(room_id):
    """
    Returns a read-only snapshot of a live room.
    """
    try:
        state = current_app.extensions['rooms'].snapshot(room_id)
    except RoomNotFound as exc:
        return jsonify({'error': exc.message}), 404
    return jsonify(state)
