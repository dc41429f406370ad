from flask import Blueprint, jsonify, abort

from crazyemoji.errors import IncorrectRoomCode
from crazyemoji.models import Category
from crazyemoji.services.rooms.lifecycle import room_state


rooms = Blueprint('rooms', __name__)


@rooms.route('/categories', methods=['GET'])
def list_categories():
    categories = Category.query.order_by(Category.name).all()
    return jsonify([c.to_dict() for c in categories])


@rooms.route('/rooms/<room_code>', methods=['GET'])
def get_room(room_code):
    try:
        state = room_state(room_code)
    except IncorrectRoomCode as exc:
        abort(404, description=exc.message)
    return jsonify(state)
