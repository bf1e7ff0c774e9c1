from flask import Blueprint, jsonify, request

from ..context import get_services
from ..schemas import ClientCreate, parse_body

clients_bp = Blueprint('clients', __name__)


@clients_bp.route('/', methods=['GET'])
def get_clients():
    """Lists every client, most recently added first."""
    clients = get_services().directory.list_clients()
    return jsonify([client.to_dict() for client in clients])


@clients_bp.route('/', methods=['POST'])
def add_client():
    """Adds a new client from a JSON payload."""
    body = parse_body(ClientCreate, request.get_json(silent=True))
    client = get_services().directory.add_client(
        name=body.name,
        email=body.email,
        phone=body.phone,
        notes=body.notes,
    )
    return jsonify(client.to_dict()), 201


@clients_bp.route('/<int:client_id>', methods=['GET'])
def get_client(client_id):
    client = get_services().directory.get_client(client_id)
    return jsonify(client.to_dict())
