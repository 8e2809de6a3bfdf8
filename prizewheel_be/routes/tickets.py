from flask import Blueprint, request, jsonify

from prizewheel_be.schemas import TicketSchema, TicketCreateSchema, TicketBatchSchema
from prizewheel_be.services import ticket_service
from prizewheel_be.utils.decorators import admin_required
from prizewheel_be.utils.security_logger import audit_admin_operation

tickets_bp = Blueprint('tickets', __name__, url_prefix='/api/tickets')

@tickets_bp.route('', methods=['GET'])
@admin_required
def get_tickets():
    tickets = ticket_service.list_tickets()
    return jsonify({'status': True, 'tickets': TicketSchema(many=True).dump(tickets)}), 200

@tickets_bp.route('', methods=['POST'])
@admin_required
@audit_admin_operation('create_ticket')
def create_ticket():
    validated_data = TicketCreateSchema().load(request.get_json(silent=True) or {})
    ticket = ticket_service.create_ticket(**validated_data)
    return jsonify({'status': True, 'ticket': TicketSchema().dump(ticket)}), 201

@tickets_bp.route('/batch', methods=['POST'])
@admin_required
@audit_admin_operation('create_ticket_batch')
def create_ticket_batch():
    validated_data = TicketBatchSchema().load(request.get_json(silent=True) or {})
    tickets = ticket_service.create_ticket_batch(**validated_data)
    return jsonify({'status': True, 'tickets': TicketSchema(many=True).dump(tickets)}), 201

@tickets_bp.route('/winners', methods=['GET'])
@admin_required
def get_winners():
    segment_id = request.args.get('segment_id', type=int)
    search = (request.args.get('search') or '').strip() or None
    winners = ticket_service.list_winners(segment_id=segment_id, search=search)

    rows = []
    for winner in winners:
        row = TicketSchema().dump(winner['ticket'])
        row['prize'] = winner['prize']
        rows.append(row)
    return jsonify({'status': True, 'winners': rows, 'total': len(rows)}), 200
