from flask import Blueprint, request, jsonify, current_app

from prizewheel_be.schemas import SpinRequestSchema, TicketSchema, WheelSegmentSchema
from prizewheel_be.services import ticket_service
from prizewheel_be.extensions import limiter
from prizewheel_be.utils.security import client_ip

spin_bp = Blueprint('spin', __name__, url_prefix='/api')

@spin_bp.route('/spin', methods=['POST'])
@limiter.limit(lambda: current_app.config.get('SPIN_RATE_LIMIT', '10 per minute'))
def spin():
    """
    Redeems a ticket code. The prize was fixed when the ticket was created;
    the response tells the client which wedge to stop on and how far to turn.
    """
    validated_data = SpinRequestSchema().load(request.get_json(silent=True) or {})
    result = ticket_service.redeem_ticket(validated_data['code'], client_ip())

    return jsonify({
        'status': True,
        'ticket': TicketSchema().dump(result['ticket']),
        'segment': WheelSegmentSchema().dump(result['segment']),
        'segments': result['segments'],
        'rotation': result['rotation'],
    }), 200
