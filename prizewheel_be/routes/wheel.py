from flask import Blueprint, request, jsonify

from prizewheel_be.schemas import WheelSegmentSchema, WheelSegmentCreateSchema, WheelSegmentUpdateSchema
from prizewheel_be.services import segment_service
from prizewheel_be.utils.decorators import admin_required
from prizewheel_be.utils.security_logger import audit_admin_operation
from prizewheel_be.utils.wheel import normalize_segment_positions

wheel_bp = Blueprint('wheel', __name__, url_prefix='/api/wheel')

@wheel_bp.route('/segments', methods=['GET'])
def get_segments():
    """Public: every segment in render order with dense 0..N-1 positions."""
    segments = WheelSegmentSchema(many=True).dump(segment_service.list_segments())
    return jsonify({'status': True, 'segments': normalize_segment_positions(segments)}), 200

@wheel_bp.route('/segments', methods=['POST'])
@admin_required
@audit_admin_operation('create_segment')
def create_segment():
    validated_data = WheelSegmentCreateSchema().load(request.get_json(silent=True) or {})
    segment = segment_service.create_segment(**validated_data)
    return jsonify({'status': True, 'segment': WheelSegmentSchema().dump(segment)}), 201

@wheel_bp.route('/segments/<int:segment_id>', methods=['PUT'])
@admin_required
@audit_admin_operation('update_segment')
def update_segment(segment_id):
    validated_data = WheelSegmentUpdateSchema().load(request.get_json(silent=True) or {})
    segment = segment_service.update_segment(segment_id, validated_data)
    return jsonify({'status': True, 'segment': WheelSegmentSchema().dump(segment)}), 200

@wheel_bp.route('/segments/<int:segment_id>', methods=['DELETE'])
@admin_required
@audit_admin_operation('delete_segment')
def delete_segment(segment_id):
    segment_service.delete_segment(segment_id)
    return jsonify({'status': True, 'status_message': 'Segment deleted.'}), 200
