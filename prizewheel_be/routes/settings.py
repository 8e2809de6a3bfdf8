from flask import Blueprint, request, jsonify

from prizewheel_be.schemas import SettingSchema, SettingUpdateSchema, SETTING_KEY_VALIDATOR
from prizewheel_be.services import settings_service
from prizewheel_be.utils.decorators import admin_required
from prizewheel_be.utils.security_logger import audit_admin_operation

settings_bp = Blueprint('settings', __name__, url_prefix='/api/settings')

@settings_bp.route('', methods=['GET'])
def get_settings():
    return jsonify({'status': True, 'settings': settings_service.get_settings_map()}), 200

@settings_bp.route('/<key>', methods=['PUT'])
@admin_required
@audit_admin_operation('update_setting')
def update_setting(key):
    SETTING_KEY_VALIDATOR(key)
    validated_data = SettingUpdateSchema().load(request.get_json(silent=True) or {})
    setting = settings_service.update_setting(key, validated_data['value'])
    return jsonify({'status': True, 'setting': SettingSchema().dump(setting)}), 200
