from marshmallow import Schema, fields, validate, ValidationError, pre_load, validates_schema
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field
from marshmallow.validate import Range, Length, Regexp
import re

from .models import db, User, WheelSegment, Ticket, Setting # Relative import

TICKET_BATCH_MAX = 100
HEX_COLOR_REGEX = r'^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$'
TICKET_CODE_REGEX = r'^[A-Za-z0-9][A-Za-z0-9_-]*$'

def strip_markup(value):
    """Remove script blocks and tags from free-text input."""
    if isinstance(value, str):
        value = re.sub(r'<script\b[^<]*(?:(?!<\/script>)<[^<]*)*<\/script>', '', value, flags=re.IGNORECASE)
        value = re.sub(r'<[^>]*>', '', value)
        value = value.strip()
    return value

# --- Custom Fields ---
class SanitizedString(fields.String):
    """String field with markup stripped on load"""
    def _deserialize(self, value, attr, data, **kwargs):
        value = super()._deserialize(value, attr, data, **kwargs)
        return strip_markup(value) if value else value

# --- User Schemas ---
class UserSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = User
        load_instance = True
        sqla_session = db.session
        exclude = ("password",)

    id = auto_field(dump_only=True)
    username = auto_field()
    is_admin = auto_field(dump_only=True)
    created_at = auto_field(dump_only=True)
    last_login_at = auto_field(dump_only=True)

class LoginSchema(Schema):
    username = fields.Str(required=True, validate=Length(min=1, max=50))
    password = fields.Str(required=True, validate=Length(min=1))

# --- Wheel Segment Schemas ---
class WheelSegmentSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = WheelSegment
        load_instance = True
        sqla_session = db.session

    id = auto_field(dump_only=True)

class WheelSegmentCreateSchema(Schema):
    text = SanitizedString(required=True, validate=Length(min=1, max=100))
    color = fields.Str(validate=Regexp(HEX_COLOR_REGEX, error='Color must be a hex value such as #F59E0B.'))
    position = fields.Int(strict=True, validate=Range(min=0))
    weight = fields.Int(strict=True, validate=Range(min=0, max=10_000))

class WheelSegmentUpdateSchema(WheelSegmentCreateSchema):
    text = SanitizedString(validate=Length(min=1, max=100))

    @validates_schema
    def validate_not_empty(self, data, **kwargs):
        if not data:
            raise ValidationError('At least one field must be provided.')

# --- Ticket Schemas ---
class TicketSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Ticket
        load_instance = True
        sqla_session = db.session

    id = auto_field(dump_only=True)
    segment_id = auto_field(dump_only=True)

class TicketCreateSchema(Schema):
    # Omitting segment_id draws the prize from the segment weights at creation time
    segment_id = fields.Int(strict=True, allow_none=True, load_default=None)
    expires_at = fields.DateTime(allow_none=True, load_default=None)
    code = fields.Str(validate=[Length(min=4, max=64), Regexp(TICKET_CODE_REGEX, error='Code may only contain letters, digits, dashes and underscores.')])

    @pre_load
    def strip_code(self, data, **kwargs):
        if isinstance(data, dict) and isinstance(data.get('code'), str):
            data = dict(data)
            data['code'] = data['code'].strip().upper()
        return data

class TicketBatchSchema(Schema):
    segment_id = fields.Int(strict=True, allow_none=True, load_default=None)
    count = fields.Int(strict=True, required=True, validate=Range(min=1, max=TICKET_BATCH_MAX))
    expires_at = fields.DateTime(allow_none=True, load_default=None)

class SpinRequestSchema(Schema):
    code = fields.Str(required=True, validate=Length(min=1, max=64))

    @pre_load
    def strip_code(self, data, **kwargs):
        if isinstance(data, dict) and isinstance(data.get('code'), str):
            data = dict(data)
            data['code'] = data['code'].strip().upper()
        return data

# --- Setting Schemas ---
class SettingSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Setting
        load_instance = True
        sqla_session = db.session

    id = auto_field(dump_only=True)

class SettingUpdateSchema(Schema):
    value = fields.Str(required=True, validate=Length(max=2000))

SETTING_KEY_VALIDATOR = validate.And(
    Length(min=1, max=100),
    Regexp(r'^[A-Za-z0-9_.-]+$', error='Setting keys may only contain letters, digits, dots, dashes and underscores.')
)
