from flask_sqlalchemy import SQLAlchemy
from datetime import datetime, timezone
from passlib.hash import pbkdf2_sha256 as sha256

db = SQLAlchemy()

DEFAULT_SEGMENT_COLOR = '#F59E0B'


def utcnow():
    return datetime.now(timezone.utc)


def as_utc(value):
    """SQLite hands back naive datetimes; treat them as UTC so comparisons with aware values work."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class User(db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), unique=True, nullable=False, index=True)
    password = db.Column(db.String(255), nullable=False)
    is_admin = db.Column(db.Boolean, default=False, nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def check_password(self, password):
        return sha256.verify(password, self.password)

    @staticmethod
    def hash_password(password):
        return sha256.hash(password)

    @staticmethod
    def verify_password(hashed_password, password):
        return sha256.verify(password, hashed_password)

    def __repr__(self):
        return f"<User {self.username}>"

class WheelSegment(db.Model):
    __tablename__ = 'wheel_segment'
    id = db.Column(db.Integer, primary_key=True)
    text = db.Column(db.String(100), nullable=False)
    color = db.Column(db.String(50), nullable=False, default=DEFAULT_SEGMENT_COLOR)
    position = db.Column(db.Integer, nullable=False, default=0, index=True)
    weight = db.Column(db.Integer, nullable=False, default=1)

    def __repr__(self):
        return f"<WheelSegment {self.id} ({self.text}, pos={self.position})>"

class Ticket(db.Model):
    __tablename__ = 'ticket'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(64), unique=True, nullable=False, index=True)
    # Plain integer rather than a foreign key: segments may be deleted while tickets still point at them.
    segment_id = db.Column(db.Integer, nullable=False, index=True)
    used = db.Column(db.Boolean, default=False, nullable=False, index=True)
    ip_address = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    used_at = db.Column(db.DateTime(timezone=True), nullable=True)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def is_expired(self, now=None):
        if self.expires_at is None:
            return False
        now = now or utcnow()
        return as_utc(self.expires_at) < now

    def __repr__(self):
        return f"<Ticket {self.code} (Segment: {self.segment_id}, Used: {self.used})>"

class Setting(db.Model):
    __tablename__ = 'setting'
    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(100), unique=True, nullable=False, index=True)
    value = db.Column(db.Text, nullable=False, default='')

    def __repr__(self):
        return f"<Setting {self.key}>"

class TokenBlacklist(db.Model):
    __tablename__ = 'token_blacklist'

    id = db.Column(db.Integer, primary_key=True)
    jti = db.Column(db.String(255), nullable=False, unique=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f'<TokenBlacklist {self.jti}>'
