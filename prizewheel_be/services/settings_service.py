from flask import current_app
from sqlalchemy import select

from prizewheel_be.models import db, Setting

DEFAULT_SETTINGS = {
    'background_color': 'linear-gradient(to bottom, #4338CA, #3730A3)',
    'site_title': 'Prize Wheel Game',
    'meta_description': 'Spin the wheel and win exciting prizes!',
}


def get_settings_map():
    settings = db.session.scalars(select(Setting).order_by(Setting.key)).all()
    return {setting.key: setting.value or '' for setting in settings}


def get_setting(key):
    return db.session.scalar(select(Setting).where(Setting.key == key))


def update_setting(key, value):
    """Upserts a setting and returns it."""
    setting = get_setting(key)
    if setting is None:
        setting = Setting(key=key, value=value)
        db.session.add(setting)
    else:
        setting.value = value
    db.session.commit()
    current_app.logger.info(f"Setting updated: {key}")
    return setting


def seed_default_settings():
    """Writes DEFAULT_SETTINGS for keys that are not set yet. Returns the number created."""
    created = 0
    for key, value in DEFAULT_SETTINGS.items():
        if get_setting(key) is None:
            db.session.add(Setting(key=key, value=value))
            created += 1
    db.session.commit()
    return created
