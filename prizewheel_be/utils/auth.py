from sqlalchemy import select

from prizewheel_be.models import db, User, TokenBlacklist

def user_identity_lookup(user):
    return str(user.id)

def user_lookup_callback(_jwt_header, jwt_data):
    identity = jwt_data["sub"]
    try:
        return db.session.get(User, int(identity))
    except (TypeError, ValueError):
        return None

def check_if_token_in_blacklist(jwt_header, jwt_payload):
    jti = jwt_payload['jti']
    token = db.session.scalar(select(TokenBlacklist.id).filter_by(jti=jti))
    # Expired entries are removed by the cleanup-expired-tokens CLI command.
    return token is not None

def register_jwt_handlers(jwt):
    jwt.user_identity_loader(user_identity_lookup)
    jwt.user_lookup_loader(user_lookup_callback)
    jwt.token_in_blocklist_loader(check_if_token_in_blacklist)
