import uuid

from flask import current_app
from sqlalchemy import select, update, or_, true, false

from prizewheel_be.models import db, Ticket, WheelSegment, utcnow, as_utc
from prizewheel_be.exceptions import (
    ValidationException, TicketNotFoundException, TicketAlreadyUsedException,
    TicketExpiredException, PrizeNotFoundException, InternalServerErrorException
)
from prizewheel_be.error_codes import ErrorCodes
from prizewheel_be.services import segment_service
from prizewheel_be.utils.wheel import normalize_segment_positions, winning_rotation
from prizewheel_be.utils.security_logger import SecurityLogger

TICKET_CODE_PREFIX = 'PRIZE'
TICKET_CODE_SUFFIX_LENGTH = 6
MAX_CODE_ATTEMPTS = 5
UNKNOWN_PRIZE = 'Unknown Prize'
LIKE_ESCAPE = "\\"


def generate_ticket_code(now=None):
    """Human-readable code: PRIZE-<year>-<6 upper-case hex chars>."""
    now = now or utcnow()
    suffix = uuid.uuid4().hex[:TICKET_CODE_SUFFIX_LENGTH].upper()
    return f"{TICKET_CODE_PREFIX}-{now.year}-{suffix}"


def code_exists(code):
    return db.session.scalar(select(Ticket.id).where(Ticket.code == code)) is not None


def _unique_code(reserved):
    for _ in range(MAX_CODE_ATTEMPTS):
        code = generate_ticket_code()
        if code not in reserved and not code_exists(code):
            reserved.add(code)
            return code
    raise InternalServerErrorException(status_message="Could not generate a unique ticket code.")


def _resolve_segment_id(segment_id):
    """An explicit segment must exist; a missing one is drawn by weight now, fixing the prize at creation."""
    if segment_id is None:
        return segment_service.draw_weighted_segment().id
    if segment_service.get_segment(segment_id) is None:
        raise ValidationException(
            status_message="Invalid segment ID",
            details={'segment_id': segment_id},
            error_code=ErrorCodes.SEGMENT_NOT_FOUND
        )
    return segment_id


def get_ticket_by_code(code):
    return db.session.scalar(select(Ticket).where(Ticket.code == code))


def list_tickets():
    return db.session.scalars(select(Ticket).order_by(Ticket.created_at.desc(), Ticket.id.desc())).all()


def create_ticket(segment_id=None, expires_at=None, code=None):
    if code is not None and code_exists(code):
        raise ValidationException(
            status_message="Ticket code already exists.",
            details={'code': code},
            error_code=ErrorCodes.TICKET_CODE_TAKEN
        )
    ticket = Ticket(
        code=code or _unique_code(set()),
        segment_id=_resolve_segment_id(segment_id),
        used=False,
        expires_at=as_utc(expires_at)
    )
    db.session.add(ticket)
    db.session.commit()
    current_app.logger.info(f"Ticket created: {ticket.code} for segment {ticket.segment_id}")
    return ticket


def create_ticket_batch(segment_id, count, expires_at=None):
    """
    Creates `count` tickets, each with its own code. With an explicit segment all
    tickets share that prize; without one every ticket gets its own weighted draw.
    The batch is committed as a whole.
    """
    if segment_id is not None:
        segment_id = _resolve_segment_id(segment_id)
    expires_at = as_utc(expires_at)
    reserved = set()
    tickets = []
    for _ in range(count):
        ticket = Ticket(
            code=_unique_code(reserved),
            segment_id=segment_id if segment_id is not None else _resolve_segment_id(None),
            used=False,
            expires_at=expires_at
        )
        db.session.add(ticket)
        tickets.append(ticket)
    db.session.commit()
    current_app.logger.info(f"Ticket batch created: {len(tickets)} ticket(s), segment={segment_id if segment_id is not None else 'weighted'}")
    return tickets


def claim_ticket(ticket_id, ip_address, now=None):
    """
    Marks the ticket used with a single conditional UPDATE. Only the caller whose
    statement flips `used` from false to true, before the ticket expires, gets True back.
    """
    now = now or utcnow()
    result = db.session.execute(
        update(Ticket)
        .where(
            Ticket.id == ticket_id,
            Ticket.used == false(),
            or_(Ticket.expires_at.is_(None), Ticket.expires_at >= now)
        )
        .values(used=True, used_at=now, ip_address=ip_address)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.session.rollback()
        return False
    db.session.commit()
    return True


def redeem_ticket(code, ip_address):
    """
    Consumes a ticket code and returns the prize it was bound to.

    Returns a dict with the updated ticket, its segment, every segment in render
    order (dense positions) and the rotation that lands the pointer on the prize.
    """
    ticket = get_ticket_by_code(code)
    if ticket is None:
        SecurityLogger.log_redemption_event('not_found', code=code, success=False)
        raise TicketNotFoundException(details={'code': code})

    if ticket.used:
        SecurityLogger.log_redemption_event('already_used', code=code, ticket_id=ticket.id, success=False)
        raise TicketAlreadyUsedException(details={'code': code})

    now = utcnow()
    if ticket.is_expired(now):
        SecurityLogger.log_redemption_event('expired', code=code, ticket_id=ticket.id, success=False)
        raise TicketExpiredException(details={'code': code, 'expires_at': as_utc(ticket.expires_at).isoformat()})

    segment = segment_service.get_segment(ticket.segment_id)
    if segment is None:
        current_app.logger.error(f"Ticket {ticket.id} references missing segment {ticket.segment_id}")
        raise PrizeNotFoundException(details={'code': code})

    if not claim_ticket(ticket.id, ip_address, now):
        SecurityLogger.log_redemption_event('lost_race', code=code, ticket_id=ticket.id, success=False)
        raise TicketAlreadyUsedException(details={'code': code})

    db.session.refresh(ticket)
    segments = normalize_segment_positions(segment_service.list_segments())
    prize_position = next(row['position'] for row in segments if row['id'] == segment.id)

    SecurityLogger.log_redemption_event('redeemed', code=code, ticket_id=ticket.id,
                                        segment_id=segment.id, success=True)
    return {
        'ticket': ticket,
        'segment': segment,
        'segments': segments,
        'rotation': winning_rotation(prize_position, len(segments)),
    }


def _escape_like(text):
    """Search text is matched literally; % and _ are not wildcards."""
    return text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2).replace("%", LIKE_ESCAPE + "%").replace("_", LIKE_ESCAPE + "_")


def list_winners(segment_id=None, search=None):
    """
    Redeemed tickets, most recent first, each paired with its prize text.
    A ticket whose segment was deleted reports UNKNOWN_PRIZE.
    """
    query = (
        select(Ticket, WheelSegment.text)
        .outerjoin(WheelSegment, WheelSegment.id == Ticket.segment_id)
        .where(Ticket.used == true())
        .order_by(Ticket.used_at.desc(), Ticket.id.desc())
    )
    if segment_id is not None:
        query = query.where(Ticket.segment_id == segment_id)
    if search:
        pattern = f"%{_escape_like(search)}%"
        query = query.where(or_(
            Ticket.code.ilike(pattern, escape=LIKE_ESCAPE),
            WheelSegment.text.ilike(pattern, escape=LIKE_ESCAPE)
        ))

    winners = []
    for ticket, prize_text in db.session.execute(query).all():
        winners.append({'ticket': ticket, 'prize': prize_text if prize_text is not None else UNKNOWN_PRIZE})
    return winners
