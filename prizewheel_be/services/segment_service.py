import random

from flask import current_app
from sqlalchemy import select, func

from prizewheel_be.models import db, WheelSegment, DEFAULT_SEGMENT_COLOR
from prizewheel_be.exceptions import NotFoundException, BusinessRuleException
from prizewheel_be.error_codes import ErrorCodes

MIN_SEGMENTS = 2

DEFAULT_SEGMENTS = [
    ('$50 Gift Card', '#F59E0B'),
    ('Free Ticket', '#10B981'),
    ('20% Off', '#4F46E5'),
    ('$10 Cashback', '#F43F5E'),
    ('Free Product', '#8B5CF6'),
    ('2x Points', '#EC4899'),
    ('Mystery Box', '#06B6D4'),
    ('Try Again', '#84CC16'),
    ('$25 Gift Card', '#6366F1'),
    ('Free Coffee', '#F97316'),
    ('$5 Discount', '#14B8A6'),
    ('Free Shipping', '#D946EF'),
]


def list_segments():
    """All segments in display order: ascending position, ties broken by id."""
    return db.session.scalars(
        select(WheelSegment).order_by(WheelSegment.position.asc(), WheelSegment.id.asc())
    ).all()


def get_segment(segment_id):
    return db.session.get(WheelSegment, segment_id)


def get_segment_or_404(segment_id):
    segment = get_segment(segment_id)
    if segment is None:
        raise NotFoundException(
            status_message="Segment not found",
            details={'segment_id': segment_id},
            error_code=ErrorCodes.SEGMENT_NOT_FOUND
        )
    return segment


def count_segments():
    return db.session.scalar(select(func.count(WheelSegment.id)))


def next_position():
    """One past the highest stored position, 0 on an empty wheel."""
    return db.session.scalar(select(func.coalesce(func.max(WheelSegment.position), -1))) + 1


def create_segment(text, color=None, position=None, weight=None):
    """Creates a segment. Without an explicit position it is appended after the current last one."""
    if position is None:
        position = next_position()
    segment = WheelSegment(
        text=text,
        color=color or DEFAULT_SEGMENT_COLOR,
        position=position,
        weight=1 if weight is None else weight
    )
    db.session.add(segment)
    db.session.commit()
    current_app.logger.info(f"Wheel segment created: {segment.id} '{segment.text}' at position {segment.position}")
    return segment


def update_segment(segment_id, changes):
    segment = get_segment_or_404(segment_id)
    for key, value in changes.items():
        if key in ('text', 'color', 'position', 'weight'):
            setattr(segment, key, value)
    db.session.commit()
    current_app.logger.info(f"Wheel segment updated: {segment.id} fields={sorted(changes.keys())}")
    return segment


def delete_segment(segment_id):
    """
    Deletes a segment. The wheel must keep at least MIN_SEGMENTS wedges.
    Tickets bound to the segment are left untouched; their prize shows as unknown.
    """
    segment = get_segment_or_404(segment_id)
    if count_segments() <= MIN_SEGMENTS:
        raise BusinessRuleException(
            status_message=f"The wheel must keep at least {MIN_SEGMENTS} segments.",
            details={'min_segments': MIN_SEGMENTS}
        )
    db.session.delete(segment)
    db.session.commit()
    current_app.logger.info(f"Wheel segment deleted: {segment_id}")


def draw_weighted_segment(segments=None, rng=None):
    """
    Picks one segment with probability proportional to its weight.
    Zero-weight segments are never drawn.
    """
    segments = list_segments() if segments is None else segments
    candidates = [s for s in segments if (s.weight or 0) > 0]
    if not candidates:
        raise BusinessRuleException(
            status_message="No segment has a positive weight to draw a prize from.",
            details={'segments': len(segments)}
        )
    rng = rng or random.SystemRandom()
    return rng.choices(candidates, weights=[s.weight for s in candidates], k=1)[0]


def seed_default_segments():
    """Adds the default prize wedges when the wheel is empty. Returns the number created."""
    if count_segments():
        return 0
    for position, (text, color) in enumerate(DEFAULT_SEGMENTS):
        db.session.add(WheelSegment(text=text, color=color, position=position, weight=1))
    db.session.commit()
    return len(DEFAULT_SEGMENTS)
