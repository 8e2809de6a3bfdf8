# prizewheel_be/utils/wheel.py

# --- Constants ---
FULL_TURN_DEGREES = 360
# The pointer sits at 12 o'clock; the wedge under it must end up at 270 degrees.
POINTER_ANGLE_DEGREES = 270
DEFAULT_ADDITIONAL_SPINS = 1

# --- Functions ---
def segment_angle(total_segments):
    """
    Angular width of one wedge in degrees.
    Raises ValueError when there are no segments to divide the wheel between.
    """
    if total_segments <= 0:
        raise ValueError("A wheel needs at least one segment.")
    return FULL_TURN_DEGREES / total_segments


def segment_rotation(position, total_segments):
    """Rotation of a wedge's leading edge for the given dense position."""
    return position * segment_angle(total_segments)


def winning_rotation(position, total_segments, additional_spins=DEFAULT_ADDITIONAL_SPINS):
    """
    Total rotation (degrees) that brings the centre of the wedge at `position`
    under the pointer, after `additional_spins` full turns.
    """
    angle = segment_angle(total_segments)
    midpoint = position * angle + (angle / 2)
    base_rotation = POINTER_ANGLE_DEGREES - midpoint
    normalized = (base_rotation + FULL_TURN_DEGREES) % FULL_TURN_DEGREES
    return normalized + (additional_spins * FULL_TURN_DEGREES)


def normalize_segment_positions(segments):
    """
    Returns the segments as dicts, sorted by stored position (ties by id), with
    `position` rewritten to a dense 0..N-1 sequence. Accepts model instances or dicts;
    the inputs are not modified.
    """
    rows = [dict(s) if isinstance(s, dict) else _segment_to_dict(s) for s in segments]
    rows.sort(key=lambda row: (row['position'], row['id']))
    for index, row in enumerate(rows):
        row['position'] = index
    return rows


def _segment_to_dict(segment):
    return {
        'id': segment.id,
        'text': segment.text,
        'color': segment.color,
        'position': segment.position,
        'weight': segment.weight,
    }
