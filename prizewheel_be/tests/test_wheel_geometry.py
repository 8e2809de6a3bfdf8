import pytest

from prizewheel_be.utils.wheel import (
    segment_angle, segment_rotation, winning_rotation, normalize_segment_positions,
    FULL_TURN_DEGREES, POINTER_ANGLE_DEGREES
)


def test_segment_angle():
    assert segment_angle(12) == 30
    assert segment_angle(8) == 45


@pytest.mark.parametrize("total", [0, -3])
def test_segment_angle_needs_segments(total):
    with pytest.raises(ValueError):
        segment_angle(total)


def test_segment_rotation_is_leading_edge():
    assert segment_rotation(0, 12) == 0
    assert segment_rotation(5, 12) == 150


@pytest.mark.parametrize("total", [2, 3, 7, 12])
def test_winning_rotation_puts_midpoint_under_pointer(total):
    angle = FULL_TURN_DEGREES / total
    for position in range(total):
        rotation = winning_rotation(position, total)
        assert FULL_TURN_DEGREES <= rotation < 2 * FULL_TURN_DEGREES
        midpoint = position * angle + angle / 2
        assert (midpoint + rotation) % FULL_TURN_DEGREES == pytest.approx(POINTER_ANGLE_DEGREES)


def test_winning_rotation_known_values():
    # 12 wedges: wedge 0 is centred at 15 degrees
    assert winning_rotation(0, 12) == pytest.approx(615)
    assert winning_rotation(11, 12) == pytest.approx(645)


def test_additional_spins():
    assert winning_rotation(3, 8, additional_spins=5) == pytest.approx(winning_rotation(3, 8, additional_spins=0) + 5 * 360)


def test_normalize_makes_positions_dense():
    segments = [
        {'id': 3, 'text': 'C', 'color': '#000', 'position': 40, 'weight': 1},
        {'id': 1, 'text': 'A', 'color': '#000', 'position': 10, 'weight': 1},
        {'id': 2, 'text': 'B', 'color': '#000', 'position': 10, 'weight': 1},
    ]
    rows = normalize_segment_positions(segments)
    assert [r['id'] for r in rows] == [1, 2, 3]
    assert [r['position'] for r in rows] == [0, 1, 2]
    # inputs are copied, not rewritten
    assert segments[0]['position'] == 40


def test_normalize_accepts_models():
    class Segment:
        def __init__(self, id, position):
            self.id = id
            self.text = f"S{id}"
            self.color = '#F59E0B'
            self.position = position
            self.weight = 2

    rows = normalize_segment_positions([Segment(9, 5), Segment(4, 1)])
    assert rows == [
        {'id': 4, 'text': 'S4', 'color': '#F59E0B', 'position': 0, 'weight': 2},
        {'id': 9, 'text': 'S9', 'color': '#F59E0B', 'position': 1, 'weight': 2},
    ]


def test_normalize_empty():
    assert normalize_segment_positions([]) == []
