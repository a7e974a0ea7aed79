from datetime import timedelta

import pytest

from config import DEFAULT_BOUNDS, MovementPolicy
from movements.models import MovementSubmission
from movements.validation import (
    FieldValidator,
    filter_waypoints,
    is_valid_coordinate,
    iter_valid_waypoints,
)
from payloads import make_payload


def _validate(now, policy=None, **overrides) -> dict[str, str]:
    submission = MovementSubmission.model_validate(make_payload(now, **overrides))
    return FieldValidator(policy or MovementPolicy()).validate(submission, now=now)


def test_valid_submission_has_no_errors(now) -> None:
    assert _validate(now) == {}


def test_all_violations_are_reported_together(now) -> None:
    errors = _validate(
        now,
        claimed_distance_km=0,
        avg_speed_kmh=250,
        max_speed_kmh=300,
        duration_minutes=2000,
        region_label=" x ",
    )
    assert set(errors) == {
        "claimed_distance_km",
        "avg_speed_kmh",
        "duration_minutes",
        "region_label",
    }


@pytest.mark.parametrize(
    ("field", "value"),
    [
        ("claimed_distance_km", 0),
        ("claimed_distance_km", -1),
        ("claimed_distance_km", 1000.01),
        ("avg_speed_kmh", 0),
        ("avg_speed_kmh", 200.5),
        ("duration_minutes", 0),
        ("duration_minutes", 1441),
    ],
)
def test_out_of_range_values_are_rejected(now, field, value) -> None:
    assert field in _validate(now, **{field: value})


@pytest.mark.parametrize(
    ("field", "value"),
    [
        ("claimed_distance_km", 1000),
        ("avg_speed_kmh", 60),
        ("duration_minutes", 1440),
    ],
)
def test_upper_bounds_are_inclusive(now, field, value) -> None:
    overrides = {field: value}
    if field == "avg_speed_kmh":
        overrides["max_speed_kmh"] = 60
    assert _validate(now, **overrides) == {}


def test_max_speed_below_average_is_rejected(now) -> None:
    errors = _validate(now, avg_speed_kmh=60, max_speed_kmh=40)
    assert errors == {"max_speed_kmh": "Max speed cannot be lower than average speed"}


def test_max_speed_equal_to_average_is_accepted(now) -> None:
    assert _validate(now, avg_speed_kmh=45, max_speed_kmh=45) == {}


def test_max_speed_above_ceiling_is_rejected(now) -> None:
    assert "max_speed_kmh" in _validate(now, max_speed_kmh=301)


def test_future_date_is_rejected(now) -> None:
    errors = _validate(now, date=(now + timedelta(minutes=5)).isoformat())
    assert errors["date"] == "Date cannot be in the future"


def test_date_older_than_seven_days_is_rejected(now) -> None:
    errors = _validate(now, date=(now - timedelta(days=8)).isoformat())
    assert errors["date"] == "Date cannot be more than 7 days in the past"


def test_unparseable_date_is_rejected(now) -> None:
    assert _validate(now, date="yesterday-ish")["date"] == "Invalid date"


def test_missing_date_is_rejected(now) -> None:
    assert _validate(now, date=None)["date"] == "Invalid date"


@pytest.mark.parametrize("label", ["", " ", "B", "x" * 51, None])
def test_region_label_length_is_checked_after_trimming(now, label) -> None:
    assert "region_label" in _validate(now, region_label=label)


def test_region_label_of_fifty_characters_is_accepted(now) -> None:
    assert _validate(now, region_label="  " + "r" * 50 + "  ") == {}


@pytest.mark.parametrize(
    "point",
    [
        {"latitude": 91, "longitude": 0},
        {"latitude": 0, "longitude": -181},
        {"latitude": "4.6", "longitude": -74.1},
        {"latitude": True, "longitude": -74.1},
        {"latitude": float("nan"), "longitude": -74.1},
        {"longitude": -74.1},
        None,
    ],
)
def test_invalid_start_coordinates(now, point) -> None:
    assert "start" in _validate(now, start=point)


def test_long_address_is_rejected(now) -> None:
    start = {"latitude": 4.6, "longitude": -74.1, "address": "a" * 201}
    assert "start" in _validate(now, start=start)


def test_strict_bounds_reject_points_outside_colombia(now) -> None:
    policy = MovementPolicy(strict_bounds=DEFAULT_BOUNDS)
    madrid = {"latitude": 40.4168, "longitude": -3.7038}
    errors = _validate(now, policy=policy, end=madrid)
    assert set(errors) == {"end"}


def test_points_outside_colombia_pass_without_strict_bounds(now) -> None:
    madrid = {"latitude": 40.4168, "longitude": -3.7038}
    assert _validate(now, end=madrid) == {}


def test_is_valid_coordinate_accepts_box_edges() -> None:
    assert is_valid_coordinate({"latitude": 12.5, "longitude": -66.9}, DEFAULT_BOUNDS)
    assert not is_valid_coordinate({"latitude": 12.51, "longitude": -70}, DEFAULT_BOUNDS)


def test_filter_waypoints_keeps_order_and_reports_dropped() -> None:
    points = [
        {"latitude": 4.60, "longitude": -74.10, "speed": 12},
        {"latitude": 95.0, "longitude": -74.10},
        {"latitude": 4.62, "longitude": -74.12},
        "garbage",
        {"latitude": 4.64, "longitude": -74.14, "speed": -3},
        {"latitude": 4.66, "longitude": -74.16},
    ]
    result = filter_waypoints(points)

    assert [w.latitude for w in result.accepted] == [4.60, 4.62, 4.66]
    assert result.dropped_count == 3
    assert result.dropped[1] == "garbage"


def test_filter_waypoints_applies_strict_bounds() -> None:
    points = [
        {"latitude": 4.6, "longitude": -74.1},
        {"latitude": 40.4, "longitude": -3.7},
    ]
    result = filter_waypoints(points, DEFAULT_BOUNDS)
    assert len(result.accepted) == 1
    assert result.dropped_count == 1


def test_iter_valid_waypoints_is_lazy() -> None:
    consumed = []

    def source():
        for lat in (4.6, 4.7, 4.8):
            consumed.append(lat)
            yield {"latitude": lat, "longitude": -74.1}

    iterator = iter_valid_waypoints(source())
    first = next(iterator)

    assert first.latitude == 4.6
    assert consumed == [4.6]


def test_iter_valid_waypoints_collects_rejected_points() -> None:
    dropped = []
    points = [{"latitude": 4.6, "longitude": -74.1}, {"latitude": -91, "longitude": 0}]

    accepted = list(iter_valid_waypoints(points, dropped=dropped))

    assert [w.latitude for w in accepted] == [4.6]
    assert dropped == [{"latitude": -91, "longitude": 0}]


def test_empty_waypoints_are_accepted() -> None:
    result = filter_waypoints([])
    assert result.accepted == []
    assert result.dropped_count == 0
