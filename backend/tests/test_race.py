from __future__ import annotations

import pytest
from pydantic import ValidationError

from ducknet.kernel_errors import InfeasibleError
from ducknet.lane_optimizer import Participant
from ducknet.models import Duck, RaceEvent
from ducknet.race import NO_PARTICIPANTS_LINE, run_race, select_participants


def _ducks() -> list[Duck]:
    return [
        Duck(id=1, username="daffy", duck_type="swimming", speed=10.0, endurance=3.0),
        Duck(id=2, username="donald", duck_type="flying_and_swimming", speed=20.0, endurance=1.0),
        Duck(id=3, username="scrooge", duck_type="flying", speed=50.0, endurance=9.0),
        Duck(id=4, username="huey", duck_type="swimming", speed=5.0, endurance=2.0),
        Duck(id=5, username="dewey", duck_type="swimming", speed=10.0, endurance=8.0),
    ]


def test_duck_capability_flag_and_projection() -> None:
    ducks = {duck.id: duck for duck in _ducks()}

    assert ducks[1].can_swim
    assert ducks[2].can_swim
    assert not ducks[3].can_swim
    assert ducks[2].to_participant() == Participant(id=2, speed=20.0)


def test_duck_rejects_non_positive_metrics() -> None:
    with pytest.raises(ValidationError):
        Duck(id=9, duck_type="swimming", speed=0.0, endurance=1.0)
    with pytest.raises(ValidationError):
        Duck(id=9, duck_type="swimming", speed=float("inf"), endurance=1.0)


def test_race_event_distances_default_to_unit_lanes() -> None:
    event = RaceEvent(id=1, name="Pond sprint", lanes=3)

    assert event.distances == [1.0, 1.0, 1.0]


def test_race_event_validates_distances() -> None:
    with pytest.raises(ValidationError):
        RaceEvent(id=1, name="Pond sprint", lanes=2, distances=[1.0])
    with pytest.raises(ValidationError):
        RaceEvent(id=1, name="Pond sprint", lanes=2, distances=[1.0, -1.0])
    with pytest.raises(ValidationError):
        RaceEvent(id=1, name="Pond sprint", lanes=0)


def test_select_participants_filters_swimmers_and_orders_by_speed_then_endurance() -> None:
    selected = select_participants(_ducks(), 3)

    assert [duck.id for duck in selected] == [2, 5, 1]


def test_run_race_reports_each_lane_and_minimal_time() -> None:
    event = RaceEvent(id=7, name="Lake relay", lanes=2, distances=[10.0, 10.0])

    report = run_race(event, _ducks())

    assert report.participants == (2, 5)
    assert report.result is not None
    assert report.result.minimal_time == pytest.approx(2.0)
    assert report.lines == (
        "Duck 2 on lane 1: t = 1.000 s",
        "Duck 5 on lane 2: t = 2.000 s",
        "Minimal total time: 2.000 s",
    )


def test_run_race_without_swimmers() -> None:
    event = RaceEvent(id=8, name="Dry run", lanes=2)
    flyers = [duck for duck in _ducks() if not duck.can_swim]

    report = run_race(event, flyers)

    assert report.lines == (NO_PARTICIPANTS_LINE,)
    assert report.result is None


def test_run_race_with_too_few_swimmers_is_infeasible() -> None:
    event = RaceEvent(id=9, name="Grand final", lanes=5)

    with pytest.raises(InfeasibleError):
        run_race(event, _ducks())
