from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .lane_optimizer import SolveResult, compute_min_time, lane_time
from .logging_utils import log_event
from .models import Duck, RaceEvent

NO_PARTICIPANTS_LINE = "No participants selected."


@dataclass(frozen=True)
class RaceReport:
    event_id: int
    participants: tuple[int, ...]
    result: SolveResult | None
    lines: tuple[str, ...]


def select_participants(ducks: Iterable[Duck], lanes: int) -> list[Duck]:
    """Pick up to ``lanes`` swimmers, fastest first, endurance breaking ties."""
    swimmers = [duck for duck in ducks if duck.can_swim]
    swimmers.sort(key=lambda duck: (-duck.speed, -duck.endurance))
    return swimmers[: max(0, lanes)]


def run_race(event: RaceEvent, ducks: Iterable[Duck], *, feasibility: str | None = None) -> RaceReport:
    selected = select_participants(ducks, event.lanes)
    if not selected:
        return RaceReport(event_id=event.id, participants=(), result=None, lines=(NO_PARTICIPANTS_LINE,))

    result = compute_min_time(
        participants=[duck.to_participant() for duck in selected],
        distances=event.distances,
        feasibility=feasibility,
    )
    speed_by_id = {duck.id: duck.speed for duck in selected}
    lines = [
        f"Duck {duck_id} on lane {lane + 1}: t = {lane_time(event.distances[lane], speed_by_id[duck_id]):.3f} s"
        for lane, duck_id in enumerate(result.assignment)
    ]
    lines.append(f"Minimal total time: {result.minimal_time:.3f} s")
    log_event(
        "race_finished",
        event_id=event.id,
        lanes=event.lanes,
        minimal_time=result.minimal_time,
    )
    return RaceReport(
        event_id=event.id,
        participants=tuple(duck.id for duck in selected),
        result=result,
        lines=tuple(lines),
    )
