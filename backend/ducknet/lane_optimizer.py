from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from .kernel_errors import InfeasibleError, InvalidInputError
from .logging_utils import log_event
from .settings import FEASIBILITY_MODES, settings


@dataclass(frozen=True)
class Participant:
    id: int
    speed: float


@dataclass(frozen=True)
class SolveResult:
    minimal_time: float
    # assignment[lane] is the participant id racing that lane
    assignment: tuple[int, ...]


FeasibilityFn = Callable[[float, Sequence[Participant], Sequence[float]], list[int] | None]


def lane_time(distance: float, speed: float) -> float:
    """Round-trip time for one lane."""
    return (2.0 * distance) / speed


def _validate_inputs(participants: Sequence[Participant], distances: Sequence[float]) -> None:
    seen: set[int] = set()
    for participant in participants:
        speed = float(participant.speed)
        if not math.isfinite(speed) or speed <= 0.0:
            raise InvalidInputError(
                reason_code="invalid_speed",
                message=f"participant {participant.id} has non-positive speed {participant.speed!r}",
                details={"participant_id": participant.id, "speed": participant.speed},
            )
        if participant.id in seen:
            raise InvalidInputError(
                reason_code="duplicate_participant",
                message=f"participant {participant.id} is listed more than once",
                details={"participant_id": participant.id},
            )
        seen.add(participant.id)
    for lane, distance in enumerate(distances):
        d = float(distance)
        if not math.isfinite(d) or d <= 0.0:
            raise InvalidInputError(
                reason_code="invalid_distance",
                message=f"lane {lane} has non-positive distance {distance!r}",
                details={"lane": lane, "distance": distance},
            )


def greedy_feasible(
    time_bound: float,
    participants: Sequence[Participant],
    distances: Sequence[float],
) -> list[int] | None:
    """Fill lanes in index order, each with the fastest unused participant within the bound.

    Returns participant indexes per lane, or None if some lane cannot be filled.
    Lane-order dependent: not guaranteed to find an assignment whenever one exists.
    """
    if len(participants) < len(distances):
        return None
    used = [False] * len(participants)
    chosen_by_lane: list[int] = []
    for distance in distances:
        chosen = -1
        best_time = math.inf
        for idx, participant in enumerate(participants):
            if used[idx]:
                continue
            taken = lane_time(distance, participant.speed)
            if taken <= time_bound and taken < best_time:
                best_time = taken
                chosen = idx
        if chosen == -1:
            return None
        used[chosen] = True
        chosen_by_lane.append(chosen)
    return chosen_by_lane


def matching_feasible(
    time_bound: float,
    participants: Sequence[Participant],
    distances: Sequence[float],
) -> list[int] | None:
    """Bipartite matching (augmenting paths) of lanes to participants within the bound.

    Finds a complete assignment whenever one exists, regardless of lane order.
    """
    if len(participants) < len(distances):
        return None
    allowed: list[list[int]] = []
    for distance in distances:
        candidates = [
            idx
            for idx, participant in enumerate(participants)
            if lane_time(distance, participant.speed) <= time_bound
        ]
        if not candidates:
            return None
        # Try faster participants first so the matching stays close to the greedy pick.
        candidates.sort(key=lambda idx: (lane_time(distance, participants[idx].speed), idx))
        allowed.append(candidates)
    return match_lanes(allowed)


def _augment(root: int, allowed: Sequence[Sequence[int]], lane_of: dict[int, int]) -> bool:
    # Iterative augmenting-path search; chains can be as long as the lane count.
    seen: set[int] = set()
    stack = [(root, iter(allowed[root]))]
    via: list[int] = []  # via[i] is the participant stack[i] wants, held by stack[i + 1]
    while stack:
        lane, candidates = stack[-1]
        for idx in candidates:
            if idx in seen:
                continue
            seen.add(idx)
            owner = lane_of.get(idx)
            if owner is None:
                lane_of[idx] = lane
                for (prev_lane, _), taken in zip(stack[:-1], via, strict=True):
                    lane_of[taken] = prev_lane
                return True
            via.append(idx)
            stack.append((owner, iter(allowed[owner])))
            break
        else:
            stack.pop()
            if via:
                via.pop()
    return False


def match_lanes(allowed: Sequence[Sequence[int]]) -> list[int] | None:
    """Maximum bipartite matching of lanes to participant indexes.

    ``allowed[lane]`` lists the participants that may take that lane, in
    preference order. Returns the participant index per lane, or None when
    some lane stays unmatched.
    """
    lane_of: dict[int, int] = {}
    unmatched: list[int] = []
    # Seed with the greedy pick; only lanes left over need augmenting paths.
    for lane, candidates in enumerate(allowed):
        for idx in candidates:
            if idx not in lane_of:
                lane_of[idx] = lane
                break
        else:
            unmatched.append(lane)
    for lane in unmatched:
        if not _augment(lane, allowed, lane_of):
            return None
    chosen_by_lane = [-1] * len(allowed)
    for idx, lane in lane_of.items():
        chosen_by_lane[lane] = idx
    return chosen_by_lane


_FEASIBILITY: dict[str, FeasibilityFn] = {
    "greedy": greedy_feasible,
    "matching": matching_feasible,
}


def _resolve_feasibility(mode: str | None) -> str:
    resolved = str(mode or settings.lane_optimizer_feasibility).strip().lower()
    if resolved not in FEASIBILITY_MODES:
        raise InvalidInputError(
            reason_code="invalid_feasibility_mode",
            message=f"unknown feasibility mode {mode!r}",
            details={"allowed": sorted(FEASIBILITY_MODES)},
        )
    return resolved


def compute_min_time_with_stats(
    *,
    participants: Sequence[Participant],
    distances: Sequence[float],
    max_iterations: int | None = None,
    feasibility: str | None = None,
) -> tuple[SolveResult, dict[str, int | float | str]]:
    mode = _resolve_feasibility(feasibility)
    iterations = int(max_iterations if max_iterations is not None else settings.lane_optimizer_iterations)
    if iterations < 1:
        raise InvalidInputError(
            reason_code="invalid_iteration_count",
            message="bisection needs at least one iteration",
            details={"max_iterations": iterations},
        )
    _validate_inputs(participants, distances)

    lanes = len(distances)
    if lanes == 0:
        return SolveResult(minimal_time=0.0, assignment=()), {
            "iterations": 0,
            "feasible_iterations": 0,
            "time_bound": 0.0,
            "feasibility": mode,
        }
    if len(participants) < lanes:
        log_event(
            "lane_optimization_infeasible",
            level=logging.WARNING,
            reason_code="not_enough_participants",
            participants=len(participants),
            lanes=lanes,
        )
        raise InfeasibleError(
            reason_code="not_enough_participants",
            message=f"{len(participants)} participants cannot fill {lanes} lanes",
            details={"participants": len(participants), "lanes": lanes},
        )

    oracle = _FEASIBILITY[mode]
    low = 0.0
    # Worst case: the slowest participant on the longest lane.
    high = lane_time(max(distances), min(p.speed for p in participants))
    best = oracle(high, participants, distances) if math.isfinite(high) else None
    if best is None:
        log_event(
            "lane_optimization_infeasible",
            level=logging.WARNING,
            reason_code="non_finite_bound",
            participants=len(participants),
            lanes=lanes,
        )
        raise InfeasibleError(
            reason_code="non_finite_bound",
            message="upper time bound is not finite or admits no assignment",
            details={"time_bound": high},
        )
    time_bound = high

    feasible_iterations = 0
    for _ in range(iterations):
        mid = (low + high) / 2.0
        current = oracle(mid, participants, distances)
        if current is not None:
            feasible_iterations += 1
            high = mid
            time_bound = mid
            best = current
        else:
            low = mid

    assignment = tuple(participants[idx].id for idx in best)
    minimal_time = max(lane_time(distances[lane], participants[idx].speed) for lane, idx in enumerate(best))
    stats: dict[str, int | float | str] = {
        "iterations": iterations,
        "feasible_iterations": feasible_iterations,
        "time_bound": time_bound,
        "feasibility": mode,
    }
    log_event(
        "lane_optimization_complete",
        participants=len(participants),
        lanes=lanes,
        minimal_time=minimal_time,
        **stats,
    )
    return SolveResult(minimal_time=minimal_time, assignment=assignment), stats


def compute_min_time(
    *,
    participants: Sequence[Participant],
    distances: Sequence[float],
    max_iterations: int | None = None,
    feasibility: str | None = None,
) -> SolveResult:
    result, _stats = compute_min_time_with_stats(
        participants=participants,
        distances=distances,
        max_iterations=max_iterations,
        feasibility=feasibility,
    )
    return result
