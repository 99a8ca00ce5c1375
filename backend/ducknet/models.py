from __future__ import annotations

import math
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from .lane_optimizer import Participant

DuckType = Literal["flying", "swimming", "flying_and_swimming"]

_SWIMMING_TYPES: frozenset[str] = frozenset({"swimming", "flying_and_swimming"})


class Duck(BaseModel):
    """A duck account as handed over by the user store.

    Swimming capability is a flag derived from ``duck_type``; only swimmers
    may enter races.
    """

    id: int
    username: str = ""
    duck_type: DuckType
    speed: float = Field(..., gt=0)
    endurance: float = Field(..., gt=0)

    @field_validator("speed", "endurance")
    @classmethod
    def finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("performance metrics must be finite")
        return v

    @property
    def can_swim(self) -> bool:
        return self.duck_type in _SWIMMING_TYPES

    def to_participant(self) -> Participant:
        return Participant(id=self.id, speed=self.speed)


class RaceEvent(BaseModel):
    id: int
    name: str
    lanes: int = Field(..., ge=1)
    distances: list[float] = Field(default_factory=list)

    @model_validator(mode="after")
    def default_and_check_distances(self) -> "RaceEvent":
        if not self.distances:
            # Every lane defaults to a unit distance until the organiser sets them.
            self.distances = [1.0] * self.lanes
        if len(self.distances) != self.lanes:
            raise ValueError("distances must have exactly one entry per lane")
        for d in self.distances:
            if not math.isfinite(d) or d <= 0:
                raise ValueError("lane distances must be positive and finite")
        return self
