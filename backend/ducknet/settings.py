from __future__ import annotations

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

FEASIBILITY_MODES: frozenset[str] = frozenset({"greedy", "matching"})


def _default_out_dir() -> str:
    # Keep run artifacts in backend/out by default to avoid polluting the package.
    return str(Path(__file__).resolve().parents[1] / "out")


class Settings(BaseSettings):
    """Validated settings (env-driven), keeping tunables out of the algorithms."""

    model_config = SettingsConfigDict(
        # Support both "repo root/.env" and "backend/.env" (local dev)
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    out_dir: str = Field(default_factory=_default_out_dir, alias="OUT_DIR")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_to_file: bool = Field(default=False, alias="LOG_TO_FILE")

    # Bisection rounds; 100 saturates double precision for any sane bound.
    lane_optimizer_iterations: int = Field(
        default=100,
        ge=1,
        le=2000,
        alias="LANE_OPTIMIZER_ITERATIONS",
    )
    lane_optimizer_feasibility: str = Field(default="greedy", alias="LANE_OPTIMIZER_FEASIBILITY")

    # All-pairs BFS is quadratic in component size; warn past this many members.
    diameter_warn_nodes: int = Field(default=2000, ge=2, alias="DIAMETER_WARN_NODES")

    @model_validator(mode="after")
    def _normalise_feasibility_mode(self) -> "Settings":
        mode = str(self.lane_optimizer_feasibility or "greedy").strip().lower()
        if mode not in FEASIBILITY_MODES:
            mode = "greedy"
        self.lane_optimizer_feasibility = mode
        return self


settings = Settings()
