from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class KernelError(ValueError):
    reason_code: str
    message: str
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        return self.message


class InvalidInputError(KernelError):
    """Caller contract violation, rejected before any computation starts."""


class InfeasibleError(KernelError):
    """No complete assignment exists for the given input.

    Distinct from InvalidInputError: the input is well-formed and the caller
    may retry later, e.g. once more participants are available.
    """
