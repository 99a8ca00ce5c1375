from __future__ import annotations

import ducknet
from ducknet.kernel_errors import InfeasibleError, InvalidInputError, KernelError


def test_package_imports() -> None:
    # Package marker import should be stable for tooling/tests.
    assert ducknet.__name__ == "ducknet"


def test_kernel_error_string_and_details() -> None:
    err = InfeasibleError(
        reason_code="not_enough_participants",
        message="2 participants cannot fill 3 lanes",
        details={"participants": 2, "lanes": 3},
    )
    assert str(err) == "2 participants cannot fill 3 lanes"
    assert err.details is not None
    assert err.details["lanes"] == 3
    assert isinstance(err, KernelError)
    assert isinstance(err, ValueError)
    assert not isinstance(err, InvalidInputError)


def test_invalid_input_carries_its_own_reason_code() -> None:
    err = InvalidInputError(reason_code="invalid_distance", message="lane 0 has non-positive distance 0.0")

    assert err.reason_code == "invalid_distance"
    assert err.details is None
    assert not isinstance(err, InfeasibleError)
