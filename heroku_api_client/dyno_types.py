"""Heroku dyno types and the memory each of them provides.

See https://devcenter.heroku.com/articles/dyno-types and
https://devcenter.heroku.com/articles/limits#dynos
"""

from enum import Enum
import math
from typing import Union

from .errors import InvalidInputError


class DynoType(str, Enum):
    """Resource tiers a dyno can run under."""

    FREE = "free"
    HOBBY = "hobby"
    STANDARD_1X = "standard-1x"
    STANDARD_2X = "standard-2x"
    PERFORMANCE_M = "performance-m"
    PERFORMANCE_L = "performance-l"

    def __str__(self) -> str:
        return self.value


# Memory in MiB available to a single dyno before it starts swapping.
_BASE_MEMORY_MIB = {
    DynoType.FREE: 512,
    DynoType.HOBBY: 512,
    DynoType.STANDARD_1X: 512,
    DynoType.STANDARD_2X: 1024,
    DynoType.PERFORMANCE_M: 2500,
    DynoType.PERFORMANCE_L: 14000,
}


def available_dyno_types() -> tuple[DynoType, ...]:
    """Return all dyno types, smallest first."""
    return tuple(DynoType)


def validate_dyno_type(candidate: Union[DynoType, str]) -> DynoType:
    """Return the dyno type named by ``candidate``.

    Raises:
        InvalidInputError: If ``candidate`` is not a known dyno type.
    """
    try:
        return DynoType(candidate)
    except ValueError:
        raise InvalidInputError(
            f"Dyno type \"{candidate}\" not supported."
        ) from None


def memory_limit_mib(
    dyno_type: Union[DynoType, str],
    swap_allowance: float = 0.0,
) -> int:
    """Return the memory ceiling in MiB for a process on the given dyno type.

    Heroku lets a dyno swap up to its own memory size, so ``swap_allowance``
    is the fraction of that swap the process may use: 0 stays within
    physical memory, 1 doubles it. ``True``/``False`` are accepted as 1 and 0.

    Applying the limit to the running process is left to the caller.

    Raises:
        InvalidInputError: For an unknown dyno type or an allowance outside
            ``[0, 1]``.
    """
    dyno_type = validate_dyno_type(dyno_type)
    try:
        swap_allowance = float(swap_allowance)
    except (TypeError, ValueError):
        raise InvalidInputError(
            f"Swap allowance must be a number, got {swap_allowance!r}."
        ) from None
    if not 0.0 <= swap_allowance <= 1.0:
        raise InvalidInputError(
            f"Swap allowance must be between 0 and 1, got {swap_allowance}."
        )
    # Round away float noise before flooring, 2825 must not become 2824.
    return math.floor(round(_BASE_MEMORY_MIB[dyno_type] * (1.0 + swap_allowance), 9))
