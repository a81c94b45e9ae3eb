import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3, 12.5 -> 13).

    Unlike round(), which sends halves to the even neighbour.
    """
    return math.floor(value + 0.5)


def percent(part: int, whole: int) -> int:
    """Integer percentage of part over whole; 0 when whole is 0."""
    if whole <= 0:
        return 0
    return round_half_up(part / whole * 100)
