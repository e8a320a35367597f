from datetime import datetime

from app.utils.misc import get_utc_now


class Clock:
    """Wall-clock source for lifecycle checks; swapped for a fake one in tests."""

    def now(self) -> datetime:
        return get_utc_now()


def get_clock() -> Clock:
    return Clock()
