"""
Platform adapters.

Each supported review platform supplies a small adapter instead of a
full copy of the analytics engine.
"""

from reviewpulse.platforms.base import PlatformAdapter
from reviewpulse.platforms.adapters import (
    BookingAdapter,
    FacebookAdapter,
    GoogleAdapter,
    TripAdvisorAdapter,
)

_ADAPTERS = {
    adapter.name: adapter
    for adapter in (GoogleAdapter(), FacebookAdapter(), TripAdvisorAdapter(), BookingAdapter())
}


def get_adapter(name: str) -> PlatformAdapter:
    """Look up an adapter by platform name (case-insensitive)."""
    try:
        return _ADAPTERS[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown platform: {name}. Supported: {sorted(_ADAPTERS)}") from None


def supported_platforms():
    return sorted(_ADAPTERS)
