"""Card identifier helpers."""

from datetime import datetime, timezone


def creation_time_of(card_id: str) -> datetime:
    """Creation time encoded in a card ID.

    The first 8 hex digits are a Unix timestamp in seconds:
    "5f5e1000..." → 2020-09-13 12:26:40 UTC

    Raises ValueError for IDs that do not start with 8 hex digits.
    """
    prefix = (card_id or "")[:8]
    if len(prefix) != 8:
        raise ValueError(f"Card ID too short: {card_id!r}")
    try:
        seconds = int(prefix, 16)
    except ValueError:
        raise ValueError(f"Card ID is not hexadecimal: {card_id!r}") from None
    return datetime.fromtimestamp(seconds, tz=timezone.utc)
