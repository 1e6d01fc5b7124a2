"""Author-date decoding for `git log --pretty=%aD` output."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Callable, NamedTuple

logger = logging.getLogger(__name__)


class DecodedDate(NamedTuple):
    value: datetime
    parsed: bool


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def decode_author_date(raw: str, now_fn: Callable[[], datetime] | None = None) -> DecodedDate:
    """Parse an RFC 2822 author date, falling back to the current time.

    git always renders `%aD` with English day and month abbreviations, so the
    value is parsed without consulting `LC_TIME` (unlike `strptime("%a %b")`).
    Unparseable input never raises: the result carries ``parsed=False`` and the
    time of decoding instead.
    """
    text = raw.strip()
    if text:
        try:
            value = parsedate_to_datetime(text)
        except (TypeError, ValueError, IndexError, OverflowError):
            value = None
        if value is not None:
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            return DecodedDate(value, True)

    logger.debug("Unparseable author date %r; using current time.", raw)
    return DecodedDate((now_fn or utc_now)(), False)
