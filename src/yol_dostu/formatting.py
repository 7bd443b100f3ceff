"""History list formatting helpers."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Optional

from src.chat_history import ChatSummary


def format_relative_date(value: datetime, now: Optional[datetime] = None) -> str:
    """Relative day label used in the chat history list.

    Day differences are rounded up, so anything within the last 24 hours is
    "Bugün" and the previous day is "Dünən".
    """
    now = now or datetime.now(timezone.utc)
    seconds = abs((now - value).total_seconds())
    diff_days = max(1, math.ceil(seconds / 86400))

    if diff_days == 1:
        return "Bugün"
    if diff_days == 2:
        return "Dünən"
    if diff_days <= 7:
        return f"{diff_days - 1} gün əvvəl"
    return value.astimezone(timezone.utc).strftime("%d.%m.%Y")


def format_summary(summary: ChatSummary, now: Optional[datetime] = None) -> str:
    return (
        f"{summary.title} | {summary.message_count} mesaj • "
        f"{format_relative_date(summary.updated_at, now)}"
    )
