from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import List, Tuple

PERIOD_PRESETS: tuple[str, ...] = ("mtd", "qtd", "ytd", "last30", "last90")


def month_start(value: date) -> date:
    return date(value.year, value.month, 1)


def month_end(value: date) -> date:
    return date(value.year, value.month, calendar.monthrange(value.year, value.month)[1])


def add_months(value: date, months: int) -> date:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, 1)


def month_range(as_of: date, months: int) -> List[date]:
    current_month = month_start(as_of)
    return [add_months(current_month, offset) for offset in range(-(months - 1), 1)]


def month_key(value: date) -> str:
    return value.strftime("%Y-%m")


def month_label(value: date) -> str:
    return value.strftime("%b %Y")


def quarter_start(value: date) -> date:
    return date(value.year, ((value.month - 1) // 3) * 3 + 1, 1)


def inclusive_days(start: date, end: date) -> int:
    if end < start:
        return 0
    return (end - start).days + 1


def resolve_period(preset: str, as_of: date) -> Tuple[date, date]:
    if preset == "mtd":
        return month_start(as_of), as_of
    if preset == "qtd":
        return quarter_start(as_of), as_of
    if preset == "ytd":
        return date(as_of.year, 1, 1), as_of
    if preset == "last30":
        return as_of - timedelta(days=29), as_of
    if preset == "last90":
        return as_of - timedelta(days=89), as_of
    raise ValueError(f"Unknown period '{preset}'. Expected one of: {', '.join(PERIOD_PRESETS)}.")
