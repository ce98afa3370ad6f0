import datetime as dt
import logging
from collections.abc import Mapping, Sequence
from decimal import Decimal, InvalidOperation
from itertools import groupby
from typing import Any

from pydantic import ValidationError

from ..errors import InvalidInput
from .models import DateGroup, ReportLayout, ReportRow, RowKind, TimeLogEntry, Totals


logger = logging.getLogger(__name__)

TOTAL_LABEL = "TOTAL"

# Larger magnitudes cannot be a real amount or hour count
MAX_MAGNITUDE = Decimal("1e15")


def to_decimal(value: Any) -> Decimal:
    """Coerce a numeric field, treating missing or malformed values as zero"""
    if value is None or isinstance(value, bool):
        return Decimal(0)
    try:
        if isinstance(value, float):
            number = Decimal(repr(value))
        elif isinstance(value, str):
            number = Decimal(value.strip())
        else:
            number = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        logger.debug(f"Treating non-numeric value {value!r} as zero")
        return Decimal(0)

    if not number.is_finite():
        logger.debug(f"Treating non-finite value {value!r} as zero")
        return Decimal(0)
    if abs(number) >= MAX_MAGNITUDE:
        logger.debug(f"Treating out-of-range value {value!r} as zero")
        return Decimal(0)
    return number


def format_date(day: dt.date) -> str:
    return f"{day:%A, %B} {day.day}, {day.year}"


def _parse_entries(entries: Any) -> list[TimeLogEntry]:
    if not isinstance(entries, Sequence) or isinstance(entries, (str, bytes)):
        raise InvalidInput(f"Expected a list of time-log entries, got {type(entries).__name__}")

    parsed = []
    for index, entry in enumerate(entries):
        if isinstance(entry, TimeLogEntry):
            parsed.append(entry)
            continue
        if not isinstance(entry, Mapping):
            raise InvalidInput(f"Entry {index} is not an object")
        try:
            parsed.append(TimeLogEntry.model_validate(entry))
        except ValidationError as e:
            raise InvalidInput(f"Entry {index} is invalid: {e.errors(include_url=False)}") from e
    return parsed


def _entry_totals(entry: TimeLogEntry) -> Totals:
    return Totals(
        billable_amount=to_decimal(entry.billable_amount),
        labor_hours=to_decimal(entry.labor_hours),
        billable_hours=to_decimal(entry.billable_hours),
    )


def group_by_date(entries: Sequence[TimeLogEntry]) -> list[DateGroup]:
    """Group entries by day in ascending date order.

    The sort is stable, so entries sharing a date keep their input order.
    """
    groups = []
    for day, members in groupby(sorted(entries, key=lambda entry: entry.date), key=lambda entry: entry.date):
        group = DateGroup(date=day, entries=list(members))
        for entry in group.entries:
            group.totals += _entry_totals(entry)
        groups.append(group)
    return groups


def _header_row(group: DateGroup) -> ReportRow:
    return ReportRow(
        kind=RowKind.HEADER,
        label=format_date(group.date),
        labor_hours=group.totals.labor_hours,
        billable_hours=group.totals.billable_hours,
        billable_amount=group.totals.billable_amount,
    )


def _detail_row(entry: TimeLogEntry) -> ReportRow:
    totals = _entry_totals(entry)
    return ReportRow(
        kind=RowKind.DETAIL,
        label=entry.user_name or "",
        client=entry.client_name or "",
        project=entry.project_name or "",
        task=entry.task_name or "",
        description=entry.note or "",
        billable="Yes" if entry.billable else "No",
        start_finish=entry.start_finish or "",
        labor_hours=totals.labor_hours,
        billable_hours=totals.billable_hours,
        billable_amount=totals.billable_amount,
    )


def build_layout(entries: Sequence[TimeLogEntry | Mapping[str, Any]]) -> ReportLayout:
    """Build the grouped Detailed Report layout from raw time-log entries.

    Each date gets a header row carrying its subtotals, followed by one
    detail row per entry. A single total row closes the report. Totals are
    summed unrounded; only the rendered cells are rounded to two decimals.

    Raises:
        InvalidInput: if ``entries`` is not a list of entry objects

    """
    groups = group_by_date(_parse_entries(entries))

    rows: list[ReportRow] = []
    header_rows: list[int] = []
    totals = Totals()
    for group in groups:
        header_rows.append(len(rows))
        rows.append(_header_row(group))
        rows.extend(_detail_row(entry) for entry in group.entries)
        totals += group.totals

    rows.append(
        ReportRow(
            kind=RowKind.TOTAL,
            label=TOTAL_LABEL,
            labor_hours=totals.labor_hours,
            billable_hours=totals.billable_hours,
            billable_amount=totals.billable_amount,
        )
    )

    logger.info(f"Built report layout: {len(groups)} dates, {len(rows)} rows")
    return ReportLayout(
        rows=rows,
        groups=groups,
        header_rows=header_rows,
        total_row=len(rows) - 1,
        totals=totals,
    )
