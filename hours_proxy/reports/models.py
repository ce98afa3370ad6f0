import datetime as dt
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, localcontext
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


COLUMN_HEADERS = [
    "Date / User",
    "Client",
    "Project",
    "Task",
    "Description",
    "Billable",
    "Start / Finish",
    "Labor Hours",
    "Billable Hours",
    "Billable Amount",
]
COLUMN_COUNT = len(COLUMN_HEADERS)

CENT = Decimal("0.01")


class TimeLogEntry(BaseModel):
    """One raw time-log row as sent by the frontend"""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    date: dt.date
    user_name: str | None = None
    client_name: str | None = None
    project_name: str | None = None
    task_name: str | None = None
    billable: bool = False
    billable_amount: Any = None
    start_finish: str | None = None
    labor_hours: Any = None
    billable_hours: Any = None
    note: str | None = None

    @field_validator("date", mode="before")
    @classmethod
    def _calendar_day(cls, value: Any) -> dt.date:
        if isinstance(value, dt.datetime):
            return value.date()
        if isinstance(value, dt.date):
            return value
        if isinstance(value, str):
            # "2024-01-02T09:30:00" and "2024-01-02" both group under the same day
            return dt.date.fromisoformat(value.strip()[:10])
        raise ValueError(f"Expected an ISO date string, got {type(value).__name__}")

    @field_validator(
        "user_name", "client_name", "project_name", "task_name", "start_finish", "note", mode="before"
    )
    @classmethod
    def _text(cls, value: Any) -> str | None:
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("billable", mode="before")
    @classmethod
    def _flag(cls, value: Any) -> Any:
        return False if value is None else value


@dataclass(frozen=True)
class Totals:
    """Unrounded sums of the three aggregate columns"""

    billable_amount: Decimal = Decimal(0)
    labor_hours: Decimal = Decimal(0)
    billable_hours: Decimal = Decimal(0)

    def __add__(self, other: "Totals") -> "Totals":
        return Totals(
            billable_amount=self.billable_amount + other.billable_amount,
            labor_hours=self.labor_hours + other.labor_hours,
            billable_hours=self.billable_hours + other.billable_hours,
        )


@dataclass
class DateGroup:
    """All entries of one calendar day plus their subtotals"""

    date: dt.date
    entries: list[TimeLogEntry] = field(default_factory=list)
    totals: Totals = field(default_factory=Totals)


class RowKind(Enum):
    """Types of rows that make up the report"""

    HEADER = "HEADER"
    DETAIL = "DETAIL"
    TOTAL = "TOTAL"


def format_amount(value: Decimal | None) -> str:
    """Render a number with exactly two decimals"""
    if value is None:
        return ""
    # quantize needs every integer digit plus two decimals within the context precision
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        rounded = value.quantize(CENT, rounding=ROUND_HALF_UP)
    if rounded == 0:
        rounded = Decimal("0.00")
    return str(rounded)


@dataclass(frozen=True)
class ReportRow:
    """A single report row with named columns.

    ``label`` holds the formatted date for header rows, the user name for
    detail rows and ``TOTAL`` for the total row.
    """

    kind: RowKind
    label: str = ""
    client: str = ""
    project: str = ""
    task: str = ""
    description: str = ""
    billable: str = ""
    start_finish: str = ""
    labor_hours: Decimal | None = None
    billable_hours: Decimal | None = None
    billable_amount: Decimal | None = None

    def to_cells(self) -> list[str]:
        """Serialize to the fixed A:J column order"""
        return [
            self.label,
            self.client,
            self.project,
            self.task,
            self.description,
            self.billable,
            self.start_finish,
            format_amount(self.labor_hours),
            format_amount(self.billable_hours),
            format_amount(self.billable_amount),
        ]


@dataclass
class ReportLayout:
    """Ordered report rows plus the positions of header and total rows.

    Positions are 0-based and relative to the first data row of the sheet.
    """

    rows: list[ReportRow]
    groups: list[DateGroup]
    header_rows: list[int]
    total_row: int
    totals: Totals

    def values(self) -> list[list[str]]:
        return [row.to_cells() for row in self.rows]
