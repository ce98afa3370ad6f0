import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from hours_proxy.api.dependencies import get_sheet_publisher
from hours_proxy.reports.aggregator import build_layout, to_decimal
from hours_proxy.reports.models import Totals
from hours_proxy.sheets.publisher import SheetPublisher


logger = logging.getLogger(__name__)

router = APIRouter(tags=["sheets"])


class GrandTotals(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    billable_amount: Any = None
    labor_hours: Any = None
    billable_hours: Any = None

    def to_totals(self) -> Totals:
        return Totals(
            billable_amount=to_decimal(self.billable_amount),
            labor_hours=to_decimal(self.labor_hours),
            billable_hours=to_decimal(self.billable_hours),
        )


class WriteToSheetRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    entries: list[dict[str, Any]]
    date_range: str = ""
    grand_totals: Optional[GrandTotals] = None


class WriteToSheetResponse(BaseModel):
    message: str
    sheet: str
    range: str
    rows: int


@router.post("/write-to-sheet")
def write_to_sheet(
    request: WriteToSheetRequest,
    publisher: SheetPublisher = Depends(get_sheet_publisher),
) -> WriteToSheetResponse:
    """Build the Detailed Report from the posted entries and publish it."""
    layout = build_layout(request.entries)
    grand_totals = request.grand_totals.to_totals() if request.grand_totals else None
    if grand_totals is not None and grand_totals != layout.totals:
        logger.warning(f"Posted grand totals {grand_totals} differ from computed totals {layout.totals}")

    result = publisher.publish(layout, request.date_range, grand_totals)
    return WriteToSheetResponse(
        message="Data written to sheet successfully",
        sheet=result.sheet_name,
        range=result.updated_range,
        rows=result.rows_written,
    )
