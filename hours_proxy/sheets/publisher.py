import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Optional

from ..errors import PublishFailed
from ..reports.models import COLUMN_COUNT, COLUMN_HEADERS, ReportLayout, Totals, format_amount
from .client import GoogleSheetsClient, SheetError


logger = logging.getLogger(__name__)

DEFAULT_SHEET_NAME = "Detailed Report"
REPORT_TITLE = "Detailed Report"

# Rows 1-4 hold the title, date range, grand-total summary and column headings
HEADER_BLOCK_ROWS = 4
LAST_COLUMN = "J"

LABOR_HOURS_COLUMN = 7
BILLABLE_AMOUNT_COLUMN = 9

GROUP_BACKGROUND = {"red": 0.9, "green": 0.93, "blue": 0.98}
TOTAL_BACKGROUND = {"red": 0.8, "green": 0.85, "blue": 0.93}
HEADING_BACKGROUND = {"red": 0.26, "green": 0.42, "blue": 0.67}
WHITE = {"red": 1.0, "green": 1.0, "blue": 1.0}

CURRENCY_FORMAT = {"type": "CURRENCY", "pattern": "$#,##0.00"}
HOURS_FORMAT = {"type": "NUMBER", "pattern": "0.00"}


@dataclass
class PublishResult:
    sheet_name: str
    sheet_id: int
    updated_range: str
    rows_written: int


def quote_sheet_name(sheet_name: str) -> str:
    return "'" + sheet_name.replace("'", "''") + "'"


def _grid_range(sheet_id: int, start_row: int, end_row: Optional[int], start_col: int = 0, end_col: int = COLUMN_COUNT):
    grid = {
        "sheetId": sheet_id,
        "startRowIndex": start_row,
        "startColumnIndex": start_col,
        "endColumnIndex": end_col,
    }
    if end_row is not None:
        grid["endRowIndex"] = end_row
    return grid


def _repeat_cell(grid: dict[str, Any], cell_format: dict[str, Any], fields: str) -> dict[str, Any]:
    return {"repeatCell": {"range": grid, "cell": {"userEnteredFormat": cell_format}, "fields": fields}}


def _row_highlight(sheet_id: int, row: int, background: dict[str, float]) -> dict[str, Any]:
    return _repeat_cell(
        _grid_range(sheet_id, row, row + 1),
        {"textFormat": {"bold": True}, "backgroundColor": background},
        "userEnteredFormat(textFormat,backgroundColor)",
    )


def summary_row(totals: Totals) -> list[str]:
    """Grand-total summary shown in the header block, aligned with the data columns"""
    row = [""] * COLUMN_COUNT
    row[0] = "Grand Total"
    row[LABOR_HOURS_COLUMN] = format_amount(totals.labor_hours)
    row[LABOR_HOURS_COLUMN + 1] = format_amount(totals.billable_hours)
    row[BILLABLE_AMOUNT_COLUMN] = format_amount(totals.billable_amount)
    return row


def to_sheet_row(cells: list[str]) -> list[Any]:
    """Turn rendered hour and amount cells into numbers.

    Values are written RAW so frontend text is never parsed as a formula;
    numbers have to be real numbers for the column formats to apply.
    """
    return [
        float(cell) if LABOR_HOURS_COLUMN <= index <= BILLABLE_AMOUNT_COLUMN and cell else cell
        for index, cell in enumerate(cells)
    ]


class SheetPublisher:
    """Publishes a report layout to the Detailed Report tab.

    The sequence is resolve/create, clear, write, format. It is not atomic:
    a failure part way leaves the earlier steps applied, and a concurrent
    reader can see a partially updated sheet. Two requests creating the tab
    for the first time at once will race; the loser's ``addSheet`` fails and
    its publish reports ``PublishFailed``. Each Sheets call runs on its own
    HTTP connection (see ``GoogleSheetsClient``), so concurrent publishes do
    not share a transport, though their writes still interleave on the tab.
    """

    def __init__(self, sheets_client: GoogleSheetsClient, sheet_name: str = DEFAULT_SHEET_NAME):
        self.sheets_client = sheets_client
        self.sheet_name = sheet_name

    def _run(self, step: str, func: Callable[..., Any], *args: Any) -> Any:
        try:
            return func(*args)
        except SheetError as e:
            logger.error(f"Publishing failed while trying to {step}: {e}")
            raise PublishFailed(step, str(e)) from e

    def publish(
        self,
        layout: ReportLayout,
        date_range_label: str,
        grand_totals: Optional[Totals] = None,
        sheet_name: Optional[str] = None,
    ) -> PublishResult:
        """Write the layout below the fixed header block and format it.

        Raises:
            PublishFailed: if any spreadsheet call fails; nothing is rolled back

        """
        sheet_name = sheet_name or self.sheet_name
        quoted = quote_sheet_name(sheet_name)
        logger.info(f"Publishing {len(layout.rows)} rows to {sheet_name} for {date_range_label}")

        # Render before touching the sheet so a rendering error leaves it intact
        first_row = HEADER_BLOCK_ROWS + 1
        last_row = HEADER_BLOCK_ROWS + len(layout.rows)
        updated_range = f"{quoted}!A{first_row}:{LAST_COLUMN}{last_row}"
        data = [
            {"range": f"{quoted}!A2", "values": [[date_range_label]]},
            {"range": f"{quoted}!A3:{LAST_COLUMN}3", "values": [to_sheet_row(summary_row(grand_totals or layout.totals))]},
            {"range": updated_range, "values": [to_sheet_row(cells) for cells in layout.values()]},
        ]

        sheet_id = self._run("resolve sheet", self.sheets_client.get_sheet_id, sheet_name)
        if sheet_id is None:
            sheet_id = self._run("create sheet", self.sheets_client.add_sheet, sheet_name)
            logger.info(f"Created sheet {sheet_name} with id {sheet_id}")
            self._run("set up sheet", self._set_up_sheet, sheet_id, quoted)
        else:
            data_region = f"{quoted}!A{HEADER_BLOCK_ROWS + 1}:{LAST_COLUMN}"
            self._run("clear sheet", self.sheets_client.clear_range, data_region)

        self._run("write rows", self.sheets_client.update_values, data)

        self._run("format rows", self.sheets_client.batch_update, self.format_requests(sheet_id, layout))

        logger.info(f"Published report to {updated_range}")
        return PublishResult(
            sheet_name=sheet_name,
            sheet_id=sheet_id,
            updated_range=updated_range,
            rows_written=len(layout.rows),
        )

    def _set_up_sheet(self, sheet_id: int, quoted: str) -> None:
        """One-time header block and cosmetics for a freshly created tab"""
        self.sheets_client.update_values(
            [
                {"range": f"{quoted}!A1", "values": [[REPORT_TITLE]]},
                {"range": f"{quoted}!A{HEADER_BLOCK_ROWS}:{LAST_COLUMN}{HEADER_BLOCK_ROWS}", "values": [COLUMN_HEADERS]},
            ]
        )
        self.sheets_client.batch_update(
            [
                _repeat_cell(
                    _grid_range(sheet_id, 0, 1, 0, 1),
                    {"textFormat": {"bold": True, "fontSize": 14}},
                    "userEnteredFormat.textFormat",
                ),
                _repeat_cell(
                    _grid_range(sheet_id, 2, 3),
                    {"textFormat": {"bold": True}},
                    "userEnteredFormat.textFormat",
                ),
                _repeat_cell(
                    _grid_range(sheet_id, 2, 3, LABOR_HOURS_COLUMN, BILLABLE_AMOUNT_COLUMN),
                    {"numberFormat": HOURS_FORMAT},
                    "userEnteredFormat.numberFormat",
                ),
                _repeat_cell(
                    _grid_range(sheet_id, 2, 3, BILLABLE_AMOUNT_COLUMN, BILLABLE_AMOUNT_COLUMN + 1),
                    {"numberFormat": CURRENCY_FORMAT},
                    "userEnteredFormat.numberFormat",
                ),
                _repeat_cell(
                    _grid_range(sheet_id, HEADER_BLOCK_ROWS - 1, HEADER_BLOCK_ROWS),
                    {
                        "textFormat": {"bold": True, "foregroundColor": WHITE},
                        "backgroundColor": HEADING_BACKGROUND,
                    },
                    "userEnteredFormat(textFormat,backgroundColor)",
                ),
                {
                    "updateSheetProperties": {
                        "properties": {"sheetId": sheet_id, "gridProperties": {"frozenRowCount": HEADER_BLOCK_ROWS}},
                        "fields": "gridProperties.frozenRowCount",
                    }
                },
                {
                    "updateDimensionProperties": {
                        "range": {"sheetId": sheet_id, "dimension": "COLUMNS", "startIndex": 0, "endIndex": 1},
                        "properties": {"pixelSize": 220},
                        "fields": "pixelSize",
                    }
                },
                {
                    "updateDimensionProperties": {
                        "range": {"sheetId": sheet_id, "dimension": "COLUMNS", "startIndex": 1, "endIndex": COLUMN_COUNT},
                        "properties": {"pixelSize": 140},
                        "fields": "pixelSize",
                    }
                },
            ]
        )

    @staticmethod
    def format_requests(sheet_id: int, layout: ReportLayout) -> list[dict[str, Any]]:
        """Presentation directives derived from the layout's row positions"""
        start = HEADER_BLOCK_ROWS
        end = HEADER_BLOCK_ROWS + len(layout.rows)

        # Formatting survives a value clear, so reset everything below the header block first
        requests = [_repeat_cell(_grid_range(sheet_id, start, None), {}, "userEnteredFormat")]
        requests.extend(_row_highlight(sheet_id, start + row, GROUP_BACKGROUND) for row in layout.header_rows)
        requests.append(_row_highlight(sheet_id, start + layout.total_row, TOTAL_BACKGROUND))
        requests.append(
            _repeat_cell(
                _grid_range(sheet_id, start, end, LABOR_HOURS_COLUMN, BILLABLE_AMOUNT_COLUMN),
                {"numberFormat": HOURS_FORMAT},
                "userEnteredFormat.numberFormat",
            )
        )
        requests.append(
            _repeat_cell(
                _grid_range(sheet_id, start, end, BILLABLE_AMOUNT_COLUMN, BILLABLE_AMOUNT_COLUMN + 1),
                {"numberFormat": CURRENCY_FORMAT},
                "userEnteredFormat.numberFormat",
            )
        )
        return requests
