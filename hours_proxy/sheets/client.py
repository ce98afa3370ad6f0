import json
import logging
from typing import Any, Optional

import httplib2
from google.oauth2 import service_account
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build


logger = logging.getLogger(__name__)


class SheetError(Exception):
    """Custom exception for sheet-related errors"""

    pass


class GoogleSheetsClient:
    """Handles all Google Sheets operations"""

    SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

    def __init__(
        self,
        spreadsheet_id: str,
        credentials: Optional[str] = None,
        service: Any = None,
    ):
        self.spreadsheet_id = spreadsheet_id
        self.credentials = credentials
        self.creds = None
        self.service = service or self._build_sheets_service()

    def _build_sheets_service(self):
        """Create and return an authorized Sheets API service object.

        ``credentials`` is either a path to a service-account key file or the
        key JSON itself.
        """
        if not self.credentials:
            raise SheetError("No service-account credentials configured")
        try:
            if self.credentials.lstrip().startswith("{"):
                creds = service_account.Credentials.from_service_account_info(
                    json.loads(self.credentials), scopes=self.SCOPES
                )
            else:
                creds = service_account.Credentials.from_service_account_file(
                    self.credentials, scopes=self.SCOPES
                )
            self.creds = creds
            return build("sheets", "v4", credentials=creds, cache_discovery=False)
        except Exception as e:
            logger.error(f"Failed to build sheets service: {e}")
            raise SheetError(f"Could not initialize sheets service: {str(e)}")

    def _http(self) -> Optional[AuthorizedHttp]:
        """Authorized connection for a single call.

        The service object is shared by every request, but httplib2.Http is
        not thread-safe, so each call gets its own.
        """
        if self.creds is None:
            return None
        return AuthorizedHttp(self.creds, http=httplib2.Http())

    def get_sheet_id(self, sheet_name: str) -> Optional[int]:
        """Return the numeric id of the named tab, or None if it does not exist"""
        try:
            result = (
                self.service.spreadsheets()
                .get(spreadsheetId=self.spreadsheet_id, fields="sheets.properties")
                .execute(http=self._http())
            )
        except Exception as e:
            logger.error(f"Error reading spreadsheet metadata: {e}")
            raise SheetError(f"Failed to read spreadsheet metadata: {str(e)}")

        for sheet in result.get("sheets", []):
            properties = sheet.get("properties", {})
            if properties.get("title") == sheet_name:
                return properties.get("sheetId")
        return None

    def add_sheet(self, sheet_name: str) -> int:
        """Create a new tab and return its id"""
        body = {"requests": [{"addSheet": {"properties": {"title": sheet_name}}}]}
        try:
            result = (
                self.service.spreadsheets()
                .batchUpdate(spreadsheetId=self.spreadsheet_id, body=body)
                .execute(http=self._http())
            )
            return result["replies"][0]["addSheet"]["properties"]["sheetId"]
        except Exception as e:
            logger.error(f"Error adding sheet {sheet_name}: {e}")
            raise SheetError(f"Failed to add sheet {sheet_name}: {str(e)}")

    def clear_range(self, range_name: str) -> None:
        """Clear cell values in a range, leaving formatting in place"""
        try:
            self.service.spreadsheets().values().clear(
                spreadsheetId=self.spreadsheet_id, range=range_name, body={}
            ).execute(http=self._http())
        except Exception as e:
            logger.error(f"Error clearing {range_name}: {e}")
            raise SheetError(f"Failed to clear {range_name}: {str(e)}")

    def update_values(self, data: list[dict[str, Any]]) -> dict[str, Any]:
        """Write several ranges in a single call.

        Each item of ``data`` is a ``{"range": ..., "values": [[...]]}`` dict.
        Values are stored as given, strings are never parsed as formulas.
        """
        body = {"valueInputOption": "RAW", "data": data}
        try:
            return (
                self.service.spreadsheets()
                .values()
                .batchUpdate(spreadsheetId=self.spreadsheet_id, body=body)
                .execute(http=self._http())
            )
        except Exception as e:
            logger.error(f"Error updating values: {e}")
            raise SheetError(f"Failed to update values: {str(e)}")

    def batch_update(self, requests: list[dict[str, Any]]) -> None:
        """Apply formatting and structural requests"""
        if not requests:
            return
        try:
            self.service.spreadsheets().batchUpdate(
                spreadsheetId=self.spreadsheet_id, body={"requests": requests}
            ).execute(http=self._http())
        except Exception as e:
            logger.error(f"Error applying batch update: {e}")
            raise SheetError(f"Failed to apply batch update: {str(e)}")
