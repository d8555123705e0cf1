"""
Sheets Service
Reads project rows from a Google Sheet and marks them imported.

Sheet layout: header row at row 1, one project per row after it.
Recognized columns: "Project Name", "Topic" (optional), "Video 1".."Video 7",
and "Imported", which is blank until the row has been imported.
"""

import logging
from datetime import datetime
from typing import Optional

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from videoscripts.config import ConfigurationError, Settings, get_settings

logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive.readonly",
]

PROJECT_NAME_COLUMN = "Project Name"
TOPIC_COLUMN = "Topic"
IMPORTED_COLUMN = "Imported"
VIDEO_COLUMNS = [f"Video {i}" for i in range(1, 8)]

SPREADSHEET_MIME_TYPE = "application/vnd.google-apps.spreadsheet"


class SheetsServiceError(Exception):
    """Exception raised for spreadsheet read/write errors."""
    pass


class SheetRow:
    """One data row plus its 1-based sheet row number."""

    def __init__(self, row_number: int, headers: list[str], values: list):
        self.row_number = row_number
        self.headers = headers
        self.values = values

    def get(self, column_name: str) -> str:
        """Cell value by header name, trimmed; blank when missing."""
        if column_name not in self.headers:
            return ""
        index = self.headers.index(column_name)
        if index >= len(self.values) or self.values[index] is None:
            return ""
        return str(self.values[index]).strip()

    @property
    def project_name(self) -> str:
        return self.get(PROJECT_NAME_COLUMN)

    @property
    def topic(self) -> Optional[str]:
        return self.get(TOPIC_COLUMN) or None

    @property
    def video_urls(self) -> list[str]:
        """Non-blank video cells, in column order."""
        return [url for url in (self.get(column) for column in VIDEO_COLUMNS) if url]


def column_letter(index: int) -> str:
    """Convert a zero-based column index to A1 letters (0 -> A, 26 -> AA)."""
    letters = ""
    index += 1
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        letters = chr(65 + remainder) + letters
    return letters


class SheetsService:
    def __init__(self, sheets, drive=None, worksheet_name: str = ""):
        self.sheets = sheets
        self.drive = drive
        self.worksheet_name = worksheet_name

    def find_spreadsheet_id(self, name: str) -> str:
        """
        Look up a spreadsheet id by its Drive file name.

        Raises:
            SheetsServiceError: If Drive is unavailable or no file matches
        """
        if self.drive is None:
            raise SheetsServiceError("Drive client not configured")

        escaped = name.replace("'", "\\'")
        try:
            response = self.drive.files().list(
                q=f"mimeType='{SPREADSHEET_MIME_TYPE}' and name='{escaped}' and trashed=false",
                fields="files(id, name)",
                pageSize=10,
            ).execute()
        except HttpError as e:
            raise SheetsServiceError(f"Failed to search Drive: {e}") from e

        files = response.get("files", [])
        if not files:
            raise SheetsServiceError(f"Spreadsheet '{name}' not found")
        return files[0]["id"]

    def _sheet_title(self, spreadsheet_id: str) -> str:
        if self.worksheet_name:
            return self.worksheet_name
        try:
            spreadsheet = self.sheets.spreadsheets().get(spreadsheetId=spreadsheet_id).execute()
        except HttpError as e:
            raise SheetsServiceError(f"Failed to open spreadsheet: {e}") from e

        sheets = spreadsheet.get("sheets", [])
        if not sheets:
            raise SheetsServiceError("Spreadsheet has no sheets")
        return sheets[0]["properties"]["title"]

    def _read_values(self, spreadsheet_id: str, sheet_title: str) -> list[list]:
        try:
            response = self.sheets.spreadsheets().values().get(
                spreadsheetId=spreadsheet_id,
                range=sheet_title,
            ).execute()
        except HttpError as e:
            raise SheetsServiceError(f"Failed to read spreadsheet: {e}") from e
        return response.get("values", [])

    def get_unimported_rows(self, spreadsheet_id: str) -> list[SheetRow]:
        """
        Rows whose Imported cell is blank.

        Raises:
            SheetsServiceError: If the sheet has no "Imported" column
        """
        sheet_title = self._sheet_title(spreadsheet_id)
        values = self._read_values(spreadsheet_id, sheet_title)

        if len(values) < 2:
            return []

        headers = [str(h).strip() for h in values[0]]
        if IMPORTED_COLUMN not in headers:
            raise SheetsServiceError(f"'{IMPORTED_COLUMN}' column not found in the spreadsheet")

        rows = []
        # Sheet rows are 1-indexed and row 1 holds the headers
        for offset, raw in enumerate(values[1:], start=2):
            if not any(str(cell).strip() for cell in raw if cell is not None):
                continue
            row = SheetRow(offset, headers, raw)
            if not row.get(IMPORTED_COLUMN):
                rows.append(row)

        logger.info(f"Found {len(rows)} unimported rows in '{sheet_title}'")
        return rows

    def mark_rows_imported(self, spreadsheet_id: str, row_numbers: list[int], headers: list[str]) -> int:
        """
        Write a UTC timestamp into the Imported cell of each row in one batch.

        Returns:
            Number of cells updated
        """
        if not row_numbers:
            return 0
        if IMPORTED_COLUMN not in headers:
            raise SheetsServiceError(f"'{IMPORTED_COLUMN}' column not found in the spreadsheet")

        sheet_title = self._sheet_title(spreadsheet_id)
        letter = column_letter(headers.index(IMPORTED_COLUMN))
        timestamp = datetime.utcnow().strftime("%Y-%m-%d %H:%M:%S UTC")

        body = {
            "valueInputOption": "USER_ENTERED",
            "data": [
                {"range": f"{sheet_title}!{letter}{row_number}", "values": [[timestamp]]}
                for row_number in row_numbers
            ],
        }

        try:
            response = self.sheets.spreadsheets().values().batchUpdate(
                spreadsheetId=spreadsheet_id,
                body=body,
            ).execute()
        except HttpError as e:
            raise SheetsServiceError(f"Failed to mark rows as imported: {e}") from e

        updated = response.get("totalUpdatedCells", 0)
        logger.info(f"Marked {updated} rows as imported")
        return updated


def create_sheets_service(settings: Optional[Settings] = None) -> SheetsService:
    """
    Build Sheets and Drive clients from a service-account key file.

    Raises:
        ConfigurationError: If the credentials file cannot be loaded
    """
    settings = settings or get_settings()
    try:
        credentials = service_account.Credentials.from_service_account_file(
            settings.google_credentials_file, scopes=SCOPES
        )
    except (OSError, ValueError) as e:
        raise ConfigurationError(
            f"Google credentials could not be loaded from {settings.google_credentials_file}: {e}"
        ) from e

    sheets = build("sheets", "v4", credentials=credentials, cache_discovery=False)
    drive = build("drive", "v3", credentials=credentials, cache_discovery=False)
    return SheetsService(sheets, drive, worksheet_name=settings.worksheet_name)
