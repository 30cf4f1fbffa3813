"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is available as a storage backend because:
1. Non-technical users can view their submissions directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Append-only rows match the append-only document model

TRADEOFFS:
- Not suitable for high-volume data (a few submissions per quarter is fine)
- No transactions (each insert is a single appended row)
- Limited query capabilities (we filter in Python)
"""

import json
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID, uuid4

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from ecoforecast.config import get_settings
from ecoforecast.models.inputs import (
    FourQuarterFigures,
    InputsDoc,
    Period,
    QuarterlyFigures,
)
from ecoforecast.models.audit import AuditEvent, AuditEventType, AuditSeverity
from ecoforecast.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    InputsStorageInterface,
    NotFoundError,
    StorageError,
    parse_document_id,
    pick_latest,
    stamp,
)


logger = structlog.get_logger(__name__)


# Column mappings for Inputs sheet
INPUTS_COLUMNS = [
    "id",
    "created_at",
    "period",
    "year",
    "company",
    "payload_json",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_inputs_sheet(self) -> gspread.Worksheet:
        """Get or create the Inputs worksheet."""
        return self._get_or_create_sheet(
            self._settings.inputs_sheet_name, INPUTS_COLUMNS, rows=1000
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
        )

    def close(self) -> None:
        """Drop the cached connection; the next call reconnects."""
        self._client = None
        self._spreadsheet = None


def _safe_get(row: list, index: int, default: str = "") -> str:
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


class GoogleSheetsInputsStorage(InputsStorageInterface):
    """
    Google Sheets implementation of inputs storage.

    One document per row. The figures payload (inputs or quarters)
    is JSON-serialized in the wire format.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _document_to_row(self, document: InputsDoc) -> list:
        """Convert an InputsDoc to a spreadsheet row."""
        if document.period is Period.QUARTERLY:
            payload = document.inputs.model_dump(mode="json", by_alias=True)
        else:
            payload = document.quarters.model_dump(mode="json", by_alias=True)

        return [
            document.id,
            document.created_at.isoformat(),
            document.period.value,
            str(document.year),
            document.company or "",
            json.dumps(payload),
        ]

    def _row_to_document(self, row: list) -> InputsDoc:
        """Convert a spreadsheet row to an InputsDoc."""
        period = Period(_safe_get(row, 2))
        payload = json.loads(_safe_get(row, 5, "{}"))

        return InputsDoc(
            id=_safe_get(row, 0),
            created_at=datetime.fromisoformat(_safe_get(row, 1)),
            period=period,
            year=int(_safe_get(row, 3)),
            company=_safe_get(row, 4) or None,
            inputs=QuarterlyFigures.model_validate(payload) if period is Period.QUARTERLY else None,
            quarters=FourQuarterFigures.model_validate(payload) if period is Period.FOUR_QUARTER else None,
        )

    def _read_documents(self) -> list[InputsDoc]:
        sheet = self._client.get_inputs_sheet()
        all_rows = sheet.get_all_values()[1:]  # Skip header

        documents = []
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                documents.append(self._row_to_document(row))
            except (ValueError, KeyError) as e:
                # Rows edited by hand in the sheet can be malformed
                logger.warning("inputs_row_skipped", row_id=row[0], error=str(e))
        return documents

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _append_row(self, row: list) -> None:
        sheet = self._client.get_inputs_sheet()
        sheet.append_row(row, value_input_option="RAW")

    async def insert(self, document: InputsDoc) -> str:
        """
        Append a document to the Inputs sheet.

        The id is assigned once, before any retry, so a retried append
        always writes the same id.
        """
        document_id = str(uuid4())
        stored = stamp(document, document_id, datetime.now(timezone.utc))
        try:
            await self._append_row(self._document_to_row(stored))
            return document_id
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save inputs: {e}")

    async def find_latest(
        self,
        filters: Optional[dict[str, Any]] = None,
    ) -> Optional[InputsDoc]:
        """Get the newest matching document."""
        try:
            return pick_latest(self._read_documents(), filters)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to fetch latest inputs: {e}")

    async def find_by_id(self, document_id: str) -> InputsDoc:
        """Retrieve a document by its ID."""
        wanted = str(parse_document_id(document_id))
        try:
            sheet = self._client.get_inputs_sheet()
            all_rows = sheet.get_all_values()[1:]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to get inputs: {e}")

        for row in all_rows:
            if row and row[0] == wanted:
                try:
                    return self._row_to_document(row)
                except (ValueError, KeyError) as e:
                    logger.warning("inputs_row_unreadable", row_id=wanted, error=str(e))
                    raise StorageError(f"Malformed inputs row {wanted}: {e}")

        raise NotFoundError(f"Inputs not found: {document_id}")

    async def close(self) -> None:
        self._client.close()


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        return AuditEvent(
            event_id=UUID(_safe_get(row, 0)),
            timestamp=datetime.fromisoformat(_safe_get(row, 1)),
            event_type=AuditEventType(_safe_get(row, 2)),
            severity=AuditSeverity(_safe_get(row, 3)),
            entity_type=_safe_get(row, 4) or None,
            entity_id=_safe_get(row, 5) or None,
            correlation_id=UUID(_safe_get(row, 6)) if _safe_get(row, 6) else None,
            description=_safe_get(row, 7),
            details=json.loads(_safe_get(row, 8)) if _safe_get(row, 8) else {},
            error_message=_safe_get(row, 9) or None,
            is_user_action=_safe_get(row, 10).lower() == "true",
        )

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Audit logging should not break the main flow
            logger.warning(
                "audit_sheet_write_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row in all_rows:
            if row and len(row) > 6 and row[6] == str(correlation_id):
                try:
                    events.append(self._row_to_event(row))
                except ValueError:
                    continue

        # Sort chronologically
        events.sort(key=lambda e: e.timestamp)
        return events
