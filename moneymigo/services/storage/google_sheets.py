"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the hosted backend because:
1. Users can view and fix their ledger directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions (we handle this with careful ordering)
- Limited query capabilities (we filter in Python)

Each collection lives in its own worksheet, one record per row, with
the model's field names as the header row. List and dict fields are
JSON-encoded into a single cell.

FAILURES:
- HTTP 403 -> PermissionDeniedError, not retried
- HTTP 429 / 5xx / network errors -> retried with exponential backoff,
  then StorageUnavailableError
"""

import json
from datetime import date
from typing import Any, Callable, Optional, TypeVar, get_origin
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from pydantic import BaseModel
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from moneymigo.analytics.metrics import filter_between
from moneymigo.config import GoogleSheetsSettings, get_settings
from moneymigo.models.finance import (
    Budget,
    FinancialProfile,
    Goal,
    Transaction,
    TransactionType,
)
from moneymigo.models.records import Insight, Prediction, StoryEvent
from moneymigo.services.storage.interface import (
    LedgerStorage,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
    StorageUnavailableError,
)


ModelT = TypeVar("ModelT", bound=BaseModel)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


def _status_code(error: gspread.exceptions.APIError) -> Optional[int]:
    code = getattr(error, "code", None)
    if code is None and getattr(error, "response", None) is not None:
        code = error.response.status_code
    return code


def translate_error(error: Exception, operation: str) -> StorageError:
    """Map a gspread / transport failure onto the storage error hierarchy."""
    if isinstance(error, StorageError):
        return error
    if isinstance(error, gspread.exceptions.APIError):
        code = _status_code(error)
        if code == 403:
            return PermissionDeniedError(
                f"Permission denied during {operation}: {error}",
                remediation=(
                    "Share the spreadsheet with the service account email "
                    "from your credentials file and grant Editor access."
                ),
            )
        if code in RETRYABLE_STATUS_CODES:
            return StorageUnavailableError(f"Google Sheets unavailable during {operation}: {error}")
        return StorageError(f"Google Sheets error during {operation}: {error}")
    if isinstance(error, OSError):
        # requests' ConnectionError and Timeout are OSError subclasses
        return StorageUnavailableError(f"Network error during {operation}: {error}")
    return StorageError(f"Failed to {operation}: {error}")


def record_to_row(record: BaseModel, columns: list[str]) -> list[str]:
    """Convert a model to a spreadsheet row in header order."""
    data = record.model_dump(mode="json")
    row = []
    for column in columns:
        value = data.get(column)
        if value is None:
            row.append("")
        elif isinstance(value, (list, dict)):
            row.append(json.dumps(value))
        elif isinstance(value, bool):
            row.append("true" if value else "false")
        else:
            row.append(str(value))
    return row


def _is_json_field(annotation: Any) -> bool:
    if get_origin(annotation) in (list, dict):
        return True
    return isinstance(annotation, type) and issubclass(annotation, BaseModel)


def row_to_record(
    model: type[ModelT],
    columns: list[str],
    row: list[str],
    json_columns: frozenset = frozenset(),
) -> ModelT:
    """
    Convert a spreadsheet row back into a model.

    Empty cells are left out so the model's defaults apply.
    """
    data: dict[str, Any] = {}
    for index, column in enumerate(columns):
        cell = row[index] if index < len(row) else ""
        if cell == "":
            continue
        data[column] = json.loads(cell) if column in json_columns else cell
    return model.model_validate(data)


class SheetSpec:
    """Which worksheet a model lives in and which column is its key."""

    def __init__(self, model: type[BaseModel], sheet_name: str, key: str = "id"):
        self.model = model
        self.sheet_name = sheet_name
        self.key = key
        self.columns = list(model.model_fields.keys())
        self.json_columns = frozenset(
            name for name, field in model.model_fields.items()
            if _is_json_field(field.annotation)
        )

    def parse(self, row: list[str]):
        return row_to_record(self.model, self.columns, row, self.json_columns)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and wraps every API call in the retry policy.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None, client: Optional[gspread.Client] = None):
        self._settings = settings or get_settings().google_sheets
        self._client = client
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._worksheets: dict[str, gspread.Worksheet] = {}

    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=SCOPES,
                )
            except FileNotFoundError:
                raise StorageError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            self._client = gspread.authorize(credentials)
        return self._client

    def execute(self, operation: str, fn: Callable[..., Any], *args, **kwargs) -> Any:
        """
        Run one Sheets call under the retry policy.

        Only StorageUnavailableError is retried; permission and other
        errors surface immediately.
        """
        def call():
            try:
                return fn(*args, **kwargs)
            except (gspread.SpreadsheetNotFound, gspread.WorksheetNotFound):
                raise
            except Exception as e:
                raise translate_error(e, operation) from e

        retrying = Retrying(
            stop=stop_after_attempt(self._settings.max_attempts),
            wait=wait_exponential(
                multiplier=1,
                min=self._settings.retry_min_wait,
                max=self._settings.retry_max_wait,
            ),
            retry=retry_if_exception_type(StorageUnavailableError),
            reraise=True,
        )
        return retrying(call)

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = self.execute(
                    "open spreadsheet", client.open_by_key, self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise NotFoundError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, spec: SheetSpec) -> gspread.Worksheet:
        """Get or create the worksheet for a collection."""
        if spec.sheet_name not in self._worksheets:
            spreadsheet = self.get_spreadsheet()
            try:
                sheet = self.execute("open worksheet", spreadsheet.worksheet, spec.sheet_name)
            except gspread.WorksheetNotFound:
                # Create the sheet with headers
                sheet = self.execute(
                    "create worksheet",
                    spreadsheet.add_worksheet,
                    title=spec.sheet_name,
                    rows=1000,
                    cols=len(spec.columns),
                )
                self.execute("write header", sheet.append_row, spec.columns)
            self._worksheets[spec.sheet_name] = sheet
        return self._worksheets[spec.sheet_name]

    def read_rows(self, spec: SheetSpec) -> list[list[str]]:
        """All data rows (header excluded)."""
        sheet = self.get_worksheet(spec)
        return self.execute(f"read {spec.sheet_name}", sheet.get_all_values)[1:]

    def append_rows(self, spec: SheetSpec, rows: list[list[str]]) -> None:
        if not rows:
            return
        sheet = self.get_worksheet(spec)
        self.execute(f"append to {spec.sheet_name}", sheet.append_rows, rows, value_input_option="RAW")

    def update_row(self, spec: SheetSpec, row_number: int, row: list[str]) -> None:
        """Overwrite one row in place. row_number is 1-based, header is row 1."""
        sheet = self.get_worksheet(spec)
        self.execute(
            f"update {spec.sheet_name}",
            sheet.update,
            values=[row],
            range_name=f"A{row_number}",
            value_input_option="RAW",
        )

    def delete_row(self, spec: SheetSpec, row_number: int) -> None:
        sheet = self.get_worksheet(spec)
        self.execute(f"delete from {spec.sheet_name}", sheet.delete_rows, row_number)


class GoogleSheetsLedgerStorage(LedgerStorage):
    """
    Google Sheets implementation of every storage interface.

    Filtering, ownership checks and ordering happen in Python after
    reading the whole worksheet.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        settings: Optional[GoogleSheetsSettings] = None,
    ):
        settings = settings or get_settings().google_sheets
        self._client = client or GoogleSheetsClient(settings)
        self.transactions = SheetSpec(Transaction, settings.transactions_sheet_name)
        self.budgets = SheetSpec(Budget, settings.budgets_sheet_name)
        self.goals = SheetSpec(Goal, settings.goals_sheet_name)
        self.profiles = SheetSpec(FinancialProfile, settings.profiles_sheet_name, key="user_id")
        self.insights = SheetSpec(Insight, settings.insights_sheet_name)
        self.story_events = SheetSpec(StoryEvent, settings.story_events_sheet_name)
        self.predictions = SheetSpec(Prediction, settings.predictions_sheet_name)

    # Generic row helpers

    def _load(self, spec: SheetSpec, user_id: Optional[str] = None) -> list:
        records = []
        for row in self._client.read_rows(spec):
            if not row or not row[0]:  # Skip empty rows
                continue
            record = spec.parse(row)
            if user_id is not None and record.user_id != user_id:
                continue
            records.append(record)
        return records

    def _locate(self, spec: SheetSpec, key_value: str) -> tuple[Optional[int], Any]:
        key_index = spec.columns.index(spec.key)
        for row_number, row in enumerate(self._client.read_rows(spec), start=2):
            if len(row) > key_index and row[key_index] == key_value:
                return row_number, spec.parse(row)
        return None, None

    def _find(self, spec: SheetSpec, key_value: str, user_id: str) -> tuple[Optional[int], Any]:
        """Locate a record the user owns. Returns (sheet row number, record)."""
        row_number, record = self._locate(spec, key_value)
        if record is None or record.user_id != user_id:
            return None, None
        return row_number, record

    def _upsert(self, spec: SheetSpec, record: BaseModel) -> None:
        key_value = str(getattr(record, spec.key))
        row_number, existing = self._locate(spec, key_value)
        row = record_to_row(record, spec.columns)
        if existing is None:
            self._client.append_rows(spec, [row])
        elif existing.user_id != record.user_id:
            raise NotFoundError(f"{spec.model.__name__} not found: {key_value}")
        else:
            self._client.update_row(spec, row_number, row)

    def _delete(self, spec: SheetSpec, record_id: UUID, user_id: str) -> bool:
        row_number, _ = self._find(spec, str(record_id), user_id)
        if row_number is None:
            return False
        self._client.delete_row(spec, row_number)
        return True

    # Transactions

    async def save_transaction(self, transaction: Transaction) -> Transaction:
        self._client.append_rows(
            self.transactions, [record_to_row(transaction, self.transactions.columns)]
        )
        return transaction

    async def get_transaction(self, user_id: str, transaction_id: UUID) -> Optional[Transaction]:
        _, record = self._find(self.transactions, str(transaction_id), user_id)
        return record

    async def update_transaction(self, transaction: Transaction) -> Transaction:
        row_number, _ = self._find(self.transactions, str(transaction.id), transaction.user_id)
        if row_number is None:
            raise NotFoundError(f"Transaction not found: {transaction.id}")
        self._client.update_row(
            self.transactions, row_number, record_to_row(transaction, self.transactions.columns)
        )
        return transaction

    async def delete_transaction(self, user_id: str, transaction_id: UUID) -> bool:
        return self._delete(self.transactions, transaction_id, user_id)

    async def list_transactions(
        self,
        user_id: str,
        transaction_type: Optional[TransactionType] = None,
        category: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> list[Transaction]:
        transactions = []
        for t in filter_between(self._load(self.transactions, user_id), date_from, date_to):
            # Apply filters
            if transaction_type and t.type != transaction_type:
                continue
            if category and t.category != category:
                continue
            transactions.append(t)

        # Sort by date descending (newest first)
        transactions.sort(key=lambda t: (t.date, t.created_at), reverse=True)
        return transactions if limit is None else transactions[:limit]

    # Budgets and goals

    async def save_budget(self, budget: Budget) -> Budget:
        self._upsert(self.budgets, budget)
        return budget

    async def delete_budget(self, user_id: str, budget_id: UUID) -> bool:
        return self._delete(self.budgets, budget_id, user_id)

    async def list_budgets(self, user_id: str) -> list[Budget]:
        return sorted(self._load(self.budgets, user_id), key=lambda b: b.category)

    async def save_goal(self, goal: Goal) -> Goal:
        self._upsert(self.goals, goal)
        return goal

    async def get_goal(self, user_id: str, goal_id: UUID) -> Optional[Goal]:
        _, record = self._find(self.goals, str(goal_id), user_id)
        return record

    async def delete_goal(self, user_id: str, goal_id: UUID) -> bool:
        return self._delete(self.goals, goal_id, user_id)

    async def list_goals(self, user_id: str) -> list[Goal]:
        return sorted(self._load(self.goals, user_id), key=lambda g: g.deadline)

    # Profiles

    async def get_profile(self, user_id: str) -> Optional[FinancialProfile]:
        _, record = self._find(self.profiles, user_id, user_id)
        return record

    async def save_profile(self, profile: FinancialProfile) -> FinancialProfile:
        self._upsert(self.profiles, profile)
        return profile

    # Derived records

    async def save_insights(self, insights: list[Insight]) -> list[Insight]:
        self._client.append_rows(
            self.insights, [record_to_row(i, self.insights.columns) for i in insights]
        )
        return insights

    async def list_insights(
        self,
        user_id: str,
        unread_only: bool = False,
        limit: Optional[int] = None,
    ) -> list[Insight]:
        insights = [
            i for i in self._load(self.insights, user_id)
            if not (unread_only and i.is_read)
        ]
        insights.sort(key=lambda i: i.created_at, reverse=True)
        return insights if limit is None else insights[:limit]

    async def mark_insight_read(self, user_id: str, insight_id: UUID) -> Insight:
        row_number, insight = self._find(self.insights, str(insight_id), user_id)
        if row_number is None:
            raise NotFoundError(f"Insight not found: {insight_id}")
        updated = insight.model_copy(update={"is_read": True})
        self._client.update_row(self.insights, row_number, record_to_row(updated, self.insights.columns))
        return updated

    async def save_story_event(self, event: StoryEvent) -> StoryEvent:
        self._client.append_rows(
            self.story_events, [record_to_row(event, self.story_events.columns)]
        )
        return event

    async def list_story_events(self, user_id: str, limit: Optional[int] = None) -> list[StoryEvent]:
        events = sorted(self._load(self.story_events, user_id), key=lambda e: e.date, reverse=True)
        return events if limit is None else events[:limit]

    async def save_predictions(self, predictions: list[Prediction]) -> list[Prediction]:
        self._client.append_rows(
            self.predictions, [record_to_row(p, self.predictions.columns) for p in predictions]
        )
        return predictions

    async def list_predictions(self, user_id: str, limit: Optional[int] = None) -> list[Prediction]:
        predictions = sorted(
            self._load(self.predictions, user_id), key=lambda p: p.created_at, reverse=True
        )
        return predictions if limit is None else predictions[:limit]
