"""
Tests for the storage backends.

The in-memory backend is exercised directly. The Google Sheets backend
runs against fake gspread objects that keep rows in lists.
"""

import asyncio
from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import gspread
import pytest

from moneymigo.config import GoogleSheetsSettings
from moneymigo.models import (
    FinancialDNA,
    FinancialProfile,
    Insight,
    InsightType,
    Mood,
    SpendingPersonality,
    TransactionType,
)
from moneymigo.services.storage import (
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    InMemoryLedgerStorage,
    NotFoundError,
    PermissionDeniedError,
    StorageUnavailableError,
    translate_error,
)

from tests.factories import OTHER_USER, USER, budget, expense, goal, income


def run(coro):
    return asyncio.run(coro)


def _insight(user_id=USER, title="Tip"):
    return Insight(
        user_id=user_id,
        insight_type=InsightType.SPENDING_TIP,
        title=title,
        description="Spend less on snacks",
        suggested_actions=["Cook at home"],
    )


class TestInMemoryTransactions:

    def test_save_and_get(self):
        storage = InMemoryLedgerStorage()
        t = expense(120)
        run(storage.save_transaction(t))
        assert run(storage.get_transaction(USER, t.id)) == t

    def test_other_users_cannot_see_or_touch_records(self):
        storage = InMemoryLedgerStorage()
        t = expense(120)
        run(storage.save_transaction(t))

        assert run(storage.get_transaction(OTHER_USER, t.id)) is None
        assert run(storage.list_transactions(OTHER_USER)) == []
        assert run(storage.delete_transaction(OTHER_USER, t.id)) is False
        with pytest.raises(NotFoundError):
            run(storage.update_transaction(t.model_copy(update={"user_id": OTHER_USER})))
        assert run(storage.get_transaction(USER, t.id)) is not None

    def test_list_is_newest_first_with_filters(self):
        storage = InMemoryLedgerStorage()
        old = expense(10, on=date(2024, 5, 1))
        new = expense(20, on=date(2024, 6, 1))
        pay = income(1000, on=date(2024, 5, 15))
        for t in (old, new, pay):
            run(storage.save_transaction(t))

        assert [t.id for t in run(storage.list_transactions(USER))] == [new.id, pay.id, old.id]
        assert [t.id for t in run(storage.list_transactions(USER, transaction_type=TransactionType.EXPENSE))] == [new.id, old.id]
        assert [t.id for t in run(storage.list_transactions(USER, date_from=date(2024, 5, 10)))] == [new.id, pay.id]
        assert len(run(storage.list_transactions(USER, limit=1))) == 1

    def test_stored_records_are_copies(self):
        storage = InMemoryLedgerStorage()
        t = expense(10)
        run(storage.save_transaction(t))
        t.description = "changed after save"
        assert run(storage.get_transaction(USER, t.id)).description == ""

    def test_update_and_delete(self):
        storage = InMemoryLedgerStorage()
        t = expense(10)
        run(storage.save_transaction(t))
        run(storage.update_transaction(t.model_copy(update={"description": "Lunch"})))
        assert run(storage.get_transaction(USER, t.id)).description == "Lunch"
        assert run(storage.delete_transaction(USER, t.id)) is True
        assert run(storage.delete_transaction(USER, t.id)) is False


class TestInMemoryOtherCollections:

    def test_budgets_and_goals(self):
        storage = InMemoryLedgerStorage()
        b = budget(500)
        late = goal(1000, deadline=date(2025, 1, 1), title="Late")
        soon = goal(1000, deadline=date(2024, 7, 1), title="Soon")
        run(storage.save_budget(b))
        run(storage.save_goal(late))
        run(storage.save_goal(soon))

        assert run(storage.list_budgets(USER)) == [b]
        assert [g.title for g in run(storage.list_goals(USER))] == ["Soon", "Late"]
        assert run(storage.get_goal(OTHER_USER, soon.id)) is None
        assert run(storage.delete_budget(USER, b.id)) is True
        assert run(storage.list_budgets(USER)) == []

    def test_cannot_overwrite_another_users_goal(self):
        storage = InMemoryLedgerStorage()
        g = goal(1000)
        run(storage.save_goal(g))
        with pytest.raises(NotFoundError):
            run(storage.save_goal(g.model_copy(update={"user_id": OTHER_USER})))

    def test_profile_upsert(self):
        storage = InMemoryLedgerStorage()
        assert run(storage.get_profile(USER)) is None
        run(storage.save_profile(FinancialProfile(user_id=USER)))
        run(storage.save_profile(FinancialProfile(user_id=USER, avatar_level=4)))
        assert run(storage.get_profile(USER)).avatar_level == 4

    def test_mark_insight_read(self):
        storage = InMemoryLedgerStorage()
        insight = _insight()
        run(storage.save_insights([insight, _insight(title="Other")]))

        updated = run(storage.mark_insight_read(USER, insight.id))

        assert updated.is_read
        assert len(run(storage.list_insights(USER, unread_only=True))) == 1
        with pytest.raises(NotFoundError):
            run(storage.mark_insight_read(OTHER_USER, insight.id))


# =============================================================================
# GOOGLE SHEETS (fake gspread)
# =============================================================================

class FakeWorksheet:
    def __init__(self, title):
        self.title = title
        self.rows = []
        self.failures = []

    def _maybe_fail(self):
        if self.failures:
            raise self.failures.pop(0)

    def get_all_values(self):
        self._maybe_fail()
        return [list(r) for r in self.rows]

    def append_row(self, row, **kwargs):
        self.rows.append(list(row))

    def append_rows(self, rows, **kwargs):
        self._maybe_fail()
        self.rows.extend(list(r) for r in rows)

    def update(self, values=None, range_name=None, **kwargs):
        row_number = int(range_name[1:])
        self.rows[row_number - 1] = list(values[0])

    def delete_rows(self, index):
        del self.rows[index - 1]


class FakeSpreadsheet:
    def __init__(self):
        self.sheets = {}

    def worksheet(self, title):
        if title not in self.sheets:
            raise gspread.WorksheetNotFound(title)
        return self.sheets[title]

    def add_worksheet(self, title, rows, cols):
        self.sheets[title] = FakeWorksheet(title)
        return self.sheets[title]


class FakeGspreadClient:
    def __init__(self):
        self.spreadsheet = FakeSpreadsheet()

    def open_by_key(self, key):
        return self.spreadsheet


def _api_error(code):
    response = SimpleNamespace(
        status_code=code,
        text="error",
        json=lambda: {"error": {"code": code, "message": "error", "status": "ERR"}},
    )
    return gspread.exceptions.APIError(response)


@pytest.fixture
def sheets_settings(tmp_path):
    credentials = tmp_path / "credentials.json"
    credentials.write_text("{}")
    return GoogleSheetsSettings(
        credentials_path=str(credentials),
        spreadsheet_id="sheet-1",
        retry_min_wait=0,
        retry_max_wait=0,
    )


@pytest.fixture
def gspread_client():
    return FakeGspreadClient()


@pytest.fixture
def sheets_storage(sheets_settings, gspread_client):
    client = GoogleSheetsClient(sheets_settings, client=gspread_client)
    return GoogleSheetsLedgerStorage(client=client, settings=sheets_settings)


class TestGoogleSheetsStorage:

    def test_worksheet_created_with_header(self, sheets_storage, gspread_client):
        run(sheets_storage.save_transaction(expense(10)))
        sheet = gspread_client.spreadsheet.sheets["Transactions"]
        assert sheet.rows[0][:4] == ["id", "user_id", "amount", "category"]
        assert len(sheet.rows) == 2

    def test_transaction_survives_the_sheet(self, sheets_storage):
        t = expense("250.50", description="Groceries run")
        t.mood = Mood.STRESSED
        run(sheets_storage.save_transaction(t))

        [loaded] = run(sheets_storage.list_transactions(USER))
        assert loaded == t
        assert loaded.amount == Decimal("250.50")
        assert loaded.subcategory is None

    def test_profile_with_nested_fields(self, sheets_storage):
        goal_id = uuid4()
        profile = FinancialProfile(
            user_id=USER,
            avatar_level=6,
            financial_dna=FinancialDNA(spending_personality=SpendingPersonality.SAVER),
            goal_ids=[goal_id],
        )
        run(sheets_storage.save_profile(profile))
        run(sheets_storage.save_profile(profile.model_copy(update={"avatar_level": 7})))

        loaded = run(sheets_storage.get_profile(USER))
        assert loaded.avatar_level == 7
        assert loaded.financial_dna.spending_personality == SpendingPersonality.SAVER
        assert loaded.goal_ids == [goal_id]
        assert run(sheets_storage.get_profile(OTHER_USER)) is None

    def test_ownership_and_delete(self, sheets_storage):
        mine = expense(10)
        theirs = expense(20, user_id=OTHER_USER)
        run(sheets_storage.save_transaction(mine))
        run(sheets_storage.save_transaction(theirs))

        assert run(sheets_storage.delete_transaction(USER, theirs.id)) is False
        assert run(sheets_storage.delete_transaction(USER, mine.id)) is True
        assert run(sheets_storage.list_transactions(USER)) == []
        assert len(run(sheets_storage.list_transactions(OTHER_USER))) == 1

    def test_cannot_overwrite_another_users_goal(self, sheets_storage, gspread_client):
        g = goal(1000)
        run(sheets_storage.save_goal(g))
        with pytest.raises(NotFoundError):
            run(sheets_storage.save_goal(g.model_copy(update={"user_id": OTHER_USER})))
        assert len(gspread_client.spreadsheet.sheets["Goals"].rows) == 2

    def test_date_range_filter(self, sheets_storage):
        for day in (1, 10, 20):
            run(sheets_storage.save_transaction(expense(day, on=date(2024, 6, day))))
        in_range = run(sheets_storage.list_transactions(
            USER, date_from=date(2024, 6, 5), date_to=date(2024, 6, 20)
        ))
        assert [t.date.day for t in in_range] == [20, 10]

    def test_update_missing_transaction_raises(self, sheets_storage):
        with pytest.raises(NotFoundError):
            run(sheets_storage.update_transaction(expense(10)))

    def test_mark_insight_read(self, sheets_storage):
        insight = _insight()
        run(sheets_storage.save_insights([insight]))
        run(sheets_storage.mark_insight_read(USER, insight.id))
        [loaded] = run(sheets_storage.list_insights(USER))
        assert loaded.is_read
        assert loaded.suggested_actions == ["Cook at home"]

    def test_permission_denied_is_not_retried(self, sheets_storage, gspread_client):
        run(sheets_storage.save_transaction(expense(10)))
        sheet = gspread_client.spreadsheet.sheets["Transactions"]
        sheet.failures = [_api_error(403), _api_error(403)]

        with pytest.raises(PermissionDeniedError) as exc_info:
            run(sheets_storage.list_transactions(USER))
        assert "service account" in exc_info.value.remediation
        assert len(sheet.failures) == 1

    def test_unavailable_is_retried_then_surfaced(self, sheets_storage, gspread_client):
        run(sheets_storage.save_transaction(expense(10)))
        sheet = gspread_client.spreadsheet.sheets["Transactions"]
        sheet.failures = [_api_error(503)] * 3

        with pytest.raises(StorageUnavailableError):
            run(sheets_storage.list_transactions(USER))
        assert sheet.failures == []

    def test_transient_failure_recovers(self, sheets_storage, gspread_client):
        run(sheets_storage.save_transaction(expense(10)))
        sheet = gspread_client.spreadsheet.sheets["Transactions"]
        sheet.failures = [_api_error(429)]
        assert len(run(sheets_storage.list_transactions(USER))) == 1


class TestErrorTranslation:

    def test_network_errors_are_unavailable(self):
        assert isinstance(translate_error(ConnectionError("reset"), "read"), StorageUnavailableError)

    def test_other_api_errors_are_plain_storage_errors(self):
        error = translate_error(_api_error(400), "read")
        assert type(error).__name__ == "StorageError"
