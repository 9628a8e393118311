"""CSV downloads and Google Sheets export/import with a stub spreadsheet client."""

import csv
import io
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import FastAPI
from httpx import AsyncClient

from factories import add_item, add_site, add_stall, add_user
from firestore_fake import FakeFirestore
from stallsync.api.v1.dependencies.services import get_google_sheets_use_case
from stallsync.application.dtos.oauth import GoogleTokens
from stallsync.application.services.google_oauth_service import GoogleOAuthService
from stallsync.application.services.oauth_state import build_state_id
from stallsync.application.services.tabular_export import SALES_EXPORT_HEADERS, STOCK_EXPORT_HEADERS
from stallsync.application.use_cases.google_sheets import GoogleSheetsUseCase
from stallsync.application.use_cases.imports import CsvImportUseCase
from stallsync.domain.exceptions import ResourceNotFoundException
from stallsync.infrastructure.external.google import CredentialEncryptor, OAuthStateManager
from stallsync.infrastructure.firebase.client import FirebaseHandle
from stallsync.infrastructure.firebase.repositories import (
    FirestoreFoodRepository,
    FirestoreGoogleTokenRepository,
    FirestoreSaleRepository,
    FirestoreSiteRepository,
    FirestoreStallRepository,
    FirestoreStockRepository,
)
from stallsync.infrastructure.firebase.services import FirestoreStockLedger
from stallsync.shared.utils.datetime import utc_now

START = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


def _rows(text: str) -> list[list[str]]:
    return list(csv.reader(io.StringIO(text)))


@pytest.fixture
def campus(firestore: FakeFirestore) -> FakeFirestore:
    add_site(firestore, "site-1", "Main Campus")
    add_site(firestore, "site-2", "North Campus")
    add_stall(firestore, "stall-a", "site-1", "Food Court")
    add_stall(firestore, "stall-b", "site-1", "Gift Shop")
    add_item(firestore, "item-m", "site-1", quantity=50, name="Water Bottle")
    add_item(firestore, "item-a", "site-1", "stall-a", quantity=3, name="Chips")
    add_item(firestore, "item-b", "site-1", "stall-b", quantity=7, name="Keychain", price=50.0)
    add_item(firestore, "item-n", "site-2", quantity=9, name="Notebook")
    return firestore


def _add_sales(firestore: FakeFirestore) -> None:
    for n in range(3):
        firestore.put("salesTransactions", f"sale-{n}", {
            "siteId": "site-1",
            "stallId": "stall-a",
            "items": [{"itemId": "item-a", "name": "Chips", "quantity": n + 1,
                       "pricePerUnit": 10.0, "totalPrice": 10.0 * (n + 1)}],
            "totalAmount": 10.0 * (n + 1),
            "transactionDate": START + timedelta(days=n),
            "staffId": "staff-1",
            "staffName": "Ravi",
            "isDeleted": False,
        })
    firestore.put("salesTransactions", "sale-deleted", {
        "siteId": "site-1", "stallId": "stall-a", "items": [], "totalAmount": 99.0,
        "transactionDate": START + timedelta(days=5), "staffId": "staff-1", "isDeleted": True,
    })


async def test_stock_csv_is_limited_to_the_callers_stall(
    client: AsyncClient, campus: FakeFirestore
) -> None:
    headers = add_user(campus, "staff-1", default_site_id="site-1", default_stall_id="stall-a")

    response = await client.get("/api/v1/exports/stock-items.csv", headers=headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    disposition = response.headers["content-disposition"]
    assert disposition.startswith("attachment; filename=stallsync_stock_items_")
    rows = _rows(response.text)
    assert rows[0] == STOCK_EXPORT_HEADERS
    assert rows[1:] == [
        ["item-a", "Chips", "Beverages", "3", "pcs", "20.0", "10.0", "5", "", "", "site-1", "stall-a", ""],
    ]


async def test_stock_csv_for_admin_orders_by_name_and_filters_master(
    client: AsyncClient, campus: FakeFirestore
) -> None:
    headers = add_user(campus, "admin-1", "admin")

    everything = await client.get("/api/v1/exports/stock-items.csv", headers=headers)
    master = await client.get(
        "/api/v1/exports/stock-items.csv",
        params={"site_id": "site-1", "stall": "master"},
        headers=headers,
    )

    assert [r[1] for r in _rows(everything.text)[1:]] == ["Chips", "Keychain", "Notebook", "Water Bottle"]
    assert [r[0] for r in _rows(master.text)[1:]] == ["item-m"]


async def test_staff_without_site_gets_header_only(
    client: AsyncClient, campus: FakeFirestore
) -> None:
    headers = add_user(campus, "staff-2")

    response = await client.get("/api/v1/exports/sales.csv", headers=headers)

    assert response.status_code == 200
    assert _rows(response.text) == [SALES_EXPORT_HEADERS]


async def test_sales_csv_is_newest_first_without_deleted_sales(
    client: AsyncClient, campus: FakeFirestore
) -> None:
    _add_sales(campus)
    headers = add_user(campus, "admin-1", "admin")

    response = await client.get(
        "/api/v1/exports/sales.csv",
        params={"start": (START + timedelta(hours=1)).isoformat()},
        headers=headers,
    )

    assert response.status_code == 200
    assert "stallsync_sales_data_" in response.headers["content-disposition"]
    rows = _rows(response.text)
    assert [r[0] for r in rows[1:]] == ["sale-2", "sale-1"]
    newest = dict(zip(SALES_EXPORT_HEADERS, rows[1]))
    assert newest["Date"] == "2024-05-03T09:00:00+00:00"
    assert newest["Total Amount"] == "30.00"
    assert newest["Staff Name"] == "Ravi"
    assert (newest["Number of Item Types"], newest["Total Quantity of Items"]) == ("1", "3")
    assert '"itemId": "item-a"' in newest["Items (JSON)"]


async def test_site_outside_scope_is_forbidden(
    client: AsyncClient, campus: FakeFirestore
) -> None:
    headers = add_user(campus, "manager-1", "manager", managed_site_ids=["site-1"])

    response = await client.get(
        "/api/v1/exports/stock-items.csv", params={"site_id": "site-2"}, headers=headers
    )

    assert response.status_code == 403


class _Driver:
    def build_authorization_url(self, state: str) -> str:
        return f"https://accounts.google.com/o/oauth2/v2/auth?state={state}"

    async def exchange_code_for_tokens(self, code: str) -> GoogleTokens:
        return GoogleTokens(
            "sheets-access", "sheets-refresh", "Bearer", "spreadsheets", utc_now() + timedelta(hours=1)
        )

    async def refresh_access_token(self, refresh_token: str) -> GoogleTokens:
        raise AssertionError("tokens are still fresh")


class StubSpreadsheets:
    """In-memory spreadsheets keyed by (spreadsheet id, sheet name)."""

    def __init__(self) -> None:
        self.tokens: list[GoogleTokens] = []
        self.sheets: dict[tuple[str, str], list[list[str]]] = {}
        self.titles: list[str] = []
        self.cleared: list[tuple[str, str]] = []

    def __call__(self, tokens: GoogleTokens) -> "StubSpreadsheets":
        self.tokens.append(tokens)
        return self

    async def read_values(self, spreadsheet_id: str, sheet_name: str) -> list[list[str]]:
        if (spreadsheet_id, sheet_name) not in self.sheets:
            raise ResourceNotFoundException("spreadsheet", spreadsheet_id)
        return self.sheets[(spreadsheet_id, sheet_name)]

    async def create_spreadsheet(self, title: str, sheet_name: str) -> str:
        self.titles.append(title)
        spreadsheet_id = f"book-{len(self.titles)}"
        self.sheets[(spreadsheet_id, sheet_name)] = []
        return spreadsheet_id

    async def write_values(
        self, spreadsheet_id: str, sheet_name: str, values: list[list], clear: bool = True
    ) -> None:
        if clear:
            self.cleared.append((spreadsheet_id, sheet_name))
        self.sheets[(spreadsheet_id, sheet_name)] = [[str(v) for v in row] for row in values]


@pytest.fixture
def signer() -> OAuthStateManager:
    return OAuthStateManager(secret_key="sheets-test-secret")


@pytest.fixture
def oauth(handle: FirebaseHandle, signer: OAuthStateManager) -> GoogleOAuthService:
    tokens = FirestoreGoogleTokenRepository(handle.firestore)
    return GoogleOAuthService(_Driver(), signer, CredentialEncryptor(), tokens, "https://ui.example", 600)


@pytest.fixture
def spreadsheets(app: FastAPI, handle: FirebaseHandle, oauth: GoogleOAuthService) -> StubSpreadsheets:
    stub = StubSpreadsheets()
    client = handle.firestore
    importer = CsvImportUseCase(
        FirestoreSiteRepository(client),
        FirestoreStallRepository(client),
        FirestoreStockLedger(client),
        FirestoreFoodRepository(client),
        FirestoreSaleRepository(client),
    )
    app.dependency_overrides[get_google_sheets_use_case] = lambda: GoogleSheetsUseCase(
        oauth, stub, FirestoreStockRepository(client), FirestoreSaleRepository(client), importer
    )
    yield stub
    app.dependency_overrides.clear()


async def _connect_google(oauth: GoogleOAuthService, signer: OAuthStateManager, uid: str) -> None:
    await oauth.handle_callback("code-1", signer.create_signed_state(build_state_id(uid)))


async def test_sheets_export_creates_a_spreadsheet_scoped_to_managed_sites(
    client: AsyncClient,
    campus: FakeFirestore,
    oauth: GoogleOAuthService,
    signer: OAuthStateManager,
    spreadsheets: StubSpreadsheets,
) -> None:
    headers = add_user(campus, "manager-1", "manager", managed_site_ids=["site-2"])
    await _connect_google(oauth, signer, "manager-1")

    response = await client.post(
        "/api/v1/exports/google-sheets", json={"dataType": "stock"}, headers=headers
    )

    assert response.status_code == 200
    body = response.json()
    assert body == {
        "spreadsheetId": "book-1",
        "sheetName": "Sheet1",
        "url": "https://docs.google.com/spreadsheets/d/book-1",
        "rowsWritten": 1,
        "created": True,
    }
    assert spreadsheets.titles[0].startswith("StallSync Stock Items Export ")
    assert spreadsheets.cleared == []
    table = spreadsheets.sheets[("book-1", "Sheet1")]
    assert table[0] == STOCK_EXPORT_HEADERS
    assert [row[0] for row in table[1:]] == ["item-n"]
    assert spreadsheets.tokens[0].access_token == "sheets-access"


async def test_sheets_export_replaces_an_existing_sheet(
    client: AsyncClient,
    campus: FakeFirestore,
    oauth: GoogleOAuthService,
    signer: OAuthStateManager,
    spreadsheets: StubSpreadsheets,
) -> None:
    _add_sales(campus)
    headers = add_user(campus, "admin-1", "admin")
    await _connect_google(oauth, signer, "admin-1")
    spreadsheets.sheets[("existing", "Sales")] = [["stale"]]

    response = await client.post(
        "/api/v1/exports/google-sheets",
        json={"dataType": "sales", "spreadsheetId": "existing", "sheetName": "Sales"},
        headers=headers,
    )

    assert response.status_code == 200
    assert response.json()["created"] is False
    assert response.json()["rowsWritten"] == 3
    assert spreadsheets.titles == []
    assert spreadsheets.cleared == [("existing", "Sales")]
    table = spreadsheets.sheets[("existing", "Sales")]
    assert [row[0] for row in table[1:]] == ["sale-2", "sale-1", "sale-0"]


async def test_sheets_import_reports_sheet_row_numbers(
    client: AsyncClient,
    campus: FakeFirestore,
    oauth: GoogleOAuthService,
    signer: OAuthStateManager,
    spreadsheets: StubSpreadsheets,
) -> None:
    headers = add_user(campus, "admin-1", "admin")
    await _connect_google(oauth, signer, "admin-1")
    spreadsheets.sheets[("book", "Stock")] = [
        ["Name", "Quantity", "Site Name", "Stall Name"],
        ["Tea", "5", "Main Campus"],
        [],
        ["Coffee", "-2", "Main Campus", ""],
    ]

    response = await client.post(
        "/api/v1/imports/google-sheets",
        json={"dataType": "stock", "spreadsheetId": "book", "sheetName": "Stock"},
        headers=headers,
    )

    assert response.status_code == 207
    body = response.json()
    assert body["rowsProcessed"] == 2
    assert body["recordsWritten"] == 1
    assert body["errors"] == ["Row 4: 'Quantity' must not be negative"]
    tea = next(d for d in campus.all("stockItems").values() if d["name"] == "Tea")
    assert (tea["quantity"], tea["stallId"]) == (5, None)
    notes = [log["notes"] for log in campus.all("stockMovementLogs").values()]
    assert notes == ["Google Sheets import"]


async def test_sheet_without_header_is_rejected(
    client: AsyncClient,
    campus: FakeFirestore,
    oauth: GoogleOAuthService,
    signer: OAuthStateManager,
    spreadsheets: StubSpreadsheets,
) -> None:
    headers = add_user(campus, "admin-1", "admin")
    await _connect_google(oauth, signer, "admin-1")
    spreadsheets.sheets[("book", "Empty")] = []

    response = await client.post(
        "/api/v1/imports/google-sheets",
        json={"dataType": "stock", "spreadsheetId": "book", "sheetName": "Empty"},
        headers=headers,
    )

    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


async def test_sheets_import_requires_admin(
    client: AsyncClient, campus: FakeFirestore, spreadsheets: StubSpreadsheets
) -> None:
    headers = add_user(campus, "manager-1", "manager", managed_site_ids=["site-1"])

    response = await client.post(
        "/api/v1/imports/google-sheets",
        json={"dataType": "stock", "spreadsheetId": "book"},
        headers=headers,
    )

    assert response.status_code == 403


async def test_sheets_export_without_google_connection_returns_404(
    client: AsyncClient, campus: FakeFirestore, spreadsheets: StubSpreadsheets
) -> None:
    headers = add_user(campus, "admin-1", "admin")

    response = await client.post(
        "/api/v1/exports/google-sheets", json={"dataType": "stock"}, headers=headers
    )

    assert response.status_code == 404
    assert spreadsheets.tokens == []
