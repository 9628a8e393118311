"""Collection purge and CSV import against the in-memory Firestore backend."""

import pytest

from factories import add_item, add_site, add_stall
from firestore_fake import FakeFirestore
from stallsync.application.dtos.user import Actor
from stallsync.application.services.collection_reset_service import (
    RESET_DATA_PHRASE,
    CollectionResetService,
)
from stallsync.application.use_cases.imports import CsvImportUseCase
from stallsync.domain.enums import ImportDataType
from stallsync.domain.exceptions import ValidationException
from stallsync.infrastructure.firebase.client import FirebaseHandle
from stallsync.infrastructure.firebase.repositories import (
    FirestoreFoodRepository,
    FirestoreSaleRepository,
    FirestoreSiteRepository,
    FirestoreStallRepository,
)
from stallsync.infrastructure.firebase.services import (
    FirestoreCollectionPurger,
    FirestoreStockLedger,
)

ACTOR = Actor(uid="admin-1", name="Admin One")


@pytest.mark.parametrize(("documents", "commits"), [(0, 0), (3, 1), (4, 2), (10, 4)])
async def test_purge_commits_one_batch_per_page(
    handle: FirebaseHandle, firestore: FakeFirestore, documents: int, commits: int
) -> None:
    for i in range(documents):
        firestore.put("stockMovementLogs", f"log-{i:03d}", {"n": i})
    firestore.put("users", "keep-me", {"role": "admin"})
    service = CollectionResetService(FirestoreCollectionPurger(handle.firestore), batch_size=3)

    report = await service.reset(["stockMovementLogs"], RESET_DATA_PHRASE, RESET_DATA_PHRASE)

    assert firestore.count("stockMovementLogs") == 0
    assert firestore.count("users") == 1
    assert firestore.commits == commits
    assert report.outcomes[0].batches_committed == commits
    assert report.documents_deleted == documents


@pytest.fixture
def importer(handle: FirebaseHandle, firestore: FakeFirestore) -> CsvImportUseCase:
    add_site(firestore, "site-1", "Main Campus")
    add_stall(firestore, "stall-a", "site-1", "Food Court")
    add_stall(firestore, "stall-b", "site-1", "Gift Shop")
    client = handle.firestore
    return CsvImportUseCase(
        FirestoreSiteRepository(client),
        FirestoreStallRepository(client),
        FirestoreStockLedger(client),
        FirestoreFoodRepository(client),
        FirestoreSaleRepository(client),
        batch_size=2,
    )


async def test_stock_import_writes_valid_rows_and_reports_bad_ones(
    importer: CsvImportUseCase, firestore: FakeFirestore
) -> None:
    csv_data = (
        "\ufeffName,Category,Quantity,Unit,Price,Site Name,Stall Name\n"
        "Water Bottle,Beverages,40,pcs,20,main campus,\n"
        "Keychain,Souvenirs,5,pcs,50,Main Campus,gift shop\n"
        "Mug,Souvenirs,-1,pcs,150,Main Campus,\n"
        "Pen,Stationery,3,pcs,10,Elsewhere,\n"
    )

    report = await importer.run(ACTOR, ImportDataType.STOCK, csv_data)

    assert report.rows_processed == 4
    assert report.records_written == 2
    assert report.errors == [
        "Row 4: 'Quantity' must not be negative",
        "Row 5: Unknown site 'Elsewhere'",
    ]
    items = {d["name"]: d for d in firestore.all("stockItems").values()}
    assert items["Water Bottle"]["stallId"] is None
    assert items["Keychain"]["stallId"] == "stall-b"
    types = sorted(log["type"] for log in firestore.all("stockMovementLogs").values())
    assert types == ["CREATE_MASTER", "CREATE_STALL_DIRECT"]


async def test_food_sales_import_merges_rows_for_same_stall_and_day(
    importer: CsvImportUseCase, firestore: FakeFirestore
) -> None:
    csv_data = (
        "Sale Date,Site Name,Stall Name,Meal Type,Hungerbox,UPI,Other\n"
        "2024-05-01,Main Campus,Food Court,Lunch,100,20,0\n"
        "2024-05-01,Main Campus,Food Court,lunch,50,0,5\n"
        "2024-05-01,Main Campus,Food Court,Dinner,0,30,0\n"
        "2024-05-02,Main Campus,Food Court,Brunch,1,1,1\n"
    )

    report = await importer.run(ACTOR, ImportDataType.FOOD_SALES, csv_data)

    assert report.records_written == 1
    assert report.errors == ["Row 5: Unknown meal type 'Brunch'"]
    sale = firestore.get("foodSaleTransactions", "2024-05-01_stall-a")
    assert sale["lunch"] == {"hungerbox": 150.0, "upi": 20.0, "other": 5.0}
    assert sale["dinner"]["upi"] == 30.0
    assert sale["totalAmount"] == 205.0


async def test_food_expense_import_batches_and_logs_per_stall(
    importer: CsvImportUseCase, firestore: FakeFirestore
) -> None:
    rows = "".join(
        f"Main Campus,Food Court,Vegetables,Onions,{i + 1},kg,30,2024-05-0{i + 1}\n" for i in range(3)
    )
    csv_data = "Site Name,Stall Name,Category,Item Name,Quantity,Unit,Price Per Unit,Purchase Date\n" + rows

    report = await importer.run(ACTOR, ImportDataType.FOOD_EXPENSES, csv_data)

    assert report.records_written == 3
    assert report.errors == []
    assert firestore.count("foodItemExpenses") == 3
    totals = sorted(e["totalCost"] for e in firestore.all("foodItemExpenses").values())
    assert totals == [30.0, 60.0, 90.0]
    (log,) = firestore.all("foodStallActivityLogs").values()
    assert log["type"] == "EXPENSE_BULK_IMPORTED"


async def test_empty_csv_is_rejected(importer: CsvImportUseCase) -> None:
    with pytest.raises(ValidationException):
        await importer.run(ACTOR, ImportDataType.STOCK, "   \n")


async def test_stock_import_updates_items_by_id_through_the_ledger(
    importer: CsvImportUseCase, firestore: FakeFirestore
) -> None:
    add_item(firestore, "item-1", "site-1", quantity=10, name="Water Bottle", price=20.0)
    add_item(firestore, "item-2", "site-1", "stall-a", quantity=3, name="Chips")
    csv_data = (
        "ID,Name,Category,Quantity,Price,Site Name,Stall Name\n"
        "item-1,Mineral Water,Beverages,25,22,Main Campus,\n"
        "item-2,Chips,Snacks,,15,Main Campus,Food Court\n"
        "item-1,Water,Beverages,5,20,Main Campus,Gift Shop\n"
        "ghost,Ghost,Misc,1,1,Main Campus,\n"
    )

    report = await importer.run(ACTOR, ImportDataType.STOCK, csv_data)

    assert report.records_written == 2
    assert report.errors == [
        "Row 4: Stock items cannot be moved by an update; use a transfer",
        "Row 5: stock item not found: ghost",
    ]
    assert firestore.count("stockItems") == 2
    water = firestore.get("stockItems", "item-1")
    assert (water["name"], water["quantity"], water["price"]) == ("Mineral Water", 25, 22.0)
    assert water["costPrice"] == 10.0
    chips = firestore.get("stockItems", "item-2")
    assert (chips["category"], chips["quantity"], chips["price"]) == ("Snacks", 3, 15.0)
    logs = list(firestore.all("stockMovementLogs").values())
    assert [(log["type"], log["quantityBefore"], log["quantityAfter"]) for log in logs] == [
        ("DIRECT_MASTER_UPDATE", 10, 25)
    ]
    assert logs[0]["notes"] == "CSV import"


async def test_stock_import_accepts_site_and_stall_ids(
    importer: CsvImportUseCase, firestore: FakeFirestore
) -> None:
    csv_data = (
        "Name,Quantity,Site ID,Stall ID\n"
        "Samosa,12,site-1,stall-a\n"
        "Puff,4,site-1,stall-x\n"
    )

    report = await importer.run(ACTOR, ImportDataType.STOCK, csv_data)

    assert report.errors == ["Row 3: Unknown stall ID 'stall-x' at site 'site-1'"]
    (samosa,) = firestore.all("stockItems").values()
    assert (samosa["stallId"], samosa["quantity"], samosa["category"]) == ("stall-a", 12, "Uncategorized")


async def test_sales_history_import_keeps_ids_and_rejects_duplicates(
    importer: CsvImportUseCase, firestore: FakeFirestore
) -> None:
    firestore.put("salesTransactions", "sale-old", {"siteId": "site-1", "stallId": "stall-a"})
    items = '"[{""itemId"": ""item-1"", ""name"": ""Tea"", ""quantity"": 2, ""pricePerUnit"": 10, ""totalPrice"": 20}]"'
    csv_data = (
        "Transaction ID,Date,Staff Name,Staff ID,Total Amount,Site ID,Stall ID,Items (JSON)\n"
        f"sale-new,2024-05-01T09:30:00Z,Ravi,staff-1,20,site-1,stall-a,{items}\n"
        f"sale-new,2024-05-01T10:00:00Z,Ravi,staff-1,20,site-1,stall-a,{items}\n"
        f"sale-old,2024-05-01T11:00:00Z,Ravi,staff-1,20,site-1,stall-a,{items}\n"
        ",2024-05-02T08:00:00Z,Asha,staff-2,5,site-1,stall-b,not json\n"
        f",2024-05-02T08:00:00Z,Asha,staff-2,20,site-1,,{items}\n"
        f",2024-05-03T12:15:00Z,Asha,staff-2,20,site-1,stall-b,{items}\n"
    )

    report = await importer.run(ACTOR, ImportDataType.SALES, csv_data)

    assert report.records_written == 2
    assert [e.split(":")[0] for e in report.errors] == ["Row 3", "Row 4", "Row 5", "Row 6"]
    assert report.errors[0] == "Row 3: Sale 'sale-new' already exists"
    assert report.errors[2].startswith("Row 5: Items JSON is not valid JSON")
    assert report.errors[3] == "Row 6: 'Stall Name' is required"
    imported = firestore.get("salesTransactions", "sale-new")
    assert imported["staffName"] == "Ravi"
    assert imported["isDeleted"] is False
    assert imported["items"][0]["quantity"] == 2
    assert firestore.count("salesTransactions") == 3
    assert firestore.count("stockMovementLogs") == 0
