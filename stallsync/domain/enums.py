"""Domain enumerations for the StallSync application.

Values are the strings persisted in Firestore, so they must not change.
"""

from enum import Enum


class UserRole(str, Enum):
    """Role carried on a user's profile; determines their visibility scope."""

    ADMIN = "admin"
    MANAGER = "manager"
    STAFF = "staff"

    @classmethod
    def values(cls) -> list[str]:
        return [role.value for role in cls]


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class StockStatus(str, Enum):
    """Derived from quantity and threshold; never stored."""

    IN_STOCK = "in-stock"
    LOW_STOCK = "low-stock"
    OUT_OF_STOCK = "out-of-stock"


class StockMovementType(str, Enum):
    """Reason recorded on every stock movement log entry."""

    CREATE_MASTER = "CREATE_MASTER"
    CREATE_STALL_DIRECT = "CREATE_STALL_DIRECT"
    ALLOCATE_TO_STALL = "ALLOCATE_TO_STALL"
    RECEIVE_ALLOCATION = "RECEIVE_ALLOCATION"
    RETURN_TO_MASTER = "RETURN_TO_MASTER"
    RECEIVE_RETURN_FROM_STALL = "RECEIVE_RETURN_FROM_STALL"
    SALE_FROM_STALL = "SALE_FROM_STALL"
    SALE_AFFECTS_MASTER = "SALE_AFFECTS_MASTER"
    DIRECT_STALL_UPDATE = "DIRECT_STALL_UPDATE"
    DIRECT_MASTER_UPDATE = "DIRECT_MASTER_UPDATE"
    TRANSFER_OUT_FROM_STALL = "TRANSFER_OUT_FROM_STALL"
    TRANSFER_IN_TO_STALL = "TRANSFER_IN_TO_STALL"
    BATCH_STALL_UPDATE_SET = "BATCH_STALL_UPDATE_SET"
    BATCH_STALL_DELETE = "BATCH_STALL_DELETE"
    DELETE_STALL_ITEM = "DELETE_STALL_ITEM"
    DELETE_MASTER_ITEM = "DELETE_MASTER_ITEM"


class StallType(str, Enum):
    RETAIL_COUNTER = "Retail Counter"
    STORAGE_ROOM = "Storage Room"
    POP_UP_BOOTH = "Pop-up Booth"
    DISPLAY_AREA = "Display Area"
    SERVICE_DESK = "Service Desk"
    FOOD_STALL = "Food Stall"
    INFORMATION_KIOSK = "Information Kiosk"
    WAREHOUSE_SECTION = "Warehouse Section"
    OTHER = "Other"


class MealType(str, Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACKS = "snacks"


class SalePaymentChannel(str, Enum):
    """Payment channels tracked per meal on a food stall's daily sales."""

    HUNGERBOX = "hungerbox"
    UPI = "upi"
    OTHER = "other"


class FoodExpenseCategory(str, Enum):
    GROCERIES = "Groceries"
    VEGETABLES = "Vegetables"
    FRUITS = "Fruits"
    DAIRY_PRODUCTS = "Dairy Products"
    MEAT_POULTRY = "Meat & Poultry"
    BAKERY = "Bakery"
    BEVERAGES_RAW = "Beverages (Raw Material)"
    SPICES_CONDIMENTS = "Spices & Condiments"
    PACKAGING_SUPPLIES = "Packaging Supplies"
    CLEANING_SUPPLIES = "Cleaning Supplies"
    EQUIPMENT_MAINTENANCE = "Equipment Maintenance"
    RENT_UTILITIES = "Rent & Utilities"
    STAFF_SALARIES = "Staff Salaries"
    MARKETING_PROMOTION = "Marketing & Promotion"
    DELIVERY_COSTS = "Delivery Costs"
    LICENSES_PERMITS = "Licenses & Permits"
    MISCELLANEOUS = "Miscellaneous"


class FoodStallActivityType(str, Enum):
    EXPENSE_RECORDED = "EXPENSE_RECORDED"
    EXPENSE_UPDATED = "EXPENSE_UPDATED"
    EXPENSE_DELETED = "EXPENSE_DELETED"
    EXPENSE_BULK_IMPORTED = "EXPENSE_BULK_IMPORTED"
    SALE_RECORDED_OR_UPDATED = "SALE_RECORDED_OR_UPDATED"
    SALE_BULK_IMPORTED = "SALE_BULK_IMPORTED"


class AttendanceStatus(str, Enum):
    PRESENT = "Present"
    ABSENT = "Absent"
    HALF_DAY = "Half-day"
    LEAVE = "Leave"


class StaffActivityType(str, Enum):
    ATTENDANCE_MARKED = "ATTENDANCE_MARKED"
    SALARY_ADVANCE_GIVEN = "SALARY_ADVANCE_GIVEN"
    STAFF_DETAILS_UPDATED = "STAFF_DETAILS_UPDATED"
    SALARY_PAID = "SALARY_PAID"
    USER_STATUS_CHANGED = "USER_STATUS_CHANGED"


class ImportDataType(str, Enum):
    STOCK = "stock"
    FOOD_EXPENSES = "foodExpenses"
    FOOD_SALES = "foodSales"
    SALES = "sales"


class ExportDataType(str, Enum):
    STOCK = "stock"
    SALES = "sales"
