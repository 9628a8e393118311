"""Firestore collection names (schema-in-code).

Firestore has no DDL or migrations; collections appear on first write.
These constants are the single source of truth for collection names.
"""

COLLECTION_USERS = "users"
COLLECTION_SITES = "sites"
COLLECTION_STALLS = "stalls"

# Inventory and sales
COLLECTION_STOCK_ITEMS = "stockItems"
COLLECTION_STOCK_MOVEMENT_LOGS = "stockMovementLogs"
COLLECTION_SALES_TRANSACTIONS = "salesTransactions"

# Food stalls
COLLECTION_FOOD_ITEM_EXPENSES = "foodItemExpenses"
COLLECTION_FOOD_SALE_TRANSACTIONS = "foodSaleTransactions"
COLLECTION_FOOD_STALL_ACTIVITY_LOGS = "foodStallActivityLogs"

# Staff
COLLECTION_STAFF_DETAILS = "staffDetails"
COLLECTION_STAFF_ATTENDANCE = "staffAttendance"
COLLECTION_SALARY_ADVANCES = "advances"
COLLECTION_SALARY_PAYMENTS = "salaryPayments"
COLLECTION_STAFF_ACTIVITY_LOGS = "staffActivityLogs"

# Integrations
COLLECTION_USER_GOOGLE_OAUTH_TOKENS = "userGoogleOAuthTokens"

# Wiped by the admin "RESET DATA" operation. Users are never wiped.
RESET_DATA_COLLECTIONS: tuple[str, ...] = (
    COLLECTION_STOCK_ITEMS,
    COLLECTION_SALES_TRANSACTIONS,
    COLLECTION_STOCK_MOVEMENT_LOGS,
    COLLECTION_SITES,
    COLLECTION_STALLS,
    COLLECTION_FOOD_ITEM_EXPENSES,
    COLLECTION_FOOD_SALE_TRANSACTIONS,
    COLLECTION_FOOD_STALL_ACTIVITY_LOGS,
    COLLECTION_USER_GOOGLE_OAUTH_TOKENS,
)

# Wiped by "RESET STAFF DATA".
RESET_STAFF_DATA_COLLECTIONS: tuple[str, ...] = (
    COLLECTION_STAFF_ATTENDANCE,
    COLLECTION_SALARY_ADVANCES,
    COLLECTION_SALARY_PAYMENTS,
    COLLECTION_STAFF_ACTIVITY_LOGS,
)
