"""DTOs for staff HR records."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class StaffDetailsResult:
    uid: str
    phone_number: str | None = None
    address: str | None = None
    joining_date: str | None = None
    salary: float | None = None
    exit_date: str | None = None


@dataclass(frozen=True)
class AttendanceResult:
    id: str
    staff_uid: str
    date: str
    status: str
    notes: str | None
    site_id: str
    recorded_by_uid: str
    recorded_by_name: str


@dataclass(frozen=True)
class SalaryAdvanceResult:
    id: str
    staff_uid: str
    amount: float
    date: str
    for_month: int
    for_year: int
    notes: str | None
    site_id: str
    recorded_by_uid: str
    recorded_by_name: str


@dataclass(frozen=True)
class SalaryPaymentResult:
    id: str
    staff_uid: str
    amount_paid: float
    payment_date: str
    for_month: int
    for_year: int
    notes: str | None
    site_id: str
    recorded_by_uid: str
    recorded_by_name: str


@dataclass(frozen=True)
class StaffActivityLogResult:
    id: str
    site_id: str | None
    user_id: str
    user_name: str | None
    timestamp: datetime
    type: str
    related_staff_uid: str
    details: dict
