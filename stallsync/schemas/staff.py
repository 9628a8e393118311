"""Staff HR API schemas: details, attendance, advances, payments, activity log."""

import datetime as dt
from typing import Any

from pydantic import Field

from stallsync.domain.enums import AttendanceStatus
from stallsync.schemas.common import CamelModel


class StaffDetailsRequest(CamelModel):
    site_id: str | None = None
    phone_number: str | None = Field(default=None, max_length=20)
    address: str | None = Field(default=None, max_length=300)
    joining_date: dt.date | None = None
    salary: float | None = Field(default=None, ge=0)
    exit_date: dt.date | None = None


class StaffDetailsResponse(CamelModel):
    uid: str
    phone_number: str | None = None
    address: str | None = None
    joining_date: str | None = None
    salary: float | None = None
    exit_date: str | None = None


class AttendanceRequest(CamelModel):
    staff_uid: str = Field(..., min_length=1)
    site_id: str = Field(..., min_length=1)
    date: dt.date
    status: AttendanceStatus
    notes: str | None = Field(default=None, max_length=300)


class AttendanceResponse(CamelModel):
    id: str
    staff_uid: str
    date: str
    status: str
    notes: str | None = None
    site_id: str
    recorded_by_uid: str
    recorded_by_name: str


class AdvanceRequest(CamelModel):
    staff_uid: str = Field(..., min_length=1)
    site_id: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    date: dt.date
    for_month: int = Field(..., ge=1, le=12)
    for_year: int = Field(..., ge=2000, le=2100)
    notes: str | None = Field(default=None, max_length=300)


class AdvanceResponse(CamelModel):
    id: str
    staff_uid: str
    amount: float
    date: str
    for_month: int
    for_year: int
    notes: str | None = None
    site_id: str
    recorded_by_uid: str
    recorded_by_name: str


class SalaryPaymentRequest(CamelModel):
    staff_uid: str = Field(..., min_length=1)
    site_id: str = Field(..., min_length=1)
    amount_paid: float = Field(..., gt=0)
    payment_date: dt.date
    for_month: int = Field(..., ge=1, le=12)
    for_year: int = Field(..., ge=2000, le=2100)
    notes: str | None = Field(default=None, max_length=300)


class SalaryPaymentResponse(CamelModel):
    id: str
    staff_uid: str
    amount_paid: float
    payment_date: str
    for_month: int
    for_year: int
    notes: str | None = None
    site_id: str
    recorded_by_uid: str
    recorded_by_name: str


class StaffActivityLogResponse(CamelModel):
    id: str
    site_id: str | None = None
    user_id: str
    user_name: str | None = None
    timestamp: dt.datetime
    type: str
    related_staff_uid: str
    details: dict[str, Any] = Field(default_factory=dict)
