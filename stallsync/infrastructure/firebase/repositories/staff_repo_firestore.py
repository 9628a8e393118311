"""Firestore-backed staff HR records: details, attendance, advances, payments."""

from __future__ import annotations

from typing import Any

from stallsync.application.dtos.staff import (
    AttendanceResult,
    SalaryAdvanceResult,
    SalaryPaymentResult,
    StaffActivityLogResult,
    StaffDetailsResult,
)
from stallsync.application.dtos.user import Actor
from stallsync.domain.enums import AttendanceStatus, StaffActivityType
from stallsync.infrastructure.firebase._rest_client import DocumentSnapshot, FirestoreRESTClient
from stallsync.infrastructure.firebase.collections import (
    COLLECTION_SALARY_ADVANCES,
    COLLECTION_SALARY_PAYMENTS,
    COLLECTION_STAFF_ACTIVITY_LOGS,
    COLLECTION_STAFF_ATTENDANCE,
    COLLECTION_STAFF_DETAILS,
)
from stallsync.infrastructure.firebase.repositories._query import apply_filters, fetch_newest
from stallsync.infrastructure.firebase.repositories.activity_logs import (
    staff_activity_entry,
    staff_activity_from_snapshot,
)
from stallsync.shared.utils.generators import daily_document_id

DETAIL_FIELDS = ("phoneNumber", "address", "joiningDate", "salary", "exitDate")


def _details(uid: str, d: dict[str, Any]) -> StaffDetailsResult:
    salary = d.get("salary")
    return StaffDetailsResult(
        uid=uid,
        phone_number=d.get("phoneNumber"),
        address=d.get("address"),
        joining_date=d.get("joiningDate"),
        salary=float(salary) if salary is not None else None,
        exit_date=d.get("exitDate"),
    )


def _attendance(snap: DocumentSnapshot) -> AttendanceResult:
    d = snap.to_dict()
    return AttendanceResult(
        id=snap.id,
        staff_uid=d.get("staffUid", ""),
        date=d.get("date", ""),
        status=d.get("status", ""),
        notes=d.get("notes"),
        site_id=d.get("siteId", ""),
        recorded_by_uid=d.get("recordedByUid", ""),
        recorded_by_name=d.get("recordedByName", ""),
    )


def _advance(snap: DocumentSnapshot) -> SalaryAdvanceResult:
    d = snap.to_dict()
    return SalaryAdvanceResult(
        id=snap.id,
        staff_uid=d.get("staffUid", ""),
        amount=float(d.get("amount") or 0),
        date=d.get("date", ""),
        for_month=int(d.get("forMonth") or 0),
        for_year=int(d.get("forYear") or 0),
        notes=d.get("notes"),
        site_id=d.get("siteId", ""),
        recorded_by_uid=d.get("recordedByUid", ""),
        recorded_by_name=d.get("recordedByName", ""),
    )


def _payment(snap: DocumentSnapshot) -> SalaryPaymentResult:
    d = snap.to_dict()
    return SalaryPaymentResult(
        id=snap.id,
        staff_uid=d.get("staffUid", ""),
        amount_paid=float(d.get("amountPaid") or 0),
        payment_date=d.get("paymentDate", ""),
        for_month=int(d.get("forMonth") or 0),
        for_year=int(d.get("forYear") or 0),
        notes=d.get("notes"),
        site_id=d.get("siteId", ""),
        recorded_by_uid=d.get("recordedByUid", ""),
        recorded_by_name=d.get("recordedByName", ""),
    )


class FirestoreStaffRepository:
    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._details = client.collection(COLLECTION_STAFF_DETAILS)
        self._attendance = client.collection(COLLECTION_STAFF_ATTENDANCE)
        self._advances = client.collection(COLLECTION_SALARY_ADVANCES)
        self._payments = client.collection(COLLECTION_SALARY_PAYMENTS)
        self._logs = client.collection(COLLECTION_STAFF_ACTIVITY_LOGS)

    def _log(self, batch, actor: Actor, kind: StaffActivityType, staff_uid: str,
             site_id: str | None, details: dict[str, Any]) -> None:
        batch.create(self._logs.document(), staff_activity_entry(actor, kind, staff_uid, site_id, details))

    async def get_details(self, uid: str) -> StaffDetailsResult:
        doc = await self._details.document(uid).get()
        return _details(uid, doc.to_dict() if doc else {})

    async def save_details(
        self, actor: Actor, uid: str, site_id: str | None, fields: dict[str, Any]
    ) -> StaffDetailsResult:
        """Merge the given detail fields (explicit None clears a field)."""
        changes = {k: v for k, v in fields.items() if k in DETAIL_FIELDS}
        ref = self._details.document(uid)
        batch = self._client.batch()
        batch.set(ref, changes, merge=True)
        self._log(batch, actor, StaffActivityType.STAFF_DETAILS_UPDATED, uid, site_id,
                  {"updatedFields": sorted(changes)})
        await batch.commit()
        return await self.get_details(uid)

    async def mark_attendance(
        self,
        actor: Actor,
        staff_uid: str,
        site_id: str,
        day: str,
        status: AttendanceStatus,
        notes: str | None = None,
    ) -> AttendanceResult:
        """Upsert the staff member's attendance for one day."""
        ref = self._attendance.document(daily_document_id(day, staff_uid))
        data = {
            "staffUid": staff_uid,
            "date": day,
            "status": status.value,
            "notes": notes,
            "siteId": site_id,
            "recordedByUid": actor.uid,
            "recordedByName": actor.name,
        }
        batch = self._client.batch()
        batch.set(ref, data)
        self._log(batch, actor, StaffActivityType.ATTENDANCE_MARKED, staff_uid, site_id,
                  {"date": day, "status": status.value})
        await batch.commit()
        return _attendance(DocumentSnapshot(ref.id, data))

    async def list_attendance(
        self,
        filters: list[tuple[str, str, Any]],
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> list[AttendanceResult]:
        query = apply_filters(self._attendance, filters)
        if start_date:
            query = query.where("date", ">=", start_date)
        if end_date:
            query = query.where("date", "<=", end_date)
        return [_attendance(s) for s in await fetch_newest(query, "date")]

    async def record_advance(
        self, actor: Actor, staff_uid: str, site_id: str, fields: dict[str, Any]
    ) -> SalaryAdvanceResult:
        ref = self._advances.document()
        data = {
            "staffUid": staff_uid,
            "amount": fields["amount"],
            "date": fields["date"],
            "forMonth": fields["forMonth"],
            "forYear": fields["forYear"],
            "notes": fields.get("notes"),
            "siteId": site_id,
            "recordedByUid": actor.uid,
            "recordedByName": actor.name,
        }
        batch = self._client.batch()
        batch.create(ref, data)
        self._log(batch, actor, StaffActivityType.SALARY_ADVANCE_GIVEN, staff_uid, site_id,
                  {"amount": data["amount"], "forMonth": data["forMonth"], "forYear": data["forYear"]})
        await batch.commit()
        return _advance(DocumentSnapshot(ref.id, data))

    async def list_advances(self, filters: list[tuple[str, str, Any]]) -> list[SalaryAdvanceResult]:
        snaps = await fetch_newest(apply_filters(self._advances, filters), "date")
        return [_advance(s) for s in snaps]

    async def record_payment(
        self, actor: Actor, staff_uid: str, site_id: str, fields: dict[str, Any]
    ) -> SalaryPaymentResult:
        ref = self._payments.document()
        data = {
            "staffUid": staff_uid,
            "amountPaid": fields["amountPaid"],
            "paymentDate": fields["paymentDate"],
            "forMonth": fields["forMonth"],
            "forYear": fields["forYear"],
            "notes": fields.get("notes"),
            "siteId": site_id,
            "recordedByUid": actor.uid,
            "recordedByName": actor.name,
        }
        batch = self._client.batch()
        batch.create(ref, data)
        self._log(batch, actor, StaffActivityType.SALARY_PAID, staff_uid, site_id,
                  {"amountPaid": data["amountPaid"], "forMonth": data["forMonth"], "forYear": data["forYear"]})
        await batch.commit()
        return _payment(DocumentSnapshot(ref.id, data))

    async def list_payments(self, filters: list[tuple[str, str, Any]]) -> list[SalaryPaymentResult]:
        snaps = await fetch_newest(apply_filters(self._payments, filters), "paymentDate")
        return [_payment(s) for s in snaps]

    async def list_activity(
        self, filters: list[tuple[str, str, Any]], limit: int = 200
    ) -> list[StaffActivityLogResult]:
        snaps = await fetch_newest(apply_filters(self._logs, filters), "timestamp", limit)
        return [staff_activity_from_snapshot(s) for s in snaps]
