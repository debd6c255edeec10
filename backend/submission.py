"""Turn a submitted new-record form into persisted work records."""
import logging
import math
import re
from datetime import UTC, datetime

from calculator import calculate_earnings
from models import IndividualType, Photo, RecordMode, User, WorkRecord
from schemas import NewRecordForm

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class SubmissionError(ValueError):
    """Raised when a form cannot produce any record."""


def parse_quantity(raw) -> int:
    """
    Coerce a form quantity to an int.

    Strings are read up to the first non-digit ("12abc" -> 12) and numbers are
    truncated (12.5 -> 12); anything that does not start with a number becomes 0.
    """
    if raw is None:
        return 0
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if math.isfinite(raw) else 0
    match = _LEADING_INT.match(str(raw))
    return int(match.group(1)) if match else 0


def route_id(form: NewRecordForm) -> str:
    """Route identifier for the form; two area ids are joined with ' + '."""
    if form.mode == RecordMode.AREA and form.area_id_count == 2 and form.id_field_2:
        return f"{form.id_field} + {form.id_field_2}"
    return form.id_field


def _photos(form: NewRecordForm, now: datetime) -> list[Photo]:
    # Each record owns its own photo rows
    return [
        Photo(position=i, data_url=p.data_url, timestamp=p.timestamp or now)
        for i, p in enumerate(form.photos)
    ]


def build_records(user: User, form: NewRecordForm, now: datetime | None = None) -> list[WorkRecord]:
    """
    Build the records for one form submission.

    AREA forms produce one record. INDIVIDUAL forms produce a PARCEL record
    and/or a COLLECTION record, one for each quantity above zero. Every record
    of a submission shares the same created_at.
    """
    now = now or datetime.now(UTC)
    id_field = route_id(form)
    if not id_field:
        raise SubmissionError("ID da rota é obrigatório.")

    base = {
        "user_id": user.id,
        "user_name": user.name,
        "date": form.date,
        "id_field": id_field,
        "created_at": now,
    }

    if form.mode == RecordMode.AREA:
        qty = parse_quantity(form.qty_parcel)
        if qty <= 0:
            raise SubmissionError("Informe a quantidade de parcelas.")
        calc = calculate_earnings(RecordMode.AREA, qty, None, form.area_id_count)
        logger.info(f"Area record for {user.id}: {calc.breakdown} = {calc.value}")
        return [
            WorkRecord.area(
                form.area_id_count,
                quantity=qty,
                calculated_value=calc.value,
                photos=_photos(form, now),
                **base,
            )
        ]

    parcels = parse_quantity(form.qty_parcel)
    collections = parse_quantity(form.qty_collection)
    if parcels == 0 and collections == 0:
        raise SubmissionError("Informe ao menos uma quantidade.")

    records = []
    for individual_type, qty in (
        (IndividualType.PARCEL, parcels),
        (IndividualType.COLLECTION, collections),
    ):
        if qty <= 0:
            continue
        calc = calculate_earnings(RecordMode.INDIVIDUAL, qty, individual_type)
        logger.info(f"Individual record for {user.id}: {calc.breakdown} = {calc.value}")
        records.append(
            WorkRecord.individual(
                individual_type,
                quantity=qty,
                calculated_value=calc.value,
                photos=_photos(form, now),
                **base,
            )
        )
    if not records:
        raise SubmissionError("Informe ao menos uma quantidade.")
    return records
