"""Monthly aggregation and CSV export of work records."""
import csv
import io
import os
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from zoneinfo import ZoneInfo

from models import IndividualType, RecordMode, WorkRecord

CSV_HEADERS = ["Data", "Usuario", "Modo", "ID Rota", "Qtd", "Valor (£)", "Criado Em"]
ADMIN_EXPORT_FILENAME = "relatorio_geral_admin.csv"

MONTH_NAMES = [
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
]

_export_tz_name = os.getenv("EXPORT_TIMEZONE")
EXPORT_TIMEZONE = ZoneInfo(_export_tz_name) if _export_tz_name else UTC


@dataclass
class MonthGroup:
    total: Decimal = Decimal("0.00")
    items: list[WorkRecord] = field(default_factory=list)


@dataclass(frozen=True)
class MonthStats:
    month: str
    total: Decimal
    average: Decimal
    unique_days: int


def month_key(record_date: str) -> str:
    """YYYY-MM prefix of a YYYY-MM-DD date."""
    return record_date[:7]


def group_by_month(records: Iterable[WorkRecord]) -> dict[str, MonthGroup]:
    """
    Group records by calendar month.

    Keys are ordered most recent month first; items keep their input order.
    """
    groups: dict[str, MonthGroup] = {}
    for record in records:
        group = groups.setdefault(month_key(record.date), MonthGroup())
        group.items.append(record)
        group.total += record.calculated_value
    return {key: groups[key] for key in sorted(groups, reverse=True)}


def current_month_stats(records: Iterable[WorkRecord], today: date | None = None) -> MonthStats:
    """
    Dashboard figures for the current month.

    The average divides the total by the number of distinct business dates
    worked, and is zero when nothing was logged this month.
    """
    today = today or datetime.now(UTC).date()
    key = today.strftime("%Y-%m")
    month_records = [r for r in records if r.date.startswith(key)]

    total = sum((r.calculated_value for r in month_records), Decimal("0.00"))
    unique_days = len({r.date for r in month_records})
    if unique_days:
        average = (total / unique_days).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    else:
        average = Decimal("0.00")
    return MonthStats(month=key, total=total, average=average, unique_days=unique_days)


def month_label(key: str) -> str:
    """Long pt-BR label for a YYYY-MM key, e.g. 'janeiro de 2024'."""
    year, month = key.split("-")
    return f"{MONTH_NAMES[int(month) - 1]} de {year}"


def mode_label(record: WorkRecord) -> str:
    mode = RecordMode(record.mode)
    if mode == RecordMode.INDIVIDUAL:
        return f"{mode.value} ({IndividualType(record.individual_type).value})"
    return mode.value


def format_created_at(created_at: datetime, tz: timezone | ZoneInfo = EXPORT_TIMEZONE) -> str:
    """pt-BR date-time, e.g. '05/01/2024, 14:30:00'."""
    if created_at.tzinfo is None:
        # SQLite hands back naive datetimes; they were stored as UTC
        created_at = created_at.replace(tzinfo=UTC)
    return created_at.astimezone(tz).strftime("%d/%m/%Y, %H:%M:%S")


def export_csv(records: Sequence[WorkRecord]) -> str:
    """
    Render records as CSV, one row per record in the given order.

    Fields containing commas, quotes or newlines are quoted.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for record in records:
        writer.writerow([
            record.date,
            record.user_name,
            mode_label(record),
            record.id_field,
            record.quantity,
            f"{record.calculated_value:.2f}",
            format_created_at(record.created_at),
        ])
    return buffer.getvalue()


def month_export_filename(key: str, username: str) -> str:
    return f"folha_{key}_{username}.csv"
