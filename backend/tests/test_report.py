import csv
import io
from datetime import UTC, date, datetime, timedelta, timezone
from decimal import Decimal

from models import IndividualType, WorkRecord
from report import (
    CSV_HEADERS,
    current_month_stats,
    export_csv,
    format_created_at,
    group_by_month,
    month_export_filename,
    month_label,
)

CREATED = datetime(2024, 1, 5, 14, 30, tzinfo=UTC)


def make_record(record_date, value, individual_type=IndividualType.PARCEL, **overrides):
    fields = {
        "user_id": "u1",
        "user_name": "Alice Johnson",
        "date": record_date,
        "id_field": "R101",
        "quantity": 10,
        "calculated_value": Decimal(value),
        "created_at": CREATED,
    }
    fields.update(overrides)
    return WorkRecord.individual(individual_type, **fields)


def test_group_by_month_totals_and_order():
    """Records group by YYYY-MM with the newest month first."""
    records = [
        make_record("2024-01-05", "10"),
        make_record("2024-01-20", "20"),
        make_record("2024-02-01", "5"),
    ]

    groups = group_by_month(records)

    assert list(groups) == ["2024-02", "2024-01"]
    assert groups["2024-01"].total == Decimal("30")
    assert groups["2024-02"].total == Decimal("5")
    assert groups["2024-01"].items == records[:2]
    assert groups["2024-02"].items == records[2:]


def test_group_by_month_empty():
    """No records, no groups."""
    assert group_by_month([]) == {}


def test_current_month_stats_average_per_unique_day():
    """Two records on the same day count as one worked day."""
    today = date(2024, 3, 18)
    records = [
        make_record("2024-03-10", "10"),
        make_record("2024-03-10", "20"),
        make_record("2024-02-28", "500"),
    ]

    stats = current_month_stats(records, today=today)

    assert stats.month == "2024-03"
    assert stats.total == Decimal("30")
    assert stats.unique_days == 1
    assert stats.average == Decimal("30.00")


def test_current_month_stats_rounds_average_to_cent():
    """Averages are quantized to two decimals."""
    records = [
        make_record("2024-03-01", "10"),
        make_record("2024-03-02", "10"),
        make_record("2024-03-03", "0.80"),
    ]
    stats = current_month_stats(records, today=date(2024, 3, 31))
    assert stats.total == Decimal("20.80")
    assert stats.average == Decimal("6.93")


def test_current_month_stats_without_records():
    """Nothing this month gives a zero average instead of dividing by zero."""
    stats = current_month_stats([make_record("2023-12-01", "99")], today=date(2024, 1, 2))
    assert stats.total == 0
    assert stats.average == 0
    assert stats.unique_days == 0


def test_current_month_stats_defaults_to_today():
    """Without an explicit date the current UTC month is used."""
    today = datetime.now(UTC).date()
    stats = current_month_stats([make_record(today.isoformat(), "12")])
    assert stats.month == today.strftime("%Y-%m")
    assert stats.total == Decimal("12")


def test_export_csv_header_and_rows():
    """One header row plus one row per record, in input order."""
    records = [
        make_record("2024-01-20", "8.00", IndividualType.COLLECTION, quantity=10),
        make_record("2024-01-05", "15", quantity=15),
        WorkRecord.area(
            2,
            user_id="u1",
            user_name="Alice Johnson",
            date="2024-01-07",
            id_field="R1 + R2",
            quantity=180,
            calculated_value=Decimal("300.00"),
            created_at=CREATED,
        ),
    ]

    rows = list(csv.reader(io.StringIO(export_csv(records))))

    assert rows[0] == CSV_HEADERS
    assert export_csv(records).splitlines()[0] == "Data,Usuario,Modo,ID Rota,Qtd,Valor (£),Criado Em"
    assert len(rows) == 1 + len(records)
    assert rows[1] == [
        "2024-01-20",
        "Alice Johnson",
        "INDIVIDUAL (COLLECTION)",
        "R101",
        "10",
        "8.00",
        format_created_at(CREATED),
    ]
    assert rows[2][0] == "2024-01-05"
    assert rows[2][2] == "INDIVIDUAL (PARCEL)"
    assert rows[2][5] == "15.00"
    assert rows[3][2] == "AREA"
    assert rows[3][3] == "R1 + R2"
    assert rows[3][5] == "300.00"


def test_export_csv_quotes_embedded_commas():
    """Commas inside a field do not shift the columns."""
    record = make_record("2024-01-05", "1", id_field="R1, R2", user_name="Smith, Bob")
    rows = list(csv.reader(io.StringIO(export_csv([record]))))
    assert len(rows[1]) == len(CSV_HEADERS)
    assert rows[1][1] == "Smith, Bob"
    assert rows[1][3] == "R1, R2"


def test_export_csv_empty():
    """An empty record set exports only the header."""
    assert export_csv([]) == ",".join(CSV_HEADERS) + "\n"


def test_format_created_at():
    """Timestamps render as pt-BR date-time in the requested zone."""
    assert format_created_at(CREATED, UTC) == "05/01/2024, 14:30:00"
    assert format_created_at(CREATED, timezone(timedelta(hours=-3))) == "05/01/2024, 11:30:00"
    # Naive values come back from SQLite and are treated as UTC
    assert format_created_at(datetime(2024, 1, 5, 14, 30), UTC) == "05/01/2024, 14:30:00"


def test_month_label_and_filename():
    """Month headings and export filenames."""
    assert month_label("2024-01") == "janeiro de 2024"
    assert month_label("2023-03") == "março de 2023"
    assert month_export_filename("2024-01", "alice") == "folha_2024-01_alice.csv"
