from sqlmodel import Session, select

from db import engine
from models import RecordMode, User
from repository import RecordRepository, UserDirectory
from schemas import NewRecordForm
from submission import build_records


def seed_database():
    """Seed the database with the admin account and sample drivers."""
    with Session(engine) as session:
        users = UserDirectory(session)
        admin = users.ensure_admin()

        # Check if drivers already exist
        existing = session.exec(select(User).where(User.id != admin.id)).first()
        if existing:
            print("Database already has drivers, skipping seed.")
            return

        alice = users.register_user("Alice Johnson", "alice", "alice123")
        bob = users.register_user("Bob Smith", "bob", "bob123")

        sample_forms = [
            (alice, NewRecordForm(date="2024-01-15", mode=RecordMode.INDIVIDUAL, id_field="R101",
                                  qty_parcel=120, qty_collection=15)),
            (alice, NewRecordForm(date="2024-01-16", mode=RecordMode.AREA, id_field="R101",
                                  area_id_count=1, qty_parcel=95)),
            (bob, NewRecordForm(date="2024-01-15", mode=RecordMode.AREA, id_field="R204",
                                id_field_2="R205", area_id_count=2, qty_parcel=210)),
            (bob, NewRecordForm(date="2024-02-01", mode=RecordMode.INDIVIDUAL, id_field="R204",
                                qty_collection=40)),
        ]

        records = RecordRepository(session)
        count = 0
        for user, form in sample_forms:
            count += len(records.add_records(build_records(user, form)))
        print(f"Seeded database with 2 drivers and {count} sample records.")


if __name__ == "__main__":
    from db import create_db_and_tables

    create_db_and_tables()
    seed_database()
