"""Persistence access for work records and users.

Both classes wrap a SQLModel session handed to them by the caller; nothing
here holds module-level state.
"""
import logging
import os
from collections.abc import Iterable

from sqlmodel import Session, select

from models import User, UserRole, WorkRecord

logger = logging.getLogger(__name__)

ADMIN_ID = "admin-1"
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "EVRI01")


class RecordNotFoundError(LookupError):
    pass


class UserNotFoundError(LookupError):
    pass


class DuplicateUsernameError(ValueError):
    pass


class AuthenticationError(ValueError):
    pass


def normalize_username(username: str) -> str:
    return username.strip().lower()


class RecordRepository:
    """Append-only log of work records with point deletion."""

    def __init__(self, session: Session):
        self.session = session

    def add_record(self, record: WorkRecord) -> WorkRecord:
        return self.add_records([record])[0]

    def add_records(self, records: Iterable[WorkRecord]) -> list[WorkRecord]:
        """Persist records from one submission in a single commit."""
        records = list(records)
        self.session.add_all(records)
        self.session.commit()
        for record in records:
            self.session.refresh(record)
        logger.info(f"Stored {len(records)} record(s)")
        return records

    def get_record(self, record_id: str) -> WorkRecord:
        record = self.session.get(WorkRecord, record_id)
        if not record:
            raise RecordNotFoundError(f"Record {record_id} not found")
        return record

    def delete_record(self, record_id: str) -> None:
        record = self.get_record(record_id)
        self.session.delete(record)
        self.session.commit()
        logger.info(f"Deleted record {record_id}")

    def get_records_by_user(self, user_id: str) -> list[WorkRecord]:
        """A user's records, most recent business date first."""
        stmt = (
            select(WorkRecord)
            .where(WorkRecord.user_id == user_id)
            .order_by(WorkRecord.date.desc(), WorkRecord.created_at)
        )
        return list(self.session.exec(stmt).all())

    def get_all_records(self) -> list[WorkRecord]:
        stmt = select(WorkRecord).order_by(WorkRecord.created_at)
        return list(self.session.exec(stmt).all())


class UserDirectory:
    """Local user accounts. Passwords are stored and compared in plaintext."""

    def __init__(self, session: Session):
        self.session = session

    def ensure_admin(self) -> User:
        """Create the administrator account if it does not exist yet."""
        admin = self.session.get(User, ADMIN_ID)
        if admin:
            return admin
        admin = User(
            id=ADMIN_ID,
            user_key=normalize_username(ADMIN_USERNAME),
            username=ADMIN_USERNAME,
            password=ADMIN_PASSWORD,
            name="Administrador",
            role=UserRole.ADMIN,
        )
        self.session.add(admin)
        self.session.commit()
        self.session.refresh(admin)
        logger.info(f"Seeded admin account '{ADMIN_USERNAME}'")
        return admin

    def get_users(self) -> list[User]:
        return list(self.session.exec(select(User).order_by(User.name)).all())

    def get_user(self, user_id: str) -> User:
        user = self.session.get(User, user_id)
        if not user:
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    def get_user_by_username(self, username: str) -> User | None:
        stmt = select(User).where(User.user_key == normalize_username(username))
        return self.session.exec(stmt).first()

    def search_drivers(self, term: str = "") -> list[User]:
        """Non-admin users whose name or username contains term (case-insensitive)."""
        needle = term.lower()
        return [
            u
            for u in self.get_users()
            if u.role != UserRole.ADMIN
            and (needle in u.name.lower() or needle in u.username.lower())
        ]

    def register_user(self, name: str, username: str, password: str) -> User:
        if self.get_user_by_username(username):
            raise DuplicateUsernameError("Este nome de usuário já existe.")

        user = User(
            user_key=normalize_username(username),
            username=username.strip(),
            name=name,
            password=password,
            role=UserRole.USER,
        )
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        logger.info(f"Registered user {user.id} ({user.user_key})")
        return user

    def authenticate(self, username: str, password: str) -> User:
        user = self.get_user_by_username(username)
        if not user:
            raise AuthenticationError("Usuário não encontrado.")

        if user.role == UserRole.ADMIN:
            if password == ADMIN_PASSWORD:
                return user
            raise AuthenticationError("Credenciais de administrador inválidas.")

        if user.password == password:
            return user
        raise AuthenticationError("Senha incorreta.")
