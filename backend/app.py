import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session

from calculator import format_currency, preview_total
from db import create_db_and_tables, engine, get_session
from models import UserRole
from report import (
    ADMIN_EXPORT_FILENAME,
    current_month_stats,
    export_csv,
    group_by_month,
    month_export_filename,
    month_label,
)
from repository import (
    AuthenticationError,
    DuplicateUsernameError,
    RecordNotFoundError,
    RecordRepository,
    UserDirectory,
    UserNotFoundError,
)
from schemas import (
    HistoryResponse,
    LoginRequest,
    MonthHistory,
    NewRecordForm,
    PreviewResponse,
    RegisterRequest,
    StatsResponse,
    UserResponse,
    WorkRecordResponse,
    to_record_response,
)
from submission import SubmissionError, build_records, parse_quantity

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database and admin account on startup."""
    create_db_and_tables()
    with Session(engine) as session:
        UserDirectory(session).ensure_admin()
    logger.info("Database initialized")
    yield


app = FastAPI(title="Driver Pay Tracker API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins in development
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_records(session: Session = Depends(get_session)) -> RecordRepository:
    return RecordRepository(session)


def get_users(session: Session = Depends(get_session)) -> UserDirectory:
    return UserDirectory(session)


def csv_download(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def lookup_user(users: UserDirectory, user_id: str):
    try:
        return users.get_user(user_id)
    except UserNotFoundError as e:
        logger.error(str(e))
        raise HTTPException(status_code=404, detail="User not found") from e


@app.post("/auth/register", response_model=UserResponse, status_code=201)
def register(request: RegisterRequest, users: UserDirectory = Depends(get_users)):
    """Create a driver account."""
    logger.info(f"Register request for username: {request.username}")

    if not request.name or not request.username or not request.password:
        raise HTTPException(status_code=400, detail="Todos os campos são obrigatórios.")

    try:
        return users.register_user(request.name, request.username, request.password)
    except DuplicateUsernameError as e:
        logger.error(f"Registration rejected: {str(e)}")
        raise HTTPException(status_code=409, detail=str(e)) from e


@app.post("/auth/login", response_model=UserResponse)
def login(request: LoginRequest, users: UserDirectory = Depends(get_users)):
    """Check credentials against the local user directory."""
    logger.info(f"Login request for username: {request.username} (portal: {request.portal})")

    try:
        user = users.authenticate(request.username, request.password)
    except AuthenticationError as e:
        logger.error(f"Login failed: {str(e)}")
        raise HTTPException(status_code=401, detail=str(e)) from e

    if request.portal == "ADMIN" and user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=403, detail="Esta conta não possui privilégios de administrador."
        )
    return user


@app.get("/admin/users", response_model=list[UserResponse])
def list_drivers(
    search: str = Query("", description="Filter by name or username"),
    users: UserDirectory = Depends(get_users),
):
    """List driver accounts for the admin screen."""
    logger.info(f"Driver list request, search: '{search}'")
    return users.search_drivers(search)


@app.post("/records/preview", response_model=PreviewResponse)
def preview_record(form: NewRecordForm):
    """Earnings the form would produce if submitted now."""
    value = preview_total(
        form.mode,
        parse_quantity(form.qty_parcel),
        parse_quantity(form.qty_collection),
        form.area_id_count,
    )
    return PreviewResponse(value=value, formatted=format_currency(value))


@app.post("/users/{user_id}/records", response_model=list[WorkRecordResponse], status_code=201)
def create_records(
    user_id: str,
    form: NewRecordForm,
    users: UserDirectory = Depends(get_users),
    records: RecordRepository = Depends(get_records),
):
    """Submit a new-record form; may create up to two records."""
    logger.info(f"New record request for user {user_id}: mode={form.mode.value}, date={form.date}")
    user = lookup_user(users, user_id)

    try:
        new_records = build_records(user, form)
    except SubmissionError as e:
        logger.error(f"Submission rejected: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e)) from e

    try:
        stored = records.add_records(new_records)
    except Exception as e:
        records.session.rollback()
        logger.error(f"Error storing records: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    return [to_record_response(r) for r in stored]


@app.get("/users/{user_id}/records", response_model=list[WorkRecordResponse])
def list_records(
    user_id: str,
    users: UserDirectory = Depends(get_users),
    records: RecordRepository = Depends(get_records),
):
    """A user's records, most recent date first."""
    lookup_user(users, user_id)
    return [to_record_response(r) for r in records.get_records_by_user(user_id)]


@app.delete("/records/{record_id}")
def delete_record(record_id: str, records: RecordRepository = Depends(get_records)):
    """Delete a record by ID."""
    logger.info(f"Delete record request for ID: {record_id}")

    try:
        records.delete_record(record_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail="Record not found") from e
    except Exception as e:
        records.session.rollback()
        logger.error(f"Error deleting record: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    return {"ok": True, "message": "Record deleted successfully"}


@app.get("/users/{user_id}/history", response_model=HistoryResponse)
def get_history(
    user_id: str,
    users: UserDirectory = Depends(get_users),
    records: RecordRepository = Depends(get_records),
):
    """Records grouped by month, most recent month first."""
    lookup_user(users, user_id)
    groups = group_by_month(records.get_records_by_user(user_id))
    return HistoryResponse(
        months=[
            MonthHistory(
                month=key,
                label=month_label(key),
                total=group.total,
                items=[to_record_response(r) for r in group.items],
            )
            for key, group in groups.items()
        ]
    )


@app.get("/users/{user_id}/stats", response_model=StatsResponse)
def get_stats(
    user_id: str,
    users: UserDirectory = Depends(get_users),
    records: RecordRepository = Depends(get_records),
):
    """Current month earnings and average per day worked."""
    lookup_user(users, user_id)
    stats = current_month_stats(records.get_records_by_user(user_id))
    return StatsResponse(
        month=stats.month, total=stats.total, average=stats.average, unique_days=stats.unique_days
    )


@app.get("/users/{user_id}/export/{month}")
def export_month(
    user_id: str,
    month: str,
    users: UserDirectory = Depends(get_users),
    records: RecordRepository = Depends(get_records),
):
    """CSV of one month of a user's records."""
    logger.info(f"Month export request for user {user_id}, month {month}")
    user = lookup_user(users, user_id)

    group = group_by_month(records.get_records_by_user(user_id)).get(month)
    if not group:
        raise HTTPException(status_code=404, detail="Nenhum registro para este mês.")
    return csv_download(export_csv(group.items), month_export_filename(month, user.username))


@app.get("/admin/export")
def export_all(records: RecordRepository = Depends(get_records)):
    """CSV of every record in the store."""
    logger.info("Global export request")
    all_records = records.get_all_records()
    logger.info(f"Exporting {len(all_records)} records")
    return csv_download(export_csv(all_records), ADMIN_EXPORT_FILENAME)


@app.get("/")
def root():
    """Root endpoint."""
    return {"message": "Driver Pay Tracker API", "docs": "/docs"}
