"""
SQLAlchemy booking store.

A partial unique index on (provider_id, date, time) over holding statuses
is what prevents double booking; the validator's pre-check only gives
faster feedback. Cancelled rows drop out of the index, so their slot can be
booked again.
"""

import logging
from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Iterator, Optional

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Float,
    Index,
    Numeric,
    String,
    create_engine,
    select,
    text,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from tradetrack.errors import ConflictError, TransientError, TransientKind
from tradetrack.schemas.booking_schema import (
    HOLDING_STATUSES,
    Address,
    Booking,
    BookingState,
    BookingStatus,
    PaymentStatus,
)

logger = logging.getLogger(__name__)

Base = declarative_base()

HOLDING_VALUES = [status.value for status in HOLDING_STATUSES]
_HOLDING_CLAUSE = text(
    "status IN (" + ", ".join(f"'{value}'" for value in HOLDING_VALUES) + ")"
)


class BookingRow(Base):
    __tablename__ = "bookings"

    id = Column(String, primary_key=True)
    provider_id = Column(String, nullable=False, index=True)
    service_id = Column(String, nullable=False)
    option_id = Column(String, nullable=False)
    service_name = Column(String, nullable=False)
    rate = Column(Numeric(10, 2), nullable=False)
    duration_hours = Column(Float, nullable=False)
    material_name = Column(String, nullable=True)
    material_price = Column(Numeric(10, 2), nullable=True)
    user_id = Column(String, nullable=True, index=True)
    customer_email = Column(String, nullable=False, index=True)
    total_price = Column(Numeric(10, 2), nullable=False)
    address = Column(JSON, nullable=False)
    date = Column(String, nullable=False)
    time = Column(String, nullable=False)
    status = Column(String, nullable=False, index=True)
    payment_status = Column(String, nullable=False)
    payment_reference = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


Index(
    "uq_bookings_held_slot",
    BookingRow.provider_id,
    BookingRow.date,
    BookingRow.time,
    unique=True,
    sqlite_where=_HOLDING_CLAUSE,
    postgresql_where=_HOLDING_CLAUSE,
)


def _to_row(booking: Booking) -> BookingRow:
    return BookingRow(
        id=booking.id,
        provider_id=booking.provider_id,
        service_id=booking.service_id,
        option_id=booking.option_id,
        service_name=booking.service_name,
        rate=booking.rate,
        duration_hours=booking.duration_hours,
        material_name=booking.material_name,
        material_price=booking.material_price,
        user_id=booking.user_id,
        customer_email=booking.customer_email,
        total_price=booking.total_price,
        address=booking.address.model_dump(),
        date=booking.date.isoformat(),
        time=booking.time,
        status=booking.status.value,
        payment_status=booking.payment_status.value,
        payment_reference=booking.payment_reference,
        created_at=booking.created_at,
        updated_at=booking.updated_at,
    )


def _to_booking(row: BookingRow) -> Booking:
    return Booking(
        id=row.id,
        provider_id=row.provider_id,
        service_id=row.service_id,
        option_id=row.option_id,
        service_name=row.service_name,
        rate=row.rate,
        duration_hours=row.duration_hours,
        material_name=row.material_name,
        material_price=row.material_price,
        user_id=row.user_id,
        customer_email=row.customer_email,
        total_price=row.total_price,
        address=Address.model_validate(row.address),
        date=date.fromisoformat(row.date),
        time=row.time,
        status=BookingStatus(row.status),
        payment_status=PaymentStatus(row.payment_status),
        payment_reference=row.payment_reference,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlBookingStore:
    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    @classmethod
    def from_url(cls, database_url: str) -> "SqlBookingStore":
        return cls(create_engine(database_url, future=True))

    def create_schema(self) -> None:
        Base.metadata.create_all(self._engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with self._session_factory() as session:
                yield session
        except (OperationalError, PoolTimeoutError) as exc:
            logger.error("Booking storage unavailable: %s", exc)
            raise TransientError(
                TransientKind.STORAGE_UNAVAILABLE,
                "Booking storage is unavailable, please retry.",
            ) from exc

    def insert(self, booking: Booking) -> str:
        with self._session() as session:
            session.add(_to_row(booking))
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                logger.info(
                    "Slot already held: %s on %s at %s",
                    booking.provider_id, booking.date, booking.time,
                )
                raise ConflictError() from exc
        logger.info("Booking stored: %s", booking.id)
        return booking.id

    def get(self, booking_id: str) -> Optional[Booking]:
        with self._session() as session:
            row = session.get(BookingRow, booking_id)
            return _to_booking(row) if row else None

    def get_booked_times(self, provider_id: str, day: date) -> list[str]:
        stmt = (
            select(BookingRow.time)
            .where(
                BookingRow.provider_id == provider_id,
                BookingRow.date == day.isoformat(),
                BookingRow.status.in_(HOLDING_VALUES),
            )
            .order_by(BookingRow.created_at)
        )
        with self._session() as session:
            return list(session.scalars(stmt))

    def has_active_booking(self, provider_id: str, day: date, time: str) -> bool:
        stmt = (
            select(BookingRow.id)
            .where(
                BookingRow.provider_id == provider_id,
                BookingRow.date == day.isoformat(),
                BookingRow.time == time,
                BookingRow.status.in_(HOLDING_VALUES),
            )
            .limit(1)
        )
        with self._session() as session:
            return session.scalar(stmt) is not None

    def list_for_customer(self, customer_email: str) -> list[Booking]:
        return self._newest_first(BookingRow.customer_email == customer_email)

    def list_for_provider(self, provider_id: str) -> list[Booking]:
        return self._newest_first(BookingRow.provider_id == provider_id)

    def _newest_first(self, criterion) -> list[Booking]:
        stmt = select(BookingRow).where(criterion).order_by(BookingRow.created_at.desc())
        with self._session() as session:
            return [_to_booking(row) for row in session.scalars(stmt)]

    def update_state(
        self,
        booking_id: str,
        expected: BookingState,
        new: BookingState,
        payment_reference: Optional[str] = None,
    ) -> Optional[Booking]:
        values = {
            "status": new.status.value,
            "payment_status": new.payment_status.value,
            "updated_at": datetime.now(timezone.utc),
        }
        if payment_reference:
            values["payment_reference"] = payment_reference
        stmt = (
            update(BookingRow)
            .where(
                BookingRow.id == booking_id,
                BookingRow.status == expected.status.value,
                BookingRow.payment_status == expected.payment_status.value,
            )
            .values(**values)
        )
        with self._session() as session:
            result = session.execute(stmt)
            session.commit()
            if result.rowcount != 1:
                return None
            row = session.get(BookingRow, booking_id, populate_existing=True)
            return _to_booking(row)
