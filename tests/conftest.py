"""Shared fixtures: a file-backed SQLite database, a scriptable payment
gateway, a recording change feed and an API client wired to all three."""

import asyncio
import uuid
from datetime import date
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from storeaway.api.deps import get_booking_creator, get_change_feed, get_db, get_storage
from storeaway.core.middleware import booking_limiter
from storeaway.core.security import create_access_token
from storeaway.database import Base
from storeaway.gateways.base import GatewayPayment, RefundResult
from storeaway.gateways.sandbox import SandboxGateway
from storeaway.main import app
from storeaway.models.booking import Booking, BookingDayClaim
from storeaway.models.listing import Listing
from storeaway.models.user import Profile
from storeaway.services.booking_creator import BookingCreator, claimed_days
from storeaway.services.payment_coordinator import PaymentCoordinator

HOST_ID = "host-1"
CLIENT_ID = "client-1"
OTHER_CLIENT_ID = "client-2"


class RecordingGateway(SandboxGateway):
    """Sandbox gateway that records calls and can be made slow or flaky."""

    def __init__(self) -> None:
        super().__init__()
        self.confirm_calls: list[dict] = []
        self.refunds: list[tuple[str, int]] = []
        self.barrier: asyncio.Barrier | None = None
        # Number of upcoming confirms that hang; "after" hangs once the
        # processor has recorded the payment, "before" hangs before it has
        self.hang_before = 0
        self.hang_after = 0
        self.refunds_fail = False

    async def confirm_payment(
        self,
        amount: int,
        currency: str,
        payment_method: str,
        idempotency_key: str,
        metadata: dict | None = None,
    ) -> GatewayPayment:
        self.confirm_calls.append(
            {"amount": amount, "currency": currency, "payment_method": payment_method, "key": idempotency_key}
        )
        if self.barrier is not None:
            await self.barrier.wait()
        if self.hang_before:
            self.hang_before -= 1
            await asyncio.sleep(60)
        payment = await super().confirm_payment(amount, currency, payment_method, idempotency_key, metadata)
        if self.hang_after:
            self.hang_after -= 1
            await asyncio.sleep(60)
        return payment

    async def process_refund(self, reference_id: str, amount: int, reason: str) -> RefundResult:
        if self.refunds_fail:
            return RefundResult(success=False, error_message="refunds unavailable")
        self.refunds.append((reference_id, amount))
        return await super().process_refund(reference_id, amount, reason)


class RecordingFeed:
    """Change feed double that keeps published events in memory."""

    def __init__(self) -> None:
        self.events: list[dict] = []

    async def publish(self, topic: str, event: str, record_id, **data) -> None:
        self.events.append({"topic": topic, "event": event, "id": str(record_id), **data})


class FakeStorage:
    def __init__(self) -> None:
        self.uploads: list[str] = []
        self.deleted: list[str] = []

    async def upload_listing_image(self, file, listing_id: str) -> str:
        url = f"https://cdn.test/listings/{listing_id}/photos/{len(self.uploads)}.jpg"
        self.uploads.append(url)
        return url

    async def delete_listing_images(self, listing_id: str) -> int:
        self.deleted.append(listing_id)
        return 1


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'storeaway.db'}",
        connect_args={"timeout": 30},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def gateway() -> RecordingGateway:
    return RecordingGateway()


@pytest.fixture
def feed() -> RecordingFeed:
    return RecordingFeed()


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def coordinator(gateway) -> PaymentCoordinator:
    return PaymentCoordinator(gateway, timeout=0.2)


@pytest.fixture
def creator(session_factory, coordinator, feed) -> BookingCreator:
    return BookingCreator(session_factory, coordinator, change_feed=feed, currency="usd")


@pytest.fixture
async def users(db):
    db.add_all(
        [
            Profile(id=HOST_ID, email="jane.smith@example.com", display_name="Jane Smith", role="host"),
            Profile(id=CLIENT_ID, email="alex.doe@example.com", display_name="Alex Doe", role="client"),
            Profile(id=OTHER_CLIENT_ID, email="sam@example.com", display_name="Sam", role="client"),
        ]
    )
    await db.commit()


@pytest.fixture
def make_listing(db, users):
    async def _make(monthly_price: str = "300.00", **overrides) -> Listing:
        listing = Listing(
            host_id=HOST_ID,
            name=overrides.pop("name", "Collector's Vault"),
            location=overrides.pop("location", "Uptown, Metropolis"),
            size=overrides.pop("size", 100),
            monthly_price=Decimal(monthly_price),
            description="Climate controlled",
            images=overrides.pop("images", []),
            features=["Climate Controlled"],
            is_available=overrides.pop("is_available", True),
            **overrides,
        )
        db.add(listing)
        await db.commit()
        return listing

    return _make


@pytest.fixture
def make_booking(db):
    """Insert a booking directly, as if an earlier attempt had completed."""

    async def _make(listing: Listing, start: date, end: date, user_id: str = OTHER_CLIENT_ID) -> Booking:
        booking = Booking(
            booking_number=f"SA-{uuid.uuid4().hex[:6].upper()}",
            listing_id=listing.id,
            user_id=user_id,
            start_date=start,
            end_date=end,
            total_price=Decimal("100.00"),
            currency="usd",
            payment_reference=f"pi_seed_{uuid.uuid4().hex[:8]}",
            payment_status="succeeded",
        )
        booking.day_claims = [
            BookingDayClaim(listing_id=listing.id, day=day) for day in claimed_days(start, end)
        ]
        db.add(booking)
        await db.commit()
        return booking

    return _make


def auth_headers(user_id: str, role: str = "client", name: str = "Test User") -> dict[str, str]:
    token = create_access_token(user_id, f"{user_id}@example.com", name, role=role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def client(session_factory, creator, feed, storage):
    async def _get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def _no_rate_limit():
        return None

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_booking_creator] = lambda: creator
    app.dependency_overrides[get_change_feed] = lambda: feed
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[booking_limiter] = _no_rate_limit

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
