"""
Pytest configuration and fixtures
"""
from datetime import date, time
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from groombook.context import ActorContext
from groombook.database import Base
from groombook.models import Shop, TimeSlot, SubTimeSlot, Service
from groombook.services.booking_store import BookingDetails, BookingStore
from groombook.services.reporting import ReportingFacade
from groombook.services.selection import SelectionManager
from groombook.services.slot_catalog import SlotCatalog
from groombook.services.workflow import BookingWorkflow
from groombook.storage import Storage


# Use in-memory database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"

# A Monday
BOOKING_DATE = date(2026, 11, 2)


class RecordingNotifier:
    """Collects (booking_id, event) pairs instead of sending messages"""

    def __init__(self):
        self.sent = []

    def send(self, booking_id, event_type):
        self.sent.append((booking_id, event_type))

    def events_for(self, booking_id):
        return [event for bid, event in self.sent if bid == booking_id]


@pytest.fixture(scope="session")
def test_engine():
    """Create test database engine"""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def test_db_session(test_engine):
    """Create test database session"""
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestSessionLocal()

    # Create tables for this test
    Base.metadata.create_all(bind=test_engine)

    yield session

    # Cleanup
    session.close()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def storage(test_db_session):
    return Storage(test_db_session)


@pytest.fixture
def ctx():
    return ActorContext(organization_id=1, actor="front-desk")


@pytest.fixture
def other_ctx():
    return ActorContext(organization_id=2, actor="intruder")


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def catalog(storage):
    return SlotCatalog(storage)


@pytest.fixture
def store(storage, notifier):
    return BookingStore(storage, notifier)


@pytest.fixture
def selections(storage):
    return SelectionManager(storage)


@pytest.fixture
def workflow(storage, notifier):
    return BookingWorkflow(storage, notifier, allow_walk_in_completion=False)


@pytest.fixture
def reporting(storage):
    return ReportingFacade(storage)


@pytest.fixture
def sample_shop(test_db_session):
    """Create sample shop"""
    shop = Shop(organization_id=1, name="Paws & Suds", directions="Next to the park gate")
    test_db_session.add(shop)
    test_db_session.commit()
    test_db_session.refresh(shop)
    return shop


@pytest.fixture
def sample_time_slot(test_db_session, sample_shop):
    """Morning slot with two grooming tables"""
    time_slot = TimeSlot(shop_id=sample_shop.id, start_time=time(9, 0), repeat_all_days=True)
    test_db_session.add(time_slot)
    test_db_session.commit()
    test_db_session.add_all([
        SubTimeSlot(time_slot_id=time_slot.id, slot_number=1, description="Table A"),
        SubTimeSlot(time_slot_id=time_slot.id, slot_number=2),
    ])
    test_db_session.commit()
    test_db_session.refresh(time_slot)
    return time_slot


@pytest.fixture
def sub_slots(sample_time_slot):
    return list(sample_time_slot.sub_time_slots)


@pytest.fixture
def sample_services(test_db_session):
    """Bath (checkbox) and Nail Trim (input)"""
    bath = Service(organization_id=1, name="Bath", price=300, type="checkbox")
    nail_trim = Service(organization_id=1, name="Nail Trim", price=150, type="input")
    test_db_session.add_all([bath, nail_trim])
    test_db_session.commit()
    return {"bath": bath, "nail_trim": nail_trim}


@pytest.fixture
def booking_details(sample_shop):
    def make(**overrides):
        values = {
            "shop_id": sample_shop.id,
            "customer_name": "Priya Sharma",
            "contact_number": "98765 43210",
            "dog_name": "Bruno",
            "dog_breed": "Beagle",
            "booking_date": BOOKING_DATE,
        }
        values.update(overrides)
        return BookingDetails(**values)
    return make


@pytest.fixture
def sample_booking(store, ctx, booking_details, sub_slots):
    """Reserved booking on the first sub-slot"""
    return store.create_booking(ctx, booking_details(), sub_slots[0].id)


# Test markers
def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow tests")
