import os
from pathlib import Path

import pytest

TEST_SECRET = "test-gateway-secret"


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Fetch and activate the domain by pushing the associated domain_context.
    The activated domain can then be referred to elsewhere as `current_domain`.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ.setdefault("ENVIRONMENT", "test")

    from ordering.domain import ordering

    ordering.init()
    ordering.domain_context().push()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fixture to automatically cleanup infrastructure after every test"""
    yield

    from protean import current_domain

    from inventory.ledger import reset_ledger
    from notifications.channel import reset_channels
    from notifications.dispatcher import reset_dispatcher
    from ordering.buyer import reset_directory
    from payments.gateway import reset_gateway
    from payments.verifier import reset_verifier
    from shared.config import get_settings

    # Clear all databases
    for _, provider in current_domain.providers.items():
        provider._data_reset()

    # Drain event stores
    current_domain.event_store.store._data_reset()

    reset_dispatcher()
    reset_channels()
    reset_ledger()
    reset_verifier()
    reset_gateway()
    reset_directory()
    get_settings.cache_clear()


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------
@pytest.fixture()
def settings():
    from shared.config import Settings

    return Settings(
        environment="test",
        store_name="Test Store",
        frontend_url="https://shop.example.com",
        currency="INR",
        payment_key_secret=TEST_SECRET,
    )


@pytest.fixture()
def ledger():
    from inventory.ledger import set_ledger
    from inventory.ledger.memory_adapter import InMemoryLedger

    ledger = InMemoryLedger()
    ledger.set_level("prod-tea", None, 10)
    ledger.set_level("prod-honey", "500g", 5)
    ledger.set_level("prod-honey", "1kg", 1)
    set_ledger(ledger)
    return ledger


@pytest.fixture()
def gateway():
    from payments.gateway import set_gateway
    from payments.gateway.fake_adapter import FakeGateway

    gateway = FakeGateway()
    set_gateway(gateway)
    return gateway


@pytest.fixture()
def verifier(gateway):
    from payments.verifier import PaymentVerifier, set_verifier

    verifier = PaymentVerifier(secret=TEST_SECRET, gateway=gateway, currency="INR")
    set_verifier(verifier)
    return verifier


@pytest.fixture()
def fake_channels():
    from notifications.channel import set_channel
    from notifications.channel.fake import FakeChannel

    channels = {name: FakeChannel(name) for name in ("email", "sms", "whatsapp")}
    for channel in channels.values():
        set_channel(channel)
    return channels


@pytest.fixture()
def dispatcher(fake_channels):
    from notifications.dispatcher import NotificationDispatcher, set_dispatcher

    dispatcher = NotificationDispatcher(channels=fake_channels, max_workers=2, channel_workers=3)
    set_dispatcher(dispatcher)
    return dispatcher


@pytest.fixture()
def buyer():
    from ordering.buyer import Buyer

    return Buyer(
        id="buyer-001",
        name="Asha",
        email="asha@example.com",
        phone="+919800000001",
        whatsapp=None,
    )


@pytest.fixture()
def admin():
    from ordering.buyer import ROLE_ADMIN, Buyer

    return Buyer(id="admin-001", name="Store Admin", email="admin@example.com", role=ROLE_ADMIN)


@pytest.fixture()
def directory(buyer, admin):
    from ordering.buyer import Buyer, InMemoryBuyerDirectory, set_directory

    directory = InMemoryBuyerDirectory(
        [
            buyer,
            admin,
            Buyer(id="buyer-002", name="Ravi", email="ravi@example.com", phone="+919800000002"),
        ]
    )
    set_directory(directory)
    return directory


@pytest.fixture()
def orchestrator(ledger, verifier, dispatcher, directory, settings):
    from ordering.checkout.orchestrator import FulfillmentOrchestrator

    return FulfillmentOrchestrator(
        ledger=ledger,
        verifier=verifier,
        dispatcher=dispatcher,
        directory=directory,
        settings=settings,
    )


@pytest.fixture()
def api_app(ledger, verifier, dispatcher, directory, settings):
    """FastAPI app wired like ``app.py`` but on the test domain and adapters."""
    from fastapi import FastAPI, Request

    from inventory.api import inventory_router
    from ordering.api import order_router
    from ordering.domain import ordering
    from payments.api import payment_router
    from shared.api import register_exception_handlers
    from shared.config import get_settings

    get_settings.cache_clear()

    app = FastAPI()

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        with ordering.domain_context():
            response = await call_next(request)
        return response

    register_exception_handlers(app)
    app.include_router(order_router)
    app.include_router(payment_router)
    app.include_router(inventory_router)
    return app


@pytest.fixture()
def client(api_app):
    from fastapi.testclient import TestClient

    return TestClient(api_app)
