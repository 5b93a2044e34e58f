import httpx
import pytest
import pytest_asyncio

from api.dependencies import (
    get_attempt_limiter,
    get_email_sender,
    get_gateway,
    get_notifier,
    get_uow_factory,
)
from infrastructure.rate_limit import InMemoryAttemptLimiter
from main import app


@pytest.fixture
def limiter():
    return InMemoryAttemptLimiter(max_attempts=5, window_seconds=1800)


@pytest_asyncio.fixture
async def client(fake_db, gateway, notifier, email_sender, limiter):
    app.dependency_overrides[get_uow_factory] = lambda: fake_db.uow_factory
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_attempt_limiter] = lambda: limiter
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    transport = httpx.ASGITransport(app=app)
    try:
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
