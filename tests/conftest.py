"""
Shared fixtures: an in-memory token store and a scripted fake billing API.
"""

import httpx
import pytest

from helpers import BASE_URL, FakeBillingApi
from hospital_billing.client import ApiClient
from hospital_billing.session import Session
from hospital_billing.storage import MemoryTokenStore


@pytest.fixture
def store() -> MemoryTokenStore:
    return MemoryTokenStore()


@pytest.fixture
def session(store: MemoryTokenStore) -> Session:
    return Session(store=store)


@pytest.fixture
def fake_api() -> FakeBillingApi:
    return FakeBillingApi()


@pytest.fixture
def client(session: Session, fake_api: FakeBillingApi) -> ApiClient:
    return ApiClient(session=session, base_url=BASE_URL, transport=httpx.MockTransport(fake_api))


