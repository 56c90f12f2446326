import pytest

from app import Settings, create_app
from sold_numbers import FetchFailed
from tests.fakes import PHONE, FakeNumbersClient


@pytest.fixture
def settings():
    return Settings(whatsapp_phone=PHONE)


@pytest.fixture
def fake_client():
    return FakeNumbersClient(sold={"001", "250"})


@pytest.fixture
def failing_client():
    return FakeNumbersClient(error=FetchFailed("HTTP 500"))


@pytest.fixture
def client(settings, fake_client):
    app = create_app(settings, client=fake_client)
    app.config["TESTING"] = True
    return app.test_client()
