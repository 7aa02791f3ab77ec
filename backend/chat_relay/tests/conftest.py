from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from chat_relay.api.deps import get_settings
from chat_relay.main import app
from chat_relay.tests.utils.utils import make_settings


@pytest.fixture
def settings():
    return make_settings(ANTHROPIC_API_KEY="sk-ant-test")


@pytest.fixture
def client(settings) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_settings] = lambda: settings
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
