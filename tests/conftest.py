import pytest
import respx
from fastapi.testclient import TestClient

from gateway.config import Settings
from gateway.main import create_app

SECRET = "test-proxy-secret"
CLAUDE_KEY = "sk-ant-test-key"
OPENAI_KEY = "sk-openai-test-key"

GATEWAY_ENV_VARS = (
    "HOST", "PORT", "CLAUDE_API_KEY", "OPENAI_API_KEY", "PROXY_API_KEY",
    "REQUIRE_API_KEY", "ENVIRONMENT", "CORS_ORIGINS", "UPSTREAM_TIMEOUT",
    "MAX_BODY_BYTES", "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Settings read the process environment; start every test from defaults."""
    for var in GATEWAY_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        claude_api_key=CLAUDE_KEY,
        openai_api_key=OPENAI_KEY,
        proxy_api_key=SECRET,
    )


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c


@pytest.fixture
def auth_headers() -> dict:
    return {"X-API-Key": SECRET, "Content-Type": "application/json"}


@pytest.fixture
def upstream_mock():
    """Intercepts outbound vendor calls; unmatched requests fail the test."""
    with respx.mock(assert_all_called=False, assert_all_mocked=True) as router:
        yield router
