from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest

from adapters.cloudflare_api import CloudflareApiFetcher
from core.config import AppSettings

API_ROOT = "https://api.example.test/client/v4"


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """No real credentials or user config leak into tests."""

    for name in (
        "CLOUDFLARE_API_TOKEN",
        "CLOUDFLARE_API_KEY",
        "CLOUDFLARE_EMAIL",
        "CLOUDFLARE_API_BASE_URL",
        "CLOUDFLARE_LOG_SANITIZE",
        "CLOUDFLARE_LOG_LEVEL",
        "CLOUDFLARE_ACCOUNT_ID",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.chdir(tmp_path)


def make_settings(**overrides) -> AppSettings:
    values = {"api_base_url": API_ROOT}
    values.update(overrides)
    return AppSettings(_env_file=None, **values)


@pytest.fixture
def settings() -> AppSettings:
    return make_settings(api_token="test-token")


@pytest.fixture
def fetcher_factory(settings) -> Callable[..., CloudflareApiFetcher]:
    def _build(handler, *, settings_override: AppSettings | None = None) -> CloudflareApiFetcher:
        return CloudflareApiFetcher(
            settings_override or settings,
            transport=httpx.MockTransport(handler),
        )

    return _build
