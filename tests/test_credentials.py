from __future__ import annotations

import asyncio

import pytest

from adapters.credentials import EnvCredentialProvider
from core.domain.models import ApiKeyCredentials, ApiTokenCredentials
from core.errors import UserError
from core.interfaces.credentials import CredentialProvider

from conftest import make_settings


def test_provider_satisfies_protocol():
    assert isinstance(EnvCredentialProvider(make_settings()), CredentialProvider)


def test_token_credentials():
    provider = EnvCredentialProvider(make_settings(api_token=" tok "))

    assert asyncio.run(provider.login_or_refresh_if_required()) is True
    assert provider.require_api_token() == ApiTokenCredentials(api_token="tok")


def test_key_and_email_take_precedence_over_token():
    provider = EnvCredentialProvider(make_settings(api_token="tok", api_key="key", email="me@example.com"))

    assert provider.require_api_token() == ApiKeyCredentials(auth_key="key", auth_email="me@example.com")


def test_key_without_email_is_reported():
    provider = EnvCredentialProvider(make_settings(api_key="key"))

    assert asyncio.run(provider.login_or_refresh_if_required()) is True
    with pytest.raises(UserError, match="CLOUDFLARE_EMAIL"):
        provider.require_api_token()


def test_no_credentials():
    provider = EnvCredentialProvider(make_settings())

    assert asyncio.run(provider.login_or_refresh_if_required()) is False
    with pytest.raises(UserError, match="CLOUDFLARE_API_TOKEN"):
        provider.require_api_token()
