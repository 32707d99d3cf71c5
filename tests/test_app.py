"""Summary: Tests for application wiring.

Importance: Ensures configuration selects the expected collaborators.
Alternatives: Rely on API tests to cover wiring implicitly.
"""

from __future__ import annotations

from dataclasses import replace

import pytest

from smartlist.app import build_document_store, build_services
from smartlist.config import AppConfig
from smartlist.identity import LocalIdentityProvider
from smartlist.storage.document_store import InMemoryDocumentStore


def _config() -> AppConfig:
    return AppConfig(
        document_store="memory",
        identity_provider="local",
        firebase_project_id="",
        firebase_credentials_path="service-account.json",
        audio_root="",
        api_host="127.0.0.1",
        api_port=8000,
        token_secret="secret",
    )


def test_build_services_shares_collaborators() -> None:
    """Summary: Verify one store and one identity provider back every service.

    Importance: Notes written by one service must be visible to analytics.
    Alternatives: Build collaborators per service.
    """

    services = build_services(_config())
    assert isinstance(services.store, InMemoryDocumentStore)
    assert isinstance(services.identity, LocalIdentityProvider)
    assert services.auth.identity is services.identity


def test_unknown_document_store_is_rejected() -> None:
    with pytest.raises(ValueError):
        build_document_store(replace(_config(), document_store="postgres"))
