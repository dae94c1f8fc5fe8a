# tests/v1/test_dependencies.py
"""Tests for API dependencies module."""

import uuid

import pytest
from fastapi.security import HTTPAuthorizationCredentials

from parley.api.v1.dependencies import (
    get_conversation_service,
    get_current_user_id,
    get_message_service,
    get_notifier_dep,
    resolve_user_id,
)
from parley.core.errors import UnauthorizedError
from parley.core.security import create_access_token
from parley.core.settings import settings
from parley.services.notifier import ConnectionRegistry, NullNotifier, RegistryNotifier


class TestResolveUserId:
    """Test the resolve_user_id helper function."""

    def test_resolves_existing_user(self, db_session, alice):
        assert resolve_user_id(create_access_token(alice.id), db_session) == alice.id

    def test_missing_token(self, db_session):
        with pytest.raises(UnauthorizedError) as exc_info:
            resolve_user_id(None, db_session)
        assert exc_info.value.message == "Not authenticated"

    def test_unknown_user(self, db_session):
        with pytest.raises(UnauthorizedError) as exc_info:
            resolve_user_id(create_access_token(uuid.uuid4()), db_session)
        assert exc_info.value.message == "User not found"


class TestGetCurrentUserId:
    """Test the get_current_user_id dependency function."""

    def test_reads_bearer_credentials(self, db_session, bob):
        credentials = HTTPAuthorizationCredentials(
            scheme="Bearer",
            credentials=create_access_token(bob.id),
        )
        assert get_current_user_id(credentials, db_session) == bob.id

    def test_no_credentials(self, db_session):
        with pytest.raises(UnauthorizedError):
            get_current_user_id(None, db_session)


class TestNotifierDependency:
    """Test notifier selection."""

    def test_registry_notifier_when_enabled(self, mocker):
        mocker.patch.object(settings, "realtime_enabled", True)
        registry = ConnectionRegistry()

        notifier = get_notifier_dep(registry)

        assert isinstance(notifier, RegistryNotifier)
        assert notifier.registry is registry

    def test_null_notifier_when_disabled(self, mocker):
        mocker.patch.object(settings, "realtime_enabled", False)

        assert isinstance(get_notifier_dep(ConnectionRegistry()), NullNotifier)


def test_services_share_request_session(db_session):
    notifier = NullNotifier()

    conversations = get_conversation_service(db_session, notifier)
    messages = get_message_service(db_session, notifier)

    assert conversations.conversations.session is db_session
    assert messages.messages.session is db_session
    assert messages.max_limit == settings.messages_max_limit
