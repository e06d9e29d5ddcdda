"""Pytest configuration and fixtures for test isolation."""

import os
from datetime import datetime, timezone

import pytest

from cache_credentials.config import Settings
from cache_credentials.models import CredentialSet
from cache_credentials.runner import ActionsContext

ISOLATED_PREFIXES = ("AWS_", "GITHUB_", "ACTIONS_", "INPUT_", "STATE_", "RUNNER_", "CACHE_CREDENTIALS_")


@pytest.fixture(scope="function", autouse=True)
def isolate_environment(monkeypatch):
    """Automatically isolate each test from the host environment.

    Tests frequently run inside a GitHub Actions job, where the runner's own
    GITHUB_*, ACTIONS_* and AWS_* variables would otherwise leak in.
    """
    for var in list(os.environ):
        if var.startswith(ISOLATED_PREFIXES):
            monkeypatch.delenv(var, raising=False)

    for var in ("LOG_LEVEL", "LOG_FORMAT", "BUILD_VERSION"):
        monkeypatch.delenv(var, raising=False)

    yield


@pytest.fixture
def settings(tmp_path):
    """Settings writing into the test's temporary directory."""
    return Settings(
        run_id="12345",
        credentials_dir=tmp_path / "creds",
        aws_dir=tmp_path / "home" / ".aws",
        environ={},
    )


@pytest.fixture
def credentials():
    """A complete credential set."""
    return CredentialSet(
        access_key_id="AKIA_TEST",
        secret_access_key="secret_test",
        session_token="token_test",
        expiration="2026-01-01T00:00:00.000Z",
    )


@pytest.fixture
def cognito_credentials_response():
    """Cognito GetCredentialsForIdentity response."""
    return {
        "IdentityId": "eu-central-1:identity-abc",
        "Credentials": {
            "AccessKeyId": "AKIATEST",
            "SecretKey": "secret123",
            "SessionToken": "token456",
            "Expiration": datetime(2026, 1, 1, tzinfo=timezone.utc),
        },
    }


@pytest.fixture
def context():
    """In-memory runner context with no inputs or state."""
    return ActionsContext.in_memory()
