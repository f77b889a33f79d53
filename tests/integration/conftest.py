"""Integration fixtures: a test client over the in-memory app."""

import pytest
from fastapi.testclient import TestClient

from tests.fakes import FakeChatDirectory
from tests.integration.app_builder import build_test_app


@pytest.fixture
def chat_directory():
    return FakeChatDirectory()


@pytest.fixture
def app(user_repo, otp_repo, device_repo, email_provider, chat_directory):
    return build_test_app(
        users=user_repo,
        challenges=otp_repo,
        devices=device_repo,
        email_provider=email_provider,
        chat_directory=chat_directory,
    )


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
