from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from taxpal.auth import TokenVerifier
from taxpal.bootstrap import acquire_dependencies, create_app
from taxpal.config import Settings


SECRET = "test-secret"


def auth_headers(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {TokenVerifier(SECRET).issue(user_id)}"}


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        database_url=str(tmp_path / "test.db"),
        auth_secret=SECRET,
        environment="development",
        smtp_host=None,
    )


@pytest.fixture()
def client(settings: Settings) -> Iterator[TestClient]:
    app = create_app(settings, acquire_dependencies(settings))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def alice() -> dict[str, str]:
    return auth_headers("alice")


@pytest.fixture()
def bob() -> dict[str, str]:
    return auth_headers("bob")
