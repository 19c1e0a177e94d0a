from __future__ import annotations

import pytest

import twitchy


@pytest.fixture
def credentials(monkeypatch: pytest.MonkeyPatch) -> tuple[str, str]:
    monkeypatch.setenv(twitchy.ENV_CLIENT_ID, "client-abc")
    monkeypatch.setenv(twitchy.ENV_TOKEN, "token-xyz")
    return "client-abc", "token-xyz"
