"""
Pytest configuration and shared fixtures.

Settings are read from the environment; defaults are set here before any
hookgate imports so the settings cache picks them up. The secret store file
is never read by the tests: routes get a StaticSecretSource through
dependency overrides.
"""

import json
import os

import pytest

os.environ.setdefault("HMAC_SECRET_FILE", "/nonexistent/hmac-secret")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

# Clear settings cache before any app imports to ensure test env vars are used
from hookgate.config import get_settings
get_settings.cache_clear()


REPO_SECRET = "repo-token"
ORG_SECRET = "org-token"
GLOBAL_SECRET = "global-token"


def make_payload(full_name: str = "kubernetes/test-infra", login: str = "octocat") -> bytes:
    """Build a minimal event payload for a repository."""
    return json.dumps({
        "action": "opened",
        "repository": {"full_name": full_name, "private": False},
        "sender": {"login": login},
    }).encode("utf-8")


@pytest.fixture
def hierarchical_store() -> bytes:
    """Secret store with repository, organization and global scopes."""
    return json.dumps({
        "kubernetes/test-infra": [{"value": REPO_SECRET, "created_at": "2021-06-01T10:00:00Z"}],
        "kubernetes": [{"value": ORG_SECRET, "created_at": "2021-05-01T10:00:00Z"}],
        "*": [{"value": GLOBAL_SECRET, "created_at": "2021-04-01T10:00:00Z"}],
    }).encode("utf-8")
