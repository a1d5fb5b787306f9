"""
Tests for hierarchical secret resolution.

Tests cover:
- Scope precedence (repository, organization, global)
- Legacy single-token fallback
- Resolution failures and empty mappings
- YAML input with comments and timestamps
"""

import json

import pytest

from hookgate.secret_store import (
    HierarchicalSecrets,
    LegacySecret,
    SecretResolutionError,
    organization_of,
    parse_secret_store,
    resolve_secrets,
)

from conftest import GLOBAL_SECRET, ORG_SECRET, REPO_SECRET


YAML_STORE = b"""
# Tokens for one repository
"kubernetes/test-infra":
  - value: old-repo-token
    created_at: 2020-01-01T00:00:00Z
  - value: new-repo-token
    created_at: 2021-01-01T00:00:00Z
kubernetes:
  - value: org-token
"*":
  - value: global-token
"""


class TestScopePrecedence:
    """Test that the most specific configured scope wins."""

    def test_repository_scope(self, hierarchical_store):
        assert resolve_secrets("kubernetes/test-infra", hierarchical_store) == [REPO_SECRET.encode()]

    def test_organization_scope(self, hierarchical_store):
        assert resolve_secrets("kubernetes/kubernetes", hierarchical_store) == [ORG_SECRET.encode()]

    def test_global_scope(self, hierarchical_store):
        assert resolve_secrets("unrelated/repo", hierarchical_store) == [GLOBAL_SECRET.encode()]

    def test_scopes_are_not_merged(self):
        store = b'{"org/repo": [{"value": "a"}], "*": [{"value": "c"}]}'
        assert resolve_secrets("org/repo", store) == [b"a"]

    def test_order_is_preserved(self):
        assert resolve_secrets("kubernetes/test-infra", YAML_STORE) == [
            b"old-repo-token",
            b"new-repo-token",
        ]

    def test_repository_without_slash(self):
        store = b'{"solo": [{"value": "solo-token"}]}'
        assert resolve_secrets("solo", store) == [b"solo-token"]

    @pytest.mark.parametrize(
        "dump_options",
        [
            {},
            {"separators": (",", ":")},
            {"indent": 2},
            {"indent": "\t"},
        ],
        ids=["default", "compact", "indent-2", "indent-tab"],
    )
    def test_json_formatting_styles(self, dump_options):
        store = json.dumps(
            {"org": [{"value": "org-token", "created_at": "2021-01-01T00:00:00Z"}], "*": [{"value": "x"}]},
            **dump_options,
        ).encode("utf-8")

        assert isinstance(parse_secret_store(store), HierarchicalSecrets)
        assert resolve_secrets("org/repo", store) == [b"org-token"]
        assert resolve_secrets("o/r", store) == [b"x"]

    def test_empty_scope_yields_no_candidates(self):
        store = b"org:\n\"*\":\n  - value: global\n"
        assert resolve_secrets("org/repo", store) == []


class TestResolutionFailures:
    """Test hierarchical stores with no applicable scope."""

    def test_no_global_scope(self):
        store = b'{"someorg": [{"value": "a"}]}'
        with pytest.raises(SecretResolutionError):
            resolve_secrets("otherorg/repo", store)

    def test_empty_mapping(self):
        with pytest.raises(SecretResolutionError):
            resolve_secrets("org/repo", b"{}")

    def test_empty_content(self):
        with pytest.raises(SecretResolutionError):
            resolve_secrets("org/repo", b"")

    def test_comment_only_content(self):
        with pytest.raises(SecretResolutionError):
            resolve_secrets("org/repo", b"# nothing configured yet\n")


class TestLegacyFallback:
    """Test that anything but a scope mapping is one literal token."""

    def test_plain_token(self):
        assert resolve_secrets("org/repo", b"mysecret") == [b"mysecret"]

    def test_raw_bytes_are_not_trimmed(self):
        assert resolve_secrets("org/repo", b"mysecret\n") == [b"mysecret\n"]

    def test_invalid_yaml(self):
        raw = b"{not: [valid"
        assert resolve_secrets("org/repo", raw) == [raw]

    def test_mapping_with_scalar_values(self):
        raw = b"abc: def"
        assert resolve_secrets("org/repo", raw) == [raw]

    def test_record_without_value(self):
        raw = b'{"*": [{"created_at": "2021-01-01T00:00:00Z"}]}'
        assert resolve_secrets("org/repo", raw) == [raw]

    def test_record_with_non_string_value(self):
        raw = b'{"*": [{"value": 1234}]}'
        assert resolve_secrets("org/repo", raw) == [raw]

    @pytest.mark.parametrize("created_at", ["12345", "1609459200.5", '"12345"'])
    def test_epoch_created_at(self, created_at):
        raw = ('{"*": [{"value": "a", "created_at": %s}]}' % created_at).encode("utf-8")
        assert resolve_secrets("org/repo", raw) == [raw]

    def test_non_utf8_content(self):
        raw = b"\xc3\x28secret"
        assert resolve_secrets("org/repo", raw) == [raw]


class TestParseSecretStore:
    """Test the parsed representation of a secret store."""

    def test_hierarchical(self):
        store = parse_secret_store(YAML_STORE)

        assert isinstance(store, HierarchicalSecrets)
        assert set(store.scopes) == {"kubernetes/test-infra", "kubernetes", "*"}
        first = store.scopes["kubernetes/test-infra"][0]
        assert first.value == "old-repo-token"
        assert first.created_at.year == 2020

    def test_empty_mapping_is_hierarchical(self):
        store = parse_secret_store(b"{}")

        assert isinstance(store, HierarchicalSecrets)
        assert store.scopes == {}

    def test_legacy(self):
        assert parse_secret_store(b"mysecret") == LegacySecret(token=b"mysecret")

    def test_numeric_scope_keys_are_strings(self):
        store = parse_secret_store(b"42:\n  - value: numeric-org\n")

        assert isinstance(store, HierarchicalSecrets)
        assert store.scopes["42"][0].value == "numeric-org"

    def test_boolean_and_null_scope_keys(self):
        store = parse_secret_store(b"true:\n  - value: t\nfalse:\n  - value: f\n~:\n  - value: n\n")

        assert isinstance(store, HierarchicalSecrets)
        assert set(store.scopes) == {"true", "false", "null"}
        assert resolve_secrets("true/repo", b"true:\n  - value: t\n") == [b"t"]

    def test_unknown_record_fields_are_ignored(self):
        store = parse_secret_store(b'{"*": [{"value": "a", "owner": "team-x"}]}')

        assert isinstance(store, HierarchicalSecrets)
        assert store.scopes["*"][0].value == "a"


@pytest.mark.parametrize(
    "full_name, org",
    [
        ("kubernetes/test-infra", "kubernetes"),
        ("org/repo/extra", "org"),
        ("solo", "solo"),
        ("", ""),
    ],
)
def test_organization_of(full_name, org):
    assert organization_of(full_name) == org
