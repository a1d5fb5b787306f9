"""
Hierarchical HMAC secret resolution.

A secret store is either a mapping from scope key to a list of secret records:

    "org/repo":
      - value: repo-token
        created_at: 2021-06-01T10:00:00Z
    org:
      - value: org-token
    "*":
      - value: global-token

or, for backward compatibility, a single literal token making up the whole
content. Only the most specific scope configured for a repository is used:
the repository itself, then its organization, then the global "*" scope.
Scopes are never merged.
"""

import json
import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple, Union

import yaml
from pydantic import TypeAdapter, ValidationError

from hookgate.schemas import SecretRecord

logger = logging.getLogger(__name__)

GLOBAL_SCOPE = "*"

_scope_map_adapter = TypeAdapter(Dict[str, List[SecretRecord]])


class SecretResolutionError(ValueError):
    """Raised when a hierarchical store has no scope applicable to a repository."""


@dataclass(frozen=True)
class HierarchicalSecrets:
    scopes: Dict[str, Tuple[SecretRecord, ...]]


@dataclass(frozen=True)
class LegacySecret:
    token: bytes


SecretStore = Union[HierarchicalSecrets, LegacySecret]


def _load_document(raw: bytes):
    """Load raw content as JSON, or as YAML when it is not JSON."""
    # PyYAML rejects tab indentation that JSON allows
    try:
        return json.loads(raw)
    except ValueError:
        pass
    return yaml.safe_load(raw)


def _scope_key(key) -> str:
    # Same spelling a YAML to JSON conversion gives
    if isinstance(key, bool):
        return "true" if key else "false"
    if key is None:
        return "null"
    return str(key)


def parse_secret_store(raw: bytes) -> SecretStore:
    """
    Parse raw secret store content.

    JSON or YAML mappings of scope key to secret records are returned as
    HierarchicalSecrets. Anything else is a LegacySecret holding the raw
    bytes untouched. An empty document is an empty mapping.
    """
    try:
        document = _load_document(raw)
    except yaml.YAMLError as e:
        logger.debug(f"Secret store is not valid YAML, using single token format: {e}")
        return LegacySecret(token=raw)

    if document is None:
        document = {}
    if not isinstance(document, dict):
        logger.debug("Secret store is not a mapping, using single token format")
        return LegacySecret(token=raw)

    # A scope key with no entries is still a configured scope
    normalized = {
        _scope_key(key): [] if records is None else records
        for key, records in document.items()
    }

    try:
        scopes = _scope_map_adapter.validate_python(normalized)
    except ValidationError as e:
        logger.debug(f"Secret store mapping is malformed, using single token format: {e}")
        return LegacySecret(token=raw)

    return HierarchicalSecrets(
        scopes={key: tuple(records) for key, records in scopes.items()}
    )


def organization_of(repository_full_name: str) -> str:
    """Return the part of "org/repo" before the first slash (the whole name if none)."""
    return repository_full_name.split("/", 1)[0]


def resolve_secrets(repository_full_name: str, raw: bytes) -> List[bytes]:
    """
    Return the candidate HMAC keys for a repository, in configured order.

    Args:
        repository_full_name: Repository identifier from the event ("org/repo")
        raw: Raw secret store content

    Returns:
        List of candidate keys. A legacy store always yields exactly one.

    Raises:
        SecretResolutionError: The store is hierarchical but neither the
            repository, its organization nor the global scope is configured.
    """
    store = parse_secret_store(raw)

    if isinstance(store, LegacySecret):
        return [store.token]

    for scope in (repository_full_name, organization_of(repository_full_name), GLOBAL_SCOPE):
        if scope in store.scopes:
            return [record.value.encode("utf-8") for record in store.scopes[scope]]

    raise SecretResolutionError(
        f"invalid content in secret store: no scope for {repository_full_name!r}, "
        f"its organization or the global scope"
    )
