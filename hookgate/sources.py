"""
Secret-bytes providers handed to validate_payload.
"""

import logging
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


class FileSecretSource:
    """
    Reads the secret store file on every call.

    Nothing is cached, so edits to the file apply to the next delivery.
    Read errors propagate to the caller.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def __call__(self) -> bytes:
        logger.debug(f"Reading secret store: {self.path}")
        return self.path.read_bytes()

    def __repr__(self) -> str:
        return f"FileSecretSource({str(self.path)!r})"


class StaticSecretSource:
    """Returns fixed secret store content."""

    def __init__(self, data: Union[bytes, str]):
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.data = data

    def __call__(self) -> bytes:
        return self.data

    def __repr__(self) -> str:
        return "StaticSecretSource(<redacted>)"
