"""
Employee allowlist loading.

The allowlist is a JSON document holding submitter display names, either
as a bare list or under an ``employees`` key. It can be read from a local
file or fetched over http(s), and is loaded once at startup.
"""

import json
from pathlib import Path
from typing import Any, FrozenSet, Iterable, Optional

from .http_client import HTTPFetcher
from .utils.exceptions import HTTPFetchError, StartupError
from .utils.logger import get_logger

logger = get_logger(__name__)


class EmployeeAllowlist:
    """Immutable set of submitter names whose requests are never relayed."""

    def __init__(self, names: Iterable[str] = ()):
        self._names: FrozenSet[str] = frozenset(names)

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __len__(self) -> int:
        return len(self._names)

    @property
    def names(self) -> FrozenSet[str]:
        return self._names

    @classmethod
    def load(cls, source: Optional[str], fetcher: Optional[HTTPFetcher] = None) -> "EmployeeAllowlist":
        """
        Load the allowlist from ``source``.

        Args:
            source: Local path or http(s) URL; None yields an empty allowlist
            fetcher: HTTP client for URL sources

        Raises:
            StartupError: If the source cannot be read or is malformed
        """
        if not source:
            return cls()

        if source.startswith(("http://", "https://")):
            if fetcher is None:
                raise StartupError(
                    "An HTTP client is required to fetch the employee allowlist",
                    reason="no_fetcher"
                )
            try:
                raw = fetcher.get(source)
            except HTTPFetchError as e:
                raise StartupError(
                    f"Employee allowlist unreachable: {e.message}",
                    reason="unreachable"
                ) from e
        else:
            try:
                raw = Path(source).read_bytes()
            except OSError as e:
                raise StartupError(
                    f"Employee allowlist unreadable: {e}",
                    reason="unreadable"
                ) from e

        allowlist = cls(parse_employee_names(raw))
        logger.info(
            f"Loaded {len(allowlist)} employee names",
            extra={"employee_count": len(allowlist)}
        )
        return allowlist


def parse_employee_names(raw: bytes) -> FrozenSet[str]:
    """
    Parse an allowlist document.

    Raises:
        StartupError: If the document is not JSON or not a list of names
    """
    try:
        document: Any = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as e:
        raise StartupError(f"Employee allowlist is not valid JSON: {e}", reason="malformed") from e

    if isinstance(document, dict):
        document = document.get("employees")

    if not isinstance(document, list) or not all(isinstance(name, str) for name in document):
        raise StartupError(
            "Employee allowlist must be a list of names or an object with an 'employees' list",
            reason="malformed"
        )

    return frozenset(name.strip() for name in document if name.strip())
