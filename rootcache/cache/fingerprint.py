"""Error fingerprinting for cache keys.

Turns a ParsedError into a stable hex digest by normalizing the volatile
parts of the message (UUIDs, memory addresses, numbers, whitespace,
casing) before hashing.

Usage:
    >>> fingerprinter = ErrorFingerprinter()
    >>> key = fingerprinter.fingerprint(error)
    >>> loose = fingerprinter.fingerprint(error, FingerprintMode.MESSAGE_ONLY)
"""

import hashlib
import re
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from rootcache.core import defaults
from rootcache.core.models import ParsedError

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*[a-zA-Z]")
_UUID_RE = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)
_HEX_ADDR_RE = re.compile(r"0x[0-9a-f]+", re.IGNORECASE)
_NUMBER_RE = re.compile(r"\d+")
_WHITESPACE_RE = re.compile(r"\s+")


class FingerprintMode(str, Enum):
    """Which components go into the fingerprint.

    FULL includes the normalized file path and line number (when enabled
    in the config). MESSAGE_ONLY drops the location so the same error
    recurring in different files maps to one key.
    """

    FULL = "full"
    MESSAGE_ONLY = "message_only"


class FingerprintConfig(BaseModel):
    """Configuration for ErrorFingerprinter.

    Attributes:
        include_file_path: Add the normalized file path in FULL mode
        include_line_number: Add the line number in FULL mode
        include_column_number: Add the column number in FULL mode
        algorithm: Any algorithm name accepted by ``hashlib.new``
    """

    include_file_path: bool = Field(default=True)
    include_line_number: bool = Field(default=True)
    include_column_number: bool = Field(default=False)
    algorithm: str = Field(default=defaults.FINGERPRINT_ALGORITHM)

    @field_validator("algorithm")
    @classmethod
    def algorithm_available(cls, v: str) -> str:
        """Reject algorithms hashlib does not provide."""
        name = v.lower()
        if name not in hashlib.algorithms_available:
            raise ValueError(f"Unsupported hash algorithm: {v}")
        if name.startswith("shake_"):
            raise ValueError(f"Variable-length digest not supported: {v}")
        return name


def normalize_message(message: str | None) -> str:
    """Normalize an error message for hashing.

    Order matters: UUIDs and hex addresses are replaced before digit runs
    (both contain digits), and lowercasing runs last so placeholders end
    up with a fixed casing.
    """
    if not message:
        return ""

    text = _ANSI_RE.sub("", message)
    text = _UUID_RE.sub(defaults.UUID_PLACEHOLDER, text)
    text = _HEX_ADDR_RE.sub(defaults.HEX_PLACEHOLDER, text)
    text = _NUMBER_RE.sub(defaults.NUMBER_PLACEHOLDER, text)
    text = text.lower()
    text = _WHITESPACE_RE.sub(" ", text)
    return text.strip()


def normalize_file_path(file_path: str | None) -> str:
    """Lowercase, forward slashes, no leading ``./``, no trailing slash."""
    if not file_path:
        return ""

    path = file_path.lower().replace("\\", "/")
    if path.startswith("./"):
        path = path[2:]
    if path.endswith("/"):
        path = path[:-1]
    return path


class ErrorFingerprinter:
    """Deterministic cache keys for parsed errors.

    Hashing is side-effect free: equal normalized inputs always produce
    the same digest. Callers must not rely on the digest length, which
    depends on the configured algorithm.
    """

    def __init__(self, config: FingerprintConfig | None = None):
        self.config = config or FingerprintConfig()

    def fingerprint(
        self, error: ParsedError, mode: FingerprintMode = FingerprintMode.FULL
    ) -> str:
        """Hex digest identifying ``error``.

        Args:
            error: Parsed error report
            mode: FULL (with location) or MESSAGE_ONLY

        Returns:
            Hex-encoded digest
        """
        return self.hash_string(
            defaults.FINGERPRINT_SEPARATOR.join(self.components(error, mode))
        )

    def components(
        self, error: ParsedError, mode: FingerprintMode = FingerprintMode.FULL
    ) -> list[str]:
        """The normalized parts joined into the hashed payload."""
        parts = [error.error_type, normalize_message(error.message), error.language]

        if mode is FingerprintMode.MESSAGE_ONLY:
            return parts

        if self.config.include_file_path and error.file_path:
            parts.append(normalize_file_path(error.file_path))
        if self.config.include_line_number and error.line > 0:
            parts.append(str(error.line))
        if self.config.include_column_number and error.column:
            parts.append(str(error.column))

        return parts

    def hash_string(self, content: str) -> str:
        """Hash arbitrary content with the configured algorithm."""
        return hashlib.new(self.config.algorithm, content.encode("utf-8")).hexdigest()

    def are_equal(
        self,
        first: ParsedError,
        second: ParsedError,
        mode: FingerprintMode = FingerprintMode.FULL,
    ) -> bool:
        """True when both errors map to the same fingerprint."""
        return self.fingerprint(first, mode) == self.fingerprint(second, mode)

    @property
    def algorithm(self) -> str:
        return self.config.algorithm
