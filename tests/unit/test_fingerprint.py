"""Unit tests for error fingerprinting and message normalization."""

import random

import pytest
from pydantic import ValidationError

from rootcache.cache.fingerprint import (
    ErrorFingerprinter,
    FingerprintConfig,
    FingerprintMode,
    normalize_file_path,
    normalize_message,
)
from rootcache.core.models import ParsedError


@pytest.fixture
def fingerprinter():
    return ErrorFingerprinter()


class TestNormalizeMessage:
    """Tests for normalize_message."""

    def test_replaces_numbers(self):
        assert normalize_message("Index 5 out of bounds for length 3") == (
            "index n out of bounds for length n"
        )

    def test_replaces_uuid_before_numbers(self):
        message = "Session 3f2b8c1e-9d4a-4b7e-8f6a-1c2d3e4f5a6b expired"
        assert normalize_message(message) == "session uuid expired"

    def test_uppercase_uuid(self):
        message = "id=3F2B8C1E-9D4A-4B7E-8F6A-1C2D3E4F5A6B"
        assert normalize_message(message) == "id=uuid"

    def test_replaces_hex_addresses(self):
        assert normalize_message("Object at 0x7ffd5e8c9a10 freed") == (
            "object at hexaddr freed"
        )

    def test_strips_ansi_codes(self):
        assert normalize_message("\x1b[31mError\x1b[0m: boom") == "error: boom"

    def test_collapses_whitespace_and_trims(self):
        assert normalize_message("  too   many\n\tspaces  ") == "too many spaces"

    def test_empty_and_none(self):
        assert normalize_message("") == ""
        assert normalize_message(None) == ""

    def test_messages_differing_only_in_numbers_normalize_equal(self):
        """Random digit substitutions never change the normalized form."""
        rng = random.Random(42)
        template = "Timeout after {}ms on attempt {} of {}"

        baseline = normalize_message(template.format(1, 2, 3))
        for _ in range(50):
            numbers = [rng.randint(0, 10**9) for _ in range(3)]
            assert normalize_message(template.format(*numbers)) == baseline

    def test_idempotent(self):
        once = normalize_message("Failed at 0xdeadbeef after 42 tries")
        assert normalize_message(once) == once


class TestNormalizeFilePath:
    """Tests for normalize_file_path."""

    def test_backslashes_and_case(self):
        assert normalize_file_path("Src\\Main\\App.kt") == "src/main/app.kt"

    def test_leading_dot_slash_and_trailing_slash(self):
        assert normalize_file_path("./src/utils/") == "src/utils"

    def test_empty(self):
        assert normalize_file_path(None) == ""
        assert normalize_file_path("") == ""


class TestErrorFingerprinter:
    """Tests for ErrorFingerprinter."""

    def test_deterministic(self, fingerprinter, parsed_error):
        assert fingerprinter.fingerprint(parsed_error) == fingerprinter.fingerprint(
            parsed_error.model_copy()
        )

    def test_default_is_sha256_hex(self, fingerprinter, parsed_error):
        key = fingerprinter.fingerprint(parsed_error)
        assert len(key) == 64
        int(key, 16)

    def test_different_lines_differ_in_full_mode(self, fingerprinter, parsed_error):
        other = parsed_error.model_copy(update={"line": 46})
        assert fingerprinter.fingerprint(parsed_error) != fingerprinter.fingerprint(other)

    def test_different_lines_equal_in_message_only_mode(
        self, fingerprinter, parsed_error
    ):
        other = parsed_error.model_copy(update={"line": 46, "file_path": "Other.kt"})
        assert fingerprinter.are_equal(
            parsed_error, other, FingerprintMode.MESSAGE_ONLY
        )

    def test_location_ignored_when_disabled(self, parsed_error):
        fingerprinter = ErrorFingerprinter(
            FingerprintConfig(include_file_path=False, include_line_number=False)
        )
        other = parsed_error.model_copy(update={"line": 99, "file_path": "Else.kt"})
        assert fingerprinter.are_equal(parsed_error, other)

    def test_column_included_only_when_enabled(self, parsed_error):
        first = parsed_error.model_copy(update={"column": 3})
        second = parsed_error.model_copy(update={"column": 9})

        assert ErrorFingerprinter().are_equal(first, second)
        assert not ErrorFingerprinter(
            FingerprintConfig(include_column_number=True)
        ).are_equal(first, second)

    def test_unknown_line_is_skipped(self, fingerprinter, parsed_error):
        unknown = parsed_error.model_copy(update={"line": 0})
        assert fingerprinter.components(unknown)[-1] == normalize_file_path(
            parsed_error.file_path
        )

    def test_language_and_type_are_part_of_key(self, fingerprinter, parsed_error):
        other_language = parsed_error.model_copy(update={"language": "java"})
        other_type = parsed_error.model_copy(update={"error_type": "npe"})

        key = fingerprinter.fingerprint(parsed_error)
        assert key != fingerprinter.fingerprint(other_language)
        assert key != fingerprinter.fingerprint(other_type)

    def test_volatile_message_parts_share_key(self, fingerprinter):
        first = ParsedError(
            error_type="timeout",
            message="Request 1234 timed out after 30s",
            language="python",
        )
        second = first.model_copy(update={"message": "request 98   timed out after 5s"})
        assert fingerprinter.are_equal(first, second)

    def test_empty_message_does_not_fail(self, fingerprinter):
        error = ParsedError(error_type="unknown", message=None, language="go")
        assert fingerprinter.components(error)[1] == ""
        assert fingerprinter.fingerprint(error)

    def test_components_joined_with_separator(self, fingerprinter, parsed_error):
        components = fingerprinter.components(parsed_error)
        assert fingerprinter.fingerprint(parsed_error) == fingerprinter.hash_string(
            "|".join(components)
        )

    def test_alternative_algorithm(self, parsed_error):
        fingerprinter = ErrorFingerprinter(FingerprintConfig(algorithm="md5"))
        assert fingerprinter.algorithm == "md5"
        assert len(fingerprinter.fingerprint(parsed_error)) == 32

    def test_unknown_algorithm_rejected(self):
        with pytest.raises(ValidationError):
            FingerprintConfig(algorithm="not-a-hash")
