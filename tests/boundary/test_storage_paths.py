"""
Test suite for upload validation and object key generation.

System role: Verification of storage path helpers
"""

import pytest

from rag_backend.application.services.storage_paths import (
    build_storage_path,
    sanitize_filename,
    validate_filename,
    validate_mime_type,
)
from rag_backend.core.exceptions import ValidationError


class TestValidateFilename:
    @pytest.mark.parametrize("filename", ["", "../etc/passwd.pdf", "dir/file.pdf", "a\\b.pdf", "noextension", "x" * 256 + ".pdf"])
    def test_invalid_names_should_raise(self, filename) -> None:
        with pytest.raises(ValidationError):
            validate_filename(filename)

    def test_plain_name_should_pass(self) -> None:
        validate_filename("Wandaufbau 2024.pdf")


class TestValidateMimeType:
    def test_unsupported_type_should_raise(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_mime_type("image/png", ["application/pdf"])

        assert exc_info.value.details["field"] == "mime_type"


class TestBuildStoragePath:
    def test_sanitize_should_strip_unsafe_characters(self) -> None:
        assert sanitize_filename("Wand aufbau (v2).PDF") == "Wandaufbauv2.pdf"

    def test_sanitize_should_fall_back_to_document(self) -> None:
        assert sanitize_filename("###.txt") == "document.txt"

    def test_path_should_be_deterministic_per_scope(self) -> None:
        first = build_storage_path("project-1", "plan.pdf")
        second = build_storage_path("project-1", "plan.pdf")

        assert first == second == "project-1/plan.pdf"

    def test_global_documents_should_use_global_partition(self) -> None:
        assert build_storage_path(None, "norm.pdf") == "global/norm.pdf"

    def test_unusable_scope_should_raise(self) -> None:
        with pytest.raises(ValidationError):
            build_storage_path("../", "plan.pdf")
