"""
Storage path helpers.

Filename validation and deterministic object key generation for uploads.
The same scope and filename always map to the same key, so a repeated
upload overwrites its own object instead of creating a second one.

Dependencies: None
System role: Upload request validation
"""

from rag_backend.core.exceptions import ValidationError

MAX_FILENAME_LENGTH = 255


def validate_filename(filename: str) -> None:
    """
    Validate filename for security.

    Args:
        filename: Original filename from user

    Raises:
        ValidationError: If filename is empty, too long, has no extension or attempts traversal
    """
    if not filename or len(filename) > MAX_FILENAME_LENGTH:
        raise ValidationError("Invalid filename length", field="filename")

    # Block path traversal attacks
    if ".." in filename or "/" in filename or "\\" in filename:
        raise ValidationError("Invalid filename: path traversal detected", field="filename")

    if "." not in filename.strip("."):
        raise ValidationError("File must have an extension", field="filename")


def validate_mime_type(mime_type: str, supported: list[str]) -> None:
    if mime_type not in supported:
        raise ValidationError(
            f"Unsupported file type: {mime_type}. "
            "Supported formats: PDF, plain text (.txt, .md), spreadsheets (.csv, .xls, .xlsx)",
            field="mime_type",
        )


def sanitize_filename(filename: str) -> str:
    """
    Reduce a filename to alphanumerics, hyphens and underscores plus its extension.

    Returns:
        str: Safe name, "document" when nothing usable remains
    """
    file_ext = ""
    base_name = filename
    if "." in filename:
        base_name, ext = filename.rsplit(".", 1)
        file_ext = "." + "".join(c for c in ext.lower() if c.isalnum())

    safe_name = "".join(c for c in base_name if c.isalnum() or c in "-_")
    if not safe_name:
        safe_name = "document"
    return f"{safe_name}{file_ext}"


def build_storage_path(scope_id: str | None, filename: str, global_partition: str = "global") -> str:
    """
    Object key for a document.

    Format: {scope_id or global_partition}/{sanitized filename}

    Args:
        scope_id: Project scope, None for global documents
        filename: Original filename from user
        global_partition: Prefix used when scope_id is None

    Returns:
        str: Deterministic object key
    """
    partition = "".join(c for c in (scope_id or global_partition) if c.isalnum() or c in "-_")
    if not partition:
        raise ValidationError("Invalid scope id", field="scope_id")
    return f"{partition}/{sanitize_filename(filename)}"
