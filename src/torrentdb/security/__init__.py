"""Name and path sanitization primitives."""

from .paths import (
    ValidationError,
    check_allowed_text,
    clean_name,
    decode_text,
    join_clean_path,
    printable_text,
    validate_file_paths,
    validate_info_text,
)

__all__ = [
    "ValidationError",
    "check_allowed_text",
    "clean_name",
    "decode_text",
    "join_clean_path",
    "printable_text",
    "validate_file_paths",
    "validate_info_text",
]
