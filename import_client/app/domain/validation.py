"""Pre-flight checks on the selected file. Client-side only."""
from __future__ import annotations

from import_client.app.constants import ALLOWED_EXTENSIONS, MESSAGES
from import_client.app.domain.errors import ValidationError


def file_extension(file_name: str) -> str:
    """Final dot-separated suffix of the name, lower-cased; empty when there is none."""
    base = file_name.replace("\\", "/").rsplit("/", 1)[-1]
    if "." not in base:
        return ""
    return base.rsplit(".", 1)[1].lower()


def is_allowed_file_name(file_name: str) -> bool:
    return file_extension(file_name) in ALLOWED_EXTENSIONS


def validate_file_name(file_name: str) -> str:
    """Return the accepted extension or raise ValidationError."""
    extension = file_extension(file_name)
    if extension not in ALLOWED_EXTENSIONS:
        raise ValidationError(MESSAGES.INVALID_FILE_TYPE, file_name=file_name)
    return extension
