from claimdocs.documents.exceptions import InvalidUploadError
from claimdocs.documents.models import ALLOWED_MIME_TYPES, UploadedFile


def validate_upload(file: UploadedFile, max_file_size: int) -> None:
    """Reject empty, oversized or disallowed files before anything is stored.

    Raises:
        InvalidUploadError: with a message suitable for the caller.
    """
    if file.size == 0:
        raise InvalidUploadError(f"File {file.filename} is empty")
    if file.size > max_file_size:
        raise InvalidUploadError(
            f"File {file.filename} is {file.size} bytes, maximum allowed is {max_file_size}"
        )
    if file.mime_type not in ALLOWED_MIME_TYPES:
        raise InvalidUploadError(
            f"Invalid file type {file.mime_type}. Only PDF, JPEG, and PNG files are allowed"
        )


def stored_file_name(document_id: str, version: int, original_name: str) -> str:
    return f"{document_id}_v{version}_{original_name}"
