"""
File Upload Utility - Read batch CSV uploads as text.

Supported formats:
- Comma-separated values (.csv), UTF-8 with or without BOM
  (latin-1 / cp1252 accepted as a fallback for spreadsheet exports)

Max file size: settings.max_upload_mb
"""

from typing import Tuple
from fastapi import UploadFile, HTTPException

from placement_portal.core.config import get_settings


ALLOWED_EXTENSIONS = {'.csv'}


def get_file_extension(filename: str) -> str:
    """Get lowercase file extension."""
    if '.' not in filename:
        return ''
    return '.' + filename.rsplit('.', 1)[1].lower()


async def read_upload_text(file: UploadFile) -> Tuple[str, str]:
    """
    Read an uploaded batch file as text.

    Args:
        file: FastAPI UploadFile

    Returns:
        Tuple of (csv_text, filename)

    Raises:
        HTTPException on validation/decoding errors
    """
    settings = get_settings()

    # Validate filename
    if not file.filename:
        raise HTTPException(status_code=400, detail="No filename provided")

    ext = get_file_extension(file.filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type '{ext}'. Allowed: CSV"
        )

    # Read content
    content = await file.read()

    # Check size
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size: {settings.max_upload_mb}MB"
        )

    text = decode_text(content)
    if not text.strip():
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    return text, file.filename


def decode_text(content: bytes) -> str:
    """Decode CSV bytes, dropping a UTF-8 BOM."""
    for encoding in ['utf-8-sig', 'cp1252', 'latin-1']:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise HTTPException(status_code=400, detail="Could not decode text file")
