"""
Shared handling of multipart file uploads.
"""

from fastapi import UploadFile, status

from app.errors import raise_app_error

CHUNK_SIZE = 1024 * 1024


async def read_upload(upload: UploadFile, max_bytes: int) -> bytes:
    """Read an upload in chunks, failing with 413 once it passes max_bytes."""
    chunks = []
    size = 0
    while True:
        chunk = await upload.read(min(CHUNK_SIZE, max_bytes + 1 - size))
        if not chunk:
            break
        size += len(chunk)
        if size > max_bytes:
            raise_app_error(
                status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                "FILE_TOO_LARGE",
                f"{upload.filename} exceeds {max_bytes} bytes",
                {"filename": upload.filename, "max_bytes": max_bytes},
            )
        chunks.append(chunk)
    return b"".join(chunks)
