"""
Disk storage for uploaded files.

Files are written under the upload directory as
``<ms timestamp>-<random int>-<original name>`` and described by a FileRef.
"""

import logging
import mimetypes
import os
import random
import time
from typing import Optional

import aiofiles
import aiofiles.os
from fastapi import UploadFile

from RelayChat.core.exceptions import FileTooLargeError, UploadError
from RelayChat.core.message.protocol import FileRef

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def make_stored_name(original_name: str, now_ms: Optional[int] = None, suffix: Optional[int] = None) -> str:
    """
    Build a unique storage name for an upload.

    Args:
        original_name: File name sent by the client; directories are stripped
        now_ms: Millisecond timestamp (defaults to now)
        suffix: Random integer (defaults to a value in [0, 1e9])

    Returns:
        str: e.g. ``1714564800000-123456789-report.pdf``
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    if suffix is None:
        suffix = random.randint(0, 10 ** 9)
    base = os.path.basename(original_name.replace("\\", "/")) or "upload"
    return f"{now_ms}-{suffix}-{base}"


async def save_upload(upload: UploadFile, upload_dir: str, max_size: int) -> FileRef:
    """
    Stream an upload to disk.

    Args:
        upload: File received by the endpoint
        upload_dir: Destination directory (created if missing)
        max_size: Maximum accepted size in bytes

    Returns:
        FileRef: Descriptor of the stored file

    Raises:
        FileTooLargeError: If the upload exceeds max_size; nothing is kept
        UploadError: If the file cannot be written
    """
    original_name = upload.filename or "upload"
    stored_name = make_stored_name(original_name)
    path = os.path.join(upload_dir, stored_name)

    size = 0
    try:
        await aiofiles.os.makedirs(upload_dir, exist_ok=True)
        async with aiofiles.open(path, "wb") as f:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > max_size:
                    raise FileTooLargeError(
                        "File too large",
                        details={"limit": max_size}
                    )
                await f.write(chunk)
    except FileTooLargeError:
        await _discard(path)
        raise
    except OSError as e:
        await _discard(path)
        raise UploadError(f"Could not store {original_name}") from e

    mime_type = (
        upload.content_type
        or mimetypes.guess_type(original_name)[0]
        or "application/octet-stream"
    )
    logger.info("Stored upload %s (%d bytes) as %s", original_name, size, stored_name)
    return FileRef(
        stored_name=stored_name,
        original_name=original_name,
        public_path=f"/uploads/{stored_name}",
        mime_type=mime_type,
        size_bytes=size,
    )


async def _discard(path: str) -> None:
    try:
        await aiofiles.os.remove(path)
    except FileNotFoundError:
        pass
