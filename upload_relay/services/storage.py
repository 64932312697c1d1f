"""Persists uploaded files to the local upload directory.

Stored names are ``<millisecond timestamp><original extension>``. Timestamps
within one batch are strictly increasing. Files from two different requests
stored in the same millisecond with the same extension share a name and the
later write replaces the earlier one; nothing here detects that.

A batch is all-or-nothing: if any file fails to write, the files already
written for that batch are removed and ``StorageError`` is raised.
"""

import asyncio
import logging
import shutil
import time
from pathlib import Path
from pathlib import PurePosixPath
from pathlib import PureWindowsPath
from typing import BinaryIO

from fastapi import UploadFile

from upload_relay.core.exceptions import StorageError
from upload_relay.models.upload_models import StoredFile

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def original_extension(original_name: str) -> str:
    """Returns the final suffix of the client-supplied name, including the dot.

    Directory components are ignored whichever separator the client used, and
    dotfiles such as ``.env`` have no extension.
    """
    basename = PureWindowsPath(PurePosixPath(original_name).name).name
    return PurePosixPath(basename).suffix


def stored_name(original_name: str, timestamp_ms: int | None = None) -> str:
    if timestamp_ms is None:
        timestamp_ms = _now_ms()
    return f"{timestamp_ms}{original_extension(original_name)}"


def public_url(scheme: str, host: str, url_prefix: str, filename: str) -> str:
    """Builds ``<scheme>://<host><prefix>/<filename>``."""
    return f"{scheme}://{host}{url_prefix}/{filename}"


def _write_file(source: BinaryIO, destination: Path) -> None:
    source.seek(0)
    with destination.open("wb") as out:
        shutil.copyfileobj(source, out)


def _discard(paths: list[Path], request_id: str) -> None:
    for written in paths:
        try:
            written.unlink(missing_ok=True)
            logger.info("[%s] Removed partially stored upload %s", request_id, written)
        except OSError as e:
            logger.error("[%s] Could not remove partially stored upload %s: %s", request_id, written, e)


async def save_uploads(
    files: list[UploadFile],
    upload_dir: Path,
    scheme: str,
    host: str,
    url_prefix: str,
    request_id: str,
) -> list[StoredFile]:
    """Writes each upload to ``upload_dir`` in the order given.

    Args:
        files: Uploaded files as received from the multipart form.
        upload_dir: Destination directory; must already exist.
        scheme: Scheme of the incoming request, used in the public URL.
        host: ``Host`` of the incoming request, used in the public URL.
        url_prefix: Path prefix under which ``upload_dir`` is served.
        request_id: A request-scoped identifier used for structured logging.

    Returns:
        One ``StoredFile`` per upload, in the same order.

    Raises:
        StorageError: If any file cannot be written. Files already written for
            this batch are removed first.
    """
    stored: list[StoredFile] = []
    written: list[Path] = []
    last_ms = -1

    for upload in files:
        original = upload.filename or ""
        # Strictly increasing within a batch so files sharing an extension keep distinct names
        last_ms = max(_now_ms(), last_ms + 1)
        filename = stored_name(original, timestamp_ms=last_ms)
        destination = upload_dir / filename
        try:
            await asyncio.to_thread(_write_file, upload.file, destination)
        except OSError as e:
            logger.error("[%s] Failed to store %s as %s: %s", request_id, original, destination, e)
            await asyncio.to_thread(_discard, written, request_id)
            raise StorageError(f"Could not store {original!r}") from e

        written.append(destination)
        stored.append(
            StoredFile(
                original_name=original,
                filename=filename,
                path=destination.as_posix(),
                url=public_url(scheme, host, url_prefix, filename),
            )
        )
        logger.debug("[%s] Stored %s as %s", request_id, original, destination)

    return stored
