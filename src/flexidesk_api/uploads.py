"""Conversion of incoming multipart files into upstream upload tuples."""

from collections.abc import Sequence
from typing import Optional

from fastapi import UploadFile

FileTuple = tuple[str, bytes, str]


async def read_upload(upload: UploadFile) -> FileTuple:
    content = await upload.read()
    return (
        upload.filename or "upload",
        content,
        upload.content_type or "application/octet-stream",
    )


async def read_uploads(uploads: Optional[Sequence[UploadFile]]) -> list[FileTuple]:
    """Read every non-empty upload; browsers send empty parts for blank inputs."""
    files = []
    for upload in uploads or []:
        if not upload.filename:
            continue
        files.append(await read_upload(upload))
    return files
