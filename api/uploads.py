from __future__ import annotations

import os

from fastapi import UploadFile

from core.storage import IncomingFile


def incoming_file_from_upload(upload: UploadFile) -> IncomingFile:
    stream = upload.file
    stream.seek(0, os.SEEK_END)
    size_bytes = stream.tell()
    stream.seek(0)
    return IncomingFile(
        file_name=upload.filename or "upload",
        content_type=upload.content_type or "application/octet-stream",
        size_bytes=size_bytes,
        stream=stream,
    )
