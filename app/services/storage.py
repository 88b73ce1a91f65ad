# app/services/storage.py

import asyncio
import os
import uuid
from fastapi import UploadFile
from app.core.config import settings
from app.core.logger import logger
from app.utils.errors import BadRequestError

ALLOWED_EXTENSIONS = {".pdf", ".jpeg", ".jpg", ".png", ".doc", ".docx"}


def _upload_root() -> str:
    return os.path.abspath(settings.UPLOAD_DIR)


def url_to_path(url: str) -> str:
    """Local path of a file previously returned by `upload_file`."""
    prefix = settings.UPLOAD_URL_PREFIX.rstrip("/") + "/"
    if not url.startswith(prefix):
        raise ValueError(f"Not a stored file URL: {url}")
    relative = url[len(prefix):]
    path = os.path.abspath(os.path.join(_upload_root(), relative))
    if os.path.commonpath([path, _upload_root()]) != _upload_root():
        raise ValueError(f"Not a stored file URL: {url}")
    return path


def _write_file(path: str, content: bytes):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as out:
        out.write(content)


def _remove_file(path: str) -> bool:
    if os.path.isfile(path):
        os.remove(path)
        return True
    return False


async def upload_file(file: UploadFile, folder: str) -> dict:
    """
    Store an uploaded file under `folder` and return its public URL.
    """
    ext = os.path.splitext(file.filename or "")[1].lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise BadRequestError(f"Unsupported file type: {ext or file.filename}")

    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise BadRequestError(f"File {file.filename} exceeds the upload size limit.")

    stored_name = f"{uuid.uuid4().hex}{ext}"
    await asyncio.to_thread(_write_file, os.path.join(_upload_root(), folder, stored_name), content)

    url = f"{settings.UPLOAD_URL_PREFIX.rstrip('/')}/{folder}/{stored_name}"
    logger.info(f"Stored upload {file.filename} at {url}")
    return {"url": url}


async def delete_file(url: str):
    path = url_to_path(url)
    if await asyncio.to_thread(_remove_file, path):
        logger.info(f"Deleted stored file {url}")
