from pathlib import Path
from typing import Optional
import logging
import uuid

from supabase import Client, create_client

from examdesk.core.config import settings

logger = logging.getLogger(__name__)


def get_supabase_client() -> Client:
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)


def supabase_configured() -> bool:
    return bool(settings.SUPABASE_URL and settings.SUPABASE_KEY)


def _unique_name(file_name: Optional[str]) -> str:
    suffix = Path(file_name or "").suffix.lower()
    return f"{uuid.uuid4()}{suffix}"


async def upload_to_supabase_storage(
    file_content: bytes, folder: str, file_name: Optional[str], content_type: Optional[str] = None
) -> str:
    client = get_supabase_client()
    path = f"{folder}/{_unique_name(file_name)}"
    file_options = {"content-type": content_type} if content_type else {}

    logger.info(f"Uploading {path} to bucket '{settings.SUPABASE_BUCKET}'")
    client.storage.from_(settings.SUPABASE_BUCKET).upload(path=path, file=file_content, file_options=file_options)
    return client.storage.from_(settings.SUPABASE_BUCKET).get_public_url(path)


async def save_to_media_root(file_content: bytes, folder: str, file_name: Optional[str]) -> str:
    relative = Path(folder) / _unique_name(file_name)
    target = Path(settings.MEDIA_ROOT) / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(file_content)
    logger.info(f"Stored upload at {target}")
    return relative.as_posix()


async def store_file(
    file_content: bytes, folder: str, file_name: Optional[str] = None, content_type: Optional[str] = None
) -> str:
    """
    Persist an uploaded file and return the reference to keep on the record:
    a public URL on Supabase Storage, or a path relative to MEDIA_ROOT.
    """
    if supabase_configured():
        return await upload_to_supabase_storage(file_content, folder, file_name, content_type)
    return await save_to_media_root(file_content, folder, file_name)
