"""Object storage collaborator: protocol and Supabase Storage implementation."""

import logging
from typing import Any, Protocol

from voiceover.utils.errors import StorageError

logger = logging.getLogger(__name__)


class ObjectStorage(Protocol):
    """Durable blob storage addressed by key."""

    async def upload(self, key: str, data: bytes, mime_type: str) -> None: ...

    async def get_url(self, key: str) -> str: ...


class SupabaseStorage:
    """Stores audio in a Supabase storage bucket."""

    def __init__(self, supabase_client: Any, bucket: str = "voiceovers") -> None:
        """
        Initialize the SupabaseStorage.

        Args:
            supabase_client: Supabase client instance
            bucket: Storage bucket name
        """
        self.supabase = supabase_client
        self.bucket = bucket

    async def upload(self, key: str, data: bytes, mime_type: str) -> None:
        """
        Upload bytes at ``key``.

        Raises:
            StorageError: If upload fails
        """
        try:
            result = self.supabase.storage.from_(self.bucket).upload(
                path=key,
                file=data,
                file_options={"content-type": mime_type, "upsert": "true"},
            )
        except Exception as e:
            raise StorageError(f"Failed to upload {key}: {e}")

        if not result:
            raise StorageError(f"Upload of {key} returned empty result")

        logger.info(f"Uploaded {len(data)} bytes to {self.bucket}/{key}")

    async def get_url(self, key: str) -> str:
        """
        Public URL for ``key``.

        Raises:
            StorageError: If the URL cannot be resolved
        """
        try:
            url = self.supabase.storage.from_(self.bucket).get_public_url(key)
        except Exception as e:
            raise StorageError(f"Failed to resolve URL for {key}: {e}")

        if not url:
            raise StorageError(f"No URL for {key}")
        return url


def create_storage(supabase_client: Any) -> SupabaseStorage:
    """
    Create a SupabaseStorage using application settings.

    Args:
        supabase_client: Supabase client for storage
    """
    from voiceover.config import get_settings

    return SupabaseStorage(supabase_client, bucket=get_settings().storage_bucket)
