import asyncio
import logging
from typing import List

from supabase import Client

from creditos.core.exceptions import DocumentStoreError

logger = logging.getLogger(__name__)


class ExpedienteStorage:
    """Public Supabase storage bucket holding the uploaded expediente files."""

    def __init__(self, client: Client, bucket: str):
        self.client = client
        self.bucket = bucket

    # Uploads raw bytes under `key` and returns the stored key
    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        logger.debug(f"Uploading {len(data)} bytes ({content_type}) to {self.bucket}/{key}")
        try:
            await asyncio.to_thread(
                self.client.storage.from_(self.bucket).upload,
                key,
                data,
                {"content-type": content_type},
            )
        except Exception as e:
            logger.error(f"Supabase upload error for {key}: {e}")
            raise DocumentStoreError(key, str(e)) from e
        logger.info(f"Uploaded {key} to bucket {self.bucket}")
        return key

    def get_public_url(self, key: str) -> str:
        return self.client.storage.from_(self.bucket).get_public_url(key)

    # Removes stored objects; callers decide whether a failure is fatal
    async def remove(self, keys: List[str]) -> None:
        try:
            await asyncio.to_thread(self.client.storage.from_(self.bucket).remove, keys)
        except Exception as e:
            logger.error(f"Supabase delete error for {keys}: {e}")
            raise DocumentStoreError(",".join(keys), str(e)) from e
        logger.info(f"Deleted {keys} from bucket {self.bucket}")
