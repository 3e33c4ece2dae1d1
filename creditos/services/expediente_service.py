import logging
import os
import time
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status

from creditos.core.config import settings
from creditos.core.exceptions import DocumentStoreError
from creditos.database.gateway import SupabaseGateway
from creditos.database.storage import ExpedienteStorage

logger = logging.getLogger(__name__)


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.2f} KB"
    return f"{size / (1024 * 1024):.2f} MB"


def storage_key_from_url(url: str) -> str:
    """Storage key of a public URL: its last two path segments, `<cliente_id>/<file>`."""
    parts = url.split("?")[0].rstrip("/").split("/")
    return "/".join(parts[-2:])


class ExpedienteService:
    """Uploaded documents of a client's expediente: blob in storage plus a metadata row."""

    def __init__(self, gateway: SupabaseGateway, storage: ExpedienteStorage, max_size: Optional[int] = None):
        self.gateway = gateway
        self.storage = storage
        self.max_size = max_size or settings.MAX_UPLOAD_SIZE

    # Generates the storage key for a new upload: <cliente_id>/<epoch millis>.<ext>
    def _generate_key(self, cliente_id: str, filename: str) -> str:
        ext = os.path.splitext(filename)[1].lstrip(".") or "bin"
        return f"{cliente_id}/{int(time.time() * 1000)}.{ext}"

    async def upload_archivo(self, cliente_id: str, filename: str, content_type: Optional[str], contents: bytes) -> Dict[str, Any]:
        size = len(contents)
        if size == 0:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty file uploaded")
        if size > self.max_size:
            limit_mb = self.max_size // (1024 * 1024)
            logger.warning(f"Rejected {filename} for cliente {cliente_id}: {size} bytes exceeds {self.max_size}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"El archivo no puede superar los {limit_mb}MB",
            )

        content_type = content_type or "application/octet-stream"
        key = self._generate_key(cliente_id, filename)
        try:
            await self.storage.upload(key, contents, content_type)
        except DocumentStoreError as e:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Error al subir archivo: {e.message}")

        public_url = self.storage.get_public_url(key)
        created = await self.gateway.insert("expediente_archivos", [{
            "cliente_id": cliente_id,
            "nombre_archivo": filename,
            "tipo_archivo": content_type,
            "url": public_url,
            "size": size,
        }])
        logger.info(f"Uploaded {filename} ({format_file_size(size)}) to expediente of cliente {cliente_id}")
        archivo = created[0] if created else {}
        archivo["size_legible"] = format_file_size(size)
        return archivo

    async def list_archivos(self, cliente_id: str) -> List[Dict[str, Any]]:
        rows = await self.gateway.select(
            "expediente_archivos",
            filters={"cliente_id": cliente_id},
            order_by="created_at",
            descending=True,
        )
        for row in rows:
            row["size_legible"] = format_file_size(int(row.get("size") or 0))
        return rows

    async def delete_archivo(self, archivo_id: str) -> None:
        rows = await self.gateway.select("expediente_archivos", filters={"id": archivo_id}, limit=1)
        if not rows:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Archivo no encontrado")
        archivo = rows[0]

        await self.gateway.delete("expediente_archivos", archivo_id)

        # an orphaned blob is tolerated; the metadata row is already gone
        key = storage_key_from_url(archivo["url"])
        try:
            await self.storage.remove([key])
        except DocumentStoreError as e:
            logger.warning(f"Error al eliminar del storage {key}: {e.message}")
        logger.info(f"Deleted archivo {archivo_id} from expediente of cliente {archivo.get('cliente_id')}")
