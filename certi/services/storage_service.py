"""
Storage Service
Template backgrounds and generated certificate files.
Local disk under STORAGE_DIR by default, Supabase Storage when configured.
"""

import logging
from pathlib import Path
from typing import Optional

import httpx
from fastapi import HTTPException, UploadFile, status

from certi.config import settings

logger = logging.getLogger(__name__)

MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "pdf": "application/pdf",
}


class StorageService:
    """Read/write stored files by relative path or public URL"""

    @staticmethod
    def _root() -> Path:
        return Path(settings.STORAGE_DIR).resolve()

    @staticmethod
    def _local_path(path: str) -> Path:
        root = StorageService._root()
        full = (root / path.lstrip("/")).resolve()
        if root not in full.parents and full != root:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid storage path"
            )
        return full

    @staticmethod
    def is_remote(path: Optional[str]) -> bool:
        return bool(path) and path.startswith(("http://", "https://"))

    @staticmethod
    async def validate_template_upload(upload: UploadFile) -> tuple:
        """
        Read an uploaded template file and check its extension and size.

        Returns:
            Tuple of (content, extension, mime type)
        """
        extension = Path(upload.filename or "").suffix.lstrip(".").lower()
        if extension not in settings.allowed_template_types:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail={
                    "message": "Validation errors",
                    "errors": {"template_file": [
                        f"The template file must be a file of type: {', '.join(settings.allowed_template_types)}."
                    ]},
                }
            )

        content = await upload.read()
        if len(content) > settings.MAX_UPLOAD_SIZE:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail={
                    "message": "Validation errors",
                    "errors": {"template_file": [
                        f"The template file may not be greater than {settings.MAX_UPLOAD_SIZE // 1024} kilobytes."
                    ]},
                }
            )

        return content, extension, MIME_TYPES.get(extension, upload.content_type or "application/octet-stream")

    @staticmethod
    async def save(path: str, content: bytes, content_type: str) -> str:
        """Store ``content`` and return the reference kept in the database"""
        if settings.supabase_configured:
            return await StorageService._upload_supabase(path, content, content_type)

        full = StorageService._local_path(path)
        full.parent.mkdir(parents=True, exist_ok=True)
        full.write_bytes(content)
        logger.info("Stored %d bytes at %s", len(content), full)
        return path

    @staticmethod
    async def read(path: str) -> bytes:
        if StorageService.is_remote(path):
            async with httpx.AsyncClient(timeout=30) as client:
                resp = await client.get(path)
            if resp.status_code != 200:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Stored file not found"
                )
            return resp.content

        full = StorageService._local_path(path)
        if not full.is_file():
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Stored file not found"
            )
        return full.read_bytes()

    @staticmethod
    async def delete(path: Optional[str]) -> None:
        if not path:
            return
        if StorageService.is_remote(path):
            await StorageService._delete_supabase_url(path)
            return
        full = StorageService._local_path(path)
        if full.is_file():
            full.unlink()
            logger.info("Deleted stored file %s", full)

    @staticmethod
    def public_url(path: Optional[str]) -> Optional[str]:
        if not path:
            return None
        if StorageService.is_remote(path):
            return path
        return f"{settings.APP_URL.rstrip('/')}/storage/{path.lstrip('/')}"

    # Supabase Storage

    @staticmethod
    async def _upload_supabase(path: str, content: bytes, content_type: str) -> str:
        base = settings.SUPABASE_URL.rstrip("/")
        bucket = settings.STORAGE_BUCKET
        url = f"{base}/storage/v1/object/{bucket}/{path}"

        headers = {
            "Authorization": f"Bearer {settings.SUPABASE_KEY}",
            "apikey": settings.SUPABASE_KEY,
            "Content-Type": content_type or "application/octet-stream",
            "x-upsert": "true"
        }

        async with httpx.AsyncClient(timeout=30) as client:
            resp = await client.post(url, headers=headers, content=content)

        if resp.status_code not in (200, 201):
            logger.error("Supabase upload failed for %s: %s", path, resp.text)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Storage upload failed: {resp.text}"
            )

        return f"{base}/storage/v1/object/public/{bucket}/{path}"

    @staticmethod
    async def _delete_supabase_url(file_url: str) -> None:
        if not settings.supabase_configured:
            return

        base = settings.SUPABASE_URL.rstrip("/")
        bucket = settings.STORAGE_BUCKET
        prefix = f"{base}/storage/v1/object/public/{bucket}/"
        if not file_url.startswith(prefix):
            return

        url = f"{base}/storage/v1/object/{bucket}/{file_url[len(prefix):]}"
        headers = {
            "Authorization": f"Bearer {settings.SUPABASE_KEY}",
            "apikey": settings.SUPABASE_KEY
        }

        async with httpx.AsyncClient(timeout=30) as client:
            resp = await client.delete(url, headers=headers)

        if resp.status_code not in (200, 204, 404):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Storage delete failed: {resp.text}"
            )


# Singleton
storage_service = StorageService()
