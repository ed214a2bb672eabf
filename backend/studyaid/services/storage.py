"""
Storage Service

File validation, upload into per-user folders, signed retrieval URLs and
removal. Uploads are critical writes: the session is refreshed first if it
is close to expiry, since a large upload can outlive a nearly-expired token.

Usage:
    service = StorageService(storage, executor)

    service.validate_file(name, content_type, len(data))
    result = await service.upload_file(name, content_type, data)
"""

import logging
import re
from datetime import datetime
from typing import Optional

from studyaid.clients.protocols import StorageClient
from studyaid.config import settings, yaml_config
from studyaid.middleware.error_handling import ValidationError
from studyaid.models.documents import UploadResult
from studyaid.services.base import Clock, utcnow
from studyaid.session.executor import ResilientQueryExecutor

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_TYPES = {
    "application/pdf": "PDF",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "DOCX",
    "text/plain": "TXT",
}

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def allowed_file_types() -> dict[str, str]:
    """MIME type → label for accepted uploads."""
    configured = yaml_config.get("uploads", {}).get("allowed_types")
    return dict(configured) if configured else dict(DEFAULT_ALLOWED_TYPES)


def sanitize_filename(filename: str) -> str:
    return _UNSAFE_CHARS.sub("_", filename)


def build_storage_path(user_id: str, filename: str, now: Optional[datetime] = None) -> str:
    """``{user_id}/{epoch_millis}_{sanitized_name}``"""
    current = now or utcnow()
    millis = int(current.timestamp() * 1000)
    return f"{user_id}/{millis}_{sanitize_filename(filename)}"


class StorageService:
    def __init__(
        self,
        storage: StorageClient,
        executor: ResilientQueryExecutor,
        clock: Clock = utcnow,
        max_file_size_mb: int = settings.UPLOAD_MAX_FILE_SIZE_MB,
        signed_url_ttl: int = settings.SIGNED_URL_TTL_SECONDS,
    ) -> None:
        self.storage = storage
        self.executor = executor
        self.clock = clock
        self.max_file_size_mb = max_file_size_mb
        self.signed_url_ttl = signed_url_ttl

    def validate_file(self, filename: str, content_type: str, size: int) -> None:
        """
        Reject unsupported types and oversized files.

        Raises:
            ValidationError: With a user-facing message
        """
        allowed = allowed_file_types()
        if content_type not in allowed:
            labels = ", ".join(allowed.values())
            raise ValidationError(
                f"Invalid file type. Please upload a {labels} file.",
                details={"filename": filename, "content_type": content_type},
            )

        if size > self.max_file_size_mb * 1024 * 1024:
            raise ValidationError(
                f"File is too large. Maximum size is {self.max_file_size_mb}MB.",
                details={"filename": filename, "size": size},
            )

    async def upload_file(
        self,
        filename: str,
        content_type: str,
        data: bytes,
        user_id: Optional[str] = None,
    ) -> UploadResult:
        """
        Validate and upload a file into the user's folder.

        Returns:
            The stored path and a signed URL for it
        """
        self.validate_file(filename, content_type, len(data))
        owner = user_id or await self.executor.coordinator.get_current_user_id()
        path = build_storage_path(owner, filename, self.clock())

        stored = await self.executor.run_write(
            lambda: self.storage.upload(path, data, content_type),
            critical=True,
            name="upload_file",
        )
        logger.info(f"Uploaded {filename} ({len(data) / 1024:.1f} KB) to {stored}")

        url = await self.get_signed_url(stored)
        return UploadResult(path=stored, url=url)

    async def get_signed_url(self, path: str) -> str:
        """Signed retrieval URL valid for one hour by default."""
        return await self.executor.run(
            lambda token: self.storage.create_signed_url(path, self.signed_url_ttl),
            name="get_signed_url",
        )

    async def delete_file(self, path: str) -> None:
        await self.executor.run_write(lambda: self.storage.remove([path]), name="delete_file")

    @staticmethod
    def extract_text(filename: str, content_type: str, data: bytes) -> str:
        """
        Extract text from an uploaded file.

        Plain text is decoded directly. PDF and DOCX bodies are processed
        server-side by the AI pipeline, so a placeholder note is stored.

        Raises:
            ValidationError: For unsupported types
        """
        if content_type == "text/plain":
            return data.decode("utf-8", errors="replace")

        label = DEFAULT_ALLOWED_TYPES.get(content_type)
        if label in ("PDF", "DOCX"):
            logger.warning(f"{label} text extraction happens server-side ({filename})")
            return (
                f"[{label} content from: {filename}]\n\n"
                f"Note: Full {label} text extraction happens during AI processing."
            )

        raise ValidationError(f"Unsupported file type: {content_type}")
