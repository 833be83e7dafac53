"""
Local-disk storage for application documents and payment proofs.
"""
import logging
import os
import uuid
from typing import Optional

from fastapi import Request, UploadFile

from app import settings

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".pdf"}
ALLOWED_CONTENT_TYPES = {"image/png", "image/jpeg", "image/jpg", "application/pdf"}

DOCUMENT = "document"
PAYMENT_PROOF = "payment_proof"


class StorageError(Exception):
    """Upload rejected (type or size) or could not be written."""


class LocalFileStorage:
    def __init__(
        self,
        root: str,
        public_prefix: str = "/uploads/applications",
        max_document_size: int = settings.MAX_DOCUMENT_SIZE,
        max_proof_size: int = settings.MAX_PAYMENT_PROOF_SIZE,
    ):
        self.root = root
        self.public_prefix = public_prefix.rstrip("/")
        self.limits = {DOCUMENT: max_document_size, PAYMENT_PROOF: max_proof_size}

    def save(self, upload: UploadFile, kind: str = DOCUMENT) -> str:
        """Validate and store an upload under a unique name; returns its public locator."""
        if kind not in self.limits:
            raise ValueError(f"Unknown upload kind: {kind}")

        filename = upload.filename or ""
        extension = os.path.splitext(filename)[1].lower()
        if extension not in ALLOWED_EXTENSIONS or (
            upload.content_type and upload.content_type.lower() not in ALLOWED_CONTENT_TYPES
        ):
            raise StorageError(f"{filename or 'File'}: only PNG, JPG and PDF files are allowed")

        limit = self.limits[kind]
        content = upload.file.read(limit + 1)
        if len(content) > limit:
            raise StorageError(
                f"{filename}: file exceeds the {limit // (1024 * 1024)}MB limit"
            )
        if not content:
            raise StorageError(f"{filename}: file is empty")

        stored_name = f"{kind}-{uuid.uuid4().hex}{extension}"
        os.makedirs(self.root, exist_ok=True)
        with open(os.path.join(self.root, stored_name), "wb") as fh:
            fh.write(content)

        logger.info("Stored %s upload %s (%d bytes)", kind, stored_name, len(content))
        return f"{self.public_prefix}/{stored_name}"

    def delete(self, locator: Optional[str]) -> None:
        """Remove a stored file; unknown locators are ignored."""
        if not locator or not locator.startswith(self.public_prefix + "/"):
            return
        path = os.path.join(self.root, os.path.basename(locator))
        if os.path.exists(path):
            os.remove(path)
            logger.info("Removed upload %s", os.path.basename(locator))


def build_storage() -> LocalFileStorage:
    return LocalFileStorage(root=os.path.join(settings.UPLOAD_DIR, "applications"))


def get_storage(request: Request) -> LocalFileStorage:
    """Dependency returning the storage built at startup."""
    return request.app.state.storage
