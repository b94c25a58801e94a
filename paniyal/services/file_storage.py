# paniyal/services/file_storage.py
import os
import shutil
import tempfile
import logging
from pathlib import Path
from typing import Iterable, Optional, Tuple

from fastapi import UploadFile, HTTPException
from sqlalchemy.orm import Session

from paniyal.config.settings import settings
from paniyal.models.task import Task
from paniyal.services.file_validation import file_validator

logger = logging.getLogger(__name__)

# In-flight uploads, skipped by the orphan cleanup
TEMP_PREFIX = ".upload-"


class FileStorageService:
    """Stores task documents on disk under `<upload_dir>/<bucket>/documents/<task_id>/`"""

    def __init__(self, upload_dir: str = settings.STORAGE['upload_dir'],
                 bucket: str = settings.STORAGE['bucket'],
                 max_file_size: int = settings.STORAGE['max_document_size']):
        self.upload_dir = Path(upload_dir)
        self.bucket = bucket
        self.max_file_size = max_file_size
        self.allowed_extensions = set(settings.STORAGE['allowed_extensions'])

    @property
    def root(self) -> Path:
        return self.upload_dir / self.bucket

    def validate_file(self, file: UploadFile) -> Tuple[bool, str]:
        """
        Validate an upload's name and declared size before touching the disk

        Args:
            file: FastAPI UploadFile object

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not file.filename:
            return False, "File must have a filename"

        # Check for dangerous file names
        dangerous_patterns = ['..', '/', '\\', '<', '>', ':', '"', '|', '?', '*', '\x00']
        if any(pattern in file.filename for pattern in dangerous_patterns):
            return False, "Filename contains invalid characters"

        file_ext = Path(file.filename).suffix.lower()
        if file_ext not in self.allowed_extensions:
            return False, f"File type '{file_ext}' is not allowed. Allowed types: {', '.join(sorted(self.allowed_extensions))}"

        return True, ""

    def document_path(self, task_id: int, filename: str) -> str:
        """Storage path recorded on the task"""
        return f"documents/{task_id}/{filename}"

    def save_document(self, file: UploadFile, task_id: int) -> Tuple[str, int]:
        """
        Save an uploaded document for a task, replacing a file with the same name

        Returns:
            Tuple of (storage_path, file_size)
        """
        is_valid, error_msg = self.validate_file(file)
        if not is_valid:
            raise HTTPException(status_code=400, detail=error_msg)

        declared_size = getattr(file, 'size', None)
        if declared_size and declared_size > self.max_file_size:
            raise HTTPException(
                status_code=413,
                detail=f"File size exceeds maximum allowed size of {self.max_file_size / (1024*1024):.1f}MB"
            )

        storage_path = self.document_path(task_id, file.filename)
        file_path = self.root / storage_path
        file_path.parent.mkdir(parents=True, exist_ok=True)

        # Write next to the target and only replace it once the upload checks out
        temp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                dir=file_path.parent, prefix=TEMP_PREFIX, suffix=file_path.suffix, delete=False
            ) as buffer:
                temp_path = Path(buffer.name)
                shutil.copyfileobj(file.file, buffer)
        except OSError as e:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            logger.error(f"Error saving file {file.filename}: {e}")
            raise HTTPException(status_code=500, detail=f"Error saving file: {e}")

        try:
            file_size = temp_path.stat().st_size
            if file_size > self.max_file_size:
                raise HTTPException(
                    status_code=413,
                    detail=f"File size exceeds maximum allowed size of {self.max_file_size / (1024*1024):.1f}MB"
                )

            is_valid, errors = file_validator.comprehensive_validation(str(temp_path), self.max_file_size)
            if not is_valid:
                raise HTTPException(
                    status_code=400,
                    detail=f"File validation failed for {file.filename}: {'; '.join(errors)}"
                )

            os.replace(temp_path, file_path)
        except HTTPException:
            temp_path.unlink(missing_ok=True)
            raise
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            logger.error(f"Error storing file {file.filename}: {e}")
            raise HTTPException(status_code=500, detail=f"Error saving file: {e}")

        logger.info(f"Document saved: {file_path} ({file_size} bytes)")
        return storage_path, file_size

    def resolve(self, storage_path: str) -> Optional[Path]:
        """Absolute path of a stored document, or None if missing or outside the bucket"""
        root = self.root.resolve()
        candidate = (root / storage_path).resolve()
        if root not in candidate.parents or not candidate.is_file():
            return None
        return candidate

    def delete_document(self, storage_path: Optional[str]) -> bool:
        """
        Delete a stored document

        Returns:
            True if file was deleted successfully, False otherwise
        """
        if not storage_path:
            return False
        path = self.resolve(storage_path)
        if path is None:
            logger.warning(f"File not found for deletion: {storage_path}")
            return False
        try:
            path.unlink()
        except OSError as e:
            logger.error(f"Error deleting file {storage_path}: {e}")
            return False
        logger.info(f"File deleted successfully: {storage_path}")
        return True

    def delete_documents(self, storage_paths: Iterable[Optional[str]]) -> int:
        return sum(1 for path in storage_paths if self.delete_document(path))

    def cleanup_orphaned_files(self, db: Session) -> int:
        """
        Remove stored documents that no task references any more

        Returns:
            Number of files cleaned up
        """
        documents_dir = self.root / "documents"
        if not documents_dir.is_dir():
            return 0

        referenced = {row[0] for row in db.query(Task.document).filter(Task.document.isnot(None)).all()}

        deleted_count = 0
        for dirpath, _, filenames in os.walk(documents_dir):
            for filename in filenames:
                if filename.startswith(TEMP_PREFIX):
                    continue
                storage_path = Path(dirpath, filename).relative_to(self.root).as_posix()
                if storage_path not in referenced and self.delete_document(storage_path):
                    deleted_count += 1

        logger.info(f"Cleaned up {deleted_count} orphaned files")
        return deleted_count


# Global instance
file_storage = FileStorageService()
