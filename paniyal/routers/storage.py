# paniyal/routers/storage.py
from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse

from paniyal.config.settings import settings
from paniyal.services.file_storage import file_storage

router = APIRouter(prefix=f"/storage/{settings.STORAGE['bucket']}", tags=["Storage"])


@router.get("/{storage_path:path}")
def get_document(storage_path: str):
    """Publicly readable task documents, addressed by their storage path"""
    path = file_storage.resolve(storage_path)
    if path is None:
        raise HTTPException(status_code=404, detail="Document not found")
    return FileResponse(path, filename=path.name)
