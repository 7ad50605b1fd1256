import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import Response

from db import database
from db.database import backup_timestamp, create_backup_file, get_deck_store
from db.store import DeckStore, parse_backup
from models.backup import ImportResult
from utils.errors import InvalidBackupFormat

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/backup")
async def download_backup(store: DeckStore = Depends(get_deck_store)):
    document = store.export_app_state()
    filename = f"flashdeck-backup-{backup_timestamp()}.json"
    headers = {"Content-Disposition": f"attachment; filename={filename}"}
    return Response(content=document, media_type="application/json", headers=headers)

@router.post("/restore")
async def restore_backup(
    file: UploadFile = File(...),
    store: DeckStore = Depends(get_deck_store),
) -> ImportResult:
    if not file.filename:
        raise HTTPException(status_code=400, detail="Backup file is required")
    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Backup file is empty")
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise HTTPException(status_code=400, detail="Backup file must be UTF-8 JSON") from exc
    try:
        parse_backup(text)
    except InvalidBackupFormat as exc:
        raise HTTPException(status_code=400, detail=exc.reason) from exc
    if store.load_decks():
        safety_path = database.BACKUP_DIR / f"safety-{backup_timestamp()}.json"
        create_backup_file(safety_path)
        logger.info("Saved current state to %s before restore", safety_path)
    result = store.import_app_state(text)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)
    return result
