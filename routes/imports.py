from typing import List

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from db.database import get_deck_store
from db.store import DeckStore
from utils.anki import AnkiParseResult, cards_from_columns, parse_anki_txt
from .decks import require_deck

router = APIRouter()

PREVIEW_ROWS = 5


def parse_column_list(value: str) -> List[int]:
    columns: List[int] = []
    for item in value.split(","):
        item = item.strip()
        if not item:
            continue
        try:
            columns.append(int(item))
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid column number: {item}")
    return columns


async def read_export(file: UploadFile) -> AnkiParseResult:
    if not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")
    content = await file.read()
    parsed = parse_anki_txt(content.decode("utf-8", errors="ignore"))
    if parsed.column_count == 0:
        raise HTTPException(status_code=400, detail="No rows found in export")
    return parsed


@router.post("/anki/preview")
async def preview_export(file: UploadFile = File(...)):
    """Show the columns of an Anki text export so the user can pick front/back."""
    parsed = await read_export(file)
    rows = [
        [column[row] for column in parsed.columns]
        for row in range(min(parsed.row_count, PREVIEW_ROWS))
    ]
    return {
        "separator": parsed.separator,
        "is_html": parsed.is_html,
        "column_count": parsed.column_count,
        "row_count": parsed.row_count,
        "rows": rows,
    }


@router.post("/anki/{deck_id}", status_code=status.HTTP_201_CREATED)
async def import_export(
    deck_id: str,
    file: UploadFile = File(...),
    front_columns: str = Form(..., description="Comma-separated column numbers for the front"),
    back_columns: str = Form(..., description="Comma-separated column numbers for the back"),
    store: DeckStore = Depends(get_deck_store),
):
    """Add one card per exported row using the chosen columns."""
    require_deck(store, deck_id)
    parsed = await read_export(file)
    fronts = parse_column_list(front_columns)
    backs = parse_column_list(back_columns)
    if not fronts or not backs:
        raise HTTPException(status_code=400, detail="Choose at least one front and one back column")
    try:
        pairs = cards_from_columns(parsed, fronts, backs)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    added = store.add_cards(deck_id, pairs) or []
    return {"added": len(added), "skipped": parsed.row_count - len(added)}
