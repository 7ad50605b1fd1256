from pydantic import BaseModel, Field
from typing import Dict, List, Literal, Optional

from utils.timestamps import Timestamp
from .deck import Deck
from .review import ReviewPrefs

BACKUP_VERSION = 1


class AppState(BaseModel):
    version: Literal[1] = BACKUP_VERSION
    exported_at: Timestamp = Field(alias="exportedAt")
    decks: List[Deck] = Field(default_factory=list)
    review_prefs: Dict[str, ReviewPrefs] = Field(default_factory=dict, alias="reviewPrefs")

    class Config:
        populate_by_name = True


class ImportResult(BaseModel):
    success: bool
    deck_count: int = 0
    error: Optional[str] = None
