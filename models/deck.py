from pydantic import BaseModel, Field, validator
from typing import List

from utils.timestamps import Timestamp
from .card import FlashCard


class DeckBase(BaseModel):
    name: str


class DeckCreate(DeckBase):
    @validator("name")
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class DeckRename(DeckCreate):
    pass


class Deck(DeckBase):
    id: str
    cards: List[FlashCard] = Field(default_factory=list)
    created_at: Timestamp = Field(alias="createdAt")

    class Config:
        populate_by_name = True
