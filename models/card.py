from pydantic import BaseModel, Field, validator
from typing import Optional

from .memory import MemoryState


class CardBase(BaseModel):
    front: str
    back: str


class CardCreate(CardBase):
    @validator("front", "back")
    def strip_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Front and back are required")
        return v


class CardUpdate(BaseModel):
    front: Optional[str] = None
    back: Optional[str] = None


class FlashCard(CardBase):
    id: str
    memory: MemoryState = Field(alias="fsrs")

    class Config:
        populate_by_name = True
