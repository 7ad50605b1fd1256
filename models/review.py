from pydantic import BaseModel, Field, validator
from typing import Dict, List, Optional

from .card import FlashCard
from .memory import Grade, MemoryState


class ReviewPrefs(BaseModel):
    review_count: int = Field(20, ge=1, alias="reviewCount")
    new_card_limit: int = Field(10, ge=0, alias="newCardLimit")

    class Config:
        populate_by_name = True


class ReviewStart(BaseModel):
    limit: Optional[int] = Field(None, ge=1)
    new_card_limit: Optional[int] = Field(None, ge=0)
    use_prefs: bool = True


class GradeSubmit(BaseModel):
    grade: Grade

    @validator("grade", pre=True)
    def parse_grade(cls, v):
        if isinstance(v, str):
            v = v.strip()
            if v.isdigit():
                return int(v)
            if v.upper() not in Grade.__members__:
                raise ValueError("Grade must be 'again', 'hard', 'good', or 'easy'")
            return Grade[v.upper()]
        return v


class ReviewResults(BaseModel):
    cards: List[FlashCard]


class SessionView(BaseModel):
    session_id: str
    deck_id: str
    total: int
    position: int
    remaining: int
    finished: bool
    card: Optional[FlashCard] = None
    next_review: Optional[str] = None


class GradePreview(BaseModel):
    card_id: str
    outcomes: Dict[str, MemoryState]
    labels: Dict[str, str]
