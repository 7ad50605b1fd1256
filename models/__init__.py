from .memory import Grade, MemoryState, State, new_memory_state
from .card import CardCreate, CardUpdate, FlashCard
from .deck import Deck, DeckCreate, DeckRename
from .review import GradePreview, GradeSubmit, ReviewPrefs, ReviewResults, ReviewStart, SessionView
from .backup import BACKUP_VERSION, AppState, ImportResult

__all__ = [
    'Grade', 'MemoryState', 'State', 'new_memory_state',
    'CardCreate', 'CardUpdate', 'FlashCard',
    'Deck', 'DeckCreate', 'DeckRename',
    'GradePreview', 'GradeSubmit', 'ReviewPrefs', 'ReviewResults', 'ReviewStart', 'SessionView',
    'BACKUP_VERSION', 'AppState', 'ImportResult',
]
