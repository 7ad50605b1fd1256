import argparse
import logging
import uvicorn
from fastapi import FastAPI, Depends
from contextlib import asynccontextmanager

import sys
from pathlib import Path

# Add project root to path for package imports
base_dir = Path(__file__).parent
sys.path.insert(0, str(base_dir))

from db.database import init_db, get_conn, get_deck_store, get_store
from db.store import DeckStore
from config import load_config
from routes import decks, cards, review, backups, imports  # Import routers
from routes.decks import deck_summary
from utils.session import SessionRegistry
from utils.timestamps import utcnow

logger = logging.getLogger("flashdeck")


def configure_logging() -> None:
    level = load_config()["logging"]["level"]
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


# First-run init
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: init DB and config
    configure_logging()  # Also ensures config exists
    init_db()
    with get_conn() as conn:
        logger.info("FlashDeck ready, %d deck(s) stored", len(get_store(conn).load_decks()))
    yield


app = FastAPI(title="FlashDeck", description="Local-first spaced-repetition flashcards", lifespan=lifespan)
app.state.sessions = SessionRegistry()

# Include routers
app.include_router(decks.router, prefix="/decks", tags=["decks"])
app.include_router(cards.router, prefix="/decks", tags=["cards"])  # /decks/{deck_id}/cards
app.include_router(review.router, prefix="/review", tags=["review"])
app.include_router(backups.router, prefix="/admin", tags=["admin"])
app.include_router(imports.router, prefix="/import", tags=["import"])

# Home - deck overview with due counts
@app.get("/")
async def home(store: DeckStore = Depends(get_deck_store)):
    now = utcnow()
    deck_list = [deck_summary(deck, now) for deck in store.load_decks()]
    return {
        "decks": deck_list,
        "due_total": sum(deck["due"]["total"] for deck in deck_list),
        "open_sessions": len(app.state.sessions),
    }


def export_backup(path: Path) -> None:
    with get_conn() as conn:
        document = get_store(conn).export_app_state()
    path.write_text(document, encoding="utf-8")
    print(f"Exported backup to {path}")


def import_backup(path: Path) -> int:
    text = path.read_text(encoding="utf-8")
    with get_conn() as conn:
        result = get_store(conn).import_app_state(text)
    if not result.success:
        print(f"Import failed: {result.error}", file=sys.stderr)
        return 1
    print(f"Imported {result.deck_count} deck(s) from {path}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="FlashDeck App")
    parser.add_argument("--init", action="store_true", help="Initialize DB and config")
    parser.add_argument("--dev", action="store_true", help="Run in dev mode with reload")
    parser.add_argument("--port", type=int, default=8000, help="Port to serve on")
    parser.add_argument("--export", metavar="PATH", type=Path, help="Write a JSON backup and exit")
    parser.add_argument("--import", dest="import_path", metavar="PATH", type=Path, help="Restore a JSON backup and exit")
    args = parser.parse_args()
    configure_logging()
    if args.init:
        load_config()  # Ensures config is copied if missing
        init_db()
        print("DB initialized and config copied to ~/.flashdeck/")
        sys.exit(0)
    if args.export or args.import_path:
        init_db()
        if args.export:
            export_backup(args.export)
        sys.exit(import_backup(args.import_path) if args.import_path else 0)
    # Run server
    uvicorn.run("main:app", host="127.0.0.1", port=args.port, reload=args.dev, log_level="info")
