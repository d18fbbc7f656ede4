"""
Dialog Store - sessions and per-message history.

The orchestrator depends on the DialogStore protocol only; SQLiteDialogStore
is the implementation wired in by default.
"""
import sqlite3
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Protocol

from marketplace_agent.core.logging import logger
from marketplace_agent.services.media.demo import stable_hash

SESSION_PHASE = "marketplace"
SESSION_ACTIVE = "ACTIVE"


@dataclass
class Session:
    session_id: str
    merchant_id: str
    current_phase: str = SESSION_PHASE
    status: str = SESSION_ACTIVE
    created_at: Optional[str] = None


@dataclass
class DialogMessage:
    message_id: str
    session_id: str
    message_type: str
    content: str
    ai_response: str
    processed_at: Optional[str] = None


def make_message_id(content: str, now_ms: Optional[int] = None) -> str:
    """``TG_<epoch millis mod 10^8>_<4-digit content hash>``, at most 40 chars."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    short_hash = abs(stable_hash(content or "")) % 10000
    return f"TG_{now_ms % 100000000}_{short_hash:04d}"


class DialogStore(Protocol):
    def find_session(self, session_id: str) -> Optional[Session]: ...

    def create_session(self, session_id: str, merchant_id: str) -> Session: ...

    def create_dialog_message(self, message: DialogMessage) -> None: ...

    def find_recent_messages(self, session_id: str, limit: int) -> List[DialogMessage]: ...


class SQLiteDialogStore:
    """SQLite-backed DialogStore."""

    def __init__(self, db_path: str = None):
        """Initialize dialog store."""
        if db_path is None:
            db_path = Path.cwd() / "data" / "dialog.db"

        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        """Initialize database schema."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS dialog_session (
                    session_id TEXT PRIMARY KEY,
                    merchant_id TEXT NOT NULL,
                    current_phase TEXT NOT NULL,
                    status TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)

            # message_id is not unique: two identical messages in the same millisecond share one
            conn.execute("""
                CREATE TABLE IF NOT EXISTS dialog_message (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    message_id TEXT NOT NULL,
                    session_id TEXT NOT NULL,
                    message_type TEXT NOT NULL,
                    content TEXT,
                    ai_response TEXT,
                    processed_at TEXT NOT NULL,
                    FOREIGN KEY (session_id) REFERENCES dialog_session(session_id)
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_dialog_message_session
                ON dialog_message(session_id, processed_at)
            """)

            conn.commit()

    def find_session(self, session_id: str) -> Optional[Session]:
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            row = conn.execute(
                "SELECT * FROM dialog_session WHERE session_id = ?", (session_id,)
            ).fetchone()
        return Session(**dict(row)) if row else None

    def create_session(self, session_id: str, merchant_id: str) -> Session:
        session = Session(session_id, merchant_id, created_at=datetime.now().isoformat())
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                INSERT INTO dialog_session (session_id, merchant_id, current_phase, status, created_at)
                VALUES (?, ?, ?, ?, ?)
            """, (session.session_id, session.merchant_id, session.current_phase,
                  session.status, session.created_at))
            conn.commit()
        logger.info(f"Created session {session_id} for merchant {merchant_id}")
        return session

    def create_dialog_message(self, message: DialogMessage) -> None:
        processed_at = message.processed_at or datetime.now().isoformat()
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                INSERT INTO dialog_message
                (message_id, session_id, message_type, content, ai_response, processed_at)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (message.message_id, message.session_id, message.message_type,
                  message.content, message.ai_response, processed_at))
            conn.commit()

    def find_recent_messages(self, session_id: str, limit: int) -> List[DialogMessage]:
        """Most recent first."""
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            rows = conn.execute("""
                SELECT message_id, session_id, message_type, content, ai_response, processed_at
                FROM dialog_message
                WHERE session_id = ?
                ORDER BY processed_at DESC, id DESC
                LIMIT ?
            """, (session_id, limit)).fetchall()
        return [DialogMessage(**dict(row)) for row in rows]
