"""Session service: durable per-user conversational state."""

import json
from models.session import Session
from logger import get_logger

logger = get_logger()


class SessionService:
    """Service for loading and saving sessions.

    Sessions are stored as JSON documents keyed by user id. A document that
    cannot be decoded is treated as an empty session, so a corrupted row can
    never take a user's conversation down.
    """

    def __init__(self, db_manager):
        self.db_manager = db_manager

    def load(self, user_id: str) -> Session:
        """Get the session for a user, or a new empty one.

        Raises:
            sqlite3.Error: If the database cannot be read.
        """
        with self.db_manager.connect() as conn:
            row = conn.execute(
                "SELECT data FROM sessions WHERE user_id = ?", (user_id,)
            ).fetchone()

        if row is None:
            return Session()

        try:
            return Session.from_dict(json.loads(row[0]))
        except (ValueError, TypeError) as e:
            # json.JSONDecodeError is a ValueError
            logger.warning(f"Resetting corrupted session for user {user_id}: {e}")
            return Session()

    def save(self, user_id: str, session: Session) -> None:
        """Persist a user's session, replacing any previous one.

        Raises:
            sqlite3.Error: If the write fails.
        """
        data = json.dumps(session.to_dict())

        with self.db_manager.connect() as conn:
            conn.execute(
                """
                INSERT INTO sessions (user_id, data, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(user_id) DO UPDATE SET
                    data = excluded.data,
                    updated_at = excluded.updated_at
                """,
                (user_id, data),
            )
            conn.commit()

    def clear(self, user_id: str) -> None:
        """Reset a user's session to idle."""
        self.save(user_id, Session())
