"""SQLite-backed identity and usage storage for the AI proxy."""

from __future__ import annotations

import hashlib
import secrets
import sqlite3
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Dict, Iterator, List, Optional
from uuid import uuid4

_PASSWORD_ITERATIONS = 100_000


class UserAlreadyExistsError(ValueError):
    """Raised when attempting to create a user with a duplicate username."""


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _hash_password(password: str, *, salt: Optional[str] = None) -> tuple[str, str]:
    if salt is None:
        salt_bytes = secrets.token_bytes(16)
        salt_hex = salt_bytes.hex()
    else:
        salt_hex = salt
        salt_bytes = bytes.fromhex(salt)

    password_hash = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt_bytes,
        _PASSWORD_ITERATIONS,
    ).hex()
    return password_hash, salt_hex


class Storage:
    """Users, identity tokens and the append-only ``ai_usage`` table."""

    def __init__(self, db_path: Path, *, token_ttl_hours: int = 24 * 7) -> None:
        self.db_path = Path(db_path)
        self.token_ttl_hours = token_ttl_hours

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def initialize_database(self) -> None:
        """Ensure that the SQLite schema exists."""

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    username TEXT UNIQUE NOT NULL,
                    password_hash TEXT NOT NULL,
                    password_salt TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS sessions (
                    token_hash TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    expires_at TEXT NOT NULL,
                    FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
                );
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS ai_usage (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    message_length INTEGER NOT NULL,
                    response_length INTEGER NOT NULL,
                    created_at TEXT NOT NULL
                );
                """
            )

    # Users and identity tokens

    def create_user(self, username: str, password: str) -> str:
        username = username.strip()
        if not username:
            raise ValueError("Username cannot be empty")
        if not password:
            raise ValueError("Password cannot be empty")

        user_id = str(uuid4())
        now = datetime.now(UTC).isoformat()
        password_hash, salt_hex = _hash_password(password)

        with self._connect() as conn:
            try:
                conn.execute(
                    "INSERT INTO users(id, username, password_hash, password_salt, created_at) VALUES (?, ?, ?, ?, ?)",
                    (user_id, username, password_hash, salt_hex, now),
                )
            except sqlite3.IntegrityError as exc:  # duplicate username
                raise UserAlreadyExistsError(f"Username '{username}' is already taken") from exc

        return user_id

    def authenticate_user(self, username: str, password: str) -> Optional[Dict[str, str]]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, username, password_hash, password_salt FROM users WHERE username = ?",
                (username.strip(),),
            ).fetchone()

        if not row:
            return None

        computed_hash, _ = _hash_password(password, salt=row["password_salt"])
        if not secrets.compare_digest(computed_hash, row["password_hash"]):
            return None

        return {"id": row["id"], "username": row["username"]}

    def issue_token(self, user_id: str) -> str:
        token = secrets.token_urlsafe(32)
        now = datetime.now(UTC)
        expires_at = now + timedelta(hours=self.token_ttl_hours)

        with self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO sessions(token_hash, user_id, created_at, expires_at) VALUES (?, ?, ?, ?)",
                (_hash_token(token), user_id, now.isoformat(), expires_at.isoformat()),
            )

        return token

    def get_user_by_token(self, token: str) -> Optional[Dict[str, str]]:
        if not token:
            return None

        token_hash = _hash_token(token)
        now_iso = datetime.now(UTC).isoformat()

        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT u.id, u.username, s.expires_at
                FROM sessions s
                JOIN users u ON s.user_id = u.id
                WHERE s.token_hash = ?
                """,
                (token_hash,),
            ).fetchone()

            if not row:
                return None

            if row["expires_at"] <= now_iso:
                conn.execute("DELETE FROM sessions WHERE token_hash = ?", (token_hash,))
                return None

        return {"id": row["id"], "username": row["username"]}

    def revoke_token(self, token: str) -> None:
        if not token:
            return
        with self._connect() as conn:
            conn.execute("DELETE FROM sessions WHERE token_hash = ?", (_hash_token(token),))

    # Usage analytics

    def record_usage(self, user_id: str, message_length: int, response_length: int) -> None:
        """Append one usage row; the timestamp is assigned here."""

        now = datetime.now(UTC).isoformat()
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO ai_usage(user_id, message_length, response_length, created_at) VALUES (?, ?, ?, ?)",
                (user_id, message_length, response_length, now),
            )

    def list_usage(self, user_id: str) -> List[Dict[str, object]]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT user_id, message_length, response_length, created_at FROM ai_usage "
                "WHERE user_id = ? ORDER BY id",
                (user_id,),
            ).fetchall()
        return [dict(row) for row in rows]
