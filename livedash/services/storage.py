"""
Storage - sqlite3 query layer for song history and door scans.

Every query returns a snapshot of the current state. "No rows" is a normal
result (None or an empty list), while sqlite3.Error propagates to the caller
as a transient failure.

The connection is shared by all refresh workers, so every statement runs
under one lock.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
import time
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from livedash.domain import Scan, TopStat, Track

logger = logging.getLogger(__name__)

CURRENT_DB_VERSION = 1

SCHEMA_V1 = """
    CREATE TABLE IF NOT EXISTS song (
        id INTEGER PRIMARY KEY,
        title TEXT NOT NULL,
        spotify_id TEXT NOT NULL DEFAULT '',
        duration_ms INTEGER NOT NULL DEFAULT 0,
        lyrics_type TEXT NOT NULL DEFAULT '',
        lyrics TEXT NOT NULL DEFAULT ''
    );
    CREATE TABLE IF NOT EXISTS song_artist (
        id INTEGER PRIMARY KEY,
        name TEXT NOT NULL UNIQUE
    );
    CREATE TABLE IF NOT EXISTS song_artist_song (
        artist_id INTEGER NOT NULL REFERENCES song_artist(id),
        song_id INTEGER NOT NULL REFERENCES song(id),
        position INTEGER NOT NULL DEFAULT 0,
        PRIMARY KEY (artist_id, song_id)
    );
    CREATE TABLE IF NOT EXISTS song_genre (
        id INTEGER PRIMARY KEY,
        genre TEXT NOT NULL UNIQUE
    );
    CREATE TABLE IF NOT EXISTS song_artist_genre (
        artist_id INTEGER NOT NULL REFERENCES song_artist(id),
        genre_id INTEGER NOT NULL REFERENCES song_genre(id),
        PRIMARY KEY (artist_id, genre_id)
    );
    CREATE TABLE IF NOT EXISTS song_history (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        song_id INTEGER NOT NULL REFERENCES song(id),
        created_at REAL NOT NULL
    );
    CREATE TABLE IF NOT EXISTS scan (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        scan_time REAL NOT NULL
    );
    CREATE TABLE IF NOT EXISTS season (
        id INTEGER PRIMARY KEY,
        name TEXT NOT NULL,
        start_at REAL NOT NULL,
        end_at REAL NOT NULL
    );
"""


class Database:
    """Thread-safe wrapper around one sqlite3 connection."""

    def __init__(self, path: Union[str, Path] = ":memory:"):
        self._path = str(path)
        if self._path != ":memory:":
            Path(self._path).parent.mkdir(parents=True, exist_ok=True)

        self._lock = threading.Lock()
        self._db = sqlite3.connect(self._path, check_same_thread=False)
        self._db.row_factory = sqlite3.Row
        self._upgrade_if_needed()
        logger.info(f"Database ready: {self._path}")

    @property
    def path(self) -> str:
        return self._path

    def close(self) -> None:
        with self._lock:
            self._db.close()

    def _upgrade_if_needed(self) -> None:
        with self._lock:
            existing_version = self._db.execute("PRAGMA user_version").fetchone()[0]
            if existing_version >= CURRENT_DB_VERSION:
                return

            logger.info(f"Migrating database from version {existing_version} to {CURRENT_DB_VERSION}")
            if existing_version <= 0:
                self._db.executescript(SCHEMA_V1)
                self._db.execute(f"PRAGMA user_version={CURRENT_DB_VERSION}")
            self._db.commit()

    def _fetchall(self, sql: str, params: Sequence = ()) -> List[sqlite3.Row]:
        with self._lock:
            return self._db.execute(sql, params).fetchall()

    def _fetchone(self, sql: str, params: Sequence = ()) -> Optional[sqlite3.Row]:
        with self._lock:
            return self._db.execute(sql, params).fetchone()

    # -------------------------------
    # SONGS
    # -------------------------------
    def get_last_song(self) -> Optional[Track]:
        """Most recent song history entry with its song data, or None."""
        with self._lock:
            row = self._db.execute("""
                SELECT h.id AS history_id, h.created_at, s.id AS song_id, s.title,
                       s.spotify_id, s.duration_ms, s.lyrics_type, s.lyrics
                FROM song_history h
                JOIN song s ON s.id = h.song_id
                ORDER BY h.created_at DESC, h.id DESC
                LIMIT 1
            """).fetchone()
            if row is None:
                return None

            artists = self._db.execute("""
                SELECT a.name
                FROM song_artist_song sas
                JOIN song_artist a ON a.id = sas.artist_id
                WHERE sas.song_id = ?
                ORDER BY sas.position, a.name
            """, (row["song_id"],)).fetchall()

        return Track(
            id=row["history_id"],
            title=row["title"],
            artists=tuple(a["name"] for a in artists),
            spotify_id=row["spotify_id"],
            duration_sec=row["duration_ms"] / 1000.0,
            started_at=row["created_at"],
            lyrics_type=row["lyrics_type"],
            lyrics=row["lyrics"],
        )

    def get_song_history(self, limit: int = 5) -> List[str]:
        """Titles of the last `limit` plays, oldest first."""
        rows = self._fetchall("""
            SELECT s.title
            FROM song_history h
            JOIN song s ON s.id = h.song_id
            ORDER BY h.created_at DESC, h.id DESC
            LIMIT ?
        """, (limit,))
        return [row["title"] for row in reversed(rows)]

    def get_top_songs(self, limit: int = 5) -> List[TopStat]:
        rows = self._fetchall("""
            SELECT s.title AS name, COUNT(*) AS amount
            FROM song_history h
            JOIN song s ON s.id = h.song_id
            GROUP BY s.id
            ORDER BY amount DESC, name
            LIMIT ?
        """, (limit,))
        return _top_stats(rows)

    def get_top_artists(self, limit: int = 5) -> List[TopStat]:
        rows = self._fetchall("""
            SELECT a.name AS name, COUNT(*) AS amount
            FROM song_history h
            JOIN song_artist_song sas ON sas.song_id = h.song_id
            JOIN song_artist a ON a.id = sas.artist_id
            GROUP BY a.id
            ORDER BY amount DESC, name
            LIMIT ?
        """, (limit,))
        return _top_stats(rows)

    def get_top_genres(self, limit: int = 5) -> List[TopStat]:
        rows = self._fetchall("""
            SELECT g.genre AS name, COUNT(*) AS amount
            FROM song_history h
            JOIN song_artist_song sas ON sas.song_id = h.song_id
            JOIN song_artist_genre sag ON sag.artist_id = sas.artist_id
            JOIN song_genre g ON g.id = sag.genre_id
            GROUP BY g.id
            ORDER BY amount DESC, name
            LIMIT ?
        """, (limit,))
        return _top_stats(rows)

    # -------------------------------
    # SCANS
    # -------------------------------
    def get_last_scan(self) -> Optional[Scan]:
        row = self._fetchone("SELECT id, scan_time FROM scan ORDER BY id DESC LIMIT 1")
        return Scan(id=row["id"], scan_time=row["scan_time"]) if row else None

    def get_scans_since(self, scan_id: int) -> List[Scan]:
        """All scans with an ID above `scan_id`, oldest first."""
        rows = self._fetchall(
            "SELECT id, scan_time FROM scan WHERE id > ? ORDER BY scan_time, id",
            (scan_id,),
        )
        return [Scan(id=row["id"], scan_time=row["scan_time"]) for row in rows]

    def get_scans_in_current_season(self, now: Optional[float] = None) -> Optional[int]:
        """Scan count of the season covering `now`, None outside any season."""
        now = time.time() if now is None else now
        row = self._fetchone("""
            SELECT COUNT(sc.id) AS amount
            FROM season se
            LEFT JOIN scan sc ON sc.scan_time >= se.start_at AND sc.scan_time < se.end_at
            WHERE se.start_at <= ? AND ? < se.end_at
            GROUP BY se.id
            ORDER BY se.start_at DESC
            LIMIT 1
        """, (now, now))
        return row["amount"] if row else None

    # -------------------------------
    # WRITERS
    # -------------------------------
    def add_song(
        self,
        title: str,
        artists: Iterable[str] = (),
        genres: Iterable[str] = (),
        duration_sec: float = 0.0,
        lyrics_type: str = "",
        lyrics: str = "",
        spotify_id: str = "",
    ) -> int:
        """Insert a song; `genres` are attached to each of its artists."""
        genre_names = list(genres)
        with self._lock:
            cursor = self._db.execute(
                "INSERT INTO song (title, spotify_id, duration_ms, lyrics_type, lyrics) VALUES (?, ?, ?, ?, ?)",
                (title, spotify_id, int(round(duration_sec * 1000)), lyrics_type, lyrics),
            )
            song_id = cursor.lastrowid

            for position, name in enumerate(artists):
                artist_id = self._upsert_id("song_artist", "name", name)
                self._db.execute(
                    "INSERT OR IGNORE INTO song_artist_song (artist_id, song_id, position) VALUES (?, ?, ?)",
                    (artist_id, song_id, position),
                )
                for genre in genre_names:
                    genre_id = self._upsert_id("song_genre", "genre", genre)
                    self._db.execute(
                        "INSERT OR IGNORE INTO song_artist_genre (artist_id, genre_id) VALUES (?, ?)",
                        (artist_id, genre_id),
                    )

            self._db.commit()
            return song_id

    def add_play(self, song_id: int, created_at: Optional[float] = None) -> int:
        """Record that a song started playing. Returns the history ID."""
        created_at = time.time() if created_at is None else created_at
        with self._lock:
            cursor = self._db.execute(
                "INSERT INTO song_history (song_id, created_at) VALUES (?, ?)",
                (song_id, created_at),
            )
            self._db.commit()
            return cursor.lastrowid

    def add_scan(self, scan_time: Optional[float] = None) -> int:
        scan_time = time.time() if scan_time is None else scan_time
        with self._lock:
            cursor = self._db.execute("INSERT INTO scan (scan_time) VALUES (?)", (scan_time,))
            self._db.commit()
            return cursor.lastrowid

    def add_season(self, name: str, start_at: float, end_at: float) -> int:
        with self._lock:
            cursor = self._db.execute(
                "INSERT INTO season (name, start_at, end_at) VALUES (?, ?, ?)",
                (name, start_at, end_at),
            )
            self._db.commit()
            return cursor.lastrowid

    def _upsert_id(self, table: str, column: str, value: str) -> int:
        # Caller holds the lock
        self._db.execute(f"INSERT OR IGNORE INTO {table} ({column}) VALUES (?)", (value,))
        row = self._db.execute(f"SELECT id FROM {table} WHERE {column} = ?", (value,)).fetchone()
        return row["id"]


def _top_stats(rows: Iterable[sqlite3.Row]) -> List[TopStat]:
    return [TopStat(name=row["name"], amount=row["amount"]) for row in rows]
