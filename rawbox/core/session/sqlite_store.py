"""
SQLite credential storage implementation.

Provides persistent credential storage using a SQLite database file.
"""
import sqlite3
import threading
from pathlib import Path
from datetime import datetime
from typing import Optional, Union
from contextlib import contextmanager

from ..api.config import StorageConfig
from .models import Credential, CredentialKind
from .protocols import CredentialStore


class SQLiteCredentialStore(CredentialStore):
    """
    SQLite-based credential storage.

    Stores credentials as plain strings in a key/value table. The key
    names come from StorageConfig, so several client instances can share
    one database file under different names.

    Example:
        >>> store = SQLiteCredentialStore("credentials")
        >>> # Creates credentials.db file
        >>>
        >>> store.set(CredentialKind.SESSION, token)
        >>> store.get(CredentialKind.SESSION)
    """

    EXTENSION = '.db'
    SCHEMA_VERSION = 1

    def __init__(
        self,
        path: Union[str, Path],
        config: Optional[StorageConfig] = None,
        base_path: Optional[Path] = None
    ):
        """
        Initialize SQLite credential storage.

        Args:
            path: Store name (without extension) or full path
            config: Storage key names
            base_path: Optional base directory for the store file
        """
        self._config = config or StorageConfig()
        self._lock = threading.Lock()
        self._conn: Optional[sqlite3.Connection] = None

        # Determine file path
        if isinstance(path, Path) or path.endswith(self.EXTENSION):
            self._path = Path(path)
        elif base_path:
            self._path = base_path / f"{path}{self.EXTENSION}"
        else:
            self._path = Path(f"{path}{self.EXTENSION}")

        # Ensure parent directory exists
        self._path.parent.mkdir(parents=True, exist_ok=True)

        self._init_db()

    @property
    def path(self) -> Path:
        """Get store file path."""
        return self._path

    @contextmanager
    def _get_connection(self):
        """Get thread-safe database connection."""
        with self._lock:
            if self._conn is None:
                self._conn = sqlite3.connect(
                    str(self._path),
                    check_same_thread=False
                )
                self._conn.row_factory = sqlite3.Row
            yield self._conn

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS version (
                    version INTEGER PRIMARY KEY
                )
            ''')

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS credentials (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            ''')

            cursor.execute('SELECT version FROM version LIMIT 1')
            if cursor.fetchone() is None:
                cursor.execute(
                    'INSERT INTO version (version) VALUES (?)',
                    (self.SCHEMA_VERSION,)
                )

            conn.commit()

    def _key(self, kind: CredentialKind) -> str:
        kind = CredentialKind(kind)
        if kind is CredentialKind.SESSION:
            return self._config.session_key
        return self._config.api_key

    def get(self, kind: CredentialKind) -> Optional[Credential]:
        """
        Load a credential from the database.

        Returns:
            Credential if stored, None otherwise
        """
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                'SELECT value FROM credentials WHERE key = ?',
                (self._key(kind),)
            )
            row = cursor.fetchone()

        if row is None or not row['value']:
            return None
        return Credential(CredentialKind(kind), row['value'])

    def set(self, kind: CredentialKind, value: str) -> None:
        """
        Store a credential, superseding the previous one in one statement.

        Raises:
            ValueError: If value is empty
        """
        if not isinstance(value, str) or not value:
            raise ValueError("credential value must be a non-empty string")

        with self._get_connection() as conn:
            conn.execute('''
                INSERT OR REPLACE INTO credentials (key, value, updated_at)
                VALUES (?, ?, ?)
            ''', (self._key(kind), value, datetime.now().isoformat()))
            conn.commit()

    def clear(self, kind: CredentialKind) -> None:
        """Remove one credential."""
        with self._get_connection() as conn:
            conn.execute('DELETE FROM credentials WHERE key = ?', (self._key(kind),))
            conn.commit()

    def clear_all(self) -> None:
        """Remove both credentials in one transaction."""
        with self._get_connection() as conn:
            conn.execute(
                'DELETE FROM credentials WHERE key IN (?, ?)',
                (self._config.session_key, self._config.api_key)
            )
            conn.commit()

    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def delete_file(self) -> None:
        """Delete the store file completely."""
        self.close()
        if self._path.exists():
            self._path.unlink()

    def __enter__(self) -> 'SQLiteCredentialStore':
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()

    def __del__(self):
        """Destructor - ensure connection is closed."""
        try:
            self.close()
        except Exception:
            pass
