"""
PostgreSQL access for lead storage.

psycopg2 with a ThreadedConnectionPool per database URL. Every checkout
copies the acting user from the contextvar into app.current_user_id, and
the RLS policies on leads and lead_history read it from there: any
authenticated user may read, only the owner may write.

No user context = see nothing and write nothing.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, List, Tuple
from uuid import UUID

import psycopg2
import psycopg2.extras
import psycopg2.pool

from utils.user_context import _current_user_id

logger = logging.getLogger(__name__)

Params = Tuple | Dict | None

_jsonb_registered = False


def _register_jsonb() -> None:
    # JSONB columns (lead_history.diff) come back as dicts
    global _jsonb_registered
    if not _jsonb_registered:
        psycopg2.extras.register_default_jsonb(globally=True)
        _jsonb_registered = True


def _to_db(value: Any) -> Any:
    """UUIDs go over the wire as text; containers are converted recursively."""
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, list):
        return [_to_db(v) for v in value]
    if isinstance(value, tuple):
        return tuple(_to_db(v) for v in value)
    if isinstance(value, dict):
        return {k: _to_db(v) for k, v in value.items()}
    return value


class PostgresClient:
    """
    Pooled PostgreSQL client that scopes every statement to the acting user.

    Usage:
        db = PostgresClient.from_vault()

        with user_context(agent_id):
            leads = db.execute("SELECT * FROM leads")

    A failed statement rolls its connection back before the connection
    returns to the pool, so one rejected INSERT never poisons later calls.
    """

    _pools: Dict[str, psycopg2.pool.ThreadedConnectionPool] = {}
    _pools_lock = threading.RLock()

    def __init__(self, database_url: str, min_connections: int = 2, max_connections: int = 20):
        self._database_url = database_url
        self._min_connections = min_connections
        self._max_connections = max_connections
        self._pool()

    @classmethod
    def from_vault(cls, **pool_options) -> "PostgresClient":
        """Client for the database URL stored in Vault (leads/database)."""
        from clients.vault_client import get_database_url

        return cls(get_database_url(), **pool_options)

    def _pool(self) -> psycopg2.pool.ThreadedConnectionPool:
        with self._pools_lock:
            pool = self._pools.get(self._database_url)
            if pool is None:
                pool = psycopg2.pool.ThreadedConnectionPool(
                    minconn=self._min_connections,
                    maxconn=self._max_connections,
                    dsn=self._database_url,
                    connect_timeout=30,
                )
                _register_jsonb()
                self._pools[self._database_url] = pool
                logger.info(
                    f"Connection pool created ({self._min_connections}-{self._max_connections} connections)"
                )
            return pool

    @contextmanager
    def get_connection(self):
        """Check out a connection with app.current_user_id set for RLS."""
        pool = self._pool()
        conn = None

        try:
            conn = pool.getconn()
            if conn is None:
                raise RuntimeError("Could not get connection from pool")

            user_id = _current_user_id.get()
            with conn.cursor() as cur:
                if user_id is not None:
                    cur.execute("SET app.current_user_id = %s", (str(user_id),))
                else:
                    # Policies read an empty setting as NULL (NULLIF), which matches no rows
                    cur.execute("SET app.current_user_id = ''")

            yield conn

        except Exception:
            if conn is not None and not conn.closed:
                conn.rollback()
            raise

        finally:
            if conn:
                pool.putconn(conn)

    def execute(self, query: str, params: Params = None) -> List[Dict[str, Any]]:
        """Run a query and return its rows as dicts ([] when it returns none)."""
        with self.get_connection() as conn:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                cur.execute(query, _to_db(params))
                if cur.description:
                    return [dict(row) for row in cur.fetchall()]
                conn.commit()
                return []

    def execute_single(self, query: str, params: Params = None) -> Dict[str, Any] | None:
        """First row, or None."""
        rows = self.execute(query, params)
        return rows[0] if rows else None

    def execute_scalar(self, query: str, params: Params = None) -> Any:
        """First column of the first row, or None."""
        with self.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, _to_db(params))
                row = cur.fetchone()
                return row[0] if row else None

    def execute_returning(self, query: str, params: Params = None) -> List[Dict[str, Any]]:
        """
        Run a write with RETURNING and commit.

        Rows are fetched before the commit; a statement that fails is
        rolled back and the driver error propagates.
        """
        with self.get_connection() as conn:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                cur.execute(query, _to_db(params))
                rows = [dict(row) for row in cur.fetchall()]
                conn.commit()
                return rows

    def close(self) -> None:
        """Close this client's pool."""
        with self._pools_lock:
            pool = self._pools.pop(self._database_url, None)
            if pool is not None:
                pool.closeall()
