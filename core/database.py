"""Database connection module with connection pooling"""
import logging
import threading
import psycopg2
from psycopg2 import pool
from psycopg2.extras import RealDictCursor
from contextlib import contextmanager
from typing import Optional, Dict, List, Any

from config import settings

logger = logging.getLogger(__name__)


class Database:
    """Database connection manager with a lazily created connection pool"""

    def __init__(self, dsn: Optional[str] = None):
        self.dsn = dsn or settings.DATABASE_URL
        self.connection_pool = None
        self._pool_lock = threading.Lock()

    @property
    def configured(self) -> bool:
        return bool(self.dsn)

    def _get_connection_params(self) -> dict:
        """Get database connection parameters"""
        params = {
            'dsn': self.dsn,
            'cursor_factory': RealDictCursor,
            # Fail fast if the server can't be reached
            'connect_timeout': 10,
            # Cancel queries taking longer than 30 seconds
            'options': '-c statement_timeout=30000',
        }
        # Hosted databases need TLS; local ones usually don't speak it
        if 'localhost' not in self.dsn and '127.0.0.1' not in self.dsn:
            params['sslmode'] = 'require'
        return params

    def _initialize_pool(self):
        """Initialize connection pool"""
        if not self.configured:
            raise RuntimeError("DATABASE_URL is not configured")
        # Worker threads may race on the first request; only one may build the pool
        with self._pool_lock:
            if self.connection_pool is not None:
                return
            try:
                self.connection_pool = pool.ThreadedConnectionPool(
                    minconn=settings.DB_POOL_MIN,
                    maxconn=settings.DB_POOL_MAX,
                    **self._get_connection_params()
                )
                logger.info(
                    f"Database connection pool initialized (min={settings.DB_POOL_MIN}, max={settings.DB_POOL_MAX})"
                )
            except Exception as e:
                logger.error(f"Failed to initialize connection pool: {str(e)}")
                raise

    def _is_connection_alive(self, conn) -> bool:
        """Check if a connection is still alive and usable"""
        try:
            with conn.cursor() as cursor:
                cursor.execute("SELECT 1")
            return True
        except Exception:
            return False

    @contextmanager
    def get_connection(self):
        """Get a database connection from the pool with stale connection handling"""
        if self.connection_pool is None:
            self._initialize_pool()

        conn = None
        conn_is_bad = False
        try:
            conn = self.connection_pool.getconn()

            # Server-side disconnects leave dead connections in the pool
            if not self._is_connection_alive(conn):
                logger.warning("Got stale connection from pool, discarding and getting fresh one")
                self.connection_pool.putconn(conn, close=True)
                conn = self.connection_pool.getconn()

            yield conn
            conn.commit()
        except pool.PoolError as e:
            logger.error(f"Connection pool error: {str(e)}")
            raise
        except (psycopg2.OperationalError, psycopg2.InterfaceError) as e:
            conn_is_bad = True
            logger.error(f"Connection error (will discard connection): {str(e)}")
            raise
        except Exception as e:
            if conn:
                try:
                    conn.rollback()
                except Exception:
                    conn_is_bad = True
            logger.error(f"Database error: {str(e)}")
            raise
        finally:
            if conn:
                self.connection_pool.putconn(conn, close=conn_is_bad)

    def execute_query(self, query: str, params: Optional[tuple] = None, max_retries: int = 2) -> List[Dict[str, Any]]:
        """Execute a SELECT query and return results with automatic retry on connection errors"""
        last_error = None
        for attempt in range(max_retries + 1):
            try:
                with self.get_connection() as conn:
                    with conn.cursor() as cursor:
                        cursor.execute(query, params)
                        return cursor.fetchall()
            except (psycopg2.OperationalError, psycopg2.InterfaceError) as e:
                last_error = e
                if attempt < max_retries:
                    logger.warning(f"Query failed (attempt {attempt + 1}/{max_retries + 1}), retrying: {str(e)}")
                    continue
                raise
        raise last_error

    def execute_update(self, query: str, params: Optional[tuple] = None, max_retries: int = 2) -> int:
        """Execute an INSERT/UPDATE/DELETE query with automatic retry on connection errors"""
        last_error = None
        for attempt in range(max_retries + 1):
            try:
                with self.get_connection() as conn:
                    with conn.cursor() as cursor:
                        cursor.execute(query, params)
                        return cursor.rowcount
            except (psycopg2.OperationalError, psycopg2.InterfaceError) as e:
                last_error = e
                if attempt < max_retries:
                    logger.warning(f"Update failed (attempt {attempt + 1}/{max_retries + 1}), retrying: {str(e)}")
                    continue
                raise
        raise last_error

    def close_all_connections(self):
        """Close all connections in the pool (call on shutdown)"""
        with self._pool_lock:
            if self.connection_pool:
                self.connection_pool.closeall()
                self.connection_pool = None
                logger.info("All database connections closed")


# Shared instance; the pool is only opened on first use
db = Database()
