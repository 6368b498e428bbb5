"""
Database Connection Pool Manager

Provides thread-safe PostgreSQL connection pooling for the operations
database. Analytics branches run concurrently, so every query borrows its own
connection and returns it on every exit path.
"""

import threading
import time
import logging
from contextlib import contextmanager
from typing import Optional, Dict, Any

import psycopg2
from psycopg2 import pool

from utils.config import get_database_config


# Configure logging
logger = logging.getLogger(__name__)


class DatabasePool:
    """Thread-safe database connection pool manager."""

    def __init__(self, db_config: Optional[Dict[str, Any]] = None):
        """
        Initialize the database pool.

        Args:
            db_config: Connection settings; read from the environment when None

        Raises:
            ValueError: If required configuration is missing
        """
        self.pool: Optional[pool.AbstractConnectionPool] = None
        self.pool_lock = threading.Lock()
        # One slot per pooled connection; borrowers block while all are in use
        self.slots: Optional[threading.BoundedSemaphore] = None
        self.stats = {
            "connections_used": 0,
            "connections_returned": 0,
            "pool_exhausted": 0,
            "errors": 0
        }

        self.db_config = dict(db_config) if db_config else get_database_config()
        self.db_config.setdefault("sslmode", "prefer")
        self._validate_config()

    def _validate_config(self):
        """Validate that all required configuration is present."""
        required_keys = ["host", "port", "database", "user", "password"]
        missing = [k for k in required_keys if not self.db_config.get(k)]

        if missing:
            raise ValueError(
                f"Missing operations database configuration: {missing}. "
                f"Please check your .env file."
            )

    def _count(self, key: str):
        with self.pool_lock:
            self.stats[key] += 1

    def initialize_pool(self, min_connections: int = 2, max_connections: int = 10):
        """
        Create the underlying ThreadedConnectionPool.

        Args:
            min_connections: Minimum number of connections to maintain
            max_connections: Maximum number of connections allowed

        Raises:
            psycopg2.Error: If the database cannot be reached
        """
        with self.pool_lock:
            if self.pool is not None:
                logger.info("Operations pool already initialized")
                return

            self.pool = psycopg2.pool.ThreadedConnectionPool(
                min_connections,
                max_connections,
                **self.db_config
            )
            self.slots = threading.BoundedSemaphore(max_connections)

        logger.info(
            f"Initialized operations pool with "
            f"{min_connections}-{max_connections} connections"
        )

    @contextmanager
    def get_connection(self, timeout: float = 30):
        """
        Borrow a connection from the pool using context manager.

        Waits up to `timeout` seconds when every connection is in use. The
        connection is always returned to the pool, including when the caller
        raises. Read-only work is rolled back instead of committed.

        Args:
            timeout: Maximum time to wait for a free connection (seconds)

        Yields:
            psycopg2.connection: Database connection

        Raises:
            psycopg2.pool.PoolError: If no connection frees up within `timeout`

        Example:
            >>> db_pool = DatabasePool()
            >>> with db_pool.get_connection() as conn:
            ...     with conn.cursor() as cursor:
            ...         cursor.execute("SELECT COUNT(*) FROM Operarios")
        """
        if self.pool is None:
            self.initialize_pool()

        slots = self.slots
        connection = None
        acquired = False
        start_time = time.time()

        try:
            acquired = slots.acquire(timeout=timeout)
            if not acquired:
                self._count("pool_exhausted")
                logger.warning(f"No operations connection free after {timeout}s")
                raise pool.PoolError("connection pool exhausted")

            try:
                connection = self.pool.getconn()
            except pool.PoolError:
                self._count("pool_exhausted")
                logger.warning("Operations pool exhausted")
                raise

            self._count("connections_used")
            yield connection

        except Exception as e:
            self._count("errors")
            elapsed = time.time() - start_time
            logger.error(f"Operations connection error after {elapsed:.2f}s: {e}")
            raise

        finally:
            if connection is not None:
                try:
                    connection.rollback()
                except psycopg2.Error as e:
                    logger.warning(f"Error rolling back connection: {e}")
                self.pool.putconn(connection)
                self._count("connections_returned")
            if acquired:
                slots.release()

    def close_pool(self):
        """Close all connections in the pool."""
        with self.pool_lock:
            if self.pool is not None:
                self.pool.closeall()
                self.pool = None
                self.slots = None
                logger.info("Closed operations connection pool")

    def get_stats(self) -> Dict[str, Any]:
        """
        Get connection pool statistics.

        Returns:
            Dictionary with pool statistics
        """
        with self.pool_lock:
            stats = self.stats.copy()
        stats["pool_initialized"] = self.pool is not None
        if self.pool is not None:
            stats["pool_type"] = type(self.pool).__name__
        return stats

    def health_check(self) -> bool:
        """
        Perform a health check on the pool.

        Returns:
            bool: True if pool is healthy, False otherwise
        """
        try:
            with self.get_connection() as conn:
                with conn.cursor() as cursor:
                    cursor.execute("SELECT 1")
                    result = cursor.fetchone()
                    return result is not None
        except psycopg2.Error as e:
            logger.error(f"Operations pool health check failed: {e}")
            return False


# Global pool instance
_operations_pool: Optional[DatabasePool] = None
_pool_lock = threading.Lock()


def get_pool(min_connections: int = 2, max_connections: int = 10) -> DatabasePool:
    """
    Get or create the shared operations pool.

    Returns:
        DatabasePool: Pool instance
    """
    global _operations_pool

    with _pool_lock:
        if _operations_pool is None:
            db_pool = DatabasePool()
            db_pool.initialize_pool(min_connections, max_connections)
            _operations_pool = db_pool
        return _operations_pool


def close_pool():
    """Close the shared operations pool (call on application shutdown)."""
    global _operations_pool

    with _pool_lock:
        if _operations_pool is not None:
            _operations_pool.close_pool()
            _operations_pool = None
