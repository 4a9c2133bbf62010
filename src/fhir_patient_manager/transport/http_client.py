"""HTTP client with connection pooling for FHIR REST calls.

This module provides pooled requests sessions for talking to the FHIR server.
Requests are never retried: a transport failure or error status surfaces to
the caller on the first attempt.
"""

import logging
from dataclasses import dataclass
from threading import Lock
from typing import Optional

import requests
from requests.adapters import HTTPAdapter

from fhir_patient_manager.config.schema import TransportConfig

logger = logging.getLogger(__name__)

# Default connection pool settings
DEFAULT_MAX_CONNECTIONS = 10
DEFAULT_POOL_BLOCK = False
DEFAULT_TIMEOUT_CONNECT = 10
DEFAULT_TIMEOUT_READ = 30

FHIR_JSON = "application/fhir+json"


@dataclass
class ConnectionPoolConfig:
    """Configuration for HTTP connection pooling.

    Attributes:
        max_connections: Maximum number of connections in the pool. Must be >= 1.
        pool_block: Whether to block when pool is exhausted.
            If True, requests wait for a connection. If False, extra
            connections are opened and discarded after use.
        timeout_connect: Connection timeout in seconds.
        timeout_read: Read timeout in seconds.
        verify_tls: Whether to verify server certificates.

    Example:
        >>> config = ConnectionPoolConfig(max_connections=20)
        >>> pool = ConnectionPool(config)
        >>> session = pool.get_session()
    """
    max_connections: int = DEFAULT_MAX_CONNECTIONS
    pool_block: bool = DEFAULT_POOL_BLOCK
    timeout_connect: int = DEFAULT_TIMEOUT_CONNECT
    timeout_read: int = DEFAULT_TIMEOUT_READ
    verify_tls: bool = True

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_connections < 1:
            raise ValueError(
                f"max_connections must be >= 1, got {self.max_connections}"
            )
        if self.timeout_connect < 1:
            raise ValueError(
                f"timeout_connect must be >= 1, got {self.timeout_connect}"
            )
        if self.timeout_read < 1:
            raise ValueError(
                f"timeout_read must be >= 1, got {self.timeout_read}"
            )

    @property
    def timeout(self) -> tuple[int, int]:
        """(connect, read) timeout tuple accepted by requests."""
        return (self.timeout_connect, self.timeout_read)


class ConnectionPool:
    """Manages a pooled HTTP session for FHIR server calls.

    The session is created lazily and shared; requests sessions are safe to
    use from the threads of a threaded WSGI server for independent requests.

    Attributes:
        config: Connection pool configuration.

    Example:
        >>> with ConnectionPool(ConnectionPoolConfig(max_connections=15)) as pool:
        ...     session = pool.get_session()
        ...     response = session.get(url, timeout=pool.config.timeout)
    """

    def __init__(self, config: Optional[ConnectionPoolConfig] = None) -> None:
        """Initialize connection pool with configuration.

        Args:
            config: Pool configuration. Uses defaults if not provided.
        """
        self.config = config or ConnectionPoolConfig()
        self._session: Optional[requests.Session] = None
        self._lock = Lock()
        logger.debug(
            "ConnectionPool initialized with max_connections=%d, pool_block=%s",
            self.config.max_connections,
            self.config.pool_block,
        )

    @classmethod
    def from_transport_config(cls, transport: TransportConfig) -> "ConnectionPool":
        """Build a pool from the application's transport configuration.

        Args:
            transport: Validated TransportConfig section

        Returns:
            ConnectionPool configured with the same limits and timeouts
        """
        if not transport.verify_tls:
            logger.warning(
                "TLS certificate verification is DISABLED. "
                "This should only be used for development with self-signed certificates."
            )
        return cls(
            ConnectionPoolConfig(
                max_connections=transport.max_connections,
                timeout_connect=transport.timeout_connect,
                timeout_read=transport.timeout_read,
                verify_tls=transport.verify_tls,
            )
        )

    def get_session(self) -> requests.Session:
        """Get or create the configured HTTP session.

        Returns:
            requests.Session with pooled adapters and no retries.
        """
        with self._lock:
            if self._session is None:
                self._session = self._create_session()
            return self._session

    def _create_session(self) -> requests.Session:
        """Create a new session with connection pooling configuration.

        Returns:
            Configured requests.Session.
        """
        pool_connections = self.config.max_connections

        # max_retries=0: a failed request surfaces immediately
        adapter = HTTPAdapter(
            pool_connections=pool_connections,
            pool_maxsize=pool_connections,
            pool_block=self.config.pool_block,
            max_retries=0,
        )

        session = requests.Session()
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        session.verify = self.config.verify_tls
        session.headers.update({"Accept": FHIR_JSON})

        logger.info(
            "Created HTTP session with pool_maxsize=%d, pool_block=%s, verify_tls=%s",
            pool_connections,
            self.config.pool_block,
            self.config.verify_tls,
        )

        return session

    def close(self) -> None:
        """Close the session and release pooled connections."""
        with self._lock:
            if self._session is not None:
                self._session.close()
                self._session = None
                logger.debug("ConnectionPool session closed")

    def __enter__(self) -> "ConnectionPool":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
