"""Configuration schema models using pydantic.

This module defines the configuration structure and validation rules using pydantic.
All configuration values are validated according to the schema defined here.
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class FhirServerConfig(BaseModel):
    """Configuration for the remote FHIR server.

    Attributes:
        base_url: FHIR base URL (the Patient endpoint is {base_url}/Patient)
        page_size: Number of patients requested per search page (_count)
        default_sort: Sort expression applied to fresh searches (_sort)
    """

    base_url: str = Field(
        default="https://fhir-bootcamp.medblocks.com/fhir/",
        description="FHIR server base URL",
    )
    page_size: int = Field(
        default=10,
        ge=1,
        description="Patients per search page",
    )
    default_sort: str = Field(
        default="-_lastUpdated",
        description="Sort expression for fresh searches",
    )

    @field_validator("base_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL is valid HTTP/HTTPS.

        Args:
            v: URL string to validate

        Returns:
            Validated URL string

        Raises:
            ValueError: If URL does not start with http:// or https://
        """
        if not v.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid URL: {v}. Must start with http:// or https://"
            )
        return v


class TransportConfig(BaseModel):
    """Configuration for HTTP/HTTPS transport.

    Requests are never retried; a failed call surfaces immediately.

    Attributes:
        verify_tls: Whether to verify TLS certificates
        timeout_connect: Connection timeout in seconds
        timeout_read: Read timeout in seconds
        max_connections: Connections kept in the session pool
    """

    verify_tls: bool = True
    timeout_connect: int = Field(
        default=10,
        ge=1,
        description="Connection timeout in seconds"
    )
    timeout_read: int = Field(
        default=30,
        ge=1,
        description="Read timeout in seconds"
    )
    max_connections: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum pooled HTTP connections"
    )


class LoggingConfig(BaseModel):
    """Configuration for logging.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file
        redact_pii: Whether to redact PII from logs
    """

    level: str = Field(
        default="INFO",
        description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )
    log_file: Path = Field(
        default=Path("logs/fhir-patient-manager.log"),
        description="Log file path"
    )
    redact_pii: bool = Field(
        default=False,
        description="Redact PII from logs"
    )

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level.

        Args:
            v: Log level string

        Returns:
            Validated log level (uppercase)

        Raises:
            ValueError: If log level is not valid
        """
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return v_upper


class ApiConfig(BaseModel):
    """Configuration for the HTTP API server.

    Attributes:
        host: Bind address
        port: Listen port
    """

    host: str = Field(default="127.0.0.1", description="API bind address")
    port: int = Field(default=3000, ge=1, le=65535, description="API port")


class Config(BaseModel):
    """Root configuration model.

    Example:
        >>> config = Config(fhir=FhirServerConfig(base_url="http://localhost:8080/fhir"))
        >>> config.fhir.page_size
        10
    """

    fhir: FhirServerConfig = FhirServerConfig()
    transport: TransportConfig = TransportConfig()
    logging: LoggingConfig = LoggingConfig()
    api: ApiConfig = ApiConfig()
