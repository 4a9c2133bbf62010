"""Custom log formatters for FHIR Patient Manager.

This module provides specialized formatters for logging, including PII redaction.
"""

import logging
import re
from typing import List, Tuple


class PIIRedactingFormatter(logging.Formatter):
    """Custom formatter that redacts Personally Identifiable Information (PII) from log messages.

    Patient demographics flow through request logs (search filters, create
    payloads), so e-mail addresses, phone numbers, birth dates and ``name=``
    fragments are masked when redaction is enabled.

    Attributes:
        redact_pii: Whether to enable PII redaction
        patterns: List of (regex_pattern, replacement_text) tuples for redaction

    Example:
        >>> formatter = PIIRedactingFormatter(
        ...     fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        ...     redact_pii=True
        ... )
        >>> handler = logging.StreamHandler()
        >>> handler.setFormatter(formatter)
    """

    def __init__(
        self,
        fmt: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt: str | None = None,
        redact_pii: bool = False,
    ) -> None:
        """Initialize the PIIRedactingFormatter.

        Args:
            fmt: Log message format string
            datefmt: Date format string (optional)
            redact_pii: Whether to enable PII redaction
        """
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.redact_pii = redact_pii

        # Order matters: name= runs before the generic patterns so its value
        # is consumed as a whole.
        self.patterns: List[Tuple[re.Pattern[str], str]] = [
            # Matches: name="John Doe", name='Jane', name%3Acontains=Jane, name:contains=Jane
            (re.compile(r'(name(?::contains|%3Acontains)?=)["\']?[^"\'&,|]+["\']?'),
             r'\1[NAME-REDACTED]'),

            # E-mail addresses
            (re.compile(r'[\w.+-]+@[\w-]+(?:\.[\w-]+)+'), '[EMAIL-REDACTED]'),

            # Birth dates: 1980-01-31
            (re.compile(r'\b\d{4}-\d{2}-\d{2}\b'), '[DATE-REDACTED]'),

            # Phone numbers: 555-123-4567, +1 (555) 123 4567, 5551234567
            (re.compile(r'\+?\d?[\s(]*\d{3}[)\s.-]*\d{3}[\s.-]*\d{4}\b'), '[PHONE-REDACTED]'),
        ]

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with optional PII redaction.

        Args:
            record: Log record to format

        Returns:
            Formatted log message with PII redacted if enabled
        """
        if not self.redact_pii:
            return super().format(record)

        # Only the message is redacted; timestamps in the prefix stay intact
        message = record.getMessage()
        for pattern, replacement in self.patterns:
            message = pattern.sub(replacement, message)

        redacted = logging.makeLogRecord(record.__dict__)
        redacted.msg = message
        redacted.args = None
        return super().format(redacted)
