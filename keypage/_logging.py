import hashlib
import logging
from collections.abc import Sequence
from typing import Any

# Create the library logger
logger = logging.getLogger("keypage")

# Add NullHandler to prevent "No handlers could be found" warnings
# if the application doesn't configure logging.
logger.addHandler(logging.NullHandler())


def _digest(value: Any) -> str:
    return hashlib.sha256(str(value).encode("utf-8")).hexdigest()[:8]


def redact_values(values: Sequence[Any] | str) -> str:
    """
    Redacts cursor boundary values for logging.
    Hashes each value to allow correlation without revealing row data.
    """
    try:
        if isinstance(values, str):
            return _digest(values)
        return str([_digest(v) for v in values])
    except Exception:
        return "<redaction_failed>"
