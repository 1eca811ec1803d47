from __future__ import annotations

import logging
import re
from pathlib import Path


class SensitiveDataFilter(logging.Filter):
    """Filter to mask credentials that end up in log messages"""

    PATTERNS = {
        "uuid": r"[a-f0-9]{8}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{12}",
        "secret": r"\b(?:id|uuid|password|token)\s*[=:]\s*[^\s,&]+",
        "userinfo": r"(?<=://)[^\s/@:]+(?::[^\s/@]+)?@",
        "email": r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}",
    }

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()

        message = re.sub(self.PATTERNS["secret"], "[MASKED_CREDENTIAL]", message, flags=re.IGNORECASE)
        message = re.sub(self.PATTERNS["uuid"], "[MASKED_UUID]", message, flags=re.IGNORECASE)
        message = re.sub(self.PATTERNS["userinfo"], "[MASKED_USERINFO]@", message)
        message = re.sub(self.PATTERNS["email"], "[MASKED_EMAIL]", message)

        record.msg = message
        record.args = ()
        return True


def setup_logging(
    log_level: str = "INFO",
    mask_sensitive: bool = True,
    log_file: Path | None = None,
) -> None:
    """Setup root logging with optional sensitive data filtering"""

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))

    # Remove existing handlers to avoid duplication
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if log_file is not None:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    if mask_sensitive:
        # Root logger filters don't see records propagated from child loggers,
        # so the filter goes on every handler.
        for handler in root_logger.handlers:
            if not any(isinstance(f, SensitiveDataFilter) for f in handler.filters):
                handler.addFilter(SensitiveDataFilter())
