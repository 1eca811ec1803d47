from __future__ import annotations

import base64
import binascii
import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from urllib.parse import unquote


def b64decode_padded(data: str, urlsafe: bool = False) -> bytes:
    """Decode base64 that may be missing its ``=`` padding."""
    padded = data.strip() + "=" * (-len(data.strip()) % 4)
    if urlsafe or "-" in padded or "_" in padded:
        return base64.urlsafe_b64decode(padded)
    return base64.b64decode(padded)


class BaseParser(ABC):
    """Abstract base class for all protocol parsers."""

    def __init__(self, config_uri: str):
        self.config_uri = config_uri.strip()

    @abstractmethod
    def parse(self) -> Dict[str, Any]:
        """Parse the node link and return a Clash-style proxy dictionary."""
        raise NotImplementedError

    @property
    def scheme(self) -> str:
        return self.config_uri.split("://", 1)[0].lower()

    @staticmethod
    def sanitize_str(value: Any) -> Any:
        """Strip whitespace and remove newlines from string values."""
        if isinstance(value, str):
            return value.strip().replace("\n", "").replace("\r", "")
        return value

    @classmethod
    def fragment_name(cls, fragment: str, default: str) -> str:
        """Return the percent-decoded link fragment, or ``default`` when empty."""
        name = cls.sanitize_str(unquote(fragment or ""))
        return name or default

    @staticmethod
    def sanitize_headers(headers_data: Any) -> Optional[Any]:
        """Sanitize ws-headers, which can be a dict, a JSON string, or a base64-encoded JSON string."""
        if not headers_data:
            return None

        headers = headers_data
        if isinstance(headers_data, str):
            try:
                headers = json.loads(b64decode_padded(headers_data, urlsafe=True).decode())
            except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError):
                try:
                    headers = json.loads(headers_data)
                except (json.JSONDecodeError, TypeError):
                    pass

        if isinstance(headers, dict):
            return {
                BaseParser.sanitize_str(k): BaseParser.sanitize_str(v)
                for k, v in headers.items()
            }
        if isinstance(headers, str) and ":" in headers:
            key, value = headers.split(":", 1)
            return {BaseParser.sanitize_str(key): BaseParser.sanitize_str(value)}

        return BaseParser.sanitize_str(headers)
