"""
Error taxonomy

Route handlers translate these into HTTP responses:
- ValidationError      -> 400
- NotFoundError        -> 404
- StoreError           -> 500
- StoreConnectionError -> 500 at request time, process exit at startup
"""

from typing import Any, Dict, List, Optional


class PortfolioError(Exception):
    """Base class for all application errors."""


class ConfigError(PortfolioError):
    pass


class ValidationError(PortfolioError):
    """Payload is malformed or violates an entity constraint."""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []


class NotFoundError(PortfolioError):
    pass


class StoreError(PortfolioError):
    """Transport or server-side failure talking to the document store."""


class StoreConnectionError(StoreError):
    pass
