"""Core module - config, database, exceptions, document helpers."""

from app.core.config import get_settings, Settings
from app.core.database import Database
from app.core.exceptions import (
    AppException,
    NotFoundException,
    BadRequestException,
    ValidationException,
    ConflictException,
    OutOfStockException,
    UnavailableException,
    ExpiredException,
)

__all__ = [
    "get_settings",
    "Settings",
    "Database",
    "AppException",
    "NotFoundException",
    "BadRequestException",
    "ValidationException",
    "ConflictException",
    "OutOfStockException",
    "UnavailableException",
    "ExpiredException",
]
