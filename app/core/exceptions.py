"""
Custom application exceptions.
"""

from typing import List

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base application exception."""
    
    def __init__(self, detail, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR):
        super().__init__(status_code=status_code, detail=detail)


class NotFoundException(AppException):
    """Resource not found exception (also raised for malformed ids)."""
    
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(detail=detail, status_code=status.HTTP_404_NOT_FOUND)


class BadRequestException(AppException):
    """Bad request exception."""
    
    def __init__(self, detail: str = "Bad request"):
        super().__init__(detail=detail, status_code=status.HTTP_400_BAD_REQUEST)


class ValidationException(AppException):
    """Constraint violations; lists every failing field, not just the first."""
    
    def __init__(self, errors: List[str], message: str = "Validation error"):
        self.errors = errors
        super().__init__(
            detail={"message": message, "errors": errors},
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )


class ConflictException(AppException):
    """Invariant or capacity violation."""
    
    def __init__(self, detail: str = "Conflict"):
        super().__init__(detail=detail, status_code=status.HTTP_409_CONFLICT)


class OutOfStockException(ConflictException):
    """Requested quantity exceeds the stock on hand."""
    
    def __init__(self, detail: str = "Insufficient stock"):
        super().__init__(detail=detail)


class UnavailableException(ConflictException):
    """Item exists but is not open for purchase."""
    
    def __init__(self, detail: str = "Item is not available for purchase"):
        super().__init__(detail=detail)


class ExpiredException(AppException):
    """Time window has already closed."""
    
    def __init__(self, detail: str = "Expired"):
        super().__init__(detail=detail, status_code=status.HTTP_410_GONE)
