from typing import NoReturn

from fastapi import HTTPException, status


class MarketLinkError(ValueError):
    """Base class for user-visible store errors."""

    status_code = status.HTTP_400_BAD_REQUEST


class ValidationError(MarketLinkError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotAuthenticatedError(MarketLinkError):
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(MarketLinkError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(MarketLinkError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(MarketLinkError):
    status_code = status.HTTP_409_CONFLICT


def raise_http_error(exc: MarketLinkError) -> NoReturn:
    raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
