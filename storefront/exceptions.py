from fastapi import Request, status
from fastapi.responses import JSONResponse
from typing import Callable, Optional

from .enums import ErrorCode


class APIException(Exception):
    """ Base class for all domain exceptions raised by the cart and coupon services. """

    code: ErrorCode = ErrorCode.STORAGE_FAILURE
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Something went wrong"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class UnauthorizedException(APIException):
    """ Exception is raised when no verified caller identity is attached to the request. """
    code = ErrorCode.UNAUTHORIZED
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "User is not authorized. Please log in."


class ForbiddenException(APIException):
    """ Exception is raised when the caller does not have the role required for a resource. """
    code = ErrorCode.FORBIDDEN
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You are not allowed to perform this action"


class InvalidArgumentException(APIException):
    """ Exception is raised when an argument is malformed, e.g. a non-positive quantity. """
    code = ErrorCode.INVALID_ARGUMENT
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid argument"


class NotFoundException(APIException):
    """ Exception is raised when a cart, item, coupon, order or product is absent or not owned by the caller. """
    code = ErrorCode.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found"


class ConflictException(APIException):
    """ Exception is raised on a duplicate cart item, coupon attachment or coupon code. """
    code = ErrorCode.CONFLICT
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource already exists"


class LimitExceededException(APIException):
    """ Exception is raised when a cart already holds the maximum number of items. """
    code = ErrorCode.LIMIT_EXCEEDED
    status_code = 422
    default_detail = "Cart item limit reached"


class CouponExpiredException(APIException):
    """ Exception is raised when a coupon past its expiry date is applied. """
    code = ErrorCode.COUPON_EXPIRED
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Coupon has expired"


class StorageFailureException(APIException):
    """ Exception is raised when the persistence layer fails. Safe to retry. """
    code = ErrorCode.STORAGE_FAILURE
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Storage is temporarily unavailable. Please try again later."


# Errors raised by the store adapters. The services translate them into the
# domain exceptions above; they never reach the HTTP layer.

class StoreError(Exception):
    """ Exception is raised by a store adapter when the underlying database call fails. """
    pass


class DuplicateRecordError(StoreError):
    """ Exception is raised by a store adapter when a uniqueness constraint is violated. """
    pass


class MissingReferenceError(StoreError):
    """ Exception is raised by a store adapter when a foreign key points at a missing row. """
    pass


def create_exception_handler(status_code: int) -> Callable[[Request, Exception], JSONResponse]:
    async def exception_handler(request: Request, exception: APIException):
        return JSONResponse(
            content={"code": exception.code.value, "detail": exception.detail},
            status_code=status_code
        )

    return exception_handler
