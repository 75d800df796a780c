from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar


@dataclass(slots=True)
class DomainError(Exception):
    """Base error for business-rule and validation failures.

    Raised by domain services, passed through the request pipeline unchanged
    and rendered into RFC7807 problem-details responses by the exception
    handlers installed on each app.
    """

    message: str = ""

    default_message: ClassVar[str] = "An error occurred."

    def __post_init__(self) -> None:
        if not self.message:
            self.message = self.default_message

    def __str__(self) -> str:
        return self.message

    def extensions(self) -> dict[str, Any] | None:
        return None


@dataclass(slots=True)
class ValidationError(DomainError):
    errors: dict[str, list[str]] = field(default_factory=dict)

    default_message: ClassVar[str] = "One or more validation failures have occurred."
    default_field: ClassVar[str | None] = None

    def __post_init__(self) -> None:
        DomainError.__post_init__(self)
        if not self.errors and self.default_field:
            self.errors = {self.default_field: [self.message]}

    @classmethod
    def single(cls, field_name: str, message: str) -> "ValidationError":
        return cls(errors={field_name: [message]})


@dataclass(slots=True)
class InvalidTokenError(ValidationError):
    default_message: ClassVar[str] = "Invalid or expired token."
    default_field: ClassVar[str | None] = "token"


@dataclass(slots=True)
class NotFoundError(DomainError):
    default_message: ClassVar[str] = "The requested resource was not found."


@dataclass(slots=True)
class UserNotFoundError(NotFoundError):
    default_message: ClassVar[str] = "User not found"

    @classmethod
    def for_id(cls, user_id: object) -> "UserNotFoundError":
        return cls(f"User with ID '{user_id}' was not found.")


@dataclass(slots=True)
class ProductNotFoundError(NotFoundError):
    default_message: ClassVar[str] = "Product not found"

    @classmethod
    def for_id(cls, product_id: object) -> "ProductNotFoundError":
        return cls(f"Product with ID '{product_id}' was not found.")


@dataclass(slots=True)
class UnauthorizedError(DomainError):
    default_message: ClassVar[str] = "You are not authorized to access this resource."


@dataclass(slots=True)
class EmailNotConfirmedError(UnauthorizedError):
    default_message: ClassVar[str] = "Email address has not been confirmed."


@dataclass(slots=True)
class AccessDeniedError(UnauthorizedError):
    default_message: ClassVar[str] = "Access denied."


@dataclass(slots=True)
class ConflictError(DomainError):
    default_message: ClassVar[str] = "The resource already exists."


@dataclass(slots=True)
class BusinessRuleError(DomainError):
    default_message: ClassVar[str] = "Business rule violation."


@dataclass(slots=True)
class UserNotActiveError(BusinessRuleError):
    default_message: ClassVar[str] = "User is not active"

    @classmethod
    def for_id(cls, user_id: object) -> "UserNotActiveError":
        return cls(f"User with ID '{user_id}' is not active.")


@dataclass(slots=True)
class ServiceCommunicationError(DomainError):
    service_name: str | None = None
    operation: str | None = None

    default_message: ClassVar[str] = "Service communication error"

    @classmethod
    def during(cls, service_name: str, operation: str) -> "ServiceCommunicationError":
        return cls(
            f"Communication error with service '{service_name}' during operation '{operation}'",
            service_name=service_name,
            operation=operation,
        )

    def extensions(self) -> dict[str, Any] | None:
        ext = {"service": self.service_name, "operation": self.operation}
        ext = {k: v for k, v in ext.items() if v is not None}
        return ext or None


@dataclass(slots=True)
class InternalError(DomainError):
    request_type: str | None = None

    default_message: ClassVar[str] = "An error occurred while processing your request."

    @classmethod
    def for_request(cls, request_type: str) -> "InternalError":
        return cls(
            f"An error occurred while processing your request. Request type: {request_type}",
            request_type=request_type,
        )
