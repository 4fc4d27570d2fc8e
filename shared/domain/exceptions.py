"""
Domain Exceptions

Error taxonomy shared by every service layer of the marketplace:
- Unauthorized: no session or bad credentials
- Forbidden: wrong role, wrong owner or unapproved account
- NotFound: referenced entity is absent
- Conflict: duplicate application, double assignment, singleton role taken
- InvalidState: transition requested from a state that does not allow it
- ValidationError: malformed input, unknown catalog references
- ExternalServiceError: payment gateway failure

Services raise these; the DRF exception handler turns them into responses.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for errors that are safe to show to API callers."""

    status_code = 400
    default_code = "error"
    default_message = "Ошибка запроса."

    def __init__(self, message: str | None = None, *, code: str | None = None):
        self.message = message or self.default_message
        self.code = code or self.default_code
        super().__init__(self.message)

    def as_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


class Unauthorized(DomainError):
    status_code = 401
    default_code = "unauthorized"
    default_message = "Требуется авторизация."


class Forbidden(DomainError):
    status_code = 403
    default_code = "forbidden"
    default_message = "Недостаточно прав для выполнения операции."

    def __init__(self, message: str | None = None, *, reason: str | None = None, code: str | None = None):
        super().__init__(message, code=code)
        self.reason = reason

    def as_dict(self) -> dict:
        data = super().as_dict()
        if self.reason:
            data["reason"] = self.reason
        return data


class NotFound(DomainError):
    status_code = 404
    default_code = "not_found"
    default_message = "Объект не найден."


class Conflict(DomainError):
    status_code = 409
    default_code = "conflict"
    default_message = "Операция конфликтует с текущим состоянием данных."


class InvalidState(DomainError):
    status_code = 409
    default_code = "invalid_state"
    default_message = "Переход недоступен из текущего статуса."


class ValidationError(DomainError):
    status_code = 400
    default_code = "validation_error"
    default_message = "Некорректные данные запроса."


class ExternalServiceError(DomainError):
    status_code = 502
    default_code = "external_service_error"
    default_message = "Внешний сервис недоступен."
