"""Custom domain exceptions for the application."""

# Stable, machine-readable error codes for API consumers.
NOT_FOUND = "NOT_FOUND"
DUPLICATE = "DUPLICATE"
VALIDATION_FAILED = "VALIDATION_FAILED"
EXECUTION_FAILED = "EXECUTION_FAILED"
UNDO_FAILED = "UNDO_FAILED"
DISCOUNT_ERROR = "DISCOUNT_ERROR"


class DomainError(Exception):
    """Base exception for domain/business logic errors."""

    pass


class NotFoundError(DomainError):
    """Raised when a requested resource does not exist."""

    pass


class DomainValidationError(DomainError):
    """Raised when business rules or domain validation fail (e.g. non-positive price, unknown product family)."""

    pass


class CommandError(DomainError):
    """Uniform failure of a command, tagged with the command name and an error code.

    The underlying exception, when there is one, is chained with ``raise ... from``
    and is available as ``__cause__``.
    """

    def __init__(self, command_name: str, code: str, message: str):
        super().__init__(message)
        self.command_name = command_name
        self.code = code
        self.message = message

    @property
    def cause(self) -> BaseException | None:
        return self.__cause__

    def __repr__(self) -> str:
        return (
            f"CommandError(command_name={self.command_name!r}, "
            f"code={self.code!r}, message={self.message!r})"
        )


class DiscountCalculationError(DomainError):
    """Raised by a strict discount calculation when the engine itself fails."""

    code = DISCOUNT_ERROR
