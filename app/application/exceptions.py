class ValidationError(ValueError):
    """Raised when a request is missing required fields or carries invalid values."""
    pass


class MissingFieldError(ValidationError):
    """Raised when a required field is absent from a command payload."""
    pass


class StoreUnavailableError(RuntimeError):
    """Raised when the record store cannot be reached or a query fails."""
    pass


class BookingApiError(RuntimeError):
    """Raised when the booking API rejects a submission or answers with an error envelope."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StepValidationError(ValueError):
    """Raised when the current draft step has missing or malformed fields."""

    def __init__(self, step: str, errors: dict[str, str]) -> None:
        self.step = step
        self.errors = dict(errors)
        fields = ", ".join(sorted(self.errors))
        super().__init__(f"Step '{step}' is incomplete: {fields}")


class DraftTransitionError(RuntimeError):
    """Raised when a draft operation is not allowed from the current step."""
    pass
