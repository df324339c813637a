class AppError(Exception):
    """Base app error."""


class ValidationError(AppError):
    """Request rejected before reaching the core; messages keyed by field name."""

    def __init__(self, errors: dict[str, list[str]]):
        self.errors = {field: list(messages) for field, messages in errors.items()}
        super().__init__("; ".join(f"{field}: {' '.join(msgs)}" for field, msgs in self.errors.items()))


class NotFoundError(AppError):
    pass


class InvalidOrderRequestError(AppError):
    """Order request the store refuses to write (no items, non-positive quantity)."""


class ReferentialInconsistencyError(AppError):
    """A reference that the caller should have validated no longer resolves."""


class MalformedPersistedStateError(AppError):
    """Stored data breaks an invariant (e.g. an order item without quantity)."""
