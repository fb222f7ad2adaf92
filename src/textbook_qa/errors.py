"""Exception taxonomy for the textbook QA pipeline."""


class QAError(Exception):
    """Base class for pipeline errors."""


class RetrievalError(QAError):
    """Raised when the passage index is unreachable or the search fails."""


class GenerationError(QAError):
    """Raised when the completion service fails or returns nothing.

    ``status_code`` carries the upstream HTTP status when one was received.
    """

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        self.detail = detail
        self.status_code = status_code
        if status_code is not None:
            super().__init__(f"completion failed ({status_code}): {detail}")
        else:
            super().__init__(f"completion failed: {detail}")


class SessionCreationError(QAError):
    """Raised when the record store rejects a new chat session."""


class SessionAccessError(QAError):
    """Raised when a supplied session id is unknown or owned by someone else."""


class StoreError(QAError):
    """Raised by the record store on any database failure."""


class InvalidQuestionError(QAError, ValueError):
    """Raised when a question is blank; safe to echo back to the caller."""


class ProcessingError(QAError):
    """User-facing failure of ``process_question``.

    The message is localized text safe to show to a learner; the internal
    cause is only logged.
    """


class PersistenceWarning(UserWarning):
    """A chat message could not be written. Returned, never raised."""
