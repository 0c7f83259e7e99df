"""Domain exceptions for the notebook client."""


class NotebookError(Exception):
    """Base exception for all notebook client errors."""

    def __init__(self, message: str, recoverable: bool = True):
        super().__init__(message)
        self.recoverable = recoverable


class TransportError(NotebookError):
    """The search stream could not be opened or read."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        recoverable: bool = True,
    ):
        super().__init__(message, recoverable)
        self.status_code = status_code


class PersistenceError(NotebookError):
    """The storage collaborator rejected a create, update, delete or list."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        recoverable: bool = True,
    ):
        super().__init__(message, recoverable)
        self.operation = operation


class NotebookNotFound(PersistenceError):
    """A notebook or entry does not exist in the store."""


class InvalidTransition(NotebookError):
    """An entry lifecycle transition that is not allowed."""

    def __init__(self, current: str, target: str):
        super().__init__(
            f"Invalid lifecycle transition: {current} -> {target}",
            recoverable=False,
        )
        self.current = current
        self.target = target


class DecoderClosedError(NotebookError):
    """Bytes were pushed into a reassembler that was already flushed."""

    def __init__(self, message: str = "Stream reassembler is closed"):
        super().__init__(message, recoverable=False)
