from __future__ import annotations


class ClipFactoryError(RuntimeError):
    pass


class NotFound(ClipFactoryError, KeyError):
    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "not found"


class AlreadyProcessed(ClipFactoryError):
    pass


class TranscriptionError(ClipFactoryError):
    pass


class TranscriptionUnavailable(TranscriptionError):
    """The engine cannot process the input (missing file, rejected format)."""


class TranscriptionServiceError(TranscriptionError):
    """Transport, auth or quota failure talking to the engine."""


class ClipRenderingFailed(ClipFactoryError):
    def __init__(self, diagnostic: str) -> None:
        super().__init__(diagnostic)
        self.diagnostic = diagnostic


class StorageError(ClipFactoryError):
    pass


class UploadRejected(ClipFactoryError):
    pass
