from __future__ import annotations


class DomainError(Exception):
    """Base domain error shown to user as friendly message."""


class ValidationError(DomainError):
    pass


class PersistenceError(DomainError):
    """Ledger storage could not be read or written."""


class ExtractionError(DomainError):
    pass


class DownloadError(DomainError):
    pass


class DownloadLimitError(DomainError):
    def __init__(self, message: str, *, limit: int, is_premium: bool) -> None:
        super().__init__(message)
        self.limit = limit
        self.is_premium = is_premium


class MediaTooLongError(DomainError):
    pass


class FileTooLargeError(DomainError):
    pass
