from enum import Enum


class FormatError(ValueError):
    """The archive is unreadable or its arrays do not describe a posed-image set."""


class RetrievalErrorCode(Enum):
    REFUSED = "refused"
    STATUS = "status"
    INTERRUPTED = "interrupted"


class RetrievalError(ConnectionError):
    code = None

    def __init__(self, url, message):
        super().__init__(f"{message} ({url})")
        self.url = url


class ConnectionRefused(RetrievalError):
    code = RetrievalErrorCode.REFUSED


class BadStatus(RetrievalError):
    code = RetrievalErrorCode.STATUS

    def __init__(self, url, status):
        super().__init__(url, f"HTTP status {status}")
        self.status = status


class TransferInterrupted(RetrievalError):
    code = RetrievalErrorCode.INTERRUPTED
