"""
Error codes for the conversion-sdk.

Error codes follow the format: Conversion-{Component}-{HTTP_Code}-{Unique_ID}

Components:
- Read: Transaction log and data file enumeration errors
- State: Incremental sync state and source lifecycle errors
- Reconciliation: Log inconsistencies that are recorded but never fatal
"""

from typing import Dict, Optional


class ErrorCode:
    """Error code with component, HTTP code, and description."""

    def __init__(
        self, component: str, http_code: str, unique_id: str, description: str
    ):
        self.component = component
        self.code = f"Conversion-{component}-{http_code}-{unique_id}"
        self.description = description

    def __str__(self) -> str:
        return f"{self.code}: {self.description}"

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r})"


class ConversionSourceError(Exception):
    """Base exception for conversion source operations.

    Raised as ``SomeError(SomeError.CODE, "message")`` so the code travels with
    the exception and shows up in the rendered message.

    Attributes:
        error_code: The :class:`ErrorCode` describing the failure class.
        message: Human-readable detail for this occurrence.
    """

    def __init__(self, error_code: ErrorCode, message: Optional[str] = None):
        self.error_code = error_code
        self.message = message or error_code.description
        super().__init__(f"{error_code.code}: {self.message}")


class ReadError(ConversionSourceError):
    """The transaction log or the data file listing could not be read.

    Not retried by the sdk. ``version`` is set when the failure is tied to a
    specific log version.
    """

    LOG_READ_ERROR = ErrorCode("Read", "500", "00", "Transaction log read error")
    VERSION_NOT_FOUND = ErrorCode("Read", "404", "00", "Log version not found")
    DATA_FILE_ITERATION_ERROR = ErrorCode(
        "Read", "500", "01", "Failed to iterate through Delta data files"
    )
    UNSUPPORTED_FILE_FORMAT = ErrorCode(
        "Read", "422", "00", "Unsupported data file format"
    )
    EMPTY_LOG_ERROR = ErrorCode("Read", "404", "01", "Transaction log has no commits")

    def __init__(
        self,
        error_code: ErrorCode,
        message: Optional[str] = None,
        version: Optional[int] = None,
    ):
        self.version = version
        if version is not None:
            message = f"{message or error_code.description} (version={version})"
        super().__init__(error_code, message)


class IncrementalStateError(ConversionSourceError):
    """A per-version operation was invoked without the state it depends on.

    Indicates caller misuse: the call is not retried.
    """

    SYNC_STATE_NOT_INITIALIZED = ErrorCode(
        "State",
        "409",
        "00",
        "Incremental sync state is not initialized; call get_commits_backlog first",
    )
    VERSION_NOT_IN_BACKLOG = ErrorCode(
        "State", "400", "00", "Version is not part of the current commits backlog"
    )
    SOURCE_CLOSED = ErrorCode("State", "409", "01", "Conversion source is closed")


RECONCILIATION_ERRORS = {
    "RECONCILIATION_ANOMALY": ErrorCode(
        "Reconciliation",
        "200",
        "00",
        "No Remove action found for a data file with an added deletion vector",
    ),
}

READ_ERRORS = {
    "LOG_READ_ERROR": ReadError.LOG_READ_ERROR,
    "VERSION_NOT_FOUND": ReadError.VERSION_NOT_FOUND,
    "DATA_FILE_ITERATION_ERROR": ReadError.DATA_FILE_ITERATION_ERROR,
    "UNSUPPORTED_FILE_FORMAT": ReadError.UNSUPPORTED_FILE_FORMAT,
    "EMPTY_LOG_ERROR": ReadError.EMPTY_LOG_ERROR,
}

STATE_ERRORS = {
    "SYNC_STATE_NOT_INITIALIZED": IncrementalStateError.SYNC_STATE_NOT_INITIALIZED,
    "VERSION_NOT_IN_BACKLOG": IncrementalStateError.VERSION_NOT_IN_BACKLOG,
    "SOURCE_CLOSED": IncrementalStateError.SOURCE_CLOSED,
}

# Combined dictionary of all error codes
ERROR_CODES: Dict[str, ErrorCode] = {
    **READ_ERRORS,
    **STATE_ERRORS,
    **RECONCILIATION_ERRORS,
}
