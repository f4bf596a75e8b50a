from enum import Enum
from typing import Optional

class ErrorCodes(Enum):
    CONNECTION_FAILURE = "connection_failure"
    MISCONFIGURED_CONNECTION = "misconfigured_connection"
    UNEXPECTED_ROW = "unexpected_row"
    TABLE_NOT_FOUND = "table_not_found"
    COLUMN_NOT_FOUND = "column_not_found"
    NO_PRIMARY_KEY = "no_primary_key"
    INVALID_ARGUMENT = "invalid_argument"

class InspectorError(Exception):
    def __init__(self, code: ErrorCodes, message: str, details: Optional[str] = None):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(f"{code.value}: {message}")
