"""Exception hierarchy for kasboek.

Library code raises these; the CLI layer catches them, logs a readable
message and exits with a non-zero status.
"""


class KasboekError(Exception):
    """Base class for all kasboek errors."""


class StoreError(KasboekError):
    """A document store operation failed."""


class ApiNotConfiguredError(StoreError):
    """The API gateway URL or token is missing."""


class ApiError(StoreError):
    """The API gateway answered with a non-success status."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body[:150]
        super().__init__(f"API error ({status_code}): {self.body}")


class CsvFormatError(KasboekError):
    """A CSV export could not be read."""


class InvalidAmountError(KasboekError, ValueError):
    """An amount string could not be parsed."""


class InvalidDateError(KasboekError, ValueError):
    """A date string could not be parsed."""


class LedgerValidationError(KasboekError, ValueError):
    """Input for a ledger operation is incomplete or inconsistent."""


class ExportError(KasboekError):
    """Nothing to export, or the export could not be written."""
