class RentalError(Exception):
    """Base class for domain errors raised outside of the HTTP layer."""


class RowValidationError(RentalError):
    """A spreadsheet row was rejected. Never aborts the rest of the run."""

    def __init__(self, row_number: int, message: str):
        self.row_number = row_number
        self.message = message
        super().__init__(f"Ligne {row_number}: {message}")


class ImportFatalError(RentalError):
    """The whole import run must stop (missing file, empty sheet, nothing valid)."""

    def __init__(self, message: str, erreurs: list[str] | None = None):
        self.message = message
        self.erreurs = erreurs or []
        super().__init__(message)
