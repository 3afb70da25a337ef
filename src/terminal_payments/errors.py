"""Error taxonomy shared by the ledger clients, the lifecycle manager and reporting."""


class TerminalPaymentsError(Exception):
    """Base class for all errors surfaced to callers.

    ``status_code`` is the HTTP status the API layer answers with.
    """

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TerminalPaymentsError):
    """Missing or malformed required input."""

    status_code = 400


class NotFoundError(TerminalPaymentsError):
    """The referenced transaction id is unknown to the ledger."""

    status_code = 404


class ConflictError(TerminalPaymentsError):
    """Invalid state transition, e.g. capturing a non-capturable record."""

    status_code = 409


class UpstreamError(TerminalPaymentsError):
    """The ledger rejected the call or could not be reached."""

    status_code = 500
