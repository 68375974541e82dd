"""
Error taxonomy shared by the ledger store and the workflows.

Every error carries the HTTP status the API layer answers with, so routes
never have to translate them one by one.
"""


class LedgerError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(LedgerError):
    status_code = 404


class DuplicateIdentityError(LedgerError):
    status_code = 400


class InsufficientFundsError(LedgerError):
    status_code = 400


class TournamentFullError(LedgerError):
    status_code = 400


class AlreadyJoinedError(LedgerError):
    status_code = 400


class ForbiddenError(LedgerError):
    status_code = 403


class InvalidStateError(LedgerError):
    status_code = 400


class LedgerValidationError(LedgerError):
    status_code = 400
