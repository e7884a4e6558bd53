class LedgerError(Exception):
    """Base class for errors raised while posting or reporting."""
    pass


class UnbalancedEntryError(LedgerError):
    """Raised when a voucher's debits and credits differ after rounding."""

    def __init__(self, total_debit, total_credit, message=None):
        self.total_debit = total_debit
        self.total_credit = total_credit
        self.difference = abs(total_debit - total_credit)
        super().__init__(
            message
            or f"Voucher not balanced: debits={total_debit}, credits={total_credit}"
        )


class AccountNotFoundError(LedgerError):
    """Raised when a required ledger account cannot be resolved.

    `role` names the account the posting needed (inventory, payable, ...)
    and `hint` tells the operator what to fix in the chart of accounts.
    """

    def __init__(self, role, hint=None):
        self.role = role
        self.hint = hint or f"No active account tagged '{role}' in the chart of accounts"
        super().__init__(f"Account not found ({role}): {self.hint}")


class InvalidAmountError(LedgerError):
    """Raised for non-positive or non-numeric monetary input."""
    pass


class InvalidDateError(LedgerError):
    """Raised when an "as of" date cannot be parsed."""
    pass


class AlreadyPostedDifferentPayload(LedgerError):
    """Raised when a Voucher already posted with different payload """
    pass
