"""
Typed Exception Hierarchy for the Ledger Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

The API layer renders every failure back to a chat user or a form.  It must
know WHICH code, WHICH field and WHICH amounts were involved without parsing
message strings.  Therefore:
  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        bookkeeping.create_account(user_id, code="5105-01", name="Sueldos")
    except MissingParentAccountError as e:
        api_response(code=e.code, account=e.account_code, parent=e.parent_code)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from LedgerKernelError:

    LedgerKernelError (base)
    |
    +-- IntentError
    |   +-- InvalidIntentError
    |
    +-- AccountError
    |   +-- InvalidAccountCodeError
    |   +-- MissingParentAccountError
    |   +-- DuplicateAccountCodeError
    |   +-- AccountNotFoundError
    |   +-- AccountNotMovableError
    |   +-- AccountClassificationError
    |   +-- SyntheticAccountWriteError
    |
    +-- PostingError
    |   +-- UnbalancedEntriesError
    |   +-- InvalidEntryError
    |   +-- TransactionNotFoundError
    |
    +-- ConcurrencyError
        +-- NumberingConflictError
        +-- RetryExhaustedError
        +-- OperationTimeoutError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                          | When Raised
----------------|-------------------------------|---------------------------------------
Intent          | INVALID_INTENT                | amount <= 0, bad date, unknown type
----------------|-------------------------------|---------------------------------------
Account         | INVALID_ACCOUNT_CODE          | Code not in the 1-5 class scheme
                | MISSING_PARENT_ACCOUNT        | Derived parent code has no row
                | DUPLICATE_ACCOUNT_CODE        | (user_id, code) already exists
                | ACCOUNT_NOT_FOUND             | Account id unknown for this user
                | ACCOUNT_NOT_MOVABLE           | Entry targets a non-movable account
                | ACCOUNT_CLASSIFICATION_MISMATCH | nature/type contradict the code
                | SYNTHETIC_ACCOUNT_WRITE       | Synthetic ancestor reached a write
----------------|-------------------------------|---------------------------------------
Posting         | UNBALANCED_ENTRIES            | Debits != Credits on manual edit
                | INVALID_ENTRY                 | Negative / two-sided / too few rows
                | TRANSACTION_NOT_FOUND         | Transaction id unknown for this user
----------------|-------------------------------|---------------------------------------
Concurrency     | NUMBERING_CONFLICT            | (user_id, numbering) race (retried)
                | RETRY_EXHAUSTED               | Conflicts persisted past max attempts
                | OPERATION_TIMEOUT             | Unit of work exceeded its deadline

===============================================================================
PROPAGATION
===============================================================================

IntentError, AccountError and PostingError are user-facing: they reach the
API boundary untouched.  NumberingConflictError (and the conflict form of
DuplicateAccountCodeError raised during auto-creation) is retried inside the
unit of work; callers only ever see RetryExhaustedError when every attempt
lost its race.
"""


class LedgerKernelError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LEDGER_KERNEL_ERROR"


# Intent-related exceptions


class IntentError(LedgerKernelError):
    """Base exception for parsed-intent errors."""

    code: str = "INTENT_ERROR"


class InvalidIntentError(IntentError):
    """Parsed transaction intent failed validation."""

    code: str = "INVALID_INTENT"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid intent field '{field}': {reason}")


# Account-related exceptions


class AccountError(LedgerKernelError):
    """Base exception for account-related errors."""

    code: str = "ACCOUNT_ERROR"


class InvalidAccountCodeError(AccountError):
    """Account code does not map onto the chart-of-accounts scheme."""

    code: str = "INVALID_ACCOUNT_CODE"

    def __init__(self, account_code: str, reason: str):
        self.account_code = account_code
        self.reason = reason
        super().__init__(f"Invalid account code '{account_code}': {reason}")


class MissingParentAccountError(AccountError):
    """The parent implied by an account code does not exist."""

    code: str = "MISSING_PARENT_ACCOUNT"

    def __init__(self, account_code: str, parent_code: str):
        self.account_code = account_code
        self.parent_code = parent_code
        super().__init__(
            f"Cannot create account {account_code}: "
            f"parent account {parent_code} does not exist"
        )


class DuplicateAccountCodeError(AccountError):
    """An account with this code already exists for the user."""

    code: str = "DUPLICATE_ACCOUNT_CODE"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(f"Account code already exists: {account_code}")


class AccountNotFoundError(AccountError):
    """Account was not found."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")


class AccountNotMovableError(AccountError):
    """Account cannot receive ledger entries."""

    code: str = "ACCOUNT_NOT_MOVABLE"

    def __init__(self, account_id: str, account_code: str):
        self.account_id = account_id
        self.account_code = account_code
        super().__init__(
            f"Account {account_code} ({account_id}) cannot receive movements"
        )


class AccountClassificationError(AccountError):
    """Supplied nature or account type contradicts the account code."""

    code: str = "ACCOUNT_CLASSIFICATION_MISMATCH"

    def __init__(self, account_code: str, field: str, expected: str, received: str):
        self.account_code = account_code
        self.field = field
        self.expected = expected
        self.received = received
        super().__init__(
            f"Account {account_code}: {field} must be {expected}, got {received}"
        )


class SyntheticAccountWriteError(AccountError):
    """A synthetic (non-persisted) account reached a write path."""

    code: str = "SYNTHETIC_ACCOUNT_WRITE"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(
            f"Synthetic account {account_id} is derived on read and cannot be written"
        )


# Posting-related exceptions


class PostingError(LedgerKernelError):
    """Base exception for posting-related errors."""

    code: str = "POSTING_ERROR"


class UnbalancedEntriesError(PostingError):
    """Ledger entries debits do not equal credits."""

    code: str = "UNBALANCED_ENTRIES"

    def __init__(self, debits: str, credits: str):
        self.debits = debits
        self.credits = credits
        super().__init__(f"Unbalanced entries: debits={debits}, credits={credits}")


class InvalidEntryError(PostingError):
    """A ledger entry row is malformed."""

    code: str = "INVALID_ENTRY"

    def __init__(self, index: int | None, reason: str):
        self.index = index
        self.reason = reason
        where = f"entry {index}" if index is not None else "entries"
        super().__init__(f"Invalid {where}: {reason}")


class TransactionNotFoundError(PostingError):
    """Transaction was not found for this user."""

    code: str = "TRANSACTION_NOT_FOUND"

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction not found: {transaction_id}")


# Concurrency-related exceptions


class ConcurrencyError(LedgerKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class NumberingConflictError(ConcurrencyError):
    """Another request committed the same (user_id, numbering) first."""

    code: str = "NUMBERING_CONFLICT"

    def __init__(self, numbering: str):
        self.numbering = numbering
        super().__init__(f"Numbering {numbering} was taken by a concurrent posting")


class RetryExhaustedError(ConcurrencyError):
    """A unit of work kept losing races until its attempts ran out."""

    code: str = "RETRY_EXHAUSTED"

    def __init__(self, operation: str, attempts: int):
        self.operation = operation
        self.attempts = attempts
        super().__init__(
            f"Operation {operation} failed after {attempts} attempt(s) "
            "due to concurrent modifications"
        )


class OperationTimeoutError(ConcurrencyError):
    """A unit of work exceeded its caller-supplied deadline and was rolled back."""

    code: str = "OPERATION_TIMEOUT"

    def __init__(self, operation: str, timeout_seconds: float):
        self.operation = operation
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Operation {operation} exceeded its {timeout_seconds}s deadline"
        )
