"""
Typed Exception Hierarchy for the FineX Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every rejected mutation must be reported back to the caller, never
swallowed.  Callers (the application controller, the presentation layer,
tests) decide what to do by catching a TYPE and reading structured
attributes, not by parsing messages:

    try:
        app.confirm(reason)
    except InsufficientQuantityError as e:
        show_error(e.code, requested=e.requested, available=e.available)

Every class carries a ``code`` class attribute (machine-readable, stable)
and stores its context as instance attributes.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    FinexKernelError (base)
    |
    +-- ValidationError                 (blocks commit, zero partial change)
    |   +-- UnbalancedEntryError
    |   +-- ShareExceededError
    |   +-- InsufficientQuantityError
    |   +-- DuplicateCodeError
    |   +-- DuplicatePhoneError
    |   +-- ReasonTooShortError
    |   +-- InvalidPayloadError
    |
    +-- PendingActionError
    |   +-- PendingActionConflictError
    |   +-- NoPendingActionError
    |
    +-- UnsupportedIntentError
    |
    +-- AuthenticationError
    |   +-- InvalidCredentialsError
    |   +-- UserBlockedError
    |   +-- NotAuthenticatedError
    |   +-- SelfDeletionError
    |
    +-- IntegrityError
    |   +-- RoleSignatureMismatchError
    |
    +-- PersistenceError
    |
    +-- ImportRejectedError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Validation      | UNBALANCED_ENTRY            | Debits != Credits, or total is zero
                | SHARE_EXCEEDED              | Well shares sum above 100%
                | INSUFFICIENT_QUANTITY       | Issue more than is in stock
                | DUPLICATE_CODE              | Account code already in the chart
                | DUPLICATE_PHONE             | Phone already used by another user
                | REASON_TOO_SHORT            | Justification shorter than 3 chars
                | INVALID_PAYLOAD             | Unknown field, empty name, bad quantity
----------------|-----------------------------|-----------------------------------------
Pending action  | PENDING_ACTION_CONFLICT     | submit() while a reason is awaited
                | NO_PENDING_ACTION           | confirm()/cancel() with nothing pending
----------------|-----------------------------|-----------------------------------------
Intent          | UNSUPPORTED_INTENT          | No commit handler for (entity, operation)
----------------|-----------------------------|-----------------------------------------
Authentication  | INVALID_CREDENTIALS         | Unknown phone / wrong password / role
                | USER_BLOCKED                | Login by a blocked user
                | NOT_AUTHENTICATED           | Mutation attempted with no session
                | SELF_DELETION               | A user deleting their own account
----------------|-----------------------------|-----------------------------------------
Integrity       | ROLE_SIGNATURE_MISMATCH     | Stored role signature fails verify()
----------------|-----------------------------|-----------------------------------------
Persistence     | PERSISTENCE_ERROR           | Durable write failed
----------------|-----------------------------|-----------------------------------------
Import          | IMPORT_REJECTED             | Backup lacks users/coa or is malformed

===============================================================================
"""


class FinexKernelError(Exception):
    """
    Base exception for all FineX kernel errors.

    All subclasses must have a ``code`` class attribute for
    machine-readable error identification.
    """

    code: str = "FINEX_KERNEL_ERROR"


# Validation exceptions


class ValidationError(FinexKernelError):
    """Base exception for invariant validator failures.

    Raised synchronously, before any collection is touched, and never
    accompanied by an audit entry.
    """

    code: str = "VALIDATION_ERROR"


class UnbalancedEntryError(ValidationError):
    """Journal entry debits do not equal credits (or both are zero)."""

    code: str = "UNBALANCED_ENTRY"

    def __init__(self, debits: str, credits: str, entry_id: str | None = None):
        self.debits = debits
        self.credits = credits
        self.entry_id = entry_id
        super().__init__(
            f"Unbalanced entry {entry_id or '<new>'}: "
            f"debits={debits}, credits={credits}"
        )


class ShareExceededError(ValidationError):
    """Partner shares on a well add up to more than 100%."""

    code: str = "SHARE_EXCEEDED"

    def __init__(self, well_id: str, total_percent: str):
        self.well_id = well_id
        self.total_percent = total_percent
        super().__init__(
            f"Shares on well {well_id} total {total_percent}%, limit is 100%"
        )


class InsufficientQuantityError(ValidationError):
    """Requested issue quantity exceeds what is in stock."""

    code: str = "INSUFFICIENT_QUANTITY"

    def __init__(self, item_id: str, requested: str, available: str):
        self.item_id = item_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Cannot issue {requested} of item {item_id}: only {available} available"
        )


class DuplicateCodeError(ValidationError):
    """Account code is already used in the chart of accounts."""

    code: str = "DUPLICATE_CODE"

    def __init__(self, account_code: str, existing_account_id: str):
        self.account_code = account_code
        self.existing_account_id = existing_account_id
        super().__init__(
            f"Account code {account_code} already used by account {existing_account_id}"
        )


class DuplicatePhoneError(ValidationError):
    """Phone number is already registered to another user."""

    code: str = "DUPLICATE_PHONE"

    def __init__(self, phone: str):
        self.phone = phone
        super().__init__(f"Phone {phone} is already registered")


class ReasonTooShortError(ValidationError):
    """Justification reason is shorter than the required minimum."""

    code: str = "REASON_TOO_SHORT"

    def __init__(self, length: int, minimum: int):
        self.length = length
        self.minimum = minimum
        super().__init__(
            f"Reason must be at least {minimum} characters, got {length}"
        )


class InvalidPayloadError(ValidationError):
    """Intent payload is structurally invalid for the target entity."""

    code: str = "INVALID_PAYLOAD"

    def __init__(self, entity_type: str, reason: str):
        self.entity_type = entity_type
        self.reason = reason
        super().__init__(f"Invalid {entity_type} payload: {reason}")


# Pending action exceptions


class PendingActionError(FinexKernelError):
    """Base exception for pending-action state machine misuse."""

    code: str = "PENDING_ACTION_ERROR"


class PendingActionConflictError(PendingActionError):
    """A new intent was submitted while another awaits its reason."""

    code: str = "PENDING_ACTION_CONFLICT"

    def __init__(self, pending_intent_id: str, rejected_intent_id: str):
        self.pending_intent_id = pending_intent_id
        self.rejected_intent_id = rejected_intent_id
        super().__init__(
            f"Intent {pending_intent_id} is awaiting a reason; "
            f"intent {rejected_intent_id} was rejected"
        )


class NoPendingActionError(PendingActionError):
    """confirm() or cancel() called while no intent is pending."""

    code: str = "NO_PENDING_ACTION"

    def __init__(self, command: str):
        self.command = command
        super().__init__(f"Nothing pending to {command}")


class UnsupportedIntentError(FinexKernelError):
    """No commit handler exists for the (entity, operation) pair."""

    code: str = "UNSUPPORTED_INTENT"

    def __init__(self, entity_type: str, operation: str):
        self.entity_type = entity_type
        self.operation = operation
        super().__init__(f"No commit handler for {operation} on {entity_type}")


# Authentication exceptions


class AuthenticationError(FinexKernelError):
    """Base exception for login and session failures."""

    code: str = "AUTHENTICATION_ERROR"


class InvalidCredentialsError(AuthenticationError):
    """Unknown phone, wrong password, or wrong role for the login type."""

    code: str = "INVALID_CREDENTIALS"

    def __init__(self, phone: str):
        self.phone = phone
        super().__init__(f"Invalid login for {phone}")


class UserBlockedError(AuthenticationError):
    """The user account is blocked."""

    code: str = "USER_BLOCKED"

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User {user_id} is blocked")


class NotAuthenticatedError(AuthenticationError):
    """A command requiring a session was issued with nobody logged in."""

    code: str = "NOT_AUTHENTICATED"

    def __init__(self, command: str):
        self.command = command
        super().__init__(f"{command} requires an authenticated user")


class SelfDeletionError(AuthenticationError):
    """A user attempted to delete their own account."""

    code: str = "SELF_DELETION"

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User {user_id} cannot delete their own account")


# Integrity exceptions


class IntegrityError(FinexKernelError):
    """Base exception for tamper-evidence failures."""

    code: str = "INTEGRITY_ERROR"


class RoleSignatureMismatchError(IntegrityError):
    """The stored role signature does not verify for this identity."""

    code: str = "ROLE_SIGNATURE_MISMATCH"

    def __init__(self, user_id: str, role: str):
        self.user_id = user_id
        self.role = role
        super().__init__(
            f"Role signature for user {user_id} does not verify as {role}"
        )


# Persistence / import exceptions


class PersistenceError(FinexKernelError):
    """Durable storage write failed."""

    code: str = "PERSISTENCE_ERROR"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Persistence {operation} failed: {detail}")


class ImportRejectedError(FinexKernelError):
    """Backup document is missing required collections or is malformed."""

    code: str = "IMPORT_REJECTED"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Backup import rejected: {reason}")
