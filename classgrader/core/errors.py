# /classgrader/core/errors.py

"""
The exception taxonomy shared by the service and router layers.

Transport failures (store or AI endpoint unreachable, malformed AI payloads)
are reported with one generic retry message. Policy failures (a masterlist
with no usable student IDs) and precondition failures (missing professor,
missing selection fields) are raised before anything is written and carry
their own user-facing messages.
"""

GENERIC_FAILURE_MESSAGE = "Something went wrong. Please check your connection and try again."
AI_FAILURE_MESSAGE = "Could not connect to the AI server. Please try again."
MASTERLIST_REJECTED_MESSAGE = "Invalid master list no student ID"


class ClassgraderError(Exception):
    """Base class for every error raised by the classgrader services."""


# --- Transport ---

class StoreError(ClassgraderError):
    """The hierarchical store could not complete a read or write."""


class AIServiceError(ClassgraderError):
    """The AI endpoint call failed, for whatever upstream reason."""


# --- Policy ---

class MasterlistRejectedError(ClassgraderError, ValueError):
    """No extracted candidate carried a plausible student ID."""

    def __init__(self, reason: str = MASTERLIST_REJECTED_MESSAGE, total: int = 0):
        super().__init__(reason)
        self.reason = reason
        self.total = total


# --- Preconditions ---

class PreconditionError(ClassgraderError, ValueError):
    """A required input was missing, so the operation was never attempted."""


class KeyAllocationError(PreconditionError):
    """The identifier allocator produced no key."""


class InvalidKeyError(PreconditionError):
    """A value cannot be used as a path segment in the store."""


class ClassNotFoundError(ClassgraderError, LookupError):
    """The targeted class does not exist for this professor."""


class DuplicateStudentError(ClassgraderError):
    """A student record already exists at the chosen key."""

    def __init__(self, student_key: str):
        super().__init__(f"A student with ID {student_key} already exists in this class.")
        self.student_key = student_key
