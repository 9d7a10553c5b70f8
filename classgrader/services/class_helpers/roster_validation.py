# /classgrader/services/class_helpers/roster_validation.py

"""
The masterlist gate.

The AI extraction happily returns names without usable IDs, or fills the ID
column with placeholders like "N/A" or the header text itself. A batch is only
worth importing when at least one row carries something that looks like a
real student ID: longer than three characters, containing a digit, and not a
known placeholder.
"""

import re
from typing import Iterable, List, Optional

from ...core import config
from ...core.errors import MasterlistRejectedError, MASTERLIST_REJECTED_MESSAGE
from ...core.logging_config import get_logger, log_with_context
from ...models.extraction_model import ExtractedStudent, ValidationResult

logger = get_logger("roster")

PLACEHOLDER_IDS = frozenset({"null", "pending", "n/a", "no id", "student id", "id"})
MIN_ID_LENGTH = 4
_DIGIT = re.compile(r"\d")


def is_plausible_student_id(raw_id: Optional[str]) -> bool:
    """True when a raw extracted ID looks like a real student ID."""
    id_str = "" if raw_id is None else str(raw_id).strip()
    if len(id_str) < MIN_ID_LENGTH:
        return False
    if not _DIGIT.search(id_str):
        return False
    return id_str.lower() not in PLACEHOLDER_IDS


def validate_candidates(candidates: Iterable[ExtractedStudent]) -> ValidationResult:
    """Splits a batch into accepted and rejected candidates."""
    accepted: List[ExtractedStudent] = []
    rejected: List[ExtractedStudent] = []
    for candidate in candidates:
        (accepted if is_plausible_student_id(candidate.id) else rejected).append(candidate)

    result = ValidationResult(accepted=accepted, rejected=rejected)
    if not accepted:
        result.reason = MASTERLIST_REJECTED_MESSAGE

    log_with_context(
        logger, "INFO" if accepted else "WARNING",
        f"Validated {len(accepted)} / {result.total} students have real IDs.",
        extra_data={"accepted": len(accepted), "rejected": len(rejected)},
    )
    return result


def ensure_batch_accepted(result: ValidationResult) -> ValidationResult:
    """Raises MasterlistRejectedError unless at least one candidate passed."""
    if not result.is_accepted:
        raise MasterlistRejectedError(result.reason or MASTERLIST_REJECTED_MESSAGE, total=result.total)
    return result


def select_for_persistence(
    candidates: List[ExtractedStudent],
    result: ValidationResult,
    mode: Optional[str] = None,
) -> List[ExtractedStudent]:
    """
    Chooses which rows of an accepted batch get written.

    "accepted" keeps only the rows that passed; "all" keeps the complete
    extracted list, including rows without a usable ID.
    """
    mode = (mode or config.MASTERLIST_PERSIST_MODE).lower()
    if mode not in config.MASTERLIST_PERSIST_MODES:
        raise ValueError(f"Unknown masterlist persist mode: {mode}")
    ensure_batch_accepted(result)
    if mode == "all":
        return list(candidates)
    return list(result.accepted)
