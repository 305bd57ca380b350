"""Error-driven repair of a rejected CurseForge file submission."""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from common.retry import Fatal, Repairable, RepairOutcome
from platforms.curseforge.models import (
    INVALID_GAME_VERSION_ID_ERROR_CODE,
    INVALID_PROJECT_SLUG_ERROR_CODE,
    CurseForgeDependency,
    get_curseforge_error,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingSubmission:
    """One file upload as it will be sent on the next attempt."""

    file: str
    name: Optional[str] = None
    version_type: Optional[str] = None
    changelog: Optional[str] = None
    changelog_type: Optional[str] = None
    parent_file_id: Optional[int] = None
    game_version_variants: Tuple[Tuple[int, ...], ...] = ((),)
    dependencies: Tuple[CurseForgeDependency, ...] = ()

    @property
    def game_version_ids(self) -> Sequence[int]:
        return self.game_version_variants[0] if self.game_version_variants else ()

    def with_changes(self, **changes) -> "PendingSubmission":
        return dataclasses.replace(self, **changes)


def repair_submission(error: Exception, submission: PendingSubmission) -> RepairOutcome:
    """Decide whether a rejected submission can be corrected and resent.

    - An invalid dependency slug drops that dependency; repairable only if
      a dependency was actually removed.
    - An invalid game version id discards the first identifier group;
      repairable while another group remains.
    - Anything else is fatal.
    """
    cf_error = get_curseforge_error(error)
    if cf_error is None:
        return Fatal(error)

    if cf_error.error_code == INVALID_PROJECT_SLUG_ERROR_CODE:
        slug = cf_error.invalid_project_slug or ""
        remaining = tuple(d for d in submission.dependencies if d.slug != slug)
        if len(remaining) == len(submission.dependencies):
            return Fatal(error)
        logger.info("Removing dependency \"%s\" rejected by CurseForge", slug)
        return Repairable(submission.with_changes(dependencies=remaining))

    if cf_error.error_code == INVALID_GAME_VERSION_ID_ERROR_CODE:
        if len(submission.game_version_variants) <= 1:
            return Fatal(error)
        logger.info(
            "CurseForge rejected game version ids %s, trying %s",
            list(submission.game_version_variants[0]),
            list(submission.game_version_variants[1]),
        )
        return Repairable(submission.with_changes(game_version_variants=submission.game_version_variants[1:]))

    return Fatal(error)
