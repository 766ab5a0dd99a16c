"""Branch-Protection scoring policy.

Findings are grouped by branch. Each branch accumulates seven sub-scores,
which are summed across branches into five tiers and scored as a gated
ladder (see scoring.compute_final_score).
"""

from __future__ import annotations

from typing import Callable

from posturescore import probes
from posturescore.checker import (
    MAX_RESULT_SCORE,
    MIN_RESULT_SCORE,
    CheckResult,
    DetailLogger,
    LogMessage,
    create_inconclusive_result,
    create_max_score_result,
    create_min_score_result,
    create_result_with_score,
    create_runtime_error_result,
)
from posturescore.config import MIN_REVIEWS, REVIEWER_WEIGHT
from posturescore.errors import InternalError, with_message
from posturescore.evaluation.scoring import LevelScore, compute_final_score
from posturescore.models import Finding, Outcome

NO_BRANCHES_REASON = "unable to detect any development/release branches"

# (sub-score, score, max) contributed by one finding
Contribution = tuple[str, int, int]


class _BranchLog:
    """Detail logger that stays silent for unprotected branches."""

    def __init__(self, dl: DetailLogger, enabled: bool) -> None:
        self.dl = dl
        self.enabled = enabled

    def info(self, text: str) -> None:
        if self.enabled:
            self.dl.info(LogMessage(text=text))

    def warn(self, text: str) -> None:
        if self.enabled:
            self.dl.warn(LogMessage(text=text))

    def debug(self, text: str) -> None:
        if self.enabled:
            self.dl.debug(LogMessage(text=text))

    def with_debug(self, f: Finding) -> None:
        if f.outcome == Outcome.NOT_AVAILABLE:
            self.debug(f.message)
        else:
            self.without_debug(f)

    def without_debug(self, f: Finding) -> None:
        if f.outcome == Outcome.TRUE:
            self.info(f.message)
        elif f.outcome == Outcome.FALSE:
            self.warn(f.message)

    def info_or_warn(self, f: Finding) -> None:
        if f.outcome == Outcome.TRUE:
            self.info(f.message)
        else:
            self.warn(f.message)


def _point(f: Finding) -> int:
    return 1 if f.outcome == Outcome.TRUE else 0


def _basic(f: Finding, log: _BranchLog) -> list[Contribution]:
    log.without_debug(f)
    return [("basic", _point(f), 1)]


def _context(f: Finding, log: _BranchLog) -> list[Contribution]:
    log.info_or_warn(f)
    return [("context", _point(f), 1)]


def _admin_only(sub_score: str) -> Callable[[Finding, _BranchLog], list[Contribution]]:
    # Settings only visible to admin tokens: NotAvailable does not count
    # towards the maximum.
    def handler(f: Finding, log: _BranchLog) -> list[Contribution]:
        log.with_debug(f)
        max_score = 0 if f.outcome == Outcome.NOT_AVAILABLE else 1
        return [(sub_score, _point(f), max_score)]
    return handler


def _reviewers(f: Finding, log: _BranchLog) -> list[Contribution]:
    # Scored twice: once for requiring any reviewer, once for the
    # thorough-review threshold.
    count = probes.reviewer_count(f)
    thorough = 0
    if f.outcome == Outcome.TRUE:
        if count >= MIN_REVIEWS:
            log.info(f.message)
            thorough = 1
        else:
            log.warn(f.message)
    elif f.outcome == Outcome.FALSE:
        log.warn(f.message)

    review = REVIEWER_WEIGHT if f.outcome == Outcome.TRUE and count > 0 else 0
    return [("thoroughReview", thorough, 1), ("review", review, REVIEWER_WEIGHT)]


def _codeowners(f: Finding, log: _BranchLog) -> list[Contribution]:
    score = 0
    if f.outcome != Outcome.TRUE:
        log.warn(f.message)
    elif probes.codeowners_file_count(f) == 0:
        log.warn("codeowners branch protection is being ignored - but no codeowners file found in repo")
    else:
        log.info(f.message)
        score = 1
    return [("codeownerReview", score, 1)]


_HANDLERS: dict[str, Callable[[Finding, _BranchLog], list[Contribution]]] = {
    probes.BLOCKS_DELETE_ON_BRANCHES: _basic,
    probes.BLOCKS_FORCE_PUSH_ON_BRANCHES: _basic,
    probes.DISMISSES_STALE_REVIEWS: _admin_only("adminThoroughReview"),
    probes.BRANCH_PROTECTION_APPLIES_TO_ADMINS: _admin_only("adminThoroughReview"),
    probes.REQUIRES_APPROVERS_FOR_PULL_REQUESTS: _reviewers,
    probes.REQUIRES_CODE_OWNERS_REVIEW: _codeowners,
    probes.REQUIRES_UP_TO_DATE_BRANCHES: _admin_only("adminReview"),
    probes.REQUIRES_LAST_PUSH_APPROVAL: _admin_only("adminReview"),
    probes.REQUIRES_PRS_TO_CHANGE_CODE: _admin_only("adminReview"),
    probes.RUNS_STATUS_CHECKS_BEFORE_MERGING: _context,
}


def evaluate(name: str, findings: list[Finding], dl: DetailLogger) -> CheckResult:
    """Apply the score policy for the Branch-Protection check."""
    if not probes.unique_probes_equal(findings, probes.BRANCH_PROTECTION_PROBES):
        return create_runtime_error_result(name, with_message("invalid probe results"))

    if any(f.outcome == Outcome.NOT_APPLICABLE for f in findings):
        return create_inconclusive_result(name, NO_BRANCHES_REASON)

    try:
        protected = _protected_branches(findings, dl)
        branch_scores = _score_branches(findings, protected, dl)
        if not branch_scores:
            return create_inconclusive_result(name, NO_BRANCHES_REASON)
        score = compute_final_score(list(branch_scores.values()))
    except InternalError as e:
        return create_runtime_error_result(name, e)

    if score == MIN_RESULT_SCORE:
        return create_min_score_result(name, "branch protection not enabled on development/release branches")
    if score == MAX_RESULT_SCORE:
        return create_max_score_result(
            name, "branch protection is fully enabled on development and all release branches"
        )
    return create_result_with_score(
        name, "branch protection is not maximal on development and all release branches", score
    )


def _protected_branches(findings: list[Finding], dl: DetailLogger) -> dict[str, bool]:
    """Map branch name to whether a protection rule matches it.

    A matching rule may have every setting disabled, so this only decides
    whether the branch's other findings are logged.
    """
    protected: dict[str, bool] = {}
    for f in findings:
        branch = probes.branch_name(f)
        if f.probe != probes.BRANCHES_ARE_PROTECTED:
            continue
        if f.outcome == Outcome.FALSE:
            protected[branch] = False
            dl.warn(LogMessage(text=f"branch protection not enabled for branch '{branch}'"))
        elif f.outcome == Outcome.TRUE:
            protected[branch] = True
    return protected


def _score_branches(
    findings: list[Finding],
    protected: dict[str, bool],
    dl: DetailLogger,
) -> dict[str, LevelScore]:
    branch_scores: dict[str, LevelScore] = {}
    for f in findings:
        branch = probes.branch_name(f)
        level = branch_scores.setdefault(branch, LevelScore())
        handler = _HANDLERS.get(f.probe)
        if handler is None:
            continue
        log = _BranchLog(dl, protected.get(branch, False))
        for sub_score, score, max_score in handler(f, log):
            level.add(sub_score, score, max_score)
    return branch_scores
