"""Token-Permissions scoring policy.

Starts from a perfect score and deducts per excessive permission. State is
tracked per workflow path at job and top level, because a workflow that is
lax at both levels is treated as worst case rather than as two small
deductions.
"""

from __future__ import annotations

from posturescore import probes
from posturescore.checker import (
    MAX_RESULT_SCORE,
    MIN_RESULT_SCORE,
    CheckResult,
    DetailLogger,
    DetailType,
    LogMessage,
    create_inconclusive_result,
    create_max_score_result,
    create_min_score_result,
    create_result_with_score,
    create_runtime_error_result,
    log_finding,
)
from posturescore.config import (
    TOKEN_WRITE_DEDUCTIONS,
    UNDECLARED_TOP_DEDUCTION,
    WRITE_ALL_JOB_DEDUCTION,
    WRITE_ALL_TOP_DEDUCTION,
)
from posturescore.errors import InternalError, with_message
from posturescore.models import Finding, Outcome

EXCESSIVE_REASON = "detected GitHub workflow tokens with excessive permissions"
LEAST_PRIVILEGE_REASON = "GitHub workflow tokens follow principle of least privilege"

JOB = probes.LOCATION_JOB
TOP = probes.LOCATION_TOP


class _EarlyMinimum(Exception):
    """Both levels of one workflow are lax: stop with the minimum score."""


class PermissionState:
    """Write and undeclared flags keyed by level, then by workflow path."""

    def __init__(self) -> None:
        self.write: dict[str, dict[str, bool]] = {JOB: {}, TOP: {}}
        self.undeclared: dict[str, dict[str, bool]] = {JOB: {}, TOP: {}}

    def touch(self, path: str) -> None:
        for table in (self.write, self.undeclared):
            for level in (JOB, TOP):
                table[level].setdefault(path, False)

    def any_job_write(self) -> bool:
        return any(self.write[JOB].values())


def evaluate(name: str, findings: list[Finding], dl: DetailLogger) -> CheckResult:
    """Apply the score policy for the Token-Permissions check."""
    if not probes.unique_probes_equal(findings, probes.TOKEN_PERMISSIONS_PROBES):
        return create_runtime_error_result(name, with_message("invalid probe results"))

    score = float(MAX_RESULT_SCORE)
    state = PermissionState()

    try:
        for f in findings:
            if f.outcome == Outcome.TRUE and f.probe in (
                probes.HAS_WORKFLOW_PERMISSION_NONE,
                probes.HAS_WORKFLOW_PERMISSION_READ,
            ):
                log_finding(dl, f, DetailType.INFO)

            if f.probe == probes.HAS_WORKFLOW_PERMISSION_UNDECLARED:
                if f.outcome == Outcome.NOT_AVAILABLE:
                    return create_inconclusive_result(name, "Token permissions are not available")
                if f.outcome == Outcome.NOT_APPLICABLE:
                    log_finding(dl, f, DetailType.DEBUG)

            if f.outcome == Outcome.NOT_AVAILABLE:
                return create_inconclusive_result(name, "No tokens found")

            if f.outcome != Outcome.FALSE:
                continue
            if f.location is None or not f.location.path:
                log_finding(dl, f, DetailType.DEBUG)
                continue

            state.touch(f.location.path)
            score = _apply(f, f.location.path, state, score, dl)
    except _EarlyMinimum:
        return create_min_score_result(name, EXCESSIVE_REASON)
    except InternalError as e:
        return create_runtime_error_result(name, e)

    score = max(score, MIN_RESULT_SCORE)

    if not state.any_job_write():
        dl.info(LogMessage(text=f"no {JOB} write permissions found"))

    if score != MAX_RESULT_SCORE:
        return create_result_with_score(name, EXCESSIVE_REASON, int(score))
    return create_max_score_result(name, LEAST_PRIVILEGE_REASON)


def _apply(f: Finding, path: str, state: PermissionState, score: float, dl: DetailLogger) -> float:
    """Update state for one negative finding and return the new score."""
    if f.probe == probes.HAS_WORKFLOW_PERMISSION_UNDECLARED:
        return _undeclared(f, path, state, score, dl)

    if f.probe == probes.HAS_NO_WORKFLOW_PERMISSION_WRITE_ALL_TOP:
        # No top-level block means every permission is granted.
        log_finding(dl, f, DetailType.WARN)
        state.write[TOP][path] = True
        if state.write[JOB][path] or state.undeclared[JOB][path]:
            raise _EarlyMinimum()
        return score - WRITE_ALL_TOP_DEDUCTION

    if f.probe == probes.HAS_NO_WORKFLOW_PERMISSION_WRITE_ALL_JOB:
        log_finding(dl, f, DetailType.WARN)
        state.write[JOB][path] = True
        if state.write[TOP][path]:
            return MIN_RESULT_SCORE
        if state.undeclared[TOP][path]:
            return score - WRITE_ALL_JOB_DEDUCTION
        return score

    if f.probe == probes.JOB_LEVEL_PERMISSIONS:
        if probes.permission_level(f) == probes.LEVEL_WRITE:
            log_finding(dl, f, DetailType.WARN)
            state.write[JOB][path] = True
            if state.write[TOP][path]:
                return MIN_RESULT_SCORE
        return score

    if f.probe == probes.TOP_LEVEL_PERMISSIONS:
        if probes.permission_level(f) == probes.LEVEL_WRITE:
            return score - _reduce_by(f, dl)
        return score

    if f.probe == probes.HAS_WORKFLOW_PERMISSION_UNKNOWN:
        log_finding(dl, f, DetailType.DEBUG)
    return score


def _undeclared(f: Finding, path: str, state: PermissionState, score: float, dl: DetailLogger) -> float:
    location = probes.permission_location(f)
    if location == JOB:
        log_finding(dl, f, DetailType.DEBUG)
        state.undeclared[JOB][path] = True
        if state.write[TOP][path] or state.undeclared[TOP][path]:
            return MIN_RESULT_SCORE
        return score

    log_finding(dl, f, DetailType.WARN)
    state.undeclared[TOP][path] = True
    if state.undeclared[JOB][path]:
        return MIN_RESULT_SCORE
    return score - UNDECLARED_TOP_DEDUCTION


def _reduce_by(f: Finding, dl: DetailLogger) -> float:
    """Deduction for one named token with write access, by token risk."""
    token = probes.token_name(f)
    deduction = TOKEN_WRITE_DEDUCTIONS.get(token)
    if deduction is None:
        log_finding(dl, f, DetailType.DEBUG)
        return 0.0
    log_finding(dl, f, DetailType.WARN)
    return deduction
