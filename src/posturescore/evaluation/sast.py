"""SAST scoring policy."""

from __future__ import annotations

from posturescore import probes
from posturescore.checker import (
    INCONCLUSIVE_RESULT_SCORE,
    MAX_RESULT_SCORE,
    MIN_RESULT_SCORE,
    CheckResult,
    DetailLogger,
    DetailType,
    LogMessage,
    aggregate_scores_with_weight,
    create_max_score_result,
    create_min_score_result,
    create_proportional_score,
    create_result_with_score,
    create_runtime_error_result,
    log_finding,
    normalize_reason,
)
from posturescore.config import SAST_COVERAGE_WEIGHT, SAST_TOOL_WEIGHT
from posturescore.errors import InternalError, with_message
from posturescore.models import Finding, Outcome

# Tools whose presence alone earns the max score, checked in this order.
OTHER_TOOLS: dict[str, str] = {
    probes.SAST_TOOL_SONAR_INSTALLED: "Sonar",
    probes.SAST_TOOL_SNYK_INSTALLED: "Snyk",
    probes.SAST_TOOL_PYSA_INSTALLED: "Pysa",
    probes.SAST_TOOL_QODANA_INSTALLED: "Qodana",
    probes.SAST_TOOL_HADOLINT_INSTALLED: "Hadolint",
}

NOT_ALL_COMMITS_REASON = "SAST tool is not run on all commits"


def evaluate(name: str, findings: list[Finding], dl: DetailLogger) -> CheckResult:
    """Apply the score policy for the SAST check."""
    if not probes.unique_probes_equal(findings, probes.SAST_PROBES):
        return create_runtime_error_result(name, with_message("invalid probe results"))

    sast_score = codeql_score = INCONCLUSIVE_RESULT_SCORE
    detected: list[str] = []
    try:
        for f in findings:
            if f.probe == probes.SAST_TOOL_RUNS_ON_ALL_COMMITS:
                sast_score = _commits_score(f, dl)
            elif f.probe == probes.SAST_TOOL_CODEQL_INSTALLED:
                codeql_score = _tool_score(f, dl)
            elif f.probe in OTHER_TOOLS and _tool_score(f, dl) == MAX_RESULT_SCORE:
                detected.append(f.probe)
    except InternalError as e:
        return create_runtime_error_result(name, e)

    for probe, tool in OTHER_TOOLS.items():
        if probe in detected:
            return create_max_score_result(name, f"SAST tool detected: {tool}")

    if sast_score == INCONCLUSIVE_RESULT_SCORE and codeql_score == INCONCLUSIVE_RESULT_SCORE:
        return create_runtime_error_result(name, with_message("no conclusive SAST signal"))

    if sast_score != INCONCLUSIVE_RESULT_SCORE and codeql_score != INCONCLUSIVE_RESULT_SCORE:
        return _merge(name, sast_score, codeql_score)

    if codeql_score != INCONCLUSIVE_RESULT_SCORE:
        if codeql_score == MAX_RESULT_SCORE:
            return create_max_score_result(name, "SAST tool detected: CodeQL")
        return create_min_score_result(name, "no SAST tool detected")

    if sast_score == MAX_RESULT_SCORE:
        return create_max_score_result(name, "SAST tool is run on all commits")
    return create_result_with_score(name, normalize_reason(NOT_ALL_COMMITS_REASON, sast_score), sast_score)


def _merge(name: str, sast_score: int, codeql_score: int) -> CheckResult:
    # Any SAST tool is assumed equally good. Running on every commit is
    # rewarded on its own; otherwise tool presence dominates the blend.
    if sast_score == MAX_RESULT_SCORE:
        return create_max_score_result(name, "SAST tool is run on all commits")
    if codeql_score == MIN_RESULT_SCORE:
        return create_result_with_score(name, normalize_reason(NOT_ALL_COMMITS_REASON, sast_score), sast_score)
    if codeql_score == MAX_RESULT_SCORE:
        score = aggregate_scores_with_weight(
            (sast_score, SAST_COVERAGE_WEIGHT),
            (codeql_score, SAST_TOOL_WEIGHT),
        )
        return create_result_with_score(name, "SAST tool detected but not run on all commits", score)
    return create_runtime_error_result(name, with_message(f"unexpected CodeQL score {codeql_score}"))


def _commits_score(f: Finding, dl: DetailLogger) -> int:
    """Proportional score of pull requests that ran a SAST tool."""
    if f.outcome == Outcome.NOT_APPLICABLE:
        dl.warn(LogMessage(text=f.message))
        return INCONCLUSIVE_RESULT_SCORE
    if f.outcome == Outcome.TRUE:
        dl.info(LogMessage(text=f.message))
    elif f.outcome == Outcome.FALSE:
        dl.warn(LogMessage(text=f.message))
    analyzed, total = probes.pr_counts(f)
    return create_proportional_score(analyzed, total)


def _tool_score(f: Finding, dl: DetailLogger) -> int:
    if f.outcome == Outcome.TRUE:
        log_finding(dl, f, DetailType.INFO)
        return MAX_RESULT_SCORE
    if f.outcome == Outcome.FALSE:
        return MIN_RESULT_SCORE
    return INCONCLUSIVE_RESULT_SCORE
