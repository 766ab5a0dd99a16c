"""Secret-Scanning scoring policy.

GitHub repositories are scored on native secret scanning. When it is off,
the score comes from third-party scanners and how often they run in CI.
GitLab repositories, and GitHub repositories whose native status is
unknown, use an additive model:

    Secret Push Protection          +4
    Pipeline Secret Detection       +4
    Push rules prevent_secrets      +1
    third-party scanner             +1 to +10

capped at the max score.

Third-party scanners are scored by execution pattern. Periodic scanners
(shhgit, repo-supervisor) earn 10 if they ran in the last 30 days, else 1.
Commit-based scanners earn points by coverage of the last 100 commits:
100% -> 10, 70-99% -> 7, 50-69% -> 5, below 50% -> 3, none -> 1. The best
tool wins.
"""

from __future__ import annotations

from typing import Mapping

from posturescore import probes
from posturescore.checker import (
    MAX_RESULT_SCORE,
    CheckResult,
    DetailLogger,
    DetailType,
    create_inconclusive_result,
    create_max_score_result,
    create_result_with_score,
    create_runtime_error_result,
    log_finding,
)
from posturescore.config import (
    COVERAGE_BANDS,
    EXECUTION_PERIODIC,
    GITLAB_PIPELINE_SECRET_DETECTION_POINTS,
    GITLAB_PUSH_RULES_POINTS,
    GITLAB_SECRET_PUSH_PROTECTION_POINTS,
    PARTIAL_COVERAGE_SCORE,
    PERIODIC_RECENT_SCORE,
    UNVERIFIED_TOOL_SCORE,
)
from posturescore.errors import with_message
from posturescore.models import Finding, Outcome, SecretScanningData, ToolCIStats

THIRD_PARTY_PRESENT = "; third-party scanner present"
PERMISSION_DENIED_EVIDENCE = "permission_denied"


def evaluate(
    name: str,
    findings: list[Finding],
    dl: DetailLogger,
    raw: SecretScanningData | None = None,
) -> CheckResult:
    """Apply the score policy for the Secret-Scanning check."""
    if not probes.probes_within(findings, probes.SECRET_SCANNING_PROBES):
        return create_runtime_error_result(name, with_message("invalid probe results"))

    outcomes: dict[str, Outcome] = {}
    for f in findings:
        outcomes[f.probe] = f.outcome
        _log(f, dl)

    native = outcomes.get(probes.HAS_GITHUB_SECRET_SCANNING_ENABLED)
    if native in (Outcome.TRUE, Outcome.FALSE):
        return _github(name, native, outcomes, findings, raw)

    if raw is not None and raw.platform == "github" and any(
        PERMISSION_DENIED_EVIDENCE in evidence for evidence in raw.evidence
    ):
        reason = "Token has insufficient permissions to get information about native GitHub secret scanning"
        if third_party_present(outcomes):
            reason += _third_party_suffix(findings) + _ci_suffix(raw)
        return create_inconclusive_result(name, reason)

    return _gitlab(name, outcomes, findings, raw)


def _log(f: Finding, dl: DetailLogger) -> None:
    if f.outcome == Outcome.TRUE:
        log_finding(dl, f, DetailType.INFO)
    elif f.outcome == Outcome.FALSE:
        log_finding(dl, f, DetailType.WARN)
    else:
        log_finding(dl, f, DetailType.DEBUG)


def _github(
    name: str,
    native: Outcome,
    outcomes: dict[str, Outcome],
    findings: list[Finding],
    raw: SecretScanningData | None,
) -> CheckResult:
    state = "enabled" if native == Outcome.TRUE else "disabled"
    reason = f"GitHub native secret scanning is {state}"
    if outcomes.get(probes.HAS_GITHUB_PUSH_PROTECTION_ENABLED) == Outcome.TRUE:
        reason += " (push protection enabled)"

    if native == Outcome.TRUE:
        if third_party_present(outcomes):
            reason += _third_party_suffix(findings)
        return create_max_score_result(name, reason)

    if not third_party_present(outcomes):
        return create_result_with_score(name, reason, 0)
    reason += _third_party_suffix(findings) + _ci_suffix(raw)
    return create_result_with_score(name, reason, calculate_third_party_score(raw))


def _gitlab(
    name: str,
    outcomes: dict[str, Outcome],
    findings: list[Finding],
    raw: SecretScanningData | None,
) -> CheckResult:
    score = 0
    bits: list[str] = []
    knobs = (
        (probes.HAS_GITLAB_SECRET_PUSH_PROTECTION, "Secret Push Protection", GITLAB_SECRET_PUSH_PROTECTION_POINTS),
        (probes.HAS_GITLAB_PIPELINE_SECRET_DETECTION, "Pipeline Secret Detection", GITLAB_PIPELINE_SECRET_DETECTION_POINTS),
        (probes.HAS_GITLAB_PUSH_RULES_PREVENT_SECRETS, "Push rules prevent_secrets", GITLAB_PUSH_RULES_POINTS),
    )
    for probe, label, points in knobs:
        if outcomes.get(probe) == Outcome.TRUE:
            score += points
            bits.append(f"{label}: on")
        else:
            bits.append(f"{label}: off")

    if third_party_present(outcomes):
        score += calculate_third_party_score(raw)
        details = third_party_details(findings)
        bits.append("3rd-party scanner: " + ("; ".join(details) if details else "present"))
        if raw is not None:
            coverage = format_ci_coverage_details(raw.thirdPartyCIInfo)
            if coverage:
                bits.append("CI stats:" + coverage)
    else:
        bits.append("3rd-party scanner: not found")

    score = min(score, MAX_RESULT_SCORE)
    return create_result_with_score(name, "GitLab secret scanning posture: " + "; ".join(bits), score)


def third_party_present(outcomes: Mapping[str, Outcome]) -> bool:
    return any(outcomes.get(p) == Outcome.TRUE for p in probes.THIRD_PARTY_SECRET_PROBES)


def third_party_details(findings: list[Finding]) -> list[str]:
    """Messages of positive third-party findings, e.g. "Gitleaks found at <path>"."""
    return [
        f.message
        for f in findings
        if f.probe in probes.THIRD_PARTY_SECRET_PROBES and f.outcome == Outcome.TRUE and f.message
    ]


def _third_party_suffix(findings: list[Finding]) -> str:
    details = third_party_details(findings)
    if details:
        return "; " + "; ".join(details)
    return THIRD_PARTY_PRESENT


def _ci_suffix(raw: SecretScanningData | None) -> str:
    if raw is None:
        return ""
    return format_ci_coverage_details(raw.thirdPartyCIInfo)


def calculate_third_party_score(raw: SecretScanningData | None) -> int:
    """Best score across detected tools; 1 if no tool has CI data."""
    if raw is None or not raw.thirdPartyCIInfo:
        return UNVERIFIED_TOOL_SCORE
    return max(
        [UNVERIFIED_TOOL_SCORE]
        + [score_for_tool(stats) for stats in raw.thirdPartyCIInfo.values()]
    )


def score_for_tool(stats: ToolCIStats | None) -> int:
    if stats is None or stats.totalCommitsAnalyzed == 0:
        return UNVERIFIED_TOOL_SCORE
    if stats.executionPattern == EXECUTION_PERIODIC:
        return PERIODIC_RECENT_SCORE if stats.hasRecentRuns else UNVERIFIED_TOOL_SCORE
    coverage = 0.0
    if stats.commitsWithToolRun > 0:
        coverage = stats.commitsWithToolRun / stats.totalCommitsAnalyzed
    return score_from_coverage(coverage)


def score_from_coverage(coverage: float) -> int:
    for threshold, score in COVERAGE_BANDS:
        if coverage >= threshold:
            return score
    if coverage > 0:
        return PARTIAL_COVERAGE_SCORE
    return UNVERIFIED_TOOL_SCORE


def format_ci_coverage_details(ci_info: Mapping[str, ToolCIStats | None]) -> str:
    """Per-tool CI summary for reason strings, e.g. " (gitleaks: 75% coverage)"."""
    details: list[str] = []
    for tool, stats in ci_info.items():
        if stats is None or stats.totalCommitsAnalyzed == 0:
            continue
        if stats.executionPattern == EXECUTION_PERIODIC:
            state = "ran recently" if stats.hasRecentRuns else "no recent runs"
            details.append(f"{tool}: {state}")
        else:
            coverage = stats.commitsWithToolRun / stats.totalCommitsAnalyzed * 100
            details.append(f"{tool}: {coverage:.0f}% coverage")
    if not details:
        return ""
    return " (" + ", ".join(details) + ")"
