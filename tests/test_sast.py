"""Tests for the SAST evaluator."""

from __future__ import annotations

from posturescore import probes
from posturescore.checker import INCONCLUSIVE_RESULT_SCORE
from posturescore.evaluation import sast
from posturescore.models import Finding, Outcome

NAME = "SAST"

T, F, NA = Outcome.TRUE, Outcome.FALSE, Outcome.NOT_APPLICABLE


def _findings(
    tools: dict[str, Outcome] | None = None,
    runs: Outcome = F,
    analyzed: int | str = 0,
    total: int | str = 0,
) -> list[Finding]:
    """One finding per SAST probe; tools default to not installed."""
    outcomes = {probe: F for probe in probes.SAST_PROBES if probe != probes.SAST_TOOL_RUNS_ON_ALL_COMMITS}
    outcomes.update(tools or {})
    findings = [Finding(probe=p, outcome=o, message=f"{p}: {o.value}") for p, o in outcomes.items()]
    findings.append(
        Finding(
            probe=probes.SAST_TOOL_RUNS_ON_ALL_COMMITS,
            outcome=runs,
            message=f"{analyzed} commits out of {total} are checked with a SAST tool",
            values={probes.ANALYZED_PRS_KEY: str(analyzed), probes.TOTAL_PRS_KEY: str(total)},
        )
    )
    return findings


def test_sonar_and_codeql_detected(dl, expect_result):
    findings = _findings({probes.SAST_TOOL_SONAR_INSTALLED: T, probes.SAST_TOOL_CODEQL_INSTALLED: T}, runs=T, analyzed=3, total=3)
    result = sast.evaluate(NAME, findings, dl)
    expect_result(result, dl, score=10, info=3, warn=0)
    assert result.reason == "SAST tool detected: Sonar"


def test_other_tool_wins_regardless_of_commits(dl, expect_result):
    findings = _findings({probes.SAST_TOOL_PYSA_INSTALLED: T}, runs=NA)
    result = sast.evaluate(NAME, findings, dl)
    expect_result(result, dl, score=10, info=1, warn=1)
    assert result.reason == "SAST tool detected: Pysa"


def test_hadolint_detected(dl, expect_result):
    result = sast.evaluate(NAME, _findings({probes.SAST_TOOL_HADOLINT_INSTALLED: T}, analyzed=1, total=4), dl)
    expect_result(result, dl, score=10)
    assert result.reason == "SAST tool detected: Hadolint"


def test_codeql_blended_with_partial_coverage(dl, expect_result):
    """Coverage 5 weighted 3, tool 10 weighted 7: floor(85 / 10) = 8."""
    findings = _findings({probes.SAST_TOOL_CODEQL_INSTALLED: T}, runs=F, analyzed=1, total=2)
    result = sast.evaluate(NAME, findings, dl)
    expect_result(result, dl, score=8, info=1, warn=1)
    assert result.reason == "SAST tool detected but not run on all commits"


def test_all_commits_checked_without_known_tool(dl, expect_result):
    findings = _findings(runs=T, analyzed=5, total=5)
    result = sast.evaluate(NAME, findings, dl)
    expect_result(result, dl, score=10, info=1)
    assert result.reason == "SAST tool is run on all commits"


def test_partial_coverage_without_tool(dl, expect_result):
    findings = _findings(runs=F, analyzed=1, total=3)
    result = sast.evaluate(NAME, findings, dl)
    expect_result(result, dl, score=3, warn=1)
    assert result.reason == "SAST tool is not run on all commits -- score normalized to 3"


def test_no_pull_requests_and_no_tool(dl, expect_result):
    result = sast.evaluate(NAME, _findings(), dl)
    expect_result(result, dl, score=0)


def test_codeql_only_when_commits_not_applicable(dl, expect_result):
    findings = _findings({probes.SAST_TOOL_CODEQL_INSTALLED: T}, runs=NA)
    result = sast.evaluate(NAME, findings, dl)
    expect_result(result, dl, score=10, info=1, warn=1)
    assert result.reason == "SAST tool detected: CodeQL"


def test_nothing_when_commits_not_applicable(dl, expect_result):
    result = sast.evaluate(NAME, _findings(runs=NA), dl)
    expect_result(result, dl, score=0)
    assert result.reason == "no SAST tool detected"


def test_commits_only_when_codeql_unknown(dl, expect_result):
    findings = _findings({probes.SAST_TOOL_CODEQL_INSTALLED: Outcome.NOT_AVAILABLE}, runs=F, analyzed=2, total=4)
    result = sast.evaluate(NAME, findings, dl)
    expect_result(result, dl, score=5)
    assert result.reason == "SAST tool is not run on all commits -- score normalized to 5"


def test_no_conclusive_signal_is_runtime_error(dl, expect_result):
    findings = _findings({probes.SAST_TOOL_CODEQL_INSTALLED: Outcome.NOT_AVAILABLE}, runs=NA)
    result = sast.evaluate(NAME, findings, dl)
    expect_result(result, dl, score=INCONCLUSIVE_RESULT_SCORE, error=True)


def test_unparseable_counts_are_runtime_error(dl, expect_result):
    result = sast.evaluate(NAME, _findings(runs=F, analyzed="many", total=3), dl)
    expect_result(result, dl, score=INCONCLUSIVE_RESULT_SCORE, error=True)


def test_missing_probe_is_runtime_error(dl, expect_result):
    findings = [f for f in _findings() if f.probe != probes.SAST_TOOL_SNYK_INSTALLED]
    result = sast.evaluate(NAME, findings, dl)
    expect_result(result, dl, score=INCONCLUSIVE_RESULT_SCORE, error=True)
    assert "invalid probe results" in result.reason
