"""Tests for result builders, score helpers and the detail logger."""

from __future__ import annotations

import pytest

from posturescore.checker import (
    INCONCLUSIVE_RESULT_SCORE,
    MAX_RESULT_SCORE,
    MIN_RESULT_SCORE,
    DetailLogger,
    DetailType,
    LogMessage,
    ProportionalScoreWeighted,
    aggregate_scores,
    aggregate_scores_with_weight,
    create_inconclusive_result,
    create_max_score_result,
    create_min_score_result,
    create_proportional_score,
    create_proportional_score_result,
    create_proportional_score_weighted,
    create_result_with_score,
    create_runtime_error_result,
    log_finding,
    normalize_reason,
)
from posturescore.errors import InternalError
from posturescore.models import FileType, Finding, Location, Outcome


def test_sentinels():
    """Score sentinels are fixed."""
    assert (MAX_RESULT_SCORE, MIN_RESULT_SCORE, INCONCLUSIVE_RESULT_SCORE) == (10, 0, -1)


def test_proportional_score():
    """Proportional score uses integer division and caps at the max."""
    assert create_proportional_score(1, 2) == 5
    assert create_proportional_score(1, 3) == 3
    assert create_proportional_score(2, 3) == 6
    assert create_proportional_score(5, 0) == 0
    assert create_proportional_score(4, 2) == MAX_RESULT_SCORE


def test_proportional_score_weighted():
    """Weighted groups: zero totals ignored, zero weights give max."""
    score = create_proportional_score_weighted(
        ProportionalScoreWeighted(success=1, total=2, weight=1),
        ProportionalScoreWeighted(success=4, total=4, weight=3),
        ProportionalScoreWeighted(success=0, total=0, weight=9),
    )
    assert score == 10 * (1 + 12) // (2 + 12)

    assert create_proportional_score_weighted(
        ProportionalScoreWeighted(success=0, total=0, weight=1)
    ) == INCONCLUSIVE_RESULT_SCORE
    assert create_proportional_score_weighted(
        ProportionalScoreWeighted(success=1, total=3, weight=0)
    ) == MAX_RESULT_SCORE


def test_proportional_score_weighted_success_above_total():
    """More successes than total is a contract violation."""
    with pytest.raises(InternalError):
        create_proportional_score_weighted(ProportionalScoreWeighted(success=3, total=2, weight=1))


def test_aggregate_scores():
    """Aggregation floors the (weighted) mean."""
    assert aggregate_scores(10, 5, 0) == 5
    assert aggregate_scores(10, 9) == 9
    assert aggregate_scores_with_weight((5, 3), (10, 7)) == 8
    assert aggregate_scores_with_weight((10, 1), (10, 1)) == 10


def test_aggregate_scores_without_scores():
    """Nothing to average is a contract violation, not a division error."""
    with pytest.raises(InternalError, match="no scores to aggregate"):
        aggregate_scores()
    with pytest.raises(InternalError, match="no weighted scores to aggregate"):
        aggregate_scores_with_weight()
    with pytest.raises(InternalError):
        aggregate_scores_with_weight((10, 0), (5, 0))


def test_result_builders():
    """Builders set score and reason and leave error empty."""
    assert create_max_score_result("X", "good").score == 10
    assert create_min_score_result("X", "bad").score == 0
    result = create_inconclusive_result("X", "unknown")
    assert result.score == -1
    assert result.error is None
    assert result.version == 2


def test_result_with_invalid_score_is_runtime_error():
    """Out-of-range scores turn into runtime error results."""
    result = create_result_with_score("X", "reason", 11)
    assert result.score == INCONCLUSIVE_RESULT_SCORE
    assert isinstance(result.error, InternalError)
    assert "invalid score (11)" in result.reason


def test_runtime_error_result_repeats_error_text():
    err = InternalError("invalid probe results")
    result = create_runtime_error_result("X", err)
    assert result.reason == "internal error: invalid probe results"
    assert result.error is err
    assert result.to_dict()["error"] == {"code": "E_INTERNAL", "message": "invalid probe results"}


def test_proportional_score_result_reason():
    result = create_proportional_score_result("X", "half done", 1, 2)
    assert result.score == 5
    assert result.reason == normalize_reason("half done", 5) == "half done -- score normalized to 5"


def test_detail_logger_records_in_order_and_flushes():
    """Details are kept in emission order and cleared by flush."""
    dl = DetailLogger()
    dl.warn(LogMessage(text="a"))
    dl.info(LogMessage(text="b"))
    dl.debug(LogMessage(text="c"))
    assert [d.type for d in dl.details] == [DetailType.WARN, DetailType.INFO, DetailType.DEBUG]
    flushed = dl.flush()
    assert [d.msg.text for d in flushed] == ["a", "b", "c"]
    assert dl.details == []


def test_log_finding_carries_location():
    """A finding's location is mirrored onto its log message."""
    f = Finding(
        probe="p",
        outcome=Outcome.FALSE,
        message="write token",
        location=Location(path=".github/workflows/ci.yml", type=FileType.SOURCE, lineStart=3, lineEnd=5, snippet="x"),
    )
    dl = DetailLogger()
    log_finding(dl, f, DetailType.WARN)
    msg = dl.details[0].msg
    assert (msg.text, msg.path, msg.offset, msg.end_offset, msg.snippet) == (
        "write token", ".github/workflows/ci.yml", 3, 5, "x"
    )
    assert msg.to_dict()["probe"] == "p"
