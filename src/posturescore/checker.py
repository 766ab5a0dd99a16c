"""Check results, detail logging and score builders."""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass, field
from typing import Any

from posturescore.errors import describe, with_message
from posturescore.models import FileType, Finding

logger = logging.getLogger(__name__)

MAX_RESULT_SCORE = 10
MIN_RESULT_SCORE = 0
INCONCLUSIVE_RESULT_SCORE = -1

RESULT_VERSION = 2


class DetailType(enum.Enum):
    INFO = "info"
    WARN = "warn"
    DEBUG = "debug"


@dataclass(frozen=True)
class LogMessage:
    """A detail message: free text, or a finding whose location it mirrors."""

    text: str = ""
    finding: Finding | None = None
    path: str = ""
    type: FileType = FileType.NONE
    offset: int = 0
    end_offset: int = 0
    snippet: str = ""

    @classmethod
    def from_finding(cls, f: Finding) -> LogMessage:
        loc = f.location
        if loc is None:
            return cls(text=f.message, finding=f)
        return cls(
            text=f.message,
            finding=f,
            path=loc.path,
            type=loc.type,
            offset=loc.lineStart or 0,
            end_offset=loc.lineEnd or 0,
            snippet=loc.snippet or "",
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"text": self.text}
        if self.path:
            d.update({
                "path": self.path,
                "type": self.type.value,
                "offset": self.offset,
                "endOffset": self.end_offset,
                "snippet": self.snippet,
            })
        if self.finding is not None:
            d["probe"] = self.finding.probe
        return d


@dataclass(frozen=True)
class CheckDetail:
    msg: LogMessage
    type: DetailType

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "msg": self.msg.to_dict()}


class DetailLogger:
    """Records leveled details for one check run, in emission order."""

    def __init__(self) -> None:
        self._details: list[CheckDetail] = []

    def info(self, msg: LogMessage) -> None:
        self._record(msg, DetailType.INFO)

    def warn(self, msg: LogMessage) -> None:
        self._record(msg, DetailType.WARN)

    def debug(self, msg: LogMessage) -> None:
        self._record(msg, DetailType.DEBUG)

    def flush(self) -> list[CheckDetail]:
        """Return recorded details and reset the logger."""
        details, self._details = self._details, []
        return details

    @property
    def details(self) -> list[CheckDetail]:
        return list(self._details)

    def _record(self, msg: LogMessage, detail_type: DetailType) -> None:
        self._details.append(CheckDetail(msg=msg, type=detail_type))
        logger.debug("%s: %s", detail_type.value, msg.text)


def log_finding(dl: DetailLogger, f: Finding, level: DetailType) -> None:
    """Log a finding at the given level, carrying its location."""
    msg = LogMessage.from_finding(f)
    if level == DetailType.INFO:
        dl.info(msg)
    elif level == DetailType.WARN:
        dl.warn(msg)
    else:
        dl.debug(msg)


@dataclass
class CheckResult:
    name: str
    score: int
    reason: str
    error: Exception | None = None
    version: int = RESULT_VERSION
    details: list[CheckDetail] = field(default_factory=list)
    findings: list[Finding] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "name": self.name,
            "version": self.version,
            "score": self.score,
            "reason": self.reason,
            "details": [detail.to_dict() for detail in self.details],
            "findings": [f.to_dict() for f in self.findings],
        }
        if self.error is not None:
            d["error"] = describe(self.error)
        return d


@dataclass(frozen=True)
class ProportionalScoreWeighted:
    success: int
    total: int
    weight: int


def create_proportional_score(success: int, total: int) -> int:
    """10 * success / total with integer division, capped at the max score."""
    if total == 0:
        return 0
    return min(MAX_RESULT_SCORE * success // total, MAX_RESULT_SCORE)


def create_proportional_score_weighted(*scores: ProportionalScoreWeighted) -> int:
    """Proportional score over several groups, some worth more than others.

    Groups with a zero total do not count. With no counting groups the result
    is inconclusive; if every counting group has zero weight it is the max.
    Raises InternalError if a group has more successes than its total.
    """
    ws = wt = 0
    all_weights_zero = True
    no_score_groups = True
    for score in scores:
        if score.success > score.total:
            raise with_message(
                f"unexpected number of success is higher than total: {score.success}, {score.total}"
            )
        if score.total == 0:
            continue
        no_score_groups = False
        if score.weight != 0:
            all_weights_zero = False
        ws += score.success * score.weight
        wt += score.total * score.weight
    if no_score_groups:
        return INCONCLUSIVE_RESULT_SCORE
    if all_weights_zero:
        return MAX_RESULT_SCORE
    return min(MAX_RESULT_SCORE * ws // wt, MAX_RESULT_SCORE)


def aggregate_scores(*scores: int) -> int:
    """Floor of the mean; every score counts equally.

    Raises InternalError when there are no scores.
    """
    if not scores:
        raise with_message("no scores to aggregate")
    return math.floor(sum(scores) / len(scores))


def aggregate_scores_with_weight(*scores: tuple[int, int]) -> int:
    """Floor of the weighted mean of (score, weight) pairs.

    Raises InternalError when the weights sum to zero.
    """
    total = sum(s * w for s, w in scores)
    weights = sum(w for _, w in scores)
    if weights == 0:
        raise with_message("no weighted scores to aggregate")
    return math.floor(total / weights)


def normalize_reason(reason: str, score: int) -> str:
    return f"{reason} -- score normalized to {score}"


def create_result_with_score(name: str, reason: str, score: int) -> CheckResult:
    """Result with a specific score in [MIN_RESULT_SCORE, MAX_RESULT_SCORE].

    An out-of-range score yields a runtime error result instead. Callers who
    want an inconclusive result must use create_inconclusive_result.
    """
    if score < MIN_RESULT_SCORE or score > MAX_RESULT_SCORE:
        e = with_message(f"invalid score ({score}), please report this")
        return create_runtime_error_result(name, e)
    return CheckResult(name=name, score=score, reason=reason)


def create_proportional_score_result(name: str, reason: str, success: int, total: int) -> CheckResult:
    score = create_proportional_score(success, total)
    return create_result_with_score(name, normalize_reason(reason, score), score)


def create_max_score_result(name: str, reason: str) -> CheckResult:
    return create_result_with_score(name, reason, MAX_RESULT_SCORE)


def create_min_score_result(name: str, reason: str) -> CheckResult:
    return create_result_with_score(name, reason, MIN_RESULT_SCORE)


def create_inconclusive_result(name: str, reason: str) -> CheckResult:
    """No runtime error, but not enough evidence to set a score."""
    return CheckResult(name=name, score=INCONCLUSIVE_RESULT_SCORE, reason=reason)


def create_runtime_error_result(name: str, e: Exception) -> CheckResult:
    """The check could not run. The reason repeats the error text."""
    logger.debug("check %s: runtime error: %s", name, e)
    return CheckResult(name=name, score=INCONCLUSIVE_RESULT_SCORE, reason=str(e), error=e)
