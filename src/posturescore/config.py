"""Configuration: scoring policy constants and logging setup."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class TierWeights:
    """Points each branch-protection tier contributes when fully satisfied."""

    basic: int = 3
    review: int = 3
    context: int = 2
    thorough_review: int = 1
    admin_thorough_review: int = 1


TIER_WEIGHTS = TierWeights()

# Branch-Protection
MIN_REVIEWS = 2
REVIEWER_WEIGHT = 2

# Token-Permissions
UNDECLARED_TOP_DEDUCTION = 0.5
WRITE_ALL_TOP_DEDUCTION = 0.5
WRITE_ALL_JOB_DEDUCTION = 0.5

TOKEN_WRITE_DEDUCTIONS: Mapping[str, float] = MappingProxyType({
    "checks": 0.5,
    "statuses": 0.5,
    "contents": 10.0,
    "packages": 10.0,
    "actions": 10.0,
    "deployments": 1.0,
    "security-events": 1.0,
})

# SAST
SAST_COVERAGE_WEIGHT = 3
SAST_TOOL_WEIGHT = 7

# Secret-Scanning
GITLAB_SECRET_PUSH_PROTECTION_POINTS = 4
GITLAB_PIPELINE_SECRET_DETECTION_POINTS = 4
GITLAB_PUSH_RULES_POINTS = 1

EXECUTION_PERIODIC = "periodic"
EXECUTION_COMMIT_BASED = "commit-based"

PERIODIC_RECENT_SCORE = 10
UNVERIFIED_TOOL_SCORE = 1

# (minimum coverage, score), checked in order; any coverage above zero
# that misses every band scores PARTIAL_COVERAGE_SCORE.
COVERAGE_BANDS: tuple[tuple[float, int], ...] = (
    (1.0, 10),
    (0.70, 7),
    (0.50, 5),
)
PARTIAL_COVERAGE_SCORE = 3

LOG_LEVEL_ENV = "POSTURESCORE_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_log_level() -> int:
    """Return the log level from env. Fail closed on an unknown name."""
    raw = os.environ.get(LOG_LEVEL_ENV, "WARNING").strip().upper()
    level = logging.getLevelName(raw)
    if not isinstance(level, int):
        raise RuntimeError(
            f"{LOG_LEVEL_ENV} must be a logging level name "
            f"(DEBUG, INFO, WARNING, ERROR, CRITICAL), got {raw!r}"
        )
    return level


def configure_logging() -> None:
    """Configure root logging for hosts that have not done so themselves."""
    logging.basicConfig(level=get_log_level(), format=LOG_FORMAT)
