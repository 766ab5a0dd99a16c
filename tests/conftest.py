"""Shared test fixtures for posturescore tests."""

from __future__ import annotations

from typing import Callable

import pytest

from posturescore.checker import CheckResult, DetailLogger, DetailType
from posturescore.errors import InternalError


def _count(dl: DetailLogger, detail_type: DetailType) -> int:
    return sum(1 for d in dl.details if d.type == detail_type)


@pytest.fixture
def dl() -> DetailLogger:
    """A fresh detail logger per test."""
    return DetailLogger()


@pytest.fixture
def expect_result() -> Callable[..., None]:
    """Assert score, error kind and detail counts of a check result.

    Counts left as None are not checked.
    """

    def check(
        result: CheckResult,
        dl: DetailLogger,
        *,
        score: int,
        error: bool = False,
        info: int | None = None,
        warn: int | None = None,
        debug: int | None = None,
    ) -> None:
        assert result.score == score, f"score {result.score} != {score}: {result.reason}"
        if error:
            assert isinstance(result.error, InternalError), f"expected internal error, got {result.error!r}"
        else:
            assert result.error is None, f"unexpected error: {result.error}"
        for detail_type, expected in (
            (DetailType.INFO, info),
            (DetailType.WARN, warn),
            (DetailType.DEBUG, debug),
        ):
            if expected is not None:
                got = _count(dl, detail_type)
                assert got == expected, f"{detail_type.value}: {got} != {expected}"

    return check
