"""Data models: Finding, Location, Outcome and secret-scanning raw data."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, asdict
from typing import Any


class Outcome(enum.Enum):
    TRUE = "True"
    FALSE = "False"
    NOT_AVAILABLE = "NotAvailable"
    NOT_APPLICABLE = "NotApplicable"
    ERROR = "Error"
    NOT_SUPPORTED = "NotSupported"

    @classmethod
    def _missing_(cls, value: object) -> Outcome | None:
        # Older collectors emit Positive/Negative.
        legacy = {"Positive": cls.TRUE, "Negative": cls.FALSE}
        if isinstance(value, str):
            return legacy.get(value)
        return None


class FileType(enum.Enum):
    NONE = "none"
    SOURCE = "source"
    BINARY = "binary"
    TEXT = "text"
    URL = "url"
    BINARY_VERIFIED = "binary-verified"


@dataclass(frozen=True)
class Location:
    path: str
    type: FileType = FileType.NONE
    lineStart: int | None = None
    lineEnd: int | None = None
    snippet: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Location:
        return cls(
            path=data.get("path", ""),
            type=FileType(data.get("type", FileType.NONE.value)),
            lineStart=data.get("lineStart"),
            lineEnd=data.get("lineEnd"),
            snippet=data.get("snippet"),
        )


@dataclass(frozen=True)
class Finding:
    """One observation emitted by a probe about one entity."""

    probe: str
    outcome: Outcome
    message: str = ""
    location: Location | None = None
    values: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Finding:
        """Parse a finding from its JSON shape.

        Raises ValueError for a missing probe identifier or unknown outcome.
        """
        probe = data.get("probe")
        if not probe:
            raise ValueError("Finding has no probe identifier")
        outcome = Outcome(data.get("outcome"))
        loc = data.get("location")
        return cls(
            probe=probe,
            outcome=outcome,
            message=data.get("message", ""),
            location=Location.from_dict(loc) if loc else None,
            values={str(k): str(v) for k, v in (data.get("values") or {}).items()},
        )

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["outcome"] = self.outcome.value
        if self.location is not None:
            d["location"]["type"] = self.location.type.value
        return d


@dataclass(frozen=True)
class ToolCIStats:
    """CI execution statistics for one third-party secret scanner."""

    toolName: str = ""
    executionPattern: str = "commit-based"  # "periodic" | "commit-based"
    hasRecentRuns: bool = False
    totalCommitsAnalyzed: int = 0
    commitsWithToolRun: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ToolCIStats:
        return cls(
            toolName=data.get("toolName", ""),
            executionPattern=data.get("executionPattern", "commit-based"),
            hasRecentRuns=bool(data.get("hasRecentRuns", False)),
            totalCommitsAnalyzed=int(data.get("totalCommitsAnalyzed", 0)),
            commitsWithToolRun=int(data.get("commitsWithToolRun", 0)),
        )


@dataclass(frozen=True)
class SecretScanningData:
    """Raw data supplied to the Secret-Scanning check next to its findings."""

    platform: str = ""  # "github" | "gitlab"
    evidence: list[str] = field(default_factory=list)
    thirdPartyCIInfo: dict[str, ToolCIStats | None] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SecretScanningData:
        ci_info = {
            name: ToolCIStats.from_dict(stats) if stats else None
            for name, stats in (data.get("thirdPartyCIInfo") or {}).items()
        }
        return cls(
            platform=data.get("platform", ""),
            evidence=list(data.get("evidence") or []),
            thirdPartyCIInfo=ci_info,
        )
