"""Probe identifiers, value keys, expected probe sets and typed accessors.

Evaluators never read a finding's value bag directly. The accessors below
parse and validate once and raise InternalError when the probe layer broke
its contract.
"""

from __future__ import annotations

from typing import Iterable

from posturescore.errors import InternalError, with_message
from posturescore.models import Finding, Outcome

# --- Branch-Protection ---

BLOCKS_DELETE_ON_BRANCHES = "blocksDeleteOnBranches"
BLOCKS_FORCE_PUSH_ON_BRANCHES = "blocksForcePushOnBranches"
BRANCHES_ARE_PROTECTED = "branchesAreProtected"
BRANCH_PROTECTION_APPLIES_TO_ADMINS = "branchProtectionAppliesToAdmins"
DISMISSES_STALE_REVIEWS = "dismissesStaleReviews"
REQUIRES_APPROVERS_FOR_PULL_REQUESTS = "requiresApproversForPullRequests"
REQUIRES_CODE_OWNERS_REVIEW = "requiresCodeOwnersReview"
REQUIRES_LAST_PUSH_APPROVAL = "requiresLastPushApproval"
REQUIRES_UP_TO_DATE_BRANCHES = "requiresUpToDateBranches"
RUNS_STATUS_CHECKS_BEFORE_MERGING = "runsStatusChecksBeforeMerging"
REQUIRES_PRS_TO_CHANGE_CODE = "requiresPRsToChangeCode"

BRANCH_NAME_KEY = "branchName"
REQUIRED_REVIEWERS_KEY = "numberOfRequiredReviewers"
CODEOWNERS_FILES_KEY = "codeownersFiles"

BRANCH_PROTECTION_PROBES: tuple[str, ...] = (
    BLOCKS_DELETE_ON_BRANCHES,
    BLOCKS_FORCE_PUSH_ON_BRANCHES,
    BRANCHES_ARE_PROTECTED,
    BRANCH_PROTECTION_APPLIES_TO_ADMINS,
    DISMISSES_STALE_REVIEWS,
    REQUIRES_APPROVERS_FOR_PULL_REQUESTS,
    REQUIRES_CODE_OWNERS_REVIEW,
    REQUIRES_LAST_PUSH_APPROVAL,
    REQUIRES_UP_TO_DATE_BRANCHES,
    RUNS_STATUS_CHECKS_BEFORE_MERGING,
    REQUIRES_PRS_TO_CHANGE_CODE,
)

# --- Token-Permissions ---

HAS_NO_WORKFLOW_PERMISSION_WRITE_ALL_TOP = "hasNoGitHubWorkflowPermissionWriteAllTop"
HAS_NO_WORKFLOW_PERMISSION_WRITE_ALL_JOB = "hasNoGitHubWorkflowPermissionWriteAllJob"
HAS_WORKFLOW_PERMISSION_UNKNOWN = "hasGitHubWorkflowPermissionUnknown"
HAS_WORKFLOW_PERMISSION_NONE = "hasGitHubWorkflowPermissionNone"
HAS_WORKFLOW_PERMISSION_READ = "hasGitHubWorkflowPermissionRead"
HAS_WORKFLOW_PERMISSION_UNDECLARED = "hasGitHubWorkflowPermissionUndeclared"
JOB_LEVEL_PERMISSIONS = "jobLevelPermissions"
TOP_LEVEL_PERMISSIONS = "topLevelPermissions"

PERMISSION_LOCATION_KEY = "permissionLocation"
PERMISSION_LEVEL_KEY = "permissionLevel"
TOKEN_NAME_KEY = "tokenName"

LOCATION_TOP = "topLevel"
LOCATION_JOB = "jobLevel"

LEVEL_UNDECLARED = "undeclared"
LEVEL_WRITE = "write"
LEVEL_READ = "read"
LEVEL_NONE = "none"
LEVEL_UNKNOWN = "unknown"

PERMISSION_LOCATIONS = frozenset({LOCATION_TOP, LOCATION_JOB})
PERMISSION_LEVELS = frozenset({LEVEL_UNDECLARED, LEVEL_WRITE, LEVEL_READ, LEVEL_NONE, LEVEL_UNKNOWN})

TOKEN_PERMISSIONS_PROBES: tuple[str, ...] = (
    HAS_NO_WORKFLOW_PERMISSION_WRITE_ALL_TOP,
    HAS_WORKFLOW_PERMISSION_UNKNOWN,
    HAS_WORKFLOW_PERMISSION_NONE,
    HAS_WORKFLOW_PERMISSION_READ,
    HAS_WORKFLOW_PERMISSION_UNDECLARED,
    HAS_NO_WORKFLOW_PERMISSION_WRITE_ALL_JOB,
    JOB_LEVEL_PERMISSIONS,
    TOP_LEVEL_PERMISSIONS,
)

# --- SAST ---

SAST_TOOL_CODEQL_INSTALLED = "sastToolCodeQLInstalled"
SAST_TOOL_SONAR_INSTALLED = "sastToolSonarInstalled"
SAST_TOOL_SNYK_INSTALLED = "sastToolSnykInstalled"
SAST_TOOL_PYSA_INSTALLED = "sastToolPysaInstalled"
SAST_TOOL_QODANA_INSTALLED = "sastToolQodanaInstalled"
SAST_TOOL_HADOLINT_INSTALLED = "sastToolHadolintInstalled"
SAST_TOOL_RUNS_ON_ALL_COMMITS = "sastToolRunsOnAllCommits"

ANALYZED_PRS_KEY = "analyzedPRs"
TOTAL_PRS_KEY = "totalPRs"

SAST_PROBES: tuple[str, ...] = (
    SAST_TOOL_CODEQL_INSTALLED,
    SAST_TOOL_PYSA_INSTALLED,
    SAST_TOOL_QODANA_INSTALLED,
    SAST_TOOL_RUNS_ON_ALL_COMMITS,
    SAST_TOOL_SONAR_INSTALLED,
    SAST_TOOL_SNYK_INSTALLED,
    SAST_TOOL_HADOLINT_INSTALLED,
)

# --- Secret-Scanning ---

HAS_GITHUB_SECRET_SCANNING_ENABLED = "hasGitHubSecretScanningEnabled"
HAS_GITHUB_PUSH_PROTECTION_ENABLED = "hasGitHubPushProtectionEnabled"
HAS_GITLAB_SECRET_PUSH_PROTECTION = "hasGitLabSecretPushProtection"
HAS_GITLAB_PIPELINE_SECRET_DETECTION = "hasGitLabPipelineSecretDetection"
HAS_GITLAB_PUSH_RULES_PREVENT_SECRETS = "hasGitLabPushRulesPreventSecrets"
HAS_THIRD_PARTY_GITLEAKS = "hasThirdPartyGitleaks"
HAS_THIRD_PARTY_TRUFFLEHOG = "hasThirdPartyTruffleHog"
HAS_THIRD_PARTY_DETECT_SECRETS = "hasThirdPartyDetectSecrets"
HAS_THIRD_PARTY_GIT_SECRETS = "hasThirdPartyGitSecrets"
HAS_THIRD_PARTY_GGSHIELD = "hasThirdPartyGGShield"
HAS_THIRD_PARTY_SHHGIT = "hasThirdPartyShhGit"
HAS_THIRD_PARTY_REPO_SUPERVISOR = "hasThirdPartyRepoSupervisor"

THIRD_PARTY_SECRET_PROBES: tuple[str, ...] = (
    HAS_THIRD_PARTY_GITLEAKS,
    HAS_THIRD_PARTY_TRUFFLEHOG,
    HAS_THIRD_PARTY_DETECT_SECRETS,
    HAS_THIRD_PARTY_GIT_SECRETS,
    HAS_THIRD_PARTY_GGSHIELD,
    HAS_THIRD_PARTY_SHHGIT,
    HAS_THIRD_PARTY_REPO_SUPERVISOR,
)

SECRET_SCANNING_PROBES: tuple[str, ...] = (
    HAS_GITHUB_SECRET_SCANNING_ENABLED,
    HAS_GITHUB_PUSH_PROTECTION_ENABLED,
    HAS_GITLAB_SECRET_PUSH_PROTECTION,
    HAS_GITLAB_PIPELINE_SECRET_DETECTION,
    HAS_GITLAB_PUSH_RULES_PREVENT_SECRETS,
) + THIRD_PARTY_SECRET_PROBES


def unique_probes_equal(findings: Iterable[Finding], expected: Iterable[str]) -> bool:
    """True if the distinct probe IDs in findings are exactly the expected set."""
    return {f.probe for f in findings} == set(expected)


def probes_within(findings: Iterable[Finding], allowed: Iterable[str]) -> bool:
    """True if every finding comes from one of the allowed probes."""
    return {f.probe for f in findings} <= set(allowed)


# --- Typed accessors ---


def _value(f: Finding, key: str) -> str:
    try:
        return f.values[key]
    except KeyError:
        raise with_message(f"no {key} found for probe {f.probe}") from None


def _int_value(f: Finding, key: str) -> int:
    raw = _value(f, key)
    try:
        return int(raw)
    except ValueError:
        raise with_message(f"unable to parse {key} {raw!r} for probe {f.probe}") from None


def branch_name(f: Finding) -> str:
    """Return the finding's branch name; missing or empty is a contract violation."""
    try:
        name = f.values[BRANCH_NAME_KEY]
    except KeyError:
        raise with_message("no branch name found") from None
    if not name:
        raise with_message("probe is missing branch name")
    return name


def reviewer_count(f: Finding) -> int:
    """Required reviewer count. NotAvailable means no review is required."""
    if f.outcome == Outcome.NOT_AVAILABLE:
        return 0
    try:
        return _int_value(f, REQUIRED_REVIEWERS_KEY)
    except InternalError:
        raise with_message("unable to get reviewer count") from None


def codeowners_file_count(f: Finding) -> int:
    """Number of CODEOWNERS files the probe saw. Absent means none."""
    if CODEOWNERS_FILES_KEY not in f.values:
        return 0
    return _int_value(f, CODEOWNERS_FILES_KEY)


def permission_location(f: Finding) -> str:
    loc = _value(f, PERMISSION_LOCATION_KEY)
    if loc not in PERMISSION_LOCATIONS:
        raise with_message(f"invalid permission location {loc!r}")
    return loc


def permission_level(f: Finding) -> str:
    level = _value(f, PERMISSION_LEVEL_KEY)
    if level not in PERMISSION_LEVELS:
        raise with_message(f"invalid permission level {level!r}")
    return level


def token_name(f: Finding) -> str:
    return f.values.get(TOKEN_NAME_KEY, "")


def pr_counts(f: Finding) -> tuple[int, int]:
    """Return (analyzed, total) pull request counts."""
    return _int_value(f, ANALYZED_PRS_KEY), _int_value(f, TOTAL_PRS_KEY)
