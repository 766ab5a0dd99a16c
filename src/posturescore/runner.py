"""Check registry and request handling for evaluating probe findings."""

from __future__ import annotations

import logging
from typing import Any, Callable

from posturescore.checker import CheckResult, DetailLogger, create_runtime_error_result
from posturescore.errors import E_INVALID_REQUEST, InternalError, err, ok, with_message
from posturescore.evaluation import branch_protection, sast, secret_scanning, token_permissions
from posturescore.models import Finding, SecretScanningData

logger = logging.getLogger(__name__)

BRANCH_PROTECTION = "Branch-Protection"
TOKEN_PERMISSIONS = "Token-Permissions"
SAST = "SAST"
SECRET_SCANNING = "Secret-Scanning"

Evaluator = Callable[[str, list[Finding], DetailLogger, Any], CheckResult]

CHECKS: dict[str, Evaluator] = {
    BRANCH_PROTECTION: lambda name, fs, dl, _raw: branch_protection.evaluate(name, fs, dl),
    TOKEN_PERMISSIONS: lambda name, fs, dl, _raw: token_permissions.evaluate(name, fs, dl),
    SAST: lambda name, fs, dl, _raw: sast.evaluate(name, fs, dl),
    SECRET_SCANNING: lambda name, fs, dl, raw: secret_scanning.evaluate(name, fs, dl, raw),
}


def run_check(name: str, findings: list[Finding], raw: Any = None) -> CheckResult:
    """Evaluate one check and attach its details and findings to the result.

    Each call gets its own DetailLogger, so concurrent runs share nothing.
    An evaluator that raises is reported as a runtime error result.
    """
    evaluator = CHECKS.get(name)
    if evaluator is None:
        return create_runtime_error_result(name, with_message(f"unknown check: {name}"))

    dl = DetailLogger()
    logger.debug("running check %s over %d findings", name, len(findings))
    try:
        result = evaluator(name, findings, dl, raw)
    except Exception as e:
        logger.exception("check %s raised", name)
        result = create_runtime_error_result(name, InternalError(f"unhandled evaluator error: {e}"))

    result.details = dl.flush()
    result.findings = list(findings)
    logger.debug("check %s scored %d: %s", name, result.score, result.reason)
    return result


def handle_evaluate(args: dict[str, Any]) -> dict[str, Any]:
    """Evaluate a JSON-shaped request: {"check", "findings", optional "raw"}."""
    name = args.get("check")
    if name not in CHECKS:
        return err(E_INVALID_REQUEST, "Unknown or missing check.", {"check": name})

    raw_findings = args.get("findings")
    if not isinstance(raw_findings, list):
        return err(E_INVALID_REQUEST, "findings must be a list.", {"check": name})

    try:
        findings = [Finding.from_dict(f) for f in raw_findings]
    except (ValueError, TypeError, AttributeError) as e:
        return err(E_INVALID_REQUEST, "Malformed finding.", {"check": name, "exception": str(e)})

    raw = None
    if name == SECRET_SCANNING and args.get("raw"):
        try:
            raw = SecretScanningData.from_dict(args["raw"])
        except (ValueError, TypeError, AttributeError) as e:
            return err(E_INVALID_REQUEST, "Malformed raw data.", {"check": name, "exception": str(e)})

    return ok({"check": run_check(name, findings, raw).to_dict()})
