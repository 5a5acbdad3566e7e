"""
Deadline Validator
Independent re-verification of computed deadlines
"""

import logging
from typing import Dict, List, Optional

from .audit_log import replay_due_date
from .deadline_calculator import DeadlineCalculator
from .exceptions import DeadlineEngineError
from .models import ComputationResult, CountingMode, DeadlineRequest, ReasonKind
from .snapshot import ReferenceSnapshot

logger = logging.getLogger(__name__)


class DeadlineValidator:
    """
    Re-checks a ComputationResult against its snapshot

    Used before a result is persisted or shown to a lawyer: a result that
    fails any check must not be trusted.
    """

    def __init__(self, calculator: Optional[DeadlineCalculator] = None):
        self.calculator = calculator

    def verify(self,
               result: ComputationResult,
               snapshot: ReferenceSnapshot,
               request: Optional[DeadlineRequest] = None) -> Dict:
        """
        Verify a computed deadline

        Args:
            result: Result to check
            snapshot: Snapshot the result claims to be computed against
            request: Original request, enables a full recomputation

        Returns:
            {"valid", "errors", "warnings", "checks"}
        """

        report = {
            "valid": True,
            "errors": [],
            "warnings": [],
            "checks": [],
        }

        if result.snapshot_version and result.snapshot_version != snapshot.version:
            report["warnings"].append(
                f"Result computed against snapshot {result.snapshot_version}, verifying with {snapshot.version}"
            )

        if result.no_fixed_term:
            self._check(report, "no_fixed_term_shape",
                        result.due_date is None and not result.audit_log,
                        "No-fixed-term result must have no due date and an empty log")
            return self._finish(report, result)

        if result.due_date is None:
            self._fail(report, "due_date_present", "Result has neither a due date nor the no-fixed-term flag")
            return self._finish(report, result)

        try:
            entry = snapshot.catalog.get(result.catalog_code)
            outage = (result.system_unavailability,) if result.system_unavailability else ()
            calendar = snapshot.calendars.view(
                result.tribunal_code, result.trigger_date.year, result.state_code,
                extra_suspensions=outage,
            )
        except DeadlineEngineError as e:
            self._fail(report, "configuration", e.message)
            return self._finish(report, result)

        if result.counting_mode == CountingMode.HOURS:
            self._check(report, "due_after_start",
                        result.due_at is not None and result.due_at.date() >= result.start_date,
                        "Hour-based deadline must end after its start")
        else:
            self._check(report, "due_after_start", result.due_date > result.start_date,
                        f"Due date {result.due_date} is not after start {result.start_date}")

            landing_enforced = (
                result.counting_mode == CountingMode.BUSINESS_DAYS
                or entry.extends_on_non_business_day
            )
            if landing_enforced:
                reason = calendar.classify(result.due_date)
                self._check(report, "lands_on_business_day", reason is None,
                            f"Due date {result.due_date} is not countable: {reason[1] if reason else ''}")

            self._check(report, "start_is_business_day", calendar.is_countable(result.start_date),
                        f"Start date {result.start_date} is not a business day")

            self._check_log(report, result)

            replayed = replay_due_date(
                result.start_date, result.effective_days, result.counting_mode, result.audit_log
            )
            self._check(report, "replay_matches", replayed == result.due_date,
                        f"Audit log replays to {replayed}, result says {result.due_date}")

        if request is not None and self.calculator is not None:
            try:
                fresh = self.calculator.calculate(request, snapshot)
            except DeadlineEngineError as e:
                self._fail(report, "recompute", f"Recomputation failed: {e.message}")
            else:
                self._check(report, "recompute_matches",
                            fresh.due_date == result.due_date and fresh.due_at == result.due_at,
                            f"Recomputation gives {fresh.due_date}, result says {result.due_date}")

        return self._finish(report, result)

    def _check_log(self, report: Dict, result: ComputationResult):
        entries = result.audit_log
        dates = [e.date for e in entries]

        self._check(report, "log_strictly_increasing",
                    all(a < b for a, b in zip(dates, dates[1:])),
                    "Audit log dates are not strictly increasing")

        self._check(report, "log_within_bounds",
                    all(result.start_date <= d <= result.due_date for d in dates),
                    "Audit log has entries outside [start, due]")

        if result.counting_mode == CountingMode.BUSINESS_DAYS:
            self._check(report, "log_kinds",
                        all(e.reason_kind != ReasonKind.TOLLING for e in entries),
                        "Business-day log must not contain tolling entries")

        tolled_end = max((e.last_day for e in entries if e.reason_kind == ReasonKind.TOLLING), default=None)
        if tolled_end is not None:
            self._check(report, "tolling_before_due", tolled_end < result.due_date,
                        "Due date falls inside a tolled range")

    @staticmethod
    def _check(report: Dict, name: str, passed: bool, message: str):
        report["checks"].append({"name": name, "passed": bool(passed)})
        if not passed:
            report["valid"] = False
            report["errors"].append(message)

    @staticmethod
    def _fail(report: Dict, name: str, message: str):
        report["checks"].append({"name": name, "passed": False})
        report["valid"] = False
        report["errors"].append(message)

    @staticmethod
    def _finish(report: Dict, result: ComputationResult) -> Dict:
        if report["valid"]:
            logger.debug(f"{result.catalog_code}: verification passed ({len(report['checks'])} checks)")
        else:
            logger.warning(f"{result.catalog_code}: verification failed: {'; '.join(report['errors'])}")
        return report

    def get_validation_statistics(self, reports: List[Dict]) -> Dict:
        """Aggregate verification reports"""

        total = len(reports)
        if total == 0:
            return {"total": 0, "valid": 0, "invalid": 0, "valid_percentage": 0.0}

        valid = sum(1 for r in reports if r.get("valid"))
        failed_checks: Dict[str, int] = {}
        for r in reports:
            for check in r.get("checks", []):
                if not check["passed"]:
                    failed_checks[check["name"]] = failed_checks.get(check["name"], 0) + 1

        return {
            "total": total,
            "valid": valid,
            "invalid": total - valid,
            "valid_percentage": (valid / total) * 100,
            "failed_checks": failed_checks,
        }
