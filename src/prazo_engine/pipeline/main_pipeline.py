"""
Main Pipeline Orchestrator
Validates requests, computes deadlines against the current snapshot and records audit events
"""

import argparse
import json
import os
import sys
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from dotenv import load_dotenv

# Load environment variables from .env.local file
load_dotenv('.env.local')

from ..core.alert_scheduler import AlertScheduler, business_days_between, urgency_label
from ..core.audit_log import summarize
from ..core.deadline_calculator import DeadlineCalculator
from ..core.deadline_validator import DeadlineValidator
from ..core.exceptions import DeadlineEngineError, InvalidRequest
from ..core.models import ComputationResult, ProceduralCategory
from ..core.snapshot import ReferenceSnapshot
from ..core.trigger_resolver import TriggerResolver
from ..utils.data_validator import DataValidator
from ..utils.logger import AuditLogger, setup_logger

# Setup logging
logger = setup_logger(__name__, os.getenv('PRAZO_LOG_LEVEL', 'INFO'), os.getenv('PRAZO_LOG_DIR'))


def _parse_years(text: Optional[str]) -> List[int]:
    """Parse '2025-2027' or '2025,2026' into a list of years"""

    if not text:
        current_year = datetime.now().year
        return list(range(current_year - 1, current_year + 3))

    years = set()
    for part in text.split(','):
        part = part.strip()
        if '-' in part:
            first, last = part.split('-', 1)
            years.update(range(int(first), int(last) + 1))
        elif part:
            years.add(int(part))
    return sorted(years)


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass
class PipelineConfig:
    """Configuration for the deadline pipeline"""
    calendar_years: List[int] = field(default_factory=lambda: _parse_years(None))
    catalog_path: Optional[str] = None
    calendar_seed_path: Optional[str] = None
    service_rules_path: Optional[str] = None
    internal_margin_days: int = 2
    enable_audit_log: bool = True
    audit_log_file: str = "deadline_audit.jsonl"
    log_dir: Optional[str] = None
    verify_results: bool = True
    results_table: Optional[str] = None
    audit_table: Optional[str] = None
    aws_region: Optional[str] = None

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        return cls(
            calendar_years=_parse_years(os.getenv('PRAZO_CALENDAR_YEARS')),
            catalog_path=os.getenv('PRAZO_CATALOG_PATH'),
            calendar_seed_path=os.getenv('PRAZO_CALENDAR_SEED_PATH'),
            service_rules_path=os.getenv('PRAZO_SERVICE_RULES_PATH'),
            internal_margin_days=int(os.getenv('PRAZO_INTERNAL_MARGIN_DAYS', '2')),
            enable_audit_log=_env_flag('PRAZO_ENABLE_AUDIT_LOG', True),
            log_dir=os.getenv('PRAZO_LOG_DIR'),
            verify_results=_env_flag('PRAZO_VERIFY_RESULTS', True),
            results_table=os.getenv('PRAZO_RESULTS_TABLE'),
            audit_table=os.getenv('PRAZO_AUDIT_TABLE'),
            aws_region=os.getenv('AWS_REGION'),
        )


@dataclass
class ProcessingResult:
    """Result of processing one computation request"""
    request_id: str
    status: str  # success, rejected
    result: Optional[ComputationResult] = None
    error: Optional[Dict] = None
    verification: Optional[Dict] = None
    processing_time: float = 0.0
    audit_trail: List[Dict] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "request_id": self.request_id,
            "status": self.status,
            "result": self.result.to_dict() if self.result else None,
            "error": self.error,
            "verification": self.verification,
            "processing_time": self.processing_time,
            "audit_trail": self.audit_trail,
        }


class DeadlinePipeline:
    """
    Request-level orchestrator for deadline computations

    Holds the current reference snapshot; reload_snapshot() swaps it
    atomically so in-flight computations keep the version they started with.
    """

    def __init__(self,
                 config: Optional[PipelineConfig] = None,
                 snapshot: Optional[ReferenceSnapshot] = None):
        """Initialize pipeline with configuration"""
        self.config = config or PipelineConfig()
        self._snapshot = snapshot

        self._init_components()

        # Processing statistics
        self.stats = {
            "requests_processed": 0,
            "deadlines_computed": 0,
            "requests_rejected": 0,
            "doubled_deadlines": 0,
            "verification_failures": 0,
            "errors_by_code": {},
            "average_processing_time": 0.0
        }

    def _init_components(self):
        """Initialize all pipeline components"""
        try:
            if self._snapshot is None:
                self._snapshot = ReferenceSnapshot.build(
                    self.config.calendar_years,
                    calendar_seed_path=self.config.calendar_seed_path,
                    catalog_path=self.config.catalog_path,
                )

            rules = TriggerResolver.load_rules(self.config.service_rules_path)
            self.calculator = DeadlineCalculator(
                trigger_resolver=TriggerResolver(rules),
                alert_scheduler=AlertScheduler(self.config.internal_margin_days),
            )
            self.result_validator = DeadlineValidator(self.calculator)
            self.request_validator = DataValidator()

            self.audit_logger = (
                AuditLogger(self.config.audit_log_file, self.config.log_dir)
                if self.config.enable_audit_log else None
            )

            logger.info(f"Pipeline components initialized (snapshot {self._snapshot.version})")

        except Exception as e:
            logger.error(f"Failed to initialize pipeline components: {e}")
            raise

    @property
    def snapshot(self) -> ReferenceSnapshot:
        return self._snapshot

    def reload_snapshot(self, snapshot: Optional[ReferenceSnapshot] = None) -> ReferenceSnapshot:
        """Replace the reference snapshot (rebuilt from config if not provided)"""

        fresh = snapshot or ReferenceSnapshot.build(
            self.config.calendar_years,
            calendar_seed_path=self.config.calendar_seed_path,
            catalog_path=self.config.catalog_path,
        )
        previous = self._snapshot.version
        self._snapshot = fresh
        logger.info(f"Reference snapshot replaced: {previous} -> {fresh.version}")
        return fresh

    def compute(self, payload: Dict) -> ComputationResult:
        """
        Compute a deadline from a raw request

        Raises:
            DeadlineEngineError subclass for invalid or unresolvable requests
        """

        request = self.request_validator.build_request(payload)
        return self.calculator.calculate(request, self._snapshot)

    def process(self, payload: Dict, request_id: Optional[str] = None) -> ProcessingResult:
        """
        Process one request, never raising for request errors

        Args:
            payload: Raw request body
            request_id: Optional caller-supplied identifier

        Returns:
            ProcessingResult
        """

        start_time = datetime.now()
        snapshot = self._snapshot
        result = ProcessingResult(
            request_id=request_id or f"dl_{uuid.uuid4().hex[:12]}",
            status="processing"
        )

        try:
            self._log_step(result, "Validating request")
            request = self.request_validator.build_request(payload)

            self._log_step(result, f"Computing {request.catalog_code} for {request.tribunal_code}")
            result.result = self.calculator.calculate(request, snapshot)

            if self.config.verify_results:
                self._log_step(result, "Verifying computed deadline")
                result.verification = self.result_validator.verify(result.result, snapshot, request)

            result.status = "success"

        except DeadlineEngineError as e:
            logger.warning(f"[{result.request_id}] Request rejected: {e.code}: {e.message}")
            result.status = "rejected"
            result.error = e.to_dict()

        result.processing_time = (datetime.now() - start_time).total_seconds()

        self._update_statistics(result)
        self._record_audit_event(result, payload)

        return result

    def process_batch(self, payloads: List[Dict]) -> List[ProcessingResult]:
        """
        Process independent requests against one snapshot

        Args:
            payloads: Raw request bodies

        Returns:
            List of processing results, in input order
        """

        results = [
            self.process(payload, request_id=payload.get('reference') if isinstance(payload, dict) else None)
            for payload in payloads
        ]

        succeeded = sum(1 for r in results if r.status == "success")
        logger.info(f"Batch completed: {succeeded}/{len(results)} computed")

        if self.audit_logger:
            self.audit_logger.log("batch_completed", {
                "total": len(results),
                "computed": succeeded,
                "rejected": len(results) - succeeded,
                "snapshot_version": self._snapshot.version,
            })

        return results

    def verify(self, result: ComputationResult) -> Dict:
        return self.result_validator.verify(result, self._snapshot)

    def remaining(self, result: ComputationResult, reference_date=None) -> Dict:
        """Business days left and urgency label relative to a reference date"""

        reference_date = reference_date or datetime.now().date()
        if result.due_date is None:
            return {"business_days_remaining": None, "urgency": urgency_label(reference_date, None, None)}

        outage = (result.system_unavailability,) if result.system_unavailability else ()
        calendar = self._snapshot.calendars.view(
            result.tribunal_code, result.trigger_date.year, result.state_code,
            extra_suspensions=outage,
        )
        return {
            "business_days_remaining": business_days_between(reference_date, result.due_date, calendar),
            "urgency": urgency_label(reference_date, result.due_date, calendar),
        }

    def _log_step(self, result: ProcessingResult, message: str):
        """Log processing step to audit trail"""

        entry = {
            "timestamp": datetime.now().isoformat(),
            "step": message,
            "request_id": result.request_id
        }

        result.audit_trail.append(entry)
        logger.debug(f"[{result.request_id}] {message}")

    def _record_audit_event(self, result: ProcessingResult, payload: Dict):
        """Best-effort audit event; never fails the computation"""

        if not self.audit_logger:
            return

        try:
            if result.status == "success":
                self.audit_logger.log("deadline_computed", {
                    "request_id": result.request_id,
                    "snapshot_version": result.result.snapshot_version,
                    "catalog_code": result.result.catalog_code,
                    "start_date": result.result.start_date.isoformat(),
                    "due_date": result.result.due_date.isoformat() if result.result.due_date else None,
                    "effective_days": result.result.effective_days,
                    "doubling_applied": result.result.doubling_applied,
                    "verified": result.verification.get("valid") if result.verification else None,
                })
            else:
                self.audit_logger.log("deadline_rejected", {
                    "request_id": result.request_id,
                    "error": result.error,
                    "payload": payload,
                })
        except Exception as e:
            logger.error(f"Audit event error for {result.request_id}: {e}")

    def _update_statistics(self, result: ProcessingResult):
        """Update pipeline statistics"""

        self.stats["requests_processed"] += 1

        if result.status == "success":
            self.stats["deadlines_computed"] += 1
            if result.result.doubling_applied:
                self.stats["doubled_deadlines"] += 1
            if result.verification and not result.verification.get("valid"):
                self.stats["verification_failures"] += 1
        else:
            self.stats["requests_rejected"] += 1
            code = (result.error or {}).get("code", "UNKNOWN")
            self.stats["errors_by_code"][code] = self.stats["errors_by_code"].get(code, 0) + 1

        n = self.stats["requests_processed"]
        current_avg = self.stats["average_processing_time"]
        self.stats["average_processing_time"] = (current_avg * (n - 1) + result.processing_time) / n

    def get_statistics(self) -> Dict:
        """Get pipeline statistics"""
        stats = self.stats.copy()
        stats["errors_by_code"] = dict(self.stats["errors_by_code"])
        stats["snapshot_version"] = self._snapshot.version
        return stats


def _parse_party(text: str) -> Dict:
    """POLE:TYPE[:COUNSEL] -> party payload"""

    parts = text.split(':')
    party = {"pole": parts[0], "party_type": parts[1] if len(parts) > 1 else None}
    if len(parts) > 2:
        party["counsel_id"] = parts[2]
    return party


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line entry point"""

    parser = argparse.ArgumentParser(
        prog="prazo-engine",
        description="Compute Brazilian procedural deadlines with an audit trail"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    compute = subparsers.add_parser("compute", help="Compute one deadline")
    compute.add_argument("--deadline", required=True, help="Catalog code or deadline name (e.g. CPC-001)")
    compute.add_argument("--trigger-date", required=True, help="ISO date or datetime of the triggering act")
    compute.add_argument("--service-method", required=True, help="Service/intimation method")
    compute.add_argument("--tribunal", required=True, help="Tribunal code (e.g. TJSP)")
    compute.add_argument("--state", help="State code, defaults to the tribunal's state")
    compute.add_argument("--party", action="append", default=[], help="POLE:TYPE[:COUNSEL], repeatable")
    compute.add_argument("--days", type=int, help="Override the catalog day count")
    compute.add_argument("--counting-mode", help="Override the catalog counting mode")
    compute.add_argument("--electronic", action="store_true", help="Fully electronic records")
    compute.add_argument("--system-unavailable", nargs=2, metavar=("START", "END"),
                         help="Electronic system outage window (CNJ Res. 185)")
    compute.add_argument("--embargos-pending", action="store_true",
                         help="Embargos de declaração pending (Art. 1.026 CPC)")
    compute.add_argument("--json", action="store_true", help="Print the full result as JSON")

    catalog = subparsers.add_parser("catalog", help="List catalog entries")
    catalog.add_argument("--category", help="Procedural category filter")
    catalog.add_argument("--search", help="Text search on name/description")

    args = parser.parse_args(argv)
    pipeline = DeadlinePipeline(PipelineConfig.from_env())

    if args.command == "catalog":
        entries = list(pipeline.snapshot.catalog)
        if args.category:
            try:
                category = ProceduralCategory.parse(args.category)
            except InvalidRequest as e:
                print(e.message, file=sys.stderr)
                return 2
            entries = pipeline.snapshot.catalog.by_category(category)
        if args.search:
            codes = {e.code for e in pipeline.snapshot.catalog.search(args.search)}
            entries = [e for e in entries if e.code in codes]
        for entry in entries:
            print(f"{entry.code:8} {entry.base_days:4} {entry.counting_mode.value:13} {entry.name}")
        return 0

    payload = {
        "deadline_type_or_catalog_code": args.deadline,
        "trigger_date": args.trigger_date,
        "service_method": args.service_method,
        "tribunal_code": args.tribunal,
        "state_code": args.state,
        "parties": [_parse_party(p) for p in args.party],
        "base_days_override": args.days,
        "counting_mode": args.counting_mode,
        "electronic_process": args.electronic,
        "embargos_pending": args.embargos_pending,
    }
    if args.system_unavailable:
        start, end = args.system_unavailable
        payload["system_unavailability"] = {"start": start, "end": end}

    outcome = pipeline.process(payload)
    if outcome.status != "success":
        print(json.dumps(outcome.error, indent=2, ensure_ascii=False), file=sys.stderr)
        return 2

    result = outcome.result
    if args.json:
        print(json.dumps(outcome.to_dict(), indent=2, ensure_ascii=False))
        return 0

    print(f"{result.catalog_code} - {result.catalog_name} ({result.legal_basis})")
    print(f"Trigger:  {result.trigger_date.isoformat()}")
    print(f"Start:    {result.start_date.isoformat()}  [{result.start_rule_citation}]")
    if result.no_fixed_term:
        print("Due:      no fixed term")
    else:
        due = result.due_at.isoformat() if result.due_at else result.due_date.isoformat()
        print(f"Due:      {due}  ({result.effective_days} {result.counting_mode.value.lower()})")
        print(f"Internal: {result.internal_due_date.isoformat() if result.internal_due_date else '-'}")
    if result.doubling_applied:
        print(f"Doubled:  {result.doubling_reason}")
    for line in summarize(result.audit_log):
        print(f"  {line}")
    for note in result.audit_notes:
        print(f"  note: {note}")
    for warning in result.warnings:
        print(f"! {warning}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
