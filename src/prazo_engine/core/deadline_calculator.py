"""
Deadline Calculator
Orchestrates trigger resolution, doubling, counting and audit for one request
"""

import logging
from datetime import timedelta
from typing import Optional

from .alert_scheduler import AlertScheduler
from .counting_engine import CountingEngine
from .doubling_resolver import DoublingResolver
from .models import (
    ComputationResult,
    CountingMode,
    DeadlineClass,
    DeadlineRequest,
)
from .snapshot import ReferenceSnapshot
from .trigger_resolver import TriggerResolver

logger = logging.getLogger(__name__)


class DeadlineCalculator:
    """
    Computes procedural deadlines against an injected reference snapshot

    Holds no reference data of its own; the same calculator can serve
    concurrent computations over different snapshot versions.
    """

    def __init__(self,
                 trigger_resolver: Optional[TriggerResolver] = None,
                 doubling_resolver: Optional[DoublingResolver] = None,
                 counting_engine: Optional[CountingEngine] = None,
                 alert_scheduler: Optional[AlertScheduler] = None):
        """
        Initialize deadline calculator

        Args:
            trigger_resolver: Start-date resolver (default rule table if not provided)
            doubling_resolver: Doubling rules
            counting_engine: Counting state machine
            alert_scheduler: Internal due date and reminders
        """

        self.trigger_resolver = trigger_resolver or TriggerResolver()
        self.doubling_resolver = doubling_resolver or DoublingResolver()
        self.counting_engine = counting_engine or CountingEngine()
        self.alert_scheduler = alert_scheduler or AlertScheduler()

        logger.info("Deadline calculator initialized")

    def calculate(self, request: DeadlineRequest, snapshot: ReferenceSnapshot) -> ComputationResult:
        """
        Compute a deadline

        Args:
            request: Validated computation request
            snapshot: Calendars and catalog to compute against

        Returns:
            ComputationResult

        Raises:
            ConfigurationNotFound: unknown catalog entry or unpublished calendar
        """

        entry = snapshot.catalog.get(request.catalog_code)
        extra = (request.system_unavailability,) if request.system_unavailability else ()
        calendar = snapshot.calendars.view(
            request.tribunal_code,
            request.trigger_date.year,
            request.state_code,
            extra_suspensions=extra,
        )

        base_days = entry.base_days if request.base_days_override is None else request.base_days_override
        counting_mode = request.counting_mode or entry.counting_mode
        warnings = []

        if request.base_days_override is not None and request.base_days_override != entry.base_days:
            warnings.append(
                f"Day count overridden: {request.base_days_override} instead of "
                f"{entry.base_days} ({entry.legal_basis})"
            )
        if request.counting_mode and request.counting_mode != entry.counting_mode:
            warnings.append(
                f"Counting mode overridden: {request.counting_mode.value} instead of "
                f"{entry.counting_mode.value}"
            )

        # Step 1: start of count
        resolution = self.trigger_resolver.resolve(
            request.trigger_date, request.service_method, calendar
        )

        # Step 2: doubling
        effective_days, doubled, reason = self.doubling_resolver.resolve_effective_days(
            base_days, entry, request.parties, request.electronic_process
        )
        parties = self.doubling_resolver.resolve_parties(
            entry, request.parties, request.electronic_process
        )

        # Step 3: count
        start_time = request.trigger_time if resolution.start_date == request.trigger_date else None
        outcome = self.counting_engine.count(
            resolution.start_date,
            effective_days,
            counting_mode,
            calendar,
            extends_on_non_business_day=entry.extends_on_non_business_day,
            start_time=start_time,
        )
        warnings.extend(outcome.warnings)

        result = ComputationResult(
            catalog_code=entry.code,
            catalog_name=entry.name,
            trigger_date=request.trigger_date,
            start_date=resolution.start_date,
            due_date=outcome.due_date,
            due_at=outcome.due_at,
            original_days=base_days,
            effective_days=effective_days,
            counting_mode=counting_mode,
            doubling_applied=doubled,
            doubling_reason=reason,
            audit_log=outcome.entries,
            no_fixed_term=outcome.no_fixed_term,
            start_adjustments=resolution.adjustments,
            start_rule=resolution.rule,
            start_rule_citation=resolution.citation,
            deadline_class=entry.deadline_class,
            legal_basis=entry.legal_basis,
            tribunal_code=calendar.tribunal_code,
            state_code=calendar.state_code,
            snapshot_version=snapshot.version,
            parties=parties,
            system_unavailability=request.system_unavailability,
            embargos_pending=request.embargos_pending,
        )

        if request.system_unavailability:
            outage = request.system_unavailability
            result.audit_notes.append(
                f"System unavailable {outage.start_date.isoformat()} to {outage.end_date.isoformat()}; "
                f"treated as a suspension ({outage.legal_basis})"
            )

        if request.embargos_pending:
            unit = counting_mode.value.lower().replace('_', ' ')
            result.audit_notes.append(
                f"Art. 1.026 CPC: deadline interrupted by pending embargos de declaração; "
                f"the full {base_days} {unit} restart after the ruling"
            )
            warnings.append(
                f"Embargos de declaração pending (Art. 1.026 CPC): this deadline is interrupted "
                f"and restarts in full ({base_days} {unit}) once the embargos are decided"
            )

        if outcome.no_fixed_term:
            warnings.append(
                f"{entry.name} has no fixed term: {entry.non_compliance_effect or 'may be raised at any time'}"
            )
        else:
            first_counted = resolution.start_date + timedelta(days=1)
            result.holidays_encountered = len(calendar.holidays_between(first_counted, outcome.due_date))
            result.suspension_days_encountered = calendar.suspended_days_between(
                first_counted, outcome.due_date
            )

            if counting_mode != CountingMode.HOURS:
                result.internal_due_date = self.alert_scheduler.internal_due_date(
                    outcome.due_date, resolution.start_date, calendar
                )
                result.alert_dates = self.alert_scheduler.alert_dates(
                    outcome.due_date, resolution.start_date, entry.deadline_class, calendar
                )

            if entry.deadline_class == DeadlineClass.PEREMPTORY:
                warnings.append(
                    f"Peremptory deadline: missing it means {entry.non_compliance_effect or 'loss of the right to act'}"
                )
            elif entry.deadline_class == DeadlineClass.IMPROPER:
                warnings.append("Improper deadline: binds the court and has no preclusive effect")

        result.warnings = warnings

        logger.info(
            f"{entry.code} ({entry.name}) for {calendar.tribunal_code}: trigger "
            f"{request.trigger_date.isoformat()} -> start {resolution.start_date.isoformat()}, "
            f"due {result.due_date.isoformat() if result.due_date else 'no fixed term'} "
            f"({effective_days} {counting_mode.value.lower()}, doubled={doubled})"
        )

        return result
