"""
Trigger Resolver
Maps an intimation/service event to the start-of-count date
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from pathlib import Path
from typing import Dict, List, Optional

from .calendar_repository import CalendarView
from .exceptions import CalendarDataError
from .models import AuditEntry, ServiceMethod, StartRule

logger = logging.getLogger(__name__)

DEFAULT_RULES_FILE = Path(__file__).resolve().parent.parent / "data" / "service_methods.json"


@dataclass(frozen=True)
class StartRuleSpec:
    method: ServiceMethod
    rule: StartRule
    citation: str
    label: str = ""


@dataclass
class StartResolution:
    start_date: date
    rule: StartRule
    citation: str
    adjustments: List[AuditEntry] = field(default_factory=list)


class TriggerResolver:
    """
    Resolves the start-of-count date per service method

    The method -> rule table is configuration data; every method must be
    covered and every rule must cite its legal basis.
    """

    def __init__(self, rules: Optional[Dict[ServiceMethod, StartRuleSpec]] = None):
        """
        Initialize resolver

        Args:
            rules: Rule table (loads data/service_methods.json if not provided)
        """

        self.rules = rules if rules is not None else self.load_rules()
        self._validate_rules(self.rules)

        logger.info(f"Trigger resolver initialized with {len(self.rules)} service methods")

    @staticmethod
    def load_rules(path=None) -> Dict[ServiceMethod, StartRuleSpec]:
        path = Path(path) if path else DEFAULT_RULES_FILE
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        rules = {}
        for item in data.get("rules", []):
            try:
                method = ServiceMethod(item["method"])
                rule = StartRule(item["rule"])
            except (KeyError, ValueError) as e:
                raise CalendarDataError(f"Invalid start rule entry {item!r}: {e}")

            if method in rules:
                raise CalendarDataError(f"Duplicate start rule for {method.value}")

            rules[method] = StartRuleSpec(
                method=method,
                rule=rule,
                citation=item.get("citation", ""),
                label=item.get("label", ""),
            )
        return rules

    @staticmethod
    def _validate_rules(rules: Dict[ServiceMethod, StartRuleSpec]):
        missing = [m.value for m in ServiceMethod if m not in rules]
        if missing:
            raise CalendarDataError(
                f"Start rule table does not cover: {', '.join(missing)}",
                {"missing": missing}
            )

        uncited = [m.value for m, spec in rules.items() if not spec.citation.strip()]
        if uncited:
            raise CalendarDataError(
                f"Start rules without legal citation: {', '.join(uncited)}",
                {"uncited": uncited}
            )

    def rule_for(self, service_method: ServiceMethod) -> StartRuleSpec:
        return self.rules[service_method]

    def resolve(self,
                trigger_date: date,
                service_method: ServiceMethod,
                calendar: CalendarView) -> StartResolution:
        """
        Resolve the start-of-count date and record every roll-forward

        Args:
            trigger_date: Date of the triggering act
            service_method: Service/intimation channel
            calendar: Calendar view for the tribunal

        Returns:
            StartResolution
        """

        spec = self.rules[service_method]

        if spec.rule == StartRule.NEXT_BUSINESS_DAY:
            candidate = trigger_date + timedelta(days=1)
        else:
            candidate = trigger_date

        adjustments = []
        while True:
            reason = calendar.classify(candidate)
            if reason is None:
                break
            kind, detail = reason
            adjustments.append(AuditEntry(candidate, kind, detail))
            candidate += timedelta(days=1)

        logger.debug(
            f"{service_method.value} on {trigger_date.isoformat()} -> start {candidate.isoformat()} "
            f"({spec.rule.value}, {len(adjustments)} roll-forwards)"
        )

        return StartResolution(
            start_date=candidate,
            rule=spec.rule,
            citation=spec.citation,
            adjustments=adjustments,
        )

    def resolve_start(self,
                      trigger_date: date,
                      service_method: ServiceMethod,
                      calendar: CalendarView) -> date:
        return self.resolve(trigger_date, service_method, calendar).start_date
