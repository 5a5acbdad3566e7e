"""
Domain Model
Court calendars, deadline catalog entries, parties and computation results
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .exceptions import (
    CalendarDataError,
    InvalidPartyComposition,
    InvalidRequest,
    InvalidServiceMethod,
)


class _ParseableEnum(str, Enum):
    """String enum accepting case-insensitive names on input"""

    @classmethod
    def _lookup(cls, value):
        if isinstance(value, cls):
            return value
        if not isinstance(value, str) or not value.strip():
            return None
        key = value.strip().upper().replace('-', '_').replace(' ', '_')
        return cls.__members__.get(key)


class TribunalCategory(_ParseableEnum):
    SUPREME = "SUPREME"
    SUPERIOR = "SUPERIOR"
    STATE_COURT = "STATE_COURT"
    FEDERAL_REGIONAL = "FEDERAL_REGIONAL"
    LABOR_REGIONAL = "LABOR_REGIONAL"
    ELECTORAL_REGIONAL = "ELECTORAL_REGIONAL"
    MILITARY = "MILITARY"


class HolidayCategory(_ParseableEnum):
    NATIONAL = "NATIONAL"
    STATE = "STATE"
    JUDICIAL = "JUDICIAL"
    OPTIONAL = "OPTIONAL"


class SuspensionCategory(_ParseableEnum):
    YEAR_END_RECESS = "YEAR_END_RECESS"
    MID_YEAR_RECESS = "MID_YEAR_RECESS"
    AD_HOC = "AD_HOC"
    SYSTEM_UNAVAILABILITY = "SYSTEM_UNAVAILABILITY"


class CountingMode(_ParseableEnum):
    BUSINESS_DAYS = "BUSINESS_DAYS"
    CALENDAR_DAYS = "CALENDAR_DAYS"
    HOURS = "HOURS"

    @classmethod
    def parse(cls, value) -> "CountingMode":
        mode = cls._lookup(value)
        if mode is None:
            raise InvalidRequest(
                f"Unknown counting mode: {value!r}",
                {"field": "counting_mode", "allowed": [m.value for m in cls]}
            )
        return mode


class DeadlineClass(_ParseableEnum):
    PEREMPTORY = "PEREMPTORY"
    DILATORY = "DILATORY"
    IMPROPER = "IMPROPER"


class ProceduralCategory(_ParseableEnum):
    PARTY_ACT = "PARTY_ACT"
    APPELLATE_ACT = "APPELLATE_ACT"
    JUDGE_ACT = "JUDGE_ACT"
    PUBLIC_MINISTRY_ACT = "PUBLIC_MINISTRY_ACT"
    EXPERT_ACT = "EXPERT_ACT"
    ANCILLARY_BODY_ACT = "ANCILLARY_BODY_ACT"

    @classmethod
    def parse(cls, value) -> "ProceduralCategory":
        category = cls._lookup(value)
        if category is None:
            raise InvalidRequest(
                f"Unknown procedural category: {value!r}",
                {"field": "category", "allowed": [c.value for c in cls]}
            )
        return category


class Pole(_ParseableEnum):
    CLAIMANT = "CLAIMANT"
    RESPONDENT = "RESPONDENT"
    THIRD_PARTY = "THIRD_PARTY"


class PartyType(_ParseableEnum):
    INDIVIDUAL = "INDIVIDUAL"
    LEGAL_ENTITY = "LEGAL_ENTITY"
    FEDERAL_TREASURY = "FEDERAL_TREASURY"
    STATE_TREASURY = "STATE_TREASURY"
    MUNICIPAL_TREASURY = "MUNICIPAL_TREASURY"
    AUTONOMOUS_AGENCY = "AUTONOMOUS_AGENCY"
    PUBLIC_FOUNDATION = "PUBLIC_FOUNDATION"
    PUBLIC_MINISTRY = "PUBLIC_MINISTRY"
    PUBLIC_DEFENDER = "PUBLIC_DEFENDER"
    PUBLIC_COMPANY = "PUBLIC_COMPANY"
    MIXED_ECONOMY_COMPANY = "MIXED_ECONOMY_COMPANY"


class ServiceMethod(_ParseableEnum):
    PERSONAL_SERVICE = "PERSONAL_SERVICE"
    POSTAL_SERVICE = "POSTAL_SERVICE"
    BAILIFF_SERVICE = "BAILIFF_SERVICE"
    REGISTRY_SERVICE = "REGISTRY_SERVICE"
    EDICT_PUBLICATION = "EDICT_PUBLICATION"
    ELECTRONIC_INTIMATION = "ELECTRONIC_INTIMATION"
    ELECTRONIC_PUBLICATION = "ELECTRONIC_PUBLICATION"
    LETTER_ROGATORY = "LETTER_ROGATORY"
    RECORDS_WITHDRAWAL = "RECORDS_WITHDRAWAL"
    SPONTANEOUS_APPEARANCE = "SPONTANEOUS_APPEARANCE"
    IN_HEARING = "IN_HEARING"
    FIXED_DATE = "FIXED_DATE"

    @classmethod
    def parse(cls, value) -> "ServiceMethod":
        method = cls._lookup(value)
        if method is None:
            raise InvalidServiceMethod(
                f"Unrecognized service method: {value!r}",
                {"field": "service_method", "allowed": [m.value for m in cls]}
            )
        return method


class StartRule(_ParseableEnum):
    NEXT_BUSINESS_DAY = "NEXT_BUSINESS_DAY"
    SAME_DAY = "SAME_DAY"


class ReasonKind(_ParseableEnum):
    WEEKEND = "WEEKEND"
    HOLIDAY = "HOLIDAY"
    SUSPENSION = "SUSPENSION"
    TOLLING = "TOLLING"


def parse_date(value, field_name: str = "date") -> date:
    """Parse an ISO date (or the date part of an ISO datetime)"""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) > 10:
                return datetime.fromisoformat(text.replace('Z', '+00:00')).date()
            return date.fromisoformat(text)
        except ValueError:
            pass
    raise InvalidRequest(f"Malformed date for {field_name}: {value!r}", {"field": field_name})


def parse_timestamp(value, field_name: str = "trigger_date") -> datetime:
    """Parse an ISO datetime; plain dates map to midnight"""

    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str) and len(value.strip()) > 10:
        try:
            return datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
        except ValueError:
            raise InvalidRequest(
                f"Malformed datetime for {field_name}: {value!r}", {"field": field_name}
            )
    day = parse_date(value, field_name)
    return datetime(day.year, day.month, day.day)


@dataclass(frozen=True)
class CourtHoliday:
    """A dated court holiday; informational unless it suspends business"""
    date: date
    name: str
    category: HolidayCategory = HolidayCategory.NATIONAL
    suspends_business: bool = True
    deadlines_extend: bool = True
    state_code: Optional[str] = None
    legal_basis: Optional[str] = None

    def applies_to(self, state_code: Optional[str]) -> bool:
        return self.state_code is None or (
            state_code is not None and self.state_code.upper() == state_code.upper()
        )

    def to_dict(self) -> Dict:
        return {
            "date": self.date.isoformat(),
            "name": self.name,
            "category": self.category.value,
            "suspends_business": self.suspends_business,
            "deadlines_extend": self.deadlines_extend,
            "state_code": self.state_code,
            "legal_basis": self.legal_basis,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "CourtHoliday":
        return cls(
            date=parse_date(data["date"], "holiday.date"),
            name=data["name"],
            category=HolidayCategory(data.get("category", "NATIONAL")),
            suspends_business=bool(data.get("suspends_business", True)),
            deadlines_extend=bool(data.get("deadlines_extend", True)),
            state_code=data.get("state_code"),
            legal_basis=data.get("legal_basis"),
        )


@dataclass(frozen=True)
class CourtSuspension:
    """Inclusive suspension/recess range, possibly crossing the year boundary"""
    start_date: date
    end_date: date
    name: str
    category: SuspensionCategory = SuspensionCategory.AD_HOC
    suspends_deadlines: bool = True
    suspends_hearings: bool = True
    suspends_sessions: bool = True
    emergency_duty: bool = False
    state_code: Optional[str] = None
    legal_basis: Optional[str] = None

    def __post_init__(self):
        if self.end_date < self.start_date:
            raise CalendarDataError(
                f"Suspension '{self.name}' ends before it starts",
                {"start_date": self.start_date.isoformat(), "end_date": self.end_date.isoformat()}
            )

    @property
    def span_days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    @property
    def flag_key(self) -> Tuple[bool, bool, bool]:
        return (self.suspends_deadlines, self.suspends_hearings, self.suspends_sessions)

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def overlaps(self, first: date, last: date) -> bool:
        return self.start_date <= last and first <= self.end_date

    def applies_to(self, state_code: Optional[str]) -> bool:
        return self.state_code is None or (
            state_code is not None and self.state_code.upper() == state_code.upper()
        )

    def to_dict(self) -> Dict:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "name": self.name,
            "category": self.category.value,
            "suspends_deadlines": self.suspends_deadlines,
            "suspends_hearings": self.suspends_hearings,
            "suspends_sessions": self.suspends_sessions,
            "emergency_duty": self.emergency_duty,
            "state_code": self.state_code,
            "legal_basis": self.legal_basis,
        }

    @classmethod
    def system_unavailability(cls, start_date: date, end_date: date) -> "CourtSuspension":
        """Outage of the electronic filing system, which extends deadlines (CNJ Res. 185)"""
        return cls(
            start_date=start_date,
            end_date=end_date,
            name=(
                f"Indisponibilidade do sistema (CNJ Res. 185): "
                f"{start_date.strftime('%d/%m/%Y')} a {end_date.strftime('%d/%m/%Y')}"
            ),
            category=SuspensionCategory.SYSTEM_UNAVAILABILITY,
            suspends_hearings=False,
            suspends_sessions=False,
            legal_basis="Res. CNJ 185/2013, art. 10",
        )

    @classmethod
    def from_dict(cls, data: Dict) -> "CourtSuspension":
        return cls(
            start_date=parse_date(data["start_date"], "suspension.start_date"),
            end_date=parse_date(data["end_date"], "suspension.end_date"),
            name=data["name"],
            category=SuspensionCategory(data.get("category", "AD_HOC")),
            suspends_deadlines=bool(data.get("suspends_deadlines", True)),
            suspends_hearings=bool(data.get("suspends_hearings", True)),
            suspends_sessions=bool(data.get("suspends_sessions", True)),
            emergency_duty=bool(data.get("emergency_duty", False)),
            state_code=data.get("state_code"),
            legal_basis=data.get("legal_basis"),
        )


@dataclass(frozen=True)
class CourtCalendar:
    """
    Published calendar of one tribunal for one year

    Suspensions sharing the same flag combination must not overlap.
    """
    tribunal_code: str
    tribunal_name: str
    category: TribunalCategory
    year: int
    state_code: Optional[str] = None
    holidays: Tuple[CourtHoliday, ...] = ()
    suspensions: Tuple[CourtSuspension, ...] = ()

    def __post_init__(self):
        # Accept lists from callers but store tuples
        object.__setattr__(self, 'holidays', tuple(self.holidays))
        object.__setattr__(self, 'suspensions', tuple(self.suspensions))

        ordered = sorted(self.suspensions, key=lambda s: (s.flag_key, s.start_date))
        for previous, current in zip(ordered, ordered[1:]):
            if previous.flag_key == current.flag_key and current.start_date <= previous.end_date:
                raise CalendarDataError(
                    f"Overlapping suspensions in {self.tribunal_code}/{self.year}: "
                    f"'{previous.name}' and '{current.name}'",
                    {"tribunal_code": self.tribunal_code, "year": self.year}
                )

    def to_dict(self) -> Dict:
        return {
            "tribunal_code": self.tribunal_code,
            "tribunal_name": self.tribunal_name,
            "category": self.category.value,
            "year": self.year,
            "state_code": self.state_code,
            "holidays": [h.to_dict() for h in self.holidays],
            "suspensions": [s.to_dict() for s in self.suspensions],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "CourtCalendar":
        return cls(
            tribunal_code=data["tribunal_code"].upper(),
            tribunal_name=data.get("tribunal_name", data["tribunal_code"]),
            category=TribunalCategory(data["category"]),
            year=int(data["year"]),
            state_code=data.get("state_code"),
            holidays=tuple(CourtHoliday.from_dict(h) for h in data.get("holidays", [])),
            suspensions=tuple(CourtSuspension.from_dict(s) for s in data.get("suspensions", [])),
        )


@dataclass(frozen=True)
class DeadlineCatalogEntry:
    """Static definition of a legal deadline type"""
    code: str
    name: str
    base_days: int
    counting_mode: CountingMode
    deadline_class: DeadlineClass
    procedural_category: ProceduralCategory
    statute: str
    article: str
    doubling_eligible: bool = False
    joinder_eligible: bool = False
    description: str = ""
    non_compliance_effect: str = ""
    triggering_event: str = ""
    extends_on_non_business_day: bool = True
    notes: Optional[str] = None

    @property
    def legal_basis(self) -> str:
        return f"{self.article}, {self.statute}"

    def to_dict(self) -> Dict:
        return {
            "code": self.code,
            "name": self.name,
            "description": self.description,
            "base_days": self.base_days,
            "counting_mode": self.counting_mode.value,
            "deadline_class": self.deadline_class.value,
            "procedural_category": self.procedural_category.value,
            "statute": self.statute,
            "article": self.article,
            "doubling_eligible": self.doubling_eligible,
            "joinder_eligible": self.joinder_eligible,
            "non_compliance_effect": self.non_compliance_effect,
            "triggering_event": self.triggering_event,
            "extends_on_non_business_day": self.extends_on_non_business_day,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "DeadlineCatalogEntry":
        base_days = data["base_days"]
        if not isinstance(base_days, int) or isinstance(base_days, bool) or base_days < 0:
            raise CalendarDataError(
                f"Catalog entry {data.get('code')} has invalid base_days: {base_days!r}"
            )
        return cls(
            code=data["code"].upper(),
            name=data["name"],
            base_days=base_days,
            counting_mode=CountingMode(data["counting_mode"]),
            deadline_class=DeadlineClass(data["deadline_class"]),
            procedural_category=ProceduralCategory(data["procedural_category"]),
            statute=data.get("statute", ""),
            article=data.get("article", ""),
            doubling_eligible=bool(data.get("doubling_eligible", False)),
            joinder_eligible=bool(data.get("joinder_eligible", False)),
            description=data.get("description", ""),
            non_compliance_effect=data.get("non_compliance_effect", ""),
            triggering_event=data.get("triggering_event", ""),
            extends_on_non_business_day=bool(data.get("extends_on_non_business_day", True)),
            notes=data.get("notes"),
        )


@dataclass(frozen=True)
class Party:
    """Case party as seen by the doubling rules"""
    pole: Pole
    party_type: PartyType
    name: Optional[str] = None
    counsel_id: Optional[str] = None
    entitled_to_double: bool = False

    def to_dict(self) -> Dict:
        return {
            "pole": self.pole.value,
            "party_type": self.party_type.value,
            "name": self.name,
            "counsel_id": self.counsel_id,
            "entitled_to_double": self.entitled_to_double,
        }

    @classmethod
    def from_dict(cls, data: Dict, index: int = 0) -> "Party":
        """
        Build a party from request data

        Raises:
            InvalidPartyComposition: pole or type missing or unknown
        """

        if not isinstance(data, dict):
            raise InvalidPartyComposition(
                f"Party #{index} must be an object", {"index": index}
            )

        for required in ('pole', 'party_type'):
            if not data.get(required):
                raise InvalidPartyComposition(
                    f"Party #{index} is missing required field '{required}'",
                    {"index": index, "field": required}
                )

        pole = Pole._lookup(data['pole'])
        if pole is None:
            raise InvalidPartyComposition(
                f"Party #{index} has unknown pole: {data['pole']!r}",
                {"index": index, "field": "pole", "allowed": [p.value for p in Pole]}
            )

        party_type = PartyType._lookup(data['party_type'])
        if party_type is None:
            raise InvalidPartyComposition(
                f"Party #{index} has unknown party type: {data['party_type']!r}",
                {"index": index, "field": "party_type", "allowed": [t.value for t in PartyType]}
            )

        counsel = data.get('counsel_id')
        return cls(
            pole=pole,
            party_type=party_type,
            name=data.get('name'),
            counsel_id=str(counsel).strip() if counsel not in (None, "") else None,
        )


@dataclass(frozen=True)
class AuditEntry:
    """One skip or adjustment; span_days > 1 only for tolling"""
    date: date
    reason_kind: ReasonKind
    reason_detail: str
    span_days: int = 1

    @property
    def last_day(self) -> date:
        return self.date + timedelta(days=self.span_days - 1)

    def to_dict(self) -> Dict:
        return {
            "date": self.date.isoformat(),
            "reason_kind": self.reason_kind.value,
            "reason_detail": self.reason_detail,
            "span_days": self.span_days,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "AuditEntry":
        return cls(
            date=parse_date(data["date"], "audit_log.date"),
            reason_kind=ReasonKind(data["reason_kind"]),
            reason_detail=data.get("reason_detail", ""),
            span_days=int(data.get("span_days", 1)),
        )


@dataclass
class ComputationResult:
    """Outcome of a single deadline computation"""
    catalog_code: str
    catalog_name: str
    trigger_date: date
    start_date: date
    due_date: Optional[date]
    original_days: int
    effective_days: int
    counting_mode: CountingMode
    holidays_encountered: int = 0
    suspension_days_encountered: int = 0
    doubling_applied: bool = False
    doubling_reason: Optional[str] = None
    audit_log: List[AuditEntry] = field(default_factory=list)
    no_fixed_term: bool = False
    due_at: Optional[datetime] = None
    start_adjustments: List[AuditEntry] = field(default_factory=list)
    start_rule: Optional[StartRule] = None
    start_rule_citation: Optional[str] = None
    deadline_class: Optional[DeadlineClass] = None
    legal_basis: Optional[str] = None
    tribunal_code: Optional[str] = None
    state_code: Optional[str] = None
    snapshot_version: Optional[str] = None
    parties: List[Party] = field(default_factory=list)
    internal_due_date: Optional[date] = None
    alert_dates: List[date] = field(default_factory=list)
    system_unavailability: Optional[CourtSuspension] = None
    embargos_pending: bool = False
    audit_notes: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        def iso(value):
            return value.isoformat() if value is not None else None

        return {
            "catalog_code": self.catalog_code,
            "catalog_name": self.catalog_name,
            "trigger_date": iso(self.trigger_date),
            "start_date": iso(self.start_date),
            "due_date": iso(self.due_date),
            "due_at": iso(self.due_at),
            "no_fixed_term": self.no_fixed_term,
            "original_days": self.original_days,
            "effective_days": self.effective_days,
            "counting_mode": self.counting_mode.value,
            "holidays_encountered": self.holidays_encountered,
            "suspension_days_encountered": self.suspension_days_encountered,
            "doubling_applied": self.doubling_applied,
            "doubling_reason": self.doubling_reason,
            "audit_log": [entry.to_dict() for entry in self.audit_log],
            "start_adjustments": [entry.to_dict() for entry in self.start_adjustments],
            "start_rule": self.start_rule.value if self.start_rule else None,
            "start_rule_citation": self.start_rule_citation,
            "deadline_class": self.deadline_class.value if self.deadline_class else None,
            "legal_basis": self.legal_basis,
            "tribunal_code": self.tribunal_code,
            "state_code": self.state_code,
            "snapshot_version": self.snapshot_version,
            "parties": [party.to_dict() for party in self.parties],
            "internal_due_date": iso(self.internal_due_date),
            "alert_dates": [d.isoformat() for d in self.alert_dates],
            "system_unavailability": (
                self.system_unavailability.to_dict() if self.system_unavailability else None
            ),
            "embargos_pending": self.embargos_pending,
            "audit_notes": list(self.audit_notes),
            "warnings": list(self.warnings),
        }


@dataclass
class DeadlineRequest:
    """Validated computation request"""
    catalog_code: str
    trigger_date: date
    service_method: ServiceMethod
    tribunal_code: str
    state_code: Optional[str] = None
    parties: List[Party] = field(default_factory=list)
    base_days_override: Optional[int] = None
    counting_mode: Optional[CountingMode] = None
    electronic_process: bool = False
    trigger_time: Optional[time] = None
    system_unavailability: Optional[CourtSuspension] = None
    embargos_pending: bool = False
    reference: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "deadline_type_or_catalog_code": self.catalog_code,
            "trigger_date": self.trigger_date.isoformat(),
            "trigger_time": self.trigger_time.isoformat() if self.trigger_time else None,
            "service_method": self.service_method.value,
            "tribunal_code": self.tribunal_code,
            "state_code": self.state_code,
            "parties": [p.to_dict() for p in self.parties],
            "base_days_override": self.base_days_override,
            "counting_mode": self.counting_mode.value if self.counting_mode else None,
            "electronic_process": self.electronic_process,
            "system_unavailability": (
                {
                    "start": self.system_unavailability.start_date.isoformat(),
                    "end": self.system_unavailability.end_date.isoformat(),
                }
                if self.system_unavailability else None
            ),
            "embargos_pending": self.embargos_pending,
            "reference": self.reference,
        }
