"""
Core deadline computation modules
"""

from .calendar_repository import CalendarRepository, CalendarView
from .court_calendars import CourtCalendarBuilder
from .deadline_catalog import DeadlineCatalog
from .snapshot import ReferenceSnapshot
from .trigger_resolver import TriggerResolver
from .doubling_resolver import DoublingResolver
from .counting_engine import CountingEngine
from .audit_log import AuditLogBuilder, replay_due_date
from .alert_scheduler import AlertScheduler
from .deadline_calculator import DeadlineCalculator
from .deadline_validator import DeadlineValidator

__all__ = [
    'CalendarRepository',
    'CalendarView',
    'CourtCalendarBuilder',
    'DeadlineCatalog',
    'ReferenceSnapshot',
    'TriggerResolver',
    'DoublingResolver',
    'CountingEngine',
    'AuditLogBuilder',
    'replay_due_date',
    'AlertScheduler',
    'DeadlineCalculator',
    'DeadlineValidator'
]
