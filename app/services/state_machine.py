# app/services/state_machine.py
"""
Allowed-transition tables for the report and schedule lifecycles.
check_transition() is the single gate every status change goes through.
"""

from app.exceptions import AlreadyInState, InvalidTransition
from app.models.enums import ReportStatus, ScheduleStatus

REPORT_TRANSITIONS = {
    ReportStatus.PENDING: {ReportStatus.VERIFIED, ReportStatus.REJECTED},
    ReportStatus.VERIFIED: {ReportStatus.RESOLVED},
    ReportStatus.RESOLVED: set(),
    ReportStatus.REJECTED: set(),
}

SCHEDULE_TRANSITIONS = {
    ScheduleStatus.PENDING: {ScheduleStatus.IN_PROGRESS, ScheduleStatus.CANCELLED},
    ScheduleStatus.IN_PROGRESS: {ScheduleStatus.COMPLETED, ScheduleStatus.CANCELLED},
    ScheduleStatus.COMPLETED: set(),
    ScheduleStatus.CANCELLED: set(),
}


def check_transition(entity: str, current, target, transitions: dict):
    """
    Raise AlreadyInState if `current` already equals `target`,
    InvalidTransition if the edge is not in `transitions`.
    Accepts enum members or their string values.
    """
    state_type = type(next(iter(transitions)))
    current, target = state_type(current), state_type(target)
    if current == target:
        raise AlreadyInState(entity, current.value)
    if target not in transitions[current]:
        raise InvalidTransition(entity, current.value, target.value)


def is_terminal(state, transitions: dict) -> bool:
    state_type = type(next(iter(transitions)))
    return not transitions[state_type(state)]
