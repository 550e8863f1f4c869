# This project was developed with assistance from AI tools.
"""Application status state machine.

Pure functions over ``ApplicationStatus.valid_transitions()``; every service
that writes ``Application.status`` consults ``validate_transition`` first.
"""

from zakat_db.enums import ApplicationStatus

from .errors import InvalidTransitionError

_TRANSITIONS = ApplicationStatus.valid_transitions()
TERMINAL_STATUSES = ApplicationStatus.terminal_statuses()
ACTIVE_STATUSES = ApplicationStatus.active_statuses()


def is_legal_transition(current: ApplicationStatus, target: ApplicationStatus) -> bool:
    """True if ``current -> target`` is a declared edge. Self-loops are not."""
    return target in _TRANSITIONS.get(current, frozenset())


def validate_transition(current: ApplicationStatus, target: ApplicationStatus) -> None:
    if not is_legal_transition(current, target):
        raise InvalidTransitionError(current, target)


def allowed_targets(current: ApplicationStatus) -> list[ApplicationStatus]:
    """Declared next statuses, in stable order for display."""
    return sorted(_TRANSITIONS.get(current, frozenset()), key=lambda s: s.value)
