r"""
Quote status machine.

    draft -> ordered -> in_progress -> done
      \         \            \
       +---------+------------+--> cancelled

done and cancelled are terminal. A transition never touches the price.
"""

import enum


class QuoteStatus(str, enum.Enum):
    DRAFT = "draft"
    ORDERED = "ordered"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    CANCELLED = "cancelled"


TRANSITIONS = {
    QuoteStatus.DRAFT: {QuoteStatus.ORDERED, QuoteStatus.CANCELLED},
    QuoteStatus.ORDERED: {QuoteStatus.IN_PROGRESS, QuoteStatus.CANCELLED},
    QuoteStatus.IN_PROGRESS: {QuoteStatus.DONE, QuoteStatus.CANCELLED},
    QuoteStatus.DONE: set(),
    QuoteStatus.CANCELLED: set(),
}

TERMINAL = {QuoteStatus.DONE, QuoteStatus.CANCELLED}


class InvalidTransition(ValueError):
    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move quote from '{current}' to '{target}'")


def parse_status(value) -> QuoteStatus:
    """String -> QuoteStatus, or ValueError listing the valid values."""
    if isinstance(value, QuoteStatus):
        return value
    try:
        return QuoteStatus(str(value).strip().lower())
    except ValueError:
        valid = ", ".join(s.value for s in QuoteStatus)
        raise ValueError(f"Unknown status '{value}'. Valid: {valid}")


def can_transition(current, target) -> bool:
    return parse_status(target) in TRANSITIONS[parse_status(current)]


def check_transition(current, target) -> QuoteStatus:
    """Return the target status, or raise InvalidTransition."""
    current_status = parse_status(current)
    target_status = parse_status(target)
    if target_status not in TRANSITIONS[current_status]:
        raise InvalidTransition(current_status.value, target_status.value)
    return target_status
