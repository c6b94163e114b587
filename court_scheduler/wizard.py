"""Step machine for the recurring event form.

State is immutable and every transition is a pure function of
``(state, draft)``, so the flow can be driven and tested without a UI.
"""
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Dict, FrozenSet, List

from court_scheduler import recurrence
from court_scheduler.errors import FieldError
from court_scheduler.models import RecurringEventTemplate

logger = logging.getLogger(__name__)


class WizardStep(str, Enum):
    COURT = "court"
    DATES = "dates"
    TIMES = "times"
    WEEKDAYS = "weekdays"
    DESCRIPTION = "description"
    REVIEW = "review"


class WizardEvent(str, Enum):
    NEXT = "next"
    BACK = "back"
    JUMP = "jump"


STEPS: List[WizardStep] = list(WizardStep)

# Review has no guard: reaching it means every other guard held.
GUARDS: Dict[WizardStep, Callable[[RecurringEventTemplate], FieldError | None]] = {
    WizardStep.COURT: recurrence.check_resource,
    WizardStep.DATES: recurrence.check_date_range,
    WizardStep.TIMES: recurrence.check_daily_window,
    WizardStep.WEEKDAYS: recurrence.check_weekdays,
    WizardStep.DESCRIPTION: recurrence.check_description,
}


@dataclass(frozen=True)
class WizardState:
    step_index: int = 0
    completed_steps: FrozenSet[int] = field(default_factory=frozenset)

    @property
    def step(self) -> WizardStep:
        return STEPS[self.step_index]


def initial_state() -> WizardState:
    return WizardState()


def is_terminal(state: WizardState) -> bool:
    return state.step_index == len(STEPS) - 1


def guard_error(step: WizardStep, draft: RecurringEventTemplate) -> FieldError | None:
    guard = GUARDS.get(step)
    return guard(draft) if guard else None


def guard_holds(step: WizardStep, draft: RecurringEventTemplate) -> bool:
    return guard_error(step, draft) is None


def next_step(state: WizardState, draft: RecurringEventTemplate) -> WizardState:
    """Advances one step when the current step's guard holds, otherwise a no-op."""
    if is_terminal(state):
        return state
    if not guard_holds(state.step, draft):
        logger.debug(f"Wizard blocked at step '{state.step.value}'")
        return state
    return WizardState(
        step_index=state.step_index + 1,
        completed_steps=state.completed_steps | {state.step_index},
    )


def back(state: WizardState) -> WizardState:
    if state.step_index == 0:
        return state
    return replace(state, step_index=state.step_index - 1)


def can_jump(state: WizardState, index: int, draft: RecurringEventTemplate) -> bool:
    """A step is reachable when visited before or when every guard before it holds."""
    if not 0 <= index < len(STEPS):
        return False
    if index <= state.step_index or index in state.completed_steps:
        return True
    return all(guard_holds(step, draft) for step in STEPS[:index])


def jump_to(state: WizardState, index: int, draft: RecurringEventTemplate) -> WizardState:
    if not can_jump(state, index, draft) or index == state.step_index:
        return state
    completed = state.completed_steps
    if index > state.step_index:
        completed = completed | set(range(index))
    return WizardState(step_index=index, completed_steps=completed)


def transition(
    state: WizardState,
    event: WizardEvent,
    draft: RecurringEventTemplate,
    target: int | None = None,
) -> WizardState:
    if event == WizardEvent.NEXT:
        return next_step(state, draft)
    if event == WizardEvent.BACK:
        return back(state)
    if event == WizardEvent.JUMP:
        if target is None:
            raise ValueError("A jump needs a target step index")
        return jump_to(state, target, draft)
    raise ValueError(f"Unknown wizard event: {event}")


def navigability(state: WizardState, draft: RecurringEventTemplate) -> List[bool]:
    """Per-step flags telling the step indicator which steps can be tapped."""
    return [can_jump(state, i, draft) for i in range(len(STEPS))]
