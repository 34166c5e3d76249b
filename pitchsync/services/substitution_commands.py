"""
Command pattern implementation for substitution actions.

Confirm and skip re-read the stored pitch record, check their preconditions
against that fresh copy and write the result back in a single save, so a
reader never observes a half-applied substitution.
"""
import copy
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional

from ..models import PitchBoardState, SubstitutionEvent
from ..utils import now_ts
from .persistence_service import PersistenceService
from .plan_service import PlanService

_log = logging.getLogger("pitchsync.executor")


class SubstitutionOutcome(Enum):
    APPLIED = "applied"
    STALE = "stale"
    ALREADY_EXECUTED = "already_executed"
    NOT_FOUND = "not_found"
    NO_SESSION = "no_session"
    RECALCULATED = "recalculated"
    REMOVED = "removed"


class SubstitutionCommand(ABC):
    """Abstract base class for substitution commands - Command pattern."""

    def __init__(self, persistence: PersistenceService):
        self.persistence = persistence
        self.outcome: Optional[SubstitutionOutcome] = None

    @abstractmethod
    def execute(self) -> bool:
        """
        Execute the command.

        Returns:
            True if the stored session was changed, False otherwise
        """
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Get human-readable description of the command."""
        pass


class ConfirmSubstitutionCommand(SubstitutionCommand):
    """Apply one planned substitution to the stored roster."""

    def __init__(self, persistence: PersistenceService, event: SubstitutionEvent):
        super().__init__(persistence)
        self.event = event

    def execute(self) -> bool:
        state = self.persistence.load_pitch_state()
        if state is None:
            self.outcome = SubstitutionOutcome.NO_SESSION
            return False

        target = next((sub for sub in state.auto_sub_plan if sub.matches(self.event)), None)
        if target is None:
            self.outcome = SubstitutionOutcome.NOT_FOUND
            return False
        if target.executed:
            self.outcome = SubstitutionOutcome.ALREADY_EXECUTED
            return False

        player_out = state.find_player(self.event.player_out.id)
        player_in = state.find_player(self.event.player_in.id)
        if player_in is None or player_in.on_pitch or player_out is None or not player_out.on_pitch:
            _log.warning(
                "Stale substitution %s -> %s marked done without roster changes",
                self.event.player_out.label(), self.event.player_in.label(),
            )
            target.executed = True
            state.auto_sub_active = state.has_pending_subs()
            self.persistence.save_pitch_state(state)
            self.outcome = SubstitutionOutcome.STALE
            return True

        self._swap_players(state, target)
        target.executed = True
        state.executed_subs.append(copy.deepcopy(target))
        state.auto_sub_active = state.has_pending_subs()
        self.persistence.save_pitch_state(state)
        _log.info("Substitution confirmed: %s off, %s on",
                  player_out.label(), player_in.label())
        self.outcome = SubstitutionOutcome.APPLIED
        return True

    @staticmethod
    def _swap_players(state: PitchBoardState, event: SubstitutionEvent) -> None:
        player_out = state.find_player(event.player_out.id)
        player_in = state.find_player(event.player_in.id)
        vacated_spot = player_out.position
        vacated_category = player_out.current_pitch_position

        swap_player = None
        if event.position_swap is not None:
            swap_player = state.find_player(event.position_swap.player.id)
            if swap_player is not None and not swap_player.on_pitch:
                swap_player = None

        player_out.move_to_bench()
        if swap_player is not None:
            swap_spot = swap_player.position
            swap_player.place_on_pitch(vacated_spot, event.position_swap.to_position)
            player_in.place_on_pitch(swap_spot, event.position_swap.from_position)
        else:
            player_in.place_on_pitch(vacated_spot, vacated_category)

    @property
    def description(self) -> str:
        return f"Substitute {self.event.player_in.label()} for {self.event.player_out.label()}"


class SkipSubstitutionCommand(SubstitutionCommand):
    """Skip a due batch and re-balance the rest of the game."""

    def __init__(self, persistence: PersistenceService, events: List[SubstitutionEvent],
                 planner: PlanService):
        super().__init__(persistence)
        self.events = events
        self.planner = planner

    def execute(self) -> bool:
        state = self.persistence.load_pitch_state()
        timer_state = self.persistence.load_timer_state()
        if state is None or timer_state is None or not self.events:
            self.outcome = SubstitutionOutcome.NO_SESSION
            return False

        bench = [p for p in state.players if not p.on_pitch]
        if bench:
            state.auto_sub_plan = self.planner.recalculate_remaining_plan(
                state.players,
                state.team_size_number,
                timer_state.half_duration_seconds,
                timer_state.current_elapsed(now_ts()),
                timer_state.current_half,
                skipped_sub=self.events[0],
            )
            state.auto_sub_active = len(state.auto_sub_plan) > 0
            self.outcome = SubstitutionOutcome.RECALCULATED
        else:
            state.auto_sub_plan = [
                sub for sub in state.auto_sub_plan
                if not any(sub.matches(skipped) for skipped in self.events)
            ]
            state.auto_sub_active = state.has_pending_subs()
            self.outcome = SubstitutionOutcome.REMOVED

        self.persistence.save_pitch_state(state)
        _log.info("Skipped %d substitution(s): %s", len(self.events), self.outcome.value)
        return True

    @property
    def description(self) -> str:
        return "Skip Substitution" if len(self.events) == 1 else "Skip Substitutions"


class SubstitutionExecutor:
    """
    Facade running substitution commands and keeping their history.
    """

    def __init__(self, persistence: PersistenceService, planner: Optional[PlanService] = None,
                 max_history: int = 50):
        """
        Initialize the executor.

        Args:
            persistence: Store holding the session records
            planner: Planner used when a skip re-balances the plan
            max_history: Maximum number of commands to keep in history
        """
        self.persistence = persistence
        self.planner = planner or PlanService()
        self.max_history = max_history
        self.history: List[SubstitutionCommand] = []

    def _run(self, command: SubstitutionCommand) -> SubstitutionOutcome:
        command.execute()
        self.history.append(command)
        if len(self.history) > self.max_history:
            self.history.pop(0)
        _log.debug("%s -> %s", command.description, command.outcome.value)
        return command.outcome

    def confirm(self, event: SubstitutionEvent) -> SubstitutionOutcome:
        return self._run(ConfirmSubstitutionCommand(self.persistence, event))

    def confirm_batch(self, events: List[SubstitutionEvent]) -> List[SubstitutionOutcome]:
        """Confirm each event of a batch in order, each against a fresh record."""
        return [self.confirm(event) for event in events]

    def skip(self, event: SubstitutionEvent) -> SubstitutionOutcome:
        return self.skip_batch([event])

    def skip_batch(self, events: List[SubstitutionEvent]) -> SubstitutionOutcome:
        return self._run(SkipSubstitutionCommand(self.persistence, events, self.planner))
