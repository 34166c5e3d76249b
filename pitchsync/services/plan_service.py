"""Plan service: builds and rebuilds substitution schedules for equal playing time."""

from __future__ import annotations

import copy
import logging
import math
from typing import Dict, Iterable, List, NamedTuple, Optional, Set, Tuple

from ..models import (
    Player, PitchPosition, PlayerTimeForecast, PositionSwap, SubstitutionEvent
)
from ..utils import (
    DEFAULT_ROTATION_SPEED, FULL_PLAN_MIN_WINDOW_SECONDS, MIN_SUB_INTERVAL_SECONDS
)

_log = logging.getLogger("pitchsync.plan")

Occupancy = Dict[str, Optional[PitchPosition]]


class _Swap(NamedTuple):
    player_out: Player
    player_in: Player
    position_swap: Optional[PositionSwap]


class _Candidate(NamedTuple):
    swap: _Swap
    score: float
    position_valid: bool


class _Pools(NamedTuple):
    gk_on_pitch: Optional[Player]
    gk_on_bench: Optional[Player]
    outfield: List[Player]
    outfield_on_bench: List[Player]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class PlanService:
    """
    Builds substitution plans that approximate equal playing time.

    Goalkeepers never enter the outfield rotation: a goalkeeper-only bench
    player is handled by a single swap at the start of the second half.
    All methods are pure with respect to the players passed in; scheduled
    events carry snapshots of the players.
    """

    def __init__(self, min_sub_interval: int = MIN_SUB_INTERVAL_SECONDS,
                 min_window_interval: int = FULL_PLAN_MIN_WINDOW_SECONDS):
        self.min_sub_interval = min_sub_interval
        self.min_window_interval = min_window_interval

    # ---------- Shared helpers ---------- #

    @staticmethod
    def _split_pools(players: List[Player], bench: List[Player]) -> _Pools:
        on_pitch = [p for p in players if p.on_pitch]
        gk_on_pitch = next(
            (p for p in on_pitch if p.current_pitch_position == PitchPosition.GOALKEEPER), None
        )
        gk_on_bench = next((p for p in bench if p.is_goalkeeper_only()), None)
        outfield = [
            p for p in players
            if not (p.on_pitch and p.current_pitch_position == PitchPosition.GOALKEEPER)
            and not p.is_goalkeeper_only()
            and not (p.is_injured and not p.on_pitch)
        ]
        outfield_on_bench = [p for p in bench if not p.is_goalkeeper_only()]
        return _Pools(gk_on_pitch, gk_on_bench, outfield, outfield_on_bench)

    @staticmethod
    def _initial_occupancy(players: Iterable[Player]) -> Occupancy:
        return {
            p.id: p.current_pitch_position
            for p in players
            if p.on_pitch and p.current_pitch_position != PitchPosition.GOALKEEPER
        }

    @staticmethod
    def _make_event(time: int, half: int, swap: _Swap) -> SubstitutionEvent:
        position_swap = None
        if swap.position_swap is not None:
            position_swap = PositionSwap(
                player=copy.deepcopy(swap.position_swap.player),
                from_position=swap.position_swap.from_position,
                to_position=swap.position_swap.to_position,
            )
        return SubstitutionEvent(
            time=int(time),
            half=half,
            player_out=copy.deepcopy(swap.player_out),
            player_in=copy.deepcopy(swap.player_in),
            position_swap=position_swap,
            executed=False,
        )

    @staticmethod
    def _apply_to_occupancy(occupancy: Occupancy, swap: _Swap) -> None:
        """Record who stands where after a scheduled swap."""
        if swap.position_swap is not None:
            incoming_position = swap.position_swap.from_position
        else:
            incoming_position = occupancy.get(swap.player_out.id)
        occupancy.pop(swap.player_out.id, None)
        occupancy[swap.player_in.id] = incoming_position
        if swap.position_swap is not None:
            occupancy[swap.position_swap.player.id] = swap.position_swap.to_position

    @staticmethod
    def _chain_swap(incoming: Player, outgoing: Player, occupancy: Occupancy,
                    lookup: Dict[str, Player],
                    excluded: Optional[Set[str]] = None) -> Optional[PositionSwap]:
        """
        Find an on-pitch player who can move into the outgoing player's slot
        while the incoming player takes theirs.
        """
        vacated = occupancy.get(outgoing.id)
        if vacated is None:
            return None
        for swap_id, swap_position in list(occupancy.items()):
            if swap_id == outgoing.id or (excluded and swap_id in excluded):
                continue
            swap_player = lookup.get(swap_id)
            if swap_player is None or swap_position is None:
                continue
            if swap_player.can_play(vacated) and incoming.can_play(swap_position):
                return PositionSwap(player=swap_player, from_position=swap_position,
                                    to_position=vacated)
        return None

    @staticmethod
    def _goalkeeper_swap(pools: _Pools) -> Optional[SubstitutionEvent]:
        if pools.gk_on_bench is None or pools.gk_on_pitch is None:
            return None
        return PlanService._make_event(0, 2, _Swap(pools.gk_on_pitch, pools.gk_on_bench, None))

    @staticmethod
    def _sorted_plan(plan: List[SubstitutionEvent]) -> List[SubstitutionEvent]:
        return sorted(plan, key=lambda sub: sub.sort_key)

    # ---------- Mid-game recalculation ---------- #

    def spread_remaining_times(self, subs_needed: int, half_duration_seconds: int,
                               current_elapsed_seconds: int,
                               current_half: int) -> List[Tuple[int, int]]:
        """
        Spread substitution moments evenly over the rest of the game.

        Returns:
            List of (time, half) pairs, crossing into the second half when
            the offset runs past the end of the first
        """
        remaining_in_current = max(0, half_duration_seconds - current_elapsed_seconds)
        remaining_in_second = half_duration_seconds if current_half == 1 else 0
        total_remaining = remaining_in_current + remaining_in_second
        interval = total_remaining / (subs_needed + 1)

        times: List[Tuple[int, int]] = []
        accumulated = 0.0
        for _ in range(subs_needed):
            accumulated += interval
            if current_half == 1:
                if accumulated + current_elapsed_seconds <= half_duration_seconds:
                    times.append((int(math.floor(current_elapsed_seconds + accumulated)), 1))
                else:
                    times.append((int(math.floor(accumulated - remaining_in_current)), 2))
            else:
                times.append((int(math.floor(current_elapsed_seconds + accumulated)), 2))
        return times

    def recalculate_remaining_plan(
        self,
        players: List[Player],
        team_size: int,
        half_duration_seconds: int,
        current_elapsed_seconds: int,
        current_half: int,
        skipped_sub: Optional[SubstitutionEvent] = None,
    ) -> List[SubstitutionEvent]:
        """
        Rebuild the rest of the plan from the current roster.

        Used after a substitution is skipped so the rotation keeps balancing
        minutes instead of freezing.

        Args:
            players: Current roster (minutes_played is the fairness measure)
            team_size: Players on the pitch
            half_duration_seconds: Length of one half
            current_elapsed_seconds: Reconstructed elapsed seconds in the current half
            current_half: 1 or 2
            skipped_sub: The event being skipped

        Returns:
            New plan ordered by (half, time); shorter or empty when no
            rotation fits
        """
        bench = [p for p in players if not p.on_pitch and not p.is_injured]
        if not bench:
            return []

        pools = self._split_pools(players, bench)
        gk_swap = self._goalkeeper_swap(pools) if current_half == 1 else None

        if not pools.outfield_on_bench:
            return [gk_swap] if gk_swap else []

        remaining_in_current = max(0, half_duration_seconds - current_elapsed_seconds)
        remaining_in_second = half_duration_seconds if current_half == 1 else 0
        total_remaining = remaining_in_current + remaining_in_second
        subs_needed = min(len(pools.outfield_on_bench), total_remaining // self.min_sub_interval)
        if subs_needed <= 0:
            return []

        lookup = {p.id: p for p in pools.outfield}
        occupancy = self._initial_occupancy(players)
        plan: List[SubstitutionEvent] = []

        for time, half in self.spread_remaining_times(
            subs_needed, half_duration_seconds, current_elapsed_seconds, current_half
        ):
            on_pitch_sorted = sorted(
                (lookup[pid] for pid in occupancy if pid in lookup),
                key=lambda p: p.minutes_played, reverse=True,
            )
            bench_sorted = sorted(
                (p for p in pools.outfield if p.id not in occupancy and not p.is_injured),
                key=lambda p: p.minutes_played,
            )
            if not on_pitch_sorted or not bench_sorted:
                continue

            swap = self._first_eligible_swap(bench_sorted, on_pitch_sorted, occupancy, lookup)
            if swap is None:
                swap = _Swap(on_pitch_sorted[0], bench_sorted[0], None)
                _log.warning(
                    "No eligible swap for half %d at %ds, falling back to %s -> %s",
                    half, time, swap.player_out.label(), swap.player_in.label(),
                )

            plan.append(self._make_event(time, half, swap))
            self._apply_to_occupancy(occupancy, swap)

        if gk_swap is not None:
            plan.append(gk_swap)

        if skipped_sub is not None:
            _log.info(
                "Recalculated plan after skipping %s -> %s: %d events",
                skipped_sub.player_out.label(), skipped_sub.player_in.label(), len(plan),
            )
        return self._sorted_plan(plan)

    def _first_eligible_swap(self, bench_sorted: List[Player], on_pitch_sorted: List[Player],
                             occupancy: Occupancy, lookup: Dict[str, Player]) -> Optional[_Swap]:
        """Most-rested bench player first, longest-serving on-pitch player first."""
        for incoming in bench_sorted:
            for outgoing in on_pitch_sorted:
                if incoming.can_play(occupancy.get(outgoing.id)):
                    return _Swap(outgoing, incoming, None)
                chain = self._chain_swap(incoming, outgoing, occupancy, lookup)
                if chain is not None:
                    return _Swap(outgoing, incoming, chain)
        return None

    # ---------- Full-game plan ---------- #

    def create_sub_plan(
        self,
        players: List[Player],
        team_size: int,
        half_duration_seconds: int,
        rotation_speed: int = DEFAULT_ROTATION_SPEED,
        disable_position_swaps: bool = False,
        disable_batch_subs: bool = False,
    ) -> List[SubstitutionEvent]:
        """
        Build a whole-game plan from the starting lineup.

        Simulates playing time across both halves and, in evenly spaced
        windows, rotates the most-played on-pitch players out for the
        least-played bench players.

        Args:
            players: Starting roster (on-pitch players have a coordinate)
            team_size: Players on the pitch
            half_duration_seconds: Length of one half
            rotation_speed: 1 slow, 2 medium, 3 fast
            disable_position_swaps: Never plan chained position swaps
            disable_batch_subs: Only one substitution per window

        Returns:
            Plan ordered by (half, time)
        """
        if not players or team_size <= 0 or half_duration_seconds <= 0:
            return []

        bench = [p for p in players if not p.on_pitch and not p.is_injured]
        if not bench:
            return []

        pools = self._split_pools(players, bench)
        gk_swap = self._goalkeeper_swap(pools)
        if not pools.outfield_on_bench:
            return [gk_swap] if gk_swap else []

        bench_count = len(pools.outfield_on_bench)
        min_subs_needed = max(bench_count, math.ceil(len(pools.outfield) / 2))

        subs_at_once = 1
        if not disable_batch_subs and bench_count >= 2:
            subs_at_once = {1: 1, 2: min(2, bench_count), 3: min(3, bench_count)}.get(rotation_speed, 1)

        if rotation_speed == 1:
            windows_per_half = max(2, math.ceil(min_subs_needed / subs_at_once))
        elif rotation_speed == 3:
            windows_per_half = max(4, math.ceil(min_subs_needed * 1.5 / subs_at_once))
        else:
            windows_per_half = max(3, math.ceil(min_subs_needed * 1.2 / subs_at_once))
        windows_per_half = min(windows_per_half, half_duration_seconds // self.min_window_interval)

        window_times = []
        if windows_per_half > 0:
            spacing = half_duration_seconds / (windows_per_half + 1)
            window_times = [int(math.floor(i * spacing)) for i in range(1, windows_per_half + 1)]

        lookup = {p.id: p for p in pools.outfield}
        playing_time: Dict[str, int] = {p.id: 0 for p in pools.outfield}
        occupancy = self._initial_occupancy(players)
        plan: List[SubstitutionEvent] = []

        for half in (1, 2):
            last_event_time = 0
            for window_time in window_times:
                for pid in occupancy:
                    playing_time[pid] = playing_time.get(pid, 0) + (window_time - last_event_time)
                last_event_time = window_time

                on_pitch_sorted = sorted(
                    (lookup[pid] for pid in occupancy if pid in lookup),
                    key=lambda p: playing_time.get(p.id, 0), reverse=True,
                )
                bench_sorted = sorted(
                    (p for p in pools.outfield if p.id not in occupancy and not p.is_injured),
                    key=lambda p: playing_time.get(p.id, 0),
                )
                if not on_pitch_sorted or not bench_sorted:
                    continue

                used_out: Set[str] = set()
                used_in: Set[str] = set()
                for sub_idx in range(min(subs_at_once, len(bench_sorted), len(on_pitch_sorted))):
                    available_out = [p for p in on_pitch_sorted if p.id not in used_out]
                    available_in = [p for p in bench_sorted if p.id not in used_in]
                    if not available_out or not available_in:
                        break
                    # Later subs in a batch rotate extra players even without a time gap.
                    if sub_idx == 0 and (playing_time.get(available_out[0].id, 0)
                                         <= playing_time.get(available_in[0].id, 0)):
                        break

                    best = self._best_candidate(
                        on_pitch_sorted, bench_sorted, used_out, used_in, occupancy,
                        lookup, playing_time, allow_position_swaps=not disable_position_swaps,
                    )
                    if best is None:
                        break
                    plan.append(self._make_event(window_time, half, best))
                    used_out.add(best.player_out.id)
                    used_in.add(best.player_in.id)
                    self._apply_to_occupancy(occupancy, best)

            for pid in occupancy:
                playing_time[pid] = playing_time.get(pid, 0) + (half_duration_seconds - last_event_time)

        if gk_swap is not None:
            plan.append(gk_swap)
        return self._sorted_plan(plan)

    def _best_candidate(self, on_pitch_sorted: List[Player], bench_sorted: List[Player],
                        used_out: Set[str], used_in: Set[str], occupancy: Occupancy,
                        lookup: Dict[str, Player], playing_time: Dict[str, int],
                        allow_position_swaps: bool) -> Optional[_Swap]:
        """Score every pairing; position-valid swaps beat invalid ones, then bigger time gaps."""
        candidates: List[_Candidate] = []
        for incoming in (p for p in bench_sorted if p.id not in used_in):
            for outgoing in (p for p in on_pitch_sorted if p.id not in used_out):
                time_diff = playing_time.get(outgoing.id, 0) - playing_time.get(incoming.id, 0)
                if time_diff <= 0:
                    continue

                pair_valid = False
                if incoming.can_play(occupancy.get(outgoing.id)):
                    candidates.append(_Candidate(_Swap(outgoing, incoming, None), time_diff, True))
                    pair_valid = True

                if allow_position_swaps:
                    vacated = occupancy.get(outgoing.id)
                    for swap_id, swap_position in list(occupancy.items()):
                        if swap_id == outgoing.id or swap_id in used_out:
                            continue
                        swap_player = lookup.get(swap_id)
                        if swap_player is None or vacated is None or swap_position is None:
                            continue
                        if swap_player.can_play(vacated) and incoming.can_play(swap_position):
                            chain = PositionSwap(swap_player, swap_position, vacated)
                            candidates.append(
                                _Candidate(_Swap(outgoing, incoming, chain), time_diff, True)
                            )
                            pair_valid = True

                if not pair_valid:
                    candidates.append(
                        _Candidate(_Swap(outgoing, incoming, None), time_diff * 0.5, False)
                    )

        if not candidates:
            return None
        candidates.sort(key=lambda c: (not c.position_valid, -c.score))
        return candidates[0].swap

    # ---------- Forecast ---------- #

    @staticmethod
    def forecast_playing_time(players: List[Player], plan: List[SubstitutionEvent],
                              minutes_per_half: int) -> List[PlayerTimeForecast]:
        """
        Predict each player's minutes if the plan runs unchanged from kick-off.

        Returns:
            Forecasts sorted by predicted minutes, most first
        """
        half_seconds = minutes_per_half * 60
        total_game_minutes = minutes_per_half * 2
        time_on_pitch: Dict[str, int] = {p.id: 0 for p in players}
        current_on_pitch = {p.id for p in players if p.on_pitch}

        for half in (1, 2):
            last_time = 0
            for sub in sorted((s for s in plan if s.half == half), key=lambda s: s.time):
                for pid in current_on_pitch:
                    time_on_pitch[pid] = time_on_pitch.get(pid, 0) + (sub.time - last_time)
                current_on_pitch.discard(sub.player_out.id)
                current_on_pitch.add(sub.player_in.id)
                last_time = sub.time
            for pid in current_on_pitch:
                time_on_pitch[pid] = time_on_pitch.get(pid, 0) + (half_seconds - last_time)

        forecasts = []
        for player in players:
            seconds = time_on_pitch.get(player.id, 0)
            share = (seconds / 60 / total_game_minutes * 100) if total_game_minutes else 0
            forecasts.append(PlayerTimeForecast(
                player=player,
                predicted_minutes=_round_half_up(seconds / 60),
                percentage_of_game=_round_half_up(share),
                starts_on_pitch=player.on_pitch,
            ))
        forecasts.sort(key=lambda f: f.predicted_minutes, reverse=True)
        return forecasts
