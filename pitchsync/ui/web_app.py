"""
Web application module for PitchSync.

This module contains the Flask server providing the JSON API used by the
external editor and confirmation surfaces. It is an adapter only: every
scheduling decision is made by the services.
"""
import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from flask import Flask, jsonify, request

from ..models import PitchBoardState, Player, TimerState, apply_formation, normalize_team_size
from ..services import PollingSupervisor, ServiceFactory, SubstitutionOutcome, TimerService
from ..utils import DEFAULT_ROTATION_SPEED, fmt_mmss

_log = logging.getLogger("pitchsync.web")


class WebAppState:
    """
    State holder for the web application.

    Engine calls are marshalled onto the supervisor's event loop when it is
    running, so the monitor, executor and supervisor only ever execute on
    one thread.
    """

    def __init__(self, factory: Optional[ServiceFactory] = None):
        self.service_factory = factory or ServiceFactory()
        self.persistence_service = self.service_factory.get_persistence_service()
        self.plan_service = self.service_factory.get_plan_service()
        self.monitor = self.service_factory.get_trigger_monitor()
        self.synchronizer = self.service_factory.get_synchronizer()
        self.executor = self.service_factory.create_executor()
        self.supervisor: PollingSupervisor = self.service_factory.create_supervisor()

    def call(self, fn: Callable[..., Any], *args: Any) -> Any:
        if self.supervisor.running:
            return self.supervisor.call(fn, *args)
        return fn(*args)

    def run(self, coro_fn: Callable[[], Any]) -> Any:
        if self.supervisor.running:
            return self.supervisor.submit(coro_fn())
        return asyncio.run(coro_fn())

    def load_timer_service(self) -> TimerService:
        return self.service_factory.create_timer_service()

    def save_timer(self, timer_service: TimerService) -> None:
        self.persistence_service.save_timer_state(timer_service.timer_state)


def _error(message: str, status: int):
    return jsonify({"success": False, "error": message}), status


def _json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off")


def _flag(data: Dict[str, Any], name: str, default: Optional[bool] = None) -> Optional[bool]:
    """
    Read a boolean field from a request body.

    Accepts JSON booleans, 0/1 and the usual true/false strings.

    Raises:
        ValueError: If the value is present but not a recognisable boolean
    """
    value = data.get(name)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
    raise ValueError(f"{name} must be true or false")


def _int_field(data: Dict[str, Any], name: str, default: int) -> int:
    value = data.get(name)
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValueError(f"{name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an integer") from None


def create_app(factory: Optional[ServiceFactory] = None, start_supervisor: bool = True) -> Flask:
    """
    Create and configure the Flask application with API endpoints.

    Args:
        factory: Service factory to build the engine from
        start_supervisor: Run the polling loops on a background thread

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)
    app_state = WebAppState(factory)
    app.config["PITCHSYNC_STATE"] = app_state
    if start_supervisor:
        app_state.supervisor.start_in_thread()

    # ==================== State ==================== #

    def _build_state() -> Dict[str, Any]:
        timer_state = app_state.persistence_service.load_timer_state()
        pitch_state = app_state.persistence_service.load_pitch_state()
        monitor = app_state.monitor
        timer = None
        if timer_state is not None:
            timer = TimerService(timer_state).get_timer_summary()
            timer["elapsed_display"] = fmt_mmss(timer["elapsed_seconds"])
        return {
            "success": True,
            "timer": timer,
            "pitch": pitch_state.to_dict() if pitch_state else None,
            "pending_prompt": monitor.pending_prompt.to_dict() if monitor.pending_prompt else None,
            "finished": monitor.finished_summary.to_dict() if monitor.finished_summary else None,
            "sync": app_state.synchronizer.get_status(),
            "polling": app_state.supervisor.state.value,
            "editor_open": app_state.persistence_service.is_editor_open(),
        }

    @app.route("/api/state", methods=["GET"])
    def get_state():
        """Get the stored session, pending prompt and sync status."""
        try:
            return jsonify(app_state.call(_build_state))
        except Exception as e:
            _log.exception("State request failed")
            return _error(str(e), 500)

    # ==================== Session ==================== #

    @app.route("/api/session", methods=["POST"])
    def start_session():
        """Write a fresh timer and pitch record for a team."""
        data = _json_body()
        team_id = str(data.get("team_id") or "").strip()
        if not team_id:
            return _error("team_id is required", 400)
        try:
            players: List[Player] = [Player.from_dict(p) for p in data.get("players") or []]
        except (KeyError, TypeError, ValueError) as e:
            return _error(f"Invalid player: {e}", 400)

        team_size = normalize_team_size(data.get("team_size"))
        timer_service = TimerService(TimerState())
        try:
            formation_index = _int_field(data, "selected_formation", 0)
            timer_service.configure(
                minutes_per_half=data.get("minutes_per_half"),
                team_id=team_id,
                team_name=data.get("team_name"),
                sound_enabled=_flag(data, "sound_enabled"),
            )
        except (TypeError, ValueError) as e:
            return _error(str(e), 400)

        if players and not any(p.on_pitch for p in players):
            apply_formation(players, team_size, formation_index)

        pitch_state = PitchBoardState(
            team_id=team_id,
            players=players,
            team_size=team_size,
            selected_formation=formation_index,
            linked_event_id=data.get("linked_event_id"),
        )

        def _write() -> None:
            app_state.monitor.resolve_prompt()
            app_state.monitor.dismiss_finished()
            app_state.save_timer(timer_service)
            app_state.persistence_service.save_pitch_state(pitch_state)

        try:
            app_state.call(_write)
        except Exception as e:
            _log.exception("Failed to start session")
            return _error(str(e), 500)
        return jsonify({"success": True, "pitch": pitch_state.to_dict()}), 201

    @app.route("/api/session", methods=["DELETE"])
    def end_session():
        """Remove the stored session records."""
        def _clear() -> None:
            app_state.persistence_service.clear_timer_state()
            app_state.persistence_service.clear_pitch_state()
            app_state.monitor.resolve_prompt()
            app_state.monitor.dismiss_finished()

        try:
            app_state.call(_clear)
        except Exception as e:
            return _error(str(e), 500)
        return jsonify({"success": True, "message": "Session cleared"})

    # ==================== Timer ==================== #

    def _timer_action(action: Callable[[TimerService], None], message: str):
        def _run() -> Optional[Dict[str, Any]]:
            if app_state.persistence_service.load_timer_state() is None:
                return None
            timer_service = app_state.load_timer_service()
            action(timer_service)
            app_state.save_timer(timer_service)
            return timer_service.get_timer_summary()

        try:
            summary = app_state.call(_run)
        except ValueError as e:
            return _error(str(e), 400)
        except Exception as e:
            _log.exception("Timer action failed")
            return _error(str(e), 500)
        if summary is None:
            return _error("No active session", 404)
        return jsonify({"success": True, "message": message, "timer": summary})

    @app.route("/api/timer/start", methods=["POST"])
    def start_timer():
        return _timer_action(lambda t: t.start(), "Game timer started")

    @app.route("/api/timer/pause", methods=["POST"])
    def pause_timer():
        return _timer_action(lambda t: t.pause(), "Game timer paused")

    @app.route("/api/timer/halftime", methods=["POST"])
    def start_second_half():
        try:
            auto_start = _flag(_json_body(), "auto_start", True)
        except ValueError as e:
            return _error(str(e), 400)
        return _timer_action(lambda t: t.start_second_half(auto_start), "Second half started")

    @app.route("/api/timer/reset", methods=["POST"])
    def reset_timer():
        return _timer_action(lambda t: t.reset(), "Timer reset")

    @app.route("/api/timer/configure", methods=["POST"])
    def configure_timer():
        data = _json_body()
        try:
            sound_enabled = _flag(data, "sound_enabled")
        except ValueError as e:
            return _error(str(e), 400)
        return _timer_action(
            lambda t: t.configure(
                minutes_per_half=data.get("minutes_per_half"),
                team_name=data.get("team_name"),
                sound_enabled=sound_enabled,
            ),
            "Timer configured",
        )

    # ==================== Plan ==================== #

    @app.route("/api/plan", methods=["POST"])
    def generate_plan():
        """Build a whole-game plan from the stored lineup and start following it."""
        data = _json_body()
        try:
            rotation_speed = _int_field(data, "rotation_speed", DEFAULT_ROTATION_SPEED)
        except ValueError:
            return _error("rotation_speed must be 1, 2 or 3", 400)
        if rotation_speed not in (1, 2, 3):
            return _error("rotation_speed must be 1, 2 or 3", 400)
        try:
            disable_swaps = _flag(data, "disable_position_swaps", False)
            disable_batch = _flag(data, "disable_batch_subs", False)
        except ValueError as e:
            return _error(str(e), 400)

        def _build() -> Optional[Dict[str, Any]]:
            pitch_state = app_state.persistence_service.load_pitch_state()
            timer_state = app_state.persistence_service.load_timer_state()
            if pitch_state is None or timer_state is None:
                return None
            plan = app_state.plan_service.create_sub_plan(
                pitch_state.players,
                pitch_state.team_size_number,
                timer_state.half_duration_seconds,
                rotation_speed=rotation_speed,
                disable_position_swaps=disable_swaps,
                disable_batch_subs=disable_batch,
            )
            pitch_state.auto_sub_plan = plan
            pitch_state.auto_sub_active = bool(plan)
            pitch_state.auto_sub_paused = False
            app_state.persistence_service.save_pitch_state(pitch_state)
            forecast = app_state.plan_service.forecast_playing_time(
                pitch_state.players, plan, timer_state.minutes_per_half
            )
            return {
                "success": True,
                "plan": [sub.to_dict() for sub in plan],
                "forecast": [f.to_dict() for f in forecast],
            }

        try:
            result = app_state.call(_build)
        except Exception as e:
            _log.exception("Plan generation failed")
            return _error(str(e), 500)
        if result is None:
            return _error("No active session", 404)
        return jsonify(result)

    @app.route("/api/plan/forecast", methods=["GET"])
    def get_forecast():
        pitch_state = app_state.persistence_service.load_pitch_state()
        timer_state = app_state.persistence_service.load_timer_state()
        if pitch_state is None or timer_state is None:
            return _error("No active session", 404)
        forecast = app_state.plan_service.forecast_playing_time(
            pitch_state.players, pitch_state.auto_sub_plan, timer_state.minutes_per_half
        )
        return jsonify({"success": True, "forecast": [f.to_dict() for f in forecast]})

    def _plan_flags(active: Optional[bool] = None, paused: Optional[bool] = None,
                    clear: bool = False) -> bool:
        pitch_state = app_state.persistence_service.load_pitch_state()
        if pitch_state is None:
            return False
        if clear:
            pitch_state.auto_sub_plan = []
        if active is not None:
            pitch_state.auto_sub_active = active
        if paused is not None:
            pitch_state.auto_sub_paused = paused
        app_state.persistence_service.save_pitch_state(pitch_state)
        return True

    @app.route("/api/plan/pause", methods=["POST"])
    def pause_plan():
        try:
            paused = _flag(_json_body(), "paused", True)
        except ValueError as e:
            return _error(str(e), 400)
        if not app_state.call(_plan_flags, None, paused):
            return _error("No active session", 404)
        return jsonify({"success": True, "paused": paused})

    @app.route("/api/plan", methods=["DELETE"])
    def cancel_plan():
        if not app_state.call(_plan_flags, False, False, True):
            return _error("No active session", 404)
        return jsonify({"success": True, "message": "Auto-sub plan cancelled"})

    # ==================== Substitutions ==================== #

    @app.route("/api/subs/pending", methods=["GET"])
    def get_pending():
        prompt = app_state.monitor.pending_prompt
        return jsonify({"success": True, "prompt": prompt.to_dict() if prompt else None})

    @app.route("/api/monitor/poll", methods=["POST"])
    def poll_monitor():
        """Run one monitor tick now instead of waiting for the next poll."""
        try:
            events = app_state.run(app_state.supervisor.poll_once)
        except Exception as e:
            _log.exception("Monitor poll failed")
            return _error(str(e), 500)
        return jsonify({
            "success": True,
            "prompt": events.prompt.to_dict() if events.prompt else None,
            "finished": events.finished.to_dict() if events.finished else None,
        })

    def _resolve_prompt(resolver: Callable[[List[Any]], Any]):
        def _run():
            prompt = app_state.monitor.pending_prompt
            if prompt is None:
                return None
            result = resolver(prompt.batch)
            app_state.monitor.resolve_prompt()
            return result

        return app_state.call(_run)

    @app.route("/api/subs/confirm", methods=["POST"])
    def confirm_subs():
        """Confirm every substitution of the pending prompt."""
        try:
            outcomes = _resolve_prompt(app_state.executor.confirm_batch)
        except Exception as e:
            _log.exception("Confirming substitution failed")
            return _error(str(e), 500)
        if outcomes is None:
            return _error("No pending substitution", 409)
        if all(o == SubstitutionOutcome.NO_SESSION for o in outcomes):
            return _error("No players found for this substitution", 404)
        return jsonify({"success": True, "outcomes": [o.value for o in outcomes]})

    @app.route("/api/subs/skip", methods=["POST"])
    def skip_subs():
        """Skip the pending prompt and re-balance the remaining plan."""
        try:
            outcome = _resolve_prompt(app_state.executor.skip_batch)
        except Exception as e:
            _log.exception("Skipping substitution failed")
            return _error(str(e), 500)
        if outcome is None:
            return _error("No pending substitution", 409)
        if outcome == SubstitutionOutcome.NO_SESSION:
            return _error("No active session", 404)
        return jsonify({"success": True, "outcome": outcome.value})

    @app.route("/api/game/dismiss-finished", methods=["POST"])
    def dismiss_finished():
        app_state.call(app_state.monitor.dismiss_finished)
        return jsonify({"success": True})

    # ==================== Host signals ==================== #

    @app.route("/api/editor", methods=["POST"])
    def set_editor_open():
        try:
            is_open = _flag(_json_body(), "open", False)
        except ValueError as e:
            return _error(str(e), 400)
        try:
            app_state.call(app_state.persistence_service.set_editor_open, is_open)
        except Exception as e:
            return _error(str(e), 500)
        return jsonify({"success": True, "editor_open": is_open})

    @app.route("/api/visibility", methods=["POST"])
    def set_visibility():
        try:
            visible = _flag(_json_body(), "visible", True)
        except ValueError as e:
            return _error(str(e), 400)
        try:
            app_state.run(lambda: app_state.supervisor.on_visibility_change(visible))
        except Exception as e:
            _log.exception("Visibility change failed")
            return _error(str(e), 500)
        return jsonify({"success": True, "polling": app_state.supervisor.state.value})

    @app.route("/api/sync", methods=["POST"])
    def sync_now():
        try:
            app_state.run(app_state.supervisor.sync_once)
        except Exception as e:
            return _error(str(e), 500)
        return jsonify({"success": True, "sync": app_state.synchronizer.get_status()})

    return app


def run_web_app(host: str = "127.0.0.1", port: int = 7122) -> None:
    """
    Run the web application.

    Args:
        host: Host address to bind to (default: localhost only)
        port: Port number to listen on
    """
    app = create_app()
    try:
        app.run(host=host, port=port, debug=False)
    finally:
        app.config["PITCHSYNC_STATE"].supervisor.shutdown()
