"""SeaBattle game with per-match telemetry hooks."""

from __future__ import annotations

import time
from typing import Any

from seabattle.engine.board import AttackResult
from seabattle.engine.game import ActionResult, Game, GamePhase, Player
from seabattle.telemetry import get_logger, get_tracer, record_game_metric


class InstrumentedGame(Game):
    """Wraps Game with a span per match plus shot and completion metrics."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self._logger = get_logger("seabattle.engine")
        self._tracer = get_tracer("seabattle.engine")
        self._match_span_cm: Any = None
        self._match_span: Any = None
        self._match_start_time: float | None = None
        self._match_id = 0
        self._shots = 0
        super().__init__(*args, **kwargs)

    def reset(self) -> None:
        self._start_match_span()
        with self._tracer.start_as_current_span("seabattle.engine.reset") as span:
            super().reset()
            span.set_attribute("cpu_ships", len(self.cpu_board.ships))
            span.set_attribute("grid_size", self.config.grid_size)
            record_game_metric("seabattle_game_setup_total", 1, {"grid_size": self.config.grid_size})

    def player_attack(self, x: int, y: int) -> ActionResult:
        with self._tracer.start_as_current_span("seabattle.engine.player_attack") as span:
            span.set_attribute("match.id", self._match_id)
            span.set_attribute("x", x)
            span.set_attribute("y", y)
            previous_cpu_attack = self.last_cpu_attack

            outcome = super().player_attack(x, y)
            if not outcome.ok:
                if self.phase is GamePhase.PLAY:
                    record_game_metric(
                        "seabattle_invalid_attacks_total",
                        1,
                        {"player": Player.HUMAN.value, "reason": outcome.message},
                    )
                span.set_attribute("rejected", True)
                self._logger.info("player_attack rejected at (%d,%d): %s", x, y, outcome.message)
                return outcome

            self._record_shot(Player.HUMAN, outcome.result)
            if self.last_cpu_attack is not None and self.last_cpu_attack is not previous_cpu_attack:
                self._record_shot(Player.CPU, self.last_cpu_attack[1])

            span.set_attribute("result", outcome.result.value if outcome.result else "none")
            self._logger.info(
                "player_attack coord=(%d,%d) outcome=%s",
                x,
                y,
                outcome.result.value if outcome.result else "none",
            )

            finished = self.phase is GamePhase.FINISHED and self.winner is not None
            if finished:
                span.set_attribute("winner", self.winner.value)

        # The match span is the parent of player_attack, so it may only end
        # once that span has been detached.
        if finished:
            self._finish_match()
        return outcome

    def _record_shot(self, player: Player, result: AttackResult | None) -> None:
        self._shots += 1
        record_game_metric("seabattle_shots_total", 1, {"player": player.value})
        if result is not None:
            record_game_metric(
                "seabattle_shots_by_result_total",
                1,
                {"player": player.value, "result": result.value},
            )

    def _start_match_span(self) -> None:
        self._close_match_span()
        self._match_start_time = time.perf_counter()
        self._match_id += 1
        self._shots = 0
        self._match_span_cm = self._tracer.start_as_current_span("seabattle.engine.match")
        self._match_span = self._match_span_cm.__enter__()
        self._match_span.set_attribute("match.id", self._match_id)

    def _finish_match(self) -> None:
        duration = (time.perf_counter() - self._match_start_time) if self._match_start_time else 0.0
        winner = self.winner.value if self.winner else "unknown"

        record_game_metric("seabattle_game_completed_total", 1, {"winner": winner})
        record_game_metric("seabattle_game_duration_seconds", duration, {"winner": winner})

        with self._tracer.start_as_current_span("seabattle.engine.match_complete") as span:
            span.set_attribute("match.id", self._match_id)
            span.set_attribute("winner", winner)
            span.set_attribute("shots", self._shots)
            span.set_attribute("duration_ms", duration * 1000)

        if self._match_span is not None:
            self._match_span.set_attribute("winner", winner)
            self._match_span.set_attribute("shots", self._shots)

        self._logger.info("Match finished. Winner=%s shots=%d duration_s=%.3f", winner, self._shots, duration)
        self._close_match_span()

    def _close_match_span(self) -> None:
        if self._match_span_cm is not None:
            self._match_span_cm.__exit__(None, None, None)
            self._match_span_cm = None
            self._match_span = None
