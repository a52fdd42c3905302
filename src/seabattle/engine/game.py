"""Human-versus-CPU SeaBattle game controller."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from seabattle.telemetry import get_meter, get_tracer

from .ai import HuntTargetAI
from .board import AttackResult, Board, CellState, FleetPlacementError
from .config import GameConfig
from .ship import Coordinate, Orientation, Ship, ShipSpec

logger = logging.getLogger(__name__)
tracer = get_tracer("seabattle.engine.game")
meter = get_meter("seabattle.engine.game")

MOVE_COUNTER = meter.create_counter(
    "seabattle_engine_moves",
    unit="1",
    description="Number of attacks resolved by the game",
)

SETUP_COMPLETE = "Setup complete. Click Start Game."
YOUR_TURN = "Your turn: attack the target board."


class GamePhase(Enum):
    """High-level lifecycle of a match."""

    SETUP = "setup"
    PLAY = "play"
    FINISHED = "finished"


class Player(Enum):
    """The two sides of a match."""

    HUMAN = "human"
    CPU = "cpu"

    def opponent(self) -> Player:
        return Player.CPU if self is Player.HUMAN else Player.HUMAN


@dataclass(frozen=True)
class ActionResult:
    """Outcome of a call into the game API."""

    ok: bool
    message: str
    result: AttackResult | None = None
    winner: Player | None = None


@dataclass(frozen=True)
class ShipView:
    name: str
    size: int
    hits: int
    positions: tuple[Coordinate, ...]
    sunk: bool


@dataclass(frozen=True)
class BoardSnapshot:
    """Immutable view of a board for renderers."""

    grid_size: int
    cells: tuple[tuple[CellState, ...], ...]
    ships: tuple[ShipView, ...]

    @classmethod
    def of(cls, board: Board) -> BoardSnapshot:
        return cls(
            grid_size=board.grid_size,
            cells=tuple(tuple(row) for row in board.grid),
            ships=tuple(
                ShipView(ship.name, ship.size, ship.hits, ship.positions, ship.is_sunk())
                for ship in board.ships
            ),
        )

    def cell(self, x: int, y: int) -> CellState:
        return self.cells[y][x]


@dataclass(frozen=True)
class GameState:
    """Immutable snapshot of the current match."""

    phase: GamePhase
    turn: Player
    orientation: Orientation
    setup_complete: bool
    current_ship: ShipSpec | None
    player_board: BoardSnapshot
    cpu_board: BoardSnapshot
    winner: Player | None


StateListener = Callable[[GameState], None]
StatusListener = Callable[[str], None]


class Game:
    """Coordinates setup, turns and win detection between the human and the CPU.

    Renderers register ``on_state_change``/``on_status`` callbacks and drive
    the match through the public methods. Every observable step emits one
    status string followed by one state snapshot, synchronously.
    """

    def __init__(
        self,
        config: GameConfig | None = None,
        rng_seed: int | None = None,
        on_state_change: StateListener | None = None,
        on_status: StatusListener | None = None,
    ) -> None:
        self.config = config or GameConfig()
        self._rng = random.Random(rng_seed)
        self._state_listeners: list[StateListener] = []
        self._status_listeners: list[StatusListener] = []
        self.subscribe(on_state_change=on_state_change, on_status=on_status)
        self.reset()

    def subscribe(
        self,
        on_state_change: StateListener | None = None,
        on_status: StatusListener | None = None,
    ) -> None:
        if on_state_change is not None:
            self._state_listeners.append(on_state_change)
        if on_status is not None:
            self._status_listeners.append(on_status)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Start a fresh match in the setup phase."""
        with tracer.start_as_current_span("game.reset"):
            grid_size = self.config.grid_size
            self.phase = GamePhase.SETUP
            self.turn = Player.HUMAN
            self.orientation = Orientation.HORIZONTAL
            self.winner: Player | None = None
            self.last_cpu_attack: tuple[Coordinate, AttackResult] | None = None

            self.player_board = Board(grid_size, owner=Player.HUMAN.value)
            self.cpu_board = Board(grid_size, owner=Player.CPU.value)
            self.cpu_board.randomize_ships(self.config.fleet, self._rng)

            self.player_ships = [Ship.from_spec(spec) for spec in self.config.fleet]
            self.ship_index = 0

            self.ai = HuntTargetAI(grid_size, rng=self._rng)
            logger.info("game_reset", extra={"grid_size": grid_size, "ships": len(self.player_ships)})
            self._notify(self._setup_prompt())

    def get_state(self) -> GameState:
        pending = self.current_ship_to_place() if self.phase is GamePhase.SETUP else None
        return GameState(
            phase=self.phase,
            turn=self.turn,
            orientation=self.orientation,
            setup_complete=self.is_setup_complete(),
            current_ship=ShipSpec(pending.name, pending.size) if pending else None,
            player_board=BoardSnapshot.of(self.player_board),
            cpu_board=BoardSnapshot.of(self.cpu_board),
            winner=self.winner,
        )

    def current_ship_to_place(self) -> Ship | None:
        if self.ship_index < len(self.player_ships):
            return self.player_ships[self.ship_index]
        return None

    def is_setup_complete(self) -> bool:
        return self.ship_index >= len(self.player_ships)

    def toggle_orientation(self) -> ActionResult:
        if self.phase is not GamePhase.SETUP:
            return ActionResult(False, "Not in setup.")
        self.orientation = self.orientation.toggled()
        self._notify(self._setup_prompt())
        return ActionResult(True, f"Orientation: {self.orientation.value}.")

    def try_place_player_ship(self, x: int, y: int) -> ActionResult:
        """Place the next pending human ship with its anchor at ``(x, y)``."""
        if self.phase is not GamePhase.SETUP:
            return ActionResult(False, "Not in setup.")
        ship = self.current_ship_to_place()
        if ship is None:
            return ActionResult(False, "All ships placed.")
        if not self.player_board.place_ship(ship, x, y, self.orientation):
            logger.info(
                "player_placement_rejected",
                extra={"ship_name": ship.name, "x": x, "y": y, "orientation": self.orientation.value},
            )
            return ActionResult(False, "Can't place ship there.")

        self.ship_index += 1
        self._notify(self._setup_prompt())
        return ActionResult(True, "Ship placed.")

    def auto_place_player_ships(self) -> ActionResult:
        """Randomly place every human ship that has not been placed yet."""
        if self.phase is not GamePhase.SETUP:
            return ActionResult(False, "Not in setup.")
        if self.is_setup_complete():
            return ActionResult(False, "All ships placed.")
        remaining = self.player_ships[self.ship_index :]
        try:
            self.player_board.place_fleet_randomly(remaining, self._rng)
        except FleetPlacementError:
            logger.info("player_auto_placement_failed", extra={"ships": len(remaining)})
            return ActionResult(False, "No room left for the remaining ships.")
        self.ship_index = len(self.player_ships)
        logger.info("player_auto_placement_complete", extra={"ships": len(self.player_ships)})
        self._notify(SETUP_COMPLETE)
        return ActionResult(True, "Ships placed.")

    def start_game(self) -> ActionResult:
        if self.phase is not GamePhase.SETUP:
            return ActionResult(False, "Game already started.")
        if not self.is_setup_complete():
            return ActionResult(False, "Place all ships first.")

        self.phase = GamePhase.PLAY
        self.turn = Player.HUMAN
        logger.info("game_started", extra={"phase": self.phase.value})
        self._notify(YOUR_TURN)
        return ActionResult(True, "Game started.")

    def player_attack(self, x: int, y: int) -> ActionResult:
        """Fire at the CPU board, then let the CPU answer before returning."""
        with tracer.start_as_current_span("game.player_attack") as span:
            span.set_attribute("x", x)
            span.set_attribute("y", y)
            if self.phase is not GamePhase.PLAY:
                return ActionResult(False, "Not in play phase.")
            if self.turn is not Player.HUMAN:
                return ActionResult(False, "Not your turn.")

            result = self.cpu_board.receive_attack(x, y)
            if result is AttackResult.INVALID:
                return ActionResult(False, "Pick a new square.")

            MOVE_COUNTER.add(1, attributes={"result": result.value, "player": Player.HUMAN.value})
            span.set_attribute("result", result.value)
            message = "You SUNK a ship!" if result is AttackResult.SUNK else f"You {result.value.upper()}!"
            self._notify(message)

            if self.cpu_board.all_ships_sunk():
                self._finish(Player.HUMAN)
                span.set_attribute("game.winner", Player.HUMAN.value)
                return ActionResult(True, "You win!", result, Player.HUMAN)

            self.turn = Player.CPU
            self._cpu_move()
            return ActionResult(True, message, result, self.winner)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _cpu_move(self) -> None:
        if self.phase is not GamePhase.PLAY:
            return

        grid_size = self.config.grid_size
        for _ in range(grid_size * grid_size):
            attack = self.ai.get_attack()
            result = self.player_board.receive_attack(attack.x, attack.y)
            if result is not AttackResult.INVALID:
                self.ai.record_attack_result(attack.x, attack.y, result)
                break
            logger.warning("cpu_attack_rejected", extra={"x": attack.x, "y": attack.y})
        else:
            raise RuntimeError("CPU could not find a square to attack.")

        self.last_cpu_attack = (attack, result)
        MOVE_COUNTER.add(1, attributes={"result": result.value, "player": Player.CPU.value})
        if result is AttackResult.SUNK:
            self._notify("CPU SUNK one of your ships!")
        else:
            self._notify(f"CPU {result.value.upper()} at ({attack.x},{attack.y})")

        if self.player_board.all_ships_sunk():
            self._finish(Player.CPU)
            return

        self.turn = Player.HUMAN
        self._notify(YOUR_TURN)

    def _finish(self, winner: Player) -> None:
        self.phase = GamePhase.FINISHED
        self.winner = winner
        logger.info("game_finished", extra={"winner": winner.value})
        self._notify("You win!" if winner is Player.HUMAN else "CPU wins!")

    def _notify(self, status: str) -> None:
        for listener in list(self._status_listeners):
            listener(status)
        if self._state_listeners:
            state = self.get_state()
            for state_listener in list(self._state_listeners):
                state_listener(state)

    def _setup_prompt(self) -> str:
        ship = self.current_ship_to_place()
        if ship is None:
            return SETUP_COMPLETE
        return f"Place your {ship.name} ({ship.size}) - {self.orientation.value}"
