"""Single-player board management for the SeaBattle engine."""

from __future__ import annotations

import logging
import random
from enum import Enum
from typing import Iterable, cast

from seabattle.telemetry import get_meter, get_tracer

from .config import DEFAULT_GRID_SIZE
from .ship import Coordinate, Orientation, Ship, ShipSpec, footprint

logger = logging.getLogger(__name__)
tracer = get_tracer("seabattle.engine.board")
meter = get_meter("seabattle.engine.board")

PLACEMENT_COUNTER = meter.create_counter(
    "seabattle_engine_ship_placements",
    unit="1",
    description="Number of attempted ship placements",
)

ATTACK_COUNTER = meter.create_counter(
    "seabattle_engine_attacks",
    unit="1",
    description="Attacks received by a board",
)


class CellState(Enum):
    """State of a single grid cell."""

    EMPTY = "empty"
    SHIP = "ship"
    HIT = "hit"
    MISS = "miss"
    SUNK = "sunk"


class AttackResult(Enum):
    """Outcome of an attack against a board."""

    HIT = "hit"
    MISS = "miss"
    SUNK = "sunk"
    INVALID = "invalid"


TERMINAL_STATES = frozenset({CellState.HIT, CellState.MISS, CellState.SUNK})

MAX_LAYOUT_ATTEMPTS = 1000


class FleetPlacementError(ValueError):
    """Raised when a fleet cannot be laid out on the board at all."""


class Board:
    """A square grid of cell states plus the ships placed on it."""

    def __init__(self, grid_size: int = DEFAULT_GRID_SIZE, owner: str = "unknown") -> None:
        self.grid_size = grid_size
        self.owner = owner
        self.ships: list[Ship] = []
        self.grid: list[list[CellState]] = self._create_grid()

    def _create_grid(self) -> list[list[CellState]]:
        return [[CellState.EMPTY for _ in range(self.grid_size)] for _ in range(self.grid_size)]

    def reset(self) -> None:
        """Remove every ship and attack from the board."""
        self.grid = self._create_grid()
        self.ships = []

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.grid_size and 0 <= y < self.grid_size

    def get_cell_state(self, x: int, y: int) -> CellState:
        return self.grid[y][x]

    def ship_positions(
        self, ship: Ship, x: int, y: int, orientation: Orientation
    ) -> list[Coordinate] | None:
        """Return the footprint for ``ship`` anchored at ``(x, y)``, or None if it leaves the grid."""
        coords = footprint(Coordinate(x, y), ship.size, orientation)
        if not all(self.in_bounds(coord.x, coord.y) for coord in coords):
            return None
        return coords

    def can_place_ship(self, ship: Ship, x: int, y: int, orientation: Orientation) -> bool:
        """Determine whether a ship can be placed without leaving the grid or overlapping."""
        coords = self.ship_positions(ship, x, y, orientation)
        if coords is None:
            return False
        return all(self.grid[coord.y][coord.x] is CellState.EMPTY for coord in coords)

    def place_ship(self, ship: Ship, x: int, y: int, orientation: Orientation) -> bool:
        """Add ship to the board if placement is valid."""
        with tracer.start_as_current_span("board.place_ship") as span:
            span.set_attribute("ship.name", ship.name)
            span.set_attribute("ship.size", ship.size)
            span.set_attribute("anchor.x", x)
            span.set_attribute("anchor.y", y)
            span.set_attribute("board.owner", self.owner)
            fields = {
                "owner": self.owner,
                "ship_name": ship.name,
                "orientation": orientation.value,
                "x": x,
                "y": y,
            }
            if ship.is_placed or not self.can_place_ship(ship, x, y, orientation):
                PLACEMENT_COUNTER.add(1, attributes={"result": "failed", "owner": self.owner})
                logger.debug("ship_placement_failed", extra=fields)
                return False

            coords = footprint(Coordinate(x, y), ship.size, orientation)
            for coord in coords:
                self.grid[coord.y][coord.x] = CellState.SHIP
            ship.set_positions(coords)
            self.ships.append(ship)
            PLACEMENT_COUNTER.add(1, attributes={"result": "success", "owner": self.owner})
            logger.info("ship_placed", extra=fields)
            return True

    def receive_attack(self, x: int, y: int) -> AttackResult:
        """Register an attack on this board and return its outcome."""
        with tracer.start_as_current_span("board.receive_attack") as span:
            span.set_attribute("attack.x", x)
            span.set_attribute("attack.y", y)
            span.set_attribute("board.owner", self.owner)
            result = self._resolve_attack(x, y)
            span.set_attribute("attack.outcome", result.value)
            ATTACK_COUNTER.add(1, attributes={"outcome": result.value, "owner": self.owner})
            return result

    def _resolve_attack(self, x: int, y: int) -> AttackResult:
        if not self.in_bounds(x, y):
            logger.info("attack_out_of_bounds", extra={"x": x, "y": y, "owner": self.owner})
            return AttackResult.INVALID

        cell = self.grid[y][x]
        if cell in TERMINAL_STATES:
            logger.info(
                "attack_duplicate",
                extra={"x": x, "y": y, "owner": self.owner, "cell": cell.value},
            )
            return AttackResult.INVALID

        if cell is CellState.SHIP:
            self.grid[y][x] = CellState.HIT
            # Every ship cell is backed by exactly one placed ship.
            ship = cast(Ship, self.get_ship_at(x, y))
            ship.hit()
            if ship.is_sunk():
                self._mark_ship_sunk(ship)
                logger.info(
                    "ship_sunk",
                    extra={"x": x, "y": y, "ship_name": ship.name, "owner": self.owner},
                )
                return AttackResult.SUNK
            logger.info(
                "attack_hit",
                extra={"x": x, "y": y, "ship_name": ship.name, "owner": self.owner},
            )
            return AttackResult.HIT

        self.grid[y][x] = CellState.MISS
        logger.info("attack_miss", extra={"x": x, "y": y, "owner": self.owner})
        return AttackResult.MISS

    def _mark_ship_sunk(self, ship: Ship) -> None:
        for coord in ship.positions:
            self.grid[coord.y][coord.x] = CellState.SUNK

    def get_ship_at(self, x: int, y: int) -> Ship | None:
        coord = Coordinate(x, y)
        for ship in self.ships:
            if ship.occupies(coord):
                return ship
        return None

    def all_ships_sunk(self) -> bool:
        """Check whether the board has a fleet and all of it is destroyed."""
        return bool(self.ships) and all(ship.is_sunk() for ship in self.ships)

    def cells_in_state(self, state: CellState) -> list[Coordinate]:
        return [
            Coordinate(x, y)
            for y in range(self.grid_size)
            for x in range(self.grid_size)
            if self.grid[y][x] is state
        ]

    def has_room_for(self, ship: Ship) -> bool:
        """Return True if at least one legal placement exists for ``ship``."""
        return any(
            self.can_place_ship(ship, x, y, orientation)
            for orientation in Orientation
            for y in range(self.grid_size)
            for x in range(self.grid_size)
        )

    def place_randomly(self, ship: Ship, rng: random.Random) -> int:
        """Rejection-sample anchors until ``ship`` fits; return the attempt count."""
        if not self.has_room_for(ship):
            raise FleetPlacementError(f"No room left on the {self.owner} board for {ship.name}.")
        orientations = list(Orientation)
        attempts = 0
        placed = False
        while not placed:
            orientation = rng.choice(orientations)
            x = rng.randrange(self.grid_size)
            y = rng.randrange(self.grid_size)
            placed = self.place_ship(ship, x, y, orientation)
            attempts += 1
        return attempts

    def _lift_ship(self, ship: Ship) -> None:
        for coord in ship.positions:
            self.grid[coord.y][coord.x] = CellState.EMPTY
        self.ships.remove(ship)
        ship.clear_positions()

    def place_fleet_randomly(self, ships: list[Ship], rng: random.Random) -> int:
        """Randomly place every ship in ``ships`` or none of them.

        A layout that paints itself into a corner is lifted off the board and
        restarted, up to ``MAX_LAYOUT_ATTEMPTS`` times. Returns the number of
        layouts tried.
        """
        for attempt in range(1, MAX_LAYOUT_ATTEMPTS + 1):
            placed: list[Ship] = []
            try:
                for ship in ships:
                    self.place_randomly(ship, rng)
                    placed.append(ship)
            except FleetPlacementError:
                for ship in reversed(placed):
                    self._lift_ship(ship)
                logger.debug("fleet_layout_restarted", extra={"attempt": attempt, "owner": self.owner})
                continue
            return attempt
        raise FleetPlacementError(
            f"Could not lay out {len(ships)} ships on the {self.owner} board "
            f"after {MAX_LAYOUT_ATTEMPTS} attempts."
        )

    def randomize_ships(self, specs: Iterable[ShipSpec], rng: random.Random | None = None) -> None:
        """Clear the board and randomly place one ship per catalog entry."""
        rng = rng or random.Random()
        with tracer.start_as_current_span("board.randomize_ships") as span:
            span.set_attribute("board.owner", self.owner)
            self.reset()
            ships = [Ship.from_spec(spec) for spec in specs]
            attempts = self.place_fleet_randomly(ships, rng)
            span.set_attribute("layout.attempts", attempts)
            logger.debug(
                "random_fleet_placed",
                extra={"ships": len(ships), "attempts": attempts, "owner": self.owner},
            )
