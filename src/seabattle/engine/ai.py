"""Hunt/target opponent that picks attack coordinates against the human board."""

from __future__ import annotations

import logging
import random
from collections import deque

from .board import AttackResult
from .config import DEFAULT_GRID_SIZE
from .ship import Coordinate

logger = logging.getLogger(__name__)


class HuntTargetAI:
    """Random hunting until a hit, then working around and along the hits.

    The AI never owns a board. It only remembers which cells it has fired at,
    the hits on the ship it is currently chasing and a FIFO queue of
    candidate cells to try next.
    """

    def __init__(self, grid_size: int = DEFAULT_GRID_SIZE, rng: random.Random | None = None) -> None:
        self.grid_size = grid_size
        self._rng = rng or random.Random()
        self.attacked_cells: set[Coordinate] = set()
        self.current_hits: list[Coordinate] = []
        self.queue: deque[Coordinate] = deque()

    @property
    def mode(self) -> str:
        return "target" if self.queue else "hunt"

    def reset(self) -> None:
        self.attacked_cells = set()
        self.current_hits = []
        self.queue = deque()

    def get_attack(self) -> Coordinate:
        """Return the next coordinate to fire at."""
        while self.queue:
            coord = self.queue.popleft()
            if self.is_valid_target(coord.x, coord.y):
                return coord
        return self._random_attack()

    def _random_attack(self) -> Coordinate:
        remaining = [
            Coordinate(x, y)
            for y in range(self.grid_size)
            for x in range(self.grid_size)
            if Coordinate(x, y) not in self.attacked_cells
        ]
        if not remaining:
            raise RuntimeError("Every cell has already been attacked.")
        return self._rng.choice(remaining)

    def record_attack_result(self, x: int, y: int, result: AttackResult) -> None:
        """Update hunting state with the outcome of an attack at ``(x, y)``."""
        if result is AttackResult.INVALID:
            return

        coord = Coordinate(x, y)
        self.attacked_cells.add(coord)

        if result is AttackResult.MISS:
            return

        if result is AttackResult.SUNK:
            self.current_hits = []
            self.queue.clear()
            logger.debug("ai_target_sunk", extra={"x": x, "y": y})
            return

        self.current_hits.append(coord)
        if len(self.current_hits) == 1:
            self._queue_adjacent(coord)
        else:
            self.queue.clear()
            self._queue_along_line()
            if not self.queue:
                for hit in self.current_hits:
                    self._queue_adjacent(hit)
        logger.debug(
            "ai_target_updated",
            extra={"hits": len(self.current_hits), "queued": len(self.queue)},
        )

    def _queue_adjacent(self, coord: Coordinate) -> None:
        # left, right, up, down
        for cell in (
            Coordinate(coord.x - 1, coord.y),
            Coordinate(coord.x + 1, coord.y),
            Coordinate(coord.x, coord.y - 1),
            Coordinate(coord.x, coord.y + 1),
        ):
            self._enqueue(cell)

    def _queue_along_line(self) -> None:
        xs = {hit.x for hit in self.current_hits}
        ys = {hit.y for hit in self.current_hits}
        if len(ys) == 1:
            row = next(iter(ys))
            self._enqueue(Coordinate(min(xs) - 1, row))
            self._enqueue(Coordinate(max(xs) + 1, row))
        elif len(xs) == 1:
            col = next(iter(xs))
            self._enqueue(Coordinate(col, min(ys) - 1))
            self._enqueue(Coordinate(col, max(ys) + 1))

    def _enqueue(self, coord: Coordinate) -> None:
        if self.is_valid_target(coord.x, coord.y) and coord not in self.queue:
            self.queue.append(coord)

    def is_valid_target(self, x: int, y: int) -> bool:
        if not (0 <= x < self.grid_size and 0 <= y < self.grid_size):
            return False
        return Coordinate(x, y) not in self.attacked_cells
