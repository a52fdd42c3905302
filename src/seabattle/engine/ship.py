"""Ship domain model for the SeaBattle engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class Coordinate:
    """Immutable board coordinate (``x`` is the column, ``y`` the row)."""

    x: int
    y: int


class Orientation(Enum):
    """Allowed ship orientations."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"

    def toggled(self) -> Orientation:
        return Orientation.VERTICAL if self is Orientation.HORIZONTAL else Orientation.HORIZONTAL


@dataclass(frozen=True)
class ShipSpec:
    """Catalog entry describing a ship class."""

    name: str
    size: int


DEFAULT_FLEET: tuple[ShipSpec, ...] = (
    ShipSpec("Carrier", 5),
    ShipSpec("Battleship", 4),
    ShipSpec("Cruiser", 3),
    ShipSpec("Submarine", 3),
    ShipSpec("Destroyer", 2),
)


def footprint(anchor: Coordinate, size: int, orientation: Orientation) -> list[Coordinate]:
    """Return the ordered cells a ship of ``size`` covers from ``anchor``."""
    if orientation is Orientation.HORIZONTAL:
        return [Coordinate(anchor.x + offset, anchor.y) for offset in range(size)]
    return [Coordinate(anchor.x, anchor.y + offset) for offset in range(size)]


@dataclass
class Ship:
    """A vessel that is either waiting to be placed or sitting on a board."""

    name: str
    size: int
    hits: int = field(default=0, init=False)
    positions: tuple[Coordinate, ...] = field(default=(), init=False)

    @classmethod
    def from_spec(cls, spec: ShipSpec) -> Ship:
        return cls(spec.name, spec.size)

    @property
    def is_placed(self) -> bool:
        return bool(self.positions)

    def set_positions(self, coords: list[Coordinate] | tuple[Coordinate, ...]) -> None:
        """Record the ship's footprint. Ships are placed exactly once."""
        if self.positions:
            raise ValueError(f"{self.name} has already been placed.")
        self.positions = tuple(coords)

    def clear_positions(self) -> None:
        """Take the ship back off the board while a layout is rolled back."""
        self.positions = ()

    def hit(self) -> None:
        self.hits += 1

    def is_sunk(self) -> bool:
        return self.hits >= self.size

    def occupies(self, coord: Coordinate) -> bool:
        return coord in self.positions
