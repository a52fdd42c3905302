"""Rules configuration shared by boards, the AI and the game controller."""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .ship import DEFAULT_FLEET, ShipSpec

DEFAULT_GRID_SIZE = 10


class GameConfig(BaseModel):
    """Grid size and fleet catalog for a match."""

    model_config = ConfigDict(frozen=True)

    grid_size: int = Field(default=DEFAULT_GRID_SIZE, ge=1)
    fleet: tuple[ShipSpec, ...] = DEFAULT_FLEET

    @field_validator("fleet")
    @classmethod
    def _fleet_not_empty(cls, fleet: tuple[ShipSpec, ...]) -> tuple[ShipSpec, ...]:
        if not fleet:
            raise ValueError("fleet must contain at least one ship")
        for spec in fleet:
            if spec.size < 1:
                raise ValueError(f"{spec.name} must occupy at least one cell")
        return fleet

    @model_validator(mode="after")
    def _fleet_fits_grid(self) -> "GameConfig":
        for spec in self.fleet:
            if spec.size > self.grid_size:
                raise ValueError(
                    f"{spec.name} ({spec.size}) does not fit on a {self.grid_size}x{self.grid_size} grid"
                )
        if sum(spec.size for spec in self.fleet) > self.grid_size * self.grid_size:
            raise ValueError("fleet occupies more cells than the grid provides")
        return self

    @property
    def fleet_cells(self) -> int:
        """Total number of cells covered by the whole fleet."""
        return sum(spec.size for spec in self.fleet)

    @classmethod
    def from_env(cls, **overrides: Any) -> "GameConfig":
        """Construct config from ``SEABATTLE_*`` env vars."""

        data: dict[str, Any] = {}
        grid_size = os.getenv("SEABATTLE_GRID_SIZE")
        if grid_size:
            data["grid_size"] = int(grid_size.strip())
        data.update(overrides)
        return cls(**data)
