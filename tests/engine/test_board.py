"""Tests for the Board mechanics."""

import random

import pytest

from seabattle.engine.board import AttackResult, Board, CellState, FleetPlacementError
from seabattle.engine.ship import DEFAULT_FLEET, Coordinate, Orientation, Ship, ShipSpec


def test_place_destroyer_marks_cells_and_blocks_overlap() -> None:
    board = Board()
    destroyer = Ship("Destroyer", 2)
    assert board.place_ship(destroyer, 0, 0, Orientation.HORIZONTAL)

    assert board.get_cell_state(0, 0) is CellState.SHIP
    assert board.get_cell_state(1, 0) is CellState.SHIP
    assert board.get_cell_state(2, 0) is CellState.EMPTY
    assert destroyer.positions == (Coordinate(0, 0), Coordinate(1, 0))
    assert board.ships == [destroyer]

    submarine = Ship("Submarine", 3)
    assert not board.can_place_ship(submarine, 0, 0, Orientation.HORIZONTAL)


def test_placement_rejects_out_of_bounds_without_mutation() -> None:
    board = Board()
    carrier = Ship("Carrier", 5)
    assert not board.can_place_ship(carrier, 6, 0, Orientation.HORIZONTAL)
    assert not board.place_ship(carrier, 0, 6, Orientation.VERTICAL)
    assert not board.can_place_ship(carrier, -1, 0, Orientation.HORIZONTAL)

    assert board.ships == []
    assert carrier.positions == ()
    assert board.cells_in_state(CellState.SHIP) == []


def test_overlapping_placement_leaves_board_untouched() -> None:
    board = Board()
    board.place_ship(Ship("Cruiser", 3), 2, 2, Orientation.VERTICAL)
    crossing = Ship("Battleship", 4)

    assert not board.place_ship(crossing, 0, 3, Orientation.HORIZONTAL)
    assert len(board.cells_in_state(CellState.SHIP)) == 3
    assert crossing.positions == ()


def test_ship_cannot_be_placed_twice() -> None:
    board = Board()
    ship = Ship("Destroyer", 2)
    assert board.place_ship(ship, 0, 0, Orientation.HORIZONTAL)
    assert not board.place_ship(ship, 5, 5, Orientation.HORIZONTAL)
    assert len(board.ships) == 1


@pytest.mark.parametrize("orientation", list(Orientation))
def test_can_place_implies_place_marks_exactly_size_cells(orientation: Orientation) -> None:
    for size in (2, 3, 5):
        for y in range(10):
            for x in range(10):
                board = Board()
                ship = Ship("Scout", size)
                if board.can_place_ship(ship, x, y, orientation):
                    assert board.place_ship(ship, x, y, orientation)
                    assert len(board.cells_in_state(CellState.SHIP)) == size


def test_attack_hit_then_sunk() -> None:
    board = Board()
    board.place_ship(Ship("Destroyer", 2), 0, 0, Orientation.HORIZONTAL)

    assert board.receive_attack(0, 0) is AttackResult.HIT
    assert board.get_cell_state(0, 0) is CellState.HIT
    assert not board.all_ships_sunk()

    assert board.receive_attack(1, 0) is AttackResult.SUNK
    assert board.get_cell_state(0, 0) is CellState.SUNK
    assert board.get_cell_state(1, 0) is CellState.SUNK
    assert board.all_ships_sunk()


def test_attack_miss_and_repeat_is_invalid() -> None:
    board = Board()
    ship = Ship("Destroyer", 2)
    board.place_ship(ship, 0, 0, Orientation.HORIZONTAL)

    assert board.receive_attack(5, 5) is AttackResult.MISS
    assert board.get_cell_state(5, 5) is CellState.MISS
    assert board.receive_attack(5, 5) is AttackResult.INVALID

    assert board.receive_attack(0, 0) is AttackResult.HIT
    assert board.receive_attack(0, 0) is AttackResult.INVALID
    assert ship.hits == 1

    board.receive_attack(1, 0)
    assert board.receive_attack(1, 0) is AttackResult.INVALID
    assert ship.hits == 2


def test_attack_out_of_bounds_is_invalid() -> None:
    board = Board()
    assert board.receive_attack(10, 0) is AttackResult.INVALID
    assert board.receive_attack(0, -1) is AttackResult.INVALID


def test_all_ships_sunk_requires_a_fleet() -> None:
    board = Board()
    assert not board.all_ships_sunk()


def test_all_ships_sunk_flips_on_last_hit() -> None:
    board = Board()
    board.place_ship(Ship("Destroyer", 2), 0, 0, Orientation.HORIZONTAL)
    board.place_ship(Ship("Cruiser", 3), 0, 5, Orientation.VERTICAL)

    for x, y in [(0, 0), (1, 0), (0, 5), (0, 6)]:
        board.receive_attack(x, y)
        assert not board.all_ships_sunk()
    assert board.receive_attack(0, 7) is AttackResult.SUNK
    assert board.all_ships_sunk()


def test_get_ship_at() -> None:
    board = Board()
    cruiser = Ship("Cruiser", 3)
    board.place_ship(cruiser, 4, 4, Orientation.VERTICAL)
    assert board.get_ship_at(4, 6) is cruiser
    assert board.get_ship_at(5, 4) is None


def test_randomize_ships_places_full_fleet_without_overlap() -> None:
    board = Board()
    board.randomize_ships(DEFAULT_FLEET, random.Random(123))

    assert [ship.name for ship in board.ships] == [spec.name for spec in DEFAULT_FLEET]
    coords = [coord for ship in board.ships for coord in ship.positions]
    assert len(coords) == len(set(coords)), "Ships should not overlap"
    assert len(board.cells_in_state(CellState.SHIP)) == sum(spec.size for spec in DEFAULT_FLEET)
    for ship in board.ships:
        xs = {coord.x for coord in ship.positions}
        ys = {coord.y for coord in ship.positions}
        assert len(xs) == 1 or len(ys) == 1


def test_randomize_ships_clears_previous_state() -> None:
    board = Board()
    board.receive_attack(3, 3)
    board.randomize_ships(DEFAULT_FLEET, random.Random(1))
    board.randomize_ships(DEFAULT_FLEET, random.Random(2))
    assert len(board.ships) == len(DEFAULT_FLEET)
    assert board.cells_in_state(CellState.MISS) == []


def test_randomize_ships_rejects_unplaceable_fleet() -> None:
    board = Board(grid_size=3)
    with pytest.raises(FleetPlacementError):
        board.randomize_ships([ShipSpec("Carrier", 5)], random.Random(0))

    crowded = [ShipSpec("Cruiser", 3)] * 4
    with pytest.raises(FleetPlacementError):
        board.randomize_ships(crowded, random.Random(0))


@pytest.mark.parametrize("seed", range(200))
def test_randomize_ships_restarts_cornered_layouts(seed: int) -> None:
    # Four destroyers fill 8 of 9 cells, so a greedy layout often strands the last one.
    board = Board(grid_size=3)
    board.randomize_ships([ShipSpec("Destroyer", 2)] * 4, random.Random(seed))

    assert len(board.ships) == 4
    assert len(board.cells_in_state(CellState.SHIP)) == 8


def _block_every_line(board: Board) -> list[Ship]:
    blockers = [Ship("Destroyer", 2) for _ in range(3)]
    assert board.place_ship(blockers[0], 0, 0, Orientation.HORIZONTAL)
    assert board.place_ship(blockers[1], 2, 1, Orientation.HORIZONTAL)
    assert board.place_ship(blockers[2], 0, 2, Orientation.VERTICAL)
    return blockers


def test_place_fleet_randomly_rolls_back_partial_layout() -> None:
    board = Board(grid_size=4)
    blockers = _block_every_line(board)
    destroyer = Ship("Destroyer", 2)
    battleship = Ship("Battleship", 4)

    with pytest.raises(FleetPlacementError):
        board.place_fleet_randomly([destroyer, battleship], random.Random(0))

    assert board.ships == blockers
    assert destroyer.positions == ()
    assert battleship.positions == ()
    assert len(board.cells_in_state(CellState.SHIP)) == 6


def test_place_fleet_randomly_reports_layouts_tried() -> None:
    board = Board()
    ships = [Ship.from_spec(spec) for spec in DEFAULT_FLEET]
    assert board.place_fleet_randomly(ships, random.Random(5)) >= 1
    assert all(ship.is_placed for ship in ships)
