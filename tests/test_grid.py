import pytest

from geocoin.sim.grid import Cell, Grid, LatLng, cell_key, parse_cell_key


def test_cell_for_returns_same_object_for_points_in_same_tile() -> None:
    grid = Grid(tile_size=1e-4)

    first = grid.cell_for(0.00015, 0.00032)
    again = grid.cell_for(0.00015, 0.00032)
    neighbor_point = grid.cell_for(0.00019, 0.00039)

    assert first is again
    assert first is neighbor_point
    assert (first.i, first.j) == (1, 3)
    assert len(grid) == 1


def test_cell_for_uses_floor_for_negative_coordinates() -> None:
    grid = Grid(tile_size=1e-4)

    cell = grid.cell_for(-0.00005, -0.00005)

    assert (cell.i, cell.j) == (-1, -1)
    assert grid.cell_for(0.00005, 0.00005) == Cell(0, 0)


def test_cell_at_and_cell_for_share_the_registry() -> None:
    grid = Grid(tile_size=1e-4)

    assert grid.cell_at(1, 3) is grid.cell_for(0.00015, 0.00035)


def test_cells_near_covers_inclusive_radius_in_row_major_order() -> None:
    grid = Grid(tile_size=1e-4, neighborhood_radius=1)

    cells = grid.cells_near(0.00015, 0.00035)

    assert [(cell.i, cell.j) for cell in cells] == [
        (0, 2), (0, 3), (0, 4),
        (1, 2), (1, 3), (1, 4),
        (2, 2), (2, 3), (2, 4),
    ]


def test_cells_near_default_radius_is_bounded_and_registry_does_not_duplicate() -> None:
    grid = Grid(tile_size=1e-4, neighborhood_radius=8)

    cells = grid.cells_near(36.98949379578401, -122.06277128548504)
    cells_again = grid.cells_near(36.98949379578401, -122.06277128548504)

    assert len(cells) == 17 * 17
    assert len(grid) == 17 * 17
    assert grid.known_cells == cells
    assert all(a is b for a, b in zip(cells, cells_again))


def test_bounds_for_contains_points_that_map_to_the_cell() -> None:
    grid = Grid(tile_size=1e-4)
    points = [(0.00015, 0.00032), (0.00011, 0.00039), (-0.00005, -0.00012)]

    for lat, lng in points:
        cell = grid.cell_for(lat, lng)
        southwest, northeast = grid.bounds_for(cell)
        assert southwest.lat <= lat < northeast.lat
        assert southwest.lng <= lng < northeast.lng
        center = grid.center_for(cell)
        assert southwest.lat < center.lat < northeast.lat
        assert southwest.lng < center.lng < northeast.lng


def test_bounds_for_returns_southwest_then_northeast() -> None:
    grid = Grid(tile_size=0.5)

    southwest, northeast = grid.bounds_for(grid.cell_at(2, -3))

    assert southwest == LatLng(1.0, -1.5)
    assert northeast == LatLng(1.5, -1.0)


def test_cell_keys_do_not_collide_across_digit_splits() -> None:
    assert cell_key(1, 23) != cell_key(12, 3)
    assert parse_cell_key(cell_key(-4, 17)) == (-4, 17)
    assert Cell(-4, 17).key == "-4,17"


@pytest.mark.parametrize("key", ["1", "1,2,3", "a,b", 12])
def test_parse_cell_key_rejects_malformed_keys(key) -> None:
    with pytest.raises(ValueError):
        parse_cell_key(key)


def test_grid_rejects_invalid_configuration() -> None:
    with pytest.raises(ValueError, match="tile_size"):
        Grid(tile_size=0)
    with pytest.raises(ValueError, match="neighborhood_radius"):
        Grid(neighborhood_radius=-1)


def test_cell_and_point_dicts_round_trip_and_validate() -> None:
    cell = Cell(-4, 17)

    assert Cell.from_dict(cell.to_dict()) == cell
    assert LatLng.from_dict(LatLng(0.5, -1.25).to_dict()) == LatLng(0.5, -1.25)
    with pytest.raises(ValueError, match="point requires lat and lng"):
        LatLng.from_dict({"lat": 1.0})
    with pytest.raises(ValueError, match="point.lng must be finite"):
        LatLng.from_dict({"lat": 1.0, "lng": float("nan")})
