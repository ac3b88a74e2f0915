import random
from collections import Counter

import pytest

from src.route_optimizer.models.domain import Point
from src.route_optimizer.services.routing.tour import (
    nearest_neighbor_tour,
    optimize_order,
    tour_length_m,
    two_opt,
)

from .conftest import scatter_points


def _line(*lngs: float) -> list[Point]:
    return [Point(0.0, lng) for lng in lngs]


def test_nearest_neighbor_small_inputs_unchanged():
    assert nearest_neighbor_tour([]) == ()
    one = _line(0.5)
    assert nearest_neighbor_tour(one) == tuple(one)
    two = _line(0.5, 0.1)
    assert nearest_neighbor_tour(two) == tuple(two)


def test_nearest_neighbor_walks_the_line():
    tour = nearest_neighbor_tour(_line(0, 3, 1, 2))
    assert tour == tuple(_line(0, 1, 2, 3))


def test_nearest_neighbor_ties_prefer_input_order():
    tour = nearest_neighbor_tour(_line(0, 1, -1))
    assert tour == tuple(_line(0, 1, -1))
    tour = nearest_neighbor_tour(_line(0, -1, 1))
    assert tour == tuple(_line(0, -1, 1))


@pytest.mark.parametrize("size", [1, 2, 3, 5, 17, 64, 200])
def test_nearest_neighbor_is_anchored_permutation(size):
    points = scatter_points(size, seed=size)
    tour = nearest_neighbor_tour(points)
    assert len(tour) == size
    assert Counter(tour) == Counter(points)
    assert tour[0] == points[0]


def test_two_opt_short_tours_unchanged():
    tour = _line(0, 2, 1)
    assert two_opt(tour) == tuple(tour)


def test_two_opt_untangles_line():
    result = two_opt(_line(0, 0.3, 0.1, 0.2, 0.4))
    assert result == tuple(_line(0, 0.1, 0.2, 0.3, 0.4))


def test_two_opt_never_lengthens_random_tours():
    rng = random.Random(42)
    for trial in range(100):
        size = rng.randint(4, 50)
        tour = scatter_points(size, seed=1000 + trial)
        rng.shuffle(tour)
        improved = two_opt(tour)

        assert improved[0] == tour[0]
        assert Counter(improved) == Counter(tour)
        assert tour_length_m(improved) <= tour_length_m(tour) + 1e-6

        again = two_opt(improved)
        assert abs(tour_length_m(again) - tour_length_m(improved)) < 1e-6


def test_two_opt_respects_pass_cap():
    tour = scatter_points(30, seed=5)
    capped = two_opt(tour, max_passes=1)
    assert tour_length_m(capped) <= tour_length_m(tour)
    assert capped[0] == tour[0]


def test_optimize_order_beats_input_order():
    points = scatter_points(40, seed=11)
    ordered = optimize_order(points)
    assert ordered[0] == points[0]
    assert tour_length_m(ordered) <= tour_length_m(nearest_neighbor_tour(points))
    assert tour_length_m(ordered) < tour_length_m(points)
