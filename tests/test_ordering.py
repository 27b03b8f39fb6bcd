import random

import pytest

from photo_repo.exceptions import ConfigurationError
from photo_repo.organization.ordering import order_photos, validate_order

PATHS = [f"/src/{i}.jpg" for i in range(20)]


def test_any_keeps_iteration_order():
    assert order_photos(PATHS, "any") == PATHS


def test_random_is_a_permutation():
    result = order_photos(PATHS, "random", random.Random(1))
    assert sorted(result) == sorted(PATHS)
    assert len(result) == len(PATHS)


def test_random_draws_fresh_permutations():
    rng = random.Random(7)
    results = {tuple(order_photos(PATHS, "random", rng)) for _ in range(5)}
    assert len(results) > 1


def test_random_does_not_mutate_input():
    paths = list(PATHS)
    order_photos(paths, "random")
    assert paths == PATHS


def test_invalid_order():
    with pytest.raises(ConfigurationError, match="any, random"):
        validate_order("sorted")
    with pytest.raises(ConfigurationError):
        order_photos(PATHS, "reverse")
