"""Unit tests for the weighted selector."""

import random
from collections import Counter

import pytest

from sightread.weighted import WEIGHT_EPSILON, floor_weight, pick_weighted, pick_weighted_map


class FixedRandom(random.Random):
    """Random source whose ``random()`` always returns the same value."""

    def __init__(self, value: float) -> None:
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


def test_empty_items_raises() -> None:
    with pytest.raises(ValueError):
        pick_weighted_map([], [], random.Random(1))


def test_mismatched_lengths_raise() -> None:
    with pytest.raises(ValueError):
        pick_weighted_map(["a", "b"], [1.0], random.Random(1))


def test_draw_walks_cumulative_weights() -> None:
    items = ["a", "b", "c"]
    weights = [1.0, 2.0, 1.0]
    assert pick_weighted_map(items, weights, FixedRandom(0.0)) == "a"
    assert pick_weighted_map(items, weights, FixedRandom(0.3)) == "b"
    assert pick_weighted_map(items, weights, FixedRandom(0.74)) == "b"
    assert pick_weighted_map(items, weights, FixedRandom(0.99)) == "c"


def test_zero_weight_item_is_never_chosen() -> None:
    rng = random.Random(3)
    picks = {pick_weighted_map(["never", "always"], [0.0, 1.0], rng) for _ in range(200)}
    assert picks == {"always"}


def test_all_zero_weights_fall_back_to_uniform() -> None:
    rng = random.Random(5)
    picks = Counter(pick_weighted_map(["x", "y"], [0.0, 0.0], rng) for _ in range(400))
    assert set(picks) == {"x", "y"}


def test_frequencies_follow_weights() -> None:
    rng = random.Random(11)
    picks = Counter(pick_weighted_map(["light", "heavy"], [1.0, 3.0], rng) for _ in range(8000))
    share = picks["heavy"] / 8000
    assert 0.72 < share < 0.78


def test_pick_weighted_uses_weight_function() -> None:
    rng = random.Random(2)
    picks = {pick_weighted([1, 2, 3], lambda n: 1.0 if n == 2 else 0.0, rng) for _ in range(100)}
    assert picks == {2}


def test_same_seed_same_sequence() -> None:
    rng_a, rng_b = random.Random(42), random.Random(42)
    seq_a = [pick_weighted_map("abcd", [1, 2, 3, 4], rng_a) for _ in range(50)]
    seq_b = [pick_weighted_map("abcd", [1, 2, 3, 4], rng_b) for _ in range(50)]
    assert seq_a == seq_b


def test_floor_weight_clamps_to_epsilon() -> None:
    assert floor_weight(0.0) == WEIGHT_EPSILON
    assert floor_weight(-2.0) == WEIGHT_EPSILON
    assert floor_weight(0.5) == 0.5
