"""Weighted random selection shared by every generator stage."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Sequence
from typing import Final, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

#: Smallest weight a caller should hand to the selector after adjustments.
WEIGHT_EPSILON: Final[float] = 0.0001


def floor_weight(weight: float) -> float:
    """Clamp an adjusted weight to ``WEIGHT_EPSILON`` so it never reaches zero."""
    return max(weight, WEIGHT_EPSILON)


def pick_weighted_map(items: Sequence[T], weights: Sequence[float], rng: random.Random) -> T:
    """
    Draw one item with probability proportional to its weight.

    The draw is a single ``rng.random()`` call scaled to ``[0, total)``; the
    first item whose cumulative weight exceeds it wins. A non-positive total
    falls back to a uniform choice.

    Raises:
        ValueError: If ``items`` is empty or the lengths differ.
    """
    if not items:
        raise ValueError("Cannot select from an empty candidate list.")
    if len(items) != len(weights):
        raise ValueError("items and weights must have the same length.")

    total = sum(weights)
    if total <= 0:
        logger.debug("All %d weights are zero; falling back to uniform choice.", len(items))
        return rng.choice(list(items))

    draw = rng.random() * total
    cumulative = 0.0
    for item, weight in zip(items, weights):
        cumulative += weight
        if cumulative > draw:
            return item
    # Float rounding can leave the draw a hair above the final cumulative sum.
    return items[-1]


def pick_weighted(items: Sequence[T], weight: Callable[[T], float], rng: random.Random) -> T:
    """Draw one item using ``weight(item)`` as its relative probability."""
    return pick_weighted_map(items, [weight(item) for item in items], rng)
