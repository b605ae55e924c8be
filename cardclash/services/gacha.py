"""
Gacha drawer.

Samples cards from a catalog. Each draw independently:
1. picks a rarity tier by walking the cumulative weight distribution
2. picks a definition of that rarity uniformly
3. rolls base power inside the definition's range

Draws are with replacement. Nothing is persisted here; callers append
drawn cards to a collection through the persistence layer.
"""

import logging
import math
from typing import Literal

from cardclash.config import TEN_DRAW_COUNT, settings
from cardclash.models.card import Card, CardDefinition, Rarity
from cardclash.models.catalog import CardCatalog
from cardclash.models.failure import InvalidRequestError
from cardclash.services.catalog import get_catalog
from cardclash.services.random_source import RandomSource, uniform_index, uniform_int

logger = logging.getLogger(__name__)

PowerDistribution = Literal["uniform", "triangular"]


class GachaDrawer:
    """Weighted card sampler over a catalog."""

    def __init__(
        self,
        catalog: CardCatalog,
        source: RandomSource,
        power_distribution: PowerDistribution = "uniform",
    ):
        if power_distribution not in ("uniform", "triangular"):
            raise ValueError(f"Unknown power distribution: {power_distribution}")
        self.catalog = catalog
        self.source = source
        self.power_distribution = power_distribution

        # Cumulative thresholds over tiers that can actually be drawn
        self._thresholds: list[tuple[float, Rarity]] = []
        cumulative = 0.0
        for tier in catalog.tiers:
            if tier.weight <= 0:
                continue
            cumulative += tier.weight
            self._thresholds.append((cumulative, tier.rarity))

    def draw(self, n: int) -> list[Card]:
        """
        Draw n cards.

        Raises:
            InvalidRequestError: If n is not a positive integer
        """
        if isinstance(n, bool) or not isinstance(n, int) or n <= 0:
            raise InvalidRequestError(
                "Draw count must be a positive integer.",
                detail=f"count={n!r}",
            )

        cards = [self._draw_one() for _ in range(n)]
        logger.debug("Drew %d cards: %s", n, [card.name for card in cards])
        return cards

    def draw_single(self) -> Card:
        """Single draw."""
        return self.draw(1)[0]

    def draw_ten(self) -> list[Card]:
        """Ten draw."""
        return self.draw(TEN_DRAW_COUNT)

    def _draw_one(self) -> Card:
        rarity = self._sample_rarity()
        pool = self.catalog.definitions_for(rarity)
        definition = pool[uniform_index(self.source, len(pool))]
        return Card(definition=definition, base_power=self._sample_power(definition))

    def _sample_rarity(self) -> Rarity:
        roll = self.source.next_uniform()
        for threshold, rarity in self._thresholds:
            if roll < threshold:
                return rarity
        # Weights may sum to slightly under 1.0 in floating point
        return self._thresholds[-1][1]

    def _sample_power(self, definition: CardDefinition) -> int:
        low, high = definition.base_power_range
        if low == high:
            return low
        if self.power_distribution == "uniform":
            return uniform_int(self.source, low, high)
        return _triangular_int(self.source.next_uniform(), low, high)


def _triangular_int(u: float, low: int, high: int) -> int:
    """Inverse-CDF sample of a symmetric triangular distribution over [low, high]."""
    span = high - low + 1
    if u < 0.5:
        offset = span * math.sqrt(u / 2)
    else:
        offset = span * (1 - math.sqrt((1 - u) / 2))
    return min(low + int(offset), high)


def new_drawer(source: RandomSource) -> GachaDrawer:
    """Drawer over the active catalog, configured from settings."""
    return GachaDrawer(get_catalog(), source, settings.power_distribution)
