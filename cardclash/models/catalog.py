"""
Card catalog model.

A catalog is the static table of card definitions grouped into rarity
tiers. Each tier carries its draw weight and the default power range for
its cards.

INVARIANTS (checked at construction):
- Tier weights sum to 1.0
- Weights never increase with rarity (rarer is drawn less often)
- Every tier that can be drawn has at least one definition
- Every definition belongs to a tier present in the catalog
"""

import math
from dataclasses import dataclass, field

from cardclash.models.card import CardDefinition, Rarity

WEIGHT_TOLERANCE = 1e-6


class CatalogError(ValueError):
    """Raised when catalog configuration violates a catalog invariant."""


@dataclass(frozen=True, slots=True)
class RarityTier:
    """Draw weight and default power range for one rarity."""

    rarity: Rarity
    weight: float
    power_range: tuple[int, int]

    def __post_init__(self) -> None:
        if self.weight < 0:
            raise CatalogError(f"Tier {self.rarity.value} has negative weight {self.weight}")
        low, high = self.power_range
        if low > high:
            raise CatalogError(f"Tier {self.rarity.value} has power range {low}-{high}")


@dataclass(frozen=True)
class CardCatalog:
    """
    Immutable catalog of card definitions.

    Attributes:
        tiers: Rarity tiers, sorted from most to least common
        definitions: All card definitions
    """

    tiers: tuple[RarityTier, ...]
    definitions: tuple[CardDefinition, ...]
    _by_rarity: dict[Rarity, tuple[CardDefinition, ...]] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        ordered = tuple(sorted(self.tiers, key=lambda t: t.rarity.rank))
        object.__setattr__(self, "tiers", ordered)
        self._validate_tiers()

        by_rarity: dict[Rarity, list[CardDefinition]] = {t.rarity: [] for t in self.tiers}
        seen_names: set[str] = set()
        for definition in self.definitions:
            if definition.rarity not in by_rarity:
                raise CatalogError(
                    f"Card '{definition.name}' has rarity {definition.rarity.value} "
                    "with no tier in the catalog"
                )
            if definition.name in seen_names:
                raise CatalogError(f"Duplicate card name '{definition.name}'")
            seen_names.add(definition.name)
            by_rarity[definition.rarity].append(definition)

        for tier in self.tiers:
            if tier.weight > 0 and not by_rarity[tier.rarity]:
                raise CatalogError(f"Tier {tier.rarity.value} has weight but no cards")

        object.__setattr__(
            self, "_by_rarity", {rarity: tuple(defs) for rarity, defs in by_rarity.items()}
        )

    def _validate_tiers(self) -> None:
        if not self.tiers:
            raise CatalogError("Catalog has no rarity tiers")

        rarities = [t.rarity for t in self.tiers]
        if len(set(rarities)) != len(rarities):
            raise CatalogError("Catalog defines the same rarity tier twice")

        total = math.fsum(t.weight for t in self.tiers)
        if abs(total - 1.0) > WEIGHT_TOLERANCE:
            raise CatalogError(f"Tier weights sum to {total}, expected 1.0")

        for lower, higher in zip(self.tiers, self.tiers[1:], strict=False):
            if higher.weight > lower.weight:
                raise CatalogError(
                    f"{higher.rarity.value} weight {higher.weight} exceeds "
                    f"{lower.rarity.value} weight {lower.weight}"
                )

    @property
    def rarities(self) -> tuple[Rarity, ...]:
        """Rarities present in the catalog, most common first."""
        return tuple(t.rarity for t in self.tiers)

    def weight_table(self) -> dict[Rarity, float]:
        """Rarity -> draw probability."""
        return {t.rarity: t.weight for t in self.tiers}

    def tier(self, rarity: Rarity) -> RarityTier:
        for t in self.tiers:
            if t.rarity == rarity:
                return t
        raise KeyError(rarity)

    def definitions_for(self, rarity: Rarity) -> tuple[CardDefinition, ...]:
        """All definitions of a rarity (empty if the rarity is not in the catalog)."""
        return self._by_rarity.get(rarity, ())

    def find(self, name: str) -> CardDefinition | None:
        """Look up a definition by name."""
        for definition in self.definitions:
            if definition.name == name:
                return definition
        return None

    def __len__(self) -> int:
        return len(self.definitions)
