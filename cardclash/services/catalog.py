"""
Card catalog service.

Builds the built-in catalog and loads alternative catalogs from JSON.
The active catalog is cached after first load (catalog data is read-only).
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

from cardclash.config import settings
from cardclash.models.card import Attribute, CardDefinition, CardType, Rarity
from cardclash.models.catalog import CardCatalog, CatalogError, RarityTier

logger = logging.getLogger(__name__)

DEFAULT_TIERS: tuple[RarityTier, ...] = (
    RarityTier(Rarity.COMMON, 0.60, (10, 40)),
    RarityTier(Rarity.RARE, 0.25, (30, 60)),
    RarityTier(Rarity.EPIC, 0.12, (50, 80)),
    RarityTier(Rarity.LEGENDARY, 0.03, (70, 100)),
)

# (name, attribute, rarity, type, description)
_DEFAULT_CARDS: list[tuple[str, Attribute, Rarity, CardType, str]] = [
    ("Ember Sprite", Attribute.FIRE, Rarity.COMMON, CardType.ATTACK, "A flicker of living flame."),
    ("Tide Crab", Attribute.WATER, Rarity.COMMON, CardType.DEFENSE, "Hides in coral."),
    ("Mud Golem", Attribute.EARTH, Rarity.COMMON, CardType.DEFENSE, "Slow, heavy and patient."),
    ("Gust Fox", Attribute.WIND, Rarity.COMMON, CardType.BALANCED, "Runs faster than the breeze."),
    ("Lantern Moth", Attribute.LIGHT, Rarity.COMMON, CardType.BALANCED, "Drawn to every glow."),
    ("Shade Rat", Attribute.DARK, Rarity.COMMON, CardType.ATTACK, "Gnaws through the night."),
    ("Flame Lancer", Attribute.FIRE, Rarity.RARE, CardType.ATTACK, "Charges, spear ablaze."),
    ("Reef Guardian", Attribute.WATER, Rarity.RARE, CardType.DEFENSE, "Keeper of the shallows."),
    ("Stone Warden", Attribute.EARTH, Rarity.RARE, CardType.BALANCED, "Carved from bedrock."),
    ("Storm Hawk", Attribute.WIND, Rarity.RARE, CardType.ATTACK, "Strikes with the thunderhead."),
    ("Dawn Cleric", Attribute.LIGHT, Rarity.EPIC, CardType.BALANCED, "Mends wounds at dawn."),
    ("Night Stalker", Attribute.DARK, Rarity.EPIC, CardType.ATTACK, "Never seen, always felt."),
    ("Magma Titan", Attribute.FIRE, Rarity.EPIC, CardType.DEFENSE, "Walks on lava."),
    ("Leviathan", Attribute.WATER, Rarity.LEGENDARY, CardType.ATTACK, "The sea given will."),
    ("Celestial Dragon", Attribute.LIGHT, Rarity.LEGENDARY, CardType.BALANCED, "Older than stars."),
    ("Void Empress", Attribute.DARK, Rarity.LEGENDARY, CardType.DEFENSE, "Rules the void."),
]


def build_default_catalog() -> CardCatalog:
    """Build the catalog shipped with the game."""
    ranges = {tier.rarity: tier.power_range for tier in DEFAULT_TIERS}
    definitions = tuple(
        CardDefinition(
            name=name,
            attribute=attribute,
            rarity=rarity,
            card_type=card_type,
            description=description,
            base_power_range=ranges[rarity],
        )
        for name, attribute, rarity, card_type, description in _DEFAULT_CARDS
    )
    return CardCatalog(tiers=DEFAULT_TIERS, definitions=definitions)


def parse_catalog(data: dict[str, Any]) -> CardCatalog:
    """
    Build a catalog from its JSON form.

    Expected shape:
        {"tiers": [{"rarity", "weight", "power_range"}],
         "cards": [{"name", "attribute", "rarity", "card_type",
                    "description", "power_range"?}]}

    Raises:
        CatalogError: If the data is malformed or violates catalog invariants
    """
    try:
        tiers = tuple(
            RarityTier(
                rarity=Rarity(entry["rarity"]),
                weight=float(entry["weight"]),
                power_range=_parse_range(entry["power_range"]),
            )
            for entry in data["tiers"]
        )
        tier_ranges = {tier.rarity: tier.power_range for tier in tiers}

        definitions = []
        for entry in data["cards"]:
            rarity = Rarity(entry["rarity"])
            if "power_range" in entry:
                power_range = _parse_range(entry["power_range"])
            elif rarity in tier_ranges:
                power_range = tier_ranges[rarity]
            else:
                raise CatalogError(f"Card '{entry['name']}' has rarity {rarity.value} with no tier")
            definitions.append(
                CardDefinition(
                    name=entry["name"],
                    attribute=Attribute(entry["attribute"]),
                    rarity=rarity,
                    card_type=CardType(entry.get("card_type", CardType.BALANCED.value)),
                    description=entry.get("description", ""),
                    base_power_range=power_range,
                )
            )
    except CatalogError:
        raise
    except (KeyError, TypeError, ValueError) as e:
        raise CatalogError(f"Malformed catalog data: {e}") from e

    return CardCatalog(tiers=tiers, definitions=tuple(definitions))


def _parse_range(value: Any) -> tuple[int, int]:
    low, high = value
    return int(low), int(high)


def load_catalog(path: Path) -> CardCatalog:
    """
    Load a catalog from a JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        CatalogError: If the content is not a valid catalog
    """
    if not path.exists():
        raise FileNotFoundError(f"Catalog file not found at {path}")

    with open(path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise CatalogError(f"Catalog file {path} is not valid JSON: {e}") from e

    catalog = parse_catalog(data)
    logger.info(
        "Loaded catalog from %s: %d cards, %d tiers", path, len(catalog), len(catalog.tiers)
    )
    return catalog


@lru_cache(maxsize=1)
def get_catalog() -> CardCatalog:
    """Get the active catalog (configured file, or the built-in one)."""
    if settings.catalog_path is not None:
        return load_catalog(settings.catalog_path)
    return build_default_catalog()
