from dataclasses import dataclass
from enum import Enum


class Attribute(str, Enum):
    """Elemental attribute of a card."""

    FIRE = "FIRE"
    WATER = "WATER"
    EARTH = "EARTH"
    WIND = "WIND"
    LIGHT = "LIGHT"
    DARK = "DARK"


class Rarity(str, Enum):
    """
    Rarity tier, ordered from most to least common.

    Comparison follows tier order (COMMON < RARE < EPIC < LEGENDARY),
    not the alphabetical order of the underlying strings.
    """

    COMMON = "COMMON"
    RARE = "RARE"
    EPIC = "EPIC"
    LEGENDARY = "LEGENDARY"

    @property
    def rank(self) -> int:
        return list(Rarity).index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Rarity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Rarity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Rarity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Rarity):
            return NotImplemented
        return self.rank >= other.rank


class CardType(str, Enum):
    """Play style of a card. Descriptive only; combat ignores it."""

    ATTACK = "ATTACK"
    DEFENSE = "DEFENSE"
    BALANCED = "BALANCED"


@dataclass(frozen=True, slots=True)
class CardDefinition:
    """
    A catalog entry.

    Attributes:
        name: Display name, unique within a catalog
        attribute: Elemental attribute used for advantage checks
        rarity: Rarity tier controlling draw probability
        card_type: Attack / Defense / Balanced
        description: Flavor text
        base_power_range: Inclusive (min, max) range for drawn base power
    """

    name: str
    attribute: Attribute
    rarity: Rarity
    card_type: CardType
    description: str
    base_power_range: tuple[int, int]

    def __post_init__(self) -> None:
        low, high = self.base_power_range
        if low > high:
            raise ValueError(f"Card '{self.name}' has power range {low}-{high} with min > max")
        if low < 0:
            raise ValueError(f"Card '{self.name}' has negative minimum power {low}")

    @property
    def min_power(self) -> int:
        return self.base_power_range[0]

    @property
    def max_power(self) -> int:
        return self.base_power_range[1]


@dataclass(frozen=True, slots=True)
class Card:
    """
    A drawn card: a catalog definition plus the base power rolled for it.

    Cards are never mutated after a draw.
    """

    definition: CardDefinition
    base_power: int

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def attribute(self) -> Attribute:
        return self.definition.attribute

    @property
    def rarity(self) -> Rarity:
        return self.definition.rarity

    @property
    def card_type(self) -> CardType:
        return self.definition.card_type

    def __str__(self) -> str:
        return (
            f"{self.name} ({self.rarity.value} {self.attribute.value}, "
            f"Type: {self.card_type.value}, Power: {self.base_power})"
        )
