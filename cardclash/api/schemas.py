"""
Response models shared by several routers.
"""

from pydantic import BaseModel, Field

from cardclash.models.card import Card
from cardclash.models.player import OwnedCard, Player


class CardResponse(BaseModel):
    """A card as shown to players."""

    name: str
    attribute: str
    rarity: str
    card_type: str
    description: str = ""
    base_power: int
    power_range: tuple[int, int]

    @classmethod
    def from_card(cls, card: Card) -> "CardResponse":
        return cls(
            name=card.name,
            attribute=card.attribute.value,
            rarity=card.rarity.value,
            card_type=card.card_type.value,
            description=card.definition.description,
            base_power=card.base_power,
            power_range=card.definition.base_power_range,
        )


class OwnedCardResponse(CardResponse):
    """A card in a player's collection."""

    id: int = Field(..., description="Collection id, used to pick cards for a battle hand")

    @classmethod
    def from_owned(cls, owned: OwnedCard) -> "OwnedCardResponse":
        return cls(id=owned.id, **CardResponse.from_card(owned.card).model_dump())


class PlayerResponse(BaseModel):
    """Player progression stats."""

    username: str
    level: int
    xp: int
    xp_to_next_level: int
    currency: int
    rating: int

    @classmethod
    def from_player(cls, player: Player) -> "PlayerResponse":
        return cls(
            username=player.username,
            level=player.level,
            xp=player.xp,
            xp_to_next_level=player.xp_to_next_level,
            currency=player.currency,
            rating=player.rating,
        )
