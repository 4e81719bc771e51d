"""Static gift card catalog. Codes are looked up after trimming and upper-casing."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GiftCard:
    code: str
    points: int
    description: str


GIFT_CARDS: dict[str, GiftCard] = {
    card.code: card
    for card in (
        GiftCard("MEGA1000", 1000, "Mega bonus card"),
        GiftCard("PREMIUM500", 500, "Premium bonus card"),
        GiftCard("SPECIAL250", 250, "Special offer card"),
        GiftCard("WELCOME100", 100, "Welcome bonus card"),
    )
}


def normalize_gift_card_code(code: str) -> str:
    return code.strip().upper()


def find_gift_card(code: str) -> GiftCard | None:
    """Catalog entry for a user-entered code, or None."""
    return GIFT_CARDS.get(normalize_gift_card_code(code))
