"""Credit pack definitions."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CreditPack:
    """A purchasable bundle of credits."""

    id: str
    name: str
    credits: int
    amount_cents: int

    @property
    def price_label(self) -> str:
        dollars = self.amount_cents / 100
        return f"${dollars:g}"


CREDIT_PACKS: tuple[CreditPack, ...] = (
    CreditPack("small", "Pack 1: 50 Credits", 50, 500),
    CreditPack("medium", "Pack 2: 120 Credits", 120, 1000),
    CreditPack("large", "Pack 3: 200 Credits", 200, 1500),
    CreditPack("xl", "Pack 4: 500 Credits", 500, 3000),
)


def find_pack(pack_id: str) -> CreditPack | None:
    """Return the pack with the given id, if any."""
    for pack in CREDIT_PACKS:
        if pack.id == pack_id:
            return pack
    return None
