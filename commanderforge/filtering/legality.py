"""
Commander legality checks.

Resolved card data carries a `legalities["commander"]` field, but bulk data
can be stale. The static banlist covers the cards that must never slip
through when legality is enforced.
"""

from commanderforge.models.card import Card

COMMANDER_BANLIST: frozenset[str] = frozenset(
    name.lower()
    for name in (
        "Ancestral Recall",
        "Balance",
        "Biorhythm",
        "Black Lotus",
        "Braids, Cabal Minion",
        "Channel",
        "Chaos Orb",
        "Coalition Victory",
        "Emrakul, the Aeons Torn",
        "Erayo, Soratami Ascendant",
        "Falling Star",
        "Fastbond",
        "Flash",
        "Gifts Ungiven",
        "Griselbrand",
        "Hullbreacher",
        "Iona, Shield of Emeria",
        "Karakas",
        "Leovold, Emissary of Trest",
        "Library of Alexandria",
        "Limited Resources",
        "Lutri, the Spellchaser",
        "Mox Emerald",
        "Mox Jet",
        "Mox Pearl",
        "Mox Ruby",
        "Mox Sapphire",
        "Panoptic Mirror",
        "Paradox Engine",
        "Primeval Titan",
        "Prophet of Kruphix",
        "Recurring Nightmare",
        "Rofellos, Llanowar Emissary",
        "Shahrazad",
        "Sundering Titan",
        "Sway of the Stars",
        "Sylvan Primordial",
        "Time Vault",
        "Time Walk",
        "Tinker",
        "Tolarian Academy",
        "Trade Secrets",
        "Upheaval",
        "Yawgmoth's Bargain",
    )
)

ILLEGAL_STATUSES = frozenset({"banned", "not_legal"})


def is_banlisted(name: str) -> bool:
    return name.strip().lower() in COMMANDER_BANLIST


def is_commander_legal(card: Card) -> bool:
    """
    True unless the card is banned or not legal in Commander.

    A missing legality entry counts as legal; the static banlist still applies.
    """
    if is_banlisted(card.name):
        return False
    return card.commander_legality() not in ILLEGAL_STATUSES


def within_color_identity(card: Card, identity: frozenset[str]) -> bool:
    return card.color_identity <= identity
