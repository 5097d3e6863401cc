"""
Short, human-readable reasons for each card in a built deck.
"""

import re
from collections.abc import Sequence

from commanderforge.models.card import Card, is_basic_land_name
from commanderforge.models.deck import DeckEntry
from commanderforge.models.plan import CommanderPlan, PackageId
from commanderforge.models.profile import BuilderOptions, ProfileTargets
from commanderforge.models.roles import CardRole, RoleFamily
from commanderforge.services.commander_themes import commander_synergy_score
from commanderforge.services.packages import get_packages_filled_by_card
from commanderforge.services.profile_targets import RoleTargets
from commanderforge.services.role_classifier import count_by_role_family, role_to_family

ROLE_LABELS: dict[str, str] = {
    CardRole.RAMP_LAND.value: "Ramp (land)",
    CardRole.RAMP_PERMANENT.value: "Ramp (permanent)",
    CardRole.RAMP_RITUAL.value: "Ramp",
    CardRole.RAMP_BURST.value: "Ramp",
    CardRole.DRAW_BURST.value: "Draw",
    CardRole.DRAW_ENGINE.value: "Draw engine",
    CardRole.DRAW_CONDITIONAL.value: "Draw",
    CardRole.REMOVAL_SINGLE.value: "Removal",
    CardRole.REMOVAL_FLEXIBLE.value: "Removal",
    CardRole.REMOVAL_WIPE.value: "Board wipe",
    CardRole.WINCON.value: "Win condition",
    RoleFamily.RAMP.value: "Ramp",
    RoleFamily.DRAW.value: "Draw",
    RoleFamily.REMOVAL.value: "Removal",
    RoleFamily.SWEEPER.value: "Sweeper",
    RoleFamily.INTERACTION.value: "Interaction (counters/protection)",
    RoleFamily.ENABLER.value: "Enabler",
    RoleFamily.PAYOFF.value: "Payoff",
    RoleFamily.FINISHER.value: "Finisher",
    RoleFamily.FIXING.value: "Mana fixing",
    RoleFamily.PROTECTION.value: "Protection",
    RoleFamily.RECURSION.value: "Recursion",
    RoleFamily.TUTOR.value: "Tutor",
    RoleFamily.UTILITY.value: "Utility",
    RoleFamily.SYNERGY.value: "Synergy",
    RoleFamily.LAND.value: "Land",
    RoleFamily.OTHER.value: "Other",
}

PACKAGE_LABELS: dict[PackageId, str] = {
    PackageId.SAC_OUTLETS: "sacrifice outlet",
    PackageId.SAC_FODDER: "sacrifice fodder",
    PackageId.SAC_PAYOFFS: "sacrifice payoff",
    PackageId.TOKEN_MAKERS: "token maker",
    PackageId.TOKEN_PAYOFFS: "token payoff",
    PackageId.REANIMATE_TARGETS: "reanimation target",
    PackageId.REANIMATE_EFFECTS: "reanimation",
    PackageId.DISCARD_OUTLETS: "discard outlet",
    PackageId.CHEAP_SPELLS: "cheap spell",
    PackageId.SPELL_PAYOFFS: "spell payoff",
    PackageId.EQUIPMENT_AURAS: "equipment/aura",
    PackageId.VOLTRON_PROTECTION: "voltron protection",
    PackageId.RAMP_DENSITY: "ramp",
    PackageId.DRAW_ENGINES: "draw engine",
}

SYNERGY_MENTION_THRESHOLD = 0.3

_ANY_COLOR = re.compile(r"any color|mana of any type|add one mana of any")


def role_label(role: CardRole | RoleFamily | str) -> str:
    value = role.value if isinstance(role, (CardRole, RoleFamily)) else role
    return ROLE_LABELS.get(value, value.replace("_", " "))


def _format_cmc(cmc: float) -> str:
    return str(int(cmc)) if float(cmc).is_integer() else str(cmc)


def explain_pick(
    entry: DeckEntry,
    card: Card | None,
    main: Sequence[DeckEntry],
    plan: CommanderPlan,
    role_targets: RoleTargets,
) -> str:
    """
    Reason string for a nonland card.

    Example: "Ramp (permanent). CMC 2. fills ramp slot (target 12)"
    """
    family = role_to_family(entry.role)
    parts = [role_label(entry.role), f"CMC {_format_cmc(entry.cmc)}"]

    target = role_targets.get(family)
    if target:
        if count_by_role_family(main)[family] <= target:
            parts.append(f"fills {role_label(family).lower()} slot (target {target})")

    if card is not None:
        required = set(plan.required_packages)
        filled = sorted(get_packages_filled_by_card(card), key=lambda p: p.value)
        relevant = [p for p in filled if p in required]
        if relevant:
            labels = [PACKAGE_LABELS.get(p, p.value) for p in relevant[:2]]
            parts.append(f"completes {' / '.join(labels)}")
        if commander_synergy_score(card, plan.primary_themes) > SYNERGY_MENTION_THRESHOLD:
            parts.append("synergy with commander")

    return ". ".join(parts)


def explain_land(entry: DeckEntry, card: Card | None, identity: frozenset[str]) -> str:
    """Reason string for a land: basic, any-color fixing, or on-color fixing."""
    if is_basic_land_name(entry.name) or (card is not None and card.has_type("basic")):
        return "Basic land."
    if card is None:
        return "Land."

    text = card.text
    if _ANY_COLOR.search(text):
        return "Land. Fixing (any color)."

    produced = [c for c in "WUBRG" if f"{{{c.lower()}}}" in text]
    on_color = [c for c in produced if c in identity]
    if on_color:
        return f"Land. Fixing for {'/'.join(on_color)}."
    return "Land."


def summarize_strategy(
    plan: CommanderPlan,
    profile: ProfileTargets,
    options: BuilderOptions,
) -> str:
    """One-paragraph deterministic summary of how the deck is meant to play."""
    sentences: list[str] = []

    if plan.primary_themes:
        themes = ", ".join(t.value.replace("_", " ") for t in plan.primary_themes[:3])
        sentences.append(f"{plan.commander_name} leads a {themes} deck.")
    else:
        sentences.append(f"{plan.commander_name} leads a {options.archetype.value} deck.")

    if plan.preferred_tribes:
        sentences.append(f"Creature focus: {', '.join(plan.preferred_tribes)}.")

    wins = ", ".join(w.value.replace("_", " ") for w in plan.win_conditions)
    sentences.append(f"It wins through {wins} on a {plan.tempo.value} clock.")

    sentences.append(
        f"Targets: {profile.target_ramp} ramp, {profile.target_draw} draw, "
        f"{profile.target_removal} removal, at least {profile.min_interaction_total} "
        f"interaction, {profile.target_lands_min}-{profile.target_lands_max} lands, "
        f"average mana value near {profile.target_avg_cmc:.1f}."
    )
    return " ".join(sentences)
