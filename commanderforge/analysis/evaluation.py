"""
Evaluation harness: deck quality metrics and regression runs.

`run_harness` builds decks for a fixed set of reference commanders from
synthetic pools and reports metrics, so engine tuning can be compared
run over run.
"""

import logging
import random
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from statistics import fmean, pvariance

from commanderforge.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from commanderforge.models.card import Card, CommanderChoice, OwnedCard
from commanderforge.models.deck import DeckList
from commanderforge.models.failure import DeckBuildError
from commanderforge.models.plan import CommanderPlan
from commanderforge.models.profile import BuilderOptions, ProfileTargets
from commanderforge.models.roles import RoleFamily
from commanderforge.services.commander_plan import get_commander_plan
from commanderforge.services.commander_themes import commander_synergy_score
from commanderforge.services.deck_builder import build_deck
from commanderforge.services.profile_targets import get_profile_targets
from commanderforge.services.role_classifier import count_by_role_family
from commanderforge.services.scoring import interaction_count

logger = logging.getLogger(__name__)

ROLE_TOLERANCE = 2


@dataclass(frozen=True)
class RoleRatio:
    current: int
    target: int
    met: bool


@dataclass
class DeckMetrics:
    """Quality metrics of one built deck. Scores are in 0-1."""

    avg_cmc: float
    cmc_variance: float
    curve_score: float
    role_ratios: dict[str, RoleRatio]
    role_ratio_score: float
    synergy_density: float
    land_count: int
    mana_stability_score: float
    wincon_presence: int
    interaction_coverage: int
    interaction_score: float
    composite_score: float


def compute_deck_metrics(
    deck_list: DeckList,
    card_map: Mapping[str, Card],
    plan: CommanderPlan,
    profile: ProfileTargets,
) -> DeckMetrics:
    """Compute curve, role, synergy, mana and interaction metrics for a deck."""
    main = deck_list.main
    land_count = len(deck_list.lands)

    cmcs = [e.cmc for e in main]
    avg_cmc = fmean(cmcs) if cmcs else 0.0
    cmc_variance = pvariance(cmcs) if cmcs else 0.0
    curve_score = max(
        0.0, 1 - abs(avg_cmc - profile.target_avg_cmc) * 0.2 - cmc_variance * 0.05
    )

    counts = count_by_role_family(main)
    targets = {
        RoleFamily.RAMP: profile.target_ramp,
        RoleFamily.DRAW: profile.target_draw,
        RoleFamily.REMOVAL: profile.target_removal,
        RoleFamily.INTERACTION: profile.target_interaction,
        RoleFamily.SWEEPER: profile.target_sweeper,
        RoleFamily.FINISHER: profile.target_finisher,
    }
    role_ratios: dict[str, RoleRatio] = {}
    for family, target in targets.items():
        current = counts[family]
        role_ratios[family.value] = RoleRatio(
            current=current,
            target=target,
            met=abs(current - target) <= ROLE_TOLERANCE,
        )
    role_ratio_score = sum(r.met for r in role_ratios.values()) / len(role_ratios)

    cards = [c for e in main if (c := card_map.get(e.name.lower())) is not None]
    raw_synergy = (
        fmean(commander_synergy_score(c, plan.primary_themes) for c in cards) if cards else 0.0
    )
    # 2.0 average synergy (one text match per card) counts as saturated
    synergy_density = min(1.0, raw_synergy / 2)

    if profile.target_lands_min <= land_count <= profile.target_lands_max:
        mana_stability = 1.0
    elif land_count < profile.target_lands_min:
        mana_stability = land_count / profile.target_lands_min
    else:
        mana_stability = 0.0

    wincon_presence = counts[RoleFamily.FINISHER]
    interaction_coverage = interaction_count(main)
    minimum = profile.min_interaction_total
    interaction_score = 1.0 if minimum <= 0 else min(1.0, interaction_coverage / minimum)

    wincon_score = 0.1 if wincon_presence >= 2 else wincon_presence * 0.05
    composite = (
        curve_score * 0.2
        + role_ratio_score * 0.25
        + synergy_density * 0.15
        + mana_stability * 0.15
        + wincon_score
        + interaction_score * 0.25
    )

    return DeckMetrics(
        avg_cmc=avg_cmc,
        cmc_variance=cmc_variance,
        curve_score=curve_score,
        role_ratios=role_ratios,
        role_ratio_score=role_ratio_score,
        synergy_density=synergy_density,
        land_count=land_count,
        mana_stability_score=mana_stability,
        wincon_presence=wincon_presence,
        interaction_coverage=interaction_coverage,
        interaction_score=interaction_score,
        composite_score=composite,
    )


# =============================================================================
# REFERENCE COMMANDERS
# =============================================================================


@dataclass(frozen=True)
class ReferenceCommander:
    """A commander and the card names of its synthetic owned pool."""

    id: str
    name: str
    color_identity: frozenset[str]
    oracle_text: str
    type_line: str
    card_names: tuple[str, ...]
    # Subtypes given to filler creatures so tribal pools are not empty
    filler_subtypes: tuple[str, ...] = ()


@dataclass(frozen=True)
class KnownCard:
    type_line: str
    color_identity: frozenset[str]
    cmc: float
    oracle_text: str | None = None


def _known(type_line: str, colors: str, cmc: float, text: str | None = None) -> KnownCard:
    return KnownCard(type_line, frozenset(colors), cmc, text)


KNOWN_CARDS: dict[str, KnownCard] = {
    "Sol Ring": _known("Artifact", "", 1, "{T}: Add {C}{C}."),
    "Birds of Paradise": _known(
        "Creature — Bird", "G", 1, "Flying\n{T}: Add one mana of any color."
    ),
    "Counterspell": _known("Instant", "U", 2, "Counter target spell."),
    "Swords to Plowshares": _known("Instant", "W", 1, "Exile target creature."),
    "Path to Exile": _known("Instant", "W", 1, "Exile target creature."),
    "Lightning Bolt": _known("Instant", "R", 1, "Lightning Bolt deals 3 damage to any target."),
    "Rampant Growth": _known(
        "Sorcery", "G", 2, "Search your library for a basic land card, put it onto the battlefield."
    ),
    "Cultivate": _known("Sorcery", "G", 3, "Search your library for up to two basic land cards."),
    "Farseek": _known(
        "Sorcery", "G", 2, "Search your library for a Plains, Island, Swamp, or Mountain card."
    ),
    "Kodama's Reach": _known(
        "Sorcery", "G", 3, "Search your library for up to two basic land cards."
    ),
    "Sakura-Tribe Elder": _known(
        "Creature — Snake Shaman",
        "G",
        2,
        "Sacrifice Sakura-Tribe Elder: Search your library for a basic land card.",
    ),
    "Cyclonic Rift": _known(
        "Instant", "U", 2, "Return target nonland permanent you don't control to its owner's hand."
    ),
    "Beast Within": _known("Instant", "G", 3, "Destroy target permanent."),
    "Chaos Warp": _known(
        "Instant", "R", 3, "The owner of target permanent shuffles it into their library."
    ),
    "Demonic Tutor": _known("Sorcery", "B", 2, "Search your library for a card."),
    "Vampiric Tutor": _known("Instant", "B", 1, "Search your library for a card."),
    "Smothering Tithe": _known(
        "Enchantment", "W", 4, "Whenever an opponent draws a card, create a Treasure token."
    ),
    "Rhystic Study": _known(
        "Enchantment", "U", 3, "Whenever an opponent casts a spell, you may draw a card."
    ),
    "Necropotence": _known("Enchantment", "B", 3, "Pay 1 life: Draw a card."),
    "Sylvan Library": _known(
        "Enchantment",
        "G",
        2,
        "At the beginning of your draw step, you may draw two additional cards.",
    ),
    "Mystic Remora": _known(
        "Enchantment",
        "U",
        1,
        "Whenever an opponent casts a noncreature spell, you may draw a card.",
    ),
    "Eternal Witness": _known(
        "Creature — Human Shaman",
        "G",
        3,
        "When Eternal Witness enters, return target card from your graveyard to your hand.",
    ),
    "Anguished Unmaking": _known("Instant", "WB", 3, "Exile target nonland permanent."),
    "Utter End": _known("Instant", "WB", 4, "Exile target nonland permanent."),
    "Read the Bones": _known("Sorcery", "B", 3, "Scry 2, then draw two cards."),
    "Sign in Blood": _known("Sorcery", "B", 2, "Target player draws two cards."),
    "Night's Whisper": _known("Sorcery", "B", 2, "You draw two cards and you lose 2 life."),
    "Faithless Looting": _known("Sorcery", "R", 1, "Draw two cards, then discard two cards."),
    "Talisman of Conviction": _known("Artifact", "RW", 2, "{T}: Add {R} or {W}."),
    "Talisman of Indulgence": _known("Artifact", "BR", 2, "{T}: Add {B} or {R}."),
    "Solemn Simulacrum": _known(
        "Artifact Creature — Golem",
        "",
        4,
        "When Solemn Simulacrum enters, you may search your library for a basic land card.",
    ),
    "Angelic Arbiter": _known("Creature — Angel", "WU", 7, "Flying"),
    "Rakdos the Defiler": _known("Legendary Creature — Demon", "BR", 4, "Flying, trample"),
    "Avacyn, Angel of Hope": _known(
        "Legendary Creature — Angel", "W", 8, "Flying, vigilance, indestructible"
    ),
    "Gisela, Blade of Goldnight": _known(
        "Legendary Creature — Angel", "WR", 7, "Flying, first strike"
    ),
    "Chromanticore": _known("Enchantment Creature — Manticore", "WUBRG", 5, "Flying, trample"),
    "Dragonlord Atarka": _known(
        "Legendary Creature — Elder Dragon", "RG", 7, "Flying, trample"
    ),
    "Dragonlord Dromoka": _known(
        "Legendary Creature — Elder Dragon", "WG", 6, "Flying, lifelink"
    ),
    "Dragonlord Ojutai": _known(
        "Legendary Creature — Elder Dragon", "WU", 5, "Flying, vigilance"
    ),
    "Dragonlord Silumgar": _known(
        "Legendary Creature — Elder Dragon", "UB", 6, "Flying, deathtouch"
    ),
    "Dragonlord Kolaghan": _known(
        "Legendary Creature — Elder Dragon", "BR", 6, "Flying, haste"
    ),
    "Sarkhan's Unsealing": _known(
        "Enchantment",
        "R",
        4,
        "Whenever you cast a creature spell with power 4 or greater, "
        "Sarkhan's Unsealing deals 4 damage to any target.",
    ),
    "Dragon Tempest": _known(
        "Enchantment", "R", 2, "Whenever a creature with flying enters, it gains haste."
    ),
    "Scourge of Valkas": _known(
        "Creature — Dragon",
        "R",
        4,
        "Flying\nWhenever Scourge of Valkas or another Dragon enters, "
        "it deals X damage to any target.",
    ),
}

# fmt: off
REFERENCE_COMMANDERS: tuple[ReferenceCommander, ...] = (
    ReferenceCommander(
        id="atraxa",
        name="Atraxa, Praetors' Voice",
        color_identity=frozenset("WUBG"),
        oracle_text="Flying, vigilance, deathtouch, lifelink\n"
        "At the beginning of your end step, proliferate.",
        type_line="Legendary Creature — Phyrexian Angel Horror",
        card_names=(
            "Sol Ring", "Birds of Paradise", "Counterspell", "Swords to Plowshares",
            "Eternal Witness", "Smothering Tithe", "Rhystic Study", "Demonic Tutor",
            "Farseek", "Rampant Growth", "Cultivate", "Kodama's Reach",
            "Sylvan Library", "Necropotence", "Beast Within", "Anguished Unmaking",
            "Vampiric Tutor", "Mystic Remora", "Sakura-Tribe Elder", "Cyclonic Rift",
        ),
    ),
    ReferenceCommander(
        id="kaalia",
        name="Kaalia of the Vast",
        color_identity=frozenset("WBR"),
        oracle_text="Flying\nWhenever Kaalia of the Vast attacks an opponent, you may put "
        "an Angel, Demon, or Dragon creature card from your hand onto the battlefield "
        "tapped and attacking that opponent.",
        type_line="Legendary Creature — Human Cleric",
        card_names=(
            "Sol Ring", "Lightning Bolt", "Rakdos the Defiler", "Avacyn, Angel of Hope",
            "Gisela, Blade of Goldnight", "Solemn Simulacrum", "Talisman of Conviction",
            "Talisman of Indulgence", "Chaos Warp", "Path to Exile", "Swords to Plowshares",
            "Utter End", "Read the Bones", "Sign in Blood", "Night's Whisper",
            "Faithless Looting",
        ),
        filler_subtypes=("Angel", "Demon", "Dragon"),
    ),
    ReferenceCommander(
        id="ur-dragon",
        name="The Ur-Dragon",
        color_identity=frozenset("WUBRG"),
        oracle_text="Eminence — As long as The Ur-Dragon is in the command zone or on the "
        "battlefield, other Dragon spells you cast cost {1} less to cast.\nFlying\n"
        "Whenever one or more Dragons you control attack, draw that many cards.",
        type_line="Legendary Creature — Dragon Avatar",
        card_names=(
            "Sol Ring", "Birds of Paradise", "Chromanticore", "Dragonlord Atarka",
            "Dragonlord Dromoka", "Dragonlord Ojutai", "Dragonlord Silumgar",
            "Dragonlord Kolaghan", "Farseek", "Rampant Growth", "Cultivate",
            "Kodama's Reach", "Sakura-Tribe Elder", "Counterspell", "Chaos Warp",
            "Beast Within", "Cyclonic Rift", "Sarkhan's Unsealing", "Dragon Tempest",
            "Scourge of Valkas",
        ),
        filler_subtypes=("Dragon",),
    ),
)
# fmt: on

SYNTHETIC_NONLANDS = 72
SYNTHETIC_LANDS = 42


def _card_id(name: str) -> str:
    return name.lower().replace(" ", "-")


def _synthetic_card(
    name: str,
    type_line: str,
    identity: frozenset[str],
    cmc: float,
    oracle_text: str | None = None,
) -> Card:
    return Card(
        id=_card_id(name),
        name=name,
        cmc=cmc,
        colors=identity,
        color_identity=identity,
        type_line=type_line,
        oracle_text=oracle_text,
        legalities={"commander": "legal"},
    )


def build_synthetic_pool(ref: ReferenceCommander) -> dict[str, Card]:
    """
    Card map for a reference commander: the commander, its known cards that fit
    its identity, and filler up to the synthetic pool sizes.
    """
    identity = ref.color_identity
    cards: dict[str, Card] = {
        ref.name.lower(): _synthetic_card(ref.name, ref.type_line, identity, 4, ref.oracle_text)
    }

    nonlands = lands = 0
    for name in ref.card_names:
        known = KNOWN_CARDS.get(name)
        if known is None or not known.color_identity <= identity:
            continue
        card = _synthetic_card(
            name, known.type_line, known.color_identity, known.cmc, known.oracle_text
        )
        cards[name.lower()] = card
        if card.is_land:
            lands += 1
        else:
            nonlands += 1

    subtypes = ref.filler_subtypes
    for i in range(SYNTHETIC_NONLANDS - nonlands):
        name = f"Filler Nonland {ref.id} {i}"
        type_line = f"Creature — {subtypes[i % len(subtypes)]}" if subtypes else "Creature"
        cards[name.lower()] = _synthetic_card(name, type_line, identity, (i % 5) + 1)
    for i in range(SYNTHETIC_LANDS - lands):
        name = f"Filler Land {ref.id} {i}"
        cards[name.lower()] = _synthetic_card(name, "Land", identity, 0)

    return cards


@dataclass
class HarnessResult:
    commander_name: str
    success: bool
    error: str | None = None
    metrics: DeckMetrics | None = None
    total_cards: int | None = None
    warnings: list[str] = field(default_factory=list)


def run_harness(
    commanders: Sequence[ReferenceCommander] | None = None,
    options: BuilderOptions | None = None,
    *,
    seed: int = 0,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> list[HarnessResult]:
    """
    Build a deck for each reference commander and compute its metrics.

    A failed build is recorded as a failure entry, never raised.
    """
    refs = commanders if commanders is not None else REFERENCE_COMMANDERS
    options = options or BuilderOptions()
    results: list[HarnessResult] = []

    for ref in refs:
        card_map = build_synthetic_pool(ref)
        commander_card = card_map[ref.name.lower()]
        owned = [OwnedCard(name=c.name) for key, c in card_map.items() if key != ref.name.lower()]
        try:
            deck = build_deck(
                owned,
                CommanderChoice(name=ref.name, color_identity=ref.color_identity, id=ref.id),
                options,
                card_map,
                rng=random.Random(seed),
                config=config,
            )
        except DeckBuildError as e:
            logger.warning(
                "harness_build_failed",
                extra={"commander": ref.name, "error": e.message},
            )
            results.append(HarnessResult(commander_name=ref.name, success=False, error=e.message))
            continue

        plan = get_commander_plan(commander_card, config)
        profile = get_profile_targets(plan, options, config)
        metrics = compute_deck_metrics(deck, card_map, plan, profile)

        warnings = []
        if deck.stats.short_by:
            warnings.append(f"Deck is short by {deck.stats.short_by} cards")

        results.append(
            HarnessResult(
                commander_name=ref.name,
                success=True,
                metrics=metrics,
                total_cards=deck.total_cards,
                warnings=warnings,
            )
        )
        logger.info(
            "harness_deck_evaluated",
            extra={"commander": ref.name, "composite": round(metrics.composite_score, 3)},
        )

    return results
