"""
Deck building service.

Builds a 99-card Commander deck from the player's owned cards around the
commander's plan. Assembly runs a fixed sequence of greedy stages (ramp, draw,
removal, ... , generic fill), then fills lands, then refines the main deck
with local search.
"""

import logging
import random
from collections import Counter
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import replace

from commanderforge.config import DEFAULT_ENGINE_CONFIG, EngineConfig, TypeCaps
from commanderforge.filtering.candidate_shortlist import shortlist_for_build
from commanderforge.models.card import WUBRG, Card, CommanderChoice, OwnedCard, is_basic_land_name
from commanderforge.models.deck import CandidateEntry, DeckEntry, DeckList, DeckStats
from commanderforge.models.failure import (
    CommanderNotFoundError,
    EmptyCollectionError,
    MissingCardDataError,
    NoCompatibleCandidatesError,
)
from commanderforge.models.plan import PackageId
from commanderforge.models.profile import Archetype, BuilderOptions
from commanderforge.models.roles import CardRole, RoleFamily
from commanderforge.services.card_database import CardResolver
from commanderforge.services.commander_plan import get_commander_plan_with_cache
from commanderforge.services.commander_themes import commander_synergy_score
from commanderforge.services.deck_improver import run_improvement_cycles
from commanderforge.services.explainability import explain_land, explain_pick, summarize_strategy
from commanderforge.services.packages import get_package_targets, get_packages_filled_by_card
from commanderforge.services.plan_cache import PlanCache
from commanderforge.services.profile_targets import get_profile_targets, role_targets_from_profile
from commanderforge.services.role_classifier import count_by_role_family, role_to_family
from commanderforge.services.scoring import ScoringContext, candidate_score, matches_tribe

logger = logging.getLogger(__name__)

COLOR_TO_BASIC_LAND = {
    "W": "Plains",
    "U": "Island",
    "B": "Swamp",
    "R": "Mountain",
    "G": "Forest",
}
COLORLESS_BASIC_LAND = "Wastes"

SYNERGY_FAMILIES = frozenset({RoleFamily.SYNERGY, RoleFamily.ENABLER, RoleFamily.PAYOFF})
UTILITY_FAMILIES = frozenset(
    {RoleFamily.UTILITY, RoleFamily.TUTOR, RoleFamily.RECURSION, RoleFamily.FIXING}
)

# (stage, progress 0-1, message)
ProgressCallback = Callable[[str, float, str | None], None]

Eligible = Callable[[CandidateEntry], bool]


def _report(
    on_progress: ProgressCallback | None, stage: str, progress: float, message: str
) -> None:
    if on_progress is None:
        return
    try:
        on_progress(stage, progress, message)
    except Exception:
        logger.exception("progress_callback_failed", extra={"stage": stage})


def _in_families(*families: RoleFamily) -> Eligible:
    wanted = frozenset(families)

    def eligible(entry: CandidateEntry) -> bool:
        return role_to_family(entry.role) in wanted

    return eligible


def _has_type(*card_types: str) -> Eligible:
    def eligible(entry: CandidateEntry) -> bool:
        return any(entry.card.has_type(t) for t in card_types)

    return eligible


class _AssemblyState:
    """
    The partial main deck while stages run.

    Enforces the nonland cap, the instant and sorcery caps, and reserves
    enough slots for the creature minimum (bounded by the creatures the pool
    actually has).
    """

    def __init__(
        self,
        pool: Sequence[CandidateEntry],
        ctx: ScoringContext,
        caps: TypeCaps,
        nonland_cap: int,
    ) -> None:
        self.pool = [c for c in pool if role_to_family(c.role) != RoleFamily.LAND]
        self.ctx = ctx
        self.caps = caps
        self.nonland_cap = nonland_cap
        self.main: list[DeckEntry] = []
        self.main_cards: list[Card] = []
        self.used: set[str] = set()
        self.type_counts: Counter[str] = Counter()
        self.creatures_available = sum(1 for c in self.pool if c.card.is_creature)

    @property
    def remaining(self) -> int:
        return max(0, self.nonland_cap - len(self.main))

    @property
    def full(self) -> bool:
        return self.remaining == 0

    def creatures_needed(self) -> int:
        floor = min(self.caps.min_creatures, self.creatures_available)
        return max(0, floor - self.type_counts["creature"])

    def can_add(self, entry: CandidateEntry) -> bool:
        card = entry.card
        if self.full or entry.name.lower() in self.used:
            return False
        if card.has_type("instant") and self.type_counts["instant"] >= self.caps.max_instants:
            return False
        if card.has_type("sorcery") and self.type_counts["sorcery"] >= self.caps.max_sorceries:
            return False
        if not card.is_creature and self.remaining - 1 < self.creatures_needed():
            return False
        return True

    def add(self, entry: CandidateEntry) -> None:
        card = entry.card
        self.main.append(
            DeckEntry(
                name=card.name,
                role=entry.role,
                cmc=card.cmc,
                type_line=card.type_line,
                image_url=card.image_url,
            )
        )
        self.main_cards.append(card)
        self.used.add(entry.name.lower())
        for card_type in ("instant", "sorcery", "creature", "enchantment"):
            if card.has_type(card_type):
                self.type_counts[card_type] += 1

    def rank(self, candidates: Iterable[CandidateEntry], *, clump: bool) -> list[CandidateEntry]:
        """Highest score first; ties go to the cheaper card, then by name."""
        scored = [
            (candidate_score(c.card, self.main, self.main_cards, self.ctx, clump=clump), c)
            for c in candidates
        ]
        scored.sort(key=lambda pair: (-pair[0], pair[1].cmc, pair[1].name))
        return [c for _, c in scored]

    def fill(self, stage: str, eligible: Eligible, limit: int, *, clump: bool = False) -> int:
        """Greedily add up to `limit` eligible cards. Returns how many were added."""
        if limit <= 0 or self.full:
            return 0

        unused = [c for c in self.pool if c.name.lower() not in self.used and eligible(c)]
        added = 0
        for entry in self.rank(unused, clump=clump):
            if added >= limit or self.full:
                break
            if self.can_add(entry):
                self.add(entry)
                added += 1

        logger.debug(
            "assembly_stage_filled",
            extra={"stage": stage, "added": added, "main_size": len(self.main)},
        )
        return added


def assemble_main(
    candidates: Sequence[CandidateEntry],
    ctx: ScoringContext,
    caps: TypeCaps,
    nonland_cap: int,
) -> list[DeckEntry]:
    """Run the greedy stages in their fixed order."""
    state = _AssemblyState(candidates, ctx, caps, nonland_cap)
    profile = ctx.profile
    plan = ctx.plan
    required = frozenset(plan.required_packages)

    state.fill("ramp", _in_families(RoleFamily.RAMP), profile.target_ramp)
    state.fill("draw", _in_families(RoleFamily.DRAW), profile.target_draw)
    state.fill("removal", _in_families(RoleFamily.REMOVAL), profile.target_removal)
    state.fill("sweeper", _in_families(RoleFamily.SWEEPER), profile.target_sweeper)

    if ctx.archetype == Archetype.VOLTRON:
        package_targets = get_package_targets(plan, ctx.config)
        limit = package_targets.get(
            PackageId.EQUIPMENT_AURAS,
            ctx.config.package_minimums[PackageId.EQUIPMENT_AURAS.value],
        )
        state.fill("voltron", _has_type("equipment", "aura"), limit)

    tribal_picks = 0
    if ctx.tribes and ctx.archetype != Archetype.SPELLSLINGER:
        tribal_picks = state.fill(
            "tribal",
            lambda e: matches_tribe(e.card, ctx.tribes),
            profile.target_theme_synergy,
        )

    def synergy_eligible(entry: CandidateEntry) -> bool:
        if role_to_family(entry.role) in SYNERGY_FAMILIES:
            return True
        if commander_synergy_score(entry.card, ctx.themes) > 0:
            return True
        return bool(get_packages_filled_by_card(entry.card) & required)

    state.fill("synergy", synergy_eligible, profile.target_theme_synergy - tribal_picks)
    state.fill("finisher", _in_families(RoleFamily.FINISHER), profile.target_finisher)

    state.fill(
        "reserved_sorceries",
        _has_type("sorcery"),
        caps.min_sorceries - state.type_counts["sorcery"],
    )
    state.fill(
        "reserved_enchantments",
        _has_type("enchantment"),
        caps.min_enchantments - state.type_counts["enchantment"],
    )

    state.fill("utility", _in_families(*UTILITY_FAMILIES), state.remaining)

    if state.type_counts["creature"] < caps.min_creatures:
        state.fill(
            "creature_top_up",
            _has_type("creature"),
            caps.min_creatures - state.type_counts["creature"],
        )

    state.fill("generic", lambda e: True, state.remaining, clump=True)
    return state.main


def basic_land_names(identity: frozenset[str]) -> list[str]:
    """Basic land names for an identity in WUBRG order; Wastes when colorless."""
    names = [COLOR_TO_BASIC_LAND[c] for c in WUBRG if c in identity]
    return names or [COLORLESS_BASIC_LAND]


def fill_lands(
    candidates: Sequence[CandidateEntry],
    main_size: int,
    identity: frozenset[str],
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> list[DeckEntry]:
    """
    Owned nonbasic lands first (cheapest, then by name), then basics
    round-robin across the commander's colors.
    """
    slots = max(0, min(config.deck_size - main_size, config.max_lands))

    owned_lands = sorted(
        (c for c in candidates if c.role == CardRole.LAND and not is_basic_land_name(c.name)),
        key=lambda c: (c.cmc, c.name),
    )
    lands = [
        DeckEntry(
            name=c.card.name,
            role=CardRole.LAND,
            cmc=c.card.cmc,
            type_line=c.card.type_line,
            image_url=c.card.image_url,
        )
        for c in owned_lands[:slots]
    ]

    basics = basic_land_names(identity)
    for i in range(slots - len(lands)):
        name = basics[i % len(basics)]
        lands.append(DeckEntry(name=name, role=CardRole.LAND, type_line=f"Basic Land — {name}"))
    return lands


def _resolve(
    owned: Sequence[OwnedCard],
    commander: CommanderChoice,
    card_map: Mapping[str, Card] | None,
    resolver: CardResolver | None,
) -> tuple[Card, dict[str, Card]]:
    if card_map is None and resolver is None:
        raise ValueError("build_deck needs a card_map or a resolver")

    cards = {name.lower(): card for name, card in (card_map or {}).items()}

    commander_card = cards.get(commander.name.strip().lower())
    if commander_card is None and resolver is not None:
        commander_card = resolver.resolve_commander(commander.name)
    if commander_card is None:
        raise CommanderNotFoundError(commander.name)

    names = list(
        dict.fromkeys(
            o.name.strip()
            for o in owned
            if o.quantity >= 1 and not is_basic_land_name(o.name)
        )
    )
    missing = [n for n in names if n.lower() not in cards]
    if missing and resolver is not None:
        cards.update(resolver.resolve_cards(missing))
        missing = [n for n in missing if n.lower() not in cards]
    if missing:
        raise MissingCardDataError(missing)

    return commander_card, cards


def _deck_stats(
    main: Sequence[DeckEntry],
    lands: Sequence[DeckEntry],
    identity: frozenset[str],
    config: EngineConfig,
    strategy: str,
) -> DeckStats:
    entries = [*main, *lands]
    by_role = Counter(e.role.value for e in entries)
    by_family = count_by_role_family(entries)
    short_by = config.deck_size - len(entries)
    return DeckStats(
        total_nonlands=len(main),
        total_lands=len(lands),
        by_role=dict(by_role),
        by_role_family={f.value: n for f, n in by_family.items()},
        color_identity=[c for c in WUBRG if c in identity],
        short_by=short_by if short_by > 0 else None,
        strategy_explanation=strategy,
    )


def build_deck(
    owned: Sequence[OwnedCard],
    commander: CommanderChoice,
    options: BuilderOptions | None = None,
    card_map: Mapping[str, Card] | None = None,
    *,
    resolver: CardResolver | None = None,
    plan_cache: PlanCache | None = None,
    on_progress: ProgressCallback | None = None,
    rng: random.Random | None = None,
    config: EngineConfig = DEFAULT_ENGINE_CONFIG,
) -> DeckList:
    """
    Build a Commander deck from owned cards.

    Args:
        owned: The player's cards (quantity only means "available")
        commander: The chosen commander
        options: Archetype, power, meta, playstyle and legality enforcement
        card_map: Preloaded lowercased name -> Card records
        resolver: Looks up names the card_map does not have
        plan_cache: Memoizes commander plans by commander id
        on_progress: Called with ("fetching" | "building" | "improving" | "done", 0-1, message)
        rng: Randomness for local search; seeded from system entropy when omitted
        config: Engine constants

    Returns:
        DeckList with at most 99 cards; any shortfall is in stats.short_by.

    Raises:
        EmptyCollectionError: No owned cards at all
        CommanderNotFoundError: Commander cannot be resolved
        MissingCardDataError: Owned names cannot be resolved
        NoCompatibleCandidatesError: No nonland card survives filtering
    """
    options = options or BuilderOptions()

    if not any(o.quantity >= 1 for o in owned):
        raise EmptyCollectionError()

    _report(on_progress, "fetching", 0.0, "Loading cards from database…")
    commander_card, cards = _resolve(owned, commander, card_map, resolver)
    _report(on_progress, "fetching", 1.0, "Cards loaded")

    plan = get_commander_plan_with_cache(commander_card, plan_cache, config)
    profile = get_profile_targets(plan, options, config)
    role_targets = role_targets_from_profile(profile)
    ctx = ScoringContext(
        plan=plan,
        profile=profile,
        role_targets=role_targets,
        archetype=options.archetype,
        config=config,
    )
    caps = config.caps_for(options.archetype.value)
    identity = commander_card.color_identity

    candidates, _ = shortlist_for_build(
        owned,
        cards,
        commander_card,
        plan,
        enforce_legality=options.enforce_legality,
        config=config,
    )
    if not any(role_to_family(c.role) != RoleFamily.LAND for c in candidates):
        raise NoCompatibleCandidatesError(owned_count=len(owned))

    _report(on_progress, "building", 0.5, "Building deck…")
    nonland_cap = config.deck_size - profile.target_land_count
    main = assemble_main(candidates, ctx, caps, nonland_cap)
    lands = fill_lands(candidates, len(main), identity, config)

    _report(on_progress, "improving", 0.0, "Optimizing deck…")
    result = run_improvement_cycles(
        main,
        candidates,
        cards,
        ctx,
        caps,
        rng=rng,
        on_progress=lambda message: _report(on_progress, "improving", 0.5, message),
    )
    main = result.main

    main = [
        replace(e, reason=explain_pick(e, cards.get(e.name.lower()), main, plan, role_targets))
        for e in main
    ]
    lands = [replace(e, reason=explain_land(e, cards.get(e.name.lower()), identity)) for e in lands]

    stats = _deck_stats(main, lands, identity, config, summarize_strategy(plan, profile, options))

    logger.info(
        "deck_built",
        extra={
            "commander": commander_card.name,
            "nonlands": len(main),
            "lands": len(lands),
            "short_by": stats.short_by,
            "swaps": result.swaps,
        },
    )
    _report(on_progress, "done", 1.0, "Done")

    return DeckList(
        commander=CommanderChoice(
            name=commander_card.name,
            color_identity=identity,
            id=commander.id or commander_card.id,
            image_url=commander.image_url or commander_card.image_url,
            type_line=commander_card.type_line,
        ),
        main=main,
        lands=lands,
        stats=stats,
        legality_enforced=options.enforce_legality,
    )
