"""
Deck API endpoints.

Builds Commander decks from a posted collection and ranks upgrade
suggestions for an existing deck.
"""

import logging
import random
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from commanderforge.config import DEFAULT_ENGINE_CONFIG
from commanderforge.db import get_cached_plan, set_cached_plan
from commanderforge.db.database import get_session
from commanderforge.filtering.candidate_shortlist import collect_candidates
from commanderforge.models.card import Card, CommanderChoice, OwnedCard
from commanderforge.models.deck import DeckEntry, DeckList
from commanderforge.models.failure import CommanderNotFoundError
from commanderforge.models.profile import BuilderOptions
from commanderforge.services.card_database import CardResolver, get_card_database
from commanderforge.services.commander_plan import get_commander_plan_with_cache
from commanderforge.services.deck_builder import build_deck
from commanderforge.services.plan_cache import InMemoryPlanCache
from commanderforge.services.profile_targets import get_profile_targets, role_targets_from_profile
from commanderforge.services.role_classifier import assign_role
from commanderforge.services.upgrade_suggestions import rank_upgrade_suggestions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/decks", tags=["decks"])


def get_resolver() -> CardResolver:
    """
    Dependency that provides the card database.

    Returns 503 if the bulk data has not been downloaded yet.
    """
    try:
        return get_card_database()
    except FileNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e),
        ) from e


class OwnedCardRequest(BaseModel):
    """One owned card."""

    name: str = Field(..., min_length=1)
    quantity: int = Field(default=1, ge=0)
    set_code: str | None = None
    collector_number: str | None = None


class BuildDeckRequest(BaseModel):
    """Request model for building a deck."""

    commander: str = Field(..., min_length=1, description="Commander card name")
    owned: list[OwnedCardRequest] = Field(default_factory=list)
    options: BuilderOptions = Field(default_factory=BuilderOptions)
    seed: int | None = Field(default=None, description="Seed for reproducible local search")


class UpgradeSuggestionsRequest(BaseModel):
    """Request model for upgrade suggestions."""

    commander: str = Field(..., min_length=1)
    owned: list[OwnedCardRequest] = Field(default_factory=list)
    main: list[str] = Field(default_factory=list, description="Current nonland card names")
    options: BuilderOptions = Field(default_factory=BuilderOptions)
    limit: int = Field(default=20, ge=5, le=50)


class CommanderResponse(BaseModel):
    name: str
    color_identity: list[str]
    image_url: str | None = None
    type_line: str | None = None


class DeckEntryResponse(BaseModel):
    name: str
    quantity: int = 1
    role: str
    cmc: float = 0.0
    type_line: str | None = None
    image_url: str | None = None
    reason: str | None = None


class DeckStatsResponse(BaseModel):
    total_nonlands: int
    total_lands: int
    by_role: dict[str, int] = Field(default_factory=dict)
    by_role_family: dict[str, int] = Field(default_factory=dict)
    color_identity: list[str] = Field(default_factory=list)
    short_by: int | None = None
    strategy_explanation: str | None = None


class DeckListResponse(BaseModel):
    """Response model for a built deck."""

    commander: CommanderResponse
    main: list[DeckEntryResponse]
    lands: list[DeckEntryResponse]
    stats: DeckStatsResponse
    legality_enforced: bool
    total_cards: int


class UpgradeSuggestionResponse(BaseModel):
    name: str
    impact_score: float
    role: str


class UpgradeSuggestionsResponse(BaseModel):
    commander: str
    suggestions: list[UpgradeSuggestionResponse]


def _owned(cards: list[OwnedCardRequest]) -> list[OwnedCard]:
    return [
        OwnedCard(
            name=c.name,
            quantity=c.quantity,
            set_code=c.set_code,
            collector_number=c.collector_number,
        )
        for c in cards
    ]


def _entry_response(entry: DeckEntry) -> DeckEntryResponse:
    return DeckEntryResponse(
        name=entry.name,
        quantity=entry.quantity,
        role=entry.role.value,
        cmc=entry.cmc,
        type_line=entry.type_line,
        image_url=entry.image_url,
        reason=entry.reason,
    )


def deck_to_response(deck: DeckList) -> DeckListResponse:
    """Convert a built deck to its API shape."""
    stats = deck.stats
    return DeckListResponse(
        commander=CommanderResponse(
            name=deck.commander.name,
            color_identity=stats.color_identity,
            image_url=deck.commander.image_url,
            type_line=deck.commander.type_line,
        ),
        main=[_entry_response(e) for e in deck.main],
        lands=[_entry_response(e) for e in deck.lands],
        stats=DeckStatsResponse(
            total_nonlands=stats.total_nonlands,
            total_lands=stats.total_lands,
            by_role=stats.by_role,
            by_role_family=stats.by_role_family,
            color_identity=stats.color_identity,
            short_by=stats.short_by,
            strategy_explanation=stats.strategy_explanation,
        ),
        legality_enforced=deck.legality_enforced,
        total_cards=deck.total_cards,
    )


async def _load_plan_cache(
    session: AsyncSession, commander: Card | None
) -> InMemoryPlanCache:
    if commander is None:
        return InMemoryPlanCache()
    cached = await get_cached_plan(session, commander.id, DEFAULT_ENGINE_CONFIG.version)
    return InMemoryPlanCache({commander.id: cached} if cached else None)


async def _persist_plan_cache(session: AsyncSession, cache: InMemoryPlanCache) -> None:
    for commander_id in cache.writes:
        plan = cache.get(commander_id)
        if plan is not None:
            await set_cached_plan(session, commander_id, plan, DEFAULT_ENGINE_CONFIG.version)


@router.post("/build", response_model=DeckListResponse)
async def build_deck_endpoint(
    request: BuildDeckRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    resolver: Annotated[CardResolver, Depends(get_resolver)],
) -> DeckListResponse:
    """
    Build a 99-card deck for a commander from the posted collection.

    Known build failures (missing card data, unknown commander, empty pool)
    are raised as KnownError subclasses and rendered by the error handler.
    """
    cache = await _load_plan_cache(session, resolver.resolve_commander(request.commander))
    rng = random.Random(request.seed) if request.seed is not None else None

    deck = build_deck(
        _owned(request.owned),
        CommanderChoice(name=request.commander),
        request.options,
        resolver=resolver,
        plan_cache=cache,
        rng=rng,
    )
    await _persist_plan_cache(session, cache)

    logger.info(
        "deck_build_request_completed",
        extra={"commander": deck.commander.name, "total_cards": deck.total_cards},
    )
    return deck_to_response(deck)


@router.post("/upgrade-suggestions", response_model=UpgradeSuggestionsResponse)
async def upgrade_suggestions_endpoint(
    request: UpgradeSuggestionsRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    resolver: Annotated[CardResolver, Depends(get_resolver)],
) -> UpgradeSuggestionsResponse:
    """
    Rank owned cards that are not in the deck by the impact of adding them.

    Owned names the card database does not know are ignored.
    """
    commander = resolver.resolve_commander(request.commander)
    if commander is None:
        raise CommanderNotFoundError(request.commander)

    cache = await _load_plan_cache(session, commander)
    plan = get_commander_plan_with_cache(commander, cache)
    await _persist_plan_cache(session, cache)

    profile = get_profile_targets(plan, request.options)
    owned = _owned(request.owned)
    card_map = resolver.resolve_cards([*(o.name for o in owned), *request.main])

    candidates = collect_candidates(
        owned, card_map, commander, enforce_legality=request.options.enforce_legality
    )
    main = [
        DeckEntry(name=card.name, role=assign_role(card), cmc=card.cmc, type_line=card.type_line)
        for name in request.main
        if (card := card_map.get(name.lower())) is not None
    ]

    suggestions = rank_upgrade_suggestions(
        [c.card for c in candidates if not c.card.is_land],
        main,
        plan,
        profile,
        role_targets_from_profile(profile),
        plan.primary_themes,
        card_map,
        limit=request.limit,
    )
    return UpgradeSuggestionsResponse(
        commander=commander.name,
        suggestions=[
            UpgradeSuggestionResponse(name=s.name, impact_score=s.impact_score, role=s.role.value)
            for s in suggestions
        ],
    )
