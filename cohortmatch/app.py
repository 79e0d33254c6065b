from __future__ import annotations

import logging
import time

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events, record_event
from .errors import CohortMatchError, InvalidInput, NotFound, StoreUnavailable
from .matching.config import DEFAULT_MATCHING_CONFIG, MatchingConfig
from .matching.models import (
    CandidateItem,
    CandidateRequest,
    CandidateResponse,
    MatchItem,
    MatchListResponse,
    SwipeRequest,
    SwipeResponse,
    canonical_pair,
)
from .matching.ranking import rank_candidates
from .matching.resolver import list_matches, record_swipe, require_code
from .profiles.models import Profile, ProfileCreate
from .profiles.normalization import normalize_code
from .profiles.registration import register_profile
from .storage.base import InteractionLog, ProfileStore
from .storage.dependencies import get_interaction_log, get_profile_store

logger = logging.getLogger(__name__)

app = FastAPI(title="Cohort Match API", version="1.0.0")


def get_matching_config() -> MatchingConfig:
    return DEFAULT_MATCHING_CONFIG


# ── Error mapping ────────────────────────────────────────────────────────


@app.exception_handler(NotFound)
async def _not_found(request: Request, exc: NotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidInput)
async def _invalid_input(request: Request, exc: InvalidInput) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(StoreUnavailable)
async def _store_unavailable(request: Request, exc: StoreUnavailable) -> JSONResponse:
    logger.error("Store unavailable: %s", exc, exc_info=exc)
    return JSONResponse(status_code=503, content={"detail": "Storage is temporarily unavailable"})


@app.exception_handler(CohortMatchError)
async def _cohort_error(request: Request, exc: CohortMatchError) -> JSONResponse:
    return JSONResponse(status_code=500, content={"detail": str(exc)})


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metadata")
def metadata(profiles: ProfileStore = Depends(get_profile_store)) -> dict:
    everyone = profiles.get_all()
    campuses = sorted({p.campus.strip() for p in everyone if p.campus and p.campus.strip()})
    countries = sorted({p.country.strip() for p in everyone if p.country and p.country.strip()})
    interests = sorted({tag for p in everyone for tag in p.interests})
    return {
        "members": len(everyone),
        "campuses": campuses,
        "countries": countries,
        "interests": interests,
    }


# ── Profiles ─────────────────────────────────────────────────────────────


@app.post("/profiles", response_model=Profile, status_code=201)
def create_profile(
    body: ProfileCreate,
    profiles: ProfileStore = Depends(get_profile_store),
) -> Profile:
    profile = register_profile(profiles, body)
    record_event("registration", {"code": profile.code, "campus": profile.campus})
    return profile


@app.get("/profiles/{code}", response_model=Profile)
def get_profile(code: str, profiles: ProfileStore = Depends(get_profile_store)) -> Profile:
    code = require_code(code)
    profile = profiles.get(code)
    if profile is None:
        raise NotFound(code)
    return profile


@app.get("/profiles/{code}/matches", response_model=MatchListResponse)
def matches(
    code: str,
    profiles: ProfileStore = Depends(get_profile_store),
    log: InteractionLog = Depends(get_interaction_log),
) -> MatchListResponse:
    code = require_code(code)
    if profiles.get(code) is None:
        raise NotFound(code)
    items = [
        MatchItem(partner=partner, matched_at=matched_at)
        for partner, matched_at in list_matches(profiles, log, code)
    ]
    return MatchListResponse(matches=items, total=len(items))


# ── Matching ─────────────────────────────────────────────────────────────


@app.post("/candidates", response_model=CandidateResponse)
def candidates(
    body: CandidateRequest,
    profiles: ProfileStore = Depends(get_profile_store),
    log: InteractionLog = Depends(get_interaction_log),
    config: MatchingConfig = Depends(get_matching_config),
) -> CandidateResponse:
    start_time = time.time()

    ranked = rank_candidates(profiles, log, body.code, body.limit, config)
    fallback = any(item.fallback for item in ranked)
    items = [
        CandidateItem(profile=item.profile, score=round(item.score, 4), boosted=item.boosted)
        for item in ranked
    ]

    requester = profiles.get(body.code)
    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    record_event("candidates", {
        "code": requester.code if requester else body.code,
        "campus": requester.campus if requester else None,
        "limit": body.limit,
        "results_returned": len(items),
        "fallback": fallback,
        "response_time_ms": elapsed_ms,
    })

    return CandidateResponse(candidates=items, fallback=fallback)


@app.post("/swipes", response_model=SwipeResponse)
def swipes(
    body: SwipeRequest,
    profiles: ProfileStore = Depends(get_profile_store),
    log: InteractionLog = Depends(get_interaction_log),
) -> SwipeResponse:
    result = record_swipe(
        profiles,
        log,
        body.swiper,
        body.target,
        body.direction,
        require_existing=True,
    )

    record_event("swipe", {
        "swiper": normalize_code(body.swiper),
        "target": normalize_code(body.target),
        "direction": body.direction.strip().upper(),
        "matched": result.matched,
    })
    if result.created:
        record_event("match", {"members": list(canonical_pair(body.swiper, body.target))})

    return SwipeResponse(matched=result.matched, partner=result.partner)


# ── Admin ────────────────────────────────────────────────────────────────


@app.get("/analytics")
def analytics() -> dict:
    return compute_analytics(get_events())
