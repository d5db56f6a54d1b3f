"""User routes: profile, preferences, analytics, personality insights, persona."""

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Query

from api.rate_limiter import enforce_rate_limit
from api.services import Services, get_services
from core import InvalidInputError
from memory.conversation_service import parse_time_range
from schemas import AnalyticsResponse, PersonaResponse

router = APIRouter(prefix="/api/user", tags=["user"], dependencies=[Depends(enforce_rate_limit)])


@router.get("/profile/{user_id}")
async def get_profile(user_id: str, services: Services = Depends(get_services)) -> Dict[str, Any]:
    profile = await services.profiles.get(user_id)
    return profile.to_document()


@router.put("/preferences/{user_id}")
async def update_preferences(
    user_id: str,
    updates: Any = Body(...),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    if not isinstance(updates, dict) or not updates:
        raise InvalidInputError("body", "expected a non-empty object of profile fields")
    profile = await services.profiles.update(user_id, updates)
    return profile.to_document()


@router.get("/analytics/{user_id}", response_model=AnalyticsResponse)
async def get_analytics(
    user_id: str,
    time_range: str = Query("7d", alias="timeRange"),
    services: Services = Depends(get_services),
):
    days = parse_time_range(time_range)
    analytics = await services.conversations.analytics(user_id, days)
    return AnalyticsResponse(analytics=analytics, time_range=time_range, user_id=user_id)


@router.get("/insights/{user_id}")
async def get_insights(user_id: str, services: Services = Depends(get_services)) -> Dict[str, Any]:
    profile = await services.profiles.get(user_id)
    insights = profile.personality_insights()
    return {
        "communicationStyle": insights["communicationStyle"],
        "interests": insights["interests"],
        "recentExperiences": [e.to_document() for e in insights["recentExperiences"]],
        "importantFacts": [f.to_document() for f in insights["importantFacts"]],
        "emotionalPatterns": [p.to_document() for p in insights["emotionalPatterns"]],
        "userId": user_id,
    }


@router.post("/persona/{user_id}", response_model=PersonaResponse)
async def generate_persona(user_id: str, services: Services = Depends(get_services)):
    profile = await services.profiles.get(user_id)
    persona = await services.persona_generator.generate(profile)
    if not profile.is_temporary:
        await services.profiles.set_persona(user_id, persona)
    return PersonaResponse(persona=persona, user_id=user_id, generated=datetime.utcnow())
