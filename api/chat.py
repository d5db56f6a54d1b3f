"""Chat routes: send a message, read history, clear a conversation."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.rate_limiter import enforce_rate_limit
from api.services import Services, get_services
from schemas import (
    ChatMessageRequest,
    ChatMessageResponse,
    ClearConversationResponse,
    HistoryResponse,
)

router = APIRouter(prefix="/api/chat", tags=["chat"], dependencies=[Depends(enforce_rate_limit)])


@router.post("/message", response_model=ChatMessageResponse, response_model_exclude_none=True)
async def send_message(body: ChatMessageRequest, services: Services = Depends(get_services)):
    result = await services.orchestrator.handle_message(body.message, body.user_id, body.session_id)
    return ChatMessageResponse(
        message=result.reply,
        response=result.reply,
        session_id=result.session_id,
        timestamp=result.timestamp,
        emotion_analysis=result.emotion,
        context=result.context,
        note=result.note,
    )


@router.get("/history/{user_id}", response_model=HistoryResponse, response_model_exclude_none=True)
@router.get("/history/{user_id}/{session_id}", response_model=HistoryResponse, response_model_exclude_none=True)
async def get_history(
    user_id: str,
    session_id: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    services: Services = Depends(get_services),
):
    limit = limit or services.history_limit
    messages = await services.conversations.history(user_id, session_id, limit)
    return HistoryResponse(messages=messages, count=len(messages), session_id=session_id)


@router.delete("/conversation/{user_id}", response_model=ClearConversationResponse, response_model_exclude_none=True)
@router.delete("/conversation/{user_id}/{session_id}", response_model=ClearConversationResponse, response_model_exclude_none=True)
async def clear_conversation(
    user_id: str,
    session_id: Optional[str] = None,
    services: Services = Depends(get_services),
):
    cleared = await services.conversations.clear(user_id, session_id)
    message = "Conversation cleared successfully" if cleared else "Conversation could not be cleared"
    return ClearConversationResponse(message=message, cleared=cleared, session_id=session_id)
