"""
Chat endpoints for the parent-facing assistant.

Thin HTTP layer over ConversationOrchestrator; all conversation behaviour
lives in core.conversation.
"""

from datetime import date
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
import logging

from config import settings
from core.chat.responder import ResponseGenerator
from core.conversation import AgeNormalizer, DialogueStateResolver, SessionStore, StorageConfig
from core.conversation.pipeline import ConversationOrchestrator
from core.database import db
from core.errors import InvalidInput
from core.services.completion_service import completion_service
from core.services.doctor_directory import PostgresDoctorDirectory, StaticDoctorDirectory
from core.services.profile_store import InMemoryProfileStore, PostgresProfileStore
from models.schemas import ExtractionCandidate, NormalizedAge

logger = logging.getLogger(__name__)

router = APIRouter()


class ChatRequest(BaseModel):
    """Chat request model"""
    family_id: str
    message: str


class ChatResponse(BaseModel):
    """Chat response model"""
    reply: str
    extracted: Optional[ExtractionCandidate] = None


class ChildInfoResponse(BaseModel):
    name: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    free_text_notes: Optional[str] = None
    age: Optional[NormalizedAge] = None


@lru_cache(maxsize=1)
def get_orchestrator() -> ConversationOrchestrator:
    """Build the process-wide orchestrator from settings"""
    normalizer = AgeNormalizer()
    if db.configured:
        profile_store = PostgresProfileStore(db)
        doctor_directory = PostgresDoctorDirectory(db)
    else:
        logger.warning("DATABASE_URL not configured, using in-memory profile store")
        profile_store = InMemoryProfileStore()
        doctor_directory = StaticDoctorDirectory()

    responder = ResponseGenerator(
        completion=completion_service,
        resolver=DialogueStateResolver(),
        normalizer=normalizer,
    )
    return ConversationOrchestrator(
        session_store=SessionStore(StorageConfig(history_window=settings.HISTORY_WINDOW)),
        profile_store=profile_store,
        doctor_directory=doctor_directory,
        responder=responder,
        normalizer=normalizer,
    )


@router.post("/chat", response_model=ChatResponse)
async def chat_endpoint(
    request: ChatRequest,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    """Handle one parent message and return the assistant reply"""
    logger.info(
        "Chat request received",
        extra={"family_id": request.family_id, "message_length": len(request.message)}
    )
    try:
        result = await orchestrator.handle_message(request.family_id, request.message)
    except InvalidInput as e:
        logger.warning(f"Validation error in chat request: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))

    return ChatResponse(reply=result.reply, extracted=result.extracted)


@router.delete("/chat/{family_id}")
async def clear_conversation(
    family_id: str,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    """Forget the in-memory conversation for a family"""
    orchestrator.clear_conversation(family_id)
    return {"cleared": True, "family_id": family_id}


@router.get("/chat/{family_id}/child", response_model=ChildInfoResponse)
async def get_child_info(
    family_id: str,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    """Active child profile with its computed age"""
    profile = await orchestrator.get_child_info(family_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="No child information for this family")

    age = orchestrator.normalizer.age(profile.date_of_birth) if profile.date_of_birth else None
    return ChildInfoResponse(
        name=profile.name,
        date_of_birth=profile.date_of_birth,
        gender=profile.gender.value if profile.gender else None,
        free_text_notes=profile.free_text_notes,
        age=age,
    )
