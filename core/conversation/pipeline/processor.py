"""
Main conversation processing pipeline.

This module handles one inbound parent message end to end: it records the
turn, produces the assistant reply, re-extracts child facts from the whole
dialogue, normalizes any age or birth date, reconciles the result with the
persisted profile and saves it when something changed.
"""

import logging
import time
from typing import List, Optional

from core.chat.responder import ResponseGenerator, detect_language
from core.chat import fallback_templates as templates
from core.conversation.context import SessionStore
from core.conversation.orchestration import DialogueStateResolver, ProfileReconciler
from core.conversation.understanding import AgeNormalizer, EntityExtractor
from core.errors import InvalidInput, StoreError
from core.services.doctor_directory import DoctorDirectory, StaticDoctorDirectory
from core.services.profile_store import InMemoryProfileStore, ProfileStore
from models.schemas import ChatResult, ChildProfile, Doctor, ExtractionCandidate, Turn, TurnRole

logger = logging.getLogger(__name__)


class ConversationOrchestrator:
    """
    Entry point of the chat engine.

    Messages for the same family are handled one at a time under that
    family's session lock; different families run concurrently. Only
    InvalidInput reaches the caller, every other failure degrades to a
    friendly reply.
    """

    def __init__(
        self,
        session_store: Optional[SessionStore] = None,
        profile_store: Optional[ProfileStore] = None,
        doctor_directory: Optional[DoctorDirectory] = None,
        responder: Optional[ResponseGenerator] = None,
        extractor: Optional[EntityExtractor] = None,
        normalizer: Optional[AgeNormalizer] = None,
        reconciler: Optional[ProfileReconciler] = None,
    ):
        self.session_store = session_store or SessionStore()
        self.profile_store = profile_store or InMemoryProfileStore()
        self.doctor_directory = doctor_directory or StaticDoctorDirectory()
        self.normalizer = normalizer or AgeNormalizer()
        self.responder = responder or ResponseGenerator(
            resolver=DialogueStateResolver(), normalizer=self.normalizer
        )
        self.extractor = extractor or EntityExtractor()
        self.reconciler = reconciler or ProfileReconciler()

        self.metrics = {
            "total_processed": 0,
            "profile_writes": 0,
            "store_failures": 0,
            "failed": 0,
        }

    async def handle_message(self, family_id: str, user_message: str) -> ChatResult:
        """
        Process one parent message.

        Args:
            family_id: Family identifier
            user_message: The parent's message

        Returns:
            The reply plus the extraction candidate (None when nothing was found)

        Raises:
            InvalidInput: family_id or user_message is empty or blank
        """
        if not family_id or not str(family_id).strip():
            raise InvalidInput("family_id must not be empty")
        if not user_message or not user_message.strip():
            raise InvalidInput("message must not be empty")

        start_time = time.time()
        self.metrics["total_processed"] += 1

        async with self.session_store.lock(family_id):
            try:
                result = await self._process(family_id, user_message)
            except Exception as e:
                self.metrics["failed"] += 1
                logger.error(
                    f"Error handling chat message for family {family_id}: {str(e)}",
                    exc_info=True
                )
                result = ChatResult(reply=templates.GENERIC_APOLOGY[detect_language(user_message)])

        logger.info(
            f"Handled message for family {family_id} in {(time.time() - start_time) * 1000:.1f}ms"
        )
        return result

    async def _process(self, family_id: str, user_message: str) -> ChatResult:
        self.session_store.append(family_id, Turn(role=TurnRole.USER, content=user_message))

        persisted, read_ok = await self._load_profile(family_id)
        doctors = await self._load_doctors()

        reply = await self.responder.generate(
            self.session_store.recent_window(family_id), persisted, doctors
        )
        self.session_store.append(family_id, Turn(role=TurnRole.ASSISTANT, content=reply))

        candidate = self.extractor.extract_from_turns(self.session_store.history(family_id))
        extracted = candidate if candidate.has_any() else None

        if extracted is not None and read_ok:
            await self._reconcile_and_save(family_id, candidate, persisted)
        elif extracted is not None:
            logger.warning(f"Skipping profile save for family {family_id}: profile could not be read")

        return ChatResult(reply=reply, extracted=extracted)

    def candidate_profile(self, candidate: ExtractionCandidate) -> ChildProfile:
        """Profile fields implied by a candidate after age normalization"""
        date_of_birth = self.normalizer.normalize(candidate.raw_temporal_text, candidate.explicit_date)
        return ChildProfile(
            name=candidate.name,
            date_of_birth=date_of_birth,
            gender=candidate.gender,
        )

    async def _reconcile_and_save(
        self,
        family_id: str,
        candidate: ExtractionCandidate,
        persisted: Optional[ChildProfile],
    ) -> None:
        result = self.reconciler.reconcile(self.candidate_profile(candidate), persisted)
        if not result.changed:
            return
        try:
            await self.profile_store.upsert_profile(family_id, result.merged)
            self.metrics["profile_writes"] += 1
        except StoreError as e:
            self.metrics["store_failures"] += 1
            logger.error(f"Error saving child info: {str(e)}")

    async def _load_profile(self, family_id: str):
        try:
            return await self.profile_store.get_profile(family_id), True
        except StoreError as e:
            self.metrics["store_failures"] += 1
            logger.error(f"Error fetching child info: {str(e)}")
            return None, False

    async def _load_doctors(self) -> List[Doctor]:
        try:
            return await self.doctor_directory.list_recommendable()
        except StoreError as e:
            logger.warning(f"Doctor directory unavailable: {str(e)}")
            return []

    async def get_child_info(self, family_id: str) -> Optional[ChildProfile]:
        """Active persisted profile, or None when absent or unreadable"""
        profile, _ = await self._load_profile(family_id)
        return profile

    def clear_conversation(self, family_id: str) -> None:
        """Forget the in-memory dialogue for a family"""
        self.session_store.clear(family_id)
