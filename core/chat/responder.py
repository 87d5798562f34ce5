"""Reply generation: external completion service with a deterministic fallback"""
import asyncio
import logging
import re
from typing import List, Optional

from config import settings
from core.chat import fallback_templates as templates
from core.conversation.orchestration import DialogueStateResolver
from core.conversation.understanding import AgeNormalizer
from core.errors import CompletionError
from core.services.completion_service import CompletionService
from models.schemas import ChildProfile, DialogueSituation, Doctor, Turn, TurnRole

logger = logging.getLogger(__name__)

_CJK = re.compile(r"[一-鿿]")

FEVER_KEYWORDS = ("fever", "发烧", "发热")
COUGH_KEYWORDS = ("cough", "咳嗽")
DOCTOR_KEYWORDS = ("doctor", "pediatrician", "connect", "推荐", "医生")


def detect_language(text: str) -> str:
    return templates.CHINESE if _CJK.search(text or "") else templates.ENGLISH


def _contains_any(text: str, keywords) -> bool:
    lowered = (text or "").lower()
    return any(keyword in lowered for keyword in keywords)


class ResponseGenerator:
    """Generate the assistant's reply for one turn.

    Tries the completion service when a credential is configured. Every
    completion failure falls back to templates chosen by the dialogue
    situation; the result is never empty.
    """

    def __init__(
        self,
        completion: Optional[CompletionService] = None,
        resolver: Optional[DialogueStateResolver] = None,
        normalizer: Optional[AgeNormalizer] = None,
        timeout_seconds: Optional[float] = None,
        max_doctors: Optional[int] = None,
    ):
        self.completion = completion
        self.resolver = resolver or DialogueStateResolver()
        self.normalizer = normalizer or AgeNormalizer()
        self.timeout_seconds = timeout_seconds or settings.COMPLETION_TIMEOUT_SECONDS
        self.max_doctors = max_doctors or settings.MAX_RECOMMENDED_DOCTORS

    async def generate(
        self,
        history: List[Turn],
        profile: Optional[ChildProfile],
        doctors: Optional[List[Doctor]] = None,
    ) -> str:
        """
        Reply to the latest user turn in history.

        Args:
            history: Recent turns in order, ending with the user's message
            profile: Persisted profile snapshot, or None
            doctors: Recommendable doctors (may be empty)

        Returns:
            Non-empty reply text
        """
        doctors = (doctors or [])[:self.max_doctors]
        latest_user = self._latest_user_message(history)

        if self.completion is not None and self.completion.available:
            system_prompt = self.build_system_prompt(profile, doctors)
            try:
                reply = await asyncio.wait_for(
                    self.completion.complete(system_prompt, history),
                    timeout=self.timeout_seconds,
                )
                if reply and reply.strip():
                    return reply.strip()
                logger.warning("Completion service returned an empty reply, using fallback")
            except CompletionError as e:
                logger.warning(f"Completion failed ({type(e).__name__}), using fallback: {str(e)}")
            except asyncio.TimeoutError:
                logger.warning(f"Completion timed out after {self.timeout_seconds}s, using fallback")
            except Exception as e:
                logger.error(f"Unexpected completion error, using fallback: {str(e)}", exc_info=True)
        else:
            logger.info("Completion service not configured, using rule-based response")

        reply = self.fallback_response(latest_user, profile, doctors)
        if not reply or not reply.strip():
            return templates.GENERIC_APOLOGY[detect_language(latest_user)]
        return reply

    @staticmethod
    def _latest_user_message(history: List[Turn]) -> str:
        for turn in reversed(history):
            if turn.role == TurnRole.USER:
                return turn.content
        return ""

    def build_system_prompt(self, profile: Optional[ChildProfile], doctors: List[Doctor]) -> str:
        """Instructions, the known child facts and the recommendable doctors"""
        prompt = """You are a helpful pediatric health assistant for the ParentDoctor app. Your role is to:
1. Provide general health advice and guidance to parents
2. Ask questions to gather information about their child when needed
3. Extract and remember child information from conversations

IMPORTANT: Before giving specific health advice, you should ask about:
- Child's name
- Child's date of birth (or age)
- Child's gender
- Current symptoms or concerns

When you have enough information, provide helpful, general health advice. Always remind parents that for serious concerns, they should consult with a doctor.

Current child information in database: """

        if profile is not None and not profile.is_empty():
            prompt += f"\n- Name: {profile.name or 'Not provided'}\n"
            if profile.date_of_birth:
                age = self.normalizer.age(profile.date_of_birth)
                prompt += f"- Date of Birth: {profile.date_of_birth.isoformat()} (age: {age.describe()})\n"
            else:
                prompt += "- Date of Birth: Not provided\n"
            prompt += f"- Gender: {profile.gender.value if profile.gender else 'Not provided'}\n"
            prompt += f"- Medical Record: {profile.free_text_notes or 'None'}\n"
            missing = self.resolver.missing_fields(profile)
            if missing:
                prompt += f"Still needed: {', '.join(missing)}\n"
        else:
            prompt += "\nNo child information in database yet. Please ask the parent for this information.\n"

        if doctors:
            prompt += "\nDoctors you may recommend when the parent needs a consultation:\n"
            for doctor in doctors:
                prompt += f"- {self._format_doctor(doctor)}\n"
        else:
            prompt += "\nNo doctors are currently available for recommendation.\n"

        prompt += "\nKeep your responses concise, friendly, and helpful. Ask one question at a time."
        return prompt

    def fallback_response(
        self,
        latest_user_message: str,
        profile: Optional[ChildProfile],
        doctors: List[Doctor],
    ) -> str:
        """Template reply for the current dialogue situation"""
        language = detect_language(latest_user_message)
        situation = self.resolver.resolve(profile)
        name = (profile.name if profile else None) or templates.CHILD_PLACEHOLDER[language]

        wants_doctor = _contains_any(latest_user_message, DOCTOR_KEYWORDS)
        has_symptom = _contains_any(latest_user_message, FEVER_KEYWORDS + COUGH_KEYWORDS)

        if situation != DialogueSituation.READY:
            reply = templates.SITUATION_TEMPLATES[language][situation].format(name=name)
        elif _contains_any(latest_user_message, FEVER_KEYWORDS):
            reply = templates.FEVER_ADVICE[language].format(name=name)
        elif _contains_any(latest_user_message, COUGH_KEYWORDS):
            reply = templates.COUGH_ADVICE[language].format(name=name)
        elif wants_doctor:
            reply = templates.DOCTOR_REQUEST[language].format(name=name)
        else:
            age = self.normalizer.age(profile.date_of_birth).describe()
            reply = templates.SITUATION_TEMPLATES[language][situation].format(name=name, age=age)

        if wants_doctor or has_symptom:
            snippet = self.doctor_snippet(doctors, language, explicit_request=wants_doctor)
            if snippet:
                reply = f"{reply}\n\n{snippet}"
        return reply

    def doctor_snippet(self, doctors: List[Doctor], language: str, explicit_request: bool = False) -> str:
        if not doctors:
            # Only an explicit request deserves a "nobody available" note
            return templates.NO_DOCTORS_AVAILABLE[language] if explicit_request else ""
        lines = [templates.DOCTOR_SNIPPET_HEADER[language]]
        lines.extend(f"• {self._format_doctor(doctor)}" for doctor in doctors[:self.max_doctors])
        return "\n".join(lines)

    @staticmethod
    def _format_doctor(doctor: Doctor) -> str:
        details = ", ".join(part for part in (doctor.specialty, doctor.location) if part)
        return f"Dr. {doctor.name} ({details})" if details else f"Dr. {doctor.name}"
