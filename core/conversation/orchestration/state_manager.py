"""
Dialogue state resolution.

The situation is recomputed from the persisted profile on every turn instead
of being stored, so it always agrees with the latest facts, including edits
made outside the conversation.
"""

from typing import Optional
import logging

from models.schemas import ChildProfile, DialogueSituation

logger = logging.getLogger(__name__)


class DialogueStateResolver:
    """Maps profile completeness to the next thing the assistant needs"""

    def resolve(self, profile: Optional[ChildProfile]) -> DialogueSituation:
        """
        Priority order: name, then date of birth, then gender.

        Args:
            profile: Active persisted profile or None

        Returns:
            The current dialogue situation
        """
        if profile is None or not profile.name:
            return DialogueSituation.NEED_NAME
        if profile.date_of_birth is None:
            return DialogueSituation.NEED_AGE
        if profile.gender is None:
            return DialogueSituation.NEED_GENDER
        return DialogueSituation.READY

    def missing_fields(self, profile: Optional[ChildProfile]) -> list:
        """Names of the required fields that are still empty, in asking order"""
        profile = profile or ChildProfile()
        missing = []
        if not profile.name:
            missing.append("name")
        if profile.date_of_birth is None:
            missing.append("date_of_birth")
        if profile.gender is None:
            missing.append("gender")
        return missing
