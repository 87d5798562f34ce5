from __future__ import annotations

import asyncio
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from core.chat.responder import ResponseGenerator  # noqa: E402
from core.conversation import AgeNormalizer, DialogueStateResolver, SessionStore  # noqa: E402
from core.conversation.pipeline import ConversationOrchestrator  # noqa: E402
from core.errors import StoreError  # noqa: E402
from core.services.doctor_directory import StaticDoctorDirectory  # noqa: E402
from core.services.profile_store import InMemoryProfileStore, ProfileStore  # noqa: E402
from models.schemas import ChildProfile, Doctor, Turn  # noqa: E402

FIXED_TODAY = date(2024, 6, 15)


class StubCompletion:
    """Completion client returning a canned reply or raising a given error"""

    def __init__(self, reply: str = "", error: Optional[Exception] = None, delay: float = 0.0):
        self.reply = reply
        self.error = error
        self.delay = delay
        self.calls: List[tuple] = []
        self.active = 0
        self.max_active = 0
        self.available = True

    async def complete(self, system_prompt: str, history: List[Turn]) -> str:
        self.calls.append((system_prompt, list(history)))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.error is not None:
                raise self.error
            return self.reply
        finally:
            self.active -= 1


class FailingProfileStore(ProfileStore):
    """Store whose reads and/or writes fail"""

    def __init__(self, fail_reads: bool = True, fail_writes: bool = True, profile: Optional[ChildProfile] = None):
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes
        self.profile = profile
        self.write_attempts = 0

    async def get_profile(self, family_id: str) -> Optional[ChildProfile]:
        if self.fail_reads:
            raise StoreError("database unreachable")
        return self.profile

    async def upsert_profile(self, family_id: str, profile: ChildProfile) -> None:
        self.write_attempts += 1
        if self.fail_writes:
            raise StoreError("database unreachable")
        self.profile = profile


@pytest.fixture
def today() -> date:
    return FIXED_TODAY


@pytest.fixture
def normalizer() -> AgeNormalizer:
    return AgeNormalizer(today=lambda: FIXED_TODAY)


@pytest.fixture
def profile_store() -> InMemoryProfileStore:
    return InMemoryProfileStore()


@pytest.fixture
def doctors() -> List[Doctor]:
    return [
        Doctor(name="Wang Li", specialty="Pediatrics", location="Beijing"),
        Doctor(name="Sarah Chen", specialty="Pediatric Pulmonology", location="Shanghai"),
    ]


@pytest.fixture
def make_orchestrator(normalizer, profile_store):
    def _make(
        completion=None,
        store: Optional[ProfileStore] = None,
        doctors: Optional[List[Doctor]] = None,
        timeout_seconds: float = 2.0,
    ) -> ConversationOrchestrator:
        responder = ResponseGenerator(
            completion=completion,
            resolver=DialogueStateResolver(),
            normalizer=normalizer,
            timeout_seconds=timeout_seconds,
        )
        return ConversationOrchestrator(
            session_store=SessionStore(),
            profile_store=store if store is not None else profile_store,
            doctor_directory=StaticDoctorDirectory(doctors),
            responder=responder,
            normalizer=normalizer,
        )

    return _make
