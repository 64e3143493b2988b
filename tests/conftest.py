"""
Shared test fixtures: sample student profiles and an in-memory guidance relay.
"""

import asyncio
from typing import List, Optional

import pytest

from guidance.profile import StudentProfile
from guidance.relay import GuidanceRelay, GuidanceRequest, RelayReply


class FakeRelay(GuidanceRelay):
    """Relay that answers from memory and records every request."""

    mode = "direct"

    def __init__(
        self,
        text: str = "$75k-$120k",
        configured: bool = True,
        reply: Optional[RelayReply] = None,
        delay: float = 0.0,
        error: Optional[Exception] = None,
    ):
        self.text = text
        self.configured = configured
        self.reply = reply
        self.delay = delay
        self.error = error
        self.requests: List[GuidanceRequest] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def ask(self, request: GuidanceRequest) -> RelayReply:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply or RelayReply(self.text)


@pytest.fixture
def ana_profile() -> StudentProfile:
    """Profile used by the end-to-end chat scenario."""
    return StudentProfile(
        name="Ana",
        education="CS Student",
        interests=["Technology"],
        skills=[],
        careerGoals="",
    )


@pytest.fixture
def ana_payload() -> dict:
    """Wire form of the Ana profile."""
    return {
        "name": "Ana",
        "education": "CS Student",
        "interests": ["Technology"],
        "skills": [],
        "careerGoals": "",
    }


@pytest.fixture
def full_profile() -> StudentProfile:
    return StudentProfile(
        name="Ravi",
        education="BSc Mathematics",
        interests=["Finance", "Technology", "Research", "Business"],
        skills=["Python", "Statistics"],
        careerGoals="Work as a quantitative analyst",
    )


@pytest.fixture
def fake_relay() -> FakeRelay:
    return FakeRelay()


@pytest.fixture
def relay_factory():
    """Build FakeRelay instances with custom behaviour."""
    return FakeRelay
