from __future__ import annotations

import pytest

from postify.models.article import ArticleData
from postify.models.post import GenerationRequest, Platform, Tone


class FakeClock:
    """Manually advanced clock; sleep() records the delay and moves time forward."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self._now = start
        self.sleeps: list[float] = []

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self._now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def article():
    return ArticleData(
        title="Rust in the Linux kernel",
        text_content="The kernel maintainers merged the first Rust drivers this cycle.",
        byline="Jane Doe",
        site_name="Example",
        url="https://example.com/rust-kernel",
        length=64,
        excerpt="The kernel maintainers merged the first Rust drivers.",
    )


@pytest.fixture
def generation_request(article):
    return GenerationRequest(
        article=article,
        tone=Tone.PROFESSIONAL,
        platforms=[Platform.TWITTER, Platform.LINKEDIN],
        hashtags=["rust", "linux"],
        cta="Read the full story",
    )
