# triage/seed/generator.py
"""
Deterministic demo data for the dashboard.

The same seed value always yields the same items relative to ``now``, which is
what the reset flow relies on to restore a known dataset.
"""

import random
from datetime import datetime, timedelta
from typing import List, Optional

from triage.config.settings import Settings
from triage.models.schemas import (
    Agent,
    BrandConfig,
    FeedbackItem,
    Sentiment,
    StateSnapshot,
    Status,
    UNKNOWN,
)


MOCK_ID_PREFIX = "IT-"

TEAMS = ["Sales", "Support", "Fibre Orders", "Accounts", "Walk-In Centre"]

AGENTS = [
    Agent(id="AG-001", name="Leah Mokoena", team="Support", email="leah.mokoena@axxess.local"),
    Agent(id="AG-002", name="Kyle Jacobs", team="Sales", email="kyle.jacobs@axxess.local"),
    Agent(id="AG-003", name="Nandi Dlamini", team="Fibre Orders", email="nandi.dlamini@axxess.local"),
    Agent(id="AG-004", name="Ethan Naidoo", team="Accounts", email="ethan.naidoo@axxess.local"),
    Agent(id="AG-005", name="Ayesha Khan", team="Walk-In Centre", email="ayesha.khan@axxess.local"),
    Agent(id="AG-006", name="Siyabonga Zulu", team="Support", email="siya.zulu@axxess.local"),
    Agent(id="AG-007", name="Mia van Wyk", team="Sales", email="mia.vanwyk@axxess.local"),
    Agent(id="AG-008", name="Thabo Maseko", team="Fibre Orders", email="thabo.maseko@axxess.local"),
    Agent(id="AG-009", name="Priya Pillay", team="Accounts", email="priya.pillay@axxess.local"),
    Agent(id="AG-010", name="Liam Smith", team="Walk-In Centre", email="liam.smith@axxess.local"),
]

POSITIVE_WORDS = [
    "great", "exceptional", "good", "nice", "amazing",
    "brilliant", "helpful", "professional", "friendly", "efficient",
]

POSITIVE_THEMES = {
    "Support": ["Fast resolution", "Proactive updates", "Clear troubleshooting", "Friendly tone"],
    "Sales": ["Clear communication", "Honest advice", "Quick turnaround", "Great product knowledge"],
    "Fibre Orders": ["Quick coordination", "On-time installation", "Kept me informed", "Smooth onboarding"],
    "Accounts": ["First-time resolution", "Billing clarity", "Helpful guidance", "Quick refund/credit"],
    "Walk-In Centre": ["Friendly service", "Patient assistance", "Quick help", "Went the extra mile"],
}

NEGATIVE_THEMES = [
    "Installation delays", "No follow-up", "Billing confusion",
    "Slow response", "Poor communication", "Router issues",
]
NEGATIVE_KEYWORDS = [
    "delayed", "waiting", "no response", "unhelpful", "frustrating",
    "confusing", "incorrect", "dropped", "unstable",
]
NEUTRAL_KEYWORDS = ["okay", "fine", "eventually", "average", "could be better", "not bad"]

POSITIVE_TEMPLATES = [
    "{word} service from {agent}. {reason}.",
    "{agent} was {word} and {word2}. {reason}.",
    "Really {word} support. {agent} {reason_lower}.",
    "{word} experience overall - {agent} {reason_lower}.",
]
NEUTRAL_TEMPLATES = [
    "Service was {word}. {agent} helped, but {neutral}.",
    "{agent} was {word}, but {neutral}.",
    "Overall {word}. {neutral}.",
]
NEGATIVE_TEMPLATES = [
    "{neg}. {neg2}.",
    "Very {neg}. {neg2}.",
    "Not happy - {neg}. {neg2}.",
]

REASONS = [
    "fixed my issue quickly and kept me updated",
    "explained everything clearly and gave options",
    "followed up until it was sorted",
    "made the process quick and painless",
    "handled everything professionally",
    "went the extra mile to help",
]


def _pick_many(rng: random.Random, values: List[str], low: int, high: int) -> List[str]:
    count = rng.randint(low, high)
    pool = list(values)
    picked = []
    while len(picked) < count and pool:
        picked.append(pool.pop(rng.randrange(len(pool))))
    return picked


def _capitalize(text: str) -> str:
    return text[:1].upper() + text[1:]


def _roll_status(rng: random.Random, sentiment: Sentiment) -> Status:
    roll = rng.random()
    if sentiment == Sentiment.NEGATIVE:
        return Status.FLAGGED_NEGATIVE if roll < 0.7 else Status.PENDING
    if roll < 0.62:
        return Status.APPROVED
    if roll < 0.86:
        return Status.PENDING
    return Status.ON_HOLD


def generate_items(
    item_count: int,
    days_back: int,
    seed_value: int,
    now: Optional[datetime] = None
) -> List[FeedbackItem]:
    """
    Generate synthetic feedback items.

    Args:
        item_count: Number of items to produce
        days_back: Items are spread uniformly over this many days before ``now``
        seed_value: PRNG seed; equal seeds give equal output for equal ``now``
        now: Reference time (defaults to the current local time)

    Returns:
        Items sorted newest first
    """
    if item_count < 0 or days_back < 0:
        raise ValueError("item_count and days_back must be non-negative")

    rng = random.Random(seed_value)
    if now is None:
        now = datetime.now().astimezone()
    elif now.tzinfo is None:
        now = now.astimezone()

    items = []
    for i in range(item_count):
        age_days = int(rng.random() * days_back)
        created = (now - timedelta(days=age_days)).replace(
            hour=rng.randint(7, 18), minute=rng.randrange(60), second=0, microsecond=0
        )

        source = "Google" if rng.random() < 0.68 else "Email"
        agent = rng.choice(AGENTS)

        sentiment_roll = rng.random()
        if sentiment_roll < 0.74:
            sentiment = Sentiment.POSITIVE
        elif sentiment_roll < 0.88:
            sentiment = Sentiment.NEUTRAL
        else:
            sentiment = Sentiment.NEGATIVE

        status = _roll_status(rng, sentiment)
        team_themes = POSITIVE_THEMES.get(agent.team, ["Great service"])

        rating = None
        tv_snippet = ""
        if sentiment == Sentiment.POSITIVE:
            theme = rng.choice(team_themes)
            word = rng.choice(POSITIVE_WORDS)
            word2 = rng.choice(POSITIVE_WORDS)
            reason = rng.choice(REASONS)
            text = rng.choice(POSITIVE_TEMPLATES).format(
                word=word, word2=word2, agent=agent.name,
                reason=_capitalize(reason), reason_lower=reason
            )
            candidates = list(dict.fromkeys([word, word2] + _pick_many(rng, POSITIVE_WORDS, 1, 3)))
            keywords = _pick_many(rng, candidates, 3, 6)
            if source == "Google":
                rating = 5 if rng.random() < 0.72 else 4
            tv_snippet = f"{_capitalize(word)} - {theme or 'Great service'}."
        elif sentiment == Sentiment.NEUTRAL:
            theme = rng.choice(team_themes) if rng.random() < 0.6 else ""
            text = rng.choice(NEUTRAL_TEMPLATES).format(
                word=rng.choice(["good", "okay", "fine"]),
                agent=agent.name,
                neutral=rng.choice(NEUTRAL_KEYWORDS)
            )
            keywords = _pick_many(rng, NEUTRAL_KEYWORDS, 2, 4)
            if source == "Google":
                rating = 3 if rng.random() < 0.6 else 4
        else:
            theme = rng.choice(NEGATIVE_THEMES)
            text = rng.choice(NEGATIVE_TEMPLATES).format(
                neg=rng.choice(NEGATIVE_KEYWORDS), neg2=rng.choice(NEGATIVE_KEYWORDS)
            )
            keywords = _pick_many(rng, NEGATIVE_KEYWORDS, 2, 5)
            if source == "Google":
                rating = 1 if rng.random() < 0.6 else 2

        unassigned = rng.random() < 0.07

        items.append(FeedbackItem(
            id=f"{MOCK_ID_PREFIX}{20000 + i:05d}",
            created_at=created,
            source=source,
            rating=rating,
            sentiment=sentiment,
            status=status,
            agent=UNKNOWN if unassigned else agent.name,
            team=UNKNOWN if unassigned else agent.team,
            theme=theme,
            keywords=keywords,
            tv_snippet=tv_snippet,
            text=_capitalize(text)
        ))

    items.sort(key=lambda item: item.created_at, reverse=True)
    return items


def build_seed_snapshot(config: Settings, now: Optional[datetime] = None) -> StateSnapshot:
    """Build the canonical snapshot used for first runs, merges and resets."""
    return StateSnapshot(
        brand=BrandConfig(name=config.brand_name, primary=config.brand_primary),
        teams=list(TEAMS),
        agents=[agent.model_copy() for agent in AGENTS],
        items=generate_items(
            config.seed_item_count,
            config.seed_days_back,
            config.seed_value,
            now=now
        )
    )
