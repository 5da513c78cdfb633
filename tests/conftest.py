"""Shared synthetic-dataset builders for Patternlens tests."""

from __future__ import annotations

import random

import pytest

from patternlens.models import RespondentRecord

OTHER_CHANNELS = ("retail", "catalog")
REGIONS = ("north", "south", "east", "west")
ORIENTATIONS = ("price", "quality", "brand")


def make_record(**fields: dict) -> RespondentRecord:
    """Build a record from category keyword arguments."""
    return RespondentRecord(**fields)


def correlated_records(n: int = 200, seed: int = 7) -> list[RespondentRecord]:
    """Age bucket 35-44 implies an online channel in 95% of cases.

    The other half of the sample (18-34) never buys online, which gives the
    sharpest contrast (Cramér's V above 0.9); everything else is drawn at
    random.  :func:`contrast_records` covers weaker contrast groups.
    """
    rng = random.Random(seed)
    records: list[RespondentRecord] = []
    bucket_index = 0
    for i in range(n):
        if i % 2 == 0:
            age_bucket = "35-44"
            channel = "retail" if bucket_index % 20 == 0 else "online"
            bucket_index += 1
        else:
            age_bucket = "18-34"
            channel = rng.choice(OTHER_CHANNELS)
        records.append(
            make_record(
                demographics={"age_bucket": age_bucket},
                behavioral={"channel": channel},
                psychographics={"value_orientation": rng.choice(ORIENTATIONS)},
                geographic={"region": rng.choice(REGIONS)},
                response_data={"purchase_intent": round(rng.uniform(1, 5), 2)},
            )
        )
    return records


def contrast_records(contrast_online: int) -> list[RespondentRecord]:
    """100 records aged 35-44 (95 online, 5 retail) plus 100 aged 18-34.

    *contrast_online* of the 18-34 group buy online and the rest retail, so
    the association weakens as the contrast group drifts towards online.
    Nothing else varies, making the table exact.
    """
    records = [
        make_record(
            demographics={"age_bucket": "35-44"},
            behavioral={"channel": "online" if i < 95 else "retail"},
        )
        for i in range(100)
    ]
    records.extend(
        make_record(
            demographics={"age_bucket": "18-34"},
            behavioral={"channel": "online" if i < contrast_online else "retail"},
        )
        for i in range(100)
    )
    return records


def interference_records(base: float = 3.0) -> list[RespondentRecord]:
    """income=high and region=west each lift intent by +0.2; together by +0.9.

    Group sizes and values are chosen so the measured segment means are
    exactly baseline + 0.2 and the overall mean is exactly *base*:

    ==============  =====  ==========
    group           n      outcome
    ==============  =====  ==========
    high & west     100    base + 0.90
    high & east     200    base - 0.15
    low & west      200    base - 0.15
    low & east      500    base - 0.06
    ==============  =====  ==========
    """
    groups = [
        ("high", "west", 100, 0.9),
        ("high", "east", 200, -0.15),
        ("low", "west", 200, -0.15),
        ("low", "east", 500, -0.06),
    ]
    records: list[RespondentRecord] = []
    for income, region, count, delta in groups:
        for _ in range(count):
            records.append(
                make_record(
                    demographics={"income": income},
                    geographic={"region": region},
                    response_data={"purchase_intent": base + delta},
                )
            )
    return records


def independent_records(n: int = 1000, seed: int = 0) -> list[RespondentRecord]:
    """Two dimensions drawn independently: a categorical and a numeric one."""
    rng = random.Random(seed)
    spends = [rng.uniform(0, 500) for _ in range(n)]
    rng.shuffle(spends)
    return [
        make_record(
            demographics={"region_type": rng.choice(("urban", "suburban", "rural", "remote"))},
            behavioral={"monthly_spend": spend},
        )
        for spend in spends
    ]


def survey_records(n: int = 400, seed: int = 11) -> list[RespondentRecord]:
    """A small realistic survey with a mix of planted and random structure.

    - demographics.age (numeric) and demographics.age_bucket are the same
      fact at two resolutions (same-category coupling)
    - behavioral.channel follows age_bucket (cross-category coupling)
    - purchase_intent carries noise plus small segment effects
    """
    rng = random.Random(seed)
    records: list[RespondentRecord] = []
    for _ in range(n):
        age = rng.randint(18, 70)
        if age < 35:
            age_bucket = "18-34"
        elif age < 55:
            age_bucket = "35-54"
        else:
            age_bucket = "55+"
        if age_bucket == "18-34":
            channel = "online" if rng.random() < 0.85 else "retail"
        else:
            channel = "retail" if rng.random() < 0.8 else "online"
        income = rng.choice(("high", "low"))
        region = rng.choice(REGIONS)
        intent = 3.0 + rng.gauss(0, 0.5)
        if income == "high":
            intent += 0.3
        if region == "west" and income == "high":
            intent += 0.6
        records.append(
            make_record(
                demographics={"age": age, "age_bucket": age_bucket, "income": income},
                behavioral={"channel": channel, "visits": rng.randint(0, 12)},
                psychographics={"value_orientation": rng.choice(ORIENTATIONS)},
                geographic={"region": region},
                temporal={"weekday": rng.random() < 0.7},
                response_data={"purchase_intent": round(intent, 3)},
            )
        )
    return records


@pytest.fixture
def correlated() -> list[RespondentRecord]:
    return correlated_records()


@pytest.fixture
def interfering() -> list[RespondentRecord]:
    return interference_records()


@pytest.fixture
def survey() -> list[RespondentRecord]:
    return survey_records()


@pytest.fixture
def independent_factory():
    """Factory for independent two-dimension datasets: ``factory(seed=...)``."""
    return independent_records


@pytest.fixture
def correlated_factory():
    return correlated_records


@pytest.fixture
def contrast_factory():
    """Factory for exact age/channel tables: ``factory(contrast_online)``."""
    return contrast_records
