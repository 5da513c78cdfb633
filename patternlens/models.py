"""Respondent record schema, validated once at ingestion.

Records arrive from the data-extraction layer already shaped into the six
attribute categories.  Validation happens here so the analysis stages never
need to null-check or type-check individual values.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from typing import Any, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
)

from patternlens.errors import InvalidRecordError

# Order matters for Pydantic's union matching: bool before int.
AttributeValue = Union[StrictBool, StrictInt, StrictFloat, StrictStr]

CATEGORIES = (
    "demographics",
    "psychographics",
    "behavioral",
    "geographic",
    "temporal",
    "contextual",
)

CATEGORY_LABELS = {
    "demographics": "Demographic",
    "psychographics": "Psychographic",
    "behavioral": "Behavioral",
    "geographic": "Geographic",
    "temporal": "Temporal",
    "contextual": "Contextual",
}


def snake_case(name: str) -> str:
    """``minSampleSize`` → ``min_sample_size``; snake_case input is unchanged."""
    out: list[str] = []
    for i, ch in enumerate(name):
        if ch.isupper() and i > 0 and not name[i - 1].isupper():
            out.append("_")
        out.append(ch.lower())
    return "".join(out)


def camel_case(name: str) -> str:
    """``purchase_intent`` → ``purchaseIntent``; camelCase input is unchanged."""
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


class RespondentRecord(BaseModel):
    """One survey participant, described along six independent categories.

    Missing attributes are absent keys.  ``response_data`` holds the survey
    answers (where the outcome metric normally lives) and is not itself an
    analysis category.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    respondent_id: str | None = Field(default=None, alias="respondentId")
    demographics: dict[str, AttributeValue] = Field(default_factory=dict)
    psychographics: dict[str, AttributeValue] = Field(default_factory=dict)
    behavioral: dict[str, AttributeValue] = Field(default_factory=dict)
    geographic: dict[str, AttributeValue] = Field(default_factory=dict)
    temporal: dict[str, AttributeValue] = Field(default_factory=dict)
    contextual: dict[str, AttributeValue] = Field(default_factory=dict)
    response_data: dict[str, AttributeValue] = Field(
        default_factory=dict, alias="responseData",
    )

    @field_validator(
        "demographics",
        "psychographics",
        "behavioral",
        "geographic",
        "temporal",
        "contextual",
        "response_data",
    )
    @classmethod
    def _reject_non_finite(cls, value: dict[str, AttributeValue]) -> dict[str, AttributeValue]:
        for key, item in value.items():
            if isinstance(item, float) and not math.isfinite(item):
                raise ValueError(f"attribute {key!r} is not a finite number")
        return value

    def category(self, name: str) -> dict[str, AttributeValue]:
        """Return the mapping for *name* (a category or ``response_data``)."""
        return getattr(self, name)

    def get(self, category: str, attribute: str) -> AttributeValue | None:
        return self.category(category).get(attribute)


def validate_records(
    raw: Sequence[RespondentRecord | Mapping[str, Any]],
) -> list[RespondentRecord]:
    """Validate every record up front, failing on the first bad one.

    Already-constructed ``RespondentRecord`` instances pass through untouched.
    Mappings may use camelCase (``responseData``) or snake_case keys.
    """
    records: list[RespondentRecord] = []
    for index, item in enumerate(raw):
        if isinstance(item, RespondentRecord):
            records.append(item)
            continue
        if not isinstance(item, Mapping):
            raise InvalidRecordError(
                f"expected a mapping, got {type(item).__name__}", index=index,
            )
        try:
            records.append(RespondentRecord.model_validate(dict(item)))
        except ValidationError as exc:
            first = exc.errors()[0]
            location = ".".join(str(part) for part in first["loc"])
            raise InvalidRecordError(
                f"{location}: {first['msg']}", index=index,
            ) from exc
    return records
