"""Analysis settings loaded from keyword arguments, environment variables, or .env."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from patternlens.models import CATEGORIES, snake_case

# Aliases accepted in the category part of an outcome selector.  Keys are
# lower-cased with underscores removed; values are RespondentRecord fields.
_CATEGORY_ALIASES = {
    "demo": "demographics",
    "demographic": "demographics",
    "psycho": "psychographics",
    "psychographic": "psychographics",
    "behavior": "behavioral",
    "behaviour": "behavioral",
    "behavioural": "behavioral",
    "geo": "geographic",
    "time": "temporal",
    "context": "contextual",
    "responsedata": "response_data",
    "response": "response_data",
    "responses": "response_data",
}

OUTCOME_SOURCES = (*CATEGORIES, "response_data")


def _find_env_files() -> list[Path]:
    """Find .env files to load, searching upward from CWD and in the package dir.

    Checks (in priority order, last wins in pydantic-settings):
    1. The directory above the installed package
    2. The current working directory, then its parents up to the root
    """
    candidates: list[Path] = []

    pkg_env = Path(__file__).resolve().parent.parent / ".env"
    if pkg_env.is_file():
        candidates.append(pkg_env)

    cwd = Path.cwd().resolve()
    for parent in [cwd, *cwd.parents]:
        env_path = parent / ".env"
        if env_path.is_file() and env_path not in candidates:
            candidates.append(env_path)
            break  # stop at first match going upward

    return candidates


def normalise_outcome_selector(selector: str) -> str:
    """Canonicalise an outcome selector to ``<record field>.<attribute>``.

    ``responseData.purchaseIntent`` becomes ``response_data.purchaseIntent``
    and ``behavior.spend`` becomes ``behavioral.spend``.  Only the category
    part is rewritten; attribute names are user data and kept as given.
    """
    category, sep, attribute = selector.strip().partition(".")
    if not sep or not attribute:
        raise ValueError(
            f"outcome selector {selector!r} must look like 'category.attribute'"
        )
    canonical = _CATEGORY_ALIASES.get(category.lower().replace("_", ""), category)
    if canonical not in OUTCOME_SOURCES:
        raise ValueError(
            f"unknown outcome category {category!r}; "
            f"expected one of {', '.join(OUTCOME_SOURCES)}"
        )
    return f"{canonical}.{attribute}"


def _field_keys(cls: type[BaseSettings], values: dict[str, Any]) -> dict[str, Any]:
    """Rename camelCase keyword arguments to field names.

    Keys matching no field are rejected.  Environment variables never pass
    through here, so unrelated entries in the environment or .env stay ignored.
    Underscore-prefixed settings arguments (``_env_file``) pass unchanged.
    """
    renamed: dict[str, Any] = {}
    errors: list[dict[str, Any]] = []
    for key, value in values.items():
        if key.startswith("_"):
            renamed[key] = value
            continue
        name = snake_case(key)
        if name not in cls.model_fields:
            errors.append({"type": "extra_forbidden", "loc": (key,), "input": value})
        elif name in renamed:
            errors.append({
                "type": "value_error",
                "loc": (key,),
                "input": value,
                "ctx": {"error": ValueError(f"{name} given twice")},
            })
        else:
            renamed[name] = value
    if errors:
        raise ValidationError.from_exception_data(cls.__name__, errors)
    return renamed


class AnalysisConfig(BaseSettings):
    """Tunable thresholds for one analysis run.

    Every field can be set from the environment with the ``PATTERNLENS_``
    prefix (``PATTERNLENS_MIN_SAMPLE_SIZE=50``).  Keyword arguments also
    accept the camelCase names used by the web layer (``minSampleSize``,
    ``outcomeMetricSelector``); unknown keywords fail validation.  Built
    fresh per call.
    """

    model_config = SettingsConfigDict(
        env_prefix="PATTERNLENS_",
        env_file=_find_env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Binning
    numeric_bin_count: int = Field(default=4, ge=2)

    # Filtering
    min_sample_size: int = Field(default=30, ge=2)
    association_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    significance_threshold: float = Field(default=0.05, ge=0.0, le=1.0)
    interference_threshold: float = Field(default=0.5, ge=0.0)  # in outcome std-devs

    # Outcome and impact
    outcome_metric_selector: str = "response_data.purchase_intent"
    impact_scale_factor: float = 1.0

    # Output
    max_patterns: int | None = Field(default=None, ge=1)

    # Concurrency (1 = serial)
    max_workers: int = Field(default=1, ge=1)

    def __init__(self, **values: Any) -> None:
        super().__init__(**_field_keys(type(self), values))

    @field_validator("outcome_metric_selector")
    @classmethod
    def _canonical_selector(cls, value: str) -> str:
        return normalise_outcome_selector(value)

    @property
    def outcome_source(self) -> str:
        """Record field holding the outcome (a category or ``response_data``)."""
        return self.outcome_metric_selector.split(".", 1)[0]

    @property
    def outcome_attribute(self) -> str:
        return self.outcome_metric_selector.split(".", 1)[1]


def load_config(**overrides: object) -> AnalysisConfig:
    """Build an ``AnalysisConfig`` from env/.env plus keyword overrides.

    ``None`` overrides are dropped so unset CLI options fall through to the
    environment and defaults.
    """
    cleaned = {key: value for key, value in overrides.items() if value is not None}
    return AnalysisConfig(**cleaned)
