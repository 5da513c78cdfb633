"""End-to-end tests for patternlens.analysis.engine — analyze() on synthetic surveys."""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from patternlens import analyze, analyze_with_diagnostics
from patternlens.analysis.models import Archetype, Dimension
from patternlens.config import AnalysisConfig
from patternlens.errors import DegenerateTableWarning, InsufficientDataWarning, InvalidRecordError
from patternlens.models import RespondentRecord

AGE_BUCKET = Dimension("demographics", "age_bucket")
CHANNEL = Dimension("behavioral", "channel")


def _fingerprint(patterns) -> list[tuple]:
    return [
        (p.id, p.archetype, round(p.confidence, 12), round(p.impact, 12), p.segments)
        for p in patterns
    ]


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


class TestKnownCorrelation:
    """age_bucket=35-44 → channel=online in 95% of cases."""

    def test_entanglement_found(self, correlated: list[RespondentRecord]) -> None:
        patterns = analyze(correlated)
        linked = [p for p in patterns if set(p.dimensions) == {AGE_BUCKET, CHANNEL}]
        assert len(linked) == 1
        pattern = linked[0]
        assert pattern.archetype is Archetype.ENTANGLEMENT
        assert pattern.confidence > 0.5
        assert pattern.strength > 0.9
        assert pattern.significance < 1e-10

    def test_planted_pair_ranks_first_among_couplings(
        self, correlated: list[RespondentRecord],
    ) -> None:
        couplings = [p for p in analyze(correlated) if p.archetype is not Archetype.INTERFERENCE]
        assert set(couplings[0].dimensions) == {AGE_BUCKET, CHANNEL}

    def test_lead_segment(self, correlated: list[RespondentRecord]) -> None:
        pattern = next(
            p for p in analyze(correlated) if set(p.dimensions) == {AGE_BUCKET, CHANNEL}
        )
        assert pattern.segments[0].name == "channel=online & age_bucket=35-44"
        assert pattern.segments[0].sample_size == 95


class TestCorrelationStrength:
    """35-44 buys online 95% of the time; vary how often 18-34 does too.

    For a 2x2 table with 95/5 against k/(100-k) Cramér's V is
    ``(95 - k) / sqrt((95 + k) * (105 - k))``.
    """

    @staticmethod
    def _linked(records: list[RespondentRecord]):
        return next(p for p in analyze(records) if set(p.dimensions) == {AGE_BUCKET, CHANNEL})

    @pytest.mark.parametrize(
        "contrast_online,strength",
        [(0, 0.951), (40, 0.587), (50, 0.504), (60, 0.419)],
    )
    def test_strength_tracks_contrast(
        self, contrast_factory, contrast_online: int, strength: float,
    ) -> None:
        pattern = self._linked(contrast_factory(contrast_online))
        assert pattern.archetype is Archetype.ENTANGLEMENT
        assert pattern.strength == pytest.approx(strength, abs=1e-3)
        assert pattern.confidence == pytest.approx(strength, abs=1e-3)

    def test_confidence_bar_holds_up_to_even_split(self, contrast_factory) -> None:
        assert self._linked(contrast_factory(50)).confidence > 0.5
        assert self._linked(contrast_factory(60)).confidence < 0.5
        assert self._linked(contrast_factory(60)).confidence_label == "moderate"


class TestInterferenceScenario:
    """income=high and region=west lift intent by 0.2 each, 0.9 together."""

    def test_synergy_detected(self, interfering: list[RespondentRecord]) -> None:
        patterns = analyze(interfering)
        top = patterns[0]
        assert top.archetype is Archetype.INTERFERENCE
        assert top.id == "interference:demographics.income=high:geographic.region=west"
        assert top.amplitude == pytest.approx(0.5)
        assert top.title.startswith("Constructive")

    def test_no_coupling_between_independent_segments(
        self, interfering: list[RespondentRecord],
    ) -> None:
        patterns = analyze(interfering)
        assert all(p.archetype is Archetype.INTERFERENCE for p in patterns)

    def test_diagnostics(self, interfering: list[RespondentRecord]) -> None:
        result = analyze_with_diagnostics(interfering)
        assert result.total_records == 1000
        assert result.outcome_baseline == pytest.approx(3.0)
        assert result.outcome_std == pytest.approx(0.0918 ** 0.5, rel=1e-6)
        assert result.couplings_evaluated == 1
        assert result.combinations_evaluated == 4

    def test_compensating_intersections_are_destructive(
        self, interfering: list[RespondentRecord],
    ) -> None:
        patterns = {p.id: p for p in analyze(interfering)}
        other = patterns["interference:demographics.income=high:geographic.region=east"]
        assert other.amplitude < 0
        assert other.title.startswith("Destructive")


class TestCamelCaseOutcomes:
    """Survey answers keyed the way the web layer sends them (``purchaseIntent``)."""

    @staticmethod
    def _camel(records: list[RespondentRecord]) -> list[RespondentRecord]:
        return [
            r.model_copy(
                update={"response_data": {"purchaseIntent": r.response_data["purchase_intent"]}},
            )
            for r in records
        ]

    def test_camel_selector(self, interfering: list[RespondentRecord]) -> None:
        result = analyze_with_diagnostics(
            self._camel(interfering), {"outcomeMetricSelector": "responseData.purchaseIntent"},
        )
        assert result.outcome_baseline == pytest.approx(3.0)
        assert result.combinations_evaluated == 4
        top = result.patterns[0]
        assert top.id == "interference:demographics.income=high:geographic.region=west"
        assert top.amplitude == pytest.approx(0.5)
        assert "purchase intent" in top.description

    def test_default_selector_reads_camel_keys(
        self, interfering: list[RespondentRecord],
    ) -> None:
        camel = _fingerprint(analyze(self._camel(interfering)))
        assert camel == _fingerprint(analyze(interfering))

    def test_snake_selector_reads_camel_keys(
        self, interfering: list[RespondentRecord],
    ) -> None:
        result = analyze_with_diagnostics(
            self._camel(interfering), {"outcome_metric_selector": "responseData.purchase_intent"},
        )
        assert result.outcome_baseline == pytest.approx(3.0)


class TestIndependence:
    """Independent dimensions never produce a coupling pattern."""

    @pytest.mark.parametrize("seed", range(5))
    def test_no_patterns(self, independent_factory, seed: int) -> None:
        result = analyze_with_diagnostics(independent_factory(seed=seed))
        assert result.patterns == []
        assert result.couplings_evaluated == 1

    def test_association_is_weak(self, independent_factory) -> None:
        result = analyze_with_diagnostics(
            independent_factory(seed=3),
            AnalysisConfig(association_threshold=0.0, significance_threshold=1.0),
        )
        assert len(result.patterns) == 1
        assert result.patterns[0].strength < 0.15


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


class TestDeterminism:

    def test_repeatable(self, survey: list[RespondentRecord]) -> None:
        assert _fingerprint(analyze(survey)) == _fingerprint(analyze(survey))

    def test_record_order_independent_ids(self, survey: list[RespondentRecord]) -> None:
        forward = analyze(survey)
        backward = analyze(list(reversed(survey)))
        assert [p.id for p in forward] == [p.id for p in backward]
        for a, b in zip(forward, backward):
            assert a.confidence == pytest.approx(b.confidence)

    def test_parallel_matches_serial(self, survey: list[RespondentRecord]) -> None:
        serial = analyze(survey, AnalysisConfig(max_workers=1))
        parallel = analyze(survey, AnalysisConfig(max_workers=4))
        assert _fingerprint(serial) == _fingerprint(parallel)


class TestEmptiness:

    def test_no_records(self) -> None:
        result = analyze_with_diagnostics([])
        assert result.patterns == []
        assert result.catalog == []
        assert result.outcome_baseline is None

    def test_constant_dimensions(self) -> None:
        records = [
            RespondentRecord(
                demographics={"country": "NZ"},
                geographic={"region": "north"},
                response_data={"purchase_intent": 3},
            )
            for _ in range(100)
        ]
        result = analyze_with_diagnostics(records)
        assert result.patterns == []
        assert any(isinstance(w, DegenerateTableWarning) for w in result.warnings)

    def test_constant_outcome_skips_interference(self, correlated: list[RespondentRecord]) -> None:
        flat = [
            r.model_copy(update={"response_data": {"purchase_intent": 3.0}})
            for r in correlated
        ]
        result = analyze_with_diagnostics(flat)
        assert result.outcome_std == 0.0
        assert result.combinations_evaluated == 0
        assert all(p.archetype is not Archetype.INTERFERENCE for p in result.patterns)

    def test_additive_outcome_has_no_interference(self) -> None:
        records = []
        effects = {"high": 0.4, "low": 0.0, "west": 0.3, "east": 0.0}
        for income in ("high", "low"):
            for region in ("west", "east"):
                for _ in range(50):
                    records.append(RespondentRecord(
                        demographics={"income": income},
                        geographic={"region": region},
                        response_data={"purchase_intent": 3.0 + effects[income] + effects[region]},
                    ))
        patterns = analyze(records)
        assert all(p.archetype is not Archetype.INTERFERENCE for p in patterns)

    def test_missing_outcome_skips_interference(self, correlated: list[RespondentRecord]) -> None:
        result = analyze_with_diagnostics(
            correlated, {"outcome_metric_selector": "response_data.revenue"},
        )
        assert result.outcome_baseline is None
        assert result.combinations_evaluated == 0
        assert any(p.archetype is Archetype.ENTANGLEMENT for p in result.patterns)


class TestBoundedness:

    def test_scores_in_range(self, survey: list[RespondentRecord]) -> None:
        config = AnalysisConfig(association_threshold=0.0, significance_threshold=1.0)
        for pattern in analyze(survey, config):
            assert 0.0 <= pattern.confidence <= 1.0
            assert 0.0 <= pattern.significance <= 1.0
            assert 0.0 <= pattern.strength <= 1.0
            for segment in pattern.segments:
                assert 0.0 <= segment.population_share <= 100.0
            assert sum(s.population_share for s in pattern.segments) <= 100.0 + 1e-9

    def test_scale_factor_scales_impact(self, survey: list[RespondentRecord]) -> None:
        base = {p.id: p.impact for p in analyze(survey)}
        scaled = {p.id: p.impact for p in analyze(survey, {"impactScaleFactor": 29.99})}
        assert base.keys() == scaled.keys()
        for pid, impact in base.items():
            assert scaled[pid] == pytest.approx(impact * 29.99)


class TestThresholdMonotonicity:

    @pytest.mark.parametrize("low,high", [(0.1, 0.3), (0.3, 0.5), (0.2, 0.8)])
    def test_association_threshold(self, survey: list[RespondentRecord], low, high) -> None:
        loose = {p.id for p in analyze(survey, {"association_threshold": low})}
        strict = {p.id for p in analyze(survey, {"association_threshold": high})}
        assert strict <= loose

    @pytest.mark.parametrize("low,high", [(10, 30), (30, 80), (5, 200)])
    def test_min_sample_size(self, survey: list[RespondentRecord], low, high) -> None:
        loose = {p.id for p in analyze(survey, {"min_sample_size": low})}
        strict = {p.id for p in analyze(survey, {"min_sample_size": high})}
        assert strict <= loose

    def test_max_patterns(self, survey: list[RespondentRecord]) -> None:
        everything = analyze(survey)
        top = analyze(survey, {"max_patterns": 2})
        assert [p.id for p in top] == [p.id for p in everything[:2]]


class TestSurvey:

    def test_same_category_superposition(self, survey: list[RespondentRecord]) -> None:
        patterns = analyze(survey)
        superposition = [p for p in patterns if p.archetype is Archetype.SUPERPOSITION]
        assert any(
            set(p.dimensions) == {Dimension("demographics", "age"), AGE_BUCKET}
            for p in superposition
        )
        for pattern in superposition:
            assert pattern.dimensions[0].category == pattern.dimensions[1].category

    def test_cross_category_entanglement(self, survey: list[RespondentRecord]) -> None:
        entanglement = [p for p in analyze(survey) if p.archetype is Archetype.ENTANGLEMENT]
        assert any(set(p.dimensions) == {AGE_BUCKET, CHANNEL} for p in entanglement)
        for pattern in entanglement:
            assert pattern.dimensions[0].category != pattern.dimensions[1].category


# ---------------------------------------------------------------------------
# Errors, warnings, logging
# ---------------------------------------------------------------------------


class TestErrorsAndWarnings:

    def test_invalid_record_raises(self) -> None:
        with pytest.raises(InvalidRecordError) as excinfo:
            analyze([{"demographics": {"age": 30}}, {"demographics": {"tags": ["a", "b"]}}])
        assert excinfo.value.index == 1

    def test_accepts_mappings(self) -> None:
        assert analyze([{"demographics": {"age": 30}}]) == []

    def test_sparse_pairs_recorded(self) -> None:
        records = [
            RespondentRecord(demographics={"age": i}, behavioral={"channel": "online"})
            for i in range(40)
        ] + [RespondentRecord(geographic={"region": "west"}) for _ in range(40)]
        result = analyze_with_diagnostics(records)
        subjects = {w.subject for w in result.warnings if isinstance(w, InsufficientDataWarning)}
        assert "demographics.age x geographic.region" in subjects

    def test_summary_logged(
        self, caplog: pytest.LogCaptureFixture, correlated: list[RespondentRecord],
    ) -> None:
        with caplog.at_level(logging.INFO, logger="patternlens.analysis.engine"):
            analyze(correlated)
        assert "Pattern analysis: 200 records" in caplog.text

    def test_mapping_config(self, correlated: list[RespondentRecord]) -> None:
        assert analyze(correlated, {"minSampleSize": 10000}) == []

    def test_unknown_config_key(self, correlated: list[RespondentRecord]) -> None:
        with pytest.raises(ValidationError):
            analyze(correlated, {"min_sample": 500})
