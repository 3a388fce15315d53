"""Unit tests for the metric collectors in app/core/readiness/collectors/.

Tests coverage:
- Personnel currency (range validity, certifications, no soldiers)
- Security components operability
- Training cadence within the lookback window
- Risk sub-factors (threat, infra, response, incidents)
- collect_settlement_metrics() assembly and degraded sources
"""

from datetime import date, timedelta

import pytest

from app.core.readiness import DEFAULT_WEIGHTS, compose
from app.core.readiness.collectors import (
    collect_settlement_metrics,
    score_components,
    score_incidents,
    score_infra,
    score_personnel,
    score_response,
    score_threat,
    score_training,
    week_bounds,
)
from app.core.readiness.types import (
    CertificationRecord,
    DrillRecord,
    IncidentRecord,
    RecordSource,
    SecurityComponentsRecord,
    SettlementRecords,
    SoldierRecord,
    ThreatRatingRecord,
    TrainingEventRecord,
    WeaponHolderRecord,
)

SETTLEMENT = "עפרה"
OTHER = "בית אל"
TODAY = date(2026, 3, 18)  # Wednesday


def _days_ago(days: int) -> date:
    return TODAY - timedelta(days=days)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def soldiers():
    return [
        SoldierRecord(id="s1", settlement=SETTLEMENT, is_active=True,
                      last_shooting_range_date=_days_ago(10), weapon_serial="W-1"),
        SoldierRecord(id="s2", settlement=SETTLEMENT, is_active=True,
                      last_shooting_range_date=_days_ago(100)),
        SoldierRecord(id="s3", settlement=SETTLEMENT, is_active=True,
                      last_shooting_range_date=_days_ago(179)),
        SoldierRecord(id="s4", settlement=SETTLEMENT, is_active=True,
                      last_shooting_range_date=None),
        SoldierRecord(id="s5", settlement=SETTLEMENT, is_active=False,
                      last_shooting_range_date=None),
        SoldierRecord(id="s6", settlement=OTHER, is_active=True,
                      last_shooting_range_date=None),
    ]


@pytest.fixture
def certifications():
    return [
        CertificationRecord(id="c1", soldier_id="s1", cert_type="medic",
                            last_refresh_date=_days_ago(30)),
        CertificationRecord(id="c2", soldier_id="s2", cert_type="mag",
                            last_refresh_date=_days_ago(400)),
        # Belongs to an inactive soldier; ignored
        CertificationRecord(id="c3", soldier_id="s5", cert_type="mag",
                            last_refresh_date=None),
    ]


@pytest.fixture
def full_components():
    return [
        SecurityComponentsRecord(
            settlement=SETTLEMENT,
            armory=True,
            armored_vehicle=True,
            hailkis=True,
            fence_type="electronic",
            command_center_type="full",
            defensive_security_type="layered",
        )
    ]


# =============================================================================
# Personnel
# =============================================================================


class TestPersonnel:
    def test_mixed_currency(self, soldiers, certifications):
        result = score_personnel(soldiers, certifications, SETTLEMENT, TODAY)

        # shooting 3/4 valid, certs 1/2 valid
        assert result.score == pytest.approx(0.7 * 0.75 + 0.3 * 0.5)
        assert result.facts["total_soldiers"] == 5
        assert result.facts["active_soldiers"] == 4
        assert result.facts["expired_shooting"] == 1
        assert result.facts["expired_certs"] == 1
        assert result.facts["armed_count"] == 1
        assert any("shooting range" in r for r in result.reasons)

    def test_no_soldiers_scores_zero(self):
        result = score_personnel([], [], SETTLEMENT, TODAY)

        assert result.score == 0
        assert result.facts["active_soldiers"] == 0
        assert "No active soldiers" in result.reasons

    def test_only_inactive_soldiers_scores_zero(self):
        soldiers = [SoldierRecord(id="x", settlement=SETTLEMENT, is_active=False,
                                  last_shooting_range_date=_days_ago(1))]

        assert score_personnel(soldiers, [], SETTLEMENT, TODAY).score == 0

    def test_no_certifications_counts_as_current(self):
        soldiers = [SoldierRecord(id="x", settlement=SETTLEMENT, is_active=True,
                                  last_shooting_range_date=_days_ago(5))]

        assert score_personnel(soldiers, [], SETTLEMENT, TODAY).score == pytest.approx(1.0)

    def test_validity_boundary(self):
        soldiers = [
            SoldierRecord(id="a", settlement=SETTLEMENT, is_active=True,
                          last_shooting_range_date=_days_ago(180)),
            SoldierRecord(id="b", settlement=SETTLEMENT, is_active=True,
                          last_shooting_range_date=_days_ago(181)),
        ]

        result = score_personnel(soldiers, [], SETTLEMENT, TODAY)

        assert result.facts["expired_shooting"] == 1

    def test_custom_validity_window(self, soldiers):
        result = score_personnel(soldiers, [], SETTLEMENT, TODAY, shooting_validity_days=90)

        # Only s1 is within 90 days
        assert result.facts["expired_shooting"] == 3


# =============================================================================
# Components
# =============================================================================


class TestComponents:
    def test_all_present(self, full_components):
        result = score_components(full_components, SETTLEMENT)

        assert result.score == pytest.approx(1.0)
        assert result.reasons == []

    def test_partial(self):
        components = [SecurityComponentsRecord(settlement=SETTLEMENT, armory=True, fence_type="basic")]

        result = score_components(components, SETTLEMENT)

        assert result.score == pytest.approx(2 / 6)
        assert "Command center not defined" in result.reasons
        assert "No armory" not in result.reasons

    def test_empty_type_counts_as_missing(self):
        components = [SecurityComponentsRecord(settlement=SETTLEMENT, fence_type="")]

        assert score_components(components, SETTLEMENT).score == 0

    def test_missing_record_scores_zero(self, full_components):
        result = score_components(full_components, OTHER)

        assert result.score == 0
        assert result.reasons == ["Security components not entered"]


# =============================================================================
# Training
# =============================================================================


class TestTraining:
    def test_full_cadence(self):
        events = [
            TrainingEventRecord(id="e1", settlement=SETTLEMENT, event_date=_days_ago(10)),
            TrainingEventRecord(id="e2", settlement=SETTLEMENT, event_date=_days_ago(60)),
        ]
        drills = [DrillRecord(id="d1", settlement=SETTLEMENT, drill_date=_days_ago(30))]

        result = score_training(events, drills, SETTLEMENT, TODAY)

        assert result.score == pytest.approx(1.0)
        assert result.reasons == []

    def test_partial_cadence(self):
        events = [TrainingEventRecord(id="e1", settlement=SETTLEMENT, event_date=_days_ago(10))]

        result = score_training(events, [], SETTLEMENT, TODAY)

        assert result.score == pytest.approx(0.25)
        assert any("drill" in r for r in result.reasons)

    def test_extra_events_do_not_exceed_cap(self):
        events = [
            TrainingEventRecord(id=f"e{i}", settlement=SETTLEMENT, event_date=_days_ago(i))
            for i in range(10)
        ]

        assert score_training(events, [], SETTLEMENT, TODAY).score == pytest.approx(0.5)

    def test_outside_window_and_future_ignored(self):
        events = [
            TrainingEventRecord(id="old", settlement=SETTLEMENT, event_date=_days_ago(200)),
            TrainingEventRecord(id="future", settlement=SETTLEMENT, event_date=TODAY + timedelta(days=3)),
            TrainingEventRecord(id="other", settlement=OTHER, event_date=_days_ago(1)),
        ]
        drills = [DrillRecord(id="d-old", settlement=SETTLEMENT, drill_date=_days_ago(365))]

        result = score_training(events, drills, SETTLEMENT, TODAY)

        assert result.score == 0
        assert result.facts == {"recent_events": 0, "recent_drills": 0}


# =============================================================================
# Risk factors
# =============================================================================


class TestRiskFactors:
    def test_threat_average(self):
        ratings = [ThreatRatingRecord(settlement=SETTLEMENT, village_proximity=4, road_proximity=2,
                                      topographic_vulnerability=1, regional_alert_level=3)]

        result = score_threat(ratings, SETTLEMENT)

        assert result.score == pytest.approx(2.5 / 5)
        assert any("Village proximity" in r for r in result.reasons)

    def test_threat_missing_scores_zero(self):
        assert score_threat([], SETTLEMENT).score == 0

    def test_infra_is_inverse_of_components(self):
        assert score_infra(0.25).score == pytest.approx(0.75)
        assert score_infra(1.0).score == 0

    def test_response_no_active_soldiers_is_full_gap(self):
        assert score_response([], [], SETTLEMENT, 0.0, TODAY).score == pytest.approx(1.0)

    def test_response_full_capability(self, soldiers):
        holders = [WeaponHolderRecord(id="h1", settlement=SETTLEMENT,
                                      weekend_date=date(2026, 3, 21), is_holding_weapon=True)]

        result = score_response(soldiers, holders, SETTLEMENT, 1.0, TODAY)

        assert result.score == pytest.approx(0.0)

    def test_response_ignores_holders_from_other_weeks(self, soldiers):
        holders = [WeaponHolderRecord(id="h1", settlement=SETTLEMENT,
                                      weekend_date=date(2026, 3, 14), is_holding_weapon=True)]

        result = score_response(soldiers, holders, SETTLEMENT, 0.75, TODAY)

        # 0.4 * 0.75 + 0.3 (armed) + 0 (no holder this week)
        assert result.score == pytest.approx(1 - 0.6)
        assert "No approved weekend weapon holders" in result.reasons

    def test_incidents_capped(self):
        incidents = [IncidentRecord(id=f"i{n}", settlement=SETTLEMENT, status="open") for n in range(6)]

        assert score_incidents(incidents, SETTLEMENT).score == 1.0

    def test_incidents_only_open_count(self):
        incidents = [
            IncidentRecord(id="i1", settlement=SETTLEMENT, status="open"),
            IncidentRecord(id="i2", settlement=SETTLEMENT, status="open"),
            IncidentRecord(id="i3", settlement=SETTLEMENT, status="closed"),
        ]

        result = score_incidents(incidents, SETTLEMENT)

        assert result.score == pytest.approx(0.5)
        assert result.facts["open_incidents"] == 2


def test_week_bounds_start_on_sunday():
    assert week_bounds(date(2026, 3, 18)) == (date(2026, 3, 15), date(2026, 3, 21))
    assert week_bounds(date(2026, 3, 15)) == (date(2026, 3, 15), date(2026, 3, 21))
    assert week_bounds(date(2026, 3, 21)) == (date(2026, 3, 15), date(2026, 3, 21))


# =============================================================================
# Assembly
# =============================================================================


class TestCollectSettlementMetrics:
    def test_assembles_all_metrics(self, soldiers, certifications, full_components):
        records = SettlementRecords(
            soldiers=soldiers,
            certifications=certifications,
            components=full_components,
            incidents=[IncidentRecord(id="i1", settlement=SETTLEMENT, status="open")],
        )

        metrics = collect_settlement_metrics(records, SETTLEMENT, TODAY)

        assert metrics.settlement == SETTLEMENT
        assert metrics.personnel == pytest.approx(0.675)
        assert metrics.components == pytest.approx(1.0)
        assert metrics.infra == pytest.approx(0.0)
        assert metrics.training == 0
        assert metrics.threat == 0
        assert metrics.incidents == pytest.approx(0.25)
        assert metrics.active_soldiers == 4
        assert metrics.open_incidents == 1
        assert metrics.degraded is False

    def test_settlement_without_records(self):
        metrics = collect_settlement_metrics(SettlementRecords(), SETTLEMENT, TODAY)

        assert metrics.personnel == 0
        assert metrics.components == 0
        assert metrics.training == 0
        assert metrics.degraded is False
        assert "No active soldiers" in metrics.reasons

    def test_failed_source_degrades_dependent_metrics(self, soldiers, full_components):
        records = SettlementRecords(
            soldiers=soldiers,
            components=full_components,
            failed_sources={RecordSource.COMPONENTS.value},
        )

        metrics = collect_settlement_metrics(records, SETTLEMENT, TODAY)

        assert metrics.degraded is True
        assert metrics.degraded_sources == (RecordSource.COMPONENTS.value,)
        assert metrics.components == 0
        assert metrics.infra == 1
        # Unrelated metrics unaffected
        assert metrics.personnel > 0

    @pytest.mark.parametrize(
        "source",
        [
            RecordSource.COMPONENTS,
            RecordSource.SOLDIERS,
            RecordSource.WEAPON_HOLDERS,
            RecordSource.THREAT_RATINGS,
            RecordSource.INCIDENTS,
            RecordSource.TRAINING_EVENTS,
        ],
    )
    def test_failed_source_never_lowers_priority(
        self, source, soldiers, certifications, full_components
    ):
        data = {
            "soldiers": soldiers,
            "certifications": certifications,
            "components": full_components,
        }
        healthy = collect_settlement_metrics(SettlementRecords(**data), SETTLEMENT, TODAY)
        failed = collect_settlement_metrics(
            SettlementRecords(**data, failed_sources={source.value}), SETTLEMENT, TODAY
        )
        missing = collect_settlement_metrics(SettlementRecords(), SETTLEMENT, TODAY)
        failed_empty = collect_settlement_metrics(
            SettlementRecords(failed_sources={source.value}), SETTLEMENT, TODAY
        )

        assert (
            compose(DEFAULT_WEIGHTS, failed).priority
            >= compose(DEFAULT_WEIGHTS, healthy).priority
        )
        assert (
            compose(DEFAULT_WEIGHTS, failed_empty).priority
            >= compose(DEFAULT_WEIGHTS, missing).priority
        )

    def test_failed_soldiers_take_worst_case(self, soldiers, full_components):
        records = SettlementRecords(
            soldiers=soldiers,
            components=full_components,
            failed_sources={RecordSource.SOLDIERS.value},
        )

        metrics = collect_settlement_metrics(records, SETTLEMENT, TODAY)

        assert metrics.personnel == 0
        assert metrics.response == 1
        assert metrics.components == 1

    def test_failed_weapon_holders_take_worst_case(self, soldiers):
        records = SettlementRecords(
            soldiers=soldiers,
            failed_sources={RecordSource.WEAPON_HOLDERS.value},
        )

        metrics = collect_settlement_metrics(records, SETTLEMENT, TODAY)

        assert metrics.response == 1
        assert metrics.personnel > 0
        assert metrics.degraded_sources == (RecordSource.WEAPON_HOLDERS.value,)

    def test_malformed_threat_rating_fails_closed(self):
        records = SettlementRecords(
            threat_ratings=[
                ThreatRatingRecord(settlement=OTHER, village_proximity=1, road_proximity=1,
                                   topographic_vulnerability=1, regional_alert_level=1),
            ],
            malformed_sources={RecordSource.THREAT_RATINGS.value: {SETTLEMENT}},
        )

        metrics = collect_settlement_metrics(records, SETTLEMENT, TODAY)
        other = collect_settlement_metrics(records, OTHER, TODAY)

        assert metrics.threat == 1
        assert metrics.degraded is True
        assert metrics.degraded_sources == (RecordSource.THREAT_RATINGS.value,)
        assert other.threat == pytest.approx(0.2)
        assert other.degraded is False
