"""Pydantic models for the settlement readiness scoring system."""

import hashlib
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Weights
# =============================================================================


class WeightGroup(str, Enum):
    """Weight groups; coefficients within a group should sum to 1.0."""

    READINESS = "readiness"
    RISK = "risk"
    PRIORITY = "priority"


WEIGHT_GROUP_FIELDS: dict[WeightGroup, tuple[str, ...]] = {
    WeightGroup.READINESS: ("personnel_weight", "components_weight", "training_weight"),
    WeightGroup.RISK: (
        "risk_threat_weight",
        "risk_infra_weight",
        "risk_response_weight",
        "risk_incidents_weight",
    ),
    WeightGroup.PRIORITY: ("priority_risk_weight", "priority_readiness_weight"),
}


class WeightSet(BaseModel):
    """The nine tunable coefficients used by every score computation."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    # Readiness group
    personnel_weight: float = Field(default=0.4, ge=0, le=1)
    components_weight: float = Field(default=0.4, ge=0, le=1)
    training_weight: float = Field(default=0.2, ge=0, le=1)

    # Risk group
    risk_threat_weight: float = Field(default=0.3, ge=0, le=1)
    risk_infra_weight: float = Field(default=0.3, ge=0, le=1)
    risk_response_weight: float = Field(default=0.3, ge=0, le=1)
    risk_incidents_weight: float = Field(default=0.1, ge=0, le=1)

    # Priority group
    priority_risk_weight: float = Field(default=0.6, ge=0, le=1)
    priority_readiness_weight: float = Field(default=0.4, ge=0, le=1)

    def group_values(self, group: WeightGroup) -> dict[str, float]:
        return {name: getattr(self, name) for name in WEIGHT_GROUP_FIELDS[group]}

    def group_sum(self, group: WeightGroup) -> float:
        return sum(self.group_values(group).values())

    @property
    def version(self) -> str:
        """Deterministic fingerprint of the nine coefficients."""
        payload = "|".join(
            f"{name}={getattr(self, name):.6f}"
            for group in WeightGroup
            for name in WEIGHT_GROUP_FIELDS[group]
        )
        return hashlib.sha1(payload.encode()).hexdigest()[:16]


DEFAULT_WEIGHTS = WeightSet()


class WeightGroupIssue(BaseModel):
    """A weight group whose coefficients do not sum to 1.0."""

    group: WeightGroup
    total: float = Field(..., description="Actual sum of the group's coefficients")
    message: str


class StoredWeights(BaseModel):
    """Weights as read from the store, with row metadata."""

    weights: WeightSet
    id: Optional[str] = None
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None
    is_default: bool = Field(
        default=False, description="True when the store was empty or unreachable"
    )


class WeightSaveResult(BaseModel):
    """Outcome of a weight save."""

    stored: StoredWeights
    issues: list[WeightGroupIssue] = Field(default_factory=list)


# =============================================================================
# Source records
# =============================================================================


class RecordSource(str, Enum):
    """Record Store tables feeding the metric collectors."""

    SOLDIERS = "hagmar_soldiers"
    CERTIFICATIONS = "hagmar_certifications"
    COMPONENTS = "hagmar_security_components"
    THREAT_RATINGS = "hagmar_threat_ratings"
    INCIDENTS = "hagmar_security_incidents"
    TRAINING_EVENTS = "hagmar_training_events"
    DRILLS = "hagmar_settlement_drills"
    WEAPON_HOLDERS = "weekend_weapon_holders"


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore")


class SoldierRecord(_Record):
    id: str
    settlement: str
    is_active: bool = False
    last_shooting_range_date: Optional[date] = None
    weapon_serial: Optional[str] = None


class CertificationRecord(_Record):
    id: str
    soldier_id: str
    cert_type: str
    last_refresh_date: Optional[date] = None


class SecurityComponentsRecord(_Record):
    settlement: str
    armory: Optional[bool] = None
    armored_vehicle: Optional[bool] = None
    hailkis: Optional[bool] = Field(None, description="Communications hub present")
    fence_type: Optional[str] = None
    command_center_type: Optional[str] = None
    defensive_security_type: Optional[str] = None


class ThreatRatingRecord(_Record):
    settlement: str
    village_proximity: int = Field(..., ge=1, le=5)
    road_proximity: int = Field(..., ge=1, le=5)
    topographic_vulnerability: int = Field(..., ge=1, le=5)
    regional_alert_level: int = Field(..., ge=1, le=5)


class IncidentRecord(_Record):
    id: str
    settlement: str
    status: str


class TrainingEventRecord(_Record):
    id: str
    settlement: Optional[str] = None
    event_date: date
    event_type: Optional[str] = None


class DrillRecord(_Record):
    id: str
    settlement: str
    drill_date: date


class WeaponHolderRecord(_Record):
    id: str
    settlement: str
    weekend_date: Optional[date] = None
    is_holding_weapon: bool = False


class SettlementRecords(BaseModel):
    """One fetch worth of source rows, plus the tables that failed to load."""

    soldiers: list[SoldierRecord] = Field(default_factory=list)
    certifications: list[CertificationRecord] = Field(default_factory=list)
    components: list[SecurityComponentsRecord] = Field(default_factory=list)
    threat_ratings: list[ThreatRatingRecord] = Field(default_factory=list)
    incidents: list[IncidentRecord] = Field(default_factory=list)
    training_events: list[TrainingEventRecord] = Field(default_factory=list)
    drills: list[DrillRecord] = Field(default_factory=list)
    weapon_holders: list[WeaponHolderRecord] = Field(default_factory=list)
    failed_sources: set[str] = Field(default_factory=set)
    # source -> settlements that had a row dropped as malformed
    malformed_sources: dict[str, set[str]] = Field(default_factory=dict)


# =============================================================================
# Metrics and scores
# =============================================================================


class CollectorResult(BaseModel):
    """Normalized sub-score from a single metric collector."""

    score: float = Field(..., ge=0, le=1)
    reasons: list[str] = Field(default_factory=list)
    facts: dict[str, Any] = Field(default_factory=dict)


class SettlementMetrics(BaseModel):
    """Per-settlement sub-scores, each normalized to [0, 1]."""

    model_config = ConfigDict(frozen=True)

    settlement: str

    # Readiness inputs (higher is better)
    personnel: float = Field(default=0.0, ge=0, le=1)
    components: float = Field(default=0.0, ge=0, le=1)
    training: float = Field(default=0.0, ge=0, le=1)

    # Risk inputs (higher is riskier)
    threat: float = Field(default=0.0, ge=0, le=1)
    infra: float = Field(default=0.0, ge=0, le=1)
    response: float = Field(default=0.0, ge=0, le=1)
    incidents: float = Field(default=0.0, ge=0, le=1)

    # Supporting facts
    reasons: tuple[str, ...] = ()
    total_soldiers: int = 0
    active_soldiers: int = 0
    expired_shooting: int = 0
    expired_certs: int = 0
    armed_count: int = 0
    open_incidents: int = 0
    degraded: bool = False
    degraded_sources: tuple[str, ...] = ()

    @property
    def fingerprint(self) -> str:
        """Fingerprint of the values that feed the composer."""
        payload = "|".join(
            [self.settlement]
            + [
                f"{getattr(self, name):.6f}"
                for name in (
                    "personnel",
                    "components",
                    "training",
                    "threat",
                    "infra",
                    "response",
                    "incidents",
                )
            ]
        )
        return hashlib.sha1(payload.encode()).hexdigest()[:16]


class ComposedScores(BaseModel):
    """Composite scores on a 0-100 scale."""

    model_config = ConfigDict(frozen=True)

    readiness: float = Field(..., ge=0, le=100)
    risk: float = Field(..., ge=0, le=100)
    priority: float = Field(..., ge=0, le=100, description="Needs-attention score")


class ReadinessBand(str, Enum):
    READY = "ready"  # 70-100
    PARTIAL = "partial"  # 40-69
    CRITICAL = "critical"  # 0-39

    @classmethod
    def from_score(cls, score: float) -> "ReadinessBand":
        if score >= 70:
            return cls.READY
        if score >= 40:
            return cls.PARTIAL
        return cls.CRITICAL


class PriorityBand(str, Enum):
    HIGH = "high"  # 70-100
    MEDIUM = "medium"  # 40-69
    LOW = "low"  # 0-39

    @classmethod
    def from_score(cls, score: float) -> "PriorityBand":
        if score >= 70:
            return cls.HIGH
        if score >= 40:
            return cls.MEDIUM
        return cls.LOW


class SettlementScore(BaseModel):
    """Complete score card for one settlement."""

    settlement: str
    region: Optional[str] = None
    company: Optional[str] = None

    readiness: float = Field(..., ge=0, le=100)
    risk: float = Field(..., ge=0, le=100)
    priority: float = Field(..., ge=0, le=100)
    readiness_band: ReadinessBand
    priority_band: PriorityBand

    # Sub-scores on a 0-100 scale
    personnel_fitness: float
    component_health: float
    training_score: float
    threat_rating: float
    infra_vulnerability: float
    response_gap: float
    incident_pressure: float

    reasons: list[str] = Field(default_factory=list)
    total_soldiers: int = 0
    active_soldiers: int = 0
    expired_shooting: int = 0
    expired_certs: int = 0
    armed_count: int = 0
    open_incidents: int = 0

    degraded: bool = Field(
        default=False, description="True when some source data failed to load"
    )
    degraded_sources: list[str] = Field(default_factory=list)
    weights_version: str
    computed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ScoreBoardSummary(BaseModel):
    """Aggregate figures across a list of settlement scores."""

    settlements: int = 0
    active_soldiers: int = 0
    expired_shooting: int = 0
    open_incidents: int = 0
    armed_count: int = 0
    average_readiness: int = 0
    critical_settlements: int = Field(default=0, description="Readiness below 40")
    degraded_settlements: int = 0


class ScoreBoard(BaseModel):
    """Ranked settlement scores with summary."""

    scores: list[SettlementScore]
    summary: ScoreBoardSummary
    weights: WeightSet
    weights_are_default: bool = False
