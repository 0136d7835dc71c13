"""Canary rollout model: deployment slots, telemetry and the rollout state machine.

Example:
    from canarysim.rollout import RolloutSession

    session = RolloutSession(seed=42)
    session.set_traffic_split(10)
    session.advance(20.0)
    session.rollback()
"""

from canarysim.rollout.config import (
    CANARY_BASELINE,
    STABLE_BASELINE,
    RolloutConfig,
    TelemetryBaseline,
)
from canarysim.rollout.controller import (
    CommandResult,
    RolloutController,
    RolloutControllerStats,
    RolloutPhase,
    RolloutSnapshot,
)
from canarysim.rollout.deployment import (
    INITIAL_DEPLOYMENTS,
    Deployment,
    DeploymentStatus,
    Slot,
    VersionFormatError,
    bump_version,
    parse_version,
)
from canarysim.rollout.reference import reference_documents
from canarysim.rollout.session import RolloutSession
from canarysim.rollout.simulation_clock import SimulationClock
from canarysim.rollout.telemetry import (
    LogEntry,
    MetricsGenerator,
    RequestLogGenerator,
    VersionMetricSample,
)
from canarysim.rollout.window import LogBuffer, MetricsWindow

__all__ = [
    "CANARY_BASELINE",
    "INITIAL_DEPLOYMENTS",
    "STABLE_BASELINE",
    "CommandResult",
    "Deployment",
    "DeploymentStatus",
    "LogBuffer",
    "LogEntry",
    "MetricsGenerator",
    "MetricsWindow",
    "RequestLogGenerator",
    "RolloutConfig",
    "RolloutController",
    "RolloutControllerStats",
    "RolloutPhase",
    "RolloutSession",
    "RolloutSnapshot",
    "SimulationClock",
    "Slot",
    "TelemetryBaseline",
    "VersionFormatError",
    "VersionMetricSample",
    "bump_version",
    "parse_version",
    "reference_documents",
]
