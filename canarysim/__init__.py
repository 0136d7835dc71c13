"""canarysim: a discrete-event simulator of a canary release process.

The library is silent by default. Enable logging with
``canarysim.enable_console_logging()`` or ``canarysim.configure_from_env()``.
"""

import logging

from canarysim.logging_config import (
    configure_from_env,
    disable_logging,
    enable_console_logging,
    enable_file_logging,
    enable_json_logging,
    set_level,
    set_module_level,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

from canarysim.core import Clock, Duration, Entity, Event, EventHeap, Instant, Simulation  # noqa: E402
from canarysim.rollout import (  # noqa: E402
    INITIAL_DEPLOYMENTS,
    CommandResult,
    Deployment,
    DeploymentStatus,
    LogBuffer,
    LogEntry,
    MetricsGenerator,
    MetricsWindow,
    RequestLogGenerator,
    RolloutConfig,
    RolloutController,
    RolloutControllerStats,
    RolloutPhase,
    RolloutSession,
    RolloutSnapshot,
    SimulationClock,
    Slot,
    VersionFormatError,
    VersionMetricSample,
    bump_version,
    reference_documents,
)

__all__ = [
    # Core
    "Clock",
    "Duration",
    "Entity",
    "Event",
    "EventHeap",
    "Instant",
    "Simulation",
    # Rollout
    "INITIAL_DEPLOYMENTS",
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
    "VersionFormatError",
    "VersionMetricSample",
    "bump_version",
    "reference_documents",
    # Logging
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_logging",
    "set_level",
    "set_module_level",
]
