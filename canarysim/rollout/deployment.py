"""Deployment records and the version arithmetic used by transitions.

Example:
    from canarysim.rollout.deployment import INITIAL_DEPLOYMENTS, Slot, bump_version

    stable = INITIAL_DEPLOYMENTS[Slot.STABLE]
    bump_version(stable.version)  # "v1.1"
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum

_VERSION_PATTERN = re.compile(r"v(\d+)\.(\d)")
_STEP_TOLERANCE = 1e-9


class VersionFormatError(ValueError):
    """Raised when a version tag is not of the form ``vMAJOR.MINOR``.

    Version tags are generated internally, so this indicates a programming
    error rather than bad operator input.
    """


class Slot(str, Enum):
    """The two fixed deployment roles. Contents change, roles never do."""

    STABLE = "stable"
    CANARY = "canary"


class DeploymentStatus(str, Enum):
    RUNNING = "Running"
    PROVISIONING = "Provisioning"
    FAILED = "Failed"


@dataclass(frozen=True)
class Deployment:
    """Contents of one deployment slot.

    Attributes:
        version: Version tag, e.g. "v1.0".
        instance_count: Number of replicas.
        status: Lifecycle status.
        cpu_request: Opaque resource quantity, e.g. "250m".
        memory_request: Opaque resource quantity, e.g. "512Mi".
    """

    version: str
    instance_count: int
    status: DeploymentStatus = DeploymentStatus.RUNNING
    cpu_request: str = "250m"
    memory_request: str = "512Mi"

    def __post_init__(self):
        if self.instance_count < 0:
            raise ValueError(f"instance_count must be >= 0, got {self.instance_count}")
        parse_version(self.version)

    def with_version(self, version: str) -> Deployment:
        return replace(self, version=version)

    def with_status(self, status: DeploymentStatus) -> Deployment:
        return replace(self, status=status)


def parse_version(version: str) -> tuple[int, int]:
    """Split ``"vX.Y"`` into (X, Y).

    Raises:
        VersionFormatError: If the tag does not match exactly.
    """
    match = _VERSION_PATTERN.fullmatch(version)
    if match is None:
        raise VersionFormatError(f"Malformed version tag: {version!r}")
    return int(match.group(1)), int(match.group(2))


def step_in_tenths(step: float) -> int:
    """Convert a version step to a whole number of tenths.

    Raises:
        ValueError: If ``step`` is not a positive multiple of 0.1.
    """
    tenths = round(step * 10)
    if tenths < 1 or abs(step * 10 - tenths) > _STEP_TOLERANCE:
        raise ValueError(f"Version step must be a positive multiple of 0.1, got {step!r}")
    return tenths


def bump_version(version: str, step: float = 0.1) -> str:
    """Return ``version`` advanced by ``step``, formatted to one decimal.

    Arithmetic is done in tenths so that v1.9 -> v2.0 is exact.
    """
    major, minor = parse_version(version)
    tenths = major * 10 + minor + step_in_tenths(step)
    return f"v{tenths // 10}.{tenths % 10}"


INITIAL_DEPLOYMENTS: dict[Slot, Deployment] = {
    Slot.STABLE: Deployment(version="v1.0", instance_count=5),
    Slot.CANARY: Deployment(version="v1.1", instance_count=1),
}
