"""
Capacity Policy — daily bed limit and capacity bands.

BAND RULES:
===========

FULL      occupant_count >= capacity, or new_arrivals >= capacity
LIMITED   occupant_count >= limited_at
AVAILABLE otherwise

limited_at defaults to capacity - 1 (one bed left). With the standard
capacity of 4 that is 3 occupants.

The occupancy calendar and the treatment-date dialog used to disagree here
(3 vs 2 for the same capacity of 4). There is one rule now; a facility that
wants an earlier warning sets limited_at in config/capacity.yaml.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

import yaml

from facility import config, paths

from .errors import InvalidPolicyError
from .models import CapacityStatus

logger = logging.getLogger(__name__)


def classify_status(
    occupant_count: int,
    new_arrivals_count: int = 0,
    capacity: int = config.DAILY_CAPACITY,
    limited_at: int | None = None,
) -> CapacityStatus:
    """Band a day's occupancy. Non-decreasing in occupant_count."""
    if limited_at is None:
        limited_at = max(1, capacity - 1)
    if occupant_count >= capacity or new_arrivals_count >= capacity:
        return CapacityStatus.FULL
    if occupant_count >= limited_at:
        return CapacityStatus.LIMITED
    return CapacityStatus.AVAILABLE


@dataclass(frozen=True)
class CapacityPolicy:
    """Daily capacity and the occupant count where a day turns LIMITED."""

    capacity: int = config.DAILY_CAPACITY
    limited_at: int | None = None

    def __post_init__(self):
        if not isinstance(self.capacity, int) or self.capacity < 1:
            raise InvalidPolicyError(f"capacity must be a positive integer, got {self.capacity!r}")
        if self.limited_at is None:
            object.__setattr__(self, "limited_at", max(1, self.capacity - 1))
        elif not isinstance(self.limited_at, int) or not 1 <= self.limited_at <= self.capacity:
            raise InvalidPolicyError(
                f"limited_at must be between 1 and {self.capacity}, got {self.limited_at!r}"
            )

    def classify(self, occupant_count: int, new_arrivals_count: int = 0) -> CapacityStatus:
        return classify_status(
            occupant_count,
            new_arrivals_count,
            capacity=self.capacity,
            limited_at=self.limited_at,
        )

    def remaining(self, occupant_count: int) -> int:
        return max(0, self.capacity - occupant_count)

    def to_dict(self) -> dict:
        return {"capacity": self.capacity, "limited_at": self.limited_at}

    @classmethod
    def load(cls, config_path: Path | None = None) -> "CapacityPolicy":
        """
        Load from YAML. Keys missing from the file, or a missing file, fall back
        to config.DAILY_CAPACITY and capacity - 1.

        Raises:
            InvalidPolicyError: If the file exists but holds invalid values
        """
        if config_path is None:
            config_path = paths.capacity_config_path()

        if not config_path.exists():
            logger.warning("Capacity config not found at %s, using defaults", config_path)
            return cls(capacity=config.DAILY_CAPACITY)

        try:
            with open(config_path) as f:
                raw = yaml.safe_load(f) or {}
        except (yaml.YAMLError, OSError) as exc:
            raise InvalidPolicyError(f"Failed to load capacity config {config_path}: {exc}") from exc

        if not isinstance(raw, dict):
            raise InvalidPolicyError(f"Capacity config {config_path} must be a mapping")

        return cls(
            capacity=raw.get("capacity", config.DAILY_CAPACITY),
            limited_at=raw.get("limited_at"),
        )


DEFAULT_POLICY = CapacityPolicy()
