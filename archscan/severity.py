"""Severity and category definitions for scanner findings."""

from __future__ import annotations

from enum import Enum
from typing import Sequence


class Severity(str, Enum):
    """Enumerate the supported severity levels for findings."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"

    @property
    def weight(self) -> int:
        """Return the score penalty contributed by one finding of this severity."""

        weights = {
            Severity.CRITICAL: 25,
            Severity.HIGH: 15,
            Severity.MEDIUM: 8,
            Severity.LOW: 3,
            Severity.INFO: 0,
        }
        return weights[self]

    @property
    def rank(self) -> int:
        """Position in report order, critical first."""

        return SEVERITY_ORDER.index(self)

    @classmethod
    def parse(cls, value: str) -> "Severity":
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(item.value for item in cls)
            raise ValueError(f"Unknown severity '{value}' (expected one of: {choices})") from None


class Category(str, Enum):
    """Areas of the architecture a finding belongs to."""

    NETWORK = "network"
    ENCRYPTION = "encryption"
    ACCESS = "access"
    STORAGE = "storage"
    COMPUTE = "compute"
    DATABASE = "database"
    MONITORING = "monitoring"
    COMPLIANCE = "compliance"


SEVERITY_ORDER: Sequence[Severity] = (
    Severity.CRITICAL,
    Severity.HIGH,
    Severity.MEDIUM,
    Severity.LOW,
    Severity.INFO,
)
