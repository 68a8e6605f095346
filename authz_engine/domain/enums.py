"""Domain enumerations for plans and features."""

from enum import Enum


class PlanTier(str, Enum):
    """Commercial plan tier of an organization.

    Stored denormalized on the organization; the engine only reports which
    tier an active plan assignment implies.
    """

    STARTER = "STARTER"
    PROFESSIONAL = "PROFESSIONAL"
    ENTERPRISE = "ENTERPRISE"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid tier values as strings."""
        return [tier.value for tier in cls]


class FeatureValueType(str, Enum):
    """How a feature's value is interpreted when deciding if it is granted."""

    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    JSON = "json"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid value types as strings."""
        return [value_type.value for value_type in cls]
