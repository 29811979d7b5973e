"""
Value types passed between the stages of a propagation cycle.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from parameter_subscriber.exceptions import InvalidNotificationError

PROPAGATING_OPERATIONS = ("Create", "Update")


class OutcomeStatus(str, Enum):
    UPDATED = "Updated"
    SKIPPED = "Skipped"
    FAILED = "Failed"


@dataclass(frozen=True)
class ChangeNotification:
    """A parameter-change event as delivered by EventBridge.

    Only Create and Update operations are propagated. Everything else
    (e.g. Delete, LabelParameterVersion) is ignored.
    """

    parameter_name: str
    operation: str

    @classmethod
    def from_event(cls, event: Dict[str, Any]) -> "ChangeNotification":
        detail = (event or {}).get("detail") or {}
        name = detail.get("name")
        if not name:
            raise InvalidNotificationError(f"Event has no detail.name: {event}")
        return cls(parameter_name=name, operation=str(detail.get("operation", "")))

    @property
    def triggers_propagation(self) -> bool:
        return self.operation in PROPAGATING_OPERATIONS


@dataclass(frozen=True)
class Subscription:
    """Binds one function's environment variable to a parameter."""

    target_function: str
    variable_name: str
    source: Optional[str] = None


@dataclass(frozen=True)
class UpdateOutcome:
    target_function: str
    variable_name: str
    status: OutcomeStatus
    detail: str

    @classmethod
    def updated(cls, subscription: Subscription, warning: Optional[str] = None) -> "UpdateOutcome":
        detail = f"Lambda Function [{subscription.target_function}] has been updated."
        if warning:
            detail = f"{detail} Warning: {warning}"
        return cls(
            subscription.target_function,
            subscription.variable_name,
            OutcomeStatus.UPDATED,
            detail,
        )

    @classmethod
    def unchanged(cls, subscription: Subscription) -> "UpdateOutcome":
        return cls(
            subscription.target_function,
            subscription.variable_name,
            OutcomeStatus.SKIPPED,
            f"Lambda Function [{subscription.target_function}] already has the current value.",
        )

    @classmethod
    def failed(cls, subscription: Subscription, error: Exception) -> "UpdateOutcome":
        return cls(
            subscription.target_function,
            subscription.variable_name,
            OutcomeStatus.FAILED,
            f"Failed to update Lambda Function [{subscription.target_function}]: {error}",
        )

    @classmethod
    def skipped_entry(cls, source: str, reason: str) -> "UpdateOutcome":
        return cls("", "", OutcomeStatus.SKIPPED, f"Not updating from [{source}]: {reason}")


@dataclass(frozen=True)
class SubscriptionSet:
    """All subscriptions resolved for one parameter name.

    Entries that could not be parsed are carried as Skipped outcomes so the
    report shows them without interrupting the remaining subscriptions.
    """

    parameter_name: str
    subscriptions: Tuple[Subscription, ...] = ()
    skipped: Tuple[UpdateOutcome, ...] = ()

    def __len__(self):
        return len(self.subscriptions)
