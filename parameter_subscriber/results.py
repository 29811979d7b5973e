"""
Aggregation of per-target outcomes into the cycle report.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import List

from parameter_subscriber.config import logger
from parameter_subscriber.models import OutcomeStatus, UpdateOutcome

STATUS_SUCCESS = "success"
STATUS_FAILED = "failed"


@dataclass
class PropagationReport:
    """Result of one propagation cycle.

    A cycle that reached the fan-out stage is a success even when some
    targets failed; those failures only show up in the outcomes.
    """

    parameter_name: str
    operation: str
    outcomes: List[UpdateOutcome] = field(default_factory=list)
    status: str = STATUS_SUCCESS
    ignored: bool = False

    def counts(self):
        counter = Counter(outcome.status for outcome in self.outcomes)
        return {status: counter.get(status, 0) for status in OutcomeStatus}

    @property
    def failures(self):
        return [o for o in self.outcomes if o.status is OutcomeStatus.FAILED]

    def summary_lines(self):
        lines = [f"[{o.status.value}] {o.detail}" for o in self.outcomes]
        counts = self.counts()
        lines.append(
            f"{self.operation} of {self.parameter_name}: "
            f"{counts[OutcomeStatus.UPDATED]} updated, "
            f"{counts[OutcomeStatus.SKIPPED]} skipped, "
            f"{counts[OutcomeStatus.FAILED]} failed"
        )
        return lines

    def log(self):
        if self.ignored:
            logger.info(
                f"Skipping {self.operation} event for {self.parameter_name} - not a propagating operation"
            )
            return
        for outcome in self.outcomes:
            if outcome.status is OutcomeStatus.FAILED:
                logger.error(outcome.detail)
            else:
                logger.info(outcome.detail)
        logger.info(self.summary_lines()[-1])

    def to_response(self):
        return {"message": self.status}
