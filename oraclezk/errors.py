"""
Exception hierarchy for circuit construction and witness evaluation
"""

from dataclasses import dataclass
from typing import List, Optional


class OracleZkError(Exception):
    """Base class for all oraclezk errors"""


class CircuitBuildError(OracleZkError):
    """Invalid parameters or gadget misuse while building a circuit"""


class WitnessError(OracleZkError):
    """Witness input has the wrong shape or contains values outside the field"""


@dataclass(frozen=True)
class Violation:
    """One unsatisfied constraint, tagged with where it was emitted"""
    constraint_id: int
    group: str
    index: Optional[int]
    label: str

    def describe(self) -> str:
        where = self.group if self.index is None else f"{self.group}[{self.index}]"
        return f"{where}: {self.label} (constraint #{self.constraint_id})"

    def to_dict(self) -> dict:
        return {
            "constraint_id": self.constraint_id,
            "group": self.group,
            "index": self.index,
            "label": self.label,
        }


class ConstraintViolation(OracleZkError):
    """Raised when a witness does not satisfy the constraint system"""

    def __init__(self, violations: List[Violation]):
        self.violations = list(violations)
        first = self.violations[0].describe() if self.violations else "unknown"
        extra = len(self.violations) - 1
        msg = f"unsatisfied constraint at {first}"
        if extra > 0:
            msg += f" (+{extra} more)"
        super().__init__(msg)

    @property
    def first(self) -> Violation:
        return self.violations[0]

    @property
    def groups(self) -> List[str]:
        seen = []
        for v in self.violations:
            if v.group not in seen:
                seen.append(v.group)
        return seen
