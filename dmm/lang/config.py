"""Run configuration. Read once from the process environment and threaded explicitly into the evaluator."""

import os
from dataclasses import dataclass

from dmm.lang.error import GenericException


SUPERVISED_VAR = "DMM_SUPERVISED"
THRESHOLD_VAR = "DMM_THRESHOLD"
DEFAULT_THRESHOLD = 20  # a supervision gate fires every 20 node visits unless overridden

TRUTHY = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Config:
    supervised: bool = False
    threshold: int = DEFAULT_THRESHOLD

    def __post_init__(self):
        if self.threshold < 1:
            raise GenericException("supervision threshold must be a positive integer, got '{}'", str(self.threshold))

    @classmethod
    def from_env(cls, environ=None):
        """Builds a Config from environ (defaults to os.environ)."""
        if environ is None:
            environ = os.environ

        supervised = environ.get(SUPERVISED_VAR, "").strip().lower() in TRUTHY

        raw = environ.get(THRESHOLD_VAR, "").strip()
        if not raw:
            return cls(supervised)
        try:
            threshold = int(raw)
        except ValueError:
            raise GenericException(f"{THRESHOLD_VAR} must be a positive integer, got '{{}}'", raw, diagnosis=False)
        return cls(supervised, threshold)
