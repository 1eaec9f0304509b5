"""Validation result types."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Violation:
    """One failed schema rule.

    ``path`` is a JSON pointer into the validated value (``""`` is the
    root, ``"/name"`` a top-level field, ``"/items/0"`` an array
    element). ``rule`` is the schema keyword that failed (``"required"``,
    ``"type"``, ``"enum"``, ``"additionalProperties"``, ``"json"``).
    """

    path: str
    rule: str
    message: str = ""

    def as_dict(self) -> dict[str, str]:
        return {"path": self.path, "rule": self.rule, "message": self.message}
