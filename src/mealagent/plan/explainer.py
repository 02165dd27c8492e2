"""Turns scoring reason codes into short display chips."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ReasonChip:
    """Human-readable label for a reason code."""

    text: str
    variant: str = "default"  # "default", "success", "warning", "info"


REASON_CHIPS: dict[str, ReasonChip] = {
    "favorite": ReasonChip("Your favorite", "success"),
    "quick": ReasonChip("Quick", "success"),
    "≤30m": ReasonChip("Under 30 min", "success"),
    "≤40m": ReasonChip("Under 40 min", "default"),
    "best value": ReasonChip("Best value", "success"),
    "kid-friendly": ReasonChip("Kid-friendly", "info"),
    "bulk cook": ReasonChip("Bulk cook", "info"),
    "reuses ingredients": ReasonChip("Reuses ingredients", "info"),
    "high-protein": ReasonChip("High protein", "info"),
    "vegetarian": ReasonChip("Vegetarian", "info"),
    "simple": ReasonChip("Simple recipe", "default"),
}

PRIORITY_ORDER = (
    "favorite",
    "quick",
    "≤30m",
    "best value",
    "kid-friendly",
    "bulk cook",
    "reuses ingredients",
    "≤40m",
    "high-protein",
    "vegetarian",
    "simple",
)


class DeterministicExplainer:
    """Maps reason codes to chips by a fixed priority order."""

    def __init__(self, chips: dict[str, ReasonChip] | None = None, max_chips: int = 3):
        self.chips = dict(chips or REASON_CHIPS)
        self.max_chips = max_chips

    def explain(self, reasons: list[str]) -> list[ReasonChip]:
        """Get up to max_chips chips for the known reasons, highest priority first."""
        known = [reason for reason in dict.fromkeys(reasons) if reason in self.chips]
        known.sort(key=lambda r: PRIORITY_ORDER.index(r) if r in PRIORITY_ORDER else len(PRIORITY_ORDER))
        return [self.chips[reason] for reason in known[: self.max_chips]]

    def chip_texts(self, reasons: list[str]) -> list[str]:
        """Get just the chip labels."""
        return [chip.text for chip in self.explain(reasons)]
