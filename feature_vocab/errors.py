"""Error kinds raised by feature-vocab.

FeatureVocabError    : base for every input error detected by the core
InsufficientSamples  : more clusters requested than sample points
DimensionMismatch    : inconsistent vector length (sample / query / vocabulary)
NonFiniteInput       : NaN or infinite component
UnknownItemReference : item id with no entry in the item name table
"""

from __future__ import annotations


class FeatureVocabError(ValueError):
    """Base class for input errors surfaced by the core."""


class InsufficientSamples(FeatureVocabError):
    def __init__(self, k: int, available: int) -> None:
        self.k = k
        self.available = available
        super().__init__(
            f"Cannot form {k} clusters from {available} sample point(s)."
        )


class DimensionMismatch(FeatureVocabError):
    def __init__(self, expected: int, got: int, what: str = "vector") -> None:
        self.expected = expected
        self.got = got
        super().__init__(
            f"{what} dimension mismatch: expected {expected}, got {got}."
        )


class NonFiniteInput(FeatureVocabError):
    def __init__(self, what: str, row: int) -> None:
        self.row = row
        super().__init__(f"{what} has a NaN or infinite component in row {row}.")


class UnknownItemReference(FeatureVocabError, KeyError):
    def __init__(self, item_ids) -> None:
        self.item_ids = list(item_ids)
        shown = ", ".join(str(i) for i in self.item_ids[:10])
        if len(self.item_ids) > 10:
            shown += ", ..."
        super().__init__(f"Item id(s) without a name: {shown}")

    # KeyError.__str__ would repr() the message
    def __str__(self) -> str:
        return self.args[0]
