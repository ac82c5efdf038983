"""
Keyword Classifiers

Buckets free text by case-insensitive substring match against ordered
keyword sets. The first bucket with a hit wins; nothing matching means
the default bucket.

DESIGN DECISION: We use simple keyword matching rather than ML because:
1. More transparent to the user
2. Easier to debug
3. Deterministic, so the same sentence always lands in the same account
"""

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Generic, TypeVar

from financeai.models.ledger import AssetType, ExpenseCategory


E = TypeVar("E", bound=Enum)


# Order matters: "gas" is a utility before it is fuel.
DEFAULT_CATEGORY_KEYWORDS: dict[ExpenseCategory, tuple[str, ...]] = {
    ExpenseCategory.FOOD: (
        "food", "lunch", "dinner", "breakfast", "restaurant", "meal",
        "coffee", "snack", "groceries", "grocery", "pizza", "cafe",
    ),
    ExpenseCategory.RENT: (
        "rent", "lease", "landlord",
    ),
    ExpenseCategory.UTILITIES: (
        "utilities", "utility", "electricity", "electric", "water",
        "gas", "internet", "phone", "power bill",
    ),
    ExpenseCategory.TRANSPORTATION: (
        "transportation", "transport", "taxi", "uber", "lyft", "bus",
        "train", "fuel", "petrol", "diesel", "parking", "fare", "flight",
    ),
    ExpenseCategory.SUPPLIES: (
        "supplies", "supply", "stationery", "paper", "office", "ink",
        "toner", "pens",
    ),
}

DEFAULT_ASSET_KEYWORDS: dict[AssetType, tuple[str, ...]] = {
    AssetType.COMPUTERS: (
        "computer", "laptop", "pc", "macbook", "server", "tablet", "monitor",
    ),
    AssetType.VEHICLES: (
        "vehicle", "car", "truck", "van", "motorcycle", "scooter", "bike",
    ),
    AssetType.FURNITURE: (
        "furniture", "desk", "chair", "table", "sofa", "shelf", "cabinet",
    ),
    AssetType.EQUIPMENT: (
        "equipment", "machine", "machinery", "printer", "tool", "camera",
        "oven", "fridge",
    ),
}


class KeywordClassifier(Generic[E]):
    """
    Ordered keyword lookup.

    `classify` is a pure function of its input: no state is read or
    written beyond the keyword table fixed at construction.
    """

    def __init__(
        self,
        keywords: Mapping[E, Iterable[str]],
        default: E,
    ):
        self._keywords: tuple[tuple[E, tuple[str, ...]], ...] = tuple(
            (bucket, tuple(kw.lower() for kw in words))
            for bucket, words in keywords.items()
        )
        self._default = default

    @property
    def default(self) -> E:
        return self._default

    @property
    def buckets(self) -> list[E]:
        """Buckets in the order they are tried."""
        return [bucket for bucket, _ in self._keywords]

    def classify(self, text: str) -> E:
        """Return the first bucket whose keywords occur in `text`."""
        lowered = (text or "").lower()
        for bucket, words in self._keywords:
            if any(kw in lowered for kw in words):
                return bucket
        return self._default


class CategoryClassifier(KeywordClassifier[ExpenseCategory]):
    """Buckets expense descriptions into food, rent, utilities, etc."""

    def __init__(
        self,
        keywords: Mapping[ExpenseCategory, Iterable[str]] = DEFAULT_CATEGORY_KEYWORDS,
    ):
        super().__init__(keywords, ExpenseCategory.OTHER)


class AssetClassifier(KeywordClassifier[AssetType]):
    """Maps a named purchase ("laptop", "delivery van") to an asset account."""

    def __init__(
        self,
        keywords: Mapping[AssetType, Iterable[str]] = DEFAULT_ASSET_KEYWORDS,
    ):
        super().__init__(keywords, AssetType.OTHER)
