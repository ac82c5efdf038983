"""Keyword classification package."""

from financeai.classifier.keywords import (
    DEFAULT_ASSET_KEYWORDS,
    DEFAULT_CATEGORY_KEYWORDS,
    AssetClassifier,
    CategoryClassifier,
    KeywordClassifier,
)

__all__ = [
    "DEFAULT_ASSET_KEYWORDS",
    "DEFAULT_CATEGORY_KEYWORDS",
    "AssetClassifier",
    "CategoryClassifier",
    "KeywordClassifier",
]
