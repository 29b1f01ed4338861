"""
Keyword Classification Provider - deterministic fallback.

Rule-based classification without external calls.
Never performs I/O and never fails; it is the safety net behind every
other provider.
"""

from urbanfix.models.issue import Category, Priority
from urbanfix.services.classification.base import ClassificationProvider, ClassificationResult
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)

CRITICAL_SIGNALS = ("urgent", "critical")
LOW_SIGNALS = ("minor", "low")

# Checked in order; the first category with a matching signal wins
CATEGORY_SIGNALS = (
    (Category.STREETLIGHT_MAINTENANCE, ("streetlight", "street light", "lamp", "light pole", "bulb", "dark street")),
    (Category.WASTE_DISPOSAL, ("garbage", "waste", "trash", "litter", "rubbish", "dump", "bin")),
    (Category.ROAD_MAINTENANCE, ("pothole", "road", "asphalt", "pavement", "sidewalk", "crack", "street")),
)


class KeywordClassificationProvider(ClassificationProvider):
    """
    Classifies by case-insensitive substring signals.

    Priority: "urgent"/"critical" → Critical, else "minor"/"low" → Low,
    else Moderate. Category: first matching signal group, else unclassified.
    """

    NAME = "keyword"
    MODEL_NAME = "keyword-rules-v1"
    MODEL_VERSION = "1.0.0"
    TIMEOUT_SECONDS = 0.1  # No network call

    def is_enabled(self) -> bool:
        """Always enabled (fallback)."""
        return True

    def get_model_info(self) -> Dict[str, str]:
        return {
            "name": self.MODEL_NAME,
            "version": self.MODEL_VERSION
        }

    def get_timeout_seconds(self) -> float:
        return self.TIMEOUT_SECONDS

    def classify(
        self,
        text: str,
        address: str = "",
        audio_url: Optional[str] = None
    ) -> ClassificationResult:
        lowered = (text or "").lower()

        return ClassificationResult(
            priority=self.priority_for(lowered),
            category=self.category_for(lowered),
            provider=self.NAME,
            model=self.MODEL_NAME,
        )

    @staticmethod
    def priority_for(lowered: str) -> str:
        if any(signal in lowered for signal in CRITICAL_SIGNALS):
            return Priority.CRITICAL.value
        if any(signal in lowered for signal in LOW_SIGNALS):
            return Priority.LOW.value
        return Priority.MODERATE.value

    @staticmethod
    def category_for(lowered: str) -> Optional[str]:
        for category, signals in CATEGORY_SIGNALS:
            if any(signal in lowered for signal in signals):
                return category.value
        return None
