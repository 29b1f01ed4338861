"""
Classification Provider Base Interface.

Defines the contract for classification providers.
Every provider maps citizen input to a category and a priority and either
returns a ClassificationResult or raises RecoverableError. Callers never
need to know which provider produced the result.
"""

from abc import ABC, abstractmethod
from urbanfix.models.issue import Category, Priority
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)

# Values an LLM may answer with that mean "none of the storable categories"
UNCLASSIFIED_LABELS = {"other", "general", "unclassified", "unknown", ""}


def coerce_category(value: Optional[str]) -> Optional[str]:
    """
    Map a raw category label onto the storable enumeration.

    "Other" and anything unrecognised become None (unclassified).
    """
    if value is None:
        return None
    label = str(value).strip()
    if label.lower() in UNCLASSIFIED_LABELS:
        return None
    for category in Category:
        if category.value.lower() == label.lower():
            return category.value
    logger.info(f"Unrecognised category '{label}' stored as unclassified")
    return None


def parse_priority(value: Optional[str]) -> Optional[str]:
    """
    Normalise a raw priority label. Returns None if the label is not one of
    the three priorities; callers decide whether that is fatal.
    """
    if value is None:
        return None
    label = str(value).strip().lower()
    for priority in Priority:
        if priority.value.lower() == label:
            return priority.value
    return None


class ClassificationResult:
    """
    Standardized classification result.

    Ephemeral value object; its fields are folded into the Issue at creation.
    """

    def __init__(
        self,
        priority: str = Priority.MODERATE.value,
        category: Optional[str] = None,
        transcription: Optional[str] = None,
        provider: str = "",
        model: str = "",
        fallback_used: bool = False,
    ):
        self.priority = priority or Priority.MODERATE.value
        self.category = category
        self.transcription = transcription
        self.provider = provider
        self.model = model
        self.fallback_used = fallback_used

    def to_dict(self) -> Dict:
        result = {
            "category": self.category,
            "priority": self.priority,
            "provider": self.provider,
            "model": self.model,
            "fallback_used": self.fallback_used,
        }
        if self.transcription:
            result["transcription"] = self.transcription
        return result

    def metadata(self) -> Dict:
        """Provenance stored on the issue for auditability."""
        return {
            "provider": self.provider,
            "model": self.model,
            "fallback_used": self.fallback_used,
        }


class ClassificationProvider(ABC):
    """
    Abstract base class for classification providers.
    """

    NAME = "base"

    @abstractmethod
    def is_enabled(self) -> bool:
        """
        Check if this provider is configured and ready.
        """
        pass

    @abstractmethod
    def get_model_info(self) -> Dict[str, str]:
        """
        Returns:
            Dict with 'name' and 'version' keys
        """
        pass

    @abstractmethod
    def get_timeout_seconds(self) -> float:
        pass

    @abstractmethod
    def classify(
        self,
        text: str,
        address: str = "",
        audio_url: Optional[str] = None
    ) -> ClassificationResult:
        """
        Derive category and priority from citizen input.

        Args:
            text: Free-text description (may be empty)
            address: Free-text address, context only
            audio_url: Reference to an audio note, if any

        Returns:
            ClassificationResult

        Raises:
            RecoverableError: backend unavailable or response unusable
        """
        pass
