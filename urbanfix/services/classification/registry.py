"""
Classification Registry.

Builds the configured classifier and owns the fallback chain.
The lifecycle service receives one ClassificationProvider and never
branches on which backend is behind it.
"""

from urbanfix.core.errors import RecoverableError
from urbanfix.core.settings import settings
from urbanfix.services.classification.base import ClassificationProvider, ClassificationResult
from urbanfix.services.classification.keyword_provider import KeywordClassificationProvider
from urbanfix.services.classification.openai_provider import OpenAIClassificationProvider
from typing import Dict, List, Optional
import logging

logger = logging.getLogger(__name__)


class FallbackClassifier(ClassificationProvider):
    """
    Tries providers in priority order until one succeeds.

    The keyword provider is always appended last, so classify() only
    raises if every provider (including a replaced last resort) fails.
    """

    NAME = "fallback"

    def __init__(self, providers: List[ClassificationProvider], last_resort: Optional[ClassificationProvider] = None):
        self.providers = [provider for provider in providers if provider.is_enabled()]
        self.last_resort = last_resort or KeywordClassificationProvider()

    def is_enabled(self) -> bool:
        return True

    def get_model_info(self) -> Dict[str, str]:
        names = [provider.get_model_info()["name"] for provider in self.providers + [self.last_resort]]
        return {
            "name": " > ".join(names),
            "version": "1.0"
        }

    def get_timeout_seconds(self) -> float:
        return sum(provider.get_timeout_seconds() for provider in self.providers + [self.last_resort])

    def classify(
        self,
        text: str,
        address: str = "",
        audio_url: Optional[str] = None
    ) -> ClassificationResult:
        for provider in self.providers:
            name = provider.get_model_info()["name"]
            try:
                result = provider.classify(text, address, audio_url)
                logger.info(f"✅ Classification successful using {name}")
                return result
            except RecoverableError as e:
                logger.warning(f"Provider {name} failed: {e.message}")

        result = self.last_resort.classify(text, address, audio_url)
        result.fallback_used = bool(self.providers)
        if result.fallback_used:
            logger.warning(f"⚠️ All AI providers failed, classified with {self.last_resort.NAME}")
        return result


def build_classifier() -> ClassificationProvider:
    """
    Build the classifier selected by settings.

    AI disabled or no API key → keyword provider only.
    Otherwise → OpenAI first, keyword as fallback.
    """
    if not settings.AI_ENABLED:
        logger.info("⚠️ AI is disabled globally (AI_ENABLED=false), using keyword classifier only")
        return KeywordClassificationProvider()

    openai_provider = OpenAIClassificationProvider()
    if not openai_provider.is_enabled():
        return KeywordClassificationProvider()

    return FallbackClassifier([openai_provider])


# Global classifier instance (singleton)
_classifier: Optional[ClassificationProvider] = None


def get_classifier() -> ClassificationProvider:
    """Get or create the configured classifier."""
    global _classifier
    if _classifier is None:
        _classifier = build_classifier()
    return _classifier


def set_classifier(classifier: Optional[ClassificationProvider]) -> None:
    """Replace the singleton (None resets it)."""
    global _classifier
    _classifier = classifier
