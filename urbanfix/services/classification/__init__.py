"""
Classification plug-in architecture.

One provider contract; keyword rules as the always-available fallback and an
optional OpenAI-backed provider. Failures never block issue submission.
"""

from urbanfix.services.classification.base import ClassificationProvider, ClassificationResult
from urbanfix.services.classification.keyword_provider import KeywordClassificationProvider
from urbanfix.services.classification.openai_provider import OpenAIClassificationProvider
from urbanfix.services.classification.registry import FallbackClassifier, get_classifier, set_classifier

__all__ = [
    "ClassificationProvider",
    "ClassificationResult",
    "KeywordClassificationProvider",
    "OpenAIClassificationProvider",
    "FallbackClassifier",
    "get_classifier",
    "set_classifier",
]
