"""
OpenAI Classification Provider - LLM-backed classification.

Transcribes an audio note (if any) with the audio transcription endpoint,
then asks a chat model for a strict JSON category/priority answer.
Every network or parse failure is raised as RecoverableError.
"""

from urbanfix.core.errors import RecoverableError
from urbanfix.core.settings import settings
from urbanfix.services.classification.base import (
    ClassificationProvider,
    ClassificationResult,
    coerce_category,
    parse_priority,
)
from typing import Dict, Optional
from urllib.parse import urlparse
import json
import logging
import posixpath
import requests

logger = logging.getLogger(__name__)

PROMPT_CATEGORIES = ("Road Maintenance", "Waste Disposal", "Streetlight Maintenance", "Other")
PROMPT_PRIORITIES = ("Critical", "Moderate", "Low")

SYSTEM_PROMPT = (
    "You are an assistant that classifies urban issues and assigns priority levels. "
    "Respond ONLY with valid minified JSON and no other text."
)


class OpenAIClassificationProvider(ClassificationProvider):
    """
    OpenAI API provider for classification.

    Requires OPENAI_API_KEY. Uses requests with an explicit timeout
    (AI_TIMEOUT_SECONDS) so a slow backend degrades to the fallback instead
    of hanging the submission.

    Audio notes are downloaded only from under MEDIA_BASE_URL; without it
    set, audio references are refused and the text alone is classified
    by the fallback.
    """

    NAME = "openai"
    MODEL_VERSION = "1.0"

    def __init__(
        self,
        api_key: Optional[str] = None,
        chat_model: Optional[str] = None,
        transcription_model: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        api_base: Optional[str] = None,
        media_base_url: Optional[str] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self.chat_model = chat_model or settings.OPENAI_CHAT_MODEL
        self.transcription_model = transcription_model or settings.OPENAI_TRANSCRIPTION_MODEL
        self.timeout_seconds = timeout_seconds or settings.AI_TIMEOUT_SECONDS
        self.api_base = (api_base or settings.OPENAI_API_BASE).rstrip("/")
        self.media_base_url = media_base_url or settings.MEDIA_BASE_URL
        self.enabled = bool(self.api_key and self.api_key.strip())

        if self.enabled:
            logger.info(f"✅ OpenAI classification provider initialized: {self.chat_model}")
        else:
            logger.info("⚠️ OpenAI classification provider disabled: No API key configured")

    def is_enabled(self) -> bool:
        return self.enabled

    def get_model_info(self) -> Dict[str, str]:
        return {
            "name": self.chat_model,
            "version": self.MODEL_VERSION
        }

    def get_timeout_seconds(self) -> float:
        return self.timeout_seconds

    def classify(
        self,
        text: str,
        address: str = "",
        audio_url: Optional[str] = None
    ) -> ClassificationResult:
        if not self.enabled:
            raise RecoverableError("OpenAI API key not configured")

        transcription = None
        content = (text or "").strip()
        if audio_url:
            transcription = self._transcribe(audio_url)
            content = transcription

        if not content:
            raise RecoverableError("Nothing to classify: empty description and no transcription")

        raw = self._call_chat_api(self._build_prompt(content, address))
        parsed = self._parse_response(raw)

        return ClassificationResult(
            priority=parsed["priority"],
            category=parsed["category"],
            transcription=transcription,
            provider=self.NAME,
            model=self.chat_model,
        )

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def _build_prompt(self, content: str, address: str) -> str:
        return f"""Classify the following issue into one of these categories:
{", ".join(PROMPT_CATEGORIES[:-1])}, or {PROMPT_CATEGORIES[-1]}.
Assign a priority level: {", ".join(PROMPT_PRIORITIES[:-1])}, or {PROMPT_PRIORITIES[-1]}.

Address: "{address}"
Issue: "{content}"

Respond in JSON format:
{{"category": "<Category>", "priority": "<Priority>"}}"""

    def is_allowed_audio_url(self, audio_url: str) -> bool:
        """
        Audio is only fetched over http(s) from the media storage service.
        Local paths and any host outside MEDIA_BASE_URL are refused.
        """
        parsed = urlparse(audio_url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            return False
        if not self.media_base_url:
            return False
        base = urlparse(self.media_base_url)
        return (
            parsed.scheme == base.scheme
            and parsed.netloc.lower() == base.netloc.lower()
            and parsed.path.startswith(base.path or "/")
            and ".." not in parsed.path.split("/")
        )

    def _load_audio(self, audio_url: str) -> bytes:
        if not self.is_allowed_audio_url(audio_url):
            logger.warning(f"⚠️ Refusing to fetch audio outside media storage: {audio_url[:200]}")
            raise RecoverableError("Audio reference is not a media storage URL")
        response = requests.get(audio_url, timeout=self.timeout_seconds, allow_redirects=False)
        if response.status_code != 200:
            raise RecoverableError(f"Audio download returned status {response.status_code}")
        return response.content

    def _transcribe(self, audio_url: str) -> str:
        try:
            audio = self._load_audio(audio_url)
            response = requests.post(
                f"{self.api_base}/audio/transcriptions",
                headers=self._headers(),
                data={"model": self.transcription_model, "language": "en"},
                files={"file": (posixpath.basename(urlparse(audio_url).path) or "audio", audio)},
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as e:
            logger.warning(f"⚠️ Audio transcription failed: {e}")
            raise RecoverableError(f"Audio transcription failed: {e}") from e

        if response.status_code != 200:
            raise RecoverableError(f"Transcription API returned status {response.status_code}")

        try:
            text = response.json().get("text", "")
        except ValueError as e:
            raise RecoverableError("Transcription API returned invalid JSON") from e

        text = (text or "").strip()
        if not text:
            raise RecoverableError("Transcription was empty")
        return text

    def _call_chat_api(self, prompt: str) -> str:
        payload = {
            "model": self.chat_model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt}
            ],
            "temperature": 0,
            "max_tokens": 100,
            "response_format": {"type": "json_object"},
        }

        try:
            response = requests.post(
                f"{self.api_base}/chat/completions",
                headers=self._headers(),
                json=payload,
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as e:
            logger.warning(f"⚠️ OpenAI API call failed: {e}")
            raise RecoverableError(f"OpenAI API call failed: {e}") from e

        if response.status_code != 200:
            raise RecoverableError(f"OpenAI API returned status {response.status_code}")

        try:
            data = response.json()
            return data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise RecoverableError("OpenAI API returned an unexpected payload") from e

    def _parse_response(self, text: str) -> Dict:
        """
        Parse the model answer. Strict: the answer must be a JSON object and
        any priority it states must be one of the three priorities.
        """
        text = (text or "").strip()
        # Models occasionally wrap JSON in markdown code fences
        if text.startswith("```"):
            text = text.strip("`")
            if text.startswith("json"):
                text = text[4:]
            text = text.strip()

        try:
            parsed = json.loads(text)
        except ValueError as e:
            logger.warning(f"Failed to parse classification response: {text[:200]}")
            raise RecoverableError("Classification response is not valid JSON") from e

        if not isinstance(parsed, dict):
            raise RecoverableError("Classification response is not a JSON object")

        raw_priority = parsed.get("priority")
        priority = parse_priority(raw_priority) if raw_priority is not None else None
        if raw_priority is not None and priority is None:
            raise RecoverableError(f"Classification response has invalid priority '{raw_priority}'")

        return {
            "category": coerce_category(parsed.get("category")),
            "priority": priority,
        }
