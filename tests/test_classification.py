"""Tests for classification providers and the fallback chain"""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from urbanfix.core.errors import RecoverableError
from urbanfix.core.settings import settings
from urbanfix.services.classification.base import ClassificationResult, coerce_category, parse_priority
from urbanfix.services.classification.keyword_provider import KeywordClassificationProvider
from urbanfix.services.classification.openai_provider import OpenAIClassificationProvider
from urbanfix.services.classification.registry import FallbackClassifier


def chat_response(content, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = {"choices": [{"message": {"content": content}}]}
    return response


@pytest.fixture
def openai_provider():
    return OpenAIClassificationProvider(
        api_key="sk-test",
        timeout_seconds=2.0,
        api_base="https://llm.test/v1",
        media_base_url="https://media.test/",
    )


class FailingProvider(KeywordClassificationProvider):
    NAME = "failing"

    def classify(self, text, address="", audio_url=None):
        raise RecoverableError("backend down")


# Keyword provider

def test_keyword_urgent_pothole_is_critical_road():
    result = KeywordClassificationProvider().classify("Urgent pothole on 5th Ave", "5th Ave")
    assert result.priority == "Critical"
    assert result.category == "Road Maintenance"
    assert result.provider == "keyword"


def test_keyword_priority_signals():
    provider = KeywordClassificationProvider()
    assert provider.classify("critical gas smell").priority == "Critical"
    assert provider.classify("minor crack in the curb").priority == "Low"
    assert provider.classify("bin not emptied").priority == "Moderate"


def test_keyword_critical_beats_low():
    assert KeywordClassificationProvider().classify("urgent but minor").priority == "Critical"


def test_keyword_matching_is_substring_and_case_insensitive():
    # "slowly" contains "low"
    assert KeywordClassificationProvider().classify("Water draining SLOWLY").priority == "Low"


def test_keyword_categories():
    provider = KeywordClassificationProvider()
    assert provider.classify("Streetlight flickering all night").category == "Streetlight Maintenance"
    assert provider.classify("Garbage piling up near the market").category == "Waste Disposal"
    assert provider.classify("Something smells weird").category is None


def test_keyword_streetlight_wins_over_street():
    assert KeywordClassificationProvider().classify("broken street light").category == "Streetlight Maintenance"


def test_keyword_empty_text():
    result = KeywordClassificationProvider().classify("")
    assert result.priority == "Moderate"
    assert result.category is None


# Label normalisation

def test_coerce_category():
    assert coerce_category("road maintenance") == "Road Maintenance"
    assert coerce_category("Other") is None
    assert coerce_category("Parks") is None
    assert coerce_category(None) is None


def test_parse_priority():
    assert parse_priority(" critical ") == "Critical"
    assert parse_priority("Severe") is None
    assert parse_priority(None) is None


def test_result_defaults_to_moderate():
    assert ClassificationResult(priority=None).priority == "Moderate"


# OpenAI provider

def test_openai_disabled_without_key():
    provider = OpenAIClassificationProvider(api_key="")
    assert not provider.is_enabled()
    with pytest.raises(RecoverableError):
        provider.classify("pothole")


def test_openai_classifies_from_json(openai_provider):
    content = json.dumps({"category": "Waste Disposal", "priority": "Low"})
    with patch("urbanfix.services.classification.openai_provider.requests.post", return_value=chat_response(content)) as post:
        result = openai_provider.classify("Bin not emptied", "Main St")

    assert result.category == "Waste Disposal"
    assert result.priority == "Low"
    assert result.provider == "openai"
    assert result.transcription is None

    url = post.call_args.args[0]
    assert url == "https://llm.test/v1/chat/completions"
    assert post.call_args.kwargs["timeout"] == 2.0
    assert "Main St" in post.call_args.kwargs["json"]["messages"][1]["content"]


def test_openai_strips_code_fences(openai_provider):
    content = '```json\n{"category": "Road Maintenance", "priority": "Critical"}\n```'
    with patch("urbanfix.services.classification.openai_provider.requests.post", return_value=chat_response(content)):
        result = openai_provider.classify("sinkhole")
    assert result.category == "Road Maintenance"
    assert result.priority == "Critical"


def test_openai_other_category_is_unclassified(openai_provider):
    content = json.dumps({"category": "Other", "priority": "Moderate"})
    with patch("urbanfix.services.classification.openai_provider.requests.post", return_value=chat_response(content)):
        result = openai_provider.classify("noisy neighbours")
    assert result.category is None


def test_openai_missing_priority_defaults_to_moderate(openai_provider):
    content = json.dumps({"category": "Road Maintenance"})
    with patch("urbanfix.services.classification.openai_provider.requests.post", return_value=chat_response(content)):
        result = openai_provider.classify("crack")
    assert result.priority == "Moderate"


@pytest.mark.parametrize("content", [
    "not json at all",
    json.dumps(["Road Maintenance", "Critical"]),
    json.dumps({"category": "Road Maintenance", "priority": "Severe"}),
])
def test_openai_unusable_answers_are_recoverable(openai_provider, content):
    with patch("urbanfix.services.classification.openai_provider.requests.post", return_value=chat_response(content)):
        with pytest.raises(RecoverableError):
            openai_provider.classify("pothole")


def test_openai_http_error_is_recoverable(openai_provider):
    with patch("urbanfix.services.classification.openai_provider.requests.post", return_value=chat_response("", status_code=500)):
        with pytest.raises(RecoverableError):
            openai_provider.classify("pothole")


def test_openai_timeout_is_recoverable(openai_provider):
    with patch("urbanfix.services.classification.openai_provider.requests.post", side_effect=requests.Timeout("slow")):
        with pytest.raises(RecoverableError):
            openai_provider.classify("pothole")


def test_openai_transcribes_audio_first(openai_provider):
    audio = MagicMock(status_code=200, content=b"RIFF....")
    transcription = MagicMock(status_code=200)
    transcription.json.return_value = {"text": "There is garbage everywhere"}
    chat = chat_response(json.dumps({"category": "Waste Disposal", "priority": "Moderate"}))

    with patch("urbanfix.services.classification.openai_provider.requests.get", return_value=audio), \
            patch("urbanfix.services.classification.openai_provider.requests.post", side_effect=[transcription, chat]) as post:
        result = openai_provider.classify("", "Market Rd", "https://media.test/note.wav")

    assert result.transcription == "There is garbage everywhere"
    assert result.category == "Waste Disposal"
    assert post.call_args_list[0].args[0] == "https://llm.test/v1/audio/transcriptions"
    assert "There is garbage everywhere" in post.call_args_list[1].kwargs["json"]["messages"][1]["content"]


def test_openai_audio_download_failure_is_recoverable(openai_provider):
    with patch("urbanfix.services.classification.openai_provider.requests.get", return_value=MagicMock(status_code=404)):
        with pytest.raises(RecoverableError):
            openai_provider.classify("", "", "https://media.test/missing.wav")


def test_openai_never_reads_local_audio_paths(openai_provider, tmp_path):
    secret = tmp_path / "secret.txt"
    secret.write_bytes(b"server-only contents")

    with patch("urbanfix.services.classification.openai_provider.requests.get") as get, \
            patch("urbanfix.services.classification.openai_provider.requests.post") as post:
        for reference in (str(secret), f"file://{secret}"):
            with pytest.raises(RecoverableError):
                openai_provider.classify("", "Main St", reference)

    get.assert_not_called()
    post.assert_not_called()


@pytest.mark.parametrize("reference", [
    "https://attacker.test/note.wav",
    "http://media.test/note.wav",
    "https://169.254.169.254/latest/meta-data",
    "https://media.test/../admin",
])
def test_openai_only_fetches_from_media_storage(openai_provider, reference):
    with patch("urbanfix.services.classification.openai_provider.requests.get") as get:
        with pytest.raises(RecoverableError):
            openai_provider.classify("", "Main St", reference)
    get.assert_not_called()


def test_openai_refuses_audio_without_media_base(monkeypatch):
    monkeypatch.setattr(settings, "MEDIA_BASE_URL", None)
    provider = OpenAIClassificationProvider(api_key="sk-test")
    assert not provider.is_allowed_audio_url("https://media.test/note.wav")


def test_openai_empty_input_is_recoverable(openai_provider):
    with pytest.raises(RecoverableError):
        openai_provider.classify("   ")


# Fallback chain

def test_fallback_uses_first_successful_provider():
    primary = KeywordClassificationProvider()
    chain = FallbackClassifier([primary])
    result = chain.classify("urgent pothole")
    assert result.priority == "Critical"
    assert result.fallback_used is False


def test_fallback_to_keyword_when_ai_fails():
    chain = FallbackClassifier([FailingProvider()])
    result = chain.classify("Urgent pothole on 5th Ave")
    assert result.provider == "keyword"
    assert result.priority == "Critical"
    assert result.fallback_used is True


def test_fallback_skips_disabled_providers():
    chain = FallbackClassifier([OpenAIClassificationProvider(api_key="")])
    assert chain.providers == []
    result = chain.classify("overflowing bin")
    assert result.fallback_used is False
    assert result.category == "Waste Disposal"


def test_fallback_raises_when_last_resort_fails():
    chain = FallbackClassifier([FailingProvider()], last_resort=FailingProvider())
    with pytest.raises(RecoverableError):
        chain.classify("anything")
