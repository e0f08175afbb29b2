"""Tests for the moderation vendor HTTP client."""

from pathlib import Path
from unittest.mock import MagicMock, Mock

import pytest
import requests

from profilereview.configuration.moderation_settings import ModerationSettings
from profilereview.moderation.moderation_client import (
    SIGHTENGINE_MODELS,
    ModerationAPIClient,
    TextModerationResult,
)
from profilereview.util.errors import ModerationAPIError


def make_response(status_code=200, payload=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.text = text
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def photo(tmp_path: Path) -> Path:
    path = tmp_path / "photo.jpg"
    path.write_bytes(b"\xff\xd8fake-jpeg")
    return path


@pytest.fixture
def settings(monkeypatch):
    monkeypatch.setenv("SIGHTENGINE_API_USER", "user-1")
    monkeypatch.setenv("SIGHTENGINE_API_SECRET", "secret-1")
    monkeypatch.setenv("TEXT_MODERATION_API_KEY", "text-key")
    return ModerationSettings({"text_api_url": "https://text.example/moderate", "timeout_seconds": 5})


def test_model_list_is_complete():
    assert len(SIGHTENGINE_MODELS) == 18
    assert "nudity-2.1" in SIGHTENGINE_MODELS
    assert "self-harm" in SIGHTENGINE_MODELS
    assert len(set(SIGHTENGINE_MODELS)) == len(SIGHTENGINE_MODELS)


def test_default_session_is_pooled():
    client = ModerationAPIClient(ModerationSettings({"pool_size": 7}))
    adapter = client.session.get_adapter("https://api.sightengine.com/1.0/check.json")
    assert adapter._pool_maxsize == 7
    client.close()


@pytest.mark.asyncio
async def test_check_image_posts_multipart(settings, photo):
    session = MagicMock()
    session.post.return_value = make_response(payload={"status": "success"})
    client = ModerationAPIClient(settings, session=session)

    result = await client.check_image(photo)

    assert result == {"status": "success"}
    args, kwargs = session.post.call_args
    assert args[0] == "https://api.sightengine.com/1.0/check.json"
    assert kwargs["data"]["models"] == ",".join(SIGHTENGINE_MODELS)
    assert kwargs["data"]["api_user"] == "user-1"
    assert kwargs["data"]["api_secret"] == "secret-1"
    assert "media" in kwargs["files"]
    assert kwargs["timeout"] == 5.0


@pytest.mark.asyncio
async def test_check_image_non_200_raises(settings, photo):
    session = MagicMock()
    session.post.return_value = make_response(status_code=429, text="rate limited")
    client = ModerationAPIClient(settings, session=session)

    with pytest.raises(ModerationAPIError) as exc_info:
        await client.check_image(photo)

    assert exc_info.value.status_code == 429


@pytest.mark.asyncio
async def test_check_image_transport_error_raises(settings, photo):
    session = MagicMock()
    session.post.side_effect = requests.ConnectionError("reset")
    client = ModerationAPIClient(settings, session=session)

    with pytest.raises(ModerationAPIError):
        await client.check_image(photo)


@pytest.mark.asyncio
async def test_check_image_invalid_json_raises(settings, photo):
    session = MagicMock()
    session.post.return_value = make_response(payload=ValueError("no json"))
    client = ModerationAPIClient(settings, session=session)

    with pytest.raises(ModerationAPIError):
        await client.check_image(photo)


@pytest.mark.asyncio
async def test_check_text_returns_violations(settings):
    session = MagicMock()
    session.post.return_value = make_response(payload={"violations": [{"category": "hate"}]})
    client = ModerationAPIClient(settings, session=session)

    result = await client.check_text("some bio")

    assert isinstance(result, TextModerationResult)
    assert result.has_violations
    assert result.violations == [{"category": "hate"}]
    _, kwargs = session.post.call_args
    assert kwargs["json"] == {"content": "some bio"}
    assert kwargs["headers"]["Authorization"] == "Bearer text-key"


@pytest.mark.asyncio
async def test_check_text_failure_returns_none(settings):
    session = MagicMock()
    session.post.return_value = make_response(status_code=500)
    client = ModerationAPIClient(settings, session=session)

    assert await client.check_text("some bio") is None


@pytest.mark.asyncio
async def test_check_text_transport_error_returns_none(settings):
    session = MagicMock()
    session.post.side_effect = requests.Timeout("slow")
    client = ModerationAPIClient(settings, session=session)

    assert await client.check_text("some bio") is None


@pytest.mark.asyncio
async def test_check_text_without_endpoint_returns_none():
    session = MagicMock()
    client = ModerationAPIClient(ModerationSettings({}), session=session)

    assert await client.check_text("some bio") is None
    session.post.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("violations", ["hate speech", {"category": "hate"}, 3])
async def test_check_text_malformed_violations_returns_none(settings, violations):
    session = MagicMock()
    session.post.return_value = make_response(payload={"violations": violations})
    client = ModerationAPIClient(settings, session=session)

    assert await client.check_text("some bio") is None
