"""
upstream.py -- All external API calls.

Two third-party services sit behind the gated API routes:
  Azure Speech  -- text-to-speech, returns MP3 bytes.
  Gemini        -- generateContent, used for word lookups.

Every failure (missing key, network error, bad status, empty answer) raises
UpstreamError. The message is for server logs only; route handlers answer the
caller with a generic error and never echo it.
"""

import logging
from typing import Any
from xml.sax.saxutils import escape

import requests

from core.config import Settings

logger = logging.getLogger("wordgate.upstream")

AZURE_TTS_URL = "https://{region}.tts.speech.microsoft.com/cognitiveservices/v1"
AZURE_OUTPUT_FORMAT = "audio-24khz-160kbitrate-mono-mp3"
GEMINI_API = "https://generativelanguage.googleapis.com/v1beta"

_SSML_TEMPLATE = """<speak version="1.0" xmlns="http://www.w3.org/2001/10/synthesis" xml:lang="en-US">
    <voice name="{voice}">
        <prosody rate="0%" pitch="0%">
            {text}
        </prosody>
    </voice>
</speak>"""

# Module-level session shared across all upstream calls for connection pooling.
_session = requests.Session()
_session.max_redirects = 3


class UpstreamError(RuntimeError):
    """A third-party API call could not produce a usable result."""


def build_ssml(text: str, voice: str) -> str:
    """Wrap text in an SSML document, escaping XML special characters.

    Quotes are escaped as well as &, < and > so the text can never close the
    prosody element or inject attributes.
    """
    escaped = escape(text, {'"': "&quot;", "'": "&#39;"})
    return _SSML_TEMPLATE.format(voice=escape(voice, {'"': "&quot;"}), text=escaped)


def synthesize_speech(text: str, settings: Settings) -> bytes:
    """Return MP3 audio for text from Azure Speech."""
    if not settings.azure_speech_key:
        raise UpstreamError("AZURE_SPEECH_KEY is not configured")

    url = AZURE_TTS_URL.format(region=settings.azure_speech_region)
    headers = {
        "Ocp-Apim-Subscription-Key": settings.azure_speech_key,
        "Content-Type": "application/ssml+xml",
        "X-Microsoft-OutputFormat": AZURE_OUTPUT_FORMAT,
    }
    try:
        resp = _session.post(
            url,
            data=build_ssml(text, settings.azure_speech_voice).encode("utf-8"),
            headers=headers,
            timeout=15,
        )
    except requests.RequestException as e:
        raise UpstreamError(f"Azure Speech request failed: {e}") from e

    if not resp.ok:
        logger.error("Azure Speech API error: status=%d", resp.status_code)
        raise UpstreamError(f"Azure Speech API error: {resp.status_code}")
    return resp.content


def has_lookup_text(payload: Any) -> bool:
    """Return True if payload carries contents[0].parts[0].text as a non-empty string."""
    try:
        text = payload["contents"][0]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return False
    return isinstance(text, str) and bool(text)


def generate_content(payload: dict[str, Any], settings: Settings) -> str:
    """Forward a generateContent payload to Gemini and return the first candidate's text."""
    if not settings.gemini_api_key:
        raise UpstreamError("GEMINI_API_KEY is not configured")

    url = f"{GEMINI_API}/models/{settings.gemini_model}:generateContent"
    try:
        resp = _session.post(
            url,
            params={"key": settings.gemini_api_key},
            json=payload,
            timeout=30,
        )
    except requests.RequestException as e:
        raise UpstreamError(f"Gemini request failed: {e}") from e

    if not resp.ok:
        try:
            error_data = resp.json()
        except ValueError:
            error_data = {}
        logger.error("Gemini API error: status=%d data=%s", resp.status_code, error_data)
        raise UpstreamError(f"Gemini API error: {resp.status_code}")

    try:
        data = resp.json()
        return data["candidates"][0]["content"]["parts"][0]["text"]
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise UpstreamError("No valid response from Gemini") from e
