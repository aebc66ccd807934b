"""
api/routes/proxy.py -- Gated proxies to the third-party speech and language APIs.

Routes:
  POST /api/tts   -- text in, audio/mpeg out (Azure Speech)
  POST /api/word  -- Gemini generateContent payload in, {"result": text} out

Both routes are sync: requests blocks, so FastAPI runs them in its threadpool.
Both re-check the session with Depends(require_session) even though the gate
has already done so.

Upstream failures are logged with their cause and answered with a generic
500. The cause is never included in the response body.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from fastapi.responses import Response

from api.models import ErrorDetail, TTSRequest, WordLookupResponse
from auth.dependencies import require_session
from core.upstream import UpstreamError, generate_content, has_lookup_text, synthesize_speech

logger = logging.getLogger("wordgate.api")

router = APIRouter()


@router.post("/tts", response_class=Response)
def text_to_speech(
    request: Request,
    body: TTSRequest,
    _session: str = Depends(require_session),
) -> Response:
    """Synthesize body.text to MP3 audio."""
    if not body.text:
        raise HTTPException(
            status_code=400,
            detail=ErrorDetail(code="invalid_request", message="Text is required.").model_dump(),
        )
    try:
        audio = synthesize_speech(body.text, request.app.state.settings)
    except UpstreamError as e:
        logger.error("TTS failed: %s", e)
        raise HTTPException(
            status_code=500,
            detail=ErrorDetail(code="tts_failed", message="Failed to generate speech.").model_dump(),
        ) from e
    return Response(content=audio, media_type="audio/mpeg")


@router.post("/word", response_model=WordLookupResponse)
def word_lookup(
    request: Request,
    payload: dict[str, Any] = Body(...),
    _session: str = Depends(require_session),
) -> WordLookupResponse:
    """Forward a word lookup prompt to Gemini and return the generated text."""
    if not has_lookup_text(payload):
        raise HTTPException(
            status_code=400,
            detail=ErrorDetail(
                code="invalid_request",
                message="Invalid request format.",
                detail="Expected contents[0].parts[0].text.",
            ).model_dump(),
        )
    try:
        result = generate_content(payload, request.app.state.settings)
    except UpstreamError as e:
        logger.error("Word lookup failed: %s", e)
        raise HTTPException(
            status_code=500,
            detail=ErrorDetail(code="lookup_failed", message="Failed to fetch word information.").model_dump(),
        ) from e
    return WordLookupResponse(result=result)
