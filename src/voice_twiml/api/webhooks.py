"""Webhook endpoints for Twilio voice callbacks.

This module defines the HTTP endpoints Twilio posts call events to. Form
payloads are decoded into the callback records from ``schemas`` and answered
with TwiML built by the voice handlers.
"""

import logging
from typing import Callable, Type

from fastapi import APIRouter, Depends, Request, Response
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from ..handlers import voice as voice_handler
from ..schemas import (
    CallbackModel,
    DialActionRequest,
    RecordActionRequest,
    RecordingStatusCallbackRequest,
    TranscribeCallbackRequest,
    VoiceRequest,
)
from ..twiml import markup
from ..twiml.errors import TwimlValidationError
from .security import verify_twilio_signature

logger = logging.getLogger(__name__)

TWIML_MEDIA_TYPE = "application/xml"

# Mounted under /voice; every route requires a valid Twilio signature when configured
router = APIRouter(dependencies=[Depends(verify_twilio_signature)])


def callback_form(model: Type[CallbackModel]) -> Callable:
    """Build a dependency decoding the posted form into ``model`` by wire name."""

    async def dependency(request: Request) -> CallbackModel:
        form = await request.form()
        payload = {key: value for key, value in form.items() if isinstance(value, str)}
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise RequestValidationError(exc.errors(include_url=False, include_context=False)) from exc

    return dependency


def render(twiml: markup.Response) -> Response:
    """Encode TwiML into an HTTP response; invalid markup answers 500."""
    try:
        body = twiml.encode()
    except TwimlValidationError:
        logger.exception("Refusing to serve invalid TwiML")
        return Response(status_code=500)
    return Response(content=body, media_type=TWIML_MEDIA_TYPE)


@router.post("/inbound")
async def inbound_voice(call: VoiceRequest = Depends(callback_form(VoiceRequest))) -> Response:
    """Receive an inbound call and answer with a greeting and a <Record>."""
    return render(voice_handler.handle_incoming_call(call))


@router.post("/dial-action")
async def dial_action(dial: DialActionRequest = Depends(callback_form(DialActionRequest))) -> Response:
    return render(voice_handler.handle_dial_action(dial))


@router.post("/record-action")
async def record_action(record: RecordActionRequest = Depends(callback_form(RecordActionRequest))) -> Response:
    return render(voice_handler.handle_record_action(record))


@router.post("/recording-status", status_code=204)
async def recording_status(
    status: RecordingStatusCallbackRequest = Depends(callback_form(RecordingStatusCallbackRequest)),
) -> Response:
    """Log recording progress. Twilio ignores the body of status callbacks."""
    logger.info(
        "Recording %s for call %s is %s (%ss, %s channel(s), source %s)",
        status.recording_sid,
        status.call_sid,
        status.recording_status,
        status.recording_duration,
        status.recording_channels,
        status.recording_source,
    )
    return Response(status_code=204)


@router.post("/transcription", status_code=204)
async def transcription(
    result: TranscribeCallbackRequest = Depends(callback_form(TranscribeCallbackRequest)),
) -> Response:
    logger.info(
        "Transcription %s for call %s is %s: %s",
        result.transcription_sid,
        result.call_sid,
        result.transcription_status,
        result.transcription_text,
    )
    return Response(status_code=204)
