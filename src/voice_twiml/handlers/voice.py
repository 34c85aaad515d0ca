"""Voice call handling logic.

Each handler takes a decoded Twilio callback and returns the TwiML
``Response`` to answer it with. Handlers only build markup; encoding and
HTTP concerns live in the webhooks module.
"""

import logging

from ..config import settings
from ..schemas import DialActionRequest, RecordActionRequest, VoiceRequest
from ..twiml.markup import Response
from ..twiml.verbs import Hangup, Record, Redirect, Say

logger = logging.getLogger(__name__)

GREETING = "Thanks for calling support. Please leave a message after the tone."
DIAL_UNAVAILABLE = "The person you are trying to reach is unavailable. Goodbye."
RECORDING_RECEIVED = "Thanks, your message has been recorded. Goodbye."
RECORDING_MISSING = "Sorry, we did not get your message."


def handle_incoming_call(call: VoiceRequest) -> Response:
    """Greet the caller and record a message.

    Twilio posts the recording to ``/voice/record-action`` once the caller
    finishes, and reports recording and transcription progress to the
    status callbacks.
    """
    logger.info("Incoming call %s from %s", call.call_sid, call.from_)
    resp = Response()
    resp.add(
        Say(text=GREETING, voice=settings.say_voice),
        Record(
            action="/voice/record-action",
            method="POST",
            max_length=settings.max_recording_length,
            play_beep=True,
            recording_status_callback="/voice/recording-status",
            recording_status_callback_event=["completed"],
            transcribe=True,
            transcribe_callback="/voice/transcription",
        ),
    )
    return resp


def handle_dial_action(dial: DialActionRequest) -> Response:
    resp = Response()
    if dial.dial_call_status != "completed":
        logger.info("Dial from call %s ended with status %s", dial.call_sid, dial.dial_call_status)
        resp.add(Say(text=DIAL_UNAVAILABLE, voice=settings.say_voice))
    resp.add(Hangup())
    return resp


def handle_record_action(record: RecordActionRequest) -> Response:
    """Thank the caller for a recording, or send them back to record again."""
    resp = Response()
    if record.recording_url:
        logger.info(
            "Call %s recorded %ss at %s", record.call_sid, record.recording_duration, record.recording_url
        )
        resp.add(Say(text=RECORDING_RECEIVED, voice=settings.say_voice), Hangup())
    else:
        resp.add(
            Say(text=RECORDING_MISSING, voice=settings.say_voice),
            Redirect(url="/voice/inbound", method="POST"),
        )
    return resp
