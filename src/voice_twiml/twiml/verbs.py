"""TwiML verbs and the nouns they nest.

Attribute fields use snake_case names and are aliased to the TwiML attribute
name, so ``Gather(finish_on_key="#")`` renders ``finishOnKey="#"``.
"""

import re
from typing import Iterable

from pydantic import Field

from .markup import Markup, NestedMarkup

HTTP_METHODS = frozenset({"GET", "POST"})
KEY_CHARS = frozenset("0123456789*#")
DIGIT_CHARS = frozenset("0123456789wW*#")
TRIM_VALUES = frozenset({"trim-silence", "do-not-trim"})
SAY_VOICES = frozenset({"man", "woman", "alice"})
SAY_VOICE_PREFIXES = ("Polly.", "Google.")
STREAM_TRACKS = frozenset({"inbound_track", "outbound_track", "both_tracks"})


def check_method(problems: list[str], attr: str, value: str | None) -> None:
    if value is not None and value.upper() not in HTTP_METHODS:
        problems.append(f"{attr} must be GET or POST, got {value!r}")


def check_non_negative(problems: list[str], attr: str, value: int | None) -> None:
    if value is not None and value < 0:
        problems.append(f"{attr} must not be negative, got {value}")


def check_choice(problems: list[str], attr: str, value: str | None, choices: Iterable[str]) -> None:
    if value is not None and value not in choices:
        problems.append(f"{attr} must be one of {', '.join(sorted(choices))}, got {value!r}")


def check_subset(problems: list[str], attr: str, values: list[str] | None, choices: Iterable[str]) -> None:
    if values is None:
        return
    unknown = [v for v in values if v not in choices]
    if unknown:
        problems.append(f"{attr} has unknown values {', '.join(unknown)}")


def check_chars(problems: list[str], attr: str, value: str | None, allowed: frozenset) -> None:
    if value is not None and not set(value) <= allowed:
        problems.append(f"{attr} contains characters outside {''.join(sorted(allowed))!r}")


def check_required(problems: list[str], attr: str, value: str | None) -> None:
    if not value:
        problems.append(f"{attr} is required")


# ---------------------------------------------------------------------------
# Verbs allowed directly under <Response>
# ---------------------------------------------------------------------------

class Say(Markup):
    """Read text to the caller with text-to-speech."""

    tag = "Say"
    body_field = "text"

    text: str | None = None
    voice: str | None = None
    language: str | None = None
    loop: int | None = None

    def problems(self) -> list[str]:
        problems: list[str] = []
        check_required(problems, "text", self.text)
        check_non_negative(problems, "loop", self.loop)
        if self.voice is not None and self.voice not in SAY_VOICES and not self.voice.startswith(SAY_VOICE_PREFIXES):
            problems.append(f"voice {self.voice!r} is not a supported voice")
        return problems


class Play(Markup):
    """Play an audio file, or send DTMF digits when ``digits`` is set."""

    tag = "Play"
    body_field = "url"

    url: str | None = None
    loop: int | None = None
    digits: str | None = None

    def problems(self) -> list[str]:
        problems: list[str] = []
        if not self.url and not self.digits:
            problems.append("either url or digits is required")
        check_non_negative(problems, "loop", self.loop)
        check_chars(problems, "digits", self.digits, DIGIT_CHARS)
        return problems


class Pause(Markup):
    tag = "Pause"

    length: int | None = None

    def problems(self) -> list[str]:
        problems: list[str] = []
        check_non_negative(problems, "length", self.length)
        return problems


class Hangup(Markup):
    tag = "Hangup"


class Leave(Markup):
    tag = "Leave"


class Reject(Markup):
    tag = "Reject"

    reason: str | None = None

    def problems(self) -> list[str]:
        problems: list[str] = []
        check_choice(problems, "reason", self.reason, {"rejected", "busy"})
        return problems


class Redirect(Markup):
    tag = "Redirect"
    body_field = "url"

    url: str | None = None
    method: str | None = None

    def problems(self) -> list[str]:
        problems: list[str] = []
        check_required(problems, "url", self.url)
        check_method(problems, "method", self.method)
        return problems


class Enqueue(Markup):
    """Place the caller in a named queue."""

    tag = "Enqueue"
    body_field = "name"

    name: str | None = None
    action: str | None = None
    method: str | None = None
    wait_url: str | None = Field(None, alias="waitUrl")
    wait_url_method: str | None = Field(None, alias="waitUrlMethod")
    workflow_sid: str | None = Field(None, alias="workflowSid")

    def problems(self) -> list[str]:
        problems: list[str] = []
        check_required(problems, "queue name", self.name)
        check_method(problems, "method", self.method)
        check_method(problems, "waitUrlMethod", self.wait_url_method)
        return problems


class Sms(Markup):
    """Send a text message during a call."""

    tag = "Sms"
    body_field = "message"

    message: str | None = None
    to: str | None = None
    from_: str | None = Field(None, alias="from")
    action: str | None = None
    method: str | None = None
    status_callback: str | None = Field(None, alias="statusCallback")

    def problems(self) -> list[str]:
        problems: list[str] = []
        check_required(problems, "message", self.message)
        check_method(problems, "method", self.method)
        return problems


class Record(Markup):
    """Record the caller's voice and post the recording URL to ``action``."""

    tag = "Record"

    action: str | None = None
    method: str | None = None
    timeout: int | None = None
    finish_on_key: str | None = Field(None, alias="finishOnKey")
    max_length: int | None = Field(None, alias="maxLength")
    play_beep: bool | None = Field(None, alias="playBeep")
    trim: str | None = None
    recording_status_callback: str | None = Field(None, alias="recordingStatusCallback")
    recording_status_callback_method: str | None = Field(None, alias="recordingStatusCallbackMethod")
    recording_status_callback_event: list[str] | None = Field(None, alias="recordingStatusCallbackEvent")
    transcribe: bool | None = None
    transcribe_callback: str | None = Field(None, alias="transcribeCallback")

    def problems(self) -> list[str]:
        problems: list[str] = []
        check_method(problems, "method", self.method)
        check_non_negative(problems, "timeout", self.timeout)
        if self.max_length is not None and self.max_length < 1:
            problems.append(f"maxLength must be at least 1, got {self.max_length}")
        check_chars(problems, "finishOnKey", self.finish_on_key, KEY_CHARS)
        check_choice(problems, "trim", self.trim, TRIM_VALUES)
        check_method(problems, "recordingStatusCallbackMethod", self.recording_status_callback_method)
        check_subset(
            problems,
            "recordingStatusCallbackEvent",
            self.recording_status_callback_event,
            {"in-progress", "completed", "absent"},
        )
        return problems


class Gather(NestedMarkup):
    """Collect digits or speech while the nested Say/Play/Pause verbs run."""

    tag = "Gather"
    allowed_children = frozenset({"Say", "Play", "Pause"})

    input: list[str] | None = None
    action: str | None = None
    method: str | None = None
    timeout: int | None = None
    speech_timeout: int | str | None = Field(None, alias="speechTimeout")
    finish_on_key: str | None = Field(None, alias="finishOnKey")
    num_digits: int | None = Field(None, alias="numDigits")
    language: str | None = None
    hints: str | None = None
    action_on_empty_result: bool | None = Field(None, alias="actionOnEmptyResult")

    def problems(self) -> list[str]:
        problems: list[str] = []
        check_subset(problems, "input", self.input, {"dtmf", "speech"})
        check_method(problems, "method", self.method)
        check_non_negative(problems, "timeout", self.timeout)
        if self.finish_on_key is not None and (len(self.finish_on_key) > 1 or not set(self.finish_on_key) <= KEY_CHARS):
            problems.append(f"finishOnKey must be empty or one of 0-9, * or #, got {self.finish_on_key!r}")
        if self.num_digits is not None and self.num_digits < 1:
            problems.append(f"numDigits must be at least 1, got {self.num_digits}")
        if self.speech_timeout is not None and self.speech_timeout != "auto" and not str(self.speech_timeout).isdigit():
            problems.append(f"speechTimeout must be 'auto' or a whole number of seconds, got {self.speech_timeout!r}")
        return problems


class Dial(NestedMarkup):
    """Connect the caller to another party.

    Dial either a single number given as ``number`` or the nested nouns
    (Number, Client, Sip, Queue, Conference), never both.
    """

    tag = "Dial"
    body_field = "number"
    allowed_children = frozenset({"Number", "Client", "Sip", "Queue", "Conference"})

    number: str | None = None
    action: str | None = None
    method: str | None = None
    timeout: int | None = None
    hangup_on_star: bool | None = Field(None, alias="hangupOnStar")
    time_limit: int | None = Field(None, alias="timeLimit")
    caller_id: str | None = Field(None, alias="callerId")
    record: str | None = None
    trim: str | None = None
    recording_status_callback: str | None = Field(None, alias="recordingStatusCallback")
    ring_tone: str | None = Field(None, alias="ringTone")

    def problems(self) -> list[str]:
        problems: list[str] = []
        if self.number and self.children:
            problems.append("use either a number or nested nouns, not both")
        elif not self.number and not self.children:
            problems.append("a number or at least one nested noun is required")
        check_method(problems, "method", self.method)
        check_non_negative(problems, "timeout", self.timeout)
        check_non_negative(problems, "timeLimit", self.time_limit)
        check_choice(
            problems,
            "record",
            self.record,
            {
                "do-not-record",
                "record-from-answer",
                "record-from-ringing",
                "record-from-answer-dual",
                "record-from-ringing-dual",
            },
        )
        check_choice(problems, "trim", self.trim, TRIM_VALUES)
        return problems


class Start(NestedMarkup):
    """Start a media stream or SIPREC session alongside the call."""

    tag = "Start"
    allowed_children = frozenset({"Stream", "Siprec"})

    action: str | None = None
    method: str | None = None

    def problems(self) -> list[str]:
        problems: list[str] = []
        check_method(problems, "method", self.method)
        return problems


class Stop(NestedMarkup):
    tag = "Stop"
    allowed_children = frozenset({"Stream", "Siprec"})


class Connect(NestedMarkup):
    tag = "Connect"
    allowed_children = frozenset({"Stream", "Room"})

    action: str | None = None
    method: str | None = None

    def problems(self) -> list[str]:
        problems: list[str] = []
        check_method(problems, "method", self.method)
        return problems


# ---------------------------------------------------------------------------
# Nouns
# ---------------------------------------------------------------------------

class Number(Markup):
    tag = "Number"
    body_field = "number"

    number: str | None = None
    send_digits: str | None = Field(None, alias="sendDigits")
    url: str | None = None
    method: str | None = None
    status_callback: str | None = Field(None, alias="statusCallback")
    status_callback_method: str | None = Field(None, alias="statusCallbackMethod")
    status_callback_event: list[str] | None = Field(None, alias="statusCallbackEvent")

    def problems(self) -> list[str]:
        problems: list[str] = []
        check_required(problems, "number", self.number)
        check_chars(problems, "sendDigits", self.send_digits, DIGIT_CHARS)
        check_method(problems, "method", self.method)
        check_method(problems, "statusCallbackMethod", self.status_callback_method)
        check_subset(
            problems,
            "statusCallbackEvent",
            self.status_callback_event,
            {"initiated", "ringing", "answered", "completed"},
        )
        return problems


class Client(Markup):
    tag = "Client"
    body_field = "identity"

    identity: str | None = None
    url: str | None = None
    method: str | None = None

    def problems(self) -> list[str]:
        problems: list[str] = []
        check_required(problems, "identity", self.identity)
        check_method(problems, "method", self.method)
        return problems


class Sip(Markup):
    tag = "Sip"
    body_field = "uri"

    uri: str | None = None
    username: str | None = None
    password: str | None = None

    def problems(self) -> list[str]:
        if not self.uri or not self.uri.startswith("sip:"):
            return [f"uri must start with 'sip:', got {self.uri!r}"]
        return []


class Queue(Markup):
    tag = "Queue"
    body_field = "name"

    name: str | None = None
    url: str | None = None
    method: str | None = None
    reservation_sid: str | None = Field(None, alias="reservationSid")

    def problems(self) -> list[str]:
        problems: list[str] = []
        check_required(problems, "queue name", self.name)
        check_method(problems, "method", self.method)
        return problems


class Conference(Markup):
    tag = "Conference"
    body_field = "name"

    name: str | None = None
    muted: bool | None = None
    beep: str | None = None
    start_conference_on_enter: bool | None = Field(None, alias="startConferenceOnEnter")
    end_conference_on_exit: bool | None = Field(None, alias="endConferenceOnExit")
    wait_url: str | None = Field(None, alias="waitUrl")
    wait_method: str | None = Field(None, alias="waitMethod")
    max_participants: int | None = Field(None, alias="maxParticipants")
    record: str | None = None
    trim: str | None = None
    status_callback: str | None = Field(None, alias="statusCallback")
    status_callback_event: list[str] | None = Field(None, alias="statusCallbackEvent")

    def problems(self) -> list[str]:
        problems: list[str] = []
        check_required(problems, "conference name", self.name)
        check_choice(problems, "beep", self.beep, {"true", "false", "onEnter", "onExit"})
        check_method(problems, "waitMethod", self.wait_method)
        check_non_negative(problems, "maxParticipants", self.max_participants)
        check_choice(problems, "record", self.record, {"do-not-record", "record-from-start"})
        check_choice(problems, "trim", self.trim, TRIM_VALUES)
        return problems


class Parameter(Markup):
    tag = "Parameter"

    name: str | None = None
    value: str | None = None

    def problems(self) -> list[str]:
        problems: list[str] = []
        check_required(problems, "name", self.name)
        check_required(problems, "value", self.value)
        return problems


class Stream(NestedMarkup):
    """Fork call audio to a websocket. Inside <Stop>, ``name`` alone is enough."""

    tag = "Stream"
    allowed_children = frozenset({"Parameter"})

    name: str | None = None
    url: str | None = None
    track: str | None = None
    status_callback: str | None = Field(None, alias="statusCallback")
    status_callback_method: str | None = Field(None, alias="statusCallbackMethod")

    def problems(self) -> list[str]:
        problems: list[str] = []
        if not self.url and not self.name:
            problems.append("either url or name is required")
        if self.url and not re.match(r"^wss://", self.url):
            problems.append(f"url must use the wss scheme, got {self.url!r}")
        check_choice(problems, "track", self.track, STREAM_TRACKS)
        check_method(problems, "statusCallbackMethod", self.status_callback_method)
        return problems


class Siprec(NestedMarkup):
    tag = "Siprec"
    allowed_children = frozenset({"Parameter"})

    name: str | None = None
    connector_name: str | None = Field(None, alias="connectorName")
    track: str | None = None

    def problems(self) -> list[str]:
        problems: list[str] = []
        if not self.connector_name and not self.name:
            problems.append("either connectorName or name is required")
        check_choice(problems, "track", self.track, STREAM_TRACKS)
        return problems


class Room(Markup):
    tag = "Room"
    body_field = "name"

    name: str | None = None
    participant_identity: str | None = Field(None, alias="participantIdentity")

    def problems(self) -> list[str]:
        problems: list[str] = []
        check_required(problems, "room name", self.name)
        return problems
