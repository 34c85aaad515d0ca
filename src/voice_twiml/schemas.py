"""Pydantic schemas for Twilio callback payloads.

Twilio posts form-encoded fields named in PascalCase. Each record declares
the wire name of every field as its alias; the aliases are a compatibility
contract with Twilio, so fields like ``RecordingUrl`` and ``ApiVersion``
keep Twilio's spelling on the wire.
"""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CallbackModel(BaseModel):
    """Base for callback records: populate by wire name or field name, ignore extras."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class AddonResult(BaseModel):
    """Result of a single add-on run against the call."""

    request_sid: str | None = None
    status: str | None = None
    message: str | None = None
    code: int | None = None
    result: dict[str, Any] = Field(default_factory=dict)


class AddonsResults(BaseModel):
    """Status envelope around the results of every add-on, keyed by add-on name."""

    status: str | None = None
    message: str | None = None
    code: int | None = None
    results: dict[str, AddonResult] = Field(default_factory=dict)


class VoiceRequest(CallbackModel):
    """Standard voice callback parameters, shared by several other callbacks."""

    call_sid: str | None = Field(None, alias="CallSid")
    account_sid: str | None = Field(None, alias="AccountSid")
    from_: str | None = Field(None, alias="From")
    to: str | None = Field(None, alias="To")
    call_status: str | None = Field(None, alias="CallStatus")
    api_version: str | None = Field(None, alias="ApiVersion")
    direction: str | None = Field(None, alias="Direction")
    forwarded_from: str | None = Field(None, alias="ForwardedFrom")
    caller_name: str | None = Field(None, alias="CallerName")
    from_city: str | None = Field(None, alias="FromCity")
    from_state: str | None = Field(None, alias="FromState")
    from_zip: str | None = Field(None, alias="FromZip")
    from_country: str | None = Field(None, alias="FromCountry")
    to_city: str | None = Field(None, alias="ToCity")
    to_state: str | None = Field(None, alias="ToState")
    to_zip: str | None = Field(None, alias="ToZip")
    to_country: str | None = Field(None, alias="ToCountry")
    recording_sid: str | None = Field(None, alias="RecordingSid")
    recording_url: str | None = Field(None, alias="RecordingUrl")
    recording_duration: str | None = Field(None, alias="RecordingDuration")
    transcription_text: str | None = Field(None, alias="TranscriptionText")
    transcription_sid: str | None = Field(None, alias="TranscriptionSid")
    transcription_url: str | None = Field(None, alias="TranscriptionUrl")
    add_ons: AddonsResults | None = Field(None, alias="AddOns")

    # Only present in conference callbacks
    friendly_name: str | None = Field(None, alias="FriendlyName")

    @field_validator("add_ons", mode="before")
    @classmethod
    def _decode_add_ons(cls, value: Any) -> Any:
        # Twilio posts AddOns as a JSON document inside a form field
        if isinstance(value, (str, bytes)):
            if not value.strip():
                return None
            return json.loads(value)
        return value


class DialActionRequest(VoiceRequest):
    """Parameters posted to the ``action`` URL of a <Dial>."""

    dial_call_status: str | None = Field(None, alias="DialCallStatus")
    dial_call_sid: str | None = Field(None, alias="DialCallSid")
    dial_call_duration: int | None = Field(None, alias="DialCallDuration")
    recording_url: str | None = Field(None, alias="RecordingUrl")
    queue_sid: str | None = Field(None, alias="QueueSid")
    dequeue_result: str | None = Field(None, alias="DequeueResult")
    dequeued_call_sid: str | None = Field(None, alias="DequeuedCallSid")
    dequeued_call_queue_time: int | None = Field(None, alias="DequeuedCallQueueTime")
    dequeued_call_duration: int | None = Field(None, alias="DequeuedCallDuration")


class RecordActionRequest(VoiceRequest):
    """Parameters posted to the ``action`` URL of a <Record>."""

    recording_url: str | None = Field(None, alias="RecordingUrl")
    recording_duration: int | None = Field(None, alias="RecordingDuration")
    digits: str | None = Field(None, alias="Digits")


class RecordingStatusCallbackRequest(CallbackModel):
    """Parameters posted to a <Record> ``recordingStatusCallback``."""

    account_sid: str | None = Field(None, alias="AccountSid")
    call_sid: str | None = Field(None, alias="CallSid")
    recording_sid: str | None = Field(None, alias="RecordingSid")
    recording_url: str | None = Field(None, alias="RecordingUrl")
    recording_status: str | None = Field(None, alias="RecordingStatus")
    recording_duration: int | None = Field(None, alias="RecordingDuration")
    recording_channels: int | None = Field(None, alias="RecordingChannels")
    recording_source: str | None = Field(None, alias="RecordingSource")


class TranscribeCallbackRequest(CallbackModel):
    """Parameters posted to a <Record> ``transcribeCallback``."""

    transcription_sid: str | None = Field(None, alias="TranscriptionSid")
    transcription_text: str | None = Field(None, alias="TranscriptionText")
    transcription_status: str | None = Field(None, alias="TranscriptionStatus")
    transcription_url: str | None = Field(None, alias="TranscriptionUrl")
    recording_sid: str | None = Field(None, alias="RecordingSid")
    recording_url: str | None = Field(None, alias="RecordingUrl")
    call_sid: str | None = Field(None, alias="CallSid")
    account_sid: str | None = Field(None, alias="AccountSid")
    from_: str | None = Field(None, alias="From")
    to: str | None = Field(None, alias="To")
    call_status: str | None = Field(None, alias="CallStatus")
    api_version: str | None = Field(None, alias="ApiVersion")
    direction: str | None = Field(None, alias="Direction")
    forwarded_from: str | None = Field(None, alias="ForwardedFrom")
