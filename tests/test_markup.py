import pytest

from voice_twiml.twiml.errors import (
    EmptyResponseError,
    InvalidMarkupError,
    TwimlValidationError,
    UnknownMarkupError,
)
from voice_twiml.twiml.markup import VALID_RESPONSE_CHILDREN, Markup, Response, XML_HEADER
from voice_twiml.twiml.verbs import (
    Connect,
    Dial,
    Enqueue,
    Gather,
    Hangup,
    Leave,
    Pause,
    Play,
    Record,
    Redirect,
    Reject,
    Say,
    Sms,
    Start,
    Stop,
    Stream,
    Room,
)


class Bogus(Markup):
    tag = "Bogus"


def one_of_each():
    return [
        Enqueue(name="support"),
        Hangup(),
        Leave(),
        Pause(length=1),
        Play(url="https://example.com/hold.mp3"),
        Record(max_length=10),
        Redirect(url="/voice/inbound"),
        Reject(reason="busy"),
        Say(text="Hello"),
        Dial(number="+15555551234"),
        Gather(input=["speech"]),
        Sms(message="Thanks for calling"),
        Start(children=[Stream(url="wss://example.com/audio")]),
        Stop(children=[Stream(name="audio")]),
        Connect(children=[Room(name="lobby")]),
    ]


def test_every_whitelisted_verb_validates():
    nodes = one_of_each()
    assert {n.type_name() for n in nodes} == VALID_RESPONSE_CHILDREN

    resp = Response()
    resp.add(*nodes)
    resp.validate()


def test_add_preserves_call_order():
    resp = Response()
    resp.add(Say(text="one"))
    resp.add(Pause(length=2), Say(text="two"))
    assert [c.type_name() for c in resp.children] == ["Say", "Pause", "Say"]


@pytest.mark.parametrize("ignore", [False, True])
def test_empty_response_is_one_structural_error(ignore):
    resp = Response(ignore_validation_errors=ignore)
    with pytest.raises(TwimlValidationError) as excinfo:
        resp.validate()
    assert len(excinfo.value.errors) == 1
    assert isinstance(excinfo.value.errors[0], EmptyResponseError)


def test_encode_empty_response():
    with pytest.raises(TwimlValidationError) as excinfo:
        Response().encode()
    assert "cannot encode an empty response" in str(excinfo.value)
    assert str(excinfo.value).startswith("Invalid TwiML markup:\n")


def test_unknown_type_stops_checking_siblings():
    resp = Response(Say(), Bogus(), Pause(length=-5))
    with pytest.raises(TwimlValidationError) as excinfo:
        resp.validate()
    errors = excinfo.value.errors
    assert len(errors) == 1
    assert isinstance(errors[0], UnknownMarkupError)
    assert "Unknown markup type Bogus as child of Response" in str(errors[0])


def test_objects_without_markup_contract_are_unknown():
    resp = Response()
    resp.add("<Say>hi</Say>")
    with pytest.raises(TwimlValidationError) as excinfo:
        resp.validate()
    assert "Unknown markup type str" in str(excinfo.value)


def test_semantic_errors_accumulate_per_child():
    resp = Response(Say(text="ok"), Say(voice="robot"), Pause(length=-1))
    with pytest.raises(TwimlValidationError) as excinfo:
        resp.validate()

    err = excinfo.value
    assert len(err.errors) == 2
    lines = str(err).splitlines()
    assert lines[0] == "Invalid TwiML markup:"
    assert "Say: text is required" in lines
    assert "Say: voice 'robot' is not a supported voice" in lines
    assert "Pause: length must not be negative, got -1" in lines


def test_validate_does_not_mutate_nodes():
    say = Say(text="hi", loop=-1)
    before = say.model_dump()
    with pytest.raises(TwimlValidationError):
        say.validate()
    assert say.model_dump() == before


def test_node_errors_are_invalid_markup_errors():
    with pytest.raises(TwimlValidationError) as excinfo:
        Reject(reason="nope").validate()
    assert all(isinstance(e, InvalidMarkupError) for e in excinfo.value.errors)


def test_encode_single_say():
    resp = Response()
    resp.add(Say(text="Hello world"))
    assert resp.encode() == (
        b'<?xml version="1.0" encoding="UTF-8"?>\n'
        b"<Response>\n"
        b"  <Say>Hello world</Say>\n"
        b"</Response>"
    )


def test_encode_is_deterministic():
    resp = Response(
        Say(text="Hi", voice="alice", language="en-US", loop=2),
        Record(action="/done", method="POST", max_length=30, play_beep=False, transcribe=True),
    )
    assert resp.encode() == resp.encode()
    assert resp.as_text() == resp.encode().decode("utf-8")


def test_encode_nested_indentation():
    gather = Gather(input=["dtmf", "speech"], action="/voice/next", num_digits=1)
    gather.add(Say(text="Press one"), Pause(length=1))
    resp = Response(gather, Hangup())
    assert resp.as_text() == (
        XML_HEADER
        + "<Response>\n"
        '  <Gather input="dtmf speech" action="/voice/next" numDigits="1">\n'
        "    <Say>Press one</Say>\n"
        '    <Pause length="1" />\n'
        "  </Gather>\n"
        "  <Hangup />\n"
        "</Response>"
    )


def test_encode_escapes_text_and_attributes():
    resp = Response(Say(text="Tom & Jerry <3"), Redirect(url="/next?a=1&b=2"))
    text = resp.as_text()
    assert "<Say>Tom &amp; Jerry &lt;3</Say>" in text
    assert "<Redirect>/next?a=1&amp;b=2</Redirect>" in text


def test_encode_raises_same_error_as_validate():
    resp = Response(Say(text="ok"), Play())
    with pytest.raises(TwimlValidationError) as validated:
        resp.validate()
    with pytest.raises(TwimlValidationError) as encoded:
        resp.encode()
    assert str(encoded.value) == str(validated.value)
    assert len(encoded.value.errors) == len(validated.value.errors)


def test_ignore_flag_encodes_despite_semantic_errors(caplog):
    resp = Response(Say(text="hi", loop=-1), ignore_validation_errors=True)
    with caplog.at_level("WARNING"):
        text = resp.as_text()
    assert '<Say loop="-1">hi</Say>' in text
    assert "despite validation errors" in caplog.text


def test_ignore_flag_still_raises_on_empty_response():
    with pytest.raises(TwimlValidationError):
        Response(ignore_validation_errors=True).encode()


def test_ignore_flag_still_raises_on_unknown_type():
    resp = Response(Say(text="hi"), Bogus(), ignore_validation_errors=True)
    with pytest.raises(TwimlValidationError) as excinfo:
        resp.encode()
    assert isinstance(excinfo.value.errors[0], UnknownMarkupError)


def test_ignore_flag_does_not_change_validate():
    resp = Response(Say(), ignore_validation_errors=True)
    with pytest.raises(TwimlValidationError):
        resp.validate()


def test_response_type_name():
    assert Response().type_name() == "Response"


def test_ignore_flag_raises_on_nested_non_markup_child():
    dial = Dial()
    dial.add("<Number>+15555550100</Number>")
    resp = Response(dial, ignore_validation_errors=True)
    with pytest.raises(TwimlValidationError) as excinfo:
        resp.encode()
    assert "Unknown markup type str as child of Dial" in str(excinfo.value)


def test_ignore_flag_raises_on_misplaced_nested_verb():
    dial = Dial()
    dial.add(Say(text="hi"))
    resp = Response(Say(text="ok", loop=-1), dial, ignore_validation_errors=True)
    with pytest.raises(TwimlValidationError) as excinfo:
        resp.encode()
    assert "Unknown markup type Say as child of Dial" in str(excinfo.value)


def test_encode_replaces_characters_invalid_in_xml():
    resp = Response(Say(text="a\x00b\x1fc\tok"), Play(url="/hold\x0b.mp3", loop=1))
    text = resp.as_text()
    assert "<Say>a\ufffdb\ufffdc\tok</Say>" in text
    assert "<Play loop=\"1\">/hold\ufffd.mp3</Play>" in text
    assert "\x00" not in text


def test_encode_keeps_non_ascii_text():
    text = Response(Say(text="Grüß Gott 👋")).as_text()
    assert "<Say>Grüß Gott 👋</Say>" in text
