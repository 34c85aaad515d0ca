"""TwiML markup tree: the verb contract, the Response container and encoding.

Every verb and noun is a pydantic model exposing ``type_name()`` (the XML
element name) and ``validate()``. ``Response`` holds an ordered list of verbs
and turns them into an XML document once they validate.
"""

import logging
import re
import xml.etree.ElementTree as ET
from typing import Any, ClassVar, Iterable

from pydantic import BaseModel, ConfigDict, Field

from .errors import (
    EmptyResponseError,
    InvalidMarkupError,
    TwimlValidationError,
    UnknownMarkupError,
)

logger = logging.getLogger(__name__)

XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>\n'
INDENT = "  "

_INVALID_XML_CHARS = re.compile("[^\t\n\r\u0020-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")

# Verbs allowed as direct children of <Response>
VALID_RESPONSE_CHILDREN = frozenset(
    {
        "Enqueue",
        "Hangup",
        "Leave",
        "Pause",
        "Play",
        "Record",
        "Redirect",
        "Reject",
        "Say",
        "Dial",
        "Gather",
        "Sms",
        "Start",
        "Stop",
        "Connect",
    }
)


def _render(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        text = " ".join(str(v) for v in value)
    else:
        text = str(value)
    # Characters outside the XML 1.0 Char production become U+FFFD
    return _INVALID_XML_CHARS.sub("\ufffd", text)


def child_errors(parent: str, children: Iterable[Any], allowed: frozenset) -> list[Exception]:
    """Check children against a parent's whitelist, then validate each one.

    An unknown child type is fatal: the result is that single error and no
    child is validated. Otherwise every failing child contributes one error.
    """
    children = list(children)
    for child in children:
        type_name = getattr(child, "type_name", None)
        if type_name is None or type_name() not in allowed:
            return [UnknownMarkupError(f"Unknown markup type {type(child).__name__} as child of {parent}")]

    errors: list[Exception] = []
    for child in children:
        try:
            child.validate()
        except TwimlValidationError as exc:
            errors.append(exc)
    return errors


class Markup(BaseModel):
    """Base class for TwiML verbs and nouns.

    Subclasses set ``tag`` and declare their attributes as fields, aliased to
    the TwiML attribute name. ``body_field`` names the field written as the
    element text, if any.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    tag: ClassVar[str] = ""
    body_field: ClassVar[str | None] = None

    def type_name(self) -> str:
        return self.tag

    def problems(self) -> list[str]:
        """Messages for every rule this node breaks; empty when valid."""
        return []

    def validate(self) -> None:
        errors = [InvalidMarkupError(f"{self.type_name()}: {msg}") for msg in self.problems()]
        if errors:
            raise TwimlValidationError(errors)

    def attributes(self) -> dict[str, str]:
        attrs: dict[str, str] = {}
        for name, field in type(self).model_fields.items():
            if name == self.body_field or name == "children":
                continue
            value = getattr(self, name)
            if value is None:
                continue
            attrs[field.alias or name] = _render(value)
        return attrs

    def to_element(self) -> ET.Element:
        element = ET.Element(self.type_name(), self.attributes())
        if self.body_field is not None:
            body = getattr(self, self.body_field)
            if body is not None:
                element.text = _render(body)
        return element


class NestedMarkup(Markup):
    """A verb or noun that nests other markup, checked against ``allowed_children``."""

    allowed_children: ClassVar[frozenset] = frozenset()

    children: list["Markup"] = Field(default_factory=list)

    def add(self, *nodes: Markup) -> None:
        self.children.extend(nodes)

    def validate(self) -> None:
        errors: list[Exception] = [
            InvalidMarkupError(f"{self.type_name()}: {msg}") for msg in self.problems()
        ]
        errors.extend(child_errors(self.type_name(), self.children, self.allowed_children))
        if errors:
            raise TwimlValidationError(errors)

    def to_element(self) -> ET.Element:
        element = super().to_element()
        for child in self.children:
            element.append(child.to_element())
        return element


class Response:
    """Root container for TwiML verbs. Use ``add()`` to chain the verbs."""

    def __init__(self, *children: Markup, ignore_validation_errors: bool = False) -> None:
        self.children: list[Markup] = list(children)
        self.ignore_validation_errors = ignore_validation_errors

    def type_name(self) -> str:
        return "Response"

    def add(self, *nodes: Markup) -> None:
        """Append verbs in call order. Nothing is validated until encoding."""
        self.children.extend(nodes)

    def validate(self) -> None:
        """Raise TwimlValidationError if the response or any verb is malformed."""
        if not self.children:
            raise TwimlValidationError([EmptyResponseError("cannot encode an empty response")])
        errors = child_errors(self.type_name(), self.children, VALID_RESPONSE_CHILDREN)
        if errors:
            raise TwimlValidationError(errors)

    def to_element(self) -> ET.Element:
        root = ET.Element(self.type_name())
        for child in self.children:
            root.append(child.to_element())
        return root

    def encode(self) -> bytes:
        """Return the UTF-8 XML document, validating first.

        With ``ignore_validation_errors`` set, verbs that fail their own rules
        are logged and encoded anyway; an empty response or an unknown child
        type still raises.
        """
        try:
            self.validate()
        except TwimlValidationError as exc:
            if not self.ignore_validation_errors or is_structural(exc):
                raise
            logger.warning("Encoding TwiML despite validation errors: %s", exc)

        root = self.to_element()
        ET.indent(root, space=INDENT)
        return (XML_HEADER + ET.tostring(root, encoding="unicode")).encode("utf-8")

    def as_text(self) -> str:
        return self.encode().decode("utf-8")


def is_structural(exc: TwimlValidationError) -> bool:
    """True if an empty response or unknown child appears at any nesting level."""
    for err in exc.errors:
        if isinstance(err, (EmptyResponseError, UnknownMarkupError)):
            return True
        if isinstance(err, TwimlValidationError) and is_structural(err):
            return True
    return False
