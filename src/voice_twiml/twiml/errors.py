"""Exceptions raised while validating and encoding TwiML."""

from typing import Iterator, List, Sequence

BANNER = "Invalid TwiML markup:"


class TwimlError(Exception):
    """Base class for TwiML errors."""


class EmptyResponseError(TwimlError):
    """A response container with no children."""


class UnknownMarkupError(TwimlError):
    """A child whose type name is not allowed under its parent."""


class InvalidMarkupError(TwimlError):
    """A verb or noun whose own fields break a TwiML rule."""


class TwimlValidationError(TwimlError):
    """One or more errors encountered during validation.

    Nested aggregates (raised by container verbs) count as a single entry in
    ``errors`` but their messages are flattened into ``str()``.
    """

    def __init__(self, errors: Sequence[Exception]) -> None:
        self.errors: List[Exception] = list(errors)
        super().__init__(str(self))

    def messages(self) -> Iterator[str]:
        for err in self.errors:
            if isinstance(err, TwimlValidationError):
                yield from err.messages()
            else:
                yield str(err)

    def __str__(self) -> str:
        return "\n".join([BANNER, *self.messages()])
