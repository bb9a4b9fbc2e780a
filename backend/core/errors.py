# backend/core/errors.py

from __future__ import annotations


class ChatRelayError(Exception):
    """Base class for every recoverable relay condition.

    None of these are fatal: the transport either reports them to the
    offending connection or drops the event and keeps serving.
    """

    code = "ChatRelayError"


class InvalidRoom(ChatRelayError):
    """Join rejected because the room id is empty or malformed."""

    code = "InvalidRoom"


class UnknownConnection(ChatRelayError):
    """Event for a connection id that is not (or no longer) registered."""

    code = "UnknownConnection"


class UnauthorizedSend(ChatRelayError):
    """Message from a connection that is not joined to the claimed room."""

    code = "UnauthorizedSend"


class StaleRoomOnReply(ChatRelayError):
    """Assistant reply resolved after its room went away."""

    code = "StaleRoomOnReply"


class AssistantUnavailable(ChatRelayError):
    """The assistant backend failed to produce a reply."""

    code = "AssistantUnavailable"
