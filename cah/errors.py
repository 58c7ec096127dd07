from __future__ import annotations


class ProtocolError(Exception):
    """Base class for client-side protocol failures."""


class ChannelUnavailable(ProtocolError):
    """A command was sent while no channel is attached (or it has closed)."""


class EncodeFailure(ProtocolError):
    """An outbound command could not be turned into a payload."""


class DecodeFailure(ProtocolError):
    """An inbound payload is missing required structure."""
