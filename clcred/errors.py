"""Exceptions raised by clcred.

Verification never raises: a proof or signature that does not hold is
reported as ``False``. The classes below cover malformed input and misuse
of the builders.
"""


class CLCredError(Exception):
    """Root of all errors raised by the library."""


class InvalidAttributeError(CLCredError):
    """An attribute, index or key value lies outside its bit budget."""


class BuilderError(CLCredError):
    """A builder was used in an order it does not support."""


class EmptyCollectionError(BuilderError):
    """A proof collection was finalized without any proofs in it."""


class IssuanceError(CLCredError):
    """An issuance message or issued signature failed its checks."""


class PackError(CLCredError):
    """A packed structure could not be decoded."""
