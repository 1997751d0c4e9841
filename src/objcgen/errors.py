"""Domain-specific errors for objcgen."""

from __future__ import annotations


class ObjcGenError(Exception):
    """Base error for objcgen."""


class InputUnreadableError(ObjcGenError):
    """Raised when an input document (dump, TBD, model) cannot be read."""


class MalformedSignatureError(ObjcGenError):
    """Raised when a method type encoding cannot back a call wrapper."""


class UnrenderableIdentifierError(ObjcGenError):
    """Raised when a class or selector name has no valid identifier form."""


class ModelDecodeError(ObjcGenError):
    """Raised when a serialized interface model cannot be decoded."""
