"""Rule editor exceptions."""

from __future__ import annotations


class RuleEditorError(Exception):
    """Base exception for rule editor errors."""


class UnknownCheckTypeError(RuleEditorError, ValueError):
    """A check type outside the supported set was supplied."""


class InvalidFieldError(RuleEditorError, KeyError):
    """An edit named a field that session configs do not have."""


class EditorClosedError(RuleEditorError):
    """The editor session was already submitted or cancelled."""
