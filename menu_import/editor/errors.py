"""Errors raised by editor transitions.

A transition that raises leaves the caller's state untouched; the new state is
only ever returned on success.
"""

from __future__ import annotations


class EditorError(Exception):
    """Base class for rejected editor operations."""


class CategoryError(EditorError):
    """Duplicate, blank or self-referencing category operation."""


class SelectionError(EditorError):
    """A position outside the current working set."""


class EditModeError(EditorError):
    """Working-set mutation attempted while edit mode is off."""


class ConfirmationRequiredError(EditorError):
    """Irreversible operation requested without explicit confirmation."""
