"""Per-message edit state machine.

A displayed message is either ``Viewing`` or ``Editing(draft)``. Only
user-authored turns can enter ``Editing``. Saving hands the updated turn
to an ``on_edit`` callback; re-submitting the conversation is the
callback owner's job.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from .core import ChatTurn
from .errors import NotEditableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Viewing:
    """The message is displayed as-is."""


@dataclass(frozen=True)
class Editing:
    """The message is open in an editor with unsaved ``draft`` content."""

    draft: str


EditState = Viewing | Editing


class MessageEditor:
    """Edit controller for a single displayed message."""

    def __init__(self, turn: ChatTurn, on_edit: Callable[[ChatTurn], None] | None = None):
        self._turn = turn
        self._on_edit = on_edit
        self._state: EditState = Viewing()

    @property
    def turn(self) -> ChatTurn:
        return self._turn

    @property
    def content(self) -> str:
        return self._turn.content

    @property
    def state(self) -> EditState:
        return self._state

    @property
    def is_editing(self) -> bool:
        return isinstance(self._state, Editing)

    @property
    def draft(self) -> str:
        """Current draft; empty while viewing."""
        if isinstance(self._state, Editing):
            return self._state.draft
        return ""

    @property
    def can_save(self) -> bool:
        """True when the draft is non-blank and differs from the original."""
        if not isinstance(self._state, Editing):
            return False
        draft = self._state.draft
        return bool(draft.strip()) and draft != self._turn.content

    def start_edit(self) -> None:
        if self._turn.role != "user":
            raise NotEditableError(f"Cannot edit a {self._turn.role} turn")
        self._state = Editing(draft=self._turn.content)

    def update_draft(self, text: str) -> None:
        if not isinstance(self._state, Editing):
            raise RuntimeError("update_draft() called while not editing")
        self._state = Editing(draft=text)

    def save(self, draft: str | None = None) -> bool:
        """Commit the draft.

        Args:
            draft: Replaces the current draft before saving, if given

        Returns:
            True if the edit was committed and ``on_edit`` was called,
            False if the draft was rejected and editing continues
        """
        if not isinstance(self._state, Editing):
            return False
        if draft is not None:
            self._state = Editing(draft=draft)
        if not self.can_save:
            logger.debug("Rejected save of blank or unchanged draft")
            return False

        updated = self._turn.with_content(self._state.draft)
        if self._on_edit is not None:
            self._on_edit(updated)
        self._turn = updated
        self._state = Viewing()
        return True

    def cancel(self) -> None:
        self._state = Viewing()
