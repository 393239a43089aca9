"""Copy-to-clipboard helper with a cool-down flag."""

import time
from collections.abc import Callable

DEFAULT_TIMEOUT = 2.0  # seconds


class ClipboardCopier:
    """Writes text to a clipboard and reports ``is_copied`` for ``timeout`` seconds.

    While the flag is set, further copies are ignored.
    """

    def __init__(
        self,
        writer: Callable[[str], None],
        timeout: float = DEFAULT_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._writer = writer
        self._timeout = timeout
        self._clock = clock
        self._copied_at: float | None = None

    @property
    def is_copied(self) -> bool:
        if self._copied_at is None:
            return False
        if self._clock() - self._copied_at >= self._timeout:
            self._copied_at = None
            return False
        return True

    def copy(self, text: str) -> bool:
        """Copy ``text``; return False if skipped because a copy is still fresh."""
        if self.is_copied:
            return False
        self._writer(text)
        self._copied_at = self._clock()
        return True
