"""In-process change feed for round scores."""

from __future__ import annotations

import threading
import time
from typing import Dict, Optional


class ChangeNotifier:
    """Per-round version counters that viewers poll or wait on.

    Writers call :meth:`publish` after a score changes; readers remember
    the version they rendered and ask :meth:`wait_for_change` for a newer
    one before fetching the leaderboard again.
    """

    def __init__(self) -> None:
        self._versions: Dict[str, int] = {}
        self._cond = threading.Condition()

    def version(self, round_id: str) -> int:
        with self._cond:
            return self._versions.get(str(round_id), 0)

    def publish(self, round_id: str) -> int:
        with self._cond:
            key = str(round_id)
            self._versions[key] = self._versions.get(key, 0) + 1
            self._cond.notify_all()
            return self._versions[key]

    def wait_for_change(self, round_id: str, since: Optional[int], timeout: float) -> int:
        """Block until the round's version differs from ``since``.

        Returns immediately when ``since`` is ``None`` or already stale,
        otherwise after a change or once ``timeout`` seconds have passed.
        """
        key = str(round_id)
        deadline = time.monotonic() + max(timeout, 0.0)
        with self._cond:
            while since is not None and self._versions.get(key, 0) == since:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self._cond.wait(remaining)
            return self._versions.get(key, 0)
