"""Saves finished conversations under the data directory."""
from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Sequence

from acai.items import ConversationItem
from acai.responses import build_input

logger = logging.getLogger(__name__)


class HistoryStore:
    """Writes one pretty-printed JSON file per conversation to ``<data_dir>/history``."""

    def __init__(self, data_dir: str | Path) -> None:
        self.directory = Path(data_dir) / "history"

    def save(self, history: Sequence[ConversationItem]) -> Path | None:
        """Persist ``history`` in request format. Returns the path, or None on failure."""
        path = self.directory / f"{int(time.time() * 1000)}.json"
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(build_input(history), indent=2), encoding="utf-8")
        except OSError as e:
            logger.error("Failed to save conversation history to %s: %s", path, e)
            return None
        logger.debug("Saved conversation history to %s", path)
        return path
