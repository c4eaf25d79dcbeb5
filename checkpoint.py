"""Per-resource pagination checkpoints stored as one JSON file."""

import json
import logging
import os
import tempfile
from pathlib import Path

from models import CheckpointEntry

logger = logging.getLogger(__name__)


class CheckpointStore:
    """Loads and saves the ``resource -> entry`` checkpoint mapping.

    File format::

        {"SPARK": {"offset": 2000, "expectedTotal": 48000, "lastUpdate": "..."}}
    """

    def __init__(self, checkpoint_file):
        self.checkpoint_file = Path(checkpoint_file)

    def load(self):
        """Loads the checkpoint file, or returns an empty mapping.

        A missing, unreadable or corrupted file only costs a re-fetch, so it
        is logged and treated as a fresh start.
        """
        if not self.checkpoint_file.exists():
            logger.info("No checkpoint file found. Starting from scratch.")
            return {}

        try:
            with open(self.checkpoint_file, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Checkpoint file unreadable ({e}). Starting from scratch.")
            return {}

        if not isinstance(raw, dict):
            logger.warning("Checkpoint file corrupted. Starting from scratch.")
            return {}

        checkpoints = {}
        for resource, data in raw.items():
            try:
                checkpoints[resource] = CheckpointEntry.from_dict(data)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Dropping malformed checkpoint for {resource}: {e}")
        return checkpoints

    def save(self, checkpoints):
        """Replaces the checkpoint file with the full mapping.

        The data goes to a temporary sibling file that is flushed and closed
        before being renamed over the old checkpoint, so a crash leaves either
        the old or the new content.
        """
        data = {resource: entry.to_dict() for resource, entry in checkpoints.items()}
        directory = self.checkpoint_file.parent
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{self.checkpoint_file.name}.", suffix=".tmp", dir=directory
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.checkpoint_file)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise
