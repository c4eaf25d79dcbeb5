"""Appends raw issues to per-project JSONL files."""

import json
import logging
import os
from pathlib import Path

from models import WriteStats

logger = logging.getLogger(__name__)


def ensure_dir(path):
    """Creates ``path`` and its parents if missing.

    Returns True when the directory was created, False when it already
    existed. Errors (e.g. a file in the way) propagate to the caller.
    """
    path = Path(path)
    if path.is_dir():
        return False
    path.mkdir(parents=True, exist_ok=True)
    return True


def raw_file_path(output_dir, resource):
    return Path(output_dir) / f"{resource}.jsonl"


class RecordWriter:
    """Writes one project's raw issues, one JSON object per line.

    Issues whose serialized form exceeds ``max_record_chars`` are dropped so
    that no line handed to the transformer is larger than that ceiling.
    """

    def __init__(self, output_file, max_record_chars):
        self.output_file = Path(output_file)
        self.max_record_chars = max_record_chars

    def touch(self):
        """Creates an empty output file if there is none yet.

        Returns False (and logs) when the file cannot be created.
        """
        if self.output_file.exists():
            return True
        try:
            self.output_file.write_text("", encoding="utf-8")
        except OSError as e:
            logger.error(f"Cannot create raw file {self.output_file}: {e}")
            return False
        return True

    def write_page(self, issues):
        """Appends a page of issues and syncs the file before returning.

        If the file cannot be opened or synced, every issue that was not
        skipped counts as failed and ``stats.durable`` is False.
        """
        stats = WriteStats()
        try:
            with open(self.output_file, "a", encoding="utf-8") as f:
                for issue in issues:
                    self._write_issue(f, issue, stats)
                os.fsync(f.fileno())
        except OSError as e:
            logger.error(f"Failed to write to {self.output_file}: {e}")
            stats.failed = len(issues) - stats.skipped
            stats.written = 0
            stats.durable = False
            return stats

        if stats.skipped or stats.failed:
            logger.info(
                f"Wrote {stats.written} issues to {self.output_file.name} "
                f"({stats.skipped} oversized skipped, {stats.failed} failed)"
            )
        else:
            logger.info(f"Wrote {stats.written} issues to {self.output_file.name}")
        return stats

    def _write_issue(self, f, issue, stats):
        try:
            line = json.dumps(issue)
        except (TypeError, ValueError) as e:
            logger.error(f"Could not serialize issue {_issue_key(issue)}: {e}")
            stats.failed += 1
            return

        if len(line) > self.max_record_chars:
            logger.warning(f"Skipping huge issue {_issue_key(issue)} ({len(line)} chars)")
            stats.skipped += 1
            return

        # Flushed per issue so a disk error is charged to the issue that hit it.
        try:
            f.write(line + "\n")
            f.flush()
        except OSError as e:
            logger.error(f"Error writing issue {_issue_key(issue)}: {e}")
            stats.failed += 1
            return
        stats.written += 1


def _issue_key(issue):
    if isinstance(issue, dict):
        return issue.get("key", "<no key>")
    return "<not an object>"
