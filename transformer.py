"""Turns raw Jira issue files into instruction/input/response examples."""

import json
import logging
import re
from dataclasses import asdict
from pathlib import Path

from bs4 import BeautifulSoup

from config import DEFAULT_CONFIG
from models import TrainingExample, TransformStats

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "..."

SUMMARIZE_INSTRUCTION = "Summarize the following Jira issue."
CLASSIFY_INSTRUCTION = "Classify the issue type (Bug, Improvement, Task, Other)."
PROBLEM_INSTRUCTION = "What is the main problem described in this issue?"

NO_DESCRIPTION = "No description."
UNKNOWN_TYPE = "Unknown"
NO_SUMMARY = "No summary."

_JIRA_MACRO = re.compile(r"\{[^\}]+\}")
_JIRA_LINK = re.compile(r"\[([^\|\]]+)\|[^\]]+\]")
_EMAIL = re.compile(r"\S+@\S+\.\S+")
_IPV4 = re.compile(r"\b\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}\b")
_WHITESPACE = re.compile(r"\s+")


def _scrub_markup(text):
    # Strip HTML tags, then Jira {code}/{panel}/... macros; keep link text.
    text = BeautifulSoup(text, "html.parser").get_text(separator=" ")
    text = _JIRA_MACRO.sub(" ", text)
    text = _JIRA_LINK.sub(r"\1", text)
    return _WHITESPACE.sub(" ", text)


def _redact_pii(text):
    text = _EMAIL.sub("[EMAIL_REMOVED]", text)
    return _IPV4.sub("[IP_REMOVED]", text)


def clean_text(text, config=DEFAULT_CONFIG):
    """
    Cleans one raw Jira text field:
    1. Missing/empty values become "".
    2. Optionally strips markup and redacts e-mails/IPs (see config).
    3. Replaces newlines with spaces and trims.
    4. Caps the length at config.max_text_chars, appending "..." when cut.
    """
    if not text:
        return ""
    text = str(text)
    if config.scrub_markup:
        text = _scrub_markup(text)
    if config.redact_pii:
        text = _redact_pii(text)

    text = text.replace("\n", " ").strip()
    if len(text) > config.max_text_chars:
        return text[: config.max_text_chars] + TRUNCATION_MARKER
    return text


def make_training_examples(raw_issue, config=DEFAULT_CONFIG):
    """
    Takes one raw issue and generates its three training examples:
    summarization, issue type classification and problem identification.

    Returns an empty list if anything about the issue cannot be handled,
    never a partial set.
    """
    try:
        fields = raw_issue.get("fields") or {}
        summary = clean_text(fields.get("summary"), config)
        description = clean_text(fields.get("description"), config)

        comments = (fields.get("comment") or {}).get("comments") or []
        comments_text = " | ".join(
            clean_text(comment.get("body"), config) for comment in comments[: config.max_comments]
        )
        issue_type = (fields.get("issuetype") or {}).get("name") or UNKNOWN_TYPE

        full_text = f"Title: {summary}\nDescription: {description}\nComments: {comments_text}"

        return [
            TrainingExample(
                instruction=SUMMARIZE_INSTRUCTION,
                input=full_text,
                response=description[: config.summary_chars] or NO_DESCRIPTION,
            ),
            TrainingExample(
                instruction=CLASSIFY_INSTRUCTION,
                input=full_text,
                response=str(issue_type),
            ),
            TrainingExample(
                instruction=PROBLEM_INSTRUCTION,
                input=description or full_text,
                response=summary or NO_SUMMARY,
            ),
        ]
    except Exception as e:
        key = raw_issue.get("key") if isinstance(raw_issue, dict) else None
        logger.warning(f"Failed to transform issue {key}. Error: {e}")
        return []


class DataTransformer:
    """Streams every raw JSONL file into the LLM-ready corpus in small batches."""

    def __init__(self, config):
        self.config = config
        self.raw_dir = Path(config.output_dir)
        self.llm_output_file = Path(config.corpus_file)

    def _raw_files(self):
        corpus = self.llm_output_file.resolve()
        return [
            path
            for path in sorted(self.raw_dir.glob("*.jsonl"))
            if path.is_file() and path.resolve() != corpus
        ]

    def _flush(self, outfile, batch):
        outfile.write("\n".join(json.dumps(asdict(example)) for example in batch) + "\n")
        outfile.flush()

    def transform_file(self, raw_file, outfile, stats):
        """Transforms one raw file, appending its examples to ``outfile``."""
        batch = []
        line_number = 0
        logger.info(f"Processing {raw_file.name}...")

        with open(raw_file, "r", encoding="utf-8", errors="replace") as infile:
            for line in infile:
                line_number += 1
                line = line.rstrip("\r\n")
                if not line.strip():
                    continue
                stats.lines += 1

                if len(line) > self.config.max_record_chars:
                    logger.warning(f"Skipping huge line {line_number} ({len(line)} chars)")
                    stats.oversize_skipped += 1
                    continue

                try:
                    raw_issue = json.loads(line)
                except json.JSONDecodeError as e:
                    logger.warning(f"Skipping malformed line {line_number} in {raw_file.name}: {e}")
                    stats.parse_errors += 1
                    continue

                stats.records += 1
                examples = make_training_examples(raw_issue, self.config)
                if not examples:
                    stats.excluded += 1
                    continue

                batch.extend(examples)
                before = stats.examples
                stats.examples += len(examples)

                if len(batch) >= self.config.batch_size:
                    self._flush(outfile, batch)
                    batch = []

                if stats.examples // self.config.progress_every > before // self.config.progress_every:
                    logger.info(f"  {stats.examples} examples created...")

        if batch:
            self._flush(outfile, batch)
        stats.files += 1
        logger.info(f"  Finished {raw_file.name} - {stats.examples} total examples")

    def run_transformation(self):
        """
        Rebuilds the corpus from scratch out of every raw file in the
        output directory. Returns the run's TransformStats.
        """
        logger.info("--- Starting LLM transformation pipeline ---")
        stats = TransformStats()

        # Truncate up front: the corpus always reflects one complete run.
        with open(self.llm_output_file, "w", encoding="utf-8") as outfile:
            if not self.raw_dir.is_dir():
                logger.error(f"Raw data directory not found: {self.raw_dir}. Run the scraper first.")
                return stats

            for raw_file in self._raw_files():
                self.transform_file(raw_file, outfile, stats)

        logger.info("--- Transformation complete. ---")
        logger.info(
            f"Processed {stats.records} raw issues from {stats.files} files "
            f"({stats.oversize_skipped} oversized, {stats.parse_errors} malformed, "
            f"{stats.excluded} excluded)."
        )
        logger.info(f"Created {stats.examples} LLM-ready training examples in {self.llm_output_file}")
        return stats
