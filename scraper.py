"""Paginated Jira search scraper with checkpointed resume."""

import logging
import time

import requests

from exceptions import (
    FailureKind,
    FetchError,
    ParseError,
    RateLimitedError,
    RetryBudget,
    ServerError,
    TransportError,
)
from models import CheckpointEntry, FetchResult, FetchState
from writer import RecordWriter, ensure_dir, raw_file_path

logger = logging.getLogger(__name__)

JQL_TEMPLATE = "project = {project} ORDER BY created ASC"

_FAILURE_STATES = {
    FailureKind.RATE_LIMITED: FetchState.RATE_LIMITED,
    FailureKind.SERVER_ERROR: FetchState.SERVER_ERROR,
    FailureKind.TRANSPORT_ERROR: FetchState.TRANSPORT_ERROR,
    FailureKind.PARSE_ERROR: FetchState.TRANSPORT_ERROR,
}


class JiraScraper:
    """
    Drains Jira projects page by page into raw JSONL files,
    with checkpointing and retry/backoff handling.
    """

    def __init__(self, config, checkpoint_store, session=None, sleep=time.sleep):
        self.config = config
        self.checkpoint_store = checkpoint_store
        self.session = session if session is not None else requests.Session()
        self.sleep = sleep
        self._delays = {
            FailureKind.RATE_LIMITED: config.rate_limit_delay,
            FailureKind.SERVER_ERROR: config.server_error_delay,
            FailureKind.TRANSPORT_ERROR: config.error_delay,
            FailureKind.PARSE_ERROR: config.error_delay,
        }

    def _build_params(self, project, start_at):
        params = {
            "jql": JQL_TEMPLATE.format(project=project),
            "startAt": start_at,
            "maxResults": self.config.page_size,
        }
        if self.config.request_fields:
            params["fields"] = self.config.request_fields
        return params

    def _fetch_page(self, project, start_at):
        """Fetches one page and returns ``(issues, total)``.

        Raises a FetchError subclass tagged with the failure kind.
        """
        params = self._build_params(project, start_at)
        try:
            response = self.session.get(
                self.config.base_url, params=params, timeout=self.config.network_timeout
            )
        except requests.exceptions.Timeout as e:
            raise TransportError(f"Request timed out after {self.config.network_timeout}s") from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Network request failed: {e}") from e

        status = response.status_code
        if status == 429:
            raise RateLimitedError()
        if 500 <= status < 600:
            raise ServerError(status)
        if not 200 <= status < 300:
            raise TransportError(f"HTTP error {status}", status)

        try:
            data = response.json()
        except ValueError as e:
            raise ParseError(f"Response is not valid JSON: {e}", status) from e
        if not isinstance(data, dict):
            raise ParseError(f"Expected a JSON object, got {type(data).__name__}", status)

        issues = data.get("issues") or []
        if not isinstance(issues, list):
            raise ParseError(f"'issues' is not a list ({type(issues).__name__})", status)
        total = data.get("total") or 0
        if isinstance(total, bool) or not isinstance(total, int) or total < 0:
            raise ParseError(f"'total' is not a non-negative integer ({total!r})", status)
        return issues, total

    def _back_off(self, project, failure, budget, result):
        """Charges the retry budget and sleeps. Returns False when exhausted."""
        result.state = _FAILURE_STATES[failure.kind]
        if not budget.spend():
            logger.error(
                f"Too many failures for {project} (last: {failure}). "
                f"Giving up on this project after {budget.limit} retries."
            )
            return False

        result.retries += 1
        delay = self._delays[failure.kind]
        logger.warning(
            f"{failure} while fetching {project}. "
            f"Retry {budget.used}/{budget.limit} in {delay} seconds..."
        )
        self.sleep(delay)
        return True

    def scrape_project(self, project):
        """Fetches every remaining page of ``project``.

        Returns a FetchResult whose state is DONE or ABORTED.
        """
        result = FetchResult(resource=project)
        if ensure_dir(self.config.output_dir):
            logger.info(f"Created output directory {self.config.output_dir}")
        writer = RecordWriter(
            raw_file_path(self.config.output_dir, project), self.config.max_record_chars
        )
        if not writer.touch():
            result.state = FetchState.ABORTED
            logger.error(f"--- Project {project} skipped: raw file unavailable. ---")
            return result

        checkpoints = self.checkpoint_store.load()
        entry = checkpoints.get(project)
        offset = entry.offset if entry else 0
        total = entry.expected_total if entry else None  # unknown until the first page
        result.offset, result.total = offset, total

        if entry and entry.is_complete:
            logger.info(f"--- Project {project} is already complete ({offset} / {total}). Skipping. ---")
            result.state = FetchState.DONE
            return result

        logger.info(f"--- Starting project: {project}, resuming from index: {offset} ---")
        budget = RetryBudget(self.config.max_retries)

        while total is None or offset < total:
            result.state = FetchState.FETCHING
            result.attempts += 1
            logger.info(f"Fetching {project} from {offset}...")

            try:
                issues, total = self._fetch_page(project, offset)
            except FetchError as failure:
                if not self._back_off(project, failure, budget, result):
                    result.state = FetchState.ABORTED
                    break
                continue

            result.total = total
            logger.info(f"Got {len(issues)} issues, total is {total}")

            if not issues:
                if offset < total:
                    logger.warning("No issues returned on this page. Assuming end of project.")
                result.state = FetchState.DONE
                break

            # --- Transaction-like save ---
            # 1. Raw issues are on disk before the checkpoint moves
            stats = writer.write_page(issues)
            result.add_page(stats)
            if not stats.durable:
                logger.error(f"Raw file for {project} is not writable. Stopping project without saving progress.")
                result.state = FetchState.ABORTED
                break

            # 2. Update our new position
            offset += len(issues)
            if total < offset:
                logger.warning(f"Server total {total} is below offset {offset} for {project}.")

            # 3. Save our new position to the checkpoint
            checkpoints[project] = CheckpointEntry(offset=offset, expected_total=max(total, offset))
            self.checkpoint_store.save(checkpoints)
            result.offset = offset
            logger.info(f"  -> Collected {offset} / {total} issues for {project}. Progress saved.")

            budget.reset()
            if offset < total:
                self.sleep(self.config.politeness_delay)
        else:
            result.state = FetchState.DONE

        if result.state is FetchState.DONE:
            logger.info(f"--- Project {project} finished: {result.written} issues written this run. ---")
        else:
            logger.error(f"--- Project {project} aborted at index {offset}. Progress saved. ---")
        return result
