"""Fetch every configured Jira project, then rebuild the LLM corpus."""

import logging
import sys
import time

import requests

from checkpoint import CheckpointStore
from config import DEFAULT_CONFIG
from models import PipelineReport
from scraper import JiraScraper
from transformer import DataTransformer
from writer import ensure_dir

logger = logging.getLogger(__name__)


def setup_logging(log_file, level=logging.INFO):
    """Logs to ``log_file`` and to the console."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(),
        ],
    )


def run_pipeline(config, session=None, sleep=time.sleep):
    """Runs the scraper for each project in turn, then the transformer.

    A project that is aborted does not stop the run; checkpoint and corpus
    I/O errors do.
    """
    logger.info("=== Starting Jira Pipeline ===")
    report = PipelineReport()

    if ensure_dir(config.output_dir):
        logger.info(f"Created output directory {config.output_dir}")
    else:
        logger.info(f"Using existing output directory {config.output_dir}")

    owns_session = session is None
    if owns_session:
        session = requests.Session()
    try:
        scraper = JiraScraper(config, CheckpointStore(config.checkpoint_file), session=session, sleep=sleep)
        for project in config.projects:
            report.fetches.append(scraper.scrape_project(project))
    finally:
        if owns_session:
            session.close()

    if report.aborted:
        logger.warning(f"Projects aborted this run: {', '.join(report.aborted)}")

    report.transform = DataTransformer(config).run_transformation()
    logger.info("=== All Done! ===")
    return report


def main(config=DEFAULT_CONFIG):
    setup_logging(config.log_file)
    report = run_pipeline(config)
    sys.exit(1 if report.aborted else 0)


# --- Main execution ---
if __name__ == "__main__":
    main()
