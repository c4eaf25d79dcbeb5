# --- Configuration File ---
#
# Every component receives a PipelineConfig built once at startup.
# The module constants below are its defaults; derive variants with
# dataclasses.replace(DEFAULT_CONFIG, ...).

from dataclasses import dataclass

# 1. Projects to Scrape
PROJECTS_TO_FETCH = ("HADOOP", "SPARK", "KAFKA")

# 2. API & Scraper Settings
BASE_URL = "https://issues.apache.org/jira/rest/api/2/search"
REQUEST_FIELDS = "summary,description,comment,status,priority,assignee,labels,created,updated,issuetype,reporter"
PAGE_SIZE = 1000
MAX_RETRIES = 5
NETWORK_TIMEOUT = 30  # Seconds

# Backoff per failure kind, in seconds
RATE_LIMIT_DELAY = 10
SERVER_ERROR_DELAY = 5
ERROR_DELAY = 3
POLITENESS_DELAY = 0.5

# 3. Filepaths
OUTPUT_DIR = "data"
CHECKPOINT_FILE = "checkpoint.json"
LLM_DATA_FILE = "llm_corpus.jsonl"
LOG_FILE = "pipeline.log"

# 4. Size limits
MAX_RECORD_CHARS = 50000  # serialized issue / raw line ceiling
MAX_TEXT_CHARS = 10000  # per cleaned text field
SUMMARY_CHARS = 300
MAX_COMMENTS = 10
BATCH_SIZE = 50
PROGRESS_EVERY = 500


@dataclass(frozen=True)
class PipelineConfig:
    """Settings shared by the scraper, the writer and the transformer."""

    projects: tuple = PROJECTS_TO_FETCH
    base_url: str = BASE_URL
    request_fields: str = REQUEST_FIELDS  # empty string: let the server decide
    page_size: int = PAGE_SIZE
    max_retries: int = MAX_RETRIES
    network_timeout: float = NETWORK_TIMEOUT
    rate_limit_delay: float = RATE_LIMIT_DELAY
    server_error_delay: float = SERVER_ERROR_DELAY
    error_delay: float = ERROR_DELAY
    politeness_delay: float = POLITENESS_DELAY
    output_dir: str = OUTPUT_DIR
    checkpoint_file: str = CHECKPOINT_FILE
    corpus_file: str = LLM_DATA_FILE
    log_file: str = LOG_FILE
    max_record_chars: int = MAX_RECORD_CHARS
    max_text_chars: int = MAX_TEXT_CHARS
    summary_chars: int = SUMMARY_CHARS
    max_comments: int = MAX_COMMENTS
    batch_size: int = BATCH_SIZE
    progress_every: int = PROGRESS_EVERY
    scrub_markup: bool = False  # strip HTML / Jira markup before use
    redact_pii: bool = False  # mask e-mails and IP addresses

    def __post_init__(self):
        # Accept any iterable of project keys but store it immutably.
        object.__setattr__(self, "projects", tuple(self.projects))
        if self.page_size <= 0:
            raise ValueError(f"page_size must be positive, got {self.page_size}")
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be non-negative, got {self.max_retries}")
        if self.batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")


DEFAULT_CONFIG = PipelineConfig()
