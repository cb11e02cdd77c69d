# Logging adapter for library-wide logging
from cloudjobs.adapters.logging_adapter import LoggingAdapter

from pydantic import HttpUrl, field_validator
from pydantic_settings import BaseSettings
from rich import print

from cloudjobs.core.interfaces.logging import LoggingPort

# using pydantic_settings to manage environment variables
# and do automatic type casting in a central place
class CloudJobsSettings(BaseSettings):
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore"
    }
    CLOUDJOBS_LOG_LEVEL: str = "INFO"
    CLOUDJOBS_API_URL: HttpUrl = HttpUrl("http://localhost:8080/client/api")
    # Job completion polling (seconds)
    CLOUDJOBS_JOB_MAX_DURATION: float = 1200
    CLOUDJOBS_JOB_POLL_PERIOD: float = 1
    CLOUDJOBS_JOB_MAX_POLL_PERIOD: float = 5
    CLOUDJOBS_JOB_POLL_BACKOFF: bool = True
    # Retry of a single status query against transient failures
    CLOUDJOBS_STATUS_FETCH_ATTEMPTS: int = 3
    CLOUDJOBS_STATUS_FETCH_RETRY_BASE_WAIT: float = 0.5
    CLOUDJOBS_STATUS_FETCH_RETRY_MAX_WAIT: float = 5.0
    CLOUDJOBS_STATUS_FETCH_TIMEOUT: float = 10.0

    def print_settings(self, logger: LoggingPort):
        """Prints the settings for debugging purposes"""
        logger.info("cloudjobs settings:")
        print(self)

    @field_validator("CLOUDJOBS_LOG_LEVEL", mode="before")
    def normalize_log_level(cls, value: str) -> str:
        """Accept log levels in any case."""
        return str(value).upper().strip()


app_settings = CloudJobsSettings()

logger = LoggingAdapter("cloudjobs", app_settings.CLOUDJOBS_LOG_LEVEL)
