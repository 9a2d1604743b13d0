"""Domain errors and failure typing."""


class PipelineError(Exception):
    """Base class for geolistic failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or unknown configuration."""

    error_code = "CONFIG_ERROR"


class InvalidArgumentError(PipelineError):
    """Raised for malformed country codes, paths and option values."""

    error_code = "INVALID_ARGUMENT"


class NotFoundError(PipelineError):
    """Raised when a local data file is missing."""

    error_code = "NOT_FOUND"


class StoreError(PipelineError):
    """Raised when the search store rejects or fails a request."""

    error_code = "STORE_ERROR"


class SchemaMissingError(StoreError):
    """Raised when the target index or type does not exist in the store."""

    error_code = "SCHEMA_MISSING"

    def __init__(self, message: str, *, missing_index: str | None = None, missing_type: str | None = None) -> None:
        super().__init__(message)
        self.missing_index = missing_index
        self.missing_type = missing_type


class DownloadError(PipelineError):
    """Raised when a download wave fails to fetch or extract."""

    error_code = "DOWNLOAD_ERROR"

    def __init__(self, message: str, *, urls: list[str] | None = None) -> None:
        super().__init__(message)
        self.urls = list(urls or [])
