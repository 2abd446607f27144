"""Training backend data access layer."""

from mlconsole.api.source import DataSource, FetchError, create_data_source

__all__ = ["DataSource", "FetchError", "create_data_source"]
