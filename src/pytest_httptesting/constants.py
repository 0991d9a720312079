from enum import StrEnum

DEFAULT_BASE_URL = "http://testserver"


class ConfigOptions(StrEnum):
    """Configuration option names for the pytest-httptesting plugin."""

    BASE_URL = "httptesting_base_url"
    REPORT = "httptesting_report"
