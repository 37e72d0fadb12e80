"""RowFlow - row-level dataflow pipelines and cross-dialect bulk loading."""

__version__ = "0.1.0"
__package_name__ = "rowflow"

# Initialize logging with default configuration
from rowflow.logging import configure_logging

configure_logging()
