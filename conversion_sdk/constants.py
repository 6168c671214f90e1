import os

from dotenv import load_dotenv

load_dotenv(dotenv_path=".env")

# Logger Constants
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT: str = os.getenv(
    "CONVERSION_LOG_FORMAT",
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[logger_name]}</cyan> - <level>{message}</level>",
)

# Delta Log Constants
# Directory under the table base path that holds the transaction log
DELTA_LOG_DIR_NAME = os.getenv("DELTA_LOG_DIR_NAME", "_delta_log")
# Commit files are named with the zero padded version, e.g. 00000000000000000010.json
DELTA_COMMIT_FILE_DIGITS = int(os.getenv("DELTA_COMMIT_FILE_DIGITS", "20"))
# Parsed commit files kept in memory per log reader
DELTA_COMMIT_CACHE_SIZE = int(os.getenv("DELTA_COMMIT_CACHE_SIZE", "128"))
DEFAULT_TABLE_FORMAT = "DELTA"
DEFAULT_FILE_FORMAT_PROVIDER = os.getenv("DELTA_DEFAULT_FILE_FORMAT", "parquet")

# Incremental Sync Constants
# Example: 2025-12-08T10:00:00Z
MARKER_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
DEFAULT_PREPONE_MARKER_HOURS = float(
    os.getenv("CONVERSION_PREPONE_MARKER_HOURS", "0")
)
