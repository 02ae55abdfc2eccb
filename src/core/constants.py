"""Core constants used across tagstore modules.

This module centralizes file names, defaults, and comparator tokens.
Keeping values here avoids magic literals in storage logic.
"""

from __future__ import annotations

DEFAULT_LOCATOR = "file://.tagstore"
DEFAULT_CODEC_NAME = "json"
SUPPORTED_CODEC_NAMES = ("json", "msgpack")
DEFAULT_LOG_LEVEL = "INFO"
SUPPORTED_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
SETTINGS_FILE_STEM = "settings"
DATA_DIR_NAME = "data"
DEFAULT_SETTINGS = {"next_id": 0}
SHARD_ID_WIDTH = 8
SHARD_GROUP_WIDTH = 2
MAX_SHARD_ID = 10**SHARD_ID_WIDTH - 1
MAX_ID_SKIP = 3
MAX_ADD_ATTEMPTS = 1000
TIMESTAMP_INPUT_FIELD = "timestamp"
COUNT_ALL_RULESET = {"_created": {">=": 0}}

NUMERIC_COMPARATORS = ("=", "!=", ">", ">=", "=>", "<", "<=", "=<")
STRING_COMPARATORS = ("eq", "ne", "gt", "gte", "ge", "lt", "lte", "le")
REGEX_COMPARATORS = ("~", "=~", "!~")
TEMPORAL_SUFFIXES = ("eq", "lt", "before", "lte", "le", "gt", "after", "gte", "ge")
DATE_COMPARATORS = tuple(f"date:{suffix}" for suffix in TEMPORAL_SUFFIXES)
TIME_COMPARATORS = tuple(f"time:{suffix}" for suffix in TEMPORAL_SUFFIXES)
