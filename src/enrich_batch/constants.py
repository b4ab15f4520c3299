"""
Project-wide constants for enrich-batch
"""

# ==============================================================================
# Remote calls
# ==============================================================================

DEFAULT_MAX_ATTEMPTS = 5
BACKOFF_BASE = 2  # delay for attempt N is BACKOFF_BASE ** N seconds
REQUEST_TIMEOUT_SECONDS = 180.0

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"
DEFAULT_CHAT_MODEL = "gpt-4o-mini"
DEFAULT_GEMINI_EMBEDDING_MODEL = "text-embedding-004"
DEFAULT_GEMINI_CHAT_MODEL = "gemini-2.0-flash"
DEFAULT_MAX_TOKENS = 1000
DEFAULT_TEMPERATURE = 0.0

# ==============================================================================
# Object copying
# ==============================================================================

DEFAULT_COPY_DEPTH = 2
TEMP_FILE_PREFIX = "enrich-copy-"

# ==============================================================================
# Prompts
# ==============================================================================

DELIMITER_CANDIDATES = ("///", "|||", "###")

# ==============================================================================
# Row fields
# ==============================================================================

DEFAULT_TEXT_FIELD = "text"
DEFAULT_EMBEDDING_FIELD = "embedding"
DEFAULT_TOPIC_FIELD = "topic"
DEFAULT_MAX_SNIPPETS = 10
