"""Shared constants used across the application."""

import re

# Issue Tracker Constants
# -----------------------

DEFAULT_GITHUB_API_URL = "https://api.github.com"
"""Default base URL of the GitHub REST API."""

PATH_SEGMENT_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")
"""Characters allowed in an owner or repository name before it is placed in a request path."""

ISSUES_PER_PAGE = 100
"""Page size used when listing issues."""

DEFAULT_MAX_RETRIES = 3
"""Default number of retries for idempotent read operations."""

DEFAULT_RETRY_DELAY_SECONDS = 0.5
"""Default base delay for exponential backoff, doubled on each attempt."""

DEFAULT_RETRY_JITTER_SECONDS = 0.1
"""Upper bound of the random jitter added to each backoff delay."""

DEFAULT_RATE_LIMIT_RETRY_AFTER_SECONDS = 60.0
"""Retry-after interval assumed when a rate-limited response does not advertise one."""

# Priority Labels
# ---------------

URGENT_LABEL = "urgent"
IMPORTANT_LABEL = "important"

PRIORITY_LABEL_CASCADE = (URGENT_LABEL, IMPORTANT_LABEL)
"""Labels applied, in order, to narrow the candidate issues when selecting the next issue."""

FALLBACK_ALLOWED_LABELS = frozenset({URGENT_LABEL, IMPORTANT_LABEL})
"""Labels allowed when the configuration does not define any."""

# Model Constants
# ---------------

DEFAULT_MODEL_API_ENDPOINT = "https://models.github.ai/inference/chat/completions"
DEFAULT_MODEL_NAME = "openai/gpt-4o"
DEFAULT_MODEL_TEMPERATURE = 0.3
DEFAULT_MODEL_MAX_TOKENS = 1000

FENCED_CODE_BLOCK_PATTERN = re.compile(r"```(?:json|js|javascript)?\s*([\s\S]*?)```")
"""Pattern to extract the content of a markdown code block wrapping a model answer."""

# Session Constants
# -----------------

DEFAULT_STATE_FILE = "session-state.json"
NO_BREAK_SUGGESTIONS_MESSAGE = "No break suggestions available"

DEFAULT_BREAK_SUGGESTIONS = (
    "Stand up and stretch for a few minutes",
    "Take a short walk, ideally outside",
    "Drink a glass of water",
    "Rest your eyes by looking at something far away",
    "Do a few deep breathing exercises",
    "Tidy up your desk",
)

# Labeling Constants
# ------------------

DEFAULT_REQUEST_DELAY_SECONDS = 1.0
"""Pause between two issues of a batch to stay clear of external rate limits."""

CONTROL_CHARACTER_PATTERN = re.compile(r"[\n\r\v\f\b\0]")
"""Characters stripped from issue titles before they are printed to a terminal."""
