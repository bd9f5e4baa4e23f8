"""
Cellarwise Configuration
Centralized settings for the application
"""

import os

from dotenv import load_dotenv

load_dotenv()

# OpenAI Model Configuration (profile generation)
OPENAI_MODEL = os.getenv("CELLARWISE_OPENAI_MODEL", "gpt-4o-mini")
OPENAI_TEMPERATURE = 0.0  # Deterministic for consistent profiles
OPENAI_TIMEOUT_SECONDS = float(os.getenv("CELLARWISE_OPENAI_TIMEOUT", "20"))

# Structural profiles older than this are regenerated
PROFILE_STALE_DAYS = int(os.getenv("CELLARWISE_PROFILE_STALE_DAYS", "30"))

# Recommendation anti-repetition
ROTATION_WINDOW_DAYS = int(os.getenv("CELLARWISE_ROTATION_WINDOW_DAYS", "3"))
HISTORY_PENALTY_DAYS = int(os.getenv("CELLARWISE_HISTORY_PENALTY_DAYS", "7"))
DEFAULT_RECOMMENDATION_COUNT = int(os.getenv("CELLARWISE_RECOMMENDATION_COUNT", "3"))

# Verdicts kept in the engine's in-process cache (least recently used evicted)
VERDICT_CACHE_SIZE = int(os.getenv("CELLARWISE_VERDICT_CACHE_SIZE", "2048"))

# "Tonight" signal: ready bottles rated at least this highly
TONIGHT_RATING_THRESHOLD = float(os.getenv("CELLARWISE_TONIGHT_RATING", "4.2"))

LOG_LEVEL = os.getenv("CELLARWISE_LOG_LEVEL", "INFO")
