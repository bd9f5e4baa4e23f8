"""
Utility functions for Cellarwise.

Includes logging setup, input sanitization, LLM response caching and small
numeric helpers shared by the engine modules.
"""

import hashlib
import json
import logging
import math
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional

from cellarwise.config import LOG_LEVEL

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


# =======================
# INPUT SANITIZATION
# =======================

def sanitize_text_input(text: Optional[str], max_length: int = 500) -> str:
    """
    Sanitize free text before it is placed into an LLM prompt.

    Args:
        text: Raw wine metadata (name, producer, notes)
        max_length: Maximum allowed length

    Returns:
        Sanitized text
    """
    if not text:
        return ""

    text = text[:max_length]

    dangerous_patterns = [
        r'ignore[\s\.\,\:\;]+(previous|all|the|above)',
        r'disregard[\s\.\,\:\;]+previous',
        r'forget[\s\.\,\:\;]+previous',
        r'(system|assistant|user)[\s\.\,\:\;]*:',
        r'\[/?INST\]',
        r'<\|(im_start|im_end|system|assistant)\|>',
        r'(new|override)\s+instruction',
        r'you\s+are\s+now',
        r'act\s+as',
        r'pretend\s+to\s+be',
    ]

    for pattern in dangerous_patterns:
        text = re.sub(pattern, '', text, flags=re.IGNORECASE | re.MULTILINE)

    # Labels are single-line; collapse everything else
    text = ''.join(char for char in text if char.isprintable() or char in '\n\t')
    text = re.sub(r'\s+', ' ', text)

    return text.strip()


# =======================
# LLM RESPONSE CACHING
# =======================

class LLMCache:
    """
    Simple file-based cache for LLM responses.

    Profiles are regenerated at most once per TTL for identical prompts.
    """

    def __init__(self, cache_dir: Optional[Path] = None, ttl_hours: int = 24):
        """
        Initialize cache.

        Args:
            cache_dir: Directory for cache files (default: .cache/llm)
            ttl_hours: Time-to-live in hours for cache entries
        """
        if cache_dir is None:
            cache_dir = Path.cwd() / '.cache' / 'llm'

        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.ttl = timedelta(hours=ttl_hours)

        logger.info(f"LLM cache initialized at {self.cache_dir}")

    def _get_cache_key(self, prompt: str, model: str) -> str:
        cache_str = json.dumps({'prompt': prompt, 'model': model}, sort_keys=True)
        return hashlib.sha256(cache_str.encode()).hexdigest()

    def get(self, prompt: str, model: str) -> Optional[Any]:
        """Get cached response if available and not expired."""
        cache_key = self._get_cache_key(prompt, model)
        cache_file = self.cache_dir / f"{cache_key}.json"

        if not cache_file.exists():
            return None

        file_age = datetime.now() - datetime.fromtimestamp(cache_file.stat().st_mtime)
        if file_age > self.ttl:
            logger.debug(f"Cache expired for key {cache_key[:8]}...")
            cache_file.unlink()
            return None

        try:
            with open(cache_file, 'r') as f:
                cached_data = json.load(f)
            logger.info(f"Cache HIT for key {cache_key[:8]}...")
            return cached_data['response']
        except (OSError, ValueError, KeyError) as e:
            logger.error(f"Error reading cache: {e}")
            return None

    def set(self, prompt: str, model: str, response: Any) -> None:
        """Store response in cache."""
        cache_key = self._get_cache_key(prompt, model)
        cache_file = self.cache_dir / f"{cache_key}.json"

        try:
            cache_data = {
                'prompt': prompt[:200],  # Truncated for debugging
                'model': model,
                'response': response,
                'timestamp': datetime.now().isoformat()
            }
            with open(cache_file, 'w') as f:
                json.dump(cache_data, f)
            logger.info(f"Cache SET for key {cache_key[:8]}...")
        except (OSError, TypeError) as e:
            logger.error(f"Error writing cache: {e}")

    def clear(self) -> None:
        """Clear all cache files."""
        for cache_file in self.cache_dir.glob("*.json"):
            cache_file.unlink()
        logger.info("Cache cleared")


_llm_cache: Optional[LLMCache] = None


def get_llm_cache() -> LLMCache:
    """Get or create the shared LLM cache."""
    global _llm_cache

    if _llm_cache is None:
        _llm_cache = LLMCache()

    return _llm_cache


# =======================
# NUMERIC HELPERS
# =======================

def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """
    Safely divide two numbers, handling zero division.

    Args:
        numerator: Number to divide
        denominator: Number to divide by
        default: Value to return if division by zero

    Returns:
        Result of division or default
    """
    if denominator == 0:
        logger.warning(f"Division by zero: {numerator}/{denominator}, returning {default}")
        return default
    return numerator / denominator


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round to nearest integer with .5 going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment
