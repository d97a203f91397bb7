"""Configuration — loads environment variables with sensible defaults.

Windows, storage and AI settings live here. Override via .env or the environment.
Rule thresholds stay next to the rules that use them.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env from project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

def _env(key: str, default: str = "") -> str:
    return os.getenv(key, default)

def _env_int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))

def _env_bool(key: str, default: bool = False) -> bool:
    return os.getenv(key, str(default)).lower() in ("1", "true", "yes")


# ═══════════════════════════════════════════════════════════════════════════
# AI insights (optional)
# ═══════════════════════════════════════════════════════════════════════════
# AI_PROVIDER picks the vendor adapter:
#   "openai"    — OpenAI
#   "deepseek"  — DeepSeek (OpenAI-compatible endpoint)
#   "qwen"      — Alibaba DashScope (OpenAI-compatible endpoint)
#   "gemini"    — Google Gemini (OpenAI-compatible endpoint)
#   "claude"    — Anthropic

AI_PROVIDER = _env("AI_PROVIDER", "openai")
AI_API_KEY = _env("AI_API_KEY")
AI_MODEL = _env("AI_MODEL")              # empty = provider default
AI_BASE_URL = _env("AI_BASE_URL")        # empty = provider default
AI_TEMPERATURE_PCT = _env_int("AI_TEMPERATURE_PCT", 70)
AI_MAX_TOKENS = _env_int("AI_MAX_TOKENS", 1024)

# ═══════════════════════════════════════════════════════════════════════════
# Statistics windows
# ═══════════════════════════════════════════════════════════════════════════

COMPLETION_WINDOW_DAYS = _env_int("COMPLETION_WINDOW_DAYS", 30)
INSIGHT_WINDOW_DAYS = _env_int("INSIGHT_WINDOW_DAYS", 28)
# How many heuristic insights a dashboard shows at once
INSIGHT_DISPLAY_LIMIT = _env_int("INSIGHT_DISPLAY_LIMIT", 2)

# ═══════════════════════════════════════════════════════════════════════════
# Database
# ═══════════════════════════════════════════════════════════════════════════

DB_PATH = Path(_env("HABITFLOW_DB_PATH") or _PROJECT_ROOT / "data" / "habitflow.db")

# ═══════════════════════════════════════════════════════════════════════════
# Logging
# ═══════════════════════════════════════════════════════════════════════════

LOG_LEVEL = _env("LOG_LEVEL", "INFO").upper()
LOG_DEBUG = _env_bool("LOG_DEBUG")

# ═══════════════════════════════════════════════════════════════════════════
# Timezone (default UTC, override for your locale in .env)
# ═══════════════════════════════════════════════════════════════════════════

TIMEZONE_OFFSET_HOURS = _env_int("TIMEZONE_OFFSET_HOURS", 0)
