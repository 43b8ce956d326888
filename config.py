# config.py
# Environment-driven settings. Values come from the process environment after
# a local .env file (if any) has been merged in.

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

load_dotenv()

MIN_API_KEY_LENGTH = 20

MODEL_NAME = os.getenv("RESUME_LLM_MODEL", "gpt-4o-mini")
MODEL_TEMPERATURE = float(os.getenv("RESUME_LLM_TEMPERATURE", "0.7"))
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL") or None
AI_TIMEOUT_SECONDS = float(os.getenv("AI_TIMEOUT_SECONDS", "20"))

HISTORY_PATH = os.getenv(
    "RESUME_HISTORY_PATH",
    str(Path.home() / ".resume_analyzer" / "history.json"),
)
HISTORY_LIMIT = int(os.getenv("RESUME_HISTORY_LIMIT", "50"))

SKILL_ALIASES_PATH = os.getenv("SKILL_ALIASES_PATH") or None
JOB_ROLES_PATH = os.getenv("JOB_ROLES_PATH") or None
ATS_WEIGHTS_PATH = os.getenv("ATS_WEIGHTS_PATH") or None

CORS_ALLOW_ORIGINS: List[str] = [
    origin.strip()
    for origin in os.getenv("CORS_ALLOW_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
    if origin.strip()
]


def get_api_key() -> Optional[str]:
    """Read the AI credential at call time so tests can patch the environment."""
    return os.getenv("OPENAI_API_KEY") or os.getenv("OPENROUTER_API_KEY") or None


def is_ai_configured(api_key: Optional[str] = None) -> bool:
    key = api_key if api_key is not None else get_api_key()
    return bool(key) and len(key) > MIN_API_KEY_LENGTH


def load_json_file(path: str) -> Dict[str, Any]:
    """Load a JSON object from *path*, failing loudly on anything else."""
    try:
        with open(path, "r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except (OSError, ValueError) as exc:
        raise ValueError(f"Could not load configuration file {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError(f"Configuration file {path} must contain a JSON object.")
    return payload
