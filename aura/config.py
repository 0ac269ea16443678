"""Centralized configuration for the A.U.R.A. agent.

Secret resolution order (per variable):
  1. Environment variable / ``.env`` file  (local dev)
  2. AWS SSM Parameter Store SecureString  (when ``AWS_EXECUTION_ENV`` is set)

The SSM paths follow the convention ``/aura/<VARIABLE_NAME>``.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# ── Feature flag: running on AWS? ────────────────────────────────────
_ON_AWS = bool(os.getenv("AWS_EXECUTION_ENV"))


# ── Secret resolution ────────────────────────────────────────────────

def _get_ssm_parameter(name: str) -> str | None:
    """Fetch a SecureString from SSM Parameter Store.

    Returns ``None`` if the parameter does not exist or the lookup fails.
    Errors are logged at DEBUG so that the local-dev path stays quiet.
    """
    try:
        import boto3  # noqa: PLC0415 (only needed on AWS)

        ssm = boto3.client("ssm")
        resp = ssm.get_parameter(Name=f"/aura/{name}", WithDecryption=True)
        return resp["Parameter"]["Value"]
    except Exception:
        logger.debug("SSM lookup for %s failed (expected locally)", name)
        return None


def _require_env(name: str) -> str:
    """Return a config value from env-var or SSM, or raise a clear error."""
    value = os.getenv(name)
    if value and not value.startswith("your_"):
        return value

    if _ON_AWS:
        ssm_value = _get_ssm_parameter(name)
        if ssm_value:
            return ssm_value

    raise OSError(
        f"Missing required configuration: {name}. "
        f"Set it in .env (local) or SSM Parameter Store /aura/{name} (AWS)."
    )


def _optional_env(name: str) -> str | None:
    """Like ``_require_env`` but returns ``None`` instead of raising."""
    try:
        return _require_env(name)
    except OSError:
        return None


# ── LLM ─────────────────────────────────────────────────────────────
ANTHROPIC_API_KEY: str = _require_env("ANTHROPIC_API_KEY")
MODEL_NAME: str = os.getenv("MODEL_NAME", "claude-sonnet-4-5")

# Constrained JSON extraction runs on a cheaper, deterministic model
EXTRACTION_MODEL_NAME: str = os.getenv("EXTRACTION_MODEL_NAME", "claude-haiku-4-5")

# ── FasterBook booking service ──────────────────────────────────────
FASTERBOOK_API_KEY: str = _require_env("FASTERBOOK_API_KEY")
FASTERBOOK_BASE_URL: str = os.getenv("FASTERBOOK_BASE_URL", "https://fasterbook.onrender.com")
CATALOG_CACHE_TTL_SECONDS: float = float(os.getenv("CATALOG_CACHE_TTL_SECONDS", "300"))

# ── Image generation (legacy general-mode action) ───────────────────
HF_TOKEN: str | None = _optional_env("HF_TOKEN")
IMAGE_MODEL_NAME: str = os.getenv("IMAGE_MODEL_NAME", "stabilityai/stable-diffusion-xl-base-1.0")

# ── Server ──────────────────────────────────────────────────────────
SERVER_HOST: str = os.getenv("SERVER_HOST", "0.0.0.0")
SERVER_PORT: int = int(os.getenv("SERVER_PORT", "8000"))
CORS_ORIGINS: list[str] = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000,http://localhost:5173",
).split(",")
