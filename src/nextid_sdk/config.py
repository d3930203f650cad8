"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from nextid_sdk.models.config import ClientConfig, Environment

DEFAULT_CONFIG_PATH = "~/.nextid/config.toml"


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "NEXTID_",
) -> ClientConfig:
    """Load SDK configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (NEXTID_ENVIRONMENT, NEXTID_SECRET, etc.)
        2. TOML config file
        3. Defaults from ClientConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = ClientConfig()

    # ── Client section ─────────────────────────────────────
    client = raw.get("client", {})
    if env := client.get("environment"):
        cfg.environment = Environment(env)
    if v := client.get("timeout"):
        cfg.timeout = float(v)
    if v := client.get("payload_ttl"):
        cfg.payload_ttl = int(v)
    if v := client.get("user_agent"):
        cfg.user_agent = str(v)
    if v := client.get("log_level"):
        cfg.log_level = str(v)
    if v := client.get("secret_key"):
        cfg.secret_key = str(v)

    # ── Service sections (custom deployments) ──────────────
    if v := raw.get("proof_service", {}).get("url"):
        cfg.proof_url = str(v)
    if v := raw.get("kv_service", {}).get("url"):
        cfg.kv_url = str(v)

    # ── Environment variable overrides (highest priority) ──
    if env := os.environ.get(f"{env_prefix}ENVIRONMENT"):
        cfg.environment = Environment(env)
    if url := os.environ.get(f"{env_prefix}PROOF_URL"):
        cfg.proof_url = url
    if url := os.environ.get(f"{env_prefix}KV_URL"):
        cfg.kv_url = url
    if timeout := os.environ.get(f"{env_prefix}TIMEOUT"):
        cfg.timeout = float(timeout)
    if secret := os.environ.get(f"{env_prefix}SECRET"):
        cfg.secret_key = secret

    # Custom URLs without an explicit environment imply a custom deployment
    if cfg.environment is not Environment.CUSTOM and (cfg.proof_url or cfg.kv_url):
        if "environment" not in client and not os.environ.get(f"{env_prefix}ENVIRONMENT"):
            cfg.environment = Environment.CUSTOM

    return cfg
