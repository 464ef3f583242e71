"""
Configuration loader for the SupportBot system.
Reads settings from YAML file with environment variable substitution.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml


DEFAULT_DIAGNOSTIC_URL = (
    "https://www.dell.com/support/home/us/en/19/product-support/servicetag/{service_tag}/diagnose"
)


@dataclass
class BotConfig:
    company_name: str = "Dell"
    default_dialog: str = "greeting"
    affirmative_token: str = "YES"
    diagnostic_url_template: str = DEFAULT_DIAGNOSTIC_URL


@dataclass
class LookupConfig:
    url_template: str = ""                      # empty → mock lookup
    timeout_seconds: float = 5.0                # bounded wait per lookup
    max_attempts: int = 1                       # single attempt, fail open
    product_fallback: str = "LATITUDE 13"
    warranty_type_fallback: str = "C, NBD ONSITE"
    warranty_active_fallback: bool = True


@dataclass
class StateConfig:
    store_backend: str = "memory"               # "memory" | "file"
    store_file_dir: str = "./data"              # directory for file backend


@dataclass
class Settings:
    app_name: str = "SupportBot"
    debug: bool = False
    bot: BotConfig = field(default_factory=BotConfig)
    lookup: LookupConfig = field(default_factory=LookupConfig)
    state: StateConfig = field(default_factory=StateConfig)


_settings: Optional[Settings] = None


def _substitute_env_vars(value: str) -> str:
    """Replace ${VAR_NAME} patterns with environment variable values."""
    pattern = re.compile(r'\$\{(\w+)\}')
    def replacer(match):
        var_name = match.group(1)
        return os.environ.get(var_name, match.group(0))
    return pattern.sub(replacer, value)


def _process_values(obj: Any) -> Any:
    """Recursively substitute env vars in all string values."""
    if isinstance(obj, str):
        return _substitute_env_vars(obj)
    elif isinstance(obj, dict):
        return {k: _process_values(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_process_values(v) for v in obj]
    return obj


def load_settings(config_path: str = None) -> Settings:
    """Load settings from YAML file."""
    global _settings

    if config_path is None:
        config_path = os.environ.get(
            "SUPPORTBOT_CONFIG",
            str(Path(__file__).parent / "settings.yaml"),
        )

    settings = Settings()

    if Path(config_path).exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
        raw = _process_values(raw)

        settings.app_name = raw.get("app_name", settings.app_name)
        settings.debug = raw.get("debug", settings.debug)

        if "bot" in raw:
            b = raw["bot"]
            settings.bot = BotConfig(
                company_name=b.get("company_name", settings.bot.company_name),
                default_dialog=b.get("default_dialog", settings.bot.default_dialog),
                affirmative_token=b.get("affirmative_token", settings.bot.affirmative_token),
                diagnostic_url_template=b.get(
                    "diagnostic_url_template", settings.bot.diagnostic_url_template,
                ),
            )

        if "lookup" in raw:
            lk = raw["lookup"]
            settings.lookup = LookupConfig(
                url_template=lk.get("url_template", ""),
                timeout_seconds=float(lk.get("timeout_seconds", 5.0)),
                max_attempts=int(lk.get("max_attempts", 1)),
                product_fallback=lk.get("product_fallback", "LATITUDE 13"),
                warranty_type_fallback=lk.get("warranty_type_fallback", "C, NBD ONSITE"),
                warranty_active_fallback=lk.get("warranty_active_fallback", True),
            )

        if "state" in raw:
            st = raw["state"]
            settings.state = StateConfig(
                store_backend=st.get("store_backend", settings.state.store_backend),
                store_file_dir=st.get("store_file_dir", settings.state.store_file_dir),
            )

    _settings = settings
    return settings


def get_settings() -> Settings:
    """Return cached settings or load from default path."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings
