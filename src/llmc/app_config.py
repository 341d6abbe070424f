from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from pathlib import Path

from llmc.errors import InvalidArgumentError
from llmc.sessions.models import parse_model_string

DEFAULT_MODEL = "openai:gpt-4.1"
DEFAULT_CONFIG_DIR = Path.home() / ".config" / "llmc"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.json"
MODEL_ENV_VAR = "LLMC_MODEL"

_API_KEY_ENV_VARS = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
    "gemini": "GEMINI_API_KEY",
}


@dataclass(frozen=True)
class RuntimeEnv:
    provider_api_key: str
    provider_env_var: str


@dataclass(frozen=True)
class Settings:
    model: str
    max_tokens: int
    temperature: float
    session_dir: Path
    session_message_threshold: int
    session_retention_days: int
    anthropic_base_url: str | None
    openai_base_url: str | None
    gemini_base_url: str | None
    log_level: str
    log_consumers: list | None
    config_path: Path | None

    @property
    def provider_name(self) -> str:
        return parse_model_string(self.model)[0]

    @property
    def model_name(self) -> str:
        return parse_model_string(self.model)[1]

    def base_url_for(self, provider_name: str) -> str | None:
        return {
            "anthropic": self.anthropic_base_url,
            "openai": self.openai_base_url,
            "gemini": self.gemini_base_url,
        }.get(provider_name)

    def with_model(self, model: str, source: str = "model") -> Settings:
        """Copy with a different binding; the command-line flag and a stored session model both land here."""
        validate_model(model, source)
        return replace(self, model=model)


def validate_model(model: str, source: str = "model") -> str:
    try:
        parse_model_string(model)
    except ValueError as ex:
        raise InvalidArgumentError(f"invalid {source}: {ex}") from None
    return model


def load_json_config(config_path: Path | None = None) -> tuple[dict, Path | None]:
    """Read the JSON config. Returns the parsed dict and the path actually used."""
    path = config_path or DEFAULT_CONFIG_FILE
    if not path.exists():
        if config_path is not None:
            raise InvalidArgumentError(f"config file not found: {config_path}")
        return {}, None
    try:
        with open(path, encoding="utf-8") as f:
            config = json.load(f)
    except (OSError, ValueError) as ex:
        raise InvalidArgumentError(f"error reading config file {path}: {ex}") from ex
    if not isinstance(config, dict):
        raise InvalidArgumentError(f"config file {path} must contain a JSON object")
    return config, path


def resolve_session_dir(config_path: Path | None, *, custom: bool) -> Path:
    # A custom config file keeps its sessions next to it.
    if custom and config_path is not None:
        return config_path.resolve().parent / "sessions"
    return DEFAULT_CONFIG_DIR / "sessions"


def _to_int(config: dict, key: str, default: int) -> int:
    value = config.get(key, default)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidArgumentError(f"config value {key} must be an integer (got {value!r})") from None


def _to_float(config: dict, key: str, default: float) -> float:
    value = config.get(key, default)
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidArgumentError(f"config value {key} must be a number (got {value!r})") from None


def _optional_str(config: dict, key: str) -> str | None:
    value = str(config.get(key) or "").strip()
    return value or None


def build_settings(
    config: dict,
    *,
    config_path: Path | None = None,
    custom_config: bool = False,
    verbose: bool = False,
    environ: dict[str, str] | None = None,
) -> Settings:
    """Resolve settings once per invocation: environment > file > default.

    A command-line `--model` is layered on top afterwards with `Settings.with_model`.
    """
    env = os.environ if environ is None else environ

    if env.get(MODEL_ENV_VAR, "").strip():
        model = validate_model(env[MODEL_ENV_VAR].strip(), "model from environment")
    else:
        model = validate_model(str(config.get("Model", DEFAULT_MODEL)), "model from config file")

    retention_days = _to_int(config, "SessionRetentionDays", 30)
    if retention_days < 0:
        raise InvalidArgumentError("SessionRetentionDays must not be negative")

    log_consumers = config.get("LogConsumers")
    if log_consumers is not None and not (
        isinstance(log_consumers, list) and all(isinstance(c, dict) for c in log_consumers)
    ):
        raise InvalidArgumentError("LogConsumers must be a list of objects")

    return Settings(
        model=model,
        max_tokens=_to_int(config, "MaxTokens", 4096),
        temperature=_to_float(config, "Temperature", 1.0),
        session_dir=resolve_session_dir(config_path, custom=custom_config),
        session_message_threshold=_to_int(config, "SessionMessageThreshold", 50),
        session_retention_days=retention_days,
        anthropic_base_url=_optional_str(config, "AnthropicBaseUrl"),
        openai_base_url=_optional_str(config, "OpenAIBaseUrl"),
        gemini_base_url=_optional_str(config, "GeminiBaseUrl"),
        log_level="DEBUG" if verbose else str(config.get("LogLevel", "WARNING")),
        log_consumers=log_consumers,
        config_path=config_path,
    )


def resolve_runtime_env(provider_name: str, environ: dict[str, str] | None = None) -> RuntimeEnv:
    env = os.environ if environ is None else environ
    env_var = _API_KEY_ENV_VARS.get(provider_name)
    if env_var is None:
        supported = ", ".join(sorted(_API_KEY_ENV_VARS))
        raise InvalidArgumentError(f"unsupported provider: {provider_name} (supported: {supported})")
    return RuntimeEnv(provider_api_key=env.get(env_var, ""), provider_env_var=env_var)


def default_config() -> dict:
    """Starter contents written by ``llmc init``."""
    return {
        "Model": DEFAULT_MODEL,
        "MaxTokens": 4096,
        "Temperature": 1.0,
        "SessionMessageThreshold": 50,
        "SessionRetentionDays": 30,
        "AnthropicBaseUrl": "",
        "OpenAIBaseUrl": "",
        "GeminiBaseUrl": "",
        "LogLevel": "WARNING",
    }


def write_default_config(config_path: Path | None = None) -> Path:
    path = config_path or DEFAULT_CONFIG_FILE
    if path.exists():
        raise InvalidArgumentError(f"config file already exists at: {path}")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(default_config(), indent=2) + "\n", encoding="utf-8")
    except OSError as ex:
        raise InvalidArgumentError(f"failed to create config file {path}: {ex}") from ex
    return path


def mask_token(token: str) -> str:
    if len(token) <= 8:
        return "********"
    return f"{token[:4]}...{token[-4:]}"


_TOKEN_LABELS = {"anthropic": "AnthropicToken", "openai": "OpenAIToken", "gemini": "GeminiToken"}


@dataclass(frozen=True)
class SettingField:
    name: str
    label: str
    value: str


def describe_settings(settings: Settings, environ: dict[str, str] | None = None) -> list[SettingField]:
    """Resolved settings as displayed by ``llmc config``. API keys are masked."""
    env = os.environ if environ is None else environ
    fields = [
        SettingField("configfile", "ConfigFile", str(settings.config_path or "")),
        SettingField("model", "Model", settings.model),
        SettingField("max_tokens", "MaxTokens", str(settings.max_tokens)),
        SettingField("temperature", "Temperature", str(settings.temperature)),
        SettingField("session_dir", "SessionDir", str(settings.session_dir)),
        SettingField(
            "session_message_threshold", "SessionMessageThreshold", str(settings.session_message_threshold)
        ),
        SettingField("session_retention_days", "SessionRetentionDays", str(settings.session_retention_days)),
        SettingField("anthropic_base_url", "AnthropicBaseUrl", settings.anthropic_base_url or ""),
        SettingField("openai_base_url", "OpenAIBaseUrl", settings.openai_base_url or ""),
        SettingField("gemini_base_url", "GeminiBaseUrl", settings.gemini_base_url or ""),
        SettingField("log_level", "LogLevel", settings.log_level),
    ]
    for provider_name, env_var in _API_KEY_ENV_VARS.items():
        fields.append(SettingField(
            f"{provider_name}_token",
            _TOKEN_LABELS[provider_name],
            mask_token(env.get(env_var, "")),
        ))
    return fields


def find_setting_field(fields: list[SettingField], name: str) -> SettingField:
    """Look up a field by snake_case name or by its label, case-insensitively."""
    wanted = name.strip().lower()
    for item in fields:
        if wanted in (item.name, item.label.lower()):
            return item
    available = ", ".join(item.name for item in fields)
    raise InvalidArgumentError(f"unknown field: {name}\nAvailable fields: {available}")
