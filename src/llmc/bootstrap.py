from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

from llmc.app_config import Settings, build_settings, load_json_config, resolve_runtime_env
from llmc.logging_config import setup_logging
from llmc.provider import ConversationalResponder, create_responder
from llmc.sessions import SessionResolver, SessionStore, ThresholdGuard


@dataclass
class AppRuntime:
    settings: Settings
    store: SessionStore
    resolver: SessionResolver
    threshold_guard: ThresholdGuard
    log_descriptions: list[str]


def bootstrap_runtime(
    config_path: Path | None = None,
    *,
    verbose: bool = False,
    environ: dict[str, str] | None = None,
) -> AppRuntime:
    """Resolve settings once and wire the session components for one invocation."""
    load_dotenv()
    config, used_path = load_json_config(config_path)
    settings = build_settings(
        config,
        config_path=used_path,
        custom_config=config_path is not None,
        verbose=verbose,
        environ=environ,
    )
    log_descriptions = setup_logging(level=settings.log_level, consumers=settings.log_consumers)
    logger.debug(f"Using config file: {used_path or '(defaults)'}")
    logger.debug(f"Session directory: {settings.session_dir}")

    store = SessionStore(settings.session_dir)
    return AppRuntime(
        settings=settings,
        store=store,
        resolver=SessionResolver(store),
        threshold_guard=ThresholdGuard(settings.session_message_threshold),
        log_descriptions=log_descriptions,
    )


def build_responder(settings: Settings) -> ConversationalResponder:
    env = resolve_runtime_env(settings.provider_name)
    responder = create_responder(settings, env)
    logger.debug(f"Responder ready: {settings.model}")
    return responder
