"""
llmc command line.

Usage:
    llmc chat "message"                       # single-shot, no session
    llmc chat -n "message"                    # start a new session
    llmc chat -s 550e8400 "message"           # continue a session
    llmc chat -s latest -i                    # interactive mode on the latest session
    llmc chat -n -e                           # compose the first message in $EDITOR
    llmc sessions list | show | delete | rename | clear | summarize | start
    llmc config [FIELD]                       # show resolved settings, API keys masked
    llmc init                                 # write a default config file
    llmc version [--short]
"""

import asyncio
import functools
import platform
import sys
from pathlib import Path
from typing import Optional

import typer
from loguru import logger

from llmc import __version__
from llmc.app_config import describe_settings, find_setting_field, resolve_session_dir, write_default_config
from llmc.bootstrap import AppRuntime, bootstrap_runtime, build_responder
from llmc.editor import compose_message
from llmc.errors import InvalidArgumentError, LlmcError
from llmc.providers.common import waiting_spinner
from llmc.services.chat import ChatService
from llmc.services.session_controller import SessionController
from llmc.services.summarizer import Summarizer
from llmc.sessions import Session, execute_plan, parse_cutoff_date, plan_retention
from llmc.sessions.retention import default_cutoff

app = typer.Typer(help="A CLI tool for interacting with LLM APIs, with persistent sessions.")
sessions_app = typer.Typer(help="Manage conversation sessions.")
app.add_typer(sessions_app, name="sessions")

_controller = SessionController()

# Commands that run without loading config or sessions.
_STANDALONE_COMMANDS = ("init", "version")


def reports_errors(func):
    """Turn an LlmcError into a readable message and exit status 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except LlmcError as ex:
            typer.echo(f"Error: {ex}", err=True)
            raise typer.Exit(code=1) from None

    return wrapper


def _err(line: str) -> None:
    typer.echo(line, err=True)


def _out(line: str) -> None:
    typer.echo(line)


def _read_line(prompt: str) -> str:
    typer.echo(prompt, nl=False, err=True)
    line = sys.stdin.readline()
    if not line:
        raise EOFError
    return line


def _ask(question: str) -> bool:
    return typer.confirm(question, default=False, err=True)


def _runtime(ctx: typer.Context) -> AppRuntime:
    return ctx.obj


@app.callback()
@reports_errors
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None, "--config", help="Config file (default is ~/.config/llmc/config.json)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output (DEBUG logging)"),
):
    """
    llmc - talk to LLM providers and keep conversations as sessions.
    """
    if ctx.invoked_subcommand in _STANDALONE_COMMANDS:
        return
    ctx.obj = bootstrap_runtime(config, verbose=verbose)


@app.command("chat")
@reports_errors
def chat(
    ctx: typer.Context,
    message: Optional[list[str]] = typer.Argument(None, help="Message to send (read from stdin if omitted)"),
    model: Optional[str] = typer.Option(
        None, "--model", "-m", help="Model to use (format: provider:model, e.g., openai:gpt-4)"
    ),
    session_id: Optional[str] = typer.Option(
        None, "--session", "-s", help="Session ID (short or full UUID, or 'latest' for most recent session)"
    ),
    new_session: bool = typer.Option(False, "--new-session", "-n", help="Create a new session"),
    session_name: Optional[str] = typer.Option(None, "--session-name", help="Name for the new session"),
    system: Optional[str] = typer.Option(None, "--system", help="System prompt for a new session"),
    interactive: bool = typer.Option(
        False, "--interactive", "-i", help="Start interactive mode for multi-turn conversations"
    ),
    editor: bool = typer.Option(False, "--editor", "-e", help="Compose the message in $EDITOR"),
    ignore_threshold: bool = typer.Option(
        False, "--ignore-threshold", help="Ignore session message threshold warning"
    ),
):
    """Send a message to the LLM, optionally within a session."""
    runtime = _runtime(ctx)
    settings = runtime.settings

    if session_id and new_session:
        raise InvalidArgumentError("cannot specify both --session and --new-session")
    if session_id and system:
        raise InvalidArgumentError("cannot use --system with existing session")
    if interactive and not session_id and not new_session:
        raise InvalidArgumentError("interactive mode requires --session or --new-session")

    text = " ".join(message or []).strip()
    if editor:
        if text:
            raise InvalidArgumentError("cannot use --editor with a message argument")
        text = compose_message()
    elif not text and not interactive:
        text = sys.stdin.read().strip()
    if not text and not interactive:
        raise InvalidArgumentError("no message provided")

    if model:
        settings = settings.with_model(model, "model from flag")

    if not session_id and not new_session:
        responder = build_responder(settings)
        service = ChatService(runtime.store, responder, out=_out, err=_err, read_line=_read_line)
        _out(asyncio.run(service.single_shot(text)))
        return

    if session_id:
        session = runtime.resolver.resolve(session_id)
        allowed = runtime.threshold_guard.confirm_continue(
            session, ignore_threshold=ignore_threshold, ask=_ask, emit=_err
        )
        if not allowed:
            _err("Cancelled.")
            return
        # The session's own model binding wins over flags and config.
        settings = settings.with_model(session.model)
        logger.info(f"Continuing session: {session.short_id} ({session.model})")
    else:
        session = Session.new(settings.model, name=session_name, system_prompt=system)
        logger.info(f"Creating new session: {session.short_id} ({session.model})")
        if not text:
            runtime.store.persist(session)

    responder = build_responder(settings)
    service = ChatService(runtime.store, responder, out=_out, err=_err, read_line=_read_line)

    if text:
        _out(asyncio.run(service.send_turn(session, text)))

    if new_session:
        _err(f"\nSession created: {session.short_id}")
        _err(f"Path: {runtime.store.path_for(session.id)}")
        if not interactive:
            _err(f"\nNext time, use:\n  llmc chat -s {session.short_id} \"your message\"")

    if interactive:
        asyncio.run(service.interactive(session))


@sessions_app.command("list")
@reports_errors
def list_sessions(ctx: typer.Context):
    """List all sessions, most recently updated first."""
    sessions = _runtime(ctx).store.list_all()
    if not sessions:
        _out("No sessions found.")
        _out("\nCreate a new session with:")
        _out("  llmc chat --new-session \"your message\"")
        return

    for line in _controller.format_session_table(sessions):
        _out(line)
    _out("\nUse 'llmc sessions show <id>' to view session details.")


@sessions_app.command("show")
@reports_errors
def show_session(
    ctx: typer.Context,
    session_id: str = typer.Argument(..., help="Short ID (4+ chars), full UUID, or 'latest'"),
):
    """Show session details and history."""
    session = _runtime(ctx).resolver.resolve(session_id)
    for line in _controller.format_details(session):
        _out(line)
    _out("")
    for line in _controller.format_transcript(session):
        _out(line)
    if session.messages:
        _out(f"\nContinue this session with:\n  llmc chat -s {session.short_id} \"your message\"")


@sessions_app.command("delete")
@reports_errors
def delete_session(
    ctx: typer.Context,
    session_id: str = typer.Argument(..., help="Short ID (4+ chars), full UUID, or 'latest'"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete a session permanently."""
    runtime = _runtime(ctx)
    session = runtime.resolver.resolve(session_id)
    if not yes and not _ask(f"Are you sure you want to delete session {session.short_id}?"):
        _out("Deletion cancelled.")
        return
    runtime.store.delete(session.id)
    _out(f"Session {session.short_id} deleted successfully.")


@sessions_app.command("rename")
@reports_errors
def rename_session(
    ctx: typer.Context,
    session_id: str = typer.Argument(..., help="Short ID (4+ chars), full UUID, or 'latest'"),
    name: str = typer.Argument(..., help="New display name"),
):
    """Rename a session."""
    runtime = _runtime(ctx)
    session = runtime.resolver.resolve(session_id)
    session.name = name.strip() or None
    runtime.store.persist(session)
    _out(f"Session {session.short_id} renamed to \"{name}\".")


@sessions_app.command("clear")
@reports_errors
def clear_sessions(
    ctx: typer.Context,
    before: Optional[str] = typer.Option(
        None, "--before", help="Delete only sessions created before this date (YYYY-MM-DD, YYYY-MM, or YYYY)"
    ),
    delete_all: bool = typer.Option(False, "--all", help="Delete all sessions"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete old sessions, keeping parents of retained sessions."""
    runtime = _runtime(ctx)
    if before and delete_all:
        raise InvalidArgumentError("cannot combine --before and --all")

    cutoff = None
    if before:
        cutoff = parse_cutoff_date(before)
    elif not delete_all:
        cutoff = default_cutoff(runtime.settings.session_retention_days)

    sessions = runtime.store.list_all()
    if not sessions:
        _out("No sessions to delete.")
        return

    plan = plan_retention(sessions, cutoff=cutoff, delete_all=delete_all)
    if not plan.to_delete and not plan.protected:
        _out(f"No sessions found created before {cutoff:%Y-%m-%d}.")
        return

    for line in _controller.format_protected_notice(plan):
        _err(line)

    count = len(plan.to_delete)
    if count == 0:
        _out("No sessions to delete after excluding protected parent sessions.")
        return

    if delete_all:
        question = f"Are you sure you want to delete all {count} sessions?"
    elif before:
        question = f"Are you sure you want to delete {count} sessions created before {cutoff:%Y-%m-%d}?"
    else:
        question = (
            f"Are you sure you want to delete {count} sessions older than "
            f"{runtime.settings.session_retention_days} days (created before {cutoff:%Y-%m-%d})?"
        )
    if not yes and not _ask(question):
        _out("Deletion cancelled.")
        return

    result = execute_plan(runtime.store, plan)
    for session_id, reason in result.failed:
        _err(f"Warning: failed to delete session {session_id[:8]}: {reason}")
    summary = f"Successfully deleted {result.deleted_count} sessions"
    if result.failed_count:
        summary += f" ({result.failed_count} failed)"
    _out(summary + ".")


@sessions_app.command("summarize")
@reports_errors
def summarize_session(
    ctx: typer.Context,
    session_id: str = typer.Argument(..., help="Short ID (4+ chars), full UUID, or 'latest'"),
):
    """Summarize a session into a new child session; the original is kept."""
    runtime = _runtime(ctx)
    session = runtime.resolver.resolve(session_id)
    summarizer = Summarizer(runtime.store, runtime.resolver)
    plan = summarizer.prepare(session)

    note = f"Summarizing {plan.message_count} messages from session {session.short_id}"
    if plan.ancestors:
        note += f" and {len(plan.ancestors)} ancestor session(s)"
    _err(note + "...")

    responder = build_responder(runtime.settings.with_model(session.model))
    _err(f"Generating summary using {session.model}...")
    with waiting_spinner():
        result = asyncio.run(summarizer.summarize(plan, responder))

    child = result.child
    _err(f"\nNew session created: {child.short_id} (parent: {session.short_id})")
    _err(f"Path: {runtime.store.path_for(child.id)}")
    _err(f"\nContinue with:\n  llmc chat -s {child.short_id} \"your message\"")


@sessions_app.command("start")
@reports_errors
def start_session(
    ctx: typer.Context,
    session_id: Optional[str] = typer.Argument(None, help="Session to continue (omit to start a new one)"),
    ignore_threshold: bool = typer.Option(
        False, "--ignore-threshold", help="Ignore session message threshold warning"
    ),
):
    """Start an interactive session, new or continued."""
    runtime = _runtime(ctx)
    settings = runtime.settings

    if session_id:
        session = runtime.resolver.resolve(session_id)
        allowed = runtime.threshold_guard.confirm_continue(
            session, ignore_threshold=ignore_threshold, ask=_ask, emit=_err
        )
        if not allowed:
            _err("Cancelled.")
            return
        settings = settings.with_model(session.model)
    else:
        session = Session.new(settings.model)
        runtime.store.persist(session)
        _err(f"Session created: {session.short_id}")
        _err(f"Path: {runtime.store.path_for(session.id)}\n")

    responder = build_responder(settings)
    service = ChatService(runtime.store, responder, out=_out, err=_err, read_line=_read_line)
    asyncio.run(service.interactive(session))


@app.command("config")
@reports_errors
def show_config(
    ctx: typer.Context,
    field: Optional[str] = typer.Argument(None, help="Print only this field (e.g. model, openai_token)"),
):
    """Show the resolved configuration. API keys are masked."""
    fields = describe_settings(_runtime(ctx).settings)
    if field:
        _out(find_setting_field(fields, field).value)
        return
    for item in fields:
        _out(f"{item.label}: {item.value}")


@app.command("init")
@reports_errors
def init_config(ctx: typer.Context):
    """Write a default config file (~/.config/llmc/config.json unless --config is given)."""
    custom = ctx.find_root().params.get("config")
    path = write_default_config(custom)
    _out(f"Configuration file created at: {path}")

    session_dir = resolve_session_dir(path, custom=custom is not None)
    try:
        session_dir.mkdir(parents=True, exist_ok=True)
    except OSError as ex:
        raise InvalidArgumentError(f"failed to create sessions directory: {ex}") from ex
    _out(f"Sessions directory created at: {session_dir}")


@app.command("version")
def show_version(
    short: bool = typer.Option(False, "--short", "-s", help="Show only the version number"),
):
    """Show version information."""
    if short:
        _out(__version__)
        return
    _out(f"llmc version {__version__}")
    _out(f"Python: {platform.python_version()} ({sys.platform})")
