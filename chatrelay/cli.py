"""Command-line interface for the chatrelay function adapter."""

from __future__ import annotations

import importlib.util
import json
import sys
import time
from pathlib import Path

import click

from .adapters import AdapterError, ChatMessage, ChatRequest
from .adapters.factory import build_adapter
from .config import DEFAULT_CONFIG, ConfigError, RelayConfig, config_path, load_config, save_config
from .handler import API_KEY_ENV_VARS
from .logging import setup_logging
from .recognition import RECOGNITION_ERRORS
from .server import serve
from .util import env_first


def _load_config_or_exit() -> RelayConfig:
    try:
        return load_config()
    except ConfigError as exc:
        click.echo(f"Error loading configuration: {exc}", err=True)
        sys.exit(1)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v for INFO, -vv for DEBUG)")
@click.option("-q", "--quiet", is_flag=True, help="Suppress all output except errors")
@click.pass_context
def cli(ctx: click.Context, verbose: int, quiet: bool) -> None:
    """chatrelay forwards chat conversations to Google Gemini."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    try:
        log_level = load_config().log_level
    except ConfigError:
        log_level = "INFO"

    setup_logging(level=log_level, verbose=verbose, quiet=quiet)


@cli.command()
@click.option("--model", default=DEFAULT_CONFIG["default_model"], show_default=True)
@click.option("--language", default="en-US", show_default=True, help="Speech recognition language code.")
@click.option("--timeout", default=60, show_default=True, type=int)
def setup(model: str, language: str, timeout: int) -> None:
    """Write a baseline .chatrelay.yml configuration."""
    target = config_path()
    if target.exists() and not click.confirm(f"{target} exists. Overwrite?", default=False):
        click.echo("Aborted.")
        return

    data = {
        "default_model": model,
        "timeout": timeout,
        "speech": {"language_code": language},
    }
    save_config(RelayConfig.from_dict(data), target)
    click.echo(f"Saved configuration to {target}")


@cli.command()
@click.option("--format", "output_format", type=click.Choice(["text", "json"]), default="text")
def config(output_format: str) -> None:
    """Show current chatrelay configuration."""
    cfg = _load_config_or_exit()

    if output_format == "json":
        click.echo(json.dumps(cfg.raw or DEFAULT_CONFIG, indent=2, ensure_ascii=False))
        return

    click.echo("chatrelay Configuration:")
    click.echo(f"  Default Model:     {cfg.default_model}")
    click.echo(f"  Endpoint:          {cfg.endpoint}")
    click.echo(f"  Timeout:           {cfg.timeout}s")
    click.echo(f"  Log Level:         {cfg.log_level}")
    click.echo(f"  Safety Threshold:  {cfg.safety_threshold}")
    if cfg.model_aliases:
        aliases = ", ".join(f"{alias} -> {target}" for alias, target in cfg.model_aliases.items())
        click.echo(f"  Aliases:           {aliases}")
    if cfg.tool_models:
        click.echo(f"  Tool Models:       {', '.join(cfg.tool_models)}")
    click.echo("\nSpeech:")
    click.echo(f"  Encoding:          {cfg.speech.encoding}")
    click.echo(f"  Sample Rate:       {cfg.speech.sample_rate_hertz} Hz")
    click.echo(f"  Language:          {cfg.speech.language_code}")


@cli.command()
def validate() -> None:
    """Validate chatrelay configuration and environment."""
    errors = []
    warnings = []

    try:
        cfg = load_config()
        click.echo("✓ Configuration file loaded successfully")
    except ConfigError as exc:
        click.echo(f"✗ Configuration error: {exc}", err=True)
        sys.exit(1)

    if "{model}" in cfg.endpoint:
        click.echo("✓ Endpoint template is valid")
    else:
        errors.append("Endpoint has no {model} placeholder")
        click.echo("✗ Endpoint has no {model} placeholder", err=True)

    if env_first(*API_KEY_ENV_VARS):
        click.echo("✓ Fallback API key is set")
    else:
        warnings.append("No fallback API key; callers must send Authorization")
        click.echo(f"⚠ {' / '.join(API_KEY_ENV_VARS)} not set", err=True)

    if env_first("GOOGLE_APPLICATION_CREDENTIALS"):
        click.echo("✓ GOOGLE_APPLICATION_CREDENTIALS is set")
    else:
        warnings.append("Speech and vision will use default credentials")
        click.echo("⚠ GOOGLE_APPLICATION_CREDENTIALS not set", err=True)

    for module in ("google.cloud.speech", "google.cloud.vision"):
        if importlib.util.find_spec(module) is not None:
            click.echo(f"✓ {module} available")
        else:
            errors.append(f"{module} missing")
            click.echo(f"✗ {module} missing", err=True)

    click.echo("\n" + "=" * 50)
    if errors:
        click.echo(f"Validation failed with {len(errors)} error(s)")
        sys.exit(1)
    elif warnings:
        click.echo(f"Validation passed with {len(warnings)} warning(s)")
    else:
        click.echo("✓ All validations passed")


@cli.command()
@click.argument("message")
@click.option("--model", default=None, help="Model name (defaults to configured default).")
@click.option("--image", "image_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--audio", "audio_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def ask(message: str, model: str | None, image_path: Path | None, audio_path: Path | None) -> None:
    """Send a one-off MESSAGE and print the reply."""
    cfg = _load_config_or_exit()
    api_key = env_first(*API_KEY_ENV_VARS)
    if not api_key:
        click.echo(f"{' or '.join(API_KEY_ENV_VARS)} is not set.", err=True)
        sys.exit(1)

    turn = ChatMessage(
        role="user",
        content=message,
        image=image_path.read_bytes() if image_path else None,
        audio=audio_path.read_bytes() if audio_path else None,
    )
    request = ChatRequest(model=model or cfg.default_model, authorization=f"Bearer {api_key}", messages=[turn])
    try:
        reply = build_adapter(request, cfg).generate(request)
    except AdapterError as exc:
        click.echo(str(exc), err=True)
        sys.exit(1)
    except RECOGNITION_ERRORS as exc:
        click.echo(f"Attachment recognition failed: {exc}", err=True)
        sys.exit(1)
    click.echo(reply)


@cli.command("serve")
@click.option("--port", default=8888, show_default=True, type=int, help="Port for the local function server.")
@click.option("--host", default="127.0.0.1", show_default=True)
def serve_cmd(port: int, host: str) -> None:
    """Run the function handler on a local HTTP server."""
    cfg = _load_config_or_exit()
    server = serve(port=port, config=cfg, host=host)
    click.echo(f"chatrelay listening on http://{host}:{server.port}/chat")
    try:
        while True:
            time.sleep(0.5)
    except KeyboardInterrupt:
        click.echo("\nStopping server…")
    finally:
        server.stop()


def main() -> None:
    """Console script entry point."""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        sys.exit(1)


if __name__ == "__main__":
    main()
