"""
lmchat v1.0.0: terminal chat client for streaming LLM endpoints.

Command: lmchat run
"""

import logging

import click
from rich.console import Console
from rich.text import Text

from . import __version__
from .config import CONFIG_FIELDS, Config, ModelPreset
from .errors import TransportError
from .line_editor import LineEditor
from .llm import LLMAdapter
from .logger import log_exception, setup_logger
from .session import ChatSession
from .terminal import Terminal
from .themes import get_theme, set_theme
from .ui import render_banner, render_startup, show_config_panel

console = Console()
logger = logging.getLogger(__name__)


@click.group(invoke_without_command=True)
@click.version_option(__version__, prog_name="lmchat")
@click.pass_context
def cli(ctx):
    """lmchat: chat with a streaming LLM endpoint from your terminal."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


def apply_cli_overrides(config, model=None, api_key=None, api_base=None, verbose=False) -> ModelPreset:
    """Apply ``run`` options to ``config`` and return the preset to chat with.

    A ``--model`` that names no preset becomes an ad-hoc ``_cli`` preset;
    without ``--api-key`` its key is resolved from the environment.
    """
    if model:
        if model in config.models:
            config.active_model = model
        else:
            config.models["_cli"] = ModelPreset(
                name="_cli",
                provider="openai",
                model=model,
                api_base=api_base,
                api_key=api_key,
            )
            config.active_model = "_cli"
    if verbose:
        config.verbose = True

    preset = config.get_active_preset()
    if api_key:
        preset.api_key = api_key
    if api_base:
        preset.api_base = api_base
    return preset


@cli.command()
@click.option("--model", "-m", default=None, help="Model preset name or litellm model id")
@click.option("--api-key", "-k", default=None, help="API key override")
@click.option("--api-base", "-b", default=None, help="API base override")
@click.option("--project-dir", "-d", default=".", help="Directory to look for .lmchat.conf.yml")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def run(model=None, api_key=None, api_base=None, project_dir=".", verbose=False):
    """Start an interactive session."""
    config = Config.load(project_dir)
    preset = apply_cli_overrides(config, model, api_key, api_base, verbose)
    set_theme(config.theme)
    setup_logger("lmchat", verbose=config.verbose, log_file=config.log_file or False)

    render_banner(console)
    render_startup(console, config)

    llm = LLMAdapter(**preset.get_llm_kwargs())
    editor = LineEditor(Terminal(console))
    session = ChatSession(
        llm,
        editor,
        console,
        system_prompt=config.system_prompt,
        exit_command=config.exit_command,
        prompt=config.prompt,
    )
    logger.info("Session started: model=%s base=%s", preset.model, preset.api_base)

    while True:
        try:
            session.run()
            break
        except TransportError as error:
            # The turn is lost; the conversation so far is kept.
            log_exception(logger, error, "Turn failed")
            console.print(Text(f"  Error: {error}", style=get_theme().ERROR))
        except (KeyboardInterrupt, EOFError):
            console.print()
            break
    console.print(Text("Goodbye!", style=get_theme().DIM))


@cli.group("config", invoke_without_command=True)
@click.option("--project-dir", "-d", default=".", help="Directory to look for .lmchat.conf.yml")
@click.pass_context
def config_cmd(ctx, project_dir):
    """Show configuration."""
    ctx.obj = Config.load(project_dir)
    if ctx.invoked_subcommand is None:
        set_theme(ctx.obj.theme)
        show_config_panel(console, ctx.obj)


@config_cmd.command("set")
@click.argument("key", type=click.Choice(sorted(CONFIG_FIELDS)))
@click.argument("value")
@click.pass_obj
def config_set(cfg, key, value):
    """Validate and save one configuration value."""
    ok, error = cfg.set_config_value(key, value)
    if not ok:
        raise click.BadParameter(error, param_hint=key)
    click.echo(f"{key} = {getattr(cfg, CONFIG_FIELDS[key].field_name)}")


if __name__ == "__main__":
    cli()
