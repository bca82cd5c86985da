import argparse
import logging

from rich.markup import escape

from .config import ConfigError, build_settings
from .console import console
from .llm import LLMError
from .log import setup_logging
from .providers import list_providers, new_provider
from .repl import ReplError, run_repl
from .utils import get_version, print_header

logger = logging.getLogger(__name__)

COMMAND_CHOICES = ("repl", "list-models", "list-providers")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lmrepl",
        description="Chat with a language model from the terminal.",
    )
    # Every option defaults to None so unset flags fall through to env/config
    parser.add_argument("command", nargs="?", choices=COMMAND_CHOICES, default=None)
    parser.add_argument("--provider", help="LLM provider: openai or gemini")
    parser.add_argument("--model", help="Model name")
    parser.add_argument("--openai-api-key", help="OpenAI API key")
    parser.add_argument(
        "--openai-base-url",
        help="OpenAI base URL; any OpenAI-compatible endpoint works",
    )
    parser.add_argument("--gemini-api-key", help="Gemini API key")
    parser.add_argument("--http-timeout", type=int, help="HTTP timeout in seconds")
    parser.add_argument("--log-file", help="Write diagnostic logs to this file")
    parser.add_argument("--system-prompt", help="System prompt sent with every request")
    parser.add_argument(
        "--grounding",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Ground every Gemini answer with Google Search",
    )
    parser.add_argument("--version", action="version", version=f"lmrepl {get_version()}")
    return parser


def overrides_from_args(args: argparse.Namespace) -> dict[str, object]:
    """Map parsed flags to setting names (dashes, not underscores)."""
    return {key.replace("_", "-"): value for key, value in vars(args).items()}


def cmd_list_providers():
    console.print("Supported providers:")
    for name in list_providers():
        console.print(name, markup=False)


def cmd_list_models(settings):
    provider = new_provider(settings)
    for model in provider.list_models():
        console.print(f"=== {model.name} ===", markup=False)
        console.print(f"    Description: {model.description}", markup=False)
        console.print(f"    Max tokens: {model.max_tokens}", markup=False)
        console.print(f"    Version: {model.version}", markup=False)


def cmd_repl(settings):
    provider = new_provider(settings)
    print_header(settings, settings.model)
    run_repl(settings, provider)


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)

    try:
        settings = build_settings(overrides_from_args(args))
        setup_logging(settings.log_file)
    except (ConfigError, OSError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    logger.debug("starting command %s", settings.command)
    try:
        if settings.command == "list-providers":
            cmd_list_providers()
        elif settings.command == "list-models":
            cmd_list_models(settings)
        elif settings.command == "repl":
            cmd_repl(settings)
        else:
            console.print(f"[red]Error: unknown command: {escape(settings.command)}[/red]")
            return 1
    except (LLMError, ReplError) as e:
        logger.error("fatal error", exc_info=True)
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
