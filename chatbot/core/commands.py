"""Slash-command parsing and autocomplete.

Commands are declared once in COMMANDS; parsing and suggestion lookup both
read from that table. The parser is pure: /reset is reported back to the
caller, which owns the transcript.
"""

from dataclasses import dataclass

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CommandSpec:
    """One recognized slash command.

    Attributes:
        cmd: Command token including the leading slash.
        description: Short label for the suggestion list.
        example: Example invocation.
        with_args: Template applied to the arguments, or None if the command
            does not rewrite to a message.
        without_args: Message sent when no arguments are given, or None if
            nothing should be sent.
        help_text: Notice shown instead when nothing is sent.
    """
    cmd: str
    description: str
    example: str
    with_args: str | None = None
    without_args: str | None = None
    help_text: str | None = None


@dataclass(frozen=True)
class ParsedCommand:
    """Outcome of parsing one slash-command line.

    Exactly one of message / notice / reset is meaningful. message=None is the
    stop sentinel: the turn ends without sending anything.
    """
    command: str
    args: str = ""
    message: str | None = None
    notice: str | None = None
    reset: bool = False

    @property
    def should_send(self) -> bool:
        return self.message is not None


CALC_HELP = "Please provide an expression. Example: /calc 15 + 25"

COMMANDS = [
    CommandSpec("/calc", "Calculate expression", "/calc 15 + 25 * 2",
                with_args="Calculate {args}", help_text=CALC_HELP),
    CommandSpec("/products", "Search products", "/products glass cup",
                with_args="Show me {args}", without_args="What products do you have?"),
    CommandSpec("/outlets", "Find outlets", "/outlets Petaling Jaya",
                with_args="Find outlets in {args}", without_args="Show me all outlets"),
    CommandSpec("/reset", "Reset conversation", "/reset"),
]

_BY_TOKEN = {spec.cmd: spec for spec in COMMANDS}


def split_command(text: str) -> tuple[str, str]:
    """Split into (lower-cased command token, args joined by single spaces)."""
    parts = text.strip().split()
    if not parts:
        return "", ""
    return parts[0].lower(), " ".join(parts[1:])


def parse_command(text: str) -> ParsedCommand:
    """Expand a slash command into a natural-language request.

    Unknown commands pass through unchanged as literal text.

    Args:
        text: Trimmed user input starting with "/".

    Returns:
        ParsedCommand with the rewritten message, a help notice, or the reset flag.
    """
    command, args = split_command(text)
    spec = _BY_TOKEN.get(command)

    if spec is None:
        return ParsedCommand(command=command, args=args, message=text.strip())

    if spec.cmd == "/reset":
        logger.info("command.reset")
        return ParsedCommand(command=command, args=args, reset=True)

    if args and spec.with_args:
        return ParsedCommand(command=command, args=args, message=spec.with_args.format(args=args))

    if spec.without_args:
        return ParsedCommand(command=command, args=args, message=spec.without_args)

    logger.debug("command.missing_args", command=command)
    return ParsedCommand(command=command, args=args, notice=spec.help_text or f"Usage: {spec.example}")


def command_suggestions(text: str) -> list[CommandSpec]:
    """Commands whose token starts with the typed first token."""
    if not text.startswith("/"):
        return []
    typed, _ = split_command(text)
    typed = typed or "/"
    return [spec for spec in COMMANDS if spec.cmd.startswith(typed)]


def should_show_suggestions(text: str) -> bool:
    return bool(command_suggestions(text))


def complete_command(spec: CommandSpec) -> str:
    """Input text after picking a suggestion."""
    return f"{spec.cmd} "
