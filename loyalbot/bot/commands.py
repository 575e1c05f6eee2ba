"""Slash-command parsing and help text."""

from __future__ import annotations

from dataclasses import dataclass

PUBLIC_COMMANDS: dict[str, str] = {
    "help": "display this text.",
    "offers": "list all offers.",
    "sync": "synchronize offers.",
}

OPERATOR_COMMANDS: dict[str, str] = {
    "add": "add an account. Usage: /add title phone",
    "cancel": "cancel adding an account.",
    "list": "list all added accounts.",
    "rename": "rename an account. Usage: /rename old new",
    "remove": "remove account with the specified title.",
}


@dataclass(frozen=True, slots=True)
class ParsedCommand:
    """A slash command split into its lowercase name and arguments."""

    name: str
    args: tuple[str, ...]


def parse_command(text: str, *, bot_username: str | None = None) -> ParsedCommand | None:
    """Parse `/name arg...`; return None for plain text or another bot's command."""
    if not text.startswith("/"):
        return None
    head, *args = text.split()
    name, _, mention = head[1:].partition("@")
    if mention and bot_username and mention.lower() != bot_username.lower():
        return None
    if not name:
        return None
    return ParsedCommand(name=name.lower(), args=tuple(args))


def help_text(*, include_operator: bool) -> str:
    """Render the command list, with operator commands for operators only."""
    lines = ["These commands are supported:"]
    lines.extend(f"/{name} - {description}" for name, description in PUBLIC_COMMANDS.items())
    if include_operator:
        lines.append("")
        lines.append("Operator commands:")
        lines.extend(
            f"/{name} - {description}" for name, description in OPERATOR_COMMANDS.items()
        )
    return "\n".join(lines)
