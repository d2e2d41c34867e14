"""
Bot command grammar.

    /qwen <prompt>   forward the prompt to the LLM
    /help            list the commands
    /health          report backend health

Command names are case-insensitive and may carry an @botname suffix.
"""

import re
from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class Infer:
    prompt: str


@dataclass(frozen=True)
class Help:
    pass


@dataclass(frozen=True)
class Health:
    pass


Command = Union[Infer, Help, Health]

COMMAND_DESCRIPTIONS = [
    ("qwen", "LLM request"),
    ("help", "Prints this help"),
    ("health", "Health check"),
]

HELP_TEXT = "These commands are supported:\n\n" + "\n".join(
    f"/{name} — {description}" for name, description in COMMAND_DESCRIPTIONS
)

# "/name", "/name@bot", then optional whitespace-separated argument text
_COMMAND_RE = re.compile(r"/(\w+)(?:@(\w+))?(?:\s+(.*))?$", re.DOTALL)


def parse_command(text: Optional[str], bot_username: str = "") -> Optional[Command]:
    """
    Parse one chat message into a Command.

    Returns None for plain text, unknown commands, and commands addressed
    to another bot. "/qwen" with no prompt is treated as a help request.
    """
    if not text:
        return None

    match = _COMMAND_RE.match(text)
    if not match:
        return None
    name, mention, rest = match.group(1).lower(), match.group(2), match.group(3)

    if mention and bot_username and mention.lower() != bot_username.lstrip("@").lower():
        return None

    if name == "qwen":
        prompt = (rest or "").strip()
        return Infer(prompt) if prompt else Help()
    if name == "help":
        return Help()
    if name == "health":
        return Health()
    return None
