"""Secret redaction for text surfaced from deploy tool output."""

import re
from typing import Iterable, List

from .constants import REDACTED

# Values following secret-bearing flags, in "--flag value" or "--flag=value" form
_SECRET_FLAG_PATTERN = re.compile(
    r"(--(?:private-key|etherscan-api-key|api-key)(?:=|\s+))(\S+)", re.IGNORECASE
)

# Private-key shape: 32 bytes of hex
_PRIVATE_KEY_PATTERN = re.compile(r"\b(?:0x)?[0-9a-fA-F]{64}\b")

# API-key shape: long alphanumeric token that is not a 20-byte address
_API_KEY_PATTERN = re.compile(r"\b(?!0x[0-9a-fA-F]{40}\b)[A-Za-z0-9]{32,}\b")


def redact(text: str) -> str:
    """
    Replace anything shaped like a secret with a fixed placeholder.

    Applied, in order:
    - values of --private-key / --etherscan-api-key / --api-key flags
    - 64-hex-digit tokens, with or without 0x prefix
    - pure alphanumeric tokens of 32+ characters, except 20-byte addresses

    Args:
        text: Raw text, typically subprocess output or a command line

    Returns:
        Redacted text
    """
    if not text:
        return text
    text = _SECRET_FLAG_PATTERN.sub(lambda m: m.group(1) + REDACTED, text)
    text = _PRIVATE_KEY_PATTERN.sub(REDACTED, text)
    text = _API_KEY_PATTERN.sub(REDACTED, text)
    return text


def redact_command(command: str, args: Iterable[str]) -> str:
    """Render a command line for logs with secrets removed."""
    parts: List[str] = [command, *args]
    return redact(" ".join(parts))
