"""
Upstream vendor adapters.

Each vendor maps the server-held key to the header shape its API expects.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from gateway.config import Settings


ANTHROPIC_VERSION = "2023-06-01"


def _claude_headers(api_key: str) -> dict[str, str]:
    return {
        "x-api-key": api_key,
        "anthropic-version": ANTHROPIC_VERSION,
        "content-type": "application/json",
    }


def _bearer_headers(api_key: str) -> dict[str, str]:
    return {
        "authorization": f"Bearer {api_key}",
        "content-type": "application/json",
    }


@dataclass(frozen=True)
class Vendor:
    label: str
    url: str
    key_field: str
    build_headers: Callable[[str], dict[str, str]]

    def api_key(self, settings: Settings) -> Optional[str]:
        return getattr(settings, self.key_field)

    @property
    def missing_key_message(self) -> str:
        return f"{self.label} API key not configured"


CLAUDE = Vendor(
    label="Claude",
    url="https://api.anthropic.com/v1/messages",
    key_field="claude_api_key",
    build_headers=_claude_headers,
)

OPENAI = Vendor(
    label="OpenAI",
    url="https://api.openai.com/v1/chat/completions",
    key_field="openai_api_key",
    build_headers=_bearer_headers,
)
