"""Request construction for OpenAI-compatible chat completions.

Pure functions: nothing here touches the network.  Whether a request may
carry ``temperature`` is decided by a pluggable :class:`TemperaturePolicy`,
so new model exclusions never touch the retry logic.
"""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass, field
from typing import Protocol
from urllib.parse import urlparse

from open_translator.config import ProviderConfig
from open_translator.errors import ProviderConfigError
from open_translator.types import ChatRequest


# ---------------------------------------------------------------------------
# Temperature policies
# ---------------------------------------------------------------------------

class TemperaturePolicy(Protocol):
    """Decide whether *model* on *provider* accepts a custom temperature."""

    def __call__(self, model: str, provider: ProviderConfig) -> bool:
        ...


class AllowAllTemperatures:
    """Policy that never strips temperature."""

    def __call__(self, model: str, provider: ProviderConfig) -> bool:
        return True


@dataclass(frozen=True)
class TemperatureRule:
    """Glob rule: models matching ``models`` on hosts matching ``host``
    reject non-default temperature."""

    models: tuple[str, ...]
    host: str = "*"

    def matches(self, model: str, host: str) -> bool:
        if not fnmatch.fnmatch(host, self.host):
            return False
        name = model.lower()
        return any(fnmatch.fnmatch(name, pattern) for pattern in self.models)


DEFAULT_TEMPERATURE_RULES: tuple[TemperatureRule, ...] = (
    TemperatureRule(models=("gpt-5*", "o1*", "o3*", "o4*"), host="api.openai.com"),
    TemperatureRule(models=("openai/gpt-5*", "openai/o1*", "openai/o3*", "openai/o4*")),
)


@dataclass
class DenyListTemperaturePolicy:
    """Allow temperature unless a rule denies it for this model and host."""

    rules: list[TemperatureRule] = field(
        default_factory=lambda: list(DEFAULT_TEMPERATURE_RULES),
    )

    def __call__(self, model: str, provider: ProviderConfig) -> bool:
        host = (urlparse(provider.api_url).hostname or "").lower()
        return not any(rule.matches(model, host) for rule in self.rules)

    def add(self, rule: TemperatureRule) -> DenyListTemperaturePolicy:
        """Register an extra rule.  Returns ``self`` for chaining."""
        self.rules.append(rule)
        return self


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def build_headers(provider: ProviderConfig) -> dict[str, str]:
    """Standard headers plus the provider's custom headers (which win).

    Raises :class:`ProviderConfigError` when a header cannot be encoded as
    ASCII; the value itself is never echoed since it may be the API key.
    """
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {provider.api_key}",
        "Accept": "text/event-stream",
    }
    headers.update(provider.custom_headers)
    for name, value in headers.items():
        try:
            name.encode("ascii")
            value.encode("ascii")
        except UnicodeEncodeError as e:
            raise ProviderConfigError(
                f"Header {name.encode('ascii', 'replace').decode()!r} of provider "
                f"{provider.name!r} contains non-ASCII characters"
            ) from e
    return headers


def build_chat_request(
    system_prompt: str,
    user_prompt: str,
    model: str,
    provider: ProviderConfig,
    *,
    temperature: float | None = None,
    allow_temperature: bool = True,
    policy: TemperaturePolicy | None = None,
) -> ChatRequest:
    """Build the streaming request body for one completion call.

    ``temperature`` is included only when the caller allows it, supplies a
    value, and *policy* accepts it for this model/host.
    """
    policy = policy or DenyListTemperaturePolicy()
    include = (
        allow_temperature
        and temperature is not None
        and policy(model, provider)
    )
    return ChatRequest(
        model=model,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        stream=True,
        temperature=temperature if include else None,
    )
