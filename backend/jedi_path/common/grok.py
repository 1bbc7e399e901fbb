"""Grok/xAI API client using xai-sdk."""
import logging
from typing import Optional

from xai_sdk import Client
from xai_sdk.chat import system, user

from .config import MAX_TOKENS, MODEL, TEMPERATURE, Settings
from .errors import ConfigurationError, ExternalServiceError

log = logging.getLogger(__name__)


def get_client(api_key: Optional[str], timeout: Optional[float] = None) -> Client:
    """Get xAI SDK client."""
    if not api_key:
        raise ConfigurationError("XAI_API_KEY environment variable not set")
    if timeout is None:
        return Client(api_key=api_key)
    return Client(api_key=api_key, timeout=timeout)


def call_grok(
    user_prompt: str,
    system_prompt: str = "",
    api_key: Optional[str] = None,
    model: str = MODEL,
    max_tokens: int = MAX_TOKENS,
    temperature: float = TEMPERATURE,
    timeout: Optional[float] = None,
) -> str:
    """Call Grok API with prompt. Raises ExternalServiceError on any failure."""
    client = get_client(api_key, timeout)
    try:
        chat = client.chat.create(model=model, max_tokens=max_tokens, temperature=temperature)
        if system_prompt:
            chat.append(system(system_prompt))
        chat.append(user(user_prompt))
        content = chat.sample().content
    except Exception as e:
        raise ExternalServiceError(f"Grok request failed: {e}") from e
    if not content or not content.strip():
        raise ExternalServiceError("Grok returned an empty response")
    return content


def call_grok_with_settings(user_prompt: str, system_prompt: str, settings: Settings) -> str:
    """call_grok with model, limits and credential taken from settings."""
    log.info(f"Calling {settings.xai_model} (max_tokens={settings.max_tokens})")
    return call_grok(
        user_prompt,
        system_prompt,
        api_key=settings.xai_api_key,
        model=settings.xai_model,
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
        timeout=settings.client_timeout,
    )
