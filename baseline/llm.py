import logging

import openai
from openai import AsyncAzureOpenAI, AsyncOpenAI

from baseline.config import GeneratorConfig
from baseline.errors import ConfigurationError, MalformedResponseError, ServiceError
from baseline.prompts import RESPONSE_SCHEMA, build_system_prompt, build_user_prompt

log = logging.getLogger(__name__)

# One client per (api_key, endpoint, api_version).
_clients: dict[tuple[str, str, str], AsyncOpenAI] = {}

# Models that require max_completion_tokens instead of max_tokens.
_USES_MAX_COMPLETION_TOKENS = {"gpt-5", "gpt-5-mini", "gpt-5-nano", "gpt-5.1", "gpt-5.2",
                                "o1", "o1-mini", "o1-pro", "o3", "o3-mini", "o4-mini",
                                "model-router"}


def _needs_max_completion_tokens(model: str) -> bool:
    """Check if a model uses the newer max_completion_tokens parameter."""
    m = model.lower()
    for prefix in _USES_MAX_COMPLETION_TOKENS:
        if m == prefix or m.startswith(prefix + "-"):
            return True
    return False


def get_client(cfg: GeneratorConfig) -> AsyncOpenAI:
    if not cfg.is_configured:
        raise ConfigurationError()
    key = (cfg.api_key, cfg.endpoint, cfg.api_version)
    client = _clients.get(key)
    if client is None:
        if cfg.is_azure:
            client = AsyncAzureOpenAI(
                azure_endpoint=cfg.endpoint,
                api_key=cfg.api_key,
                api_version=cfg.api_version,
            )
        else:
            client = AsyncOpenAI(api_key=cfg.api_key)
        _clients[key] = client
    return client


def reset_client() -> None:
    _clients.clear()


def _response_format(cfg: GeneratorConfig) -> dict:
    if cfg.use_schema:
        return {
            "type": "json_schema",
            "json_schema": {"name": "research_result", "schema": RESPONSE_SCHEMA},
        }
    return {"type": "json_object"}


async def chat(cfg: GeneratorConfig, system_prompt: str, user_message: str) -> tuple[str, str]:
    """Send a chat completion request. Returns (text, finish_reason)."""
    client = get_client(cfg)

    kwargs: dict = {
        "model": cfg.model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message},
        ],
        "response_format": _response_format(cfg),
    }

    if _needs_max_completion_tokens(cfg.model):
        # gpt-5 / o-series: max_completion_tokens, no temperature control
        kwargs["max_completion_tokens"] = cfg.max_tokens
    else:
        kwargs["max_tokens"] = cfg.max_tokens
        kwargs["temperature"] = cfg.temperature

    try:
        resp = await client.chat.completions.create(**kwargs)
    except openai.APIError as exc:
        log.exception("Generator call failed")
        body = exc.body if isinstance(exc.body, dict) else {}
        detail = body.get("message") or str(exc)
        raise ServiceError(f"Failed to generate research. Details: {detail}") from exc
    choice = resp.choices[0]
    return choice.message.content or "", choice.finish_reason or "stop"


async def generate(cfg: GeneratorConfig, topic: str) -> str:
    """Ask the generator for a research result on ``topic``. Returns raw text."""
    log.info('Generating research for topic: "%s" (model=%s)', topic, cfg.model)
    text, finish_reason = await chat(cfg, build_system_prompt(), build_user_prompt(topic))
    if finish_reason == "length":
        log.warning("Generator output was truncated (finish_reason=length)")
    if not text.strip():
        raise MalformedResponseError()
    return text
