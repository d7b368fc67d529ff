"""Construct the OpenAI client shared by the expertise and embedding layers."""

import openai

from ..config.environment import EnvironmentConfig
from ..config.models import ServicesConfig
from ..logging import get_logger

logger = get_logger(__name__, component="providers")


def build_openai_client(env_config: EnvironmentConfig, services: ServicesConfig) -> openai.OpenAI:
    """Create an OpenAI client with the configured timeout and retry policy.

    Args:
        env_config: Environment settings (API key, optional base URL)
        services: Service settings (timeout, transport retries)

    Returns:
        Configured ``openai.OpenAI`` instance
    """
    client = openai.OpenAI(
        api_key=env_config.openai_api_key,
        base_url=env_config.openai_base_url,
        timeout=services.request_timeout_seconds,
        max_retries=services.max_provider_retries,
    )

    logger.info(
        "OpenAI client created",
        extra={
            "event": "providers.openai.created",
            "base_url": env_config.openai_base_url or "default",
            "timeout_seconds": services.request_timeout_seconds,
            "max_retries": services.max_provider_retries,
        },
    )
    return client
