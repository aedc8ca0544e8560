"""
OpenAI API key resolution.

The key comes from settings (environment / .env) when set. Otherwise, if a
secret name is configured, it is loaded once from AWS Secrets Manager.
"""

import logging

import boto3

from .config import Settings

logger = logging.getLogger(__name__)


class SecretRetrievalError(Exception):
    """Raised when the OpenAI API key cannot be loaded from Secrets Manager."""

    pass


def load_openai_api_key(settings: Settings, secrets_client=None) -> str | None:
    """
    Resolve the OpenAI API key.

    Args:
        settings: Application settings.
        secrets_client: Optional boto3 Secrets Manager client.

    Returns:
        The API key, or None if neither a key nor a secret name is configured
        (the AI service then runs in mock mode).

    Raises:
        SecretRetrievalError: If the secret lookup fails.
    """
    if settings.openai_api_key:
        return settings.openai_api_key

    secret_name = settings.openai_api_key_secret
    if not secret_name:
        logger.info("No OpenAI API key or secret name configured")
        return None

    logger.info("Loading OpenAI API key from Secrets Manager: %s", secret_name)
    if secrets_client is None:
        secrets_client = boto3.client("secretsmanager", region_name=settings.aws_region)

    try:
        response = secrets_client.get_secret_value(SecretId=secret_name)
    except Exception as e:
        logger.error("Failed to retrieve OpenAI API key: %s", e)
        raise SecretRetrievalError(f"Failed to retrieve secret {secret_name}: {e}") from e

    secret_string = response.get("SecretString")
    if not secret_string:
        raise SecretRetrievalError(f"Secret string is empty for secret {secret_name}")
    return secret_string.strip()
