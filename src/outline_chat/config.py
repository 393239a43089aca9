"""Environment-driven settings for the chat service."""

import os

from dotenv import load_dotenv

load_dotenv()

DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_STORE_URL = "memory://"


def get_openai_api_key() -> str | None:
    """Return the default completion API credential."""
    return os.environ.get("OPENAI_API_KEY")


def get_openai_base_url() -> str | None:
    """Return a custom API base URL, if one is configured."""
    return os.environ.get("OPENAI_BASE_URL") or None


def get_model() -> str:
    return os.environ.get("OUTLINE_CHAT_MODEL", DEFAULT_MODEL)


def get_temperature() -> float:
    env = os.environ.get("OUTLINE_CHAT_TEMPERATURE")
    if env:
        return float(env)
    return DEFAULT_TEMPERATURE


def get_store_url() -> str:
    """Return the key-value store URL.

    ``OUTLINE_CHAT_STORE_URL`` wins; ``KV_URL`` is accepted for hosted
    Redis setups; otherwise conversations are kept in process memory.
    """
    return (
        os.environ.get("OUTLINE_CHAT_STORE_URL")
        or os.environ.get("KV_URL")
        or DEFAULT_STORE_URL
    )
