"""
Caption provider interface and factory.
"""

import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

from .config import AppConfig
from .logging_setup import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = """You are a social media copywriter for a photography and content studio.
You write Instagram captions that follow the structure, tone and language you are given,
and you never invent brand details, discount codes or tagged people that were not provided."""


class CaptionProvider(ABC):
    """Abstract base class for caption providers."""

    @staticmethod
    def get_provider(config: AppConfig) -> Optional['CaptionProvider']:
        """
        Factory method to get the appropriate caption provider based on configuration.

        Args:
            config: Application configuration

        Returns:
            An instance of the appropriate CaptionProvider subclass, or None when
            no provider is configured
        """
        if config.provider is None:
            return None

        provider_type = config.provider.provider_type.lower()

        if provider_type == 'claude':
            from .claude_provider import ClaudeProvider
            return ClaudeProvider(config)
        elif provider_type == 'ollama':
            from .ollama_provider import OllamaProvider
            return OllamaProvider(config)
        elif provider_type == 'openrouter':
            from .openrouter_provider import OpenRouterProvider
            return OpenRouterProvider(config)
        else:
            raise ValueError(f"Unsupported caption provider: {provider_type}")

    def __init__(self, config: AppConfig):
        """
        Initialize the caption provider.

        Args:
            config: Application configuration
        """
        self.config = config
        self.max_retries = max(1, config.max_retries)
        self.timeout = config.request_timeout

    def call_with_retries(self, request_func: Callable[[], Optional[str]]) -> Optional[str]:
        """
        Call an API function with retries.

        Args:
            request_func: Function to call that returns caption text or None

        Returns:
            Caption text if successful, None otherwise
        """
        for attempt in range(self.max_retries):
            try:
                result = request_func()
                if result:
                    return result

                if attempt < self.max_retries - 1:
                    logger.info(f"Retrying API call in {2 ** attempt} seconds (attempt {attempt + 1}/{self.max_retries})")
                    time.sleep(2 ** attempt)  # Exponential backoff
            except Exception as e:
                logger.error(f"Error in API call (attempt {attempt + 1}): {str(e)}")
                if attempt < self.max_retries - 1:
                    logger.info(f"Retrying in {2 ** attempt} seconds")
                    time.sleep(2 ** attempt)

        logger.error(f"Failed to get a caption after {self.max_retries} attempts")
        return None

    def generate_caption(self, prompt: str) -> Optional[str]:
        """
        Send a caption prompt and return the generated text unmodified.

        Args:
            prompt: Structured prompt from captions.build_caption_prompt

        Returns:
            Caption text if successful, None otherwise
        """
        return self.call_with_retries(lambda: self._request_caption(prompt))

    @abstractmethod
    def _request_caption(self, prompt: str) -> Optional[str]:
        """Make a single API request; return the text or None."""
