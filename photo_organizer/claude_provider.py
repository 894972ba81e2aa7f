"""
Claude-specific implementation of the caption provider.
"""

import json
import requests
from typing import Optional

from .config import AppConfig, ClaudeConfig
from .caption_providers import CaptionProvider, SYSTEM_PROMPT
from .logging_setup import get_logger

logger = get_logger(__name__)


class ClaudeProvider(CaptionProvider):
    """Claude Messages API implementation of the caption provider."""

    def __init__(self, config: AppConfig):
        """
        Initialize the Claude provider.

        Args:
            config: Application configuration

        Raises:
            ValueError: If config.provider is not a ClaudeConfig object
        """
        super().__init__(config)

        self.claude_config = config.provider

        if not isinstance(self.claude_config, ClaudeConfig):
            raise ValueError("Provider must be a ClaudeConfig instance")

        self.api_url = self.claude_config.api_url
        self.api_key = self.claude_config.api_key
        self.model = self.claude_config.model
        self.max_tokens = self.claude_config.max_tokens

    def _request_caption(self, prompt: str) -> Optional[str]:
        """
        Call the Claude API with a caption prompt.

        Args:
            prompt: Caption prompt

        Returns:
            Generated caption text if successful, None otherwise
        """
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": "2023-06-01",
            "content-type": "application/json"
        }

        payload = {
            "model": self.model,
            "system": SYSTEM_PROMPT,
            "messages": [
                {"role": "user", "content": prompt}
            ],
            "max_tokens": self.max_tokens,
            "stream": False
        }

        try:
            response = requests.post(self.api_url, json=payload, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            result = response.json()

            blocks = result.get("content") or []
            text = "".join(block.get("text", "") for block in blocks if block.get("type", "text") == "text")
            return text or None

        except requests.RequestException as e:
            logger.error(f"Claude API network error: {str(e)}")
            if getattr(e, 'response', None) is not None:
                logger.error(f"Response details: {e.response.text}")
            return None
        except json.JSONDecodeError as e:
            logger.error(f"Claude API JSON parsing error: {str(e)}")
            return None
