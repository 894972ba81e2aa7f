"""
OpenRouter API implementation of the caption provider.
"""

import json
import requests
from typing import Optional

from .config import AppConfig, OpenRouterConfig
from .caption_providers import CaptionProvider, SYSTEM_PROMPT
from .logging_setup import get_logger

logger = get_logger(__name__)


class OpenRouterProvider(CaptionProvider):
    """OpenRouter API implementation of the caption provider."""

    def __init__(self, config: AppConfig):
        """
        Initialize the OpenRouter provider.

        Args:
            config: Application configuration
        """
        super().__init__(config)

        self.provider_config = config.provider

        if not isinstance(self.provider_config, OpenRouterConfig):
            raise ValueError("Provider must be an OpenRouterConfig instance")

        self.api_key = self.provider_config.api_key
        self.api_url = self.provider_config.api_url
        self.model = self.provider_config.model
        self.site_url = self.provider_config.site_url
        self.title = self.provider_config.title

        logger.info(f"Initialized OpenRouter provider with model: {self.model}")

    def _request_caption(self, prompt: str) -> Optional[str]:
        """
        Call the OpenRouter chat completions API with the prompt.

        Args:
            prompt: Caption prompt

        Returns:
            Generated caption text if successful, None otherwise
        """
        if not self.api_key:
            logger.error("OpenRouter API key not provided")
            return None

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
            "HTTP-Referer": self.site_url,
            "X-Title": self.title
        }

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt}
            ],
            "max_tokens": 1024,
            "temperature": 0.8
        }

        try:
            logger.debug(f"Calling OpenRouter API with model: {self.model}")
            response = requests.post(self.api_url, headers=headers, json=payload, timeout=self.timeout)

            if response.status_code != 200:
                logger.error(f"OpenRouter API error: {response.status_code} - {response.text}")
                return None

            response_data = response.json()

            if self.config.debug_mode:
                logger.debug(f"OpenRouter API response: {json.dumps(response_data, indent=2)}")

            choices = response_data.get('choices') or []
            if choices:
                return choices[0].get('message', {}).get('content') or None

            logger.error("Invalid response format from OpenRouter API")
            return None

        except requests.RequestException as e:
            logger.error(f"OpenRouter API network error: {str(e)}")
            return None
        except json.JSONDecodeError as e:
            logger.error(f"OpenRouter API JSON parsing error: {str(e)}")
            return None
