"""
Ollama-specific implementation of the caption provider.
"""

import json
import requests
from typing import Optional

from .config import AppConfig, OllamaConfig
from .caption_providers import CaptionProvider, SYSTEM_PROMPT
from .logging_setup import get_logger

logger = get_logger(__name__)


class OllamaProvider(CaptionProvider):
    """Ollama API implementation of the caption provider."""

    def __init__(self, config: AppConfig):
        """
        Initialize the Ollama provider.

        Args:
            config: Application configuration

        Raises:
            ValueError: If config.provider is not an OllamaConfig object
        """
        super().__init__(config)

        self.ollama_config = config.provider

        if not isinstance(self.ollama_config, OllamaConfig):
            raise ValueError("Provider must be an OllamaConfig instance")

        self.api_url = self.ollama_config.api_url
        self.model = self.ollama_config.model

    def _request_caption(self, prompt: str) -> Optional[str]:
        payload = {
            "model": self.model,
            "system": SYSTEM_PROMPT,
            "prompt": prompt,
            "stream": False
        }

        try:
            response = requests.post(self.api_url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            result = response.json()
            return result.get("response") or None

        except requests.RequestException as e:
            logger.error(f"Ollama API network error: {str(e)}")
            return None
        except json.JSONDecodeError as e:
            logger.error(f"Ollama API JSON parsing error: {str(e)}")
            return None
