"""
Language Model Service - Optional text generation for bot players.

Talks to an OpenAI-compatible ``/chat/completions`` endpoint. Every call is
bounded by a timeout, and every failure (missing key, transport error, bad
status, malformed body) surfaces as :class:`LanguageModelError` so callers can
fall back without ever blocking a room.
"""

import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = 'You are a creative assistant helping generate acronyms or rate them.'


class LanguageModelError(Exception):
    """Raised when the language model is unavailable or a call fails."""
    pass


class LanguageModelService:
    """Thin client for an OpenAI-compatible chat completion API."""

    def __init__(self, api_url: str = '', api_key: str = '', model: str = 'grok-beta',
                 timeout: float = 5.0, session: Optional[requests.Session] = None):
        self.api_url = (api_url or '').rstrip('/')
        self.api_key = api_key or ''
        self.model = model
        self.timeout = timeout
        self._session = session or requests.Session()
        if not self.is_available():
            logger.info("LanguageModelService has no API key; bots will use fallback text")

    @classmethod
    def from_config(cls, config) -> 'LanguageModelService':
        return cls(
            api_url=config.llm_api_url,
            api_key=config.llm_api_key,
            model=config.llm_model,
            timeout=config.llm_timeout,
        )

    def is_available(self) -> bool:
        return bool(self.api_key and self.api_url)

    def generate(self, prompt: str, max_tokens: int = 100, temperature: float = 0.7) -> str:
        """
        Generate text for a prompt.

        Args:
            prompt: User prompt
            max_tokens: Completion length cap
            temperature: Sampling temperature

        Returns:
            The stripped completion text

        Raises:
            LanguageModelError: On any failure, including timeout
        """
        if not self.is_available():
            raise LanguageModelError("Language model is not configured")

        payload = {
            'model': self.model,
            'messages': [
                {'role': 'system', 'content': SYSTEM_PROMPT},
                {'role': 'user', 'content': prompt}
            ],
            'max_tokens': max_tokens,
            'temperature': temperature,
        }
        headers = {'Authorization': f'Bearer {self.api_key}'}

        try:
            response = self._session.post(
                f'{self.api_url}/chat/completions',
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            body = response.json()
        except requests.Timeout as e:
            raise LanguageModelError(f"Language model timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise LanguageModelError(f"Language model request failed: {e}") from e
        except ValueError as e:
            raise LanguageModelError("Language model returned invalid JSON") from e

        try:
            text = body['choices'][0]['message']['content']
        except (KeyError, IndexError, TypeError) as e:
            raise LanguageModelError("Language model response had no content") from e

        if not isinstance(text, str) or not text.strip():
            raise LanguageModelError("Language model returned empty content")
        return text.strip()
