"""
LLM Engine - client for a local Ollama text-generation server.
Talks to the native /api/generate endpoint with streaming disabled.
Uses centralized configuration.
"""

from typing import Optional
import logging

import requests

from config import get_settings

logger = logging.getLogger(__name__)


class LLMError(RuntimeError):
    """Raised when the generation endpoint fails or returns no usable text."""


class OllamaClient:
    """
    Blocking client for Ollama's generate endpoint.
    Each call is a single synchronous round trip: no retries, no streaming,
    and no timeout unless one is configured. The server keeps one client for
    its whole lifetime; call close() or use it as a context manager otherwise.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        model_name: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the client.

        Args:
            base_url: Server URL (e.g., "http://localhost:11434")
            model_name: Model to run (e.g., "llama3.1:8b")
            timeout: Seconds to wait for the response; None waits indefinitely
            session: Optional requests session to send through
        """
        settings = get_settings()
        self.base_url = (base_url or settings.ollama_base_url).rstrip("/")
        self.model_name = model_name or settings.ollama_model
        self.timeout = timeout if timeout is not None else settings.ollama_timeout
        self.session = session or requests.Session()

        logger.info(f"Initializing Local LLM: {self.model_name} at {self.base_url}")

    @property
    def generate_url(self) -> str:
        return f"{self.base_url}/api/generate"

    def generate(self, prompt: str) -> str:
        """
        Generate a completion for the prompt.

        Args:
            prompt: Full instruction text

        Returns:
            The generated text, stripped

        Raises:
            LLMError: On transport errors, HTTP errors, malformed JSON,
                or a missing/blank "response" field
        """
        payload = {
            "model": self.model_name,
            "prompt": prompt,
            "stream": False,
        }

        try:
            response = self.session.post(self.generate_url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise LLMError(f"Request to {self.generate_url} failed: {e}") from e
        except ValueError as e:
            raise LLMError(f"Malformed response from {self.generate_url}: {e}") from e

        text = data.get("response") if isinstance(data, dict) else None
        if not isinstance(text, str) or not text.strip():
            raise LLMError("Empty response")
        return text.strip()

    def get_model_name(self) -> str:
        """Get the current model name."""
        return self.model_name

    def close(self):
        """Release pooled connections held by the session."""
        self.session.close()

    def __enter__(self) -> "OllamaClient":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

