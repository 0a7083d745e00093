"""Shared HTTP plumbing for the Groq OpenAI-compatible endpoints."""

import time
from typing import Any, Callable, Dict, Optional

import requests

from ...config import GROQ_API_BASE, GROQ_TIMEOUT
from ...exceptions import ProviderError, ProviderUnavailableError
from ...utils.logging import get_logger
from ...utils.retry import retry_request

logger = get_logger(__name__)

RETRYABLE_EXCEPTIONS = (requests.ConnectionError, requests.Timeout)


class GroqAPI:
    """Authenticated POSTs with retry on transport failures."""

    def __init__(
        self,
        api_key: str,
        session: Optional[requests.Session] = None,
        base_url: str = GROQ_API_BASE,
        timeout: int = GROQ_TIMEOUT,
        max_retries: int = 2,
        sleep_fn: Callable[[float], None] = time.sleep,
    ):
        if not api_key or not api_key.strip():
            raise ProviderUnavailableError("GROQ_API_KEY is not configured")
        self.api_key = api_key.strip()
        self.session = session or requests.Session()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.sleep_fn = sleep_fn

    def post(self, path: str, error_cls: type = ProviderError, **kwargs: Any) -> Dict[str, Any]:
        """POST to ``path`` and return the decoded JSON body.

        Transport errors are retried; HTTP errors surface as ``error_cls``
        carrying the status code and response body.
        """
        url = f"{self.base_url}{path}"
        headers = {"Authorization": f"Bearer {self.api_key}"}
        headers.update(kwargs.pop("headers", {}))

        try:
            response = retry_request(
                self.session.post,
                url,
                headers=headers,
                timeout=self.timeout,
                max_retries=self.max_retries,
                exceptions=RETRYABLE_EXCEPTIONS,
                sleep_fn=self.sleep_fn,
                **kwargs,
            )
        except RETRYABLE_EXCEPTIONS as e:
            raise error_cls(f"Groq request failed: {e}") from e

        if response.status_code != 200:
            body = (response.text or "")[:500]
            raise error_cls(f"Groq API error ({response.status_code}): {body}")

        try:
            return response.json()
        except ValueError as e:
            raise error_cls(f"Groq returned invalid JSON: {e}") from e
