"""
Text-generation clients for LLM-assisted segmentation.

Both clients expose the same small surface, ``health_check()`` and
``generate(prompt)``, and convert every transport or API failure into an
``LLMSegmentationError`` subclass so the segmenter can fall back cleanly.
"""
import logging
import threading
from typing import List, Optional

import requests

from chatsplitter.core.config import DEFAULT_ANTHROPIC_MODEL, DEFAULT_OLLAMA_ENDPOINT
from chatsplitter.core.errors import LLMResponseError, LLMUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0
HEALTH_TIMEOUT = 5.0


class OllamaClient:
    """
    Client for a local Ollama server.

    Attributes
    ----------
    endpoint : str
        Base URL without trailing slashes
    model : str
        Model used by ``generate`` when none is passed
    timeout : float
        Seconds to wait for a generation response

    Each thread gets its own ``requests.Session`` unless one is passed in,
    in which case that session is shared by every caller.
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_OLLAMA_ENDPOINT,
        model: str = "",
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.model = model
        self.timeout = timeout
        self._session = session
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        """HTTP session for the calling thread, or the session passed in."""
        if self._session is not None:
            return self._session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update({"Content-Type": "application/json"})
            self._local.session = session
        return session

    def health_check(self) -> bool:
        """True only if the endpoint answers with HTTP 200."""
        try:
            response = self.session.get(self.endpoint, timeout=HEALTH_TIMEOUT)
        except requests.RequestException as e:
            logger.debug("Ollama health check failed: %s", e)
            return False
        return response.status_code == 200

    def list_models(self) -> List[str]:
        """
        Names of the models installed on the server.

        Returns an empty list when the server is unreachable or the payload
        is not in the expected shape.
        """
        try:
            response = self.session.get(f"{self.endpoint}/api/tags", timeout=HEALTH_TIMEOUT)
            if response.status_code != 200:
                return []
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.debug("Could not list Ollama models: %s", e)
            return []

        models = data.get("models") if isinstance(data, dict) else None
        if not isinstance(models, list):
            return []
        return [m["name"] for m in models if isinstance(m, dict) and m.get("name")]

    def generate(self, prompt: str, model: Optional[str] = None) -> str:
        """
        Run a non-streaming generation.

        Raises
        ------
        LLMUnavailableError
            On a transport failure or a non-200 status
        LLMResponseError
            If the body is not JSON or has no ``response`` text
        """
        payload = {"model": model or self.model, "prompt": prompt, "stream": False}
        try:
            response = self.session.post(f"{self.endpoint}/api/generate", json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise LLMUnavailableError(f"Ollama request failed: {e}") from e

        if response.status_code != 200:
            raise LLMUnavailableError(f"Ollama returned status {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise LLMResponseError("Ollama returned a non-JSON body") from e

        text = data.get("response") if isinstance(data, dict) else None
        if not isinstance(text, str) or not text.strip():
            raise LLMResponseError("Ollama returned empty response")
        return text


class AnthropicClient:
    """
    Client for Claude via the Anthropic SDK.

    The SDK client is created lazily on first use and reads
    ``ANTHROPIC_API_KEY`` from the environment.
    """

    def __init__(
        self,
        model: str = DEFAULT_ANTHROPIC_MODEL,
        max_tokens: int = 4096,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._client = None

    @property
    def client(self):
        """Lazy load the Anthropic client."""
        if self._client is None:
            import anthropic
            self._client = anthropic.Anthropic(timeout=self.timeout)
        return self._client

    def health_check(self) -> bool:
        """True when the SDK client has credentials configured."""
        import anthropic

        try:
            client = self.client
        except anthropic.AnthropicError as e:
            logger.debug("Anthropic client unavailable: %s", e)
            return False
        return bool(client.api_key or client.auth_token)

    def generate(self, prompt: str, model: Optional[str] = None) -> str:
        """
        Send a single-turn prompt and return the text reply.

        Raises
        ------
        LLMUnavailableError
            On any SDK error (connection, auth, rate limit, status)
        LLMResponseError
            If the reply contains no text
        """
        import anthropic

        try:
            response = self.client.messages.create(
                model=model or self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.AnthropicError as e:
            raise LLMUnavailableError(f"Anthropic request failed: {e}") from e

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        ).strip()
        if not text:
            raise LLMResponseError("Anthropic returned empty response")
        return text


def create_client(
    provider: str,
    endpoint: Optional[str] = None,
    model: Optional[str] = None,
    timeout: Optional[float] = None,
):
    """
    Construct a generation client by provider name.

    Parameters
    ----------
    provider : str
        ``ollama`` or ``anthropic``
    endpoint : str, optional
        Ollama base URL; ignored for Anthropic
    model : str, optional
        Model name; each client has its own default
    timeout : float, optional
        Request timeout in seconds

    Raises
    ------
    ValueError
        For an unknown provider
    """
    provider = provider.lower()
    kwargs = {}
    if timeout is not None:
        kwargs["timeout"] = timeout
    if model:
        kwargs["model"] = model
    if provider == "ollama":
        if endpoint:
            kwargs["endpoint"] = endpoint
        return OllamaClient(**kwargs)
    if provider == "anthropic":
        return AnthropicClient(**kwargs)
    raise ValueError(f"Unknown LLM provider: {provider}")
