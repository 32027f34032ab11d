"""Gemini LLM client wrapper with error handling."""
import httpx
from typing import Any, Dict, List, Optional
import structlog

from guide_qa import config

logger = structlog.get_logger()

MISSING_KEY_MESSAGE = "API_KEY environment variable not set."


class LLMError(Exception):
    """Raised when a Gemini call fails for transport or service reasons."""


class ConfigError(LLMError):
    """Raised when the Gemini credential is missing or rejected."""


class GeminiClient:
    """Async client for the Gemini generateContent API."""

    def __init__(
        self,
        api_key: str = None,
        base_url: str = None,
        model: str = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize Gemini client.

        Args:
            api_key: Gemini API key (defaults to config.GEMINI_API_KEY)
            base_url: Gemini API base URL (defaults to config.GEMINI_BASE_URL)
            model: Model to use (defaults to config.CHAT_MODEL)
            timeout: Request timeout in seconds (defaults to config.LLM_TIMEOUT)
            transport: Optional httpx transport, used by tests
        """
        self.api_key = config.GEMINI_API_KEY if api_key is None else api_key
        self.base_url = (base_url or config.GEMINI_BASE_URL).rstrip("/")
        self.model = model or config.CHAT_MODEL
        self.timeout = timeout or config.LLM_TIMEOUT
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    def ensure_configured(self) -> None:
        """Raise ConfigError if no credential is available."""
        if not self.is_configured:
            logger.error("gemini_api_key_missing")
            raise ConfigError(MISSING_KEY_MESSAGE)

    def _client(self, timeout: float = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout or self.timeout,
            transport=self._transport,
            headers={"x-goog-api-key": self.api_key},
        )

    async def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        response_schema: Optional[Dict[str, Any]] = None,
        temperature: Optional[float] = None,
        model: str = None,
    ) -> str:
        """Generate text (or JSON text) for a single-turn prompt.

        Args:
            prompt: User prompt text
            system_instruction: Optional system instruction
            response_schema: Optional Gemini response schema; when given the
                response is requested as application/json
            temperature: Sampling temperature (0.0-2.0)
            model: Model to use (defaults to the client's model)

        Returns:
            The concatenated text of the first candidate

        Raises:
            ConfigError: If the API key is missing or rejected
            LLMError: On connection, timeout, HTTP or response-shape errors
        """
        self.ensure_configured()
        model = model or self.model

        generation_config: Dict[str, Any] = {}
        if temperature is not None:
            generation_config["temperature"] = temperature
        if response_schema is not None:
            generation_config["responseMimeType"] = "application/json"
            generation_config["responseSchema"] = response_schema

        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        }
        if generation_config:
            payload["generationConfig"] = generation_config
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}

        try:
            async with self._client() as client:
                logger.info(
                    "gemini_generate_request",
                    model=model,
                    prompt_length=len(prompt),
                    structured=response_schema is not None,
                    temperature=temperature,
                )

                response = await client.post(
                    f"{self.base_url}/models/{model}:generateContent",
                    json=payload,
                )
                response.raise_for_status()

                data = response.json()

        except httpx.HTTPStatusError as e:
            self._raise_for_credential(e.response)
            logger.error(
                "gemini_http_error",
                error=str(e),
                status_code=e.response.status_code,
            )
            raise LLMError(f"Gemini API error: {e.response.status_code}") from e
        except httpx.TimeoutException as e:
            logger.error("gemini_timeout", error=str(e), timeout=self.timeout)
            raise LLMError("Gemini API timed out") from e
        except httpx.HTTPError as e:
            logger.error("gemini_connection_error", error=str(e), base_url=self.base_url)
            raise LLMError("Could not connect to Gemini API") from e
        except ValueError as e:
            logger.error("gemini_invalid_json", error=str(e))
            raise LLMError("Invalid JSON from Gemini API") from e

        text = self._extract_text(data)

        logger.info(
            "gemini_generate_response",
            model=model,
            response_length=len(text),
        )

        return text

    def _raise_for_credential(self, response: httpx.Response) -> None:
        """Turn a rejected-credential response into a ConfigError."""
        try:
            body = response.json()
        except ValueError:
            body = None

        error = body.get("error") if isinstance(body, dict) else None
        if not isinstance(error, dict):
            error = {}

        message = error.get("message") or response.reason_phrase
        rejected = response.status_code in (401, 403) or (
            response.status_code == 400 and "API key" in str(message)
        )
        if rejected:
            logger.error(
                "gemini_api_key_rejected",
                status_code=response.status_code,
                error=message,
            )
            raise ConfigError(f"Invalid API_KEY: {message}")

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> str:
        candidates = data.get("candidates") or []
        if not candidates:
            block_reason = data.get("promptFeedback", {}).get("blockReason")
            if block_reason:
                raise LLMError(f"Request blocked by Gemini: {block_reason}")
            raise LLMError("No candidates in Gemini response")

        parts = candidates[0].get("content", {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts)
        if not text:
            raise LLMError("Empty text in Gemini response")
        return text

    async def list_models(self) -> List[str]:
        """List model names available to this API key.

        Returns:
            List of model ids without the "models/" prefix

        Raises:
            ConfigError: If the API key is missing or rejected
            LLMError: On API errors
        """
        self.ensure_configured()
        try:
            async with self._client(timeout=5.0) as client:
                response = await client.get(f"{self.base_url}/models")
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            self._raise_for_credential(e.response)
            logger.error("gemini_list_models_error", error=str(e))
            raise LLMError(f"Gemini API error: {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error("gemini_list_models_error", error=str(e))
            raise LLMError("Could not connect to Gemini API") from e

        return [m["name"].split("/", 1)[-1] for m in data.get("models", [])]


# Global client instance
gemini_client = GeminiClient()
