"""LLM adapter via litellm."""

import base64
import mimetypes
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import litellm

from .errors import TransportError
from .logger import get_logger

litellm.suppress_debug_info = True

_log = get_logger(__name__)

DEFAULT_SCREENSHOT_PROMPT = (
    "Describe what is visible on this screenshot of the user's screen. "
    "Mention windows, errors and any text that looks relevant."
)


class LLMAdapter:
    """Unified LLM interface. Passes api_key/api_base directly to litellm,
    avoiding env-var pollution when switching between providers."""

    def __init__(self, model: str, temperature: float = 0.7,
                 max_tokens: int = 512, api_base: Optional[str] = None,
                 api_key: Optional[str] = None):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.api_base = api_base
        self.api_key = api_key

    def _completion_kwargs(self, messages: List[Dict[str, Any]]) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "model": self.model, "messages": messages,
            "temperature": self.temperature, "max_tokens": self.max_tokens,
        }
        if self.api_base:
            kwargs["api_base"] = self.api_base
        if self.api_key:
            kwargs["api_key"] = self.api_key
        return kwargs

    def _complete(self, messages: List[Dict[str, Any]]) -> str:
        try:
            response = litellm.completion(**self._completion_kwargs(messages))
        except litellm.exceptions.AuthenticationError as e:
            raise TransportError(f"Auth failed. Check API key.\n{e}", model=self.model)
        except litellm.exceptions.APIConnectionError as e:
            raise TransportError(
                f"Cannot connect: model={self.model}, base={self.api_base or 'default'}\n{e}",
                model=self.model,
            )
        except Exception as e:
            raise TransportError(f"LLM error: {type(e).__name__}: {e}", model=self.model)

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError) as e:
            raise TransportError(f"Malformed response: {type(e).__name__}: {e}", model=self.model)

        if response.usage:
            _log.info("Model %s used %s tokens", self.model, response.usage.total_tokens)
        return content or ""

    def chat(self, messages: List[Dict[str, Any]]) -> str:
        """Send the ordered transcript and return the raw reply text."""
        return self._complete(messages)

    def analyze_image(self, image_path: Union[str, Path],
                      prompt: str = DEFAULT_SCREENSHOT_PROMPT) -> str:
        """Ask a vision-capable model about an image file."""
        path = Path(image_path)
        try:
            data = base64.b64encode(path.read_bytes()).decode("ascii")
        except OSError as e:
            raise TransportError(f"Failed to read image {path}: {e}", model=self.model)

        media_type = mimetypes.guess_type(path.name)[0] or "image/png"
        messages = [{
            "role": "user",
            "content": [
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {"url": f"data:{media_type};base64,{data}"}},
            ],
        }]
        return self._complete(messages)
