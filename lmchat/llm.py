"""LLM transport via litellm: role-tagged messages in, text fragments out."""

import logging
from typing import Any, Dict, Iterator, List, Optional

import litellm
litellm.suppress_debug_info = True

from .errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant. Keep your answers concise."

USER_MESSAGE_TEMPLATE = """\
Respond in this format:
<thought>...</thought>
<answer>...</answer>

User input:
{input}"""


def build_user_message(user_input: str) -> str:
    """Wrap raw input in the format instructions; blank input stays empty."""
    if not user_input.strip():
        return ""
    return USER_MESSAGE_TEMPLATE.format(input=user_input)


class LLMAdapter:
    """Streaming chat client. Passes api_key/api_base directly to litellm,
    avoiding env-var pollution when switching between providers."""

    def __init__(self, model: str, temperature: float = 0.7,
                 max_tokens: int = 4096, api_base: Optional[str] = None,
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
            "stream": True,
        }
        if self.api_base:
            kwargs["api_base"] = self.api_base
        if self.api_key:
            kwargs["api_key"] = self.api_key
        return kwargs

    def chat_stream(self, messages: List[Dict[str, Any]]) -> Iterator[str]:
        """Stream a completion, yielding text fragments in arrival order.

        Every failure, when opening the stream or mid-way through it, is
        raised as ``TransportError``; nothing is retried here.
        """
        logger.info("Requesting %s with %d messages", self.model, len(messages))
        try:
            response_stream = litellm.completion(**self._completion_kwargs(messages))
        except litellm.exceptions.AuthenticationError as e:
            raise TransportError(f"Auth failed. Check API key.\n{e}", model=self.model) from e
        except litellm.exceptions.APIConnectionError as e:
            raise TransportError(
                f"Cannot connect: model={self.model}, base={self.api_base or 'default'}\n{e}",
                model=self.model,
            ) from e
        except litellm.exceptions.Timeout as e:
            raise TransportError(f"Request timed out: model={self.model}\n{e}", model=self.model) from e
        except Exception as e:
            raise TransportError(f"LLM error: {type(e).__name__}: {e}", model=self.model) from e

        try:
            for chunk in response_stream:
                yield from self.extract_text_deltas(chunk)
        except Exception as e:
            logger.error("Stream from %s interrupted: %s", self.model, e)
            raise TransportError(
                f"Stream interrupted: {type(e).__name__}: {e}", model=self.model
            ) from e

    @staticmethod
    def extract_text_deltas(chunk: Any) -> List[str]:
        """Text carried by one streaming update (usage-only updates carry none)."""
        deltas = []
        for choice in chunk.choices or []:
            delta = choice.delta
            if delta is not None and delta.content:
                deltas.append(delta.content)
        return deltas
