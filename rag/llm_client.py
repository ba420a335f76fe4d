"""Chat-completion client for answer generation.

Supports OpenAI-compatible endpoints (the default, pointed anywhere with
``base_url``) and Anthropic. Errors from either SDK propagate to the caller.
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class LLMClient:
    """Unified LLM client supporting OpenAI and Anthropic."""

    def __init__(
        self,
        provider: str = "openai",
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        client=None,
    ):
        self.provider = provider

        if provider == "anthropic":
            import anthropic
            self.model = model or "claude-sonnet-4-6"
            self.client = client or anthropic.Anthropic(api_key=api_key, base_url=base_url)
        elif provider == "openai":
            from openai import OpenAI
            self.model = model or "gpt-4o"
            self.client = client or OpenAI(api_key=api_key, base_url=base_url)
        else:
            raise ValueError(f"Unsupported provider: {provider}")

    def complete(
        self,
        messages: list[dict],
        max_tokens: int = 512,
        temperature: float = 0.2,
    ) -> str:
        """Send a chat completion request and return the reply text."""
        if self.provider == "anthropic":
            # Anthropic takes the system prompt out of band
            system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
            turns = [m for m in messages if m["role"] != "system"]
            response = self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                system=system,
                messages=turns,
            )
            return "".join(
                block.text for block in response.content if getattr(block, "type", "text") == "text"
            )

        response = self.client.chat.completions.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=messages,
        )
        return response.choices[0].message.content or ""
