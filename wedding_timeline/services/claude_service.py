"""
Claude API service wrapper
"""
from anthropic import AsyncAnthropic, AnthropicError
from wedding_timeline.config import get_settings
from wedding_timeline.errors import AIServiceError
from wedding_timeline.utils.helpers import safe_json_parse
from typing import Optional, Dict, Any
import json

settings = get_settings()


class ClaudeService:
    def __init__(self):
        api_key = settings.ANTHROPIC_API_KEY or None
        self.model = settings.CLAUDE_MODEL
        self.max_tokens = settings.CLAUDE_MAX_TOKENS
        self._available = bool(api_key)
        if self._available:
            self.client = AsyncAnthropic(api_key=api_key)
        else:
            self.client = None

    async def generate_response(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 1.0,
        max_tokens: Optional[int] = None
    ) -> str:
        """
        Generate a response from Claude
        """
        if not self._available or self.client is None:
            raise AIServiceError("AI service not configured: ANTHROPIC_API_KEY is not set")

        messages = [{"role": "user", "content": prompt}]

        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens or self.max_tokens,
                temperature=temperature,
                system=system_prompt if system_prompt else "",
                messages=messages
            )
        except AnthropicError as e:
            raise AIServiceError(f"Claude request failed: {e}")

        text_blocks = [block for block in response.content or [] if getattr(block, "type", None) == "text"]
        if not text_blocks:
            raise AIServiceError(f"Claude returned no text content (stop_reason={getattr(response, 'stop_reason', None)})")
        return text_blocks[0].text

    async def generate_structured_response(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        response_format: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Generate a structured JSON response from Claude
        """
        structured_prompt = f"""{prompt}

IMPORTANT: Respond with ONLY a valid JSON object matching this schema:
{json.dumps(response_format, indent=2)}

Do not include any markdown formatting, code blocks, or explanatory text.
Just return the raw JSON."""

        response_text = await self.generate_response(
            prompt=structured_prompt,
            system_prompt=system_prompt,
            temperature=0.3,
        )

        # Clean up response (remove markdown if present)
        response_text = response_text.strip()
        if response_text.startswith("```json"):
            response_text = response_text[7:]
        if response_text.endswith("```"):
            response_text = response_text[:-3]
        response_text = response_text.strip()

        parsed = safe_json_parse(response_text)
        if not isinstance(parsed, dict):
            raise AIServiceError(f"Claude response is not a JSON object: {response_text[:200]}")
        return parsed


# Singleton instance
claude_service = ClaudeService()
