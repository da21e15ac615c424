"""Text-generation client for transcript enhancements."""

import openai

from app.config import Settings, get_settings
from app.errors import EnhancementError
from app.services.prompts import PROMPTS, EnhancementKind, enforce_word_budget, wrap_transcript


class EnhancementClient:
    """Calls the chat completions API with a kind-specific prompt."""

    def __init__(self, settings: Settings, client: openai.AsyncOpenAI | None = None) -> None:
        self.settings = settings
        self._client = client

    def _get_client(self) -> openai.AsyncOpenAI:
        """Lazy-create the OpenAI client."""
        if self._client is None:
            self._client = openai.AsyncOpenAI(
                api_key=self.settings.OPENAI_API_KEY,
                base_url=self.settings.OPENAI_BASE_URL,
                max_retries=0,
            )
        return self._client

    async def generate(self, kind: EnhancementKind, transcript: str, timeout: float | None = None) -> str:
        """Return enhanced text for ``kind``. Raises EnhancementError."""
        prompt = PROMPTS[kind]
        try:
            response = await self._get_client().chat.completions.create(
                model=self.settings.LLM_MODEL,
                messages=[
                    {"role": "system", "content": prompt.system},
                    {"role": "user", "content": wrap_transcript(transcript)},
                ],
                temperature=prompt.temperature,
                max_tokens=prompt.max_tokens,
                top_p=1,
                timeout=timeout or self.settings.ENHANCEMENT_TIMEOUT_SEC,
            )
        except openai.OpenAIError as e:
            raise EnhancementError(f"LLM processing failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise EnhancementError("Empty response from LLM")
        return enforce_word_budget(content.strip(), prompt.word_budget)


_enhancement_client: EnhancementClient | None = None


def get_enhancement_client() -> EnhancementClient:
    """Get singleton enhancement client instance."""
    global _enhancement_client
    if _enhancement_client is None:
        _enhancement_client = EnhancementClient(get_settings())
    return _enhancement_client
