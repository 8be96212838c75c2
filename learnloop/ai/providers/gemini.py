"""Google Gemini adapter."""

from langchain_core.runnables import Runnable
from langchain_google_genai import ChatGoogleGenerativeAI

from learnloop.ai.providers.base import AIProvider
from learnloop.models.generation import BackendId, GenerateOptions


class GeminiProvider(AIProvider):
    """Gemini through the Generative Language API; JSON via response MIME type."""

    backend = BackendId.GEMINI
    default_model = "gemini-2.5-flash-preview-09-2025"
    native_json = True

    def build_chat_model(
        self, model: str, options: GenerateOptions, *, json_mode: bool
    ) -> Runnable:
        return ChatGoogleGenerativeAI(
            model=model,
            google_api_key=self.api_key,
            temperature=options.temperature,
            max_output_tokens=options.max_tokens,
            response_mime_type="application/json" if json_mode else None,
            max_retries=0,
        )
