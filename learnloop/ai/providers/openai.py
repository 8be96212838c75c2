"""OpenAI chat completions adapter."""

from langchain_core.runnables import Runnable
from langchain_openai import ChatOpenAI

from learnloop.ai.providers.base import AIProvider
from learnloop.models.generation import BackendId, GenerateOptions


class OpenAIProvider(AIProvider):
    """OpenAI chat models; JSON via ``response_format``."""

    backend = BackendId.OPENAI
    default_model = "gpt-4o"
    native_json = True

    def build_chat_model(
        self, model: str, options: GenerateOptions, *, json_mode: bool
    ) -> Runnable:
        llm = ChatOpenAI(
            model=model,
            api_key=self.api_key,
            temperature=options.temperature,
            max_tokens=options.max_tokens,
            max_retries=0,
        )
        if json_mode:
            return llm.bind(response_format={"type": "json_object"})
        return llm
