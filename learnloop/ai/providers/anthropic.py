"""Anthropic messages adapter."""

from langchain_anthropic import ChatAnthropic
from langchain_core.runnables import Runnable

from learnloop.ai.providers.base import AIProvider
from learnloop.models.generation import BackendId, GenerateOptions

# The messages API requires an explicit output cap
DEFAULT_MAX_TOKENS = 4096


class AnthropicProvider(AIProvider):
    """Claude models. No native JSON mode, so JSON is requested in the prompt."""

    backend = BackendId.ANTHROPIC
    default_model = "claude-3-5-sonnet-20241022"
    native_json = False

    def build_chat_model(
        self, model: str, options: GenerateOptions, *, json_mode: bool
    ) -> Runnable:
        return ChatAnthropic(
            model=model,
            api_key=self.api_key,
            temperature=options.temperature,
            max_tokens=options.max_tokens or DEFAULT_MAX_TOKENS,
            max_retries=0,
        )
