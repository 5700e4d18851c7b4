from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


FALLBACK_MODEL = "togethercomputer/llama-2-70b-chat"
DEFAULT_SYSTEM_PROMPT = "You are a helpful AI assistant."

# Models offered to the chat client's model picker
SELECTABLE_MODELS: list[dict[str, str]] = [
    {
        "id": "lgai/exaone-3-5-32b-instruct",
        "label": "Exaone-3-5-32B-Instruct (Serverless, ready to use)",
    },
    {
        "id": "deepseek-ai/DeepSeek-R1-Distill-Llama-70B-free",
        "label": "DeepSeek-R1-Distill-Llama-70B-free (Serverless, ready to use)",
    },
]


class LlmConfig(BaseSettings):
    """Configuration for the hosted chat-completions provider.

    The API key is optional here on purpose: a missing key is reported on
    each relayed request as a 500 instead of preventing the app from
    starting.
    """

    api_key: Optional[str] = Field(default=None, alias="TOGETHER_API_KEY")
    base_url: str = Field("https://api.together.xyz/v1", alias="TOGETHER_BASE_URL")
    model: Optional[str] = Field(default=None, alias="TOGETHER_MODEL")
    max_tokens: int = Field(1024, alias="LLM_MAX_TOKENS")
    timeout: float = Field(30, alias="LLM_TIMEOUT")
    system_prompt: str = Field(DEFAULT_SYSTEM_PROMPT, alias="LLM_SYSTEM_PROMPT")

    @field_validator("timeout")
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("LLM_TIMEOUT must be positive")
        return value

    @field_validator("max_tokens")
    def validate_max_tokens(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("LLM_MAX_TOKENS must be positive")
        return value

    @field_validator("base_url")
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def completions_url(self) -> str:
        return f"{self.base_url}/chat/completions"

    def resolve_model(self, requested: Optional[str] = None) -> str:
        """Return the requested model, else the configured default, else the fallback."""

        return requested or self.model or FALLBACK_MODEL

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)


@lru_cache()
def get_llm_config() -> LlmConfig:
    """Return a cached language model configuration."""

    return LlmConfig()
