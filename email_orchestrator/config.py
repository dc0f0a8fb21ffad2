from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """
    Application configuration loaded from environment variables and .env file.

    Built once at process start and passed by reference into the LLM client
    and each collaborator.
    """

    # OpenAI-compatible chat completions
    openai_api_key: str = Field(default="", alias="OPENAI_API_KEY")
    model_name: str = Field(default="gpt-4-turbo", alias="MODEL_NAME")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1/chat/completions",
        alias="OPENAI_BASE_URL",
    )

    # Local Ollama server
    ollama_host: str = Field(default="http://localhost:11434", alias="OLLAMA_HOST")
    ollama_model: str = Field(default="llama3.2:3b", alias="OLLAMA_MODEL")
    use_ollama: bool = Field(default=True, alias="USE_OLLAMA")

    # Per-call deadline for every collaborator HTTP request. No retries.
    llm_timeout_seconds: float = Field(default=60.0, alias="LLM_TIMEOUT_SECONDS")

    # HTTP API
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_to_file: bool = Field(default=False, alias="LOG_TO_FILE")
    logs_dir: Path = Field(default=Path("logs"), alias="LOGS_DIR")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


def load_config() -> "Config":
    return Config()
