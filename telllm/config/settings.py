"""
Configuration Settings.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Server settings. Immutable once loaded."""

    # App info
    app_name: str = "telllm"
    app_version: str = "0.1.0"

    # Listener
    host: str = "0.0.0.0"
    port: int = 2323
    max_line_length: int = 8192  # bytes per inbound line
    idle_timeout: Optional[float] = None  # seconds, None disables

    # LLM backend (OpenAI-compatible chat/completions)
    llm_provider: str = "openai"
    llm_base_url: str = "http://localhost:8080/v1"
    llm_model: str = "default"
    llm_api_key: Optional[str] = None
    llm_timeout: float = 120.0
    llm_max_retries: int = 0
    llm_temperature: Optional[float] = None
    llm_max_tokens: Optional[int] = None
    system_prompt: str = "You are a helpful AI assistant. Be concise and friendly."

    # Transcripts
    logs_dir: str = "logs"
    persistence_timeout: float = 5.0  # seconds a connection waits on one write

    # Output
    wrap_width: int = 78  # 0 disables wrapping
    input_prompt: str = ""  # e.g. "You: "; written without a line terminator
    thinking_indicator: bool = False

    # Logging configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file_path: str = "./telllm.log"
    log_file_enabled: bool = False
    log_console_enabled: bool = True
    log_json_format: bool = True  # JSON format for files, human-readable for console

    class Config:
        env_file = ".env"
        env_prefix = "TELLLM_"
        case_sensitive = False
        frozen = True
