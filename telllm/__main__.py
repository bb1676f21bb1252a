"""
telllm - Telnet server for chatting with an LLM.

Run with ``python -m telllm`` or the ``telllm`` console script.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from .config import Settings
from .core.logging_config import filter_sensitive_data, setup_logging
from .core.transcript_store import TranscriptStore
from .errors import BootstrapError
from .llm import LLMClient, create_llm_provider
from .server import ChatServer
from .storage import LocalStorage

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="telllm",
        description="Telnet server for LLM chat with an OpenAI-compatible API",
    )
    parser.add_argument("-p", "--port", type=int, help="Port to listen on (default 2323)")
    parser.add_argument("--host", help="Address to bind (default 0.0.0.0)")
    parser.add_argument("-e", "--endpoint", dest="llm_base_url", help="LLM API endpoint")
    parser.add_argument("-m", "--model", dest="llm_model", help="Model name")
    parser.add_argument("-k", "--api-key", dest="llm_api_key", help="API key (optional)")
    parser.add_argument("-s", "--system-prompt", dest="system_prompt", help="Custom system prompt")
    parser.add_argument("--logs-dir", dest="logs_dir", help="Chat transcripts directory")
    parser.add_argument("--log-level", dest="log_level", help="DEBUG, INFO, WARNING, ERROR")
    return parser


def load_settings(argv: Optional[List[str]] = None) -> Settings:
    """Environment and .env first, command-line flags on top."""
    args = build_parser().parse_args(argv)
    overrides = {key: value for key, value in vars(args).items() if value is not None}
    return Settings(**overrides)


def build_server(config: Settings) -> ChatServer:
    provider = create_llm_provider(
        provider=config.llm_provider,
        api_key=config.llm_api_key,
        model=config.llm_model,
        base_url=config.llm_base_url,
        default_temperature=config.llm_temperature,
        default_max_tokens=config.llm_max_tokens,
        timeout=config.llm_timeout,
    )
    llm = LLMClient(provider, max_retries=config.llm_max_retries)
    store = TranscriptStore(LocalStorage(config.logs_dir))
    return ChatServer(config, store, llm)


async def serve(config: Settings) -> None:
    server = build_server(config)
    await server.serve_forever()


def main(argv: Optional[List[str]] = None) -> int:
    config = load_settings(argv)
    setup_logging(config)

    logger.info(f"Starting {config.app_name} v{config.app_version} on port {config.port}")
    logger.info(f"Configuration: {filter_sensitive_data(config.model_dump())}")

    try:
        asyncio.run(serve(config))
    except BootstrapError as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.info(f"Shutting down {config.app_name}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
