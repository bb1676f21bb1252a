"""
Shared test fixtures and configuration.
"""

import os
from unittest.mock import AsyncMock

import pytest

# Set test environment variables before importing telllm modules
os.environ.setdefault("TELLLM_LOG_CONSOLE_ENABLED", "false")
os.environ.setdefault("TELLLM_LOG_FILE_ENABLED", "false")

from telllm.config import Settings
from telllm.core import LeaseRegistry, TranscriptStore
from telllm.llm import LLMClient, LLMProvider, LLMResponse
from telllm.storage import LocalStorage


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def logs_dir(tmp_path):
    return tmp_path / "logs"


@pytest.fixture
def store(logs_dir):
    return TranscriptStore(LocalStorage(str(logs_dir)), LeaseRegistry())


@pytest.fixture
def server_settings(logs_dir):
    return Settings(
        host="127.0.0.1",
        port=0,
        logs_dir=str(logs_dir),
        persistence_timeout=2.0,
        wrap_width=0,
    )


@pytest.fixture
def provider():
    mock_provider = AsyncMock(spec=LLMProvider)
    mock_provider.chat_completion.return_value = LLMResponse(content="Hi there!", model="test")
    return mock_provider


@pytest.fixture
def llm_client(provider):
    return LLMClient(provider)
