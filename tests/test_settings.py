"""
Tests for configuration loading and the command-line entry point.
"""

import importlib

import pytest
from pydantic import ValidationError

from telllm.__main__ import build_server, load_settings, main
from telllm.config import Settings
from telllm.errors import BootstrapError
from telllm.llm import OpenAIProvider
from telllm.server import ChatServer


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("TELLLM_PORT", raising=False)
        config = Settings()
        assert config.port == 2323
        assert config.llm_base_url == "http://localhost:8080/v1"
        assert config.llm_api_key is None
        assert config.llm_max_retries == 0

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("TELLLM_PORT", "4000")
        monkeypatch.setenv("TELLLM_LLM_MODEL", "qwen")
        config = Settings()
        assert config.port == 4000
        assert config.llm_model == "qwen"

    def test_immutable(self):
        config = Settings()
        with pytest.raises(ValidationError):
            config.port = 1

    def test_import_does_not_read_environment(self, monkeypatch):
        import telllm.config.settings as settings_module

        monkeypatch.setenv("TELLLM_PORT", "not-a-port")
        importlib.reload(settings_module)
        assert not hasattr(settings_module, "settings")
        with pytest.raises(ValidationError):
            settings_module.Settings()


class TestCommandLine:
    """Tests for the telllm entry point."""

    def test_flags_override_environment(self, monkeypatch):
        monkeypatch.setenv("TELLLM_PORT", "4000")
        config = load_settings(["-p", "5000", "-e", "http://llm:9000/v1", "-m", "mistral",
                                "-k", "secret", "--logs-dir", "/tmp/chats"])
        assert config.port == 5000
        assert config.llm_base_url == "http://llm:9000/v1"
        assert config.llm_model == "mistral"
        assert config.llm_api_key == "secret"
        assert config.logs_dir == "/tmp/chats"

    def test_unset_flags_keep_defaults(self, monkeypatch):
        monkeypatch.delenv("TELLLM_PORT", raising=False)
        config = load_settings([])
        assert config.port == 2323
        assert config.system_prompt == Settings().system_prompt

    def test_build_server(self, tmp_path):
        config = Settings(logs_dir=str(tmp_path), llm_model="m", llm_timeout=7.0, llm_max_retries=2)
        server = build_server(config)
        assert isinstance(server, ChatServer)
        assert isinstance(server.llm.provider, OpenAIProvider)
        assert server.llm.provider.model == "m"
        assert server.llm.provider.timeout == 7.0
        assert server.llm.max_retries == 2

    def test_bind_failure_exits_with_status_1(self, monkeypatch):
        async def failing_serve(config):
            raise BootstrapError("Cannot listen on 0.0.0.0:2323: address in use")

        monkeypatch.setattr("telllm.__main__.serve", failing_serve)
        monkeypatch.setattr("telllm.__main__.setup_logging", lambda config: None)
        assert main([]) == 1


class TestBootstrap:
    """The listener reports bind failures as BootstrapError."""

    @pytest.mark.asyncio
    async def test_port_in_use(self, server_settings, store, llm_client):
        first = ChatServer(server_settings, store, llm_client)
        await first.start()
        try:
            taken = server_settings.model_copy(update={"port": first.port})
            with pytest.raises(BootstrapError):
                await ChatServer(taken, store, llm_client).start()
        finally:
            await first.close()
