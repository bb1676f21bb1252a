"""telllm - chat with an LLM over a raw line-oriented socket."""

__version__ = "0.1.0"
