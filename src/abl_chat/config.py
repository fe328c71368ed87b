"""Client configuration."""

import tempfile
from pathlib import Path

from pydantic import BaseModel, Field

DEFAULT_MODEL = "qwen-plus"
DEFAULT_ENDPOINT = "https://dashscope.aliyuncs.com/compatible-mode/v1/chat/completions"
DEFAULT_TIMEOUT = 300


def default_history_file() -> Path:
    return Path(tempfile.gettempdir()) / "abls_history.txt"


class ClientConfig(BaseModel):
    """Settings built once at startup and passed to the session and transport."""

    api_key: str = Field(min_length=1)
    model: str = DEFAULT_MODEL
    endpoint: str = DEFAULT_ENDPOINT
    timeout: float = DEFAULT_TIMEOUT
    history_file: Path = Field(default_factory=default_history_file)
    command: str | None = None
    stream: bool = False
    debug: bool = False

    @property
    def single_shot(self) -> bool:
        return bool(self.command)
