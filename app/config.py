from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv


DEFAULT_MCP_SERVER_URL = "https://db-query-mcp-server.akram-ansari-c95.workers.dev/sse"
LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


class ConfigError(ValueError):
    """Raised when required environment configuration is invalid."""


def _first_env(*keys: str, default: str | None = None) -> str | None:
    for key in keys:
        value = os.getenv(key)
        if value is not None and value != "":
            return value
    return default


def _int_env(keys: tuple[str, ...], default: int) -> int:
    raw = _first_env(*keys)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"Environment variable {keys[0]} must be an integer.") from exc


def _float_env(keys: tuple[str, ...], default: float) -> float:
    raw = _first_env(*keys)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"Environment variable {keys[0]} must be a number.") from exc


@dataclass(slots=True)
class Settings:
    openai_api_key: str | None
    openai_base_url: str | None
    openai_model: str
    temperature: float
    mcp_server_url: str
    agent_max_steps: int
    api_host: str
    api_port: int
    api_url: str
    request_timeout: int
    chart_output_dir: str
    log_level: str

    @classmethod
    def load(cls) -> "Settings":
        api_host = _first_env("API_HOST", default="127.0.0.1")
        api_port = _int_env(("API_PORT",), default=8000)
        agent_max_steps = _int_env(("AGENT_MAX_STEPS",), default=10)
        if agent_max_steps < 1:
            raise ConfigError("Environment variable AGENT_MAX_STEPS must be at least 1.")

        return cls(
            openai_api_key=_first_env("OPENAI_API_KEY"),
            openai_base_url=_first_env("OPENAI_BASE_URL", "LLM_BASE_URL"),
            openai_model=_first_env("OPENAI_MODEL", "LLM_MODEL", default="gpt-4o-mini"),
            temperature=_float_env(("OPENAI_TEMPERATURE", "LLM_TEMPERATURE"), default=0.0),
            mcp_server_url=_first_env("MCP_SERVER_URL", "MCP_SSE_URL", default=DEFAULT_MCP_SERVER_URL),
            agent_max_steps=agent_max_steps,
            api_host=api_host,
            api_port=api_port,
            api_url=(_first_env("API_URL") or f"http://{api_host}:{api_port}").rstrip("/"),
            request_timeout=_int_env(("REQUEST_TIMEOUT",), default=120),
            chart_output_dir=_first_env("CHART_OUTPUT_DIR", default="charts"),
            log_level=(_first_env("LOG_LEVEL", default="INFO") or "INFO").upper(),
        )

    def require_llm(self) -> None:
        if not self.openai_api_key:
            raise ConfigError("Missing required environment variables: OPENAI_API_KEY")


def load_settings(env_file: str | None = ".env") -> Settings:
    load_dotenv(dotenv_path=env_file)
    return Settings.load()


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger().setLevel(level)
