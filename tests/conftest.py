import pytest

from app.config import Settings


def build_settings(**overrides) -> Settings:
    values = dict(
        openai_api_key="sk-test",
        openai_base_url=None,
        openai_model="gpt-4o-mini",
        temperature=0.0,
        mcp_server_url="http://tools.local/sse",
        agent_max_steps=10,
        api_host="127.0.0.1",
        api_port=8000,
        api_url="http://127.0.0.1:8000",
        request_timeout=5,
        chart_output_dir="charts",
        log_level="INFO",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    return build_settings()
