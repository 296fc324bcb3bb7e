from __future__ import annotations

import logging
import textwrap
from typing import Any, Callable

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_openai import ChatOpenAI
from langgraph.errors import GraphRecursionError
from langgraph.prebuilt import create_react_agent

from app.config import Settings
from app.tool_client import QUERY_TOOL_NAME, SCHEMA_TOOL_NAME, open_remote_tools

logger = logging.getLogger(__name__)


_SHARED_STEPS = f"""\
1. FIRST call the {SCHEMA_TOOL_NAME} tool to retrieve all available tables and their schemas
2. Analyze the table schemas to understand relationships and available columns
3. {{convert_step}}
4. Consider if JOINs are needed based on the relationships between tables
5. Execute the SQL query using the {QUERY_TOOL_NAME} tool
6. If the query fails, fix any table or column name issues and retry once
7. When the query succeeds, return a JSON object in this exact format:
{{envelope}}
8. If all attempts fail, return: {{{{"success":false,"error":"error message"}}}}

IMPORTANT: Output only the JSON object, no markdown or additional text."""

_TABLE_ENVELOPE = textwrap.indent(
    """\
{
  "success": true,
  "type": "table",
  "data": [...rows from result...],
  "columns": [...column names...]
}""",
    "    ",
)

_CHART_ENVELOPE = textwrap.indent(
    """\
{
  "success": true,
  "type": "chart",
  "data": [...rows from result...],
  "columns": [...column names...],
  "chartType": "bar" | "line" | "pie",
  "xAxis": "column_name_for_x_axis",
  "yAxis": "column_name_for_y_axis"
}""",
    "    ",
)

TABLE_SYSTEM_PROMPT = "You are an SQL query assistant. Follow these steps exactly in order:\n\n" + _SHARED_STEPS.format(
    convert_step="Convert the user's request into proper SQL, using the correct table and column names based on step 1",
    envelope=_TABLE_ENVELOPE,
)

CHART_SYSTEM_PROMPT = (
    "You are an SQL query assistant specialized in generating data for charts. "
    "Follow these steps exactly in order:\n\n"
    + _SHARED_STEPS.format(
        convert_step="Convert the user's request into proper SQL, focusing on getting data suitable for visualization",
        envelope=_CHART_ENVELOPE,
    )
)


class AgentStepLimitError(RuntimeError):
    """Raised when the agent uses up its model-call budget without answering."""


def build_system_prompt(view_type: str) -> str:
    return CHART_SYSTEM_PROMPT if view_type == "chart" else TABLE_SYSTEM_PROMPT


def recursion_limit_for(max_steps: int) -> int:
    # one model node plus one tool node per step, plus the final answer
    return 2 * int(max_steps) + 1


def extract_final_text(messages: list[BaseMessage]) -> str:
    last_ai = next((m for m in reversed(messages or []) if isinstance(m, AIMessage)), None)
    if last_ai is None:
        return ""

    content = last_ai.content
    if isinstance(content, str):
        return content.strip()

    parts: list[str] = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(str(block.get("text", "")))
    return "".join(parts).strip()


class QueryAgentService:
    """Answers a database question with a tool-calling agent.

    Every call opens a fresh session to the remote tool server, lets the model
    inspect the schema and run SQL, and returns the model's final text as-is.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        client: Any | None = None,
        tool_session: Callable[[str], Any] = open_remote_tools,
        agent_builder: Callable[..., Any] = create_react_agent,
    ):
        self.settings = settings
        self.client = client or ChatOpenAI(
            base_url=settings.openai_base_url,
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            temperature=settings.temperature,
        )
        self._tool_session = tool_session
        self._agent_builder = agent_builder

    async def run(self, prompt: str, view_type: str = "table") -> str:
        system_prompt = build_system_prompt(view_type)
        recursion_limit = recursion_limit_for(self.settings.agent_max_steps)

        async with self._tool_session(self.settings.mcp_server_url) as tools:
            agent = self._agent_builder(self.client, tools, prompt=system_prompt)
            try:
                result = await agent.ainvoke(
                    {"messages": [HumanMessage(content=prompt)]},
                    config={"recursion_limit": recursion_limit},
                )
            except GraphRecursionError as exc:
                raise AgentStepLimitError(
                    f"Agent did not finish within {self.settings.agent_max_steps} steps."
                ) from exc

        messages = result.get("messages", []) if isinstance(result, dict) else []
        text = extract_final_text(messages)
        logger.info("Agent finished: view=%s messages=%d answer_chars=%d", view_type, len(messages), len(text))
        return text
