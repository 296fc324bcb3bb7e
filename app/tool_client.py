from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from langchain_core.tools import BaseTool
from langchain_mcp_adapters.tools import load_mcp_tools
from mcp import ClientSession
from mcp.client.sse import sse_client

logger = logging.getLogger(__name__)

SCHEMA_TOOL_NAME = "getTablesInfoPostgres"
QUERY_TOOL_NAME = "queryDatabasePostgres"


@asynccontextmanager
async def open_remote_tools(url: str) -> AsyncIterator[list[BaseTool]]:
    """Connect to the database tool server over SSE and yield its tools.

    The tools are bound to the live session, so they must only be invoked
    inside the ``async with`` block. The connection is closed on exit.
    """
    async with sse_client(url) as (read_stream, write_stream):
        async with ClientSession(read_stream, write_stream) as session:
            await session.initialize()
            tools = await load_mcp_tools(session)
            logger.debug("Loaded %d remote tools from %s: %s", len(tools), url, [t.name for t in tools])

            missing = {SCHEMA_TOOL_NAME, QUERY_TOOL_NAME} - {t.name for t in tools}
            if missing:
                logger.warning("Tool server %s does not advertise: %s", url, ", ".join(sorted(missing)))

            yield tools
