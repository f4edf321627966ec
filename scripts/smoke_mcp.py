"""
Smoke script for MCP reachability.

It performs:
 1) Spawns the WHOOP MCP server over stdio
 2) Lists tools
 3) Calls whoop_auth_url (needs WHOOP_CLIENT_ID)
 4) Calls whoop_get_profile, which succeeds only once tokens are stored
"""

from __future__ import annotations

import asyncio
import json
import os
import sys
from pathlib import Path
from typing import Any

from mcp import ClientSession
from mcp.client.stdio import StdioServerParameters, stdio_client

_REPO_ROOT = Path(__file__).resolve().parents[1]


def _pretty(text: str) -> str:
    try:
        return json.dumps(json.loads(text), indent=2, ensure_ascii=False)
    except ValueError:
        return text


def _first_text(res: Any) -> str:
    content = getattr(res, "content", None) or []
    return getattr(content[0], "text", "") if content else ""


async def demo_mcp() -> bool:
    module = os.getenv("WHOOP_SERVER_MODULE", "whoop_mcp.server")
    python_cmd = os.getenv("MCP_PYTHON") or sys.executable

    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(p for p in (str(_REPO_ROOT / "src"), env.get("PYTHONPATH", "")) if p)

    print(f"[smoke] Server module: {module}")
    print(f"[smoke] Python: {python_cmd}")

    server = StdioServerParameters(command=python_cmd, args=["-m", module], env=env)
    ok = True

    async with stdio_client(server) as (read, write):
        async with ClientSession(read, write) as session:
            await session.initialize()

            tools = await session.list_tools()
            names = [t.name for t in tools.tools]
            print(f"[smoke] {len(names)} tools: {', '.join(names)}")

            res = await session.call_tool("whoop_auth_url", {})
            print(f"[smoke] whoop_auth_url (isError={res.isError}):\n{_pretty(_first_text(res))}")
            ok = ok and not res.isError

            res = await session.call_tool("whoop_get_profile", {})
            print(f"[smoke] whoop_get_profile (isError={res.isError}):\n{_pretty(_first_text(res))}")

    return ok


def main() -> int:
    return 0 if asyncio.run(demo_mcp()) else 1


if __name__ == "__main__":
    raise SystemExit(main())
