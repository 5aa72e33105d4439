"""
Agent wrapper that streams plain-text increments.

An Agent binds a name, instructions and a model, and pre-filters the
model output down to text deltas. Requests go through the Claude Agent SDK,
which uses the Claude Code CLI runtime and its authentication.

For Docker deployments, set CLAUDE_PROXY_URL to point to the host proxy:
    CLAUDE_PROXY_URL=http://host.docker.internal:8765
The proxy streams server-sent events (`data: ...` lines ending with
`data: [DONE]`) from its `/query/stream` endpoint.
"""

import json
import os
from typing import AsyncIterator, Optional

import aiohttp
from claude_agent_sdk import ClaudeAgentOptions, ResultMessage, query
from claude_agent_sdk.types import StreamEvent


class AgentStreamError(Exception):
    """The agent runtime reported a failed result."""


def _flatten_messages(messages: list[dict]) -> str:
    """Join user message contents into a single prompt."""
    parts = []
    for message in messages:
        if message.get("role", "user") != "user":
            continue
        content = message.get("content", "")
        if isinstance(content, list):
            content = "".join(
                block.get("text", "") for block in content if isinstance(block, dict)
            )
        parts.append(content)
    return "\n\n".join(parts)


def _text_delta(event: dict) -> Optional[str]:
    """Extract text from a raw `content_block_delta` stream event."""
    if event.get("type") != "content_block_delta":
        return None
    delta = event.get("delta") or {}
    if delta.get("type") != "text_delta":
        return None
    return delta.get("text", "")


class AgentStream:
    """Result of `Agent.stream()`: a single-pass sequence of text increments."""

    def __init__(self):
        self.chunks: Optional[AsyncIterator[str]] = None
        self.usage: dict = {}

    @property
    def text_stream(self) -> AsyncIterator[str]:
        if self.chunks is None:
            raise RuntimeError("AgentStream has no request bound")
        return self.chunks


class Agent:
    """
    Conversational agent bound to a model.

    Usage:
        agent = Agent(
            name="test-agent",
            instructions="You are a helpful assistant.",
            model="claude-3-5-sonnet-20241022",
        )
        stream = await agent.stream([{"role": "user", "content": "Hello"}])
        async for chunk in stream.text_stream:
            print(chunk, end="")
    """

    def __init__(
        self,
        name: str,
        instructions: str,
        model: str,
        proxy_url: Optional[str] = None,
    ):
        self.name = name
        self.instructions = instructions
        self.model = model
        self._proxy_url = proxy_url or os.environ.get("CLAUDE_PROXY_URL")

    async def stream(self, messages: list[dict]) -> AgentStream:
        """Bind one streaming request; it is sent when `text_stream` is first read."""
        prompt = _flatten_messages(messages)
        result = AgentStream()
        if self._proxy_url:
            result.chunks = self._stream_via_proxy(prompt)
        else:
            result.chunks = self._stream_direct(prompt, result)
        return result

    async def _stream_direct(self, prompt: str, result: AgentStream) -> AsyncIterator[str]:
        """Stream text deltas through the Claude Agent SDK."""
        options = ClaudeAgentOptions(
            model=self.model,
            system_prompt=self.instructions,
            allowed_tools=[],
            include_partial_messages=True,
        )

        async for message in query(prompt=prompt, options=options):
            if isinstance(message, StreamEvent):
                text = _text_delta(message.event)
                if text is not None:
                    yield text
            elif isinstance(message, ResultMessage):
                if message.usage:
                    result.usage = dict(message.usage)
                if message.is_error:
                    raise AgentStreamError(message.result or "agent run failed")

    async def _stream_via_proxy(self, prompt: str) -> AsyncIterator[str]:
        """Stream text chunks from the host proxy."""
        full_prompt = f"{self.instructions}\n\n{prompt}" if self.instructions else prompt

        async with aiohttp.ClientSession() as session:
            async with session.post(
                f"{self._proxy_url}/query/stream",
                json={"prompt": full_prompt, "model": self.model},
                timeout=aiohttp.ClientTimeout(total=120),
            ) as resp:
                resp.raise_for_status()
                async for line in resp.content:
                    line = line.decode().strip()
                    if not line.startswith("data: "):
                        continue
                    data = line[6:]
                    if data == "[DONE]":
                        break
                    try:
                        parsed = json.loads(data)
                    except json.JSONDecodeError:
                        # Raw text chunk
                        yield data
                        continue
                    if isinstance(parsed, dict) and "error" in parsed:
                        raise AgentStreamError(parsed["error"])
                    if isinstance(parsed, dict) and "content" in parsed:
                        yield parsed["content"]
                    elif isinstance(parsed, dict) and "result" in parsed:
                        yield parsed["result"]
                    else:
                        yield data
