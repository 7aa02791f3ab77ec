"""Quiz tool proxy with a local fallback when the MCQMCP server is down."""
import json
import re
from contextlib import AsyncExitStack
from typing import Any, Dict, Optional

import anthropic
import httpx
import structlog
from anthropic import AsyncAnthropic

from chat_relay.core.config import Settings
from chat_relay.core.errors import ValidationError
from chat_relay.providers.registry import CLAUDE

logger = structlog.get_logger()

_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)

QUESTION_PROMPT = """Generate a {difficulty} multiple choice question to test understanding of "{objective}".

Return ONLY valid JSON in this exact format:
{{
  "question": "The question text",
  "options": ["Option A", "Option B", "Option C", "Option D"],
  "correct_answer": "The correct option exactly as written in options"
}}

Make the question specific and educational. The incorrect options should be plausible but clearly wrong to someone who understands the concept."""


def text_content(value: Any) -> Dict[str, Any]:
    """Wrap a tool result in the MCP ``content`` envelope the UI expects."""
    return {
        "content": [
            {"type": "text", "text": json.dumps(value, separators=(",", ":"))}
        ]
    }


def generic_question(objective: str, *, after_failure: bool = False) -> Dict[str, Any]:
    if after_failure:
        return {
            "question": f"What is a key characteristic of {objective}?",
            "options": [
                "It simplifies complex operations",
                "It improves code organization",
                "It enables better abstraction",
                "It depends on the specific use case",
            ],
            "correct_answer": "It depends on the specific use case",
        }
    return {
        "question": f"Which of the following best describes {objective}?",
        "options": [
            "A fundamental programming concept",
            "A design pattern for software architecture",
            "A method for organizing code",
            "All of the above could apply",
        ],
        "correct_answer": "All of the above could apply",
    }


class McqService:
    def __init__(
        self,
        settings: Settings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        anthropic_client: Optional[AsyncAnthropic] = None,
    ):
        self.settings = settings
        self.transport = transport
        self._anthropic_client = anthropic_client

    async def call(self, tool: str, args: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._call_remote(tool, args)
        if response is not None and response.is_success:
            result = response.json()
            if isinstance(result, dict) and result.get("success") and result.get("result"):
                return text_content(result["result"])
            return result

        logger.info("mcqmcp_unavailable_using_fallback", tool=tool)
        if tool == "mcq_generate":
            return await self.generate_question(args)
        if tool == "mcq_record":
            return text_content(record_answer(args))
        if tool == "mcq_get_status":
            return text_content(
                {
                    "user_id": args.get("user_id"),
                    "objective": args.get("objective") or None,
                    "objectives": [],
                    "status": "no_data",
                }
            )
        raise ValidationError("Unknown tool")

    async def _call_remote(self, tool: str, args: Dict[str, Any]) -> Optional[httpx.Response]:
        url = f"{self.settings.MCQMCP_URL.rstrip('/')}/api/tools/call"
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.MCQ_TIMEOUT_SECONDS, transport=self.transport
            ) as client:
                return await client.post(url, json={"name": tool, "arguments": args})
        except httpx.HTTPError as e:
            logger.warning("mcqmcp_request_failed", tool=tool, error=str(e))
            return None

    async def _get_client(self, stack: AsyncExitStack) -> AsyncAnthropic:
        if self._anthropic_client is not None:
            return self._anthropic_client
        client = AsyncAnthropic(
            api_key=self.settings.ANTHROPIC_API_KEY,
            base_url=self.settings.ANTHROPIC_BASE_URL,
            max_retries=0,
        )
        return await stack.enter_async_context(client)

    async def generate_question(self, args: Dict[str, Any]) -> Dict[str, Any]:
        objective = args.get("objective", "")
        difficulty = args.get("difficulty") or "medium"

        if not self.settings.ANTHROPIC_API_KEY:
            return text_content(generic_question(objective))

        try:
            async with AsyncExitStack() as stack:
                client = await self._get_client(stack)
                message = await client.messages.create(
                    model=CLAUDE.fast_model,
                    max_tokens=500,
                    messages=[
                        {
                            "role": "user",
                            "content": QUESTION_PROMPT.format(
                                difficulty=difficulty, objective=objective
                            ),
                        }
                    ],
                )
            text = message.content[0].text if message.content else ""
            match = _OBJECT_RE.search(text)
            if match is None:
                raise ValueError("Could not parse question from response")
            return text_content(json.loads(match.group(0)))
        except (anthropic.APIError, ValueError, AttributeError) as e:
            logger.warning("mcq_generation_failed", objective=objective, error=str(e))
            return text_content(generic_question(objective, after_failure=True))


def record_answer(args: Dict[str, Any]) -> Dict[str, Any]:
    is_correct = args.get("selected_answer") == args.get("correct_answer")
    return {
        "was_correct": is_correct,
        "correct": 1 if is_correct else 0,
        "total": 1,
        "mastery": 1.0 if is_correct else 0.0,
    }
