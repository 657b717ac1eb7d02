"""Google Gemini gateway implementation.

Uses the official Google GenAI SDK async chat sessions.
Reference: https://github.com/googleapis/python-genai

The dialogue enables three tool families at creation time: Google Search
grounding, server-side code execution and the declared function tools.
"""

import asyncio
from collections.abc import Sequence
from typing import Any

from google import genai
from google.genai import types

from ...config import DEFAULT_MODEL
from ...errors import ConfigurationError, EncodingError, SessionError, TransportError
from ...workspace.models import Attachment, WebSource
from ..base import ModelGateway
from ..models import (
    CodeExecutionResult,
    ExecutableCode,
    GroundingEntry,
    ModelResponse,
    ResponsePart,
    ToolCall,
    ToolResult,
)

# Default safety settings - relaxed so shell commands and markup are not blocked
DEFAULT_SAFETY_SETTINGS = [
    types.SafetySetting(category="HARM_CATEGORY_HARASSMENT", threshold="BLOCK_ONLY_HIGH"),
    types.SafetySetting(category="HARM_CATEGORY_HATE_SPEECH", threshold="BLOCK_ONLY_HIGH"),
    types.SafetySetting(category="HARM_CATEGORY_SEXUALLY_EXPLICIT", threshold="BLOCK_ONLY_HIGH"),
    types.SafetySetting(category="HARM_CATEGORY_DANGEROUS_CONTENT", threshold="BLOCK_ONLY_HIGH"),
]


def _enum_value(value: Any, default: str) -> str:
    if value is None:
        return default
    return str(getattr(value, "value", value))


def to_schema(spec: dict[str, Any]) -> types.Schema:
    """Convert a JSON-schema style parameter dict to a Gemini Schema."""
    properties = {
        name: to_schema(prop)
        for name, prop in spec.get("properties", {}).items()
    }
    return types.Schema(
        type=types.Type(spec.get("type", "string").upper()),
        description=spec.get("description"),
        properties=properties or None,
        required=spec.get("required") or None,
    )


def to_function_declaration(spec: dict[str, Any]) -> types.FunctionDeclaration:
    """Convert a tool spec (name, description, parameters) to a declaration."""
    return types.FunctionDeclaration(
        name=spec["name"],
        description=spec.get("description"),
        parameters=to_schema(spec["parameters"]) if spec.get("parameters") else None,
    )


def to_model_response(response: types.GenerateContentResponse, model: str = "") -> ModelResponse:
    """Convert a Gemini response to the provider-neutral ModelResponse.

    Only the first candidate is read.
    """
    parts: list[ResponsePart] = []
    grounding: list[GroundingEntry] = []

    candidate = response.candidates[0] if response.candidates else None
    if candidate is not None:
        if candidate.content and candidate.content.parts:
            for part in candidate.content.parts:
                parts.append(_convert_part(part))

        metadata = candidate.grounding_metadata
        if metadata and metadata.grounding_chunks:
            for chunk in metadata.grounding_chunks:
                web = None
                if chunk.web is not None:
                    web = WebSource(uri=chunk.web.uri or "", title=chunk.web.title or "")
                grounding.append(GroundingEntry(web=web))

    usage = None
    if response.usage_metadata:
        usage = {
            "prompt_tokens": response.usage_metadata.prompt_token_count or 0,
            "completion_tokens": response.usage_metadata.candidates_token_count or 0,
            "total_tokens": response.usage_metadata.total_token_count or 0,
        }

    return ModelResponse(parts=parts, grounding=grounding, model=model, usage=usage)


def _convert_part(part: types.Part) -> ResponsePart:
    function_call = None
    if part.function_call is not None:
        function_call = ToolCall(
            name=part.function_call.name or "unknown_tool",
            args=dict(part.function_call.args or {}),
            id=part.function_call.id,
        )

    executable_code = None
    if part.executable_code is not None:
        executable_code = ExecutableCode(
            code=part.executable_code.code or "",
            language=_enum_value(part.executable_code.language, "PYTHON"),
        )

    code_result = None
    if part.code_execution_result is not None:
        code_result = CodeExecutionResult(
            output=part.code_execution_result.output or "",
            outcome=_enum_value(part.code_execution_result.outcome, "OUTCOME_OK"),
        )

    return ResponsePart(
        text=part.text or None,
        function_call=function_call,
        executable_code=executable_code,
        code_execution_result=code_result,
    )


def to_function_response_part(result: ToolResult) -> types.Part:
    """Build the function-response part that answers one tool call."""
    return types.Part(
        function_response=types.FunctionResponse(
            id=result.call_id,
            name=result.name,
            response={"result": result.result},
        )
    )


async def encode_attachment(attachment: Attachment) -> types.Part:
    """Read an attachment and wrap it as an inline-data part.

    The SDK transmits inline bytes base64-encoded.

    Raises:
        EncodingError: If the payload cannot be read
    """
    try:
        data = await attachment.read()
    except (OSError, ValueError) as e:
        raise EncodingError(attachment.name, str(e)) from e
    return types.Part.from_bytes(data=data, mime_type=attachment.mime_type)


class GeminiGateway(ModelGateway):
    """Google Gemini gateway implementation.

    Hidden design decisions:
    - Lazy client and chat session creation
    - Tool declaration format conversion
    - Attachment inline encoding
    - Relaxed safety settings
    """

    def __init__(
        self,
        api_key: str | None,
        model: str = DEFAULT_MODEL,
        system_instruction: str | None = None,
        tools: Sequence[dict[str, Any]] = (),
        enable_search: bool = True,
        enable_code_execution: bool = True,
        **client_kwargs: Any
    ):
        """Initialize the Gemini gateway.

        Args:
            api_key: Google AI API key (checked on first send)
            model: Model name (gemini-2.5-flash, gemini-2.5-pro, ...)
            system_instruction: System instruction for the dialogue
            tools: Tool specs ({name, description, parameters}) to declare
            enable_search: Enable Google Search grounding
            enable_code_execution: Enable server-side code execution
            **client_kwargs: Additional kwargs for Client
        """
        super().__init__()
        self._api_key = api_key
        self._model = model
        self._system_instruction = system_instruction
        self._tools = list(tools)
        self._enable_search = enable_search
        self._enable_code_execution = enable_code_execution
        self._client_kwargs = client_kwargs
        self._client: genai.Client | None = None
        self._chat: Any | None = None

    @property
    def model(self) -> str:
        """Get the model name."""
        return self._model

    @property
    def has_session(self) -> bool:
        return self._chat is not None

    def _build_config(self) -> types.GenerateContentConfig:
        tools: list[types.Tool] = []
        if self._enable_search:
            tools.append(types.Tool(google_search=types.GoogleSearch()))
        if self._enable_code_execution:
            tools.append(types.Tool(code_execution=types.ToolCodeExecution()))
        if self._tools:
            tools.append(types.Tool(
                function_declarations=[to_function_declaration(spec) for spec in self._tools]
            ))
        return types.GenerateContentConfig(
            system_instruction=self._system_instruction,
            safety_settings=DEFAULT_SAFETY_SETTINGS,
            tools=tools or None,
        )

    def _start_chat(self) -> None:
        if not self._api_key:
            raise ConfigurationError("Gemini API key not found in environment")
        if self._client is None:
            self._client = genai.Client(api_key=self._api_key, **self._client_kwargs)
        self._chat = self._client.aio.chats.create(model=self._model, config=self._build_config())
        self._debug("info", "LLM", f"Chat session opened ({self._model}, {len(self._tools)} tools)")

    async def _send_parts(self, parts: list[types.Part]) -> ModelResponse:
        try:
            response = await self._chat.send_message(parts)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._debug("error", "LLM", f"Gemini API error: {e}")
            raise TransportError(f"Gemini request failed: {e}") from e

        converted = to_model_response(response, model=self._model)
        self._debug(
            "debug",
            "LLM",
            f"Response received ({len(converted.parts)} parts, {len(converted.grounding)} grounding entries)"
        )
        return converted

    async def send(
        self,
        text: str,
        attachments: Sequence[Attachment] = ()
    ) -> ModelResponse:
        if self._chat is None:
            self._start_chat()

        parts: list[types.Part] = []
        if text:
            parts.append(types.Part(text=text))
        if attachments:
            self._debug("debug", "LLM", f"Encoding {len(attachments)} attachment(s)")
            parts.extend(await asyncio.gather(*(encode_attachment(a) for a in attachments)))

        self._debug("info", "LLM", f"Sending user turn ({len(parts)} parts)")
        return await self._send_parts(parts)

    async def send_tool_results(self, results: Sequence[ToolResult]) -> ModelResponse:
        if self._chat is None:
            raise SessionError("No active chat session")

        self._debug("info", "LLM", f"Sending {len(results)} tool result(s)")
        return await self._send_parts([to_function_response_part(r) for r in results])

    async def close(self) -> None:
        """Close the Gemini client.

        Note: The Google GenAI client doesn't require explicit closing,
        but we implement this for interface consistency.
        """
        pass
