from __future__ import annotations

import os
from typing import Optional, List, Dict, Any

from dotenv import load_dotenv
from openai import OpenAI

from mcpflow.config import get_model_name

load_dotenv()


class LLMClient:
    """
    Vendor-agnostic LLM wrapper (currently OpenAI-only).

    Parameters
    ----------
    model_name : str | None, optional
        Identifier of the model to use.  If *None*, the configured
        ``model`` setting is used.
    system_prompt : str | None, optional
        Message injected as the first *system* role.
    provider : {'openai'}, optional
        LLM provider.  Additional providers can be added later.
    """

    def __init__(
        self,
        model_name: Optional[str] = None,
        *,
        system_prompt: Optional[str] = None,
        provider: str = "openai",
    ) -> None:
        self.provider = provider.lower()
        self.model_name = model_name or get_model_name()
        self.system_prompt = system_prompt
        self.client: OpenAI | None = None
        self._conversation_history: List[Dict[str, Any]] = []

    # public API
    def generate(self, prompt: str) -> str:
        """
        Return the model's answer to *prompt*.

        Parameters
        ----------
        prompt : str
            The user message.

        Returns
        -------
        str
            The model's response.
        """
        if self.client is None:
            self._set_client()

        completion = self.client.chat.completions.create(
            model=self.model_name,
            messages=self._initial_messages(prompt),
        )

        return (completion.choices[0].message.content or "").strip()

    def generate_with_tools(
        self,
        prompt: str,
        tools: List[Dict[str, Any]],
        *,
        tool_choice: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Generate a response with tool calling support.

        The exchange is kept in the conversation history so that
        :meth:`continue_conversation` can answer with the tool results.

        Parameters
        ----------
        prompt : str
            The user message.
        tools : List[Dict[str, Any]]
            List of tool definitions in OpenAI format.
        tool_choice : str, optional
            Whether to force tool usage ("auto", "none", or specific tool name).

        Returns
        -------
        Dict[str, Any]
            Response containing either text content or tool calls.
        """
        if self.client is None:
            self._set_client()

        messages = self._initial_messages(prompt)

        request_params = {
            "model": self.model_name,
            "messages": messages,
            "tools": tools,
        }

        if tool_choice:
            request_params["tool_choice"] = tool_choice

        completion = self.client.chat.completions.create(**request_params)

        message = completion.choices[0].message

        result = {
            "content": message.content.strip() if message.content else "",
            "tool_calls": [],
            "finish_reason": completion.choices[0].finish_reason
        }

        # Parse tool calls if present
        if getattr(message, 'tool_calls', None):
            for tool_call in message.tool_calls:
                result["tool_calls"].append({
                    "id": tool_call.id,
                    "type": tool_call.type,
                    "function": {
                        "name": tool_call.function.name,
                        "arguments": tool_call.function.arguments
                    }
                })

        assistant_turn: Dict[str, Any] = {"role": "assistant", "content": result["content"]}
        if result["tool_calls"]:
            assistant_turn["tool_calls"] = result["tool_calls"]
        self._conversation_history = messages + [assistant_turn]

        return result

    def continue_conversation(self, tool_results: List[Dict[str, Any]]) -> str:
        """
        Continue conversation after tool calls with their results.

        Parameters
        ----------
        tool_results : List[Dict[str, Any]]
            List of ``{"tool_call_id", "result"}`` entries.

        Returns
        -------
        str
            The model's response to the tool results.
        """
        if self.client is None:
            self._set_client()

        for tool_result in tool_results:
            self._conversation_history.append({
                "role": "tool",
                "tool_call_id": tool_result["tool_call_id"],
                "content": str(tool_result["result"])
            })

        completion = self.client.chat.completions.create(
            model=self.model_name,
            messages=self._conversation_history,
        )

        return (completion.choices[0].message.content or "").strip()

    def set_system_prompt(self, system_prompt: str) -> None:
        """Overwrite the existing system prompt."""
        self.system_prompt = system_prompt

    def reset_conversation(self) -> None:
        """Clear conversation history."""
        self._conversation_history = []

    # private helpers
    def _initial_messages(self, prompt: str) -> List[Dict[str, Any]]:
        messages = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.append({"role": "user", "content": prompt})
        return messages

    def _set_client(self) -> None:
        """Instantiate the provider SDK client (lazy)."""
        if self.provider == "openai":
            self.client = OpenAI(api_key=os.getenv("OPENAI_API_KEY"))
        else:
            raise ValueError(f"Unknown provider '{self.provider}'")
