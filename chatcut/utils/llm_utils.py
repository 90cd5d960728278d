"""LLM utility functions for consistent invocation and JSON extraction."""

import json
import re
from typing import Any, Dict, Optional

from langchain_core.messages import HumanMessage, SystemMessage


def extract_json_from_response(response_text: str) -> str:
    """
    Extract JSON from LLM response text.
    Handles multiple formats: ```json blocks, ``` blocks, or inline JSON.

    Args:
        response_text: Raw response text from LLM

    Returns:
        Extracted JSON string
    """
    text = response_text.strip()

    if "```json" in text:
        return text.split("```json")[1].split("```")[0].strip()

    if "```" in text:
        return text.split("```")[1].split("```")[0].strip()

    # Outermost object, possibly multiline
    json_match = re.search(r'\{.*\}', text, re.DOTALL)
    if json_match:
        return json_match.group()

    return text


def parse_json_response(response_text: str, fallback: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Parse JSON from LLM response with fallback handling.

    Args:
        response_text: Raw response text from LLM
        fallback: Optional fallback dict if parsing fails

    Returns:
        Parsed JSON dictionary

    Raises:
        ValueError: If parsing fails and no fallback provided
    """
    try:
        json_text = extract_json_from_response(response_text)
        return json.loads(json_text)
    except (json.JSONDecodeError, ValueError) as e:
        if fallback is not None:
            return fallback
        raise ValueError(f"Failed to parse JSON from response: {e}")


def response_text(response) -> str:
    """Flatten a chat model response's content into plain text."""
    content = getattr(response, "content", response)
    if isinstance(content, list):
        # Anthropic-style content blocks
        parts = []
        for block in content:
            if isinstance(block, dict):
                parts.append(block.get("text", ""))
            else:
                parts.append(str(block))
        content = "".join(parts)
    return str(content).strip()


def invoke_llm_with_json(
    llm,
    system_prompt: str,
    user_message: str,
    fallback: Optional[Dict[str, Any]] = None,
    verbose: bool = False
) -> Dict[str, Any]:
    """
    Invoke LLM and parse JSON response in one call.

    There is no retry here: a failed edit request is reported to the user,
    who can resend it.

    Args:
        llm: LLM instance (ChatOpenAI, ChatAnthropic, etc.)
        system_prompt: System prompt content
        user_message: User message content
        fallback: Optional fallback dict if parsing fails
        verbose: Whether to print debug info

    Returns:
        Parsed JSON dictionary
    """
    messages = [
        SystemMessage(content=system_prompt),
        HumanMessage(content=user_message)
    ]

    response = llm.invoke(messages)
    text = response_text(response)

    if verbose:
        print(f"[LLM RESPONSE] {text[:300]}...")

    return parse_json_response(text, fallback=fallback)


def create_llm(
    provider: str = "openai",
    model_name: str = "gpt-4o-mini",
    api_key: Optional[str] = None,
    timeout: Optional[float] = None
):
    """
    Create a LangChain chat model for the configured provider.

    Args:
        provider: "openai" or "anthropic"
        model_name: Model name for the provider
        api_key: Optional API key override (defaults to the provider's env var)
        timeout: Optional request timeout in seconds

    Returns:
        LLM instance

    Raises:
        ValueError: If the provider is unknown
    """
    if provider == "openai":
        from langchain_openai import ChatOpenAI
        kwargs: Dict[str, Any] = {"model": model_name, "temperature": 0, "timeout": timeout}
        if api_key:
            kwargs["api_key"] = api_key
        return ChatOpenAI(**kwargs)

    if provider == "anthropic":
        from langchain_anthropic import ChatAnthropic
        return ChatAnthropic(model=model_name, temperature=0, timeout=timeout)

    raise ValueError(f"Unknown LLM provider: {provider}")
