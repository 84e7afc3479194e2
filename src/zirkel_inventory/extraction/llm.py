"""
Anthropic port.

Every model call goes through ``complete()``, which streams the response,
logs token usage and converts SDK errors into ``RemoteServiceError``
classified as RATE_LIMITED, TRANSIENT or PERMANENT. Rate-limited calls are
retried with backoff; everything else surfaces on the first failure.
"""

import logging
from typing import Any, Dict, List, Optional

import anthropic
from anthropic import Anthropic

from zirkel_inventory.core.config import RetryPolicy
from zirkel_inventory.core.errors import ErrorKind, RemoteServiceError, classify_status
from zirkel_inventory.core.retry import call_with_backoff

logger = logging.getLogger(__name__)


def classify_anthropic_error(error: Exception) -> ErrorKind:
    """Map an Anthropic SDK exception onto an ErrorKind."""
    if isinstance(error, anthropic.RateLimitError):
        return ErrorKind.RATE_LIMITED
    if isinstance(error, anthropic.APIConnectionError):
        return ErrorKind.TRANSIENT
    if isinstance(error, anthropic.APIStatusError):
        return classify_status(error.status_code)
    return ErrorKind.PERMANENT


def _message_text(message: Any) -> str:
    return "".join(
        block.text for block in message.content if getattr(block, "type", None) == "text"
    )


def _log_usage(purpose: str, model: str, message: Any) -> None:
    usage = getattr(message, "usage", None)
    if usage is None:
        return
    logger.info(
        f"Anthropic usage ({purpose}, {model}): "
        f"{usage.input_tokens} input + {usage.output_tokens} output tokens"
    )


def _stream_once(
    client: Anthropic,
    model: str,
    max_tokens: int,
    messages: List[Dict[str, Any]],
    system: Optional[str],
    purpose: str,
) -> str:
    kwargs: Dict[str, Any] = {"model": model, "max_tokens": max_tokens, "messages": messages}
    if system:
        kwargs["system"] = system

    try:
        # Streaming is required by the SDK for long max_tokens requests
        with client.messages.stream(**kwargs) as stream:
            message = stream.get_final_message()
    except anthropic.APIError as e:
        kind = classify_anthropic_error(e)
        status = getattr(e, "status_code", None)
        raise RemoteServiceError(f"Anthropic request failed ({purpose}): {e}", kind=kind, status_code=status)

    _log_usage(purpose, model, message)
    return _message_text(message)


def complete(
    client: Anthropic,
    model: str,
    max_tokens: int,
    messages: List[Dict[str, Any]],
    system: Optional[str] = None,
    purpose: str = "completion",
    policy: Optional[RetryPolicy] = None,
) -> str:
    """
    Send one message request and return the response text.

    Args:
        client: Anthropic API client
        model: Model ID
        max_tokens: Maximum response tokens
        messages: Messages API payload
        system: Optional system prompt
        purpose: Label used in usage logs
        policy: Backoff policy for rate-limited attempts

    Returns:
        Concatenated text blocks of the response

    Raises:
        RemoteServiceError: Classified failure (rate limits only after retries)
    """
    return call_with_backoff(
        _stream_once, client, model, max_tokens, messages, system, purpose, policy=policy
    )
