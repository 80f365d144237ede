"""Turning a :class:`~qai.session.QueryRequest` into model output.

This is what ``qai query`` runs.  The system prompt is rendered with
the shell, OS, working directory and the modern tools known to be
installed, then the matching response format is appended.
"""

from __future__ import annotations

import logging
from typing import Optional

from .api import OpenAIClient
from .config import Config
from .errors import ApiError
from .prompt import (
    PromptContext,
    load_system_prompt,
    multi_instructions,
    render_prompt,
    single_instructions,
)
from .response import parse_response, presentation_order
from .session import QueryRequest
from .tools import ToolCache


logger = logging.getLogger(__name__)


def build_system_prompt(request: QueryRequest, cache: Optional[ToolCache] = None) -> str:
    context = PromptContext(tools=cache.available_tools_for_prompt() if cache else "")
    if request.cwd:
        context.cwd = request.cwd
    if request.context.get("shell"):
        context.shell = request.context["shell"]
    prompt = render_prompt(load_system_prompt(), context)
    if request.multi:
        return prompt + multi_instructions(request.count)
    return prompt + single_instructions()


def run_query(
    request: QueryRequest,
    config: Config,
    client: Optional[OpenAIClient] = None,
    cache: Optional[ToolCache] = None,
) -> str:
    """Ask the model for command(s).

    In multi mode the raw, MODERN:/STANDARD: tagged reply is returned.
    In single mode only the first command of the reply is returned.

    :raises ApiError: If the request fails or the model returns nothing.
    """
    logger.info("Processing query: %s", request.text)
    if client is None:
        client = OpenAIClient.from_config(config)
    system_prompt = build_system_prompt(request, cache)

    if request.multi:
        result = client.query_multi(system_prompt, request.text, request.count)
    else:
        commands = presentation_order(parse_response(client.query(system_prompt, request.text), multi=False))
        result = commands[0] if commands else ""

    if not result.strip():
        raise ApiError("Model returned no output")
    logger.info("Query successful, result: %s", result)
    return result
