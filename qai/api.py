"""Chat-completion client.

qai talks to any OpenAI compatible endpoint.  Two calls are used:

* ``POST {api_base}/chat/completions`` to turn a request into one or
  more shell commands;
* ``GET {api_base}/models`` as a cheap reachability and credential
  probe.  It authenticates but does not consume tokens, which makes it
  suitable for running every time AI mode is entered.

Failures of the first call raise :class:`~qai.errors.ApiError`; the
probe raises :class:`~qai.errors.ApiValidationError` with a ``kind``
describing what went wrong.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import requests

from .config import Config
from .errors import ApiError, ApiValidationError


logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 10.0


def _auth_headers(api_key: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {api_key}"}


class OpenAIClient:
    """Minimal client for an OpenAI compatible chat API."""

    def __init__(
        self,
        api_key: str,
        api_base: str,
        model: str,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.api_base = api_base.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config: Config) -> "OpenAIClient":
        """Create a client from configuration.

        :raises ApiError: If no API key is available.
        """
        api_key = config.get_api_key()
        if not api_key:
            raise ApiError(
                "No API key found. Set QAI_API_KEY environment variable or add "
                "api_key to ~/.config/qai/qai.yml"
            )
        return cls(api_key, config.api_base, config.model, timeout=config.timeout)

    def validate_api_key(self) -> None:
        """Probe ``GET /models``; raise :class:`ApiValidationError` on failure."""
        _probe_models(self.session, self.api_base, self.api_key, PROBE_TIMEOUT)

    def query(self, system_prompt: str, user_query: str) -> str:
        return self._query(system_prompt, user_query)

    def query_multi(self, system_prompt: str, user_query: str, count: int) -> str:
        # The count is carried by the system prompt; the request is identical.
        logger.debug("Requesting up to %d commands", count)
        return self._query(system_prompt, user_query)

    def _query(self, system_prompt: str, user_query: str) -> str:
        url = f"{self.api_base}/chat/completions"
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_query},
            ],
            "temperature": 0.0,
            "max_tokens": 500,
        }
        logger.debug("Sending request to: %s (model %s)", url, self.model)
        logger.debug("User query: %s", user_query)
        headers = _auth_headers(self.api_key)
        headers["Content-Type"] = "application/json"
        try:
            response = self.session.post(url, headers=headers, json=payload, timeout=self.timeout)
        except requests.Timeout as exc:
            raise ApiError(f"Request to {url} timed out after {self.timeout:g}s") from exc
        except requests.RequestException as exc:
            raise ApiError(f"Failed to send request to OpenAI API: {exc}") from exc

        body = response.text
        logger.debug("Response status: %s", response.status_code)
        logger.debug("Response body: %s", body)

        if not response.ok:
            message = _error_message(body)
            if message:
                raise ApiError(f"OpenAI API error: {message}")
            raise ApiError(f"OpenAI API error ({response.status_code}): {body}")

        try:
            data = json.loads(body)
        except ValueError as exc:
            raise ApiError(f"Failed to parse OpenAI response: {exc}") from exc

        choices: List[Dict[str, Any]] = []
        if isinstance(data, dict):
            choices = data.get("choices") or []
        if not choices:
            raise ApiError("No response from OpenAI")
        try:
            content = choices[0]["message"]["content"]
        except (KeyError, TypeError) as exc:
            raise ApiError(f"Failed to parse OpenAI response: missing {exc}") from exc
        return (content or "").strip()


def _error_message(body: str) -> Optional[str]:
    try:
        data = json.loads(body)
    except ValueError:
        return None
    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        message = data["error"].get("message")
        if isinstance(message, str):
            return message
    return None


def _probe_models(session: requests.Session, api_base: str, api_key: str, timeout: float) -> None:
    url = f"{api_base.rstrip('/')}/models"
    try:
        response = session.get(url, headers=_auth_headers(api_key), timeout=timeout)
    except requests.RequestException as exc:
        raise ApiValidationError("network", str(exc)) from exc

    status = response.status_code
    if status == 200:
        return
    if status == 401:
        raise ApiValidationError("invalid_key", "API key is invalid or revoked")
    if status == 403:
        raise ApiValidationError("access_denied", "API key lacks required permissions")
    raise ApiValidationError("unexpected", f"Unexpected response: {status}")


def validate_api_key_from_config(config: Config, session: Optional[requests.Session] = None) -> None:
    """Run the credential probe for ``config``.

    :raises ApiValidationError: ``not_configured`` when no key is set,
      otherwise whatever the probe reports.
    """
    api_key = config.get_api_key()
    if not api_key:
        raise ApiValidationError("not_configured")
    _probe_models(session or requests.Session(), config.api_base, api_key, PROBE_TIMEOUT)
