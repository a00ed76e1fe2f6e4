"""
Utility functions for SDR Pulse.
Atomic file writes, retry logic, HTTP helpers and Slack delivery.

Usage:
    from scripts.lib.utils import atomic_write_json, safe_request, post_to_slack
"""
import json
import os
import time
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlsplit

import requests

from scripts.lib.errors import NotificationError
from scripts.lib.logger import setup_logger

logger = setup_logger(__name__)


def atomic_write_json(data: Dict, file_path: str | Path, indent: int = 2) -> bool:
    """
    Write JSON data to file atomically using temp file + rename.

    Args:
        data: Dictionary to serialize as JSON.
        file_path: Target file path.
        indent: JSON indentation level.

    Returns:
        True if successful, False otherwise.
    """
    file_path = Path(file_path)
    temp_path = file_path.with_suffix(file_path.suffix + ".tmp")

    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=indent, default=str)

        os.replace(temp_path, file_path)
        logger.debug("Atomically wrote JSON to %s", file_path)
        return True

    except OSError as e:
        logger.error("Failed to write JSON to %s: %s", file_path, e)
        if temp_path.exists():
            temp_path.unlink()
        return False


def read_json(file_path: str | Path, default: Any = None) -> Any:
    """Load a JSON file, returning ``default`` when it is missing or corrupt."""
    file_path = Path(file_path)
    if not file_path.exists():
        return default
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not read %s: %s", file_path, e)
        return default


def retry_on_exception(
    max_attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    exceptions: tuple = (Exception,),
):
    """
    Decorator that retries a function on specified exceptions.

    Args:
        max_attempts: Maximum number of attempts.
        delay: Initial delay between retries in seconds.
        backoff: Multiplier for delay after each retry.
        exceptions: Tuple of exception types to catch.
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            current_delay = delay
            for attempt in range(1, max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_attempts:
                        logger.error(
                            "%s failed after %d attempts: %s",
                            func.__name__, max_attempts, e, exc_info=True,
                        )
                        raise
                    logger.warning(
                        "%s failed (attempt %d/%d): %s. Retrying in %.1fs...",
                        func.__name__, attempt, max_attempts, e, current_delay,
                    )
                    time.sleep(current_delay)
                    current_delay *= backoff
        return wrapper
    return decorator


def redact_url(url: str) -> str:
    """scheme://host only; webhook URLs carry their secret in the path."""
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}/***"


def _scrub(message: str, url: str, label: str) -> str:
    message = message.replace(url, label)
    path = urlsplit(url).path
    if path and path != "/":
        message = message.replace(path, "/***")
    return message


def safe_request(
    url: str,
    method: str = "GET",
    timeout: int = 30,
    max_retries: int = 3,
    retry_delay: float = 1.0,
    redact: bool = False,
    **kwargs,
) -> Optional[requests.Response]:
    """
    Make HTTP request with automatic retries and error handling.

    Args:
        url: URL to request.
        method: HTTP method.
        timeout: Request timeout in seconds.
        max_retries: Maximum retry attempts.
        retry_delay: Initial delay between retries in seconds.
        redact: Log only scheme and host, and strip the URL from error
            messages. Use for URLs that embed credentials.
        **kwargs: Additional arguments passed to requests.

    Returns:
        Response object if successful, None if all retries failed.
    """
    label = redact_url(url) if redact else url

    @retry_on_exception(
        max_attempts=max_retries,
        delay=retry_delay,
        exceptions=(
            requests.exceptions.Timeout,
            requests.exceptions.ConnectionError,
            requests.exceptions.HTTPError,
        ),
    )
    def _make_request():
        start = time.time()
        logger.debug("%s %s", method, label)
        try:
            response = requests.request(method, url, timeout=timeout, **kwargs)
            duration = time.time() - start
            logger.info(
                "%s %s — %d in %.2fs", method, label, response.status_code, duration,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            if not redact:
                raise
            raise type(e)(_scrub(str(e), url, label)) from None
        return response

    try:
        return _make_request()
    except requests.RequestException as e:
        logger.error("Request failed after retries: %s %s - %s", method, label, e)
        return None


def post_to_slack(webhook_url: str, payload: Dict, max_retries: int = 3) -> None:
    """
    Post a message payload to a Slack incoming webhook.

    The webhook URL is a credential and is never logged.

    Raises:
        NotificationError: no webhook configured, or delivery failed after retries.
    """
    if not webhook_url:
        raise NotificationError("SLACK_WEBHOOK_URL is not set")
    response = safe_request(
        webhook_url, method="POST", json=payload, max_retries=max_retries, redact=True,
    )
    if response is None:
        raise NotificationError("Slack webhook delivery failed")
