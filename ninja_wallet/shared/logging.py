"""Logging setup for Ninja Wallet.

The TUI owns the terminal, so records go to ``wallet.log`` in the storage
directory by default; echoing to stdout is opt-in for headless debugging.
Delegation tokens and key material are redacted before anything is written.
"""

from __future__ import annotations

import json
import logging
import os
import re
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

DEFAULT_LOG_DIR = Path.home() / ".config" / "ninja-wallet"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_TRUTHY = ("1", "true", "yes", "on")
_HANDLER_MARK = "_ninja_wallet_handler"


@dataclass
class LoggingConfig:
    level: int = logging.INFO
    log_dir: Path | None = None
    log_filename: str | None = "wallet.log"
    echo_stdout: bool = False
    json_lines: bool = False
    redact: bool = True

    @property
    def log_file(self) -> Path | None:
        if not self.log_filename:
            return None
        return (self.log_dir or DEFAULT_LOG_DIR) / self.log_filename

    @classmethod
    def from_environment(
        cls,
        log_dir: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> "LoggingConfig":
        """Read ``NINJA_WALLET_LOG_LEVEL``, ``_LOG_STDOUT`` and ``_LOG_FORMAT``."""
        if environ is None:
            environ = os.environ

        level = logging.getLevelName(
            environ.get("NINJA_WALLET_LOG_LEVEL", "INFO").strip().upper()
        )
        if not isinstance(level, int):
            level = logging.INFO

        return cls(
            level=level,
            log_dir=log_dir,
            echo_stdout=environ.get("NINJA_WALLET_LOG_STDOUT", "").lower() in _TRUTHY,
            json_lines=environ.get("NINJA_WALLET_LOG_FORMAT", "").lower() == "json",
        )


# Order matters: header and field rules run before the bare-hex catch-all.
REDACTION_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (
        re.compile(r"(Authorization['\"]?\s*[:=]\s*['\"]?Delegation\s+)([^\s'\",}]+)"),
        r"\1[REDACTED]",
    ),
    (
        re.compile(r"(delegation['\"]?\s*[:=]\s*['\"]?)([^\s'\",}]+)", re.IGNORECASE),
        r"\1[REDACTED]",
    ),
    (
        re.compile(
            r"((?:private|secret)[_-]?key['\"]?\s*[:=]\s*['\"]?)([A-Fa-f0-9]{64})",
            re.IGNORECASE,
        ),
        r"\1[REDACTED]",
    ),
    # Root keys and serialized signatures.
    (re.compile(r"\b[A-Fa-f0-9]{128,}\b"), "[KEY_REDACTED]"),
)

ADDRESS_PATTERN = re.compile(r"\bkaspa(?:test|sim|dev)?:[a-z0-9]{61,63}\b")

SENSITIVE_KEYS = ("delegation", "private_key", "root_key", "secret")


def sanitize_message(message: str, preserve_addresses: bool = True) -> str:
    if not message:
        return message
    for pattern, replacement in REDACTION_RULES:
        message = pattern.sub(replacement, message)
    if not preserve_addresses:
        message = ADDRESS_PATTERN.sub("[ADDRESS_REDACTED]", message)
    return message


def _sanitize_value(value: Any, preserve_addresses: bool) -> Any:
    if isinstance(value, str):
        return sanitize_message(value, preserve_addresses)
    if isinstance(value, Mapping):
        return sanitize_dict(value, preserve_addresses)
    if isinstance(value, (list, tuple)):
        return [_sanitize_value(item, preserve_addresses) for item in value]
    return value


def sanitize_dict(
    data: Mapping[str, Any], preserve_addresses: bool = True
) -> dict[str, Any]:
    """Copy of ``data`` with secret-looking keys masked and strings scrubbed."""
    return {
        key: "[REDACTED]"
        if any(marker in key.lower() for marker in SENSITIVE_KEYS)
        else _sanitize_value(value, preserve_addresses)
        for key, value in data.items()
    }


@dataclass(frozen=True)
class ErrorMapping:
    pattern: re.Pattern[str]
    user_message: str
    suggest_action: str | None = None


def _mapping(pattern: str, message: str, action: str | None = None) -> ErrorMapping:
    return ErrorMapping(re.compile(pattern, re.IGNORECASE), message, action)


ERROR_MAPPINGS: tuple[ErrorMapping, ...] = (
    _mapping(
        r"timeout|timed out",
        "The wallet service did not answer in time.",
        "Try again in a moment.",
    ),
    _mapping(
        r"connection refused|cannot connect|connection error",
        "Unable to connect to the wallet service.",
        "Check that the replica is reachable and try again.",
    ),
    _mapping(
        r"insufficient|not enough",
        "Insufficient balance for this transaction.",
        "Leave enough KAS for the amount plus fees.",
    ),
    _mapping(
        r"invalid.*address|address.*invalid",
        "The recipient address is not a valid Kaspa address.",
    ),
    _mapping(
        r"unauthori[sz]ed|forbidden|\b40[13]\b|delegation.*expired",
        "The wallet service rejected your identity.",
        "Log out and connect with Internet Identity again.",
    ),
    _mapping(
        r"canister.*not found|\b404\b",
        "The wallet canister was not found.",
        "Check the configured canister id.",
    ),
    _mapping(
        r"rate limit|too many requests|\b429\b",
        "Too many requests to the wallet service.",
        "Wait a moment and try again.",
    ),
)


def get_user_friendly_error(error: Exception | str) -> tuple[str, str | None]:
    text = str(error)
    for mapping in ERROR_MAPPINGS:
        if mapping.pattern.search(text):
            return mapping.user_message, mapping.suggest_action
    return "An unexpected error occurred.", None


def format_error_for_user(error: Exception | str) -> str:
    message, action = get_user_friendly_error(error)
    return f"{message} {action}" if action else message


class HumanReadableFormatter(logging.Formatter):
    def __init__(self, sanitize: bool = True):
        super().__init__(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
        self.sanitize = sanitize

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        context = getattr(record, "context", None)
        if context:
            text = f"{text} {json.dumps(context, default=str, sort_keys=True)}"
        return sanitize_message(text) if self.sanitize else text


class StructuredFormatter(logging.Formatter):
    """One JSON object per line."""

    def __init__(self, sanitize: bool = True):
        super().__init__()
        self.sanitize = sanitize

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        context = getattr(record, "context", None)
        if isinstance(context, Mapping):
            entry["context"] = dict(context)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        if self.sanitize:
            entry = sanitize_dict(entry)
        return json.dumps(entry, default=str)


class ContextAdapter(logging.LoggerAdapter):
    """Adds fixed fields (canister id, principal, ...) to every record as ``context``."""

    def __init__(self, logger: logging.Logger, context: Mapping[str, Any] | None = None):
        super().__init__(logger, dict(context or {}))

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        extra = dict(kwargs.get("extra") or {})
        extra["context"] = {**self.extra, **extra.get("context", {})}
        kwargs["extra"] = extra
        return msg, kwargs

    def with_context(self, **fields: Any) -> "ContextAdapter":
        return ContextAdapter(self.logger, {**self.extra, **fields})


def get_logger(name: str, context: Mapping[str, Any] | None = None) -> ContextAdapter:
    return ContextAdapter(logging.getLogger(name), context)


def _build_handlers(config: LoggingConfig) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    log_file = config.log_file
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, mode="a", encoding="utf-8"))
    if config.echo_stdout:
        handlers.append(logging.StreamHandler(sys.stdout))

    formatter: logging.Formatter
    if config.json_lines:
        formatter = StructuredFormatter(sanitize=config.redact)
    else:
        formatter = HumanReadableFormatter(sanitize=config.redact)
    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_MARK, True)
    return handlers


def setup_logging(config: LoggingConfig | None = None) -> list[logging.Handler]:
    """Install the wallet's handlers on the root logger.

    Calling it again replaces the handlers installed by a previous call.
    Other root handlers are removed so nothing writes into the TUI.
    """
    if config is None:
        config = LoggingConfig.from_environment()

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if getattr(handler, _HANDLER_MARK, False):
            handler.close()

    handlers = _build_handlers(config)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(config.level)
    return handlers


__all__ = [
    "LoggingConfig",
    "ContextAdapter",
    "StructuredFormatter",
    "HumanReadableFormatter",
    "sanitize_message",
    "sanitize_dict",
    "get_user_friendly_error",
    "setup_logging",
    "get_logger",
    "format_error_for_user",
]
