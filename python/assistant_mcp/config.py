from __future__ import annotations

from dataclasses import dataclass, field
import logging
import os
from string import Template
import sys
from typing import Any, Mapping

import yaml

ENV_API_KEY = "PINECONE_API_KEY"
ENV_ASSISTANT_HOST = "PINECONE_ASSISTANT_HOST"
ENV_LOG_LEVEL = "LOG_LEVEL"
ENV_REQUEST_TIMEOUT = "PINECONE_REQUEST_TIMEOUT"
ENV_CONFIG_PATH = "ASSISTANT_MCP_CONFIG"

DEFAULT_ASSISTANT_HOST = "https://prod-1-data.ke.pinecone.io"
DEFAULT_LOG_LEVEL = "info"
DEFAULT_REQUEST_TIMEOUT = 30.0

_LOG_FORMAT = (
    "%(asctime)s %(levelname)s %(name)s [%(threadName)s] "
    "%(filename)s:%(lineno)d %(message)s"
)


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class Config:
    pinecone_api_key: str = field(repr=False)
    pinecone_assistant_host: str = DEFAULT_ASSISTANT_HOST
    log_level: str = DEFAULT_LOG_LEVEL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Config":
        env = os.environ if environ is None else environ
        return cls._from_values({}, env)

    @classmethod
    def from_yaml(cls, path: str, environ: Mapping[str, str] | None = None) -> "Config":
        env = os.environ if environ is None else environ
        expanded = os.path.expanduser(path)
        with open(expanded, "r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle)
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise ConfigError(f"Config file '{path}' must contain a mapping.")
        return cls._from_values(_expand_env(payload, env), env)

    @classmethod
    def load(cls, environ: Mapping[str, str] | None = None) -> "Config":
        env = os.environ if environ is None else environ
        path = env.get(ENV_CONFIG_PATH)
        if path:
            return cls.from_yaml(path, env)
        return cls.from_env(env)

    @classmethod
    def _from_values(cls, values: dict[str, Any], env: Mapping[str, str]) -> "Config":
        api_key = _pick(values, env, "pinecone_api_key", ENV_API_KEY)
        if not api_key:
            raise ConfigError(f"Missing environment variable: {ENV_API_KEY}")
        host = _pick(values, env, "pinecone_assistant_host", ENV_ASSISTANT_HOST)
        log_level = _pick(values, env, "log_level", ENV_LOG_LEVEL)
        timeout = _pick(values, env, "request_timeout", ENV_REQUEST_TIMEOUT)
        return cls(
            pinecone_api_key=str(api_key),
            pinecone_assistant_host=str(host or DEFAULT_ASSISTANT_HOST),
            log_level=str(log_level or DEFAULT_LOG_LEVEL),
            request_timeout=_parse_timeout(timeout),
        )


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    # stdout carries the protocol stream; logs must stay on stderr.
    logging.basicConfig(
        level=parse_log_level(level),
        format=_LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )


def parse_log_level(level: str | None) -> int:
    if not level:
        return logging.INFO
    resolved = logging.getLevelName(level.strip().upper())
    if isinstance(resolved, int):
        return resolved
    return logging.INFO


def _pick(values: dict[str, Any], env: Mapping[str, str], key: str, env_key: str) -> Any:
    value = values.get(key)
    if value is None or value == "":
        value = env.get(env_key)
    return value


def _parse_timeout(value: Any) -> float:
    if value is None or value == "":
        return DEFAULT_REQUEST_TIMEOUT
    try:
        timeout = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid request timeout: {value!r}") from exc
    if timeout <= 0:
        raise ConfigError(f"Request timeout must be positive, got {value!r}")
    return timeout


def _expand_env(value: Any, env: Mapping[str, str]) -> Any:
    if isinstance(value, str):
        return Template(value).safe_substitute(env)
    if isinstance(value, list):
        return [_expand_env(item, env) for item in value]
    if isinstance(value, dict):
        return {key: _expand_env(item, env) for key, item in value.items()}
    return value
