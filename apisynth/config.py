"""Configuration loading for apisynth (.apisynth.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .models import ServiceSource

CONFIG_FILENAME = ".apisynth.yml"

DEFAULT_GENERATOR_COMMAND = [
    "npx",
    "--yes",
    "openapi-typescript-codegen",
    "--input",
    "{input}",
    "--output",
    "{output}",
    "--client",
    "axios",
    "--useOptions",
    "--exportSchemas",
    "true",
]


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


class MissingEnvironmentError(ConfigError):
    """Raised when a service's document source variable is not set."""


@dataclass
class ServiceConfig:
    """One backend service and the environment variable holding its document source."""

    id: str
    env: str


@dataclass
class GeneratorConfig:
    """How the external per-service generator is invoked."""

    command: List[str] = field(default_factory=lambda: list(DEFAULT_GENERATOR_COMMAND))
    timeout: Optional[float] = None


@dataclass
class EnumNameRule:
    """Fixed enum name for a property, optionally restricted to matching parents."""

    property: str
    name: str
    parent: Optional[str] = None


DEFAULT_ENUM_RULES = [
    EnumNameRule(property=r"^(userRoles?|roles)$", name="UserRole"),
    EnumNameRule(property=r"^role$", name="CompanyRole", parent=r"CompanyRoleAssignmentDto$"),
]


@dataclass
class SynthConfig:
    """Represents the settings defined in .apisynth.yml."""

    root: Path
    output_dir: Path
    work_dir: Path
    services: List[ServiceConfig] = field(default_factory=list)
    generator: GeneratorConfig = field(default_factory=GeneratorConfig)
    fetch_timeout: float = 30.0
    enum_names: List[EnumNameRule] = field(default_factory=lambda: list(DEFAULT_ENUM_RULES))


def load_config(config_path: Path) -> SynthConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return _defaults(root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = _defaults(root)

    output_dir = _as_str(data.get("output_dir"))
    if output_dir:
        config.output_dir = root / output_dir
    work_dir = _as_str(data.get("work_dir"))
    if work_dir:
        config.work_dir = root / work_dir

    timeout = _as_float(data.get("fetch_timeout"))
    if timeout is not None:
        config.fetch_timeout = timeout

    services_data = data.get("services")
    if services_data is not None:
        if not isinstance(services_data, list):
            raise ConfigError("services must be a list of {id, env} mappings")
        config.services = [_parse_service(item) for item in services_data]

    generator_data = _as_dict(data.get("generator"))
    if generator_data:
        command = generator_data.get("command")
        if command is not None:
            if isinstance(command, str):
                command = command.split()
            if not isinstance(command, list) or not all(isinstance(part, str) for part in command):
                raise ConfigError("generator.command must be a string or a list of strings")
            config.generator.command = list(command)
        config.generator.timeout = _as_float(generator_data.get("timeout"))

    rules_data = data.get("enum_names")
    if rules_data is not None:
        if not isinstance(rules_data, list):
            raise ConfigError("enum_names must be a list of {property, name} mappings")
        custom = [_parse_enum_rule(item) for item in rules_data]
        config.enum_names = custom + list(DEFAULT_ENUM_RULES)

    return config


def resolve_service_sources(
    config: SynthConfig, environ: Mapping[str, str] | None = None
) -> List[ServiceSource]:
    """Return each configured service with its document source, failing fast on gaps."""
    env = os.environ if environ is None else environ
    if len(config.services) < 2:
        raise ConfigError("At least two services must be configured to synthesize a combined client")

    seen: set[str] = set()
    sources: List[ServiceSource] = []
    for service in config.services:
        if service.id in seen:
            raise ConfigError(f"Duplicate service id: {service.id}")
        seen.add(service.id)
        value = env.get(service.env)
        if not value:
            raise MissingEnvironmentError(f"Missing required env: {service.env}")
        sources.append(ServiceSource(service_id=service.id, source=value))
    return sources


def _defaults(root: Path) -> SynthConfig:
    return SynthConfig(
        root=root,
        output_dir=root / "app" / "api" / "clients",
        work_dir=root / "tmp" / "openapi",
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _parse_service(item: object) -> ServiceConfig:
    data = _as_dict(item)
    service_id = _as_str(data.get("id"))
    env = _as_str(data.get("env"))
    if not service_id or not env:
        raise ConfigError("Each service needs both 'id' and 'env'")
    return ServiceConfig(id=service_id, env=env)


def _parse_enum_rule(item: object) -> EnumNameRule:
    data = _as_dict(item)
    prop = _as_str(data.get("property"))
    name = _as_str(data.get("name"))
    if not prop or not name:
        raise ConfigError("Each enum_names rule needs both 'property' and 'name'")
    return EnumNameRule(property=prop, name=name, parent=_as_str(data.get("parent")))


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return str(value)


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as exc:
            raise ConfigError(f"Expected a number, got {value!r}") from exc
    return None


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "EnumNameRule",
    "GeneratorConfig",
    "MissingEnvironmentError",
    "ServiceConfig",
    "SynthConfig",
    "load_config",
    "resolve_service_sources",
]
