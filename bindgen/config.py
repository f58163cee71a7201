"""Configuration loading for bindgen ([tool.bindgen] in the project's pyproject.toml)."""

from __future__ import annotations

import os
import tomllib
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .errors import ConfigError


DEFAULT_EXCLUDE_DIRS: List[str] = [
	".git",
	".hg",
	".venv",
	"venv",
	"node_modules",
	"dist",
	"build",
	"__pycache__",
	".mypy_cache",
	".pytest_cache",
	"tests",
]


class BindgenConfig(BaseModel):
	model_config = ConfigDict(extra="forbid", frozen=True)

	root: str
	entry_file: str = "main.py"
	bridge_module: str = "webbridge"
	bind_methods: List[str] = ["bind"]
	bind_keyword: str = "bind"
	root_package: str = "main"
	module_dir: str = "frontend/backend"
	templates_dir: Optional[str] = None
	exclude_dirs: List[str] = DEFAULT_EXCLUDE_DIRS

	@field_validator("bridge_module", "root_package")
	@classmethod
	def _dotted_identifier(cls, value: str) -> str:
		if not value or not all(part.isidentifier() for part in value.split(".")):
			raise ValueError(f"{value!r} is not a dotted Python identifier")
		return value

	@field_validator("bind_methods")
	@classmethod
	def _non_empty(cls, value: List[str]) -> List[str]:
		if not value:
			raise ValueError("at least one bind method name is required")
		return value

	def entry_path(self) -> str:
		return os.path.join(self.root, self.entry_file)

	def module_path(self) -> str:
		"""Directory the per-package binding modules are written into."""
		if os.path.isabs(self.module_dir):
			return self.module_dir
		return os.path.join(self.root, self.module_dir)


def _read_pyproject(path: str) -> Dict[str, Any]:
	try:
		with open(path, "rb") as fh:
			document = tomllib.load(fh)
	except tomllib.TOMLDecodeError as exc:
		raise ConfigError(f"{path}: invalid TOML: {exc}") from exc
	except OSError as exc:
		raise ConfigError(f"{path}: {exc.strerror or exc}") from exc
	section = document.get("tool", {}).get("bindgen", {})
	if not isinstance(section, dict):
		raise ConfigError(f"{path}: [tool.bindgen] must be a table")
	return section


def load_config(root: str, overrides: Optional[Mapping[str, Any]] = None) -> BindgenConfig:
	"""Build the configuration for the project at ``root``.

	Values from ``[tool.bindgen]`` are applied first, then any non-None
	``overrides`` (CLI flags, API request fields).
	"""
	root = os.path.abspath(root)
	data: Dict[str, Any] = {}
	pyproject = os.path.join(root, "pyproject.toml")
	if os.path.isfile(pyproject):
		data.update(_read_pyproject(pyproject))
	for key, value in (overrides or {}).items():
		if value is not None:
			data[key] = value
	data["root"] = root
	try:
		return BindgenConfig(**data)
	except ValidationError as exc:
		raise ConfigError(f"invalid bindgen configuration: {exc}") from exc
