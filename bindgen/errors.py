from __future__ import annotations

from typing import Optional


class BindgenError(Exception):
	"""Base class for every failure raised while generating bindings."""


class ConfigError(BindgenError):
	"""Raised when the bindgen configuration cannot be loaded or validated."""


class SourceError(BindgenError):
	"""Raised when a source file of the analyzed program cannot be parsed."""

	def __init__(self, path: str, message: str, lineno: Optional[int] = None):
		self.path = path
		self.lineno = lineno
		location = f"{path}:{lineno}" if lineno else path
		super().__init__(f"{location}: {message}")


class BindingIOError(BindgenError):
	"""Raised when reading sources or writing artifacts fails."""

	def __init__(self, path: str, message: str):
		self.path = path
		super().__init__(f"{path}: {message}")


class TypeResolutionError(BindgenError):
	"""A declared type could not be mapped to a primitive, struct or external reference."""

	def __init__(
		self,
		message: str,
		package: str,
		path: Optional[str] = None,
		lineno: Optional[int] = None,
		declaration: Optional[str] = None,
	):
		self.package = package
		self.path = path
		self.lineno = lineno
		self.declaration = declaration
		parts = [f"package {package}"]
		if path:
			parts.append(f"{path}:{lineno}" if lineno else path)
		if declaration:
			parts.append(declaration)
		super().__init__(f"{', '.join(parts)}: {message}")


class TemplateError(BindgenError):
	"""Template parsing or rendering failed for a package."""

	def __init__(self, template: str, package: str, message: str):
		self.template = template
		self.package = package
		super().__init__(f"template {template} (package {package}): {message}")
