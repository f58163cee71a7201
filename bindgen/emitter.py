from __future__ import annotations

import os
from typing import List, Optional

import jinja2

from .errors import BindingIOError, TemplateError
from .logging import get_logger
from .model import Package, TypeKind, TypeRef


logger = get_logger("emitter")

DECLARATION_TEMPLATE = "package.d.ts.j2"
STUB_TEMPLATE = "package.js.j2"

TS_PRIMITIVES = {
	"boolean": "boolean",
	"integer": "number",
	"float": "number",
	"byte": "number",
	"string": "string",
}


# names a strict-mode ES module cannot bind as parameters
JS_RESERVED = {
	"arguments", "case", "catch", "const", "debugger", "default", "delete", "do", "enum",
	"eval", "export", "extends", "function", "implements", "instanceof", "interface", "let",
	"new", "null", "package", "private", "protected", "public", "static", "super", "switch",
	"this", "throw", "true", "false", "typeof", "var", "void", "yield", "await",
}


def ts_namespace(package: str) -> str:
	"""Identifier a package's declarations are imported under."""
	return package.replace(".", "_")


def js_ident(name: str) -> str:
	"""Rename identifiers JavaScript reserves by appending an underscore."""
	return f"{name}_" if name in JS_RESERVED else name


def typescript_type(ref: TypeRef, package: str) -> str:
	"""Render ``ref`` as a TypeScript type, as seen from ``package``."""
	if ref.kind == TypeKind.PRIMITIVE:
		return TS_PRIMITIVES[ref.name]
	if ref.kind == TypeKind.STRUCT:
		if ref.external:
			return "any"
		if ref.package == package:
			return ref.name
		return f"{ts_namespace(ref.package)}.{ref.name}"
	if ref.kind == TypeKind.POINTER:
		return f"{typescript_type(ref.elem, package)} | null"
	if ref.kind == TypeKind.SEQUENCE:
		return f"Array<{typescript_type(ref.elem, package)}>"
	if ref.kind == TypeKind.MAPPING:
		key = "number" if typescript_type(ref.key, package) == "number" else "string"
		return f"Record<{key}, {typescript_type(ref.elem, package)}>"
	return "any"


def typescript_result(ref: Optional[TypeRef], package: str) -> str:
	if ref is None:
		return "void"
	return typescript_type(ref, package)


class BindingEmitter:
	"""Renders packages through the declaration and runtime stub templates."""

	def __init__(self, templates_dir: Optional[str] = None):
		if templates_dir:
			loader: jinja2.BaseLoader = jinja2.FileSystemLoader(templates_dir)
		else:
			loader = jinja2.PackageLoader("bindgen", "templates")
		self.env = jinja2.Environment(
			loader=loader,
			undefined=jinja2.StrictUndefined,
			keep_trailing_newline=True,
			trim_blocks=True,
			lstrip_blocks=True,
			autoescape=False,
		)
		self.env.filters["ts_type"] = typescript_type
		self.env.filters["ts_result"] = typescript_result
		self.env.filters["ts_namespace"] = ts_namespace
		self.env.filters["js_ident"] = js_ident

	def render(self, template_name: str, package: Package) -> str:
		try:
			template = self.env.get_template(template_name)
			return template.render(package=package)
		except jinja2.TemplateError as exc:
			raise TemplateError(template_name, package.name, str(exc)) from exc

	def _write(self, path: str, content: str) -> None:
		try:
			with open(path, "w", encoding="utf-8", newline="\n") as fh:
				fh.write(content)
		except OSError as exc:
			raise BindingIOError(path, f"cannot write binding file: {exc.strerror or exc}") from exc

	def emit(self, package: Package, module_dir: str) -> List[str]:
		"""Write ``index.d.ts`` and ``index.js`` for ``package``.

		Each file is rendered and written on its own; a failure on the
		second leaves the first in place.
		"""
		out_dir = os.path.join(module_dir, package.name)
		try:
			os.makedirs(out_dir, exist_ok=True)
		except OSError as exc:
			raise BindingIOError(out_dir, f"cannot create module directory: {exc.strerror or exc}") from exc

		written = []
		for template_name, filename in ((DECLARATION_TEMPLATE, "index.d.ts"), (STUB_TEMPLATE, "index.js")):
			path = os.path.join(out_dir, filename)
			self._write(path, self.render(template_name, package))
			logger.debug("Wrote %s", path)
			written.append(path)
		return written
