from __future__ import annotations

import ast
from typing import Dict, List, NamedTuple, Optional


RECORD_DECORATORS = {
	"dataclass",
	"dataclasses.dataclass",
	"attr.s",
	"attr.attrs",
	"attrs.define",
	"attrs.frozen",
	"attr.define",
	"attr.frozen",
}

RECORD_BASES = {
	"BaseModel",
	"pydantic.BaseModel",
	"TypedDict",
	"typing.TypedDict",
	"typing_extensions.TypedDict",
	"NamedTuple",
	"typing.NamedTuple",
}


class ImportBinding(NamedTuple):
	"""What a name bound by an import statement refers to.

	``name`` is None when the binding is the module itself.
	"""

	module: str
	name: Optional[str] = None

	@property
	def qualified_name(self) -> str:
		if not self.module:
			return self.name or ""
		return f"{self.module}.{self.name}" if self.name else self.module


def dotted_name(node: ast.AST) -> Optional[str]:
	"""Return ``a.b.c`` for Name/Attribute chains, None for anything else."""
	parts: List[str] = []
	cursor = node
	while isinstance(cursor, ast.Attribute):
		parts.append(cursor.attr)
		cursor = cursor.value
	if not isinstance(cursor, ast.Name):
		return None
	parts.append(cursor.id)
	return ".".join(reversed(parts))


def _get_decorator_names(node: ast.AST) -> List[str]:
	decorators: List[str] = []
	for deco in getattr(node, "decorator_list", []) or []:
		# @dataclass(frozen=True) is named by its callee
		target = deco.func if isinstance(deco, ast.Call) else deco
		name = dotted_name(target)
		decorators.append(name if name is not None else ast.unparse(deco))
	return decorators


def resolve_relative(module: str, is_package_init: bool, level: int, target: Optional[str]) -> str:
	"""Turn ``from ..x import y`` inside ``module`` into an absolute module name."""
	if level == 0:
		return target or ""
	parts = module.split(".") if module else []
	if not is_package_init:
		parts = parts[:-1]
	if level > 1:
		parts = parts[: len(parts) - (level - 1)] if level - 1 <= len(parts) else []
	if target:
		parts.append(target)
	return ".".join(parts)


def collect_imports(tree: ast.Module, module: str, is_package_init: bool) -> Dict[str, ImportBinding]:
	"""Map each name bound by an import anywhere in the module to its target.

	Later imports of the same name win, as they would at run time for
	module-level statements.
	"""
	bindings: Dict[str, ImportBinding] = {}
	for node in ast.walk(tree):
		if isinstance(node, ast.Import):
			for alias in node.names:
				if alias.asname:
					bindings[alias.asname] = ImportBinding(alias.name)
				else:
					# import a.b.c binds "a"
					head = alias.name.split(".", 1)[0]
					bindings[head] = ImportBinding(head)
		elif isinstance(node, ast.ImportFrom):
			source = resolve_relative(module, is_package_init, node.level, node.module)
			for alias in node.names:
				if alias.name == "*":
					continue
				bindings[alias.asname or alias.name] = ImportBinding(source, alias.name)
	return bindings


def is_record_class(node: ast.ClassDef) -> bool:
	for name in _get_decorator_names(node):
		if name in RECORD_DECORATORS:
			return True
	for base in node.bases:
		if dotted_name(base) in RECORD_BASES:
			return True
	return bool(class_fields(node))


def _is_classvar(annotation: ast.expr) -> bool:
	target = annotation.value if isinstance(annotation, ast.Subscript) else annotation
	name = dotted_name(target)
	if name is None and isinstance(annotation, ast.Constant) and isinstance(annotation.value, str):
		return annotation.value.startswith(("ClassVar", "typing.ClassVar"))
	return name in ("ClassVar", "typing.ClassVar")


def class_fields(node: ast.ClassDef) -> List[ast.AnnAssign]:
	"""Annotated, public, instance-level fields declared in a class body."""
	fields: List[ast.AnnAssign] = []
	for stmt in node.body:
		if not isinstance(stmt, ast.AnnAssign) or not isinstance(stmt.target, ast.Name):
			continue
		if stmt.target.id.startswith("_") or _is_classvar(stmt.annotation):
			continue
		fields.append(stmt)
	return fields


def public_methods(node: ast.ClassDef) -> List[ast.FunctionDef]:
	methods = []
	for stmt in node.body:
		if not isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
			continue
		if stmt.name.startswith("_"):
			continue
		decorators = _get_decorator_names(stmt)
		if any(d == "property" or d.endswith((".setter", ".getter", ".deleter")) for d in decorators):
			continue
		methods.append(stmt)
	return methods


def is_static(node: ast.FunctionDef) -> bool:
	return "staticmethod" in _get_decorator_names(node)


def has_startup(tree: ast.Module) -> bool:
	"""True for a module-level ``def main`` or ``if __name__ == "__main__":`` block."""
	for node in tree.body:
		if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) and node.name == "main":
			return True
		if isinstance(node, ast.If) and isinstance(node.test, ast.Compare):
			test = node.test
			operands = [test.left, *test.comparators]
			names = [o.id for o in operands if isinstance(o, ast.Name)]
			values = [o.value for o in operands if isinstance(o, ast.Constant)]
			if "__name__" in names and "__main__" in values:
				return True
	return False
