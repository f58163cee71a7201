from __future__ import annotations

import ast
from typing import Dict, List, NamedTuple, Optional

from .ast_parse import ImportBinding, collect_imports
from .fs_scan import Program, SourceFile


# re-export chains longer than this are treated as unresolvable
MAX_REEXPORT_DEPTH = 8


class ModuleScope:
	"""Top-level names of one module: imports, classes, functions and assigned names."""

	def __init__(self, source: SourceFile):
		self.source = source
		self.module = source.module
		self.package = source.package
		self.imports: Dict[str, ImportBinding] = collect_imports(
			source.tree, source.module, source.is_package_init
		)
		self.classes: Dict[str, ast.ClassDef] = {}
		self.functions: Dict[str, ast.FunctionDef] = {}
		# module-level names assigned a value, e.g. type aliases and TypeVars
		self.aliases: Dict[str, ast.expr] = {}
		for node in source.tree.body:
			if isinstance(node, ast.ClassDef):
				self.classes[node.name] = node
			elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
				self.functions[node.name] = node
			elif isinstance(node, ast.Assign) and len(node.targets) == 1 and isinstance(node.targets[0], ast.Name):
				self.aliases[node.targets[0].id] = node.value
			elif isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name) and node.value is not None:
				self.aliases[node.target.id] = node.value
			elif isinstance(node, getattr(ast, "TypeAlias", ())):
				self.aliases[node.name.id] = node.value

	def defines(self, name: str) -> bool:
		return name in self.classes or name in self.functions or name in self.aliases

	def __repr__(self) -> str:
		return f"ModuleScope({self.module!r})"


class Symbol(NamedTuple):
	kind: str  # "class", "function", "alias", "module" or "external"
	qualified_name: str
	scope: Optional[ModuleScope] = None
	node: Optional[ast.AST] = None


class SymbolTable:
	def __init__(self, program: Program):
		self.program = program
		self.scopes: Dict[str, ModuleScope] = {}
		for source in program.iter_files():
			self.scopes[source.module] = ModuleScope(source)
		self._top_level = {name.split(".", 1)[0] for name in self.scopes}

	def iter_scopes(self) -> List[ModuleScope]:
		return [self.scopes[name] for name in sorted(self.scopes)]

	def scope_for(self, source: SourceFile) -> ModuleScope:
		return self.scopes[source.module]

	def is_in_tree(self, qualified_name: str) -> bool:
		return qualified_name.split(".", 1)[0] in self._top_level

	def lookup(self, scope: ModuleScope, dotted: str) -> Optional[Symbol]:
		"""Resolve a dotted name as written inside ``scope``.

		Returns None when the name is not bound in the module, or when it
		points into the source tree at something that does not exist.
		"""
		head, _, rest = dotted.partition(".")
		if head in scope.classes:
			if rest:
				return None
			return Symbol("class", f"{scope.module}.{head}", scope, scope.classes[head])
		if head in scope.functions:
			if rest:
				return None
			return Symbol("function", f"{scope.module}.{head}", scope, scope.functions[head])
		if head in scope.aliases:
			if rest:
				return None
			return Symbol("alias", f"{scope.module}.{head}", scope, scope.aliases[head])
		binding = scope.imports.get(head)
		if binding is None:
			return None
		target = binding.qualified_name
		if rest:
			target = f"{target}.{rest}"
		return self.lookup_qualified(target)

	def lookup_qualified(self, qualified_name: str, depth: int = 0) -> Optional[Symbol]:
		parts = qualified_name.split(".")
		for i in range(len(parts), 0, -1):
			module = ".".join(parts[:i])
			scope = self.scopes.get(module)
			if scope is None:
				continue
			rest = parts[i:]
			if not rest:
				return Symbol("module", module, scope)
			if len(rest) == 1:
				return self._member(scope, rest[0], depth)
			return None
		if self.is_in_tree(qualified_name):
			return None
		return Symbol("external", qualified_name)

	def _member(self, scope: ModuleScope, name: str, depth: int) -> Optional[Symbol]:
		if name in scope.classes:
			return Symbol("class", f"{scope.module}.{name}", scope, scope.classes[name])
		if name in scope.functions:
			return Symbol("function", f"{scope.module}.{name}", scope, scope.functions[name])
		if name in scope.aliases:
			return Symbol("alias", f"{scope.module}.{name}", scope, scope.aliases[name])
		binding = scope.imports.get(name)
		if binding is not None and depth < MAX_REEXPORT_DEPTH:
			return self.lookup_qualified(binding.qualified_name, depth + 1)
		# a submodule that was never imported by its package
		submodule = f"{scope.module}.{name}"
		if submodule in self.scopes:
			return Symbol("module", submodule, self.scopes[submodule])
		return None
