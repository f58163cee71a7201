"""Entry-point scanning.

Finds the program's entry file, the alias its bridge import is bound to,
and the objects registered with the bridge. The public methods of those
objects' classes form the exposed surface.

Registration shapes recognised (``wb`` being the bridge alias)::

    wb.bind(Service())
    app = wb.App(title="demo")
    app.bind(service, Other())
    wb.run(app_options, bind=[Service(), make_other()])
"""

from __future__ import annotations

import ast
from typing import Dict, List, Optional, Set, Tuple

from .ast_parse import dotted_name, has_startup, is_static, public_methods
from .comments import declaration_comments
from .config import BindgenConfig
from .errors import TypeResolutionError
from .fs_scan import Program
from .logging import get_logger
from .model import BoundMethod, BridgeContext, EntrySurface, Param, TypeRef
from .package import PackageBuilder
from .resolver import StructResolver
from .symbols import ModuleScope, Symbol, SymbolTable
from .visitor import DeclarationVisitor, walk


logger = get_logger("entrypoints")

# variable -> class chains longer than this are given up on
MAX_VARIABLE_DEPTH = 8


def find_bridge_alias(scope: ModuleScope, bridge_module: str) -> Optional[str]:
	"""Name the bridge module is bound to in ``scope``, if it is imported."""
	aliases = sorted(name for name, binding in scope.imports.items() if binding.name is None and binding.module == bridge_module)
	return aliases[0] if aliases else None


class BridgeCallVisitor(DeclarationVisitor):
	"""Collects calls made through the bridge alias or an app object.

	Any name assigned the result of a call through the alias is treated as
	an app object. Arguments of bind calls (and of the bind keyword) are
	kept apart from the arguments of every other bridge call, which are the
	payloads passed across the boundary.
	"""

	def __init__(self, alias: Optional[str], bind_methods: Tuple[str, ...], bind_keyword: str):
		self.alias = alias
		self.bind_methods = set(bind_methods)
		self.bind_keyword = bind_keyword
		self.app_names: Set[str] = set()
		self.variables: Dict[str, ast.expr] = {}
		self.annotations: Dict[str, ast.expr] = {}
		self.bound: List[ast.expr] = []
		self.payloads: List[ast.expr] = []

	def _is_bridge_receiver(self, func: ast.expr) -> bool:
		name = dotted_name(func)
		if name is None or "." not in name:
			return False
		head = name.split(".", 1)[0]
		return head == self.alias or head in self.app_names

	def visit_assignment(self, node: ast.stmt) -> bool:
		if isinstance(node, ast.Assign):
			targets = [t.id for t in node.targets if isinstance(t, ast.Name)]
			value = node.value
		else:
			targets = [node.target.id] if isinstance(node.target, ast.Name) else []
			value = node.value
			for target in targets:
				self.annotations[target] = node.annotation
		if value is None:
			return True
		for target in targets:
			if isinstance(value, ast.Call) and self._is_bridge_receiver(value.func):
				self.app_names.add(target)
			else:
				self.variables[target] = value
		return True

	def visit_call(self, node: ast.Call) -> bool:
		if not self._is_bridge_receiver(node.func):
			return True
		method = node.func.attr if isinstance(node.func, ast.Attribute) else ""
		if method in self.bind_methods:
			for arg in node.args:
				if isinstance(arg, (ast.List, ast.Tuple)):
					self.bound.extend(arg.elts)
				elif not isinstance(arg, ast.Starred):
					self.bound.append(arg)
		else:
			self.payloads.extend(a for a in node.args if not isinstance(a, ast.Starred))
		for keyword in node.keywords:
			if keyword.arg == self.bind_keyword and isinstance(keyword.value, (ast.List, ast.Tuple, ast.Set)):
				self.bound.extend(keyword.value.elts)
			elif keyword.arg is not None and method not in self.bind_methods:
				self.payloads.append(keyword.value)
		return True


def class_of(
	symbols: SymbolTable, scope: ModuleScope, expr: ast.expr, visitor: BridgeCallVisitor, depth: int = 0
) -> Optional[Symbol]:
	"""Best-effort mapping of an expression to the in-tree class of its value."""
	if depth > MAX_VARIABLE_DEPTH:
		return None
	if isinstance(expr, ast.Call):
		name = dotted_name(expr.func)
		symbol = symbols.lookup(scope, name) if name else None
		if symbol is None:
			return None
		if symbol.kind == "class":
			return symbol
		if symbol.kind == "function":
			returns = symbol.node.returns
			return_name = dotted_name(returns) if returns is not None else None
			if isinstance(returns, ast.Constant) and isinstance(returns.value, str):
				return_name = returns.value.strip()
			if return_name:
				target = symbols.lookup(symbol.scope, return_name)
				if target is not None and target.kind == "class":
					return target
		return None
	if isinstance(expr, ast.Name):
		annotation = visitor.annotations.get(expr.id)
		if annotation is not None:
			name = dotted_name(annotation)
			target = symbols.lookup(scope, name) if name else None
			if target is not None and target.kind == "class":
				return target
		value = visitor.variables.get(expr.id)
		if value is not None:
			return class_of(symbols, scope, value, visitor, depth + 1)
	return None


class EntryPointScanner:
	def __init__(
		self,
		program: Program,
		symbols: SymbolTable,
		resolver: StructResolver,
		builders: Dict[str, PackageBuilder],
		config: BindgenConfig,
	):
		self.program = program
		self.symbols = symbols
		self.resolver = resolver
		self.builders = builders
		self.config = config
		self.failures: Dict[str, TypeResolutionError] = {}

	def bridge_context(self) -> BridgeContext:
		entry = self.program.entry_file
		alias = None
		entry_module = None
		if entry is not None and has_startup(entry.tree):
			entry_module = entry.module
			alias = find_bridge_alias(self.symbols.scope_for(entry), self.config.bridge_module)
		return BridgeContext(
			bridge_module=self.config.bridge_module,
			alias=alias,
			entry_module=entry_module,
			bind_methods=tuple(self.config.bind_methods),
			bind_keyword=self.config.bind_keyword,
		)

	def scan(self) -> EntrySurface:
		bridge = self.bridge_context()
		surface = EntrySurface(bridge=bridge)
		entry = self.program.entry_file
		if entry is None or bridge.entry_module is None:
			logger.info("No startup declaration found; the exposed surface is empty")
			return surface
		surface.entry_package = entry.package
		if bridge.alias is None:
			logger.info("Entry file %s does not import %s; the exposed surface is empty", entry.rel_path, bridge.bridge_module)
			return surface

		scope = self.symbols.scope_for(entry)
		visitor = BridgeCallVisitor(bridge.alias, bridge.bind_methods, bridge.bind_keyword)
		walk(entry.tree, visitor)

		seen: Set[str] = set()
		for expr in visitor.bound:
			symbol = class_of(self.symbols, scope, expr, visitor)
			if symbol is None:
				logger.warning(
					"%s:%d: cannot determine the class of bound object %s; skipping",
					entry.rel_path, expr.lineno, ast.unparse(expr),
				)
				continue
			if symbol.qualified_name in seen:
				continue
			seen.add(symbol.qualified_name)
			try:
				methods = self.bound_methods(symbol)
			except TypeResolutionError as exc:
				logger.error("%s", exc)
				self.failures.setdefault(symbol.scope.package, exc)
				continue
			surface.bound_structs.append(f"{symbol.scope.package}.{symbol.node.name}")
			surface.methods.extend(methods)

		surface.bound_structs.sort()
		surface.methods.sort(key=lambda m: m.qualified_name)
		logger.info("Exposed %d methods on %d bound objects", len(surface.methods), len(surface.bound_structs))
		return surface

	def _class_chain(self, symbol: Symbol, seen: Optional[Set[str]] = None) -> List[Tuple[ModuleScope, ast.ClassDef]]:
		"""The class and its in-tree bases, most basic first."""
		seen = seen if seen is not None else set()
		if symbol.qualified_name in seen:
			return []
		seen.add(symbol.qualified_name)
		chain: List[Tuple[ModuleScope, ast.ClassDef]] = []
		for base in symbol.node.bases:
			name = dotted_name(base.value if isinstance(base, ast.Subscript) else base)
			target = self.symbols.lookup(symbol.scope, name) if name else None
			if target is not None and target.kind == "class":
				chain.extend(self._class_chain(target, seen))
		chain.append((symbol.scope, symbol.node))
		return chain

	def bound_methods(self, symbol: Symbol) -> List[BoundMethod]:
		"""Describe the public methods of a bound class and register them on its package."""
		owner = self.builders[symbol.scope.package]
		class_name = symbol.node.name
		collected: Dict[str, BoundMethod] = {}
		for scope, node in self._class_chain(symbol):
			for method in public_methods(node):
				collected[method.name] = self._describe(scope, owner, class_name, method)
		methods = [collected[name] for name in sorted(collected)]
		for method in methods:
			owner.add_bound_method(method)
		return methods

	def _describe(
		self, scope: ModuleScope, owner: PackageBuilder, class_name: str, node: ast.FunctionDef
	) -> BoundMethod:
		args = node.args
		positional = list(args.posonlyargs) + list(args.args)
		if positional and not is_static(node):
			positional = positional[1:]
		params = []
		for arg in positional + list(args.kwonlyargs):
			where = f"{class_name}.{node.name}({arg.arg})"
			params.append(Param(
				name=arg.arg,
				type=self.resolver.resolve_annotation(arg.annotation, scope, owner, where, node.lineno),
			))
		result: Optional[TypeRef]
		if isinstance(node.returns, ast.Constant) and node.returns.value is None:
			result = None
		else:
			result = self.resolver.resolve_annotation(
				node.returns, scope, owner, f"{class_name}.{node.name} -> result", node.lineno
			)
		return BoundMethod(
			package=owner.name,
			struct_name=class_name,
			name=node.name,
			params=params,
			result=result,
			comments=declaration_comments(scope.source, node),
			is_async=isinstance(node, ast.AsyncFunctionDef),
		)
