"""Struct resolution.

Maps class declarations onto :class:`Struct` entities and annotation
expressions onto :class:`TypeRef` descriptors. Referenced in-tree classes
are resolved eagerly; an in-progress set keyed by ``(package, name)`` stops
self- and mutually-referencing classes from recursing forever.
"""

from __future__ import annotations

import ast
from typing import Dict, List, Optional, Set, Tuple

from .ast_parse import class_fields, dotted_name, is_record_class
from .comments import declaration_comments
from .errors import TypeResolutionError
from .logging import get_logger
from .model import Struct, StructField, TypeKind, TypeRef
from .package import PackageBuilder
from .symbols import ModuleScope, Symbol, SymbolTable


logger = get_logger("resolver")

TYPING_MODULES = {"typing", "typing_extensions", "collections", "collections.abc", "builtins"}

PRIMITIVE_NAMES = {
	"bool": "boolean",
	"int": "integer",
	"float": "float",
	"str": "string",
	"LiteralString": "string",
}
BYTES_NAMES = {"bytes", "bytearray", "memoryview"}
ANY_NAMES = {"Any", "object", "type", "Type", "Callable", "Awaitable", "Coroutine", "TypeVar"}
SEQUENCE_NAMES = {
	"list", "List", "Sequence", "MutableSequence", "Iterable", "Iterator", "Collection",
	"set", "Set", "frozenset", "FrozenSet", "AbstractSet", "MutableSet", "deque", "Deque",
}
TUPLE_NAMES = {"tuple", "Tuple"}
MAPPING_NAMES = {
	"dict", "Dict", "Mapping", "MutableMapping", "OrderedDict", "DefaultDict", "defaultdict",
}
UNWRAP_NAMES = {"Annotated", "Final", "ClassVar", "Required", "NotRequired", "ReadOnly"}

# enum base -> primitive its members carry, None when the members decide
ENUM_BASES = {
	"enum.Enum": None,
	"enum.Flag": "integer",
	"enum.IntFlag": "integer",
	"enum.IntEnum": "integer",
	"enum.StrEnum": "string",
}
ENUM_AUTO = {"auto", "enum.auto"}

# base-class chains longer than this are given up on
MAX_BASE_DEPTH = 16


def _constant_kind(expr: ast.expr) -> str:
	"""Primitive name of a literal constant, 'any' for anything else."""
	value = expr.value if isinstance(expr, ast.Constant) else None
	if isinstance(value, bool):
		return "boolean"
	if isinstance(value, int):
		return "integer"
	if isinstance(value, float):
		return "float"
	if isinstance(value, str):
		return "string"
	return "any"


class StructResolver:
	def __init__(self, symbols: SymbolTable, builders: Dict[str, PackageBuilder]):
		self.symbols = symbols
		self.builders = builders
		self._in_progress: Set[Tuple[str, str]] = set()
		self._aliases_in_progress: Set[str] = set()

	def resolve(self, scope: ModuleScope, node: ast.ClassDef) -> Struct:
		builder = self.builders[scope.package]
		struct = builder.register(node.name, scope.module, declaration_comments(scope.source, node))
		if not builder.owns(node.name, scope.module):
			return struct
		key = (scope.package, node.name)
		if builder.is_resolved(node.name) or key in self._in_progress:
			return struct

		self._in_progress.add(key)
		try:
			fields: Dict[str, StructField] = {}
			for base_scope, base in self._in_tree_bases(scope, node):
				for inherited in self.resolve(base_scope, base).fields:
					fields.setdefault(inherited.name, inherited)
			for stmt in class_fields(node):
				name = stmt.target.id  # type: ignore[union-attr]
				where = f"{node.name}.{name}"
				field_type = self.resolve_annotation(stmt.annotation, scope, builder, where, stmt.lineno)
				fields[name] = StructField(
					name=name,
					type=field_type,
					comments=declaration_comments(scope.source, stmt),
				)
			logger.debug("Resolved struct %s.%s (%d fields)", scope.package, node.name, len(fields))
			return builder.complete(node.name, list(fields.values()))
		finally:
			self._in_progress.discard(key)

	def _in_tree_bases(self, scope: ModuleScope, node: ast.ClassDef) -> List[Tuple[ModuleScope, ast.ClassDef]]:
		bases = []
		for base in node.bases:
			name = dotted_name(base.value if isinstance(base, ast.Subscript) else base)
			if name is None:
				continue
			symbol = self.symbols.lookup(scope, name)
			if symbol is not None and symbol.kind == "class":
				bases.append((symbol.scope, symbol.node))
		return bases

	def is_record(self, scope: ModuleScope, node: ast.ClassDef, depth: int = 0) -> bool:
		"""True for record classes and for subclasses of in-tree records; enums never count."""
		if depth == 0 and self.enum_value_type(scope, node) is not None:
			return False
		if is_record_class(node):
			return True
		if depth >= MAX_BASE_DEPTH:
			return False
		return any(self.is_record(s, base, depth + 1) for s, base in self._in_tree_bases(scope, node))

	def enum_value_type(self, scope: ModuleScope, node: ast.ClassDef, depth: int = 0) -> Optional[TypeRef]:
		"""Primitive carried by an enum class's members, or None when ``node`` is not an enum.

		A ``str``/``int`` mixin or a typed enum base decides the primitive;
		otherwise the member values do, and mixed values give ``any``.
		"""
		if depth >= MAX_BASE_DEPTH:
			return None
		is_enum = False
		primitive: Optional[str] = None
		for base in node.bases:
			name = dotted_name(base)
			if name is None:
				continue
			if not scope.defines(name) and name not in scope.imports and name in PRIMITIVE_NAMES:
				primitive = primitive or PRIMITIVE_NAMES[name]
				continue
			symbol = self.symbols.lookup(scope, name)
			if symbol is None:
				continue
			if symbol.kind == "external" and symbol.qualified_name in ENUM_BASES:
				is_enum = True
				primitive = primitive or ENUM_BASES[symbol.qualified_name]
			elif symbol.kind == "class":
				inherited = self.enum_value_type(symbol.scope, symbol.node, depth + 1)
				if inherited is None:
					continue
				is_enum = True
				if inherited.kind == TypeKind.PRIMITIVE:
					primitive = primitive or inherited.name
		if not is_enum:
			return None
		if primitive is not None:
			return TypeRef.primitive(primitive)
		return self._enum_members(node)

	def _enum_members(self, node: ast.ClassDef) -> TypeRef:
		kinds = set()
		for stmt in node.body:
			if not isinstance(stmt, ast.Assign):
				continue
			if not any(isinstance(t, ast.Name) and not t.id.startswith("_") for t in stmt.targets):
				continue
			value = stmt.value
			if isinstance(value, ast.Call) and dotted_name(value.func) in ENUM_AUTO:
				kinds.add("integer")
			else:
				kinds.add(_constant_kind(value))
		if len(kinds) == 1 and "any" not in kinds:
			return TypeRef.primitive(kinds.pop())
		return TypeRef.unknown()

	def resolve_annotation(
		self,
		expr: Optional[ast.expr],
		scope: ModuleScope,
		owner: PackageBuilder,
		where: str,
		lineno: Optional[int] = None,
	) -> TypeRef:
		"""Map an annotation expression written in ``scope`` onto a descriptor.

		``owner`` is the package whose declaration is being resolved; it
		collects cross-package and external references.
		"""
		if expr is None:
			return TypeRef.unknown()
		lineno = getattr(expr, "lineno", lineno)

		if isinstance(expr, ast.Constant):
			if isinstance(expr.value, str):
				try:
					parsed = ast.parse(expr.value.strip(), mode="eval").body
				except SyntaxError:
					raise self._error(f"invalid forward reference {expr.value!r}", scope, where, lineno)
				return self.resolve_annotation(parsed, scope, owner, where, lineno)
			return TypeRef.unknown()

		if isinstance(expr, ast.BinOp) and isinstance(expr.op, ast.BitOr):
			return self._union(self._flatten_union(expr), scope, owner, where, lineno)

		if isinstance(expr, ast.Subscript):
			return self._generic(expr, scope, owner, where, lineno)

		dotted = dotted_name(expr)
		if dotted is None:
			raise self._error(f"unsupported annotation {ast.unparse(expr)!r}", scope, where, lineno)

		builtin = self._builtin_name(dotted, scope)
		if builtin is not None:
			return self._builtin(builtin, dotted, scope, where, lineno)
		return self._named(dotted, scope, owner, where, lineno)

	def _builtin_name(self, dotted: str, scope: ModuleScope) -> Optional[str]:
		"""Name of a builtin or typing construct, or None for user names."""
		head, _, rest = dotted.partition(".")
		if scope.defines(head):
			return None
		binding = scope.imports.get(head)
		if binding is None:
			return dotted if not rest else None
		qualified = binding.qualified_name
		if rest:
			qualified = f"{qualified}.{rest}"
		module, _, name = qualified.rpartition(".")
		if module in TYPING_MODULES:
			return name
		return None

	def _builtin(self, name: str, dotted: str, scope: ModuleScope, where: str, lineno: Optional[int]) -> TypeRef:
		if name in PRIMITIVE_NAMES:
			return TypeRef.primitive(PRIMITIVE_NAMES[name])
		if name in BYTES_NAMES:
			return TypeRef.sequence(TypeRef.primitive("byte"))
		if name in ANY_NAMES:
			return TypeRef.unknown()
		if name in SEQUENCE_NAMES or name in TUPLE_NAMES:
			return TypeRef.sequence(TypeRef.unknown())
		if name in MAPPING_NAMES:
			return TypeRef.mapping(TypeRef.unknown(), TypeRef.unknown())
		if name == "None":
			return TypeRef.unknown()
		if name != dotted or name in scope.imports:
			# a typing construct without a descriptor of its own
			return TypeRef.unknown()
		raise self._error(f"name {dotted!r} is not defined or imported", scope, where, lineno)

	def _flatten_union(self, expr: ast.expr) -> List[ast.expr]:
		if isinstance(expr, ast.BinOp) and isinstance(expr.op, ast.BitOr):
			return self._flatten_union(expr.left) + self._flatten_union(expr.right)
		return [expr]

	def _union(
		self, members: List[ast.expr], scope: ModuleScope, owner: PackageBuilder, where: str, lineno: Optional[int]
	) -> TypeRef:
		def is_none(member: ast.expr) -> bool:
			if isinstance(member, ast.Constant):
				return member.value is None or member.value == "None"
			return isinstance(member, ast.Name) and member.id == "None"

		optional = any(is_none(m) for m in members)
		resolved = [self.resolve_annotation(m, scope, owner, where, lineno) for m in members if not is_none(m)]
		distinct = list(dict.fromkeys(resolved))
		inner = distinct[0] if len(distinct) == 1 else TypeRef.unknown()
		return TypeRef.pointer(inner) if optional else inner

	def _generic(
		self, expr: ast.Subscript, scope: ModuleScope, owner: PackageBuilder, where: str, lineno: Optional[int]
	) -> TypeRef:
		args = list(expr.slice.elts) if isinstance(expr.slice, ast.Tuple) else [expr.slice]
		dotted = dotted_name(expr.value)
		origin = self._builtin_name(dotted, scope) if dotted else None

		if origin is None:
			if dotted is None:
				raise self._error(f"unsupported annotation {ast.unparse(expr)!r}", scope, where, lineno)
			# user-defined generic: parameters do not change the referenced struct
			return self._named(dotted, scope, owner, where, lineno)

		def arg(index: int) -> TypeRef:
			if index >= len(args):
				return TypeRef.unknown()
			return self.resolve_annotation(args[index], scope, owner, where, lineno)

		if origin == "Optional":
			return TypeRef.pointer(arg(0))
		if origin == "Union":
			return self._union(args, scope, owner, where, lineno)
		if origin in UNWRAP_NAMES:
			return arg(0)
		if origin == "Literal":
			return self._literal(args)
		if origin in SEQUENCE_NAMES:
			return TypeRef.sequence(arg(0))
		if origin in TUPLE_NAMES:
			if len(args) == 2 and isinstance(args[1], ast.Constant) and args[1].value is Ellipsis:
				return TypeRef.sequence(arg(0))
			members = list(dict.fromkeys(arg(i) for i in range(len(args))))
			return TypeRef.sequence(members[0] if len(members) == 1 else TypeRef.unknown())
		if origin in MAPPING_NAMES:
			return TypeRef.mapping(arg(0), arg(1))
		return self._builtin(origin, dotted or origin, scope, where, lineno)

	def _literal(self, args: List[ast.expr]) -> TypeRef:
		kinds = {_constant_kind(a) for a in args}
		if len(kinds) == 1 and "any" not in kinds:
			return TypeRef.primitive(kinds.pop())
		return TypeRef.unknown()

	def _named(self, dotted: str, scope: ModuleScope, owner: PackageBuilder, where: str, lineno: Optional[int]) -> TypeRef:
		symbol = self.symbols.lookup(scope, dotted)
		if symbol is None:
			raise self._error(f"cannot resolve type {dotted!r}", scope, where, lineno)
		if symbol.kind == "external":
			owner.add_unresolved(symbol.qualified_name)
			return TypeRef.opaque(symbol.qualified_name)
		if symbol.kind == "alias":
			return self._alias(symbol, owner, where, lineno)
		if symbol.kind != "class":
			raise self._error(f"{dotted!r} is a {symbol.kind}, not a type", scope, where, lineno)
		enum_type = self.enum_value_type(symbol.scope, symbol.node)
		if enum_type is not None:
			return enum_type
		return self.struct_ref(symbol, owner)

	def _alias(self, symbol: Symbol, owner: PackageBuilder, where: str, lineno: Optional[int]) -> TypeRef:
		value = symbol.node
		# TypeVar("T"), NewType(...) and other call results carry no usable shape
		if isinstance(value, ast.Call) or symbol.qualified_name in self._aliases_in_progress:
			return TypeRef.unknown()
		self._aliases_in_progress.add(symbol.qualified_name)
		try:
			return self.resolve_annotation(value, symbol.scope, owner, where, lineno)
		finally:
			self._aliases_in_progress.discard(symbol.qualified_name)

	def struct_ref(self, symbol: Symbol, owner: PackageBuilder) -> TypeRef:
		"""Reference the class behind ``symbol``, resolving it first if needed."""
		target = symbol.scope
		struct = self.resolve(target, symbol.node)
		owner.add_reference(target.package)
		return TypeRef.struct(struct.package, struct.name)

	def _error(self, message: str, scope: ModuleScope, where: str, lineno: Optional[int]) -> TypeResolutionError:
		return TypeResolutionError(
			message,
			package=scope.package,
			path=scope.source.rel_path,
			lineno=lineno,
			declaration=where,
		)
