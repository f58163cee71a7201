from __future__ import annotations

from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, PrivateAttr

from .errors import BindgenError


class TypeKind(str, Enum):
	PRIMITIVE = "primitive"
	STRUCT = "struct"
	POINTER = "pointer"
	SEQUENCE = "sequence"
	MAPPING = "mapping"
	ANY = "any"


PRIMITIVES = ("boolean", "integer", "float", "string", "byte")


class TypeRef(BaseModel):
	"""Resolved, language-neutral description of a declared type.

	Struct references point at a Struct by ``(package, name)`` and never own
	it, so self-referencing and mutually-referencing structs are plain data.
	``external`` marks a reference into a module outside the source tree;
	``name`` then holds the qualified name.
	"""

	model_config = ConfigDict(frozen=True)

	kind: TypeKind
	name: Optional[str] = None
	package: Optional[str] = None
	elem: Optional[TypeRef] = None
	key: Optional[TypeRef] = None
	external: bool = False

	@classmethod
	def primitive(cls, name: str) -> TypeRef:
		if name not in PRIMITIVES:
			raise ValueError(f"unknown primitive {name!r}")
		return cls(kind=TypeKind.PRIMITIVE, name=name)

	@classmethod
	def struct(cls, package: str, name: str) -> TypeRef:
		return cls(kind=TypeKind.STRUCT, package=package, name=name)

	@classmethod
	def opaque(cls, qualified_name: str) -> TypeRef:
		return cls(kind=TypeKind.STRUCT, name=qualified_name, external=True)

	@classmethod
	def pointer(cls, elem: TypeRef) -> TypeRef:
		return cls(kind=TypeKind.POINTER, elem=elem)

	@classmethod
	def sequence(cls, elem: TypeRef) -> TypeRef:
		return cls(kind=TypeKind.SEQUENCE, elem=elem)

	@classmethod
	def mapping(cls, key: TypeRef, elem: TypeRef) -> TypeRef:
		return cls(kind=TypeKind.MAPPING, key=key, elem=elem)

	@classmethod
	def unknown(cls) -> TypeRef:
		return cls(kind=TypeKind.ANY)

	def struct_refs(self) -> Iterator[TypeRef]:
		"""Yield every in-tree struct reference nested in this descriptor."""
		if self.kind == TypeKind.STRUCT:
			if not self.external:
				yield self
			return
		if self.key is not None:
			yield from self.key.struct_refs()
		if self.elem is not None:
			yield from self.elem.struct_refs()

	def __str__(self) -> str:
		if self.kind == TypeKind.PRIMITIVE:
			return self.name or "?"
		if self.kind == TypeKind.STRUCT:
			return self.name if self.external else f"{self.package}.{self.name}"
		if self.kind == TypeKind.POINTER:
			return f"*{self.elem}"
		if self.kind == TypeKind.SEQUENCE:
			return f"[]{self.elem}"
		if self.kind == TypeKind.MAPPING:
			return f"map[{self.key}]{self.elem}"
		return "any"


class StructField(BaseModel):
	name: str
	type: TypeRef
	comments: List[str] = []


class Struct(BaseModel):
	package: str
	module: str
	name: str
	fields: List[StructField] = []
	comments: List[str] = []

	@property
	def qualified_name(self) -> str:
		return f"{self.package}.{self.name}"


class Param(BaseModel):
	name: str
	type: TypeRef


class BoundMethod(BaseModel):
	package: str
	struct_name: str
	name: str
	params: List[Param] = []
	result: Optional[TypeRef] = None
	comments: List[str] = []
	is_async: bool = False

	@property
	def qualified_name(self) -> str:
		return f"{self.package}.{self.struct_name}.{self.name}"


class Package(BaseModel):
	"""A finalized package model handed to the binding emitter.

	The accessor methods are what the templates bind to.
	"""

	model_config = ConfigDict(frozen=True)

	name: str
	is_root: bool = False
	structs: Dict[str, Struct] = {}
	package_references: List[str] = []
	unresolved_references: List[str] = []
	structs_used_as_data: List[str] = []
	bound_methods: List[BoundMethod] = []

	def declaration_references(self) -> List[str]:
		return list(self.package_references)

	def struct_is_used_as_data(self, struct_name: str) -> bool:
		return struct_name in self.structs_used_as_data

	def data_structs(self) -> List[Struct]:
		return [self.structs[name] for name in sorted(self.structs) if self.struct_is_used_as_data(name)]

	def internal_structs(self) -> List[Struct]:
		return [self.structs[name] for name in sorted(self.structs) if not self.struct_is_used_as_data(name)]

	def services(self) -> List[Tuple[str, List[BoundMethod]]]:
		"""Bound methods grouped by declaring class, both sorted by name."""
		grouped: Dict[str, List[BoundMethod]] = {}
		for method in self.bound_methods:
			grouped.setdefault(method.struct_name, []).append(method)
		return [(name, sorted(grouped[name], key=lambda m: m.name)) for name in sorted(grouped)]


class BridgeContext(BaseModel):
	model_config = ConfigDict(frozen=True)

	bridge_module: str
	alias: Optional[str] = None
	entry_module: Optional[str] = None
	bind_methods: Tuple[str, ...] = ("bind",)
	bind_keyword: str = "bind"


class EntrySurface(BaseModel):
	bridge: BridgeContext
	entry_package: Optional[str] = None
	bound_structs: List[str] = []
	methods: List[BoundMethod] = []

	@property
	def is_empty(self) -> bool:
		return not self.methods


class Summaries(BaseModel):
	global_overview: str
	per_package: Dict[str, str]


class AnalysisResult(BaseModel):
	root: str
	root_package: str
	packages: Dict[str, Package]
	failures: Dict[str, str] = {}
	surface: EntrySurface

	_errors: Dict[str, BindgenError] = PrivateAttr(default_factory=dict)

	def record_failure(self, package: str, error: BindgenError) -> None:
		self._errors[package] = error
		self.failures[package] = str(error)

	def raise_for_failures(self) -> None:
		"""Re-raise the root package's failure, else the first one by package name."""
		if not self._errors:
			return
		if self.root_package in self._errors:
			raise self._errors[self.root_package]
		raise self._errors[sorted(self._errors)[0]]


class AnalyzeResponse(BaseModel):
	result: AnalysisResult
	summaries: Summaries


TypeRef.model_rebuild()
