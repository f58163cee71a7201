from __future__ import annotations

from typing import Dict, List, Optional, Set

from .logging import get_logger
from .model import BoundMethod, Package, Struct, StructField


logger = get_logger("package")


class PackageBuilder:
	"""Package under construction.

	Structs are registered as empty placeholders first and filled in once
	their fields are resolved. ``build`` freezes the result; the builder
	refuses further changes afterwards.
	"""

	def __init__(self, name: str, is_root: bool = False):
		self.name = name
		self.is_root = is_root
		self._structs: Dict[str, Struct] = {}
		self._resolved: Set[str] = set()
		self._references: Set[str] = set()
		self._unresolved: Set[str] = set()
		self._used_as_data: Set[str] = set()
		self._bound_methods: Dict[str, BoundMethod] = {}
		self._package: Optional[Package] = None

	def _check_open(self) -> None:
		if self._package is not None:
			raise RuntimeError(f"package {self.name} is already finalized")

	def register(self, name: str, module: str, comments: Optional[List[str]] = None) -> Struct:
		"""Return the struct registered under ``name``, registering a placeholder if needed."""
		existing = self._structs.get(name)
		if existing is not None:
			if existing.module != module:
				logger.warning(
					"Struct %s.%s declared in both %s and %s; keeping %s",
					self.name, name, existing.module, module, existing.module,
				)
			return existing
		self._check_open()
		struct = Struct(package=self.name, module=module, name=name, comments=comments or [])
		self._structs[name] = struct
		return struct

	def get(self, name: str) -> Optional[Struct]:
		return self._structs.get(name)

	def owns(self, name: str, module: str) -> bool:
		struct = self._structs.get(name)
		return struct is not None and struct.module == module

	def is_resolved(self, name: str) -> bool:
		return name in self._resolved

	def complete(self, name: str, fields: List[StructField]) -> Struct:
		self._check_open()
		struct = self._structs[name]
		struct.fields = fields
		self._resolved.add(name)
		return struct

	def resolved_names(self) -> List[str]:
		return sorted(self._resolved)

	def pending(self) -> List[str]:
		return sorted(set(self._structs) - self._resolved)

	def add_reference(self, package: str) -> None:
		if package != self.name:
			self._check_open()
			self._references.add(package)

	def add_unresolved(self, qualified_name: str) -> None:
		self._check_open()
		self._unresolved.add(qualified_name)

	def mark_used_as_data(self, name: str) -> None:
		self._check_open()
		self._used_as_data.add(name)

	def add_bound_method(self, method: BoundMethod) -> None:
		self._check_open()
		self._bound_methods[method.qualified_name] = method

	def build(self) -> Package:
		if self._package is not None:
			return self._package
		pending = self.pending()
		if pending:
			raise RuntimeError(f"package {self.name} has unresolved placeholders: {', '.join(pending)}")
		self._package = Package(
			name=self.name,
			is_root=self.is_root,
			structs=dict(sorted(self._structs.items())),
			package_references=sorted(self._references),
			unresolved_references=sorted(self._unresolved),
			structs_used_as_data=sorted(self._used_as_data),
			bound_methods=[self._bound_methods[k] for k in sorted(self._bound_methods)],
		)
		return self._package
