"""The analysis pipeline.

1. load every module and build the symbol table,
2. register each package's record classes as placeholders,
3. resolve each package's structs (a resolution error fails the package),
4. scan the entry file for the exposed surface,
5. classify data structs,
6. freeze the packages that survived.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from .comments import declaration_comments
from .config import BindgenConfig
from .emitter import BindingEmitter
from .entrypoints import EntryPointScanner
from .errors import TypeResolutionError
from .fs_scan import Program, load_program
from .logging import get_logger
from .model import AnalysisResult
from .package import PackageBuilder
from .resolver import StructResolver
from .symbols import SymbolTable
from .usage import UsageClassifier


logger = get_logger("analyze")


class Analyzer:
	def __init__(self, config: BindgenConfig):
		self.config = config

	def analyze(self, program: Optional[Program] = None) -> AnalysisResult:
		program = program if program is not None else load_program(self.config)
		symbols = SymbolTable(program)
		builders: Dict[str, PackageBuilder] = {
			name: PackageBuilder(name, is_root=name == program.root_package)
			for name in sorted(program.packages)
		}

		resolver = StructResolver(symbols, builders)

		# placeholders first so declaration order never matters
		pending: Dict[str, List] = {name: [] for name in builders}
		for scope in symbols.iter_scopes():
			for node in scope.classes.values():
				if resolver.is_record(scope, node):
					builders[scope.package].register(node.name, scope.module, declaration_comments(scope.source, node))
					pending[scope.package].append((scope, node))

		failures: Dict[str, TypeResolutionError] = {}
		for name in sorted(builders):
			try:
				for scope, node in pending[name]:
					resolver.resolve(scope, node)
			except TypeResolutionError as exc:
				logger.error("%s", exc)
				failures[name] = exc
				failures.setdefault(exc.package, exc)

		scanner = EntryPointScanner(program, symbols, resolver, builders, self.config)
		surface = scanner.scan()
		for name, exc in scanner.failures.items():
			failures.setdefault(name, exc)
			failures.setdefault(exc.package, exc)
		self._finish_pending(symbols, resolver, builders, failures)

		UsageClassifier(symbols, surface.bridge).classify(builders, surface)

		result = AnalysisResult(
			root=program.root,
			root_package=program.root_package,
			packages={},
			surface=surface,
		)
		for name in sorted(builders):
			if name in failures:
				result.record_failure(name, failures[name])
				continue
			package = builders[name].build()
			result.packages[name] = package
			logger.info(
				"Package %s: %d structs (%d data), %d bound methods",
				name, len(package.structs), len(package.structs_used_as_data), len(package.bound_methods),
			)
		return result

	def _finish_pending(
		self,
		symbols: SymbolTable,
		resolver: StructResolver,
		builders: Dict[str, PackageBuilder],
		failures: Dict[str, TypeResolutionError],
	) -> None:
		"""Resolve placeholders left behind when a resolution elsewhere failed midway."""
		for name in sorted(builders):
			if name in failures:
				continue
			builder = builders[name]
			try:
				for struct_name in builder.pending():
					scope = symbols.scopes[builder.get(struct_name).module]
					resolver.resolve(scope, scope.classes[struct_name])
			except TypeResolutionError as exc:
				failures[name] = exc


def generate_bindings(config: BindgenConfig) -> List[str]:
	"""Analyze the project and write bindings for every package that resolved.

	Packages that failed analysis get no artifacts; their failure is raised
	after the others have been written.
	"""
	result = Analyzer(config).analyze()
	emitter = BindingEmitter(config.templates_dir)
	written: List[str] = []
	for name in sorted(result.packages):
		written.extend(emitter.emit(result.packages[name], config.module_path()))
	result.raise_for_failures()
	return written
