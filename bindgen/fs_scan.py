from __future__ import annotations

import ast
import io
import os
import tokenize
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from .config import BindgenConfig
from .errors import BindingIOError, SourceError
from .logging import get_logger


logger = get_logger("fs_scan")


@dataclass
class SourceFile:
	path: str
	rel_path: str
	module: str
	package: str
	is_package_init: bool
	tree: ast.Module
	lines: List[str]
	# line number -> comment text (marker included), from the tokenizer
	comments: Dict[int, str] = field(default_factory=dict)


@dataclass
class SourcePackage:
	name: str
	path: str
	files: List[SourceFile] = field(default_factory=list)


@dataclass
class Program:
	root: str
	root_package: str
	packages: Dict[str, SourcePackage]
	entry_file: Optional[SourceFile] = None

	def iter_files(self) -> Iterator[SourceFile]:
		for name in sorted(self.packages):
			yield from self.packages[name].files


def to_module_name(root: str, file_path: str, root_package: str) -> str:
	rel_path = os.path.relpath(file_path, root)
	without_ext = os.path.splitext(rel_path)[0]
	parts = []
	for part in without_ext.split(os.sep):
		if part == "__init__":
			continue
		parts.append(part)
	return ".".join(parts).replace("-", "_") or root_package


def to_package_name(root: str, dir_path: str, root_package: str) -> str:
	rel_dir = os.path.relpath(dir_path, root)
	if rel_dir == os.curdir:
		return root_package
	return rel_dir.replace(os.sep, ".").replace("-", "_")


def collect_comments(text: str) -> Dict[int, str]:
	comments: Dict[int, str] = {}
	try:
		for tok in tokenize.generate_tokens(io.StringIO(text).readline):
			if tok.type == tokenize.COMMENT:
				comments[tok.start[0]] = tok.string
	except (tokenize.TokenError, SyntaxError):
		# The file already parsed; a tokenizer hiccup only costs us comments.
		logger.debug("Could not tokenize comments", exc_info=True)
	return comments


def read_source(root: str, path: str, root_package: str) -> SourceFile:
	try:
		with open(path, "r", encoding="utf-8") as fh:
			text = fh.read()
	except (OSError, UnicodeDecodeError) as exc:
		raise BindingIOError(path, f"cannot read source: {exc}") from exc
	try:
		tree = ast.parse(text, filename=path)
	except SyntaxError as exc:
		raise SourceError(path, exc.msg or "invalid syntax", exc.lineno) from exc
	return SourceFile(
		path=path,
		rel_path=os.path.relpath(path, root),
		module=to_module_name(root, path, root_package),
		package=to_package_name(root, os.path.dirname(path), root_package),
		is_package_init=os.path.basename(path) == "__init__.py",
		tree=tree,
		lines=text.splitlines(),
		comments=collect_comments(text),
	)


def load_program(config: BindgenConfig) -> Program:
	"""Read and parse every Python file under ``config.root``.

	Directories and files are visited in sorted order so that everything
	downstream sees the same traversal order on every run.
	"""
	root = os.path.abspath(config.root)
	if not os.path.isdir(root):
		raise BindingIOError(root, "source root is not a directory")

	ignored = set(config.exclude_dirs)
	module_dir = os.path.abspath(config.module_path())
	entry_path = os.path.abspath(config.entry_path())
	packages: Dict[str, SourcePackage] = {}
	entry_file: Optional[SourceFile] = None

	for dirpath, dirnames, filenames in os.walk(root):
		dirnames[:] = sorted(
			d for d in dirnames
			if d not in ignored and not d.startswith(".") and os.path.join(dirpath, d) != module_dir
		)
		for filename in sorted(filenames):
			if not filename.endswith(".py"):
				continue
			path = os.path.join(dirpath, filename)
			source = read_source(root, path, config.root_package)
			package = packages.get(source.package)
			if package is None:
				package = SourcePackage(name=source.package, path=dirpath)
				packages[source.package] = package
			package.files.append(source)
			if os.path.abspath(path) == entry_path:
				entry_file = source

	logger.debug(
		"Loaded %d packages (%d files) from %s",
		len(packages),
		sum(len(p.files) for p in packages.values()),
		root,
	)
	if entry_file is None:
		logger.info("Entry file %s not found; no methods will be exposed", config.entry_file)
	return Program(root=root, root_package=config.root_package, packages=packages, entry_file=entry_file)
