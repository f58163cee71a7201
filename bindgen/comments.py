"""Documentation comment extraction.

A declaration's documentation is the block of ``#`` lines directly above
it (above its decorators, if any). Classes and functions without such a
block fall back to their docstring; fields fall back to a trailing inline
comment on the declaring line.
"""

from __future__ import annotations

import ast
import inspect
from typing import List, Optional, Sequence

from .fs_scan import SourceFile


def parse_comments(block: Optional[Sequence[str]]) -> List[str]:
	"""Strip comment markers and one leading space from each line."""
	if not block:
		return []
	lines: List[str] = []
	for raw in block:
		text = raw.strip().lstrip("#")
		if text.startswith(" "):
			text = text[1:]
		lines.append(text.rstrip())
	return lines


def _first_line(node: ast.AST) -> int:
	linenos = [node.lineno]
	for deco in getattr(node, "decorator_list", []) or []:
		linenos.append(deco.lineno)
	return min(linenos)


def comment_block_above(source: SourceFile, lineno: int) -> List[str]:
	"""Raw comment lines directly above ``lineno`` (1-based), top to bottom."""
	block: List[str] = []
	current = lineno - 1
	while current >= 1:
		text = source.lines[current - 1].strip() if current - 1 < len(source.lines) else ""
		if not text.startswith("#") or current not in source.comments:
			break
		block.append(source.comments[current])
		current -= 1
	block.reverse()
	return block


def declaration_comments(source: SourceFile, node: ast.AST) -> List[str]:
	block = comment_block_above(source, _first_line(node))
	if block:
		return parse_comments(block)
	if isinstance(node, (ast.ClassDef, ast.FunctionDef, ast.AsyncFunctionDef)):
		docstring = ast.get_docstring(node, clean=False)
		if docstring:
			return inspect.cleandoc(docstring).splitlines()
		return []
	# trailing "x: int  # comment" on the declaring line
	end = getattr(node, "end_lineno", None) or node.lineno
	inline = source.comments.get(end)
	if inline is not None and not source.lines[end - 1].strip().startswith("#"):
		return parse_comments([inline])
	return []
