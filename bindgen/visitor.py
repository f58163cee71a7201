from __future__ import annotations

import ast
from typing import Dict, List


class DeclarationVisitor:
	"""Handlers for the node kinds the analyzer inspects.

	Each handler returns True to descend into the node's children and False
	to skip them. Nodes of any other kind are always descended into.
	"""

	def visit_class(self, node: ast.ClassDef) -> bool:
		return True

	def visit_function(self, node: ast.FunctionDef) -> bool:
		return True

	def visit_call(self, node: ast.Call) -> bool:
		return True

	def visit_assignment(self, node: ast.stmt) -> bool:
		return True


_HANDLERS: Dict[type, str] = {
	ast.ClassDef: "visit_class",
	ast.FunctionDef: "visit_function",
	ast.AsyncFunctionDef: "visit_function",
	ast.Call: "visit_call",
	ast.Assign: "visit_assignment",
	ast.AnnAssign: "visit_assignment",
}


def walk(tree: ast.AST, visitor: DeclarationVisitor) -> None:
	"""Pre-order walk in source order, dispatching to ``visitor``."""
	stack: List[ast.AST] = [tree]
	while stack:
		node = stack.pop()
		handler = _HANDLERS.get(type(node))
		if handler is not None and not getattr(visitor, handler)(node):
			continue
		stack.extend(reversed(list(ast.iter_child_nodes(node))))
