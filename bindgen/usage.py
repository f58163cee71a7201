from __future__ import annotations

from typing import Dict, List, Set, Tuple

from .entrypoints import BridgeCallVisitor, class_of, find_bridge_alias
from .logging import get_logger
from .model import BridgeContext, EntrySurface, Struct
from .package import PackageBuilder
from .symbols import SymbolTable
from .visitor import walk


logger = get_logger("usage")

StructKey = Tuple[str, str]


class StructGraph:
    """Which structs embed which, through fields at any nesting depth."""

    def __init__(self):
        self.nodes: Dict[StructKey, Struct] = {}
        self.edges: Dict[StructKey, Set[StructKey]] = {}

    def add_node(self, struct: Struct):
        """Add a struct and the edges its fields imply."""
        key = (struct.package, struct.name)
        self.nodes[key] = struct
        targets = self.edges.setdefault(key, set())
        for field in struct.fields:
            for ref in field.type.struct_refs():
                targets.add((ref.package, ref.name))

    def get_reachable_from(self, starts: Set[StructKey]) -> Set[StructKey]:
        """All structs reachable from ``starts``, the starts included."""
        visited: Set[StructKey] = set()
        queue: List[StructKey] = sorted(starts)
        while queue:
            current = queue.pop(0)
            if current in visited:
                continue
            visited.add(current)
            for target in sorted(self.edges.get(current, ())):
                if target not in visited:
                    queue.append(target)
        return visited


class UsageClassifier:
    """Flags the structs that cross the bridge.

    Seeds are the structs appearing in exposed method signatures plus the
    structs constructed and handed to a bridge call anywhere in the
    program. Everything reachable from a seed through fields is data.
    """

    def __init__(self, symbols: SymbolTable, bridge: BridgeContext):
        self.symbols = symbols
        self.bridge = bridge

    def surface_seeds(self, surface: EntrySurface) -> Set[StructKey]:
        seeds: Set[StructKey] = set()
        for method in surface.methods:
            for param in method.params:
                seeds.update((ref.package, ref.name) for ref in param.type.struct_refs())
            if method.result is not None:
                seeds.update((ref.package, ref.name) for ref in method.result.struct_refs())
        return seeds

    def payload_seeds(self, builders: Dict[str, PackageBuilder]) -> Set[StructKey]:
        seeds: Set[StructKey] = set()
        for scope in self.symbols.iter_scopes():
            if scope.module == self.bridge.entry_module:
                alias = self.bridge.alias
            else:
                alias = find_bridge_alias(scope, self.bridge.bridge_module)
            if alias is None:
                continue
            visitor = BridgeCallVisitor(alias, self.bridge.bind_methods, self.bridge.bind_keyword)
            walk(scope.source.tree, visitor)
            for expr in visitor.payloads:
                symbol = class_of(self.symbols, scope, expr, visitor)
                if symbol is None:
                    continue
                builder = builders.get(symbol.scope.package)
                if builder is not None and builder.owns(symbol.node.name, symbol.scope.module):
                    logger.debug("%s passes %s to the bridge", scope.module, symbol.qualified_name)
                    seeds.add((symbol.scope.package, symbol.node.name))
        return seeds

    def classify(self, builders: Dict[str, PackageBuilder], surface: EntrySurface) -> Set[StructKey]:
        """Record data structs on their owning builders and return them."""
        graph = StructGraph()
        for name in sorted(builders):
            builder = builders[name]
            for struct_name in builder.resolved_names():
                graph.add_node(builder.get(struct_name))

        seeds = self.surface_seeds(surface) | self.payload_seeds(builders)
        used = graph.get_reachable_from(seeds)
        for package, struct_name in sorted(used):
            builder = builders.get(package)
            if builder is not None and builder.get(struct_name) is not None:
                builder.mark_used_as_data(struct_name)
        logger.debug("%d structs used as data (%d seeds)", len(used), len(seeds))
        return used
