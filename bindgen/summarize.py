from __future__ import annotations

from typing import Dict, List

from .model import AnalysisResult, Package, Summaries


def summarize_package(p: Package) -> str:
	parts: List[str] = []
	parts.append(f"Package {p.name}{' (root)' if p.is_root else ''}")
	if p.structs:
		parts.append(f"  Structs: {', '.join(sorted(p.structs))}")
	if p.structs_used_as_data:
		parts.append(f"  Data: {', '.join(p.structs_used_as_data)}")
	if p.bound_methods:
		parts.append(f"  Methods: {', '.join(m.qualified_name for m in p.bound_methods)}")
	if p.package_references:
		parts.append(f"  References: {', '.join(p.package_references)}")
	if p.unresolved_references:
		parts.append(f"  External: {', '.join(p.unresolved_references)}")
	return "\n".join(parts)


def summarize_result(result: AnalysisResult) -> Summaries:
	per_package: Dict[str, str] = {}
	for name in sorted(result.packages):
		per_package[name] = summarize_package(result.packages[name])
	for name in sorted(result.failures):
		per_package[name] = f"Package {name}: failed: {result.failures[name]}"

	struct_count = sum(len(p.structs) for p in result.packages.values())
	data_count = sum(len(p.structs_used_as_data) for p in result.packages.values())
	global_overview = (
		f"Project at {result.root}: {len(result.packages)} packages analyzed, "
		f"{len(result.failures)} failed, {struct_count} structs ({data_count} data), "
		f"{len(result.surface.methods)} exposed methods"
	)

	return Summaries(
		global_overview=global_overview,
		per_package=per_package,
	)
