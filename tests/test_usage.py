from bindgen.model import Struct, StructField, TypeRef
from bindgen.usage import StructGraph


def test_sample_data_and_internal_structs(sample_project):
	app = sample_project.analyze().packages["app"]
	assert app.structs_used_as_data == ["Address", "Person"]
	assert [s.name for s in app.data_structs()] == ["Address", "Person"]
	assert [s.name for s in app.internal_structs()] == ["CacheEntry"]
	assert app.struct_is_used_as_data("CacheEntry") is False


def test_struct_graph_reachability():
	graph = StructGraph()
	graph.add_node(Struct(package="p", module="p.m", name="Outer", fields=[
		StructField(name="inner", type=TypeRef.sequence(TypeRef.struct("p", "Inner"))),
		StructField(name="ext", type=TypeRef.opaque("uuid.UUID")),
	]))
	graph.add_node(Struct(package="p", module="p.m", name="Inner", fields=[
		StructField(name="back", type=TypeRef.pointer(TypeRef.struct("p", "Outer"))),
	]))
	graph.add_node(Struct(package="p", module="p.m", name="Alone"))

	assert graph.get_reachable_from({("p", "Outer")}) == {("p", "Outer"), ("p", "Inner")}
	assert graph.get_reachable_from({("p", "Alone")}) == {("p", "Alone")}
	assert graph.get_reachable_from(set()) == set()


MODELS = """
	from dataclasses import dataclass
	from typing import Dict, List


	@dataclass
	class Leaf:
		value: int


	@dataclass
	class Inner:
		leaves: Dict[str, List[Leaf]]


	@dataclass
	class Outer:
		inner: Inner


	@dataclass
	class Event:
		name: str


	@dataclass
	class Unused:
		inner: Inner
"""


def test_transitive_fields_are_data(project):
	project.write({
		"main.py": """
			import webbridge

			from models.types import Outer


			class Api:
				def get(self) -> Outer:
					return Outer(None)


			def main():
				webbridge.bind(Api())
		""",
		"models/__init__.py": "",
		"models/types.py": MODELS,
	})
	models = project.analyze().packages["models"]
	assert models.structs_used_as_data == ["Inner", "Leaf", "Outer"]
	assert [s.name for s in models.internal_structs()] == ["Event", "Unused"]


def test_payload_passed_to_bridge_in_other_module(project):
	project.write({
		"main.py": """
			import webbridge

			from events import Notifier


			def main():
				webbridge.bind(Notifier())
		""",
		"events.py": """
			import webbridge as bridge

			from models.types import Event


			class Notifier:
				def ping(self) -> None:
					event = Event("ping")
					bridge.emit("ping", event)
		""",
		"models/__init__.py": "",
		"models/types.py": MODELS,
	})
	models = project.analyze().packages["models"]
	assert models.structs_used_as_data == ["Event"]


def test_payload_keyword_in_entry_module(project):
	project.write({
		"main.py": """
			import webbridge as wb

			from models.types import Leaf


			def main():
				app = wb.App()
				app.emit("tick", payload=Leaf(1))
		""",
		"models/__init__.py": "",
		"models/types.py": MODELS,
	})
	models = project.analyze().packages["models"]
	assert models.structs_used_as_data == ["Leaf"]


def test_classification_is_deterministic(sample_project):
	first = sample_project.analyze()
	second = sample_project.analyze()
	for name in first.packages:
		assert first.packages[name].structs_used_as_data == second.packages[name].structs_used_as_data
		assert first.packages[name].model_dump() == second.packages[name].model_dump()
