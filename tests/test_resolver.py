import pytest

from bindgen.errors import TypeResolutionError
from bindgen.model import TypeKind, TypeRef


def _fields(struct):
	return {f.name: f.type for f in struct.fields}


def test_field_types_of_sample_models(sample_project):
	result = sample_project.analyze()
	app = result.packages["app"]
	person = _fields(app.structs["Person"])

	assert [f.name for f in app.structs["Person"].fields] == ["name", "age", "address", "friends", "tags", "born"]
	assert person["name"] == TypeRef.primitive("string")
	assert person["age"] == TypeRef.primitive("integer")
	assert person["address"] == TypeRef.pointer(TypeRef.struct("app", "Address"))
	assert person["friends"] == TypeRef.sequence(TypeRef.struct("app", "Person"))
	assert person["tags"] == TypeRef.mapping(TypeRef.primitive("string"), TypeRef.primitive("float"))
	assert person["born"] == TypeRef.pointer(TypeRef.opaque("datetime.datetime"))
	assert app.unresolved_references == ["datetime.datetime"]
	assert app.structs["Person"].comments == ["Someone we greet."]


def test_arbitrary_nesting(project):
	project.write({
		"models.py": """
			from dataclasses import dataclass
			from typing import Optional


			@dataclass
			class Foo:
				x: int


			@dataclass
			class Holder:
				nested: list[dict[str, Optional[Foo]]]
				pairs: tuple[int, ...]
				blob: bytes
				maybe: "Foo | None"
				anything: object
		""",
	})
	fields = _fields(project.analyze().packages["main"].structs["Holder"])
	assert fields["nested"] == TypeRef.sequence(
		TypeRef.mapping(TypeRef.primitive("string"), TypeRef.pointer(TypeRef.struct("main", "Foo")))
	)
	assert fields["pairs"] == TypeRef.sequence(TypeRef.primitive("integer"))
	assert fields["blob"] == TypeRef.sequence(TypeRef.primitive("byte"))
	assert fields["maybe"] == TypeRef.pointer(TypeRef.struct("main", "Foo"))
	assert fields["anything"].kind == TypeKind.ANY


def test_self_and_mutual_references_terminate(project):
	project.write({
		"graph.py": """
			from __future__ import annotations

			from dataclasses import dataclass
			from typing import List, Optional


			@dataclass
			class A:
				parent: Optional[A]
				children: List[A]
				partner: Optional[B]


			@dataclass
			class B:
				back: Optional[A]
		""",
	})
	main = project.analyze().packages["main"]
	a = _fields(main.structs["A"])
	assert a["parent"] == TypeRef.pointer(TypeRef.struct("main", "A"))
	assert a["children"] == TypeRef.sequence(TypeRef.struct("main", "A"))
	assert _fields(main.structs["B"])["back"] == TypeRef.pointer(TypeRef.struct("main", "A"))


def test_forward_reference_to_later_declaration(project):
	project.write({
		"models.py": """
			from dataclasses import dataclass


			@dataclass
			class First:
				second: "Second"


			@dataclass
			class Second:
				value: str
		""",
	})
	main = project.analyze().packages["main"]
	assert _fields(main.structs["First"])["second"] == TypeRef.struct("main", "Second")


def test_cross_package_reference_and_reexport(project):
	project.write({
		"shared/__init__.py": "from .money import Money\n",
		"shared/money.py": """
			from dataclasses import dataclass


			@dataclass
			class Money:
				amount: float
				currency: str
		""",
		"shop/__init__.py": "",
		"shop/orders.py": """
			from dataclasses import dataclass

			import shared
			from shared import Money


			@dataclass
			class Order:
				price: Money
				discount: shared.Money
		""",
	})
	result = project.analyze()
	order = _fields(result.packages["shop"].structs["Order"])
	assert order["price"] == TypeRef.struct("shared", "Money")
	assert order["discount"] == TypeRef.struct("shared", "Money")
	assert result.packages["shop"].package_references == ["shared"]
	assert list(result.packages["shared"].structs) == ["Money"]


def test_plain_class_reference_is_registered_eagerly(project):
	project.write({
		"models.py": """
			from dataclasses import dataclass


			class Point:
				def __init__(self, x, y):
					self.x = x


			@dataclass
			class Shape:
				origin: Point
		""",
	})
	main = project.analyze().packages["main"]
	assert "Point" in main.structs
	assert main.structs["Point"].fields == []


def test_inherited_fields_come_first_and_keep_their_position(project):
	project.write({
		"models.py": """
			from dataclasses import dataclass


			@dataclass
			class Base:
				id: int
				name: str


			@dataclass
			class Child(Base):
				extra: bool
				name: str
		""",
	})
	child = project.analyze().packages["main"].structs["Child"]
	assert [f.name for f in child.fields] == ["id", "name", "extra"]


def test_type_aliases_and_typevars(project):
	project.write({
		"models.py": """
			from dataclasses import dataclass
			from typing import Generic, List, TypeVar

			T = TypeVar("T")
			Names = List[str]


			@dataclass
			class Page(Generic[T]):
				items: List[T]
				names: Names
		""",
	})
	page = _fields(project.analyze().packages["main"].structs["Page"])
	assert page["items"] == TypeRef.sequence(TypeRef.unknown())
	assert page["names"] == TypeRef.sequence(TypeRef.primitive("string"))


def test_unimported_name_fails_the_package(project):
	project.write({
		"good/__init__.py": "",
		"good/models.py": """
			from dataclasses import dataclass


			@dataclass
			class Fine:
				x: int
		""",
		"broken/__init__.py": "",
		"broken/models.py": """
			from dataclasses import dataclass


			@dataclass
			class Bad:
				thing: missing.Thing
		""",
	})
	result = project.analyze()
	assert "broken" not in result.packages
	assert "good" in result.packages
	assert "broken" in result.failures
	with pytest.raises(TypeResolutionError) as info:
		result.raise_for_failures()
	assert info.value.package == "broken"
	assert info.value.declaration == "Bad.thing"
	assert "broken/models.py" in str(info.value)


def test_missing_class_in_tree_module_fails(project):
	project.write({
		"models.py": """
			from dataclasses import dataclass

			from other import Ghost


			@dataclass
			class Holder:
				ghost: Ghost
		""",
		"other.py": "VALUE = 1\n",
	})
	result = project.analyze()
	assert "main" in result.failures
	assert "Ghost" in result.failures["main"]


def test_external_reference_is_opaque_not_an_error(project):
	project.write({
		"models.py": """
			from dataclasses import dataclass
			from decimal import Decimal
			import uuid


			@dataclass
			class Invoice:
				total: Decimal
				ref: uuid.UUID
		""",
	})
	main = project.analyze().packages["main"]
	fields = _fields(main.structs["Invoice"])
	assert fields["total"] == TypeRef.opaque("decimal.Decimal")
	assert fields["ref"] == TypeRef.opaque("uuid.UUID")
	assert main.unresolved_references == ["decimal.Decimal", "uuid.UUID"]


def test_enum_fields_map_to_member_primitive(project):
	project.write({
		"tickets/__init__.py": "",
		"tickets/states.py": """
			import enum
			from enum import Enum, IntEnum, auto


			class Status(str, enum.Enum):
				OPEN = "open"
				CLOSED = "closed"


			class Priority(IntEnum):
				LOW = 1
				HIGH = 2


			class Step(Enum):
				FIRST = auto()
				SECOND = auto()


			class Mixed(Enum):
				A = 1
				B = "b"
				_ignore_ = ["C"]
		""",
		"tickets/models.py": """
			from dataclasses import dataclass
			from typing import List, Optional

			from .states import Mixed, Priority, Status, Step


			@dataclass
			class Ticket:
				status: Status
				priority: Optional[Priority]
				steps: List[Step]
				mixed: Mixed
		""",
	})
	tickets = project.analyze().packages["tickets"]
	assert sorted(tickets.structs) == ["Ticket"]
	fields = _fields(tickets.structs["Ticket"])
	assert fields["status"] == TypeRef.primitive("string")
	assert fields["priority"] == TypeRef.pointer(TypeRef.primitive("integer"))
	assert fields["steps"] == TypeRef.sequence(TypeRef.primitive("integer"))
	assert fields["mixed"] == TypeRef.unknown()
	assert tickets.package_references == []


def test_enum_with_annotations_is_not_a_struct(project):
	project.write({
		"models.py": """
			from enum import Enum


			class Color(Enum):
				RED = "red"
				hex: str
		""",
	})
	assert project.analyze().packages["main"].structs == {}


def test_subclass_of_record_without_own_fields_is_registered(project):
	project.write({
		"base.py": """
			from dataclasses import dataclass


			@dataclass
			class User:
				name: str
		""",
		"admin.py": """
			from base import User


			class Admin(User):
				pass
		""",
	})
	main = project.analyze().packages["main"]
	assert sorted(main.structs) == ["Admin", "User"]
	assert [f.name for f in main.structs["Admin"].fields] == ["name"]
