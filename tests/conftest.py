from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Mapping

import pytest

from bindgen.analyze import Analyzer
from bindgen.config import BindgenConfig, load_config
from bindgen.model import AnalysisResult


class ProjectBuilder:
	"""Writes a throwaway backend project and runs the analyzer over it."""

	def __init__(self, root: Path):
		self.root = root
		self.root.mkdir(parents=True)

	def write(self, files: Mapping[str, str]) -> "ProjectBuilder":
		for relative, content in files.items():
			path = self.root / relative
			path.parent.mkdir(parents=True, exist_ok=True)
			path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")
		return self

	def config(self, **overrides) -> BindgenConfig:
		return load_config(str(self.root), overrides)

	def analyze(self, **overrides) -> AnalysisResult:
		return Analyzer(self.config(**overrides)).analyze()


SAMPLE_PROJECT = {
	"main.py": """
		import webbridge as wb

		from app.services import Greeter, new_store


		def main():
			app = wb.App(title="demo")
			greeter = Greeter()
			app.bind(greeter)
			wb.run(app, bind=[new_store()])


		if __name__ == "__main__":
			main()
	""",
	"app/__init__.py": "",
	"app/models.py": """
		from __future__ import annotations

		from dataclasses import dataclass, field
		from datetime import datetime
		from typing import Dict, List, Optional


		# A postal address.
		@dataclass
		class Address:
			street: str
			city: str  # city name


		@dataclass
		class Person:
			\"\"\"Someone we greet.\"\"\"

			name: str
			age: int
			address: Optional[Address] = None
			friends: List[Person] = field(default_factory=list)
			tags: Dict[str, float] = field(default_factory=dict)
			born: Optional[datetime] = None


		@dataclass
		class CacheEntry:
			key: str
			hits: int
	""",
	"app/services.py": """
		from typing import List

		from app.models import Person
		from .models import CacheEntry


		class Greeter:
			# Greet returns a greeting for the person.
			def greet(self, person: Person) -> str:
				return f"Hello {person.name}"

			def everyone(self) -> List[Person]:
				return []

			def _secret(self) -> None:
				pass


		class Store:
			def save(self, key: str, value: bytes) -> None:
				entry = CacheEntry(key, 0)

			async def count(self) -> int:
				return 0


		def new_store() -> Store:
			return Store()
	""",
}


@pytest.fixture
def project(tmp_path: Path) -> ProjectBuilder:
	return ProjectBuilder(tmp_path / "project")


@pytest.fixture
def sample_project(project: ProjectBuilder) -> ProjectBuilder:
	return project.write(SAMPLE_PROJECT)
