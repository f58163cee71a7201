from bindgen.summarize import summarize_result


def test_summaries_cover_packages_and_failures(sample_project):
	sample_project.write({
		"broken/__init__.py": "",
		"broken/models.py": """
			from dataclasses import dataclass


			@dataclass
			class Bad:
				thing: Missing
		""",
	})
	summaries = summarize_result(sample_project.analyze())

	assert sorted(summaries.per_package) == ["app", "broken", "main"]
	assert "Data: Address, Person" in summaries.per_package["app"]
	assert "External: datetime.datetime" in summaries.per_package["app"]
	assert summaries.per_package["main"] == "Package main (root)"
	assert summaries.per_package["broken"].startswith("Package broken: failed:")
	assert "2 packages analyzed, 1 failed" in summaries.global_overview
	assert "4 exposed methods" in summaries.global_overview
