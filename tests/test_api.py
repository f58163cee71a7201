import os

from fastapi.testclient import TestClient

from api import app


client = TestClient(app)


def test_analyze_returns_model_and_summaries(sample_project):
	res = client.post("/analyze", json={"root_path": str(sample_project.root)})
	assert res.status_code == 200
	body = res.json()
	app_pkg = body["result"]["packages"]["app"]
	assert sorted(app_pkg["structs"]) == ["Address", "CacheEntry", "Person"]
	assert app_pkg["structs_used_as_data"] == ["Address", "Person"]
	assert body["result"]["surface"]["bound_structs"] == ["app.Greeter", "app.Store"]
	assert body["result"]["failures"] == {}
	assert "app" in body["summaries"]["per_package"]


def test_analyze_reports_package_failures(sample_project):
	sample_project.write({
		"broken/__init__.py": "",
		"broken/models.py": """
			from typing import NamedTuple


			class Bad(NamedTuple):
				thing: Missing
		""",
	})
	res = client.post("/analyze", json={"root_path": str(sample_project.root)})
	assert res.status_code == 200
	failures = res.json()["result"]["failures"]
	assert list(failures) == ["broken"]
	assert "Bad.thing" in failures["broken"]


def test_generate_writes_files(sample_project, tmp_path):
	out = str(tmp_path / "bindings")
	res = client.post("/generate", json={"root_path": str(sample_project.root), "module_dir": out})
	assert res.status_code == 200
	written = res.json()["written"]
	assert os.path.join(out, "app", "index.d.ts") in written
	assert all(os.path.exists(p) for p in written)


def test_invalid_root_path(tmp_path):
	res = client.post("/analyze", json={"root_path": str(tmp_path / "missing")})
	assert res.status_code == 400


def test_invalid_bridge_module(sample_project):
	res = client.post("/analyze", json={"root_path": str(sample_project.root), "bridge_module": "no such"})
	assert res.status_code == 400


def test_unparseable_source_is_unprocessable(project):
	project.write({"main.py": "class :\n"})
	res = client.post("/generate", json={"root_path": str(project.root)})
	assert res.status_code == 422
