import os

import pytest

from bindgen.config import DEFAULT_EXCLUDE_DIRS, load_config
from bindgen.errors import ConfigError


def test_defaults(tmp_path):
	config = load_config(str(tmp_path))
	assert config.root == str(tmp_path)
	assert config.entry_file == "main.py"
	assert config.bridge_module == "webbridge"
	assert config.bind_methods == ["bind"]
	assert config.root_package == "main"
	assert config.exclude_dirs == DEFAULT_EXCLUDE_DIRS
	assert config.module_path() == os.path.join(str(tmp_path), "frontend", "backend")


def test_pyproject_section_then_overrides(tmp_path):
	(tmp_path / "pyproject.toml").write_text(
		'[project]\nname = "desktop"\n\n'
		'[tool.bindgen]\n'
		'bridge_module = "desktop.bridge"\n'
		'bind_methods = ["bind", "expose"]\n'
		'module_dir = "web/src/backend"\n',
		encoding="utf-8",
	)
	config = load_config(str(tmp_path), {"module_dir": "out", "entry_file": None})
	assert config.bridge_module == "desktop.bridge"
	assert config.bind_methods == ["bind", "expose"]
	assert config.module_dir == "out"
	assert config.entry_file == "main.py"


def test_absolute_module_dir(tmp_path):
	out = str(tmp_path / "elsewhere")
	assert load_config(str(tmp_path), {"module_dir": out}).module_path() == out


@pytest.mark.parametrize("content", [
	"[tool.bindgen\n",
	"[tool]\nbindgen = 3\n",
	"[tool.bindgen]\nunknown_key = 1\n",
	"[tool.bindgen]\nbridge_module = \"not a module\"\n",
	"[tool.bindgen]\nbind_methods = []\n",
])
def test_invalid_configuration(tmp_path, content):
	(tmp_path / "pyproject.toml").write_text(content, encoding="utf-8")
	with pytest.raises(ConfigError):
		load_config(str(tmp_path))
