"""Generate typed front-end bindings from a Python backend's source.

Modules:
- fs_scan.py: Loading and parsing the program's source tree.
- ast_parse.py, symbols.py: Imports, declarations and name lookup per module.
- comments.py: Documentation comment extraction.
- resolver.py: Struct and type descriptor resolution.
- entrypoints.py: Entry file, bridge alias and exposed method discovery.
- usage.py: Classification of structs used as data.
- package.py, model.py: Package builder and the frozen type model.
- analyze.py: The analysis pipeline.
- emitter.py: Rendering index.d.ts and index.js through Jinja2 templates.
- summarize.py: Deterministic textual summaries of an analysis.
"""

from .analyze import Analyzer, generate_bindings
from .config import BindgenConfig, load_config

__all__ = [
	"Analyzer",
	"BindgenConfig",
	"generate_bindings",
	"load_config",
]
