from __future__ import annotations

import argparse
import json
from typing import List, Optional

import uvicorn

from bindgen.analyze import Analyzer, generate_bindings
from bindgen.config import load_config
from bindgen.errors import BindgenError
from bindgen.logging import configure_logging, get_logger
from bindgen.summarize import summarize_result


def _overrides(args: argparse.Namespace) -> dict:
	return {
		"entry_file": getattr(args, "entry", None),
		"bridge_module": getattr(args, "bridge", None),
		"module_dir": getattr(args, "out", None),
		"templates_dir": getattr(args, "templates", None),
	}


def cmd_analyze(args: argparse.Namespace) -> None:
	config = load_config(args.path, _overrides(args))
	result = Analyzer(config).analyze()
	summaries = summarize_result(result)
	print(json.dumps({"result": result.model_dump(mode="json"), "summaries": summaries.model_dump()}, indent=2))


def cmd_generate(args: argparse.Namespace) -> None:
	config = load_config(args.path, _overrides(args))
	written = generate_bindings(config)
	get_logger("cli").info("Wrote %d binding files to %s", len(written), config.module_path())


def cmd_serve(args: argparse.Namespace) -> None:
	uvicorn.run("api:app", host=args.host, port=args.port, reload=args.reload)


def _add_project_args(parser: argparse.ArgumentParser) -> None:
	parser.add_argument("path", help="Path to the backend project root")
	parser.add_argument("--entry", help="Entry file relative to the root (default: main.py)")
	parser.add_argument("--bridge", help="Module name of the bridging library")
	parser.add_argument("--templates", help="Directory with replacement binding templates")
	parser.add_argument("-v", "--verbose", action="store_true", default=argparse.SUPPRESS, help="Enable debug logging")


def main(argv: Optional[List[str]] = None) -> int:
	parser = argparse.ArgumentParser(prog="bindgen")
	parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
	parser.add_argument("--log-file", help="Also write logs to this file")
	sub = parser.add_subparsers(dest="cmd", required=True)

	pa = sub.add_parser("analyze", help="Analyze a project and print the type model as JSON")
	_add_project_args(pa)
	pa.set_defaults(func=cmd_analyze)

	pg = sub.add_parser("generate", help="Write index.d.ts and index.js for every package")
	_add_project_args(pg)
	pg.add_argument("--out", help="Output module directory (default: frontend/backend)")
	pg.set_defaults(func=cmd_generate)

	ps = sub.add_parser("serve", help="Run the HTTP API")
	ps.add_argument("--host", default="127.0.0.1")
	ps.add_argument("--port", type=int, default=8000)
	ps.add_argument("--reload", action="store_true")
	ps.set_defaults(func=cmd_serve)

	args = parser.parse_args(argv)
	logger = configure_logging(verbose=args.verbose, log_file=args.log_file)
	try:
		args.func(args)
	except BindgenError as exc:
		logger.error("%s", exc)
		return 1
	return 0


if __name__ == "__main__":
	raise SystemExit(main())
