from __future__ import annotations

import os
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from bindgen.analyze import Analyzer, generate_bindings
from bindgen.config import BindgenConfig, load_config
from bindgen.errors import BindgenError, ConfigError
from bindgen.model import AnalyzeResponse
from bindgen.summarize import summarize_result


app = FastAPI(title="Backend Bindings Generator")


class AnalyzeRequest(BaseModel):
	root_path: str
	entry_file: Optional[str] = None
	bridge_module: Optional[str] = None


class GenerateRequest(AnalyzeRequest):
	module_dir: Optional[str] = None


class GenerateResponse(BaseModel):
	written: List[str]


def _config(req: AnalyzeRequest, **extra: Optional[str]) -> BindgenConfig:
	root = os.path.abspath(req.root_path)
	if not os.path.isdir(root):
		raise HTTPException(status_code=400, detail=f"Invalid root_path: {root}")
	try:
		return load_config(root, {"entry_file": req.entry_file, "bridge_module": req.bridge_module, **extra})
	except ConfigError as e:
		raise HTTPException(status_code=400, detail=str(e))


@app.post("/analyze", response_model=AnalyzeResponse)
def analyze(req: AnalyzeRequest) -> AnalyzeResponse:
	config = _config(req)
	try:
		result = Analyzer(config).analyze()
	except BindgenError as e:
		raise HTTPException(status_code=422, detail=str(e))
	return AnalyzeResponse(result=result, summaries=summarize_result(result))


@app.post("/generate", response_model=GenerateResponse)
def generate(req: GenerateRequest) -> GenerateResponse:
	config = _config(req, module_dir=req.module_dir)
	try:
		written = generate_bindings(config)
	except BindgenError as e:
		raise HTTPException(status_code=422, detail=str(e))
	return GenerateResponse(written=written)


def create_app() -> FastAPI:
	return app
