"""
Proof checker HTTP API.

Routes:
- POST /api/proof/validate: validate a proof, returns per-line verdicts
- GET  /api/rulesets:       ruleset catalog for the proof editor
- GET  /api/health:         liveness probe

Validation runs on a shared ValidationWorker built from the checker config
(PROOFCHECK_CONFIG); the worker falls back to in-process validation on its
own.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException

from checker.config import load_config_from_env
from checker.rules import UnknownRulesetError, ruleset_catalog
from checker.worker import ValidationWorker
from interface.api.schemas import (
    HealthResponse,
    RulesetsResponse,
    ValidateRequest,
    ValidateResponse,
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Proof Checker API",
    description="Natural-deduction proof validation for truth-functional and first-order logic.",
    version="0.1.0",
)

_worker: Optional[ValidationWorker] = None
_worker_lock = threading.Lock()


def get_worker() -> ValidationWorker:
    """Shared worker, created on first use."""
    global _worker
    with _worker_lock:
        if _worker is None:
            _worker = ValidationWorker(load_config_from_env())
            logger.info("Validation worker started (active=%s)", _worker.active)
        return _worker


@app.on_event("shutdown")
def on_shutdown():
    """Stop the worker pool when the application stops."""
    global _worker
    with _worker_lock:
        worker, _worker = _worker, None
    if worker is not None:
        worker.shutdown()


@app.post(
    "/api/proof/validate",
    response_model=ValidateResponse,
    response_model_exclude_none=True,
)
def validate_proof(
    request: ValidateRequest, worker: ValidationWorker = Depends(get_worker)
):
    """Validate a proof line by line."""
    try:
        result = worker.run(request.to_document())
    except UnknownRulesetError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return result.to_dict()


@app.get("/api/rulesets", response_model=RulesetsResponse)
def get_rulesets():
    """Rules offered by each ruleset, with their reference counts."""
    return {"rulesets": ruleset_catalog()}


@app.get("/api/health", response_model=HealthResponse)
def health():
    return {"status": "ok"}
