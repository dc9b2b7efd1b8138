"""Wiring for the interview service and its collaborators."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from catalog import QuestionCatalog, default_catalog
from config import AppConfig, default_config, load_config
from config.settings import Settings, settings as default_settings
from interview_session import (
    BlobStorage,
    CompanyDirectory,
    DocumentReviewer,
    InterviewService,
    ReasonEvaluator,
    Scorer,
    UploadController,
)
from llm_gateway import HttpClient
from review_agents import LlmDocumentReviewer, LlmReasonEvaluator
from services.scoring import LlmScorer
from storage.blobs import LocalBlobStorage
from storage.profiles import ProfileStore
from storage.sessions import SessionStore


def load_app_config(cfg: Settings) -> AppConfig:
    """Route config from ``LLM_CONFIG_PATH`` when set, environment defaults otherwise."""

    if cfg.LLM_CONFIG_PATH:
        return load_config(Path(cfg.LLM_CONFIG_PATH))
    return default_config()


def build_interview_service(
    cfg: Optional[Settings] = None,
    *,
    catalog: Optional[QuestionCatalog] = None,
    store: Optional[SessionStore] = None,
    blobs: Optional[BlobStorage] = None,
    reviewer: Optional[DocumentReviewer] = None,
    evaluator: Optional[ReasonEvaluator] = None,
    scorer: Optional[Scorer] = None,
    client: Optional[HttpClient] = None,
    companies: Optional[CompanyDirectory] = None,
) -> InterviewService:
    """Assemble an :class:`InterviewService`; any collaborator can be swapped in."""

    cfg = cfg or default_settings
    catalog = catalog or default_catalog(cfg.CATALOG_PATH)
    blobs = blobs or LocalBlobStorage(cfg.BLOB_DIR)
    if reviewer is None or evaluator is None or scorer is None:
        routes = load_app_config(cfg)
        reviewer_route = routes.route_for("reviewer").model_copy(update={"timeout_s": cfg.REVIEW_TIMEOUT_S})
        reviewer = reviewer or LlmDocumentReviewer(route=reviewer_route, blobs=blobs, client=client)
        evaluator = evaluator or LlmReasonEvaluator(route=routes.route_for("reason_evaluator"), client=client)
        scorer = scorer or LlmScorer(route=routes.route_for("scorer"), client=client)
    uploads = UploadController(
        blobs=blobs,
        reviewer=reviewer,
        evaluator=evaluator,
        allowed_extensions=cfg.ALLOWED_EXTENSIONS,
        max_upload_bytes=cfg.MAX_UPLOAD_BYTES,
        companies=companies or ProfileStore(),
    )
    return InterviewService(
        catalog=catalog,
        store=store or SessionStore(),
        uploads=uploads,
        scorer=scorer,
        max_appeals=cfg.MAX_DISAGREEMENTS,
    )


__all__ = ["build_interview_service", "load_app_config"]
