import json

from config import AppConfig, LlmRoute, default_config, load_config
from config.settings import Settings
from interview_session import InterviewService
from review_agents import LlmDocumentReviewer
from services.scoring import LlmScorer
from services.sessions import build_interview_service, load_app_config


def test_route_fallback():
    reviewer = LlmRoute(name="groq", base_url="http://a", model="m1")
    scorer = LlmRoute(name="big", base_url="http://b", model="m2")
    cfg = AppConfig(reviewer=reviewer, scorer=scorer)

    assert cfg.route_for("scorer").model == "m2"
    assert cfg.route_for("reason_evaluator").model == "m1"


def test_load_config_from_file(tmp_path):
    path = tmp_path / "llm.json"
    path.write_text(
        json.dumps({"reviewer": {"name": "local", "base_url": "http://localhost:11434/v1", "model": "llama3"}}),
        encoding="utf-8",
    )
    cfg = load_app_config(Settings(LLM_CONFIG_PATH=str(path)))

    assert cfg.reviewer.name == "local"
    assert load_config(path).reviewer.endpoint == "/chat/completions"


def test_default_config_uses_environment(monkeypatch):
    monkeypatch.setenv("GROQ_MODEL", "custom-model")
    assert default_config().reviewer.model == "custom-model"
    assert default_config().reviewer.api_key_env == "GROQ_API_KEY"


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("MAX_DISAGREEMENTS", "3")
    monkeypatch.setenv("REVIEW_TIMEOUT_S", "12.5")
    cfg = Settings()

    assert cfg.MAX_DISAGREEMENTS == 3
    assert cfg.REVIEW_TIMEOUT_S == 12.5
    assert ".pdf" in cfg.ALLOWED_EXTENSIONS


def test_build_service_wires_llm_collaborators():
    cfg = Settings(REVIEW_TIMEOUT_S=7.0, MAX_DISAGREEMENTS=4)
    service = build_interview_service(cfg)

    assert isinstance(service, InterviewService)
    assert isinstance(service._uploads._reviewer, LlmDocumentReviewer)
    assert service._uploads._reviewer._route.timeout_s == 7.0
    assert isinstance(service._scorer, LlmScorer)
    assert service._max_appeals == 4
    assert len(service.catalog) >= 3
