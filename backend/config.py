import math
import os
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent


def _parse_cors_origins() -> list[str] | None:
    """Parse CORS_ORIGINS env var as comma-separated string or JSON list."""
    raw = os.environ.get("CORS_ORIGINS")
    if not raw:
        return None
    if raw.startswith("["):
        import json
        return json.loads(raw)
    return [o.strip() for o in raw.split(",") if o.strip()]


class Settings(BaseSettings):
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"  # tie-breaking + insights
    classification_model: str = "gemini-2.0-flash"  # cascade LLM tier
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]
    debug: bool = False
    log_level: str = "INFO"

    # Canonical vocabularies
    dictionaries_dir: str = str(BASE_DIR / "data" / "dictionaries")

    # Embedding tier (sentence-transformers, loaded lazily)
    embeddings_enabled: bool = True
    degree_embedding_model: str = "BAAI/bge-m3"
    skill_embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    bge_m3_strong_threshold: float = 0.83
    bge_m3_soft_threshold: float = 0.75
    embedding_cache_size: int = 10_000  # texts kept per model, least recently used evicted first

    # LLM classification tier
    llm_candidate_limit: int = 20

    # Weighted Sum component weights (must sum to 1.0)
    weighted_sum_education_weight: float = 0.30
    weighted_sum_experience_weight: float = 0.20
    weighted_sum_skills_weight: float = 0.20
    weighted_sum_eligibility_weight: float = 0.30

    # Ensemble
    ensemble_tie_threshold: float = 5.0  # |alg1 - alg2| at or below this -> tie-breaker
    ensemble_primary_weight: float = 0.6
    ensemble_secondary_weight: float = 0.4

    # Tie-breaking
    tie_score_threshold: float = 0.01
    micro_adjustment_limit: float = 0.5

    # Ranker backpressure
    batch_size: int = 5
    batch_delay_seconds: float = 2.0
    service_timeout_seconds: float = 20.0
    insights_top_k: int = 5

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "protected_namespaces": ("settings_",)}

    @model_validator(mode="after")
    def _check_consistency(self) -> "Settings":
        ws_total = (
            self.weighted_sum_education_weight
            + self.weighted_sum_experience_weight
            + self.weighted_sum_skills_weight
            + self.weighted_sum_eligibility_weight
        )
        if not math.isclose(ws_total, 1.0, abs_tol=1e-6):
            raise ValueError(f"Weighted sum weights must sum to 1.0 (got {ws_total:.4f})")

        ensemble_total = self.ensemble_primary_weight + self.ensemble_secondary_weight
        if not math.isclose(ensemble_total, 1.0, abs_tol=1e-6):
            raise ValueError(f"Ensemble weights must sum to 1.0 (got {ensemble_total:.4f})")

        if not 0.0 < self.bge_m3_soft_threshold <= self.bge_m3_strong_threshold <= 1.0:
            raise ValueError(
                "Embedding thresholds must satisfy 0 < soft <= strong <= 1 "
                f"(soft={self.bge_m3_soft_threshold}, strong={self.bge_m3_strong_threshold})"
            )
        if self.ensemble_tie_threshold < 0:
            raise ValueError("ensemble_tie_threshold must be >= 0")
        if not 0.0 < self.micro_adjustment_limit <= 0.5:
            raise ValueError("micro_adjustment_limit must be in (0, 0.5]")
        if self.tie_score_threshold <= 0:
            raise ValueError("tie_score_threshold must be > 0")
        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if self.batch_delay_seconds < 0:
            raise ValueError("batch_delay_seconds must be >= 0")
        if self.service_timeout_seconds <= 0:
            raise ValueError("service_timeout_seconds must be > 0")
        if self.llm_candidate_limit < 1:
            raise ValueError("llm_candidate_limit must be >= 1")
        if self.embedding_cache_size < 1:
            raise ValueError("embedding_cache_size must be >= 1")
        return self


_cors_override = _parse_cors_origins()
settings = Settings(**{"cors_origins": _cors_override} if _cors_override else {})
