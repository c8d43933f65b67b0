"""Abstract base class for all scoring algorithms."""

from abc import ABC, abstractmethod
import logging

from models.schemas.applicant_data import ApplicantData
from models.schemas.job_requirements import JobRequirements
from models.schemas.score_breakdown import AlgorithmKind, ScoreBreakdown
from services.embeddings import EmbeddingService, get_skill_embedder

logger = logging.getLogger(__name__)


class BaseScoringAlgorithm(ABC):
    """Base class for applicant scoring algorithms.

    Subclasses must implement:
        - kind: identifier used in the algorithm registry
        - score(job, applicant): async, returns a ScoreBreakdown on 0-100

    ``skill_embedder`` may be injected; otherwise the process-wide skill
    embedder is attached by load().
    """

    kind: AlgorithmKind
    _loaded: bool = False

    def __init__(self, skill_embedder: EmbeddingService | None = None):
        self.skill_embedder = skill_embedder

    def load(self) -> None:
        """Attach shared resources. Called once by the registry."""
        if self.skill_embedder is None:
            self.skill_embedder = get_skill_embedder()

    @abstractmethod
    async def score(self, job: JobRequirements, applicant: ApplicantData) -> ScoreBreakdown:
        """Score one applicant against one job."""

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def ensure_loaded(self) -> None:
        """Load if not already loaded."""
        if not self._loaded:
            logger.info("Loading scoring algorithm: %s", self.kind.value)
            self.load()
            self._loaded = True
