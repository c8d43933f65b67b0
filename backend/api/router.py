from fastapi import APIRouter, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from api.dependencies import get_dictionaries, get_ranker
from config import settings
from models.requests import CompareRequest, RankRequest
from models.responses import HealthResponse
from models.schemas.canonical_entry import Vocabulary
from models.schemas.ranked_applicant import RankingResult
from models.schemas.score_breakdown import ApplicantComparison
from services.ranking.dictionary import DictionaryStore
from services.ranking.ranker import Ranker

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)


@router.get("/health", response_model=HealthResponse)
async def health(dictionaries: DictionaryStore = Depends(get_dictionaries)):
    return HealthResponse(
        status="ok",
        gemini_configured=bool(settings.gemini_api_key),
        embeddings_enabled=settings.embeddings_enabled,
        vocabularies={vocab.value: len(dictionaries[vocab]) for vocab in Vocabulary},
    )


@router.post("/rank", response_model=RankingResult)
@limiter.limit("10/minute")
async def rank(request: Request, body: RankRequest, ranker: Ranker = Depends(get_ranker)):
    return await ranker.rank(body.job, body.applicants)


@router.post("/compare", response_model=ApplicantComparison)
@limiter.limit("30/minute")
async def compare(request: Request, body: CompareRequest, ranker: Ranker = Depends(get_ranker)):
    return await ranker.compare(body.job, body.applicant1, body.applicant2)
