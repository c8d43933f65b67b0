from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"
    gemini_configured: bool = False
    embeddings_enabled: bool = False
    vocabularies: dict[str, int] = {}
