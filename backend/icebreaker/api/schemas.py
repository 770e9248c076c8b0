from pydantic import BaseModel, HttpUrl
from typing import Optional, List

class ProfileRef(BaseModel):
    url: HttpUrl

class TriggerRequest(BaseModel):
    urls: List[ProfileRef]

    def url_strings(self) -> List[str]:
        return [str(p.url) for p in self.urls]

class TriggerResponse(BaseModel):
    job_id: str

class JobStatusResponse(BaseModel):
    job_id: str
    status: str
    staged: bool

class AnalyzeRequest(BaseModel):
    job_id: str

class AnalyzeResponse(BaseModel):
    insight: str

class IcebreakerResponse(BaseModel):
    job_id: Optional[str] = None
    state: str
    insight: str
