from pydantic import BaseModel, Field


class AdviceRequest(BaseModel):
    prompt: str = Field(min_length=1, max_length=2000)


class AdviceResponse(BaseModel):
    advice: str
