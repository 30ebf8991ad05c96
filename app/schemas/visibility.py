from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RunPollRequest(CamelModel):
    brand_id: int | None = None


class RunPollResponse(CamelModel):
    success: bool = True
    new_answers: int
    failed_fetches: int = 0


class OverviewHeadline(CamelModel):
    overall_sov: int  # 0 - 100, rounded
    total_answers: int
    competitors_tracked: int


class EngineSov(CamelModel):
    name: str  # engine display name
    sov: float  # 0.0 - 100.0


class TrendPoint(CamelModel):
    date: str  # YYYY-MM-DD
    brand_sov: float  # 0.0 - 100.0


class PromptActivity(CamelModel):
    id: int
    text: str
    answer_count: int  # lifetime, not limited to the report window


class VisibilityOverview(CamelModel):
    headline: OverviewHeadline
    engine_chart: list[EngineSov] = Field(default_factory=list)
    trend: list[TrendPoint] = Field(default_factory=list)
    prompts: list[PromptActivity] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    error: str
