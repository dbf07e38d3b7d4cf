from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class PostOut(BaseModel):
    """Assembled post; schema-defined properties pass through as extra fields."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Optional[str] = None
    created_time: str = Field(alias="createdTime")
    full_width: bool = Field(default=False, alias="fullWidth")
    date: Any = None


class PostsResponse(BaseModel):
    request_id: str
    api_latency_ms: int
    page_id: str
    count: int
    data: list[PostOut]


class HealthResponse(BaseModel):
    status: str
    environment: str
    root_page_configured: bool
