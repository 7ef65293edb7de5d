"""Health check response schema."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.schemas.envelope import Envelope


class HealthData(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(description="Service name (APP_NAME)")
    environment: str
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since the process started")


class HealthEnvelope(Envelope):
    data: HealthData
