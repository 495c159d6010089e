from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .models import ServiceIdentity


class CheckRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    project_id: str = Field(..., min_length=1, description="GCP project hosting the service")
    region: str = Field(..., min_length=1, description="Cloud Run region, e.g. europe-west1")
    service_name: str = Field(..., min_length=1, description="Cloud Run service name")

    def identity(self) -> ServiceIdentity:
        return ServiceIdentity(project_id=self.project_id, region=self.region, service_name=self.service_name)
