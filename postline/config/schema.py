"""Pydantic models for workspace file validation.

These wrap postline/types.py structures but accept loose string inputs
(e.g., method: "post", location: "Query") and coerce them to the correct enums.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from postline.types import (
    Collection, Environment, HTTPMethod, RequestTemplate, Workspace,
)


class RequestYAML(RequestTemplate):
    """Validated schema for a request entry in the workspace file."""

    @field_validator("method", mode="before")
    @classmethod
    def coerce_method(cls, v):
        if isinstance(v, str):
            return HTTPMethod(v.upper())
        return v

    @field_validator("auth", mode="before")
    @classmethod
    def coerce_auth(cls, v):
        if isinstance(v, dict) and isinstance(v.get("location"), str):
            return {**v, "location": v["location"].lower()}
        return v


class WorkspaceFile(BaseModel):
    """Root schema for postline.yaml / postline.json."""
    workspace: Workspace = Field(default_factory=lambda: Workspace(name="default"))
    collections: list[Collection] = Field(default_factory=list)
    environments: list[Environment] = Field(default_factory=list)
    requests: list[RequestYAML] = Field(default_factory=list)

    def find_request(self, name_or_id: str) -> Optional[RequestTemplate]:
        for request in self.requests:
            if request.id == name_or_id or request.name == name_or_id:
                return request
        return None

    def find_environment(self, name_or_id: Optional[str]) -> Optional[Environment]:
        """Named environment, else the one flagged active, else the workspace default."""
        if name_or_id:
            for env in self.environments:
                if env.id == name_or_id or env.name == name_or_id:
                    return env
            return None
        for env in self.environments:
            if env.is_active:
                return env
        default_id = self.workspace.settings.default_environment_id
        for env in self.environments:
            if env.id == default_id:
                return env
        return None

    def find_collection(self, collection_id: Optional[str]) -> Optional[Collection]:
        if not collection_id:
            return None
        for collection in self.collections:
            if collection.id == collection_id or collection.name == collection_id:
                return collection
        return None
