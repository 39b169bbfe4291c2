"""Scope merging: workspace → environment → collection → request.

Later scopes override earlier ones on key collision. Disabled variables are
absent, not empty. Secret-backed variables are resolved through a
``SecretResolver`` and are otherwise treated as absent.
"""

import logging
from typing import Mapping, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from postline.types import Collection, Environment, RequestTemplate, SecretRef, Variable, Workspace

logger = logging.getLogger(__name__)

SCOPE_ORDER = ("workspace", "environment", "collection", "request")


@runtime_checkable
class SecretResolver(Protocol):
    """Anything that can turn a SecretRef into plaintext, or None when missing."""

    def resolve(self, ref: SecretRef) -> Optional[str]:
        ...


def reduce_variables(
    variables: Optional[list[Variable]],
    secrets: Optional[SecretResolver] = None,
    include_secrets: bool = True,
) -> dict[str, str]:
    """Reduce one scope's variable list to key → value.

    Disabled entries are skipped; the last duplicate key wins in list order.
    Secret values are pulled from *secrets* and never logged.
    """
    reduced: dict[str, str] = {}
    for var in variables or []:
        if not var.enabled:
            continue
        if var.is_secret and var.secret_ref is not None:
            if not include_secrets or secrets is None:
                reduced.pop(var.key, None)
                continue
            value = secrets.resolve(var.secret_ref)
            if value is None:
                logger.warning("Secret for variable '%s' not found; leaving it unresolved", var.key)
                reduced.pop(var.key, None)
                continue
            reduced[var.key] = value
        else:
            reduced[var.key] = var.value
    return reduced


def merge(
    workspace: Optional[Mapping[str, str]] = None,
    environment: Optional[Mapping[str, str]] = None,
    collection: Optional[Mapping[str, str]] = None,
    request: Optional[Mapping[str, str]] = None,
) -> dict[str, str]:
    """Flatten the four scopes into one lookup table, last writer wins."""
    merged: dict[str, str] = {}
    for layer in (workspace, environment, collection, request):
        if layer:
            merged.update(layer)
    return merged


class ScopeSet(BaseModel):
    """The four variable scopes feeding one assembly pass."""
    workspace: list[Variable] = Field(default_factory=list)
    environment: list[Variable] = Field(default_factory=list)
    collection: list[Variable] = Field(default_factory=list)
    request: list[Variable] = Field(default_factory=list)

    @classmethod
    def for_request(
        cls,
        template: RequestTemplate,
        environment: Optional[Environment] = None,
        workspace: Optional[Workspace] = None,
        collection: Optional[Collection] = None,
    ) -> "ScopeSet":
        return cls(
            workspace=workspace.variables if workspace else [],
            environment=environment.variables if environment else [],
            collection=collection.variables if collection else [],
            request=template.variables,
        )

    def build(
        self,
        secrets: Optional[SecretResolver] = None,
        include_secrets: bool = True,
    ) -> dict[str, str]:
        """Merged key → value map for interpolation."""
        return merge(*(
            reduce_variables(getattr(self, scope), secrets, include_secrets)
            for scope in SCOPE_ORDER
        ))

    def available_names(self) -> set[str]:
        """Names of every enabled variable in any scope, secrets included."""
        return {
            var.key
            for scope in SCOPE_ORDER
            for var in getattr(self, scope)
            if var.enabled
        }
