"""
Policy data models for RBAC Service.
"""

from typing import List, Optional, Tuple, Union
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, Field


class Effect(str, Enum):
    """Permission rule effects."""
    ALLOW = "allow"
    DENY = "deny"


@dataclass(frozen=True)
class PermissionRule:
    """Grants or denies an action on an object within a domain.

    ``source_row`` is the row the rule was loaded from. It is written back
    as is, so a save never changes a permission row's field count or
    spelling. It takes no part in equality.
    """
    subject: str
    domain: str
    object: str
    action: str
    effect: Effect = Effect.ALLOW
    source_row: Optional[Tuple[str, ...]] = field(default=None, compare=False, repr=False)

    def as_tuple(self) -> Tuple[str, ...]:
        return (self.subject, self.domain, self.object, self.action, self.effect.value)


@dataclass(frozen=True)
class GroupingRule:
    """Subject holds role within domain."""
    subject: str
    role: str
    domain: str

    def as_tuple(self) -> Tuple[str, ...]:
        return (self.subject, self.role, self.domain)


@dataclass(frozen=True)
class EnforcementDecision:
    """Outcome of one enforcement request.

    ``matched_rule`` is the rule that decided the outcome, ``None`` when
    nothing matched and the request fell through to the default deny.
    """
    allowed: bool
    matched_rule: Optional[PermissionRule] = None
    reason: Optional[str] = None

    @property
    def explanation(self) -> Union[List[str], str, None]:
        if self.matched_rule is not None:
            return list(self.matched_rule.as_tuple())
        return self.reason


class EnforceRequest(BaseModel):
    """Request model for an enforcement check."""
    subject: str = Field(..., min_length=1, description="Subject requesting access")
    domain: str = Field(..., min_length=1, description="Domain the request is scoped to")
    object: str = Field(..., min_length=1, description="Resource being accessed")
    action: str = Field(..., min_length=1, description="Action to perform")


class RoleRequest(BaseModel):
    """Request model for assigning or replacing a role."""
    subject: str = Field(..., min_length=1, description="Subject receiving the role")
    role: str = Field(..., min_length=1, description="Role to assign")


class MemberRequest(BaseModel):
    """Request model for removing every role of a subject."""
    subject: str = Field(..., min_length=1, description="Subject losing its roles")


class EnforceResponse(BaseModel):
    """Response model for an allowed enforcement check."""
    message: Union[List[str], str, None] = Field(None, description="Rule that allowed the request")


class MessageResponse(BaseModel):
    """Response model for role mutations."""
    message: str
