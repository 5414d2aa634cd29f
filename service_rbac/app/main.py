"""
RBAC service for the Access Layer.
"""

import asyncio

from fastapi import Body
from fastapi.responses import JSONResponse

from shared.base_service import BaseService
from shared.errors import ValidationError
from shared.logging import set_request_context

from .policy.authorizer import Authorizer
from .policy.models import (
    EnforceRequest, EnforceResponse, MemberRequest, MessageResponse, RoleRequest
)


class RBACService(BaseService):
    """RBAC service implementation."""

    def __init__(self, **config_overrides):
        super().__init__("rbac", 8088, **config_overrides)

        self.authorizer = Authorizer.from_file(
            self.config.policy_path,
            max_hierarchy_level=self.config.max_hierarchy_level,
            metrics=self.metrics
        )

        self._setup_rbac_routes()

    def _setup_rbac_routes(self):
        """Set up RBAC-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "rbac",
                "message": "Access Layer - RBAC Service",
                "version": "1.0.0",
                "capabilities": ["enforce", "role_assignment", "role_hierarchy"]
            }

        @self.app.post("/enforce")
        async def enforce(request: EnforceRequest):
            """Check whether subject may perform action on object in domain."""
            set_request_context(request.subject, request.domain)

            decision = await asyncio.to_thread(
                self.authorizer.enforce,
                request.subject,
                request.domain,
                request.object,
                request.action
            )

            self.logger.info(
                "Enforcement completed",
                object=request.object,
                action=request.action,
                allowed=decision.allowed
            )

            if not decision.allowed:
                return JSONResponse(status_code=403, content={"message": "forbidden"})
            return EnforceResponse(message=decision.explanation)

        @self.app.get("/domain")
        async def list_domains():
            """List every domain named by a rule."""
            domains = await asyncio.to_thread(self.authorizer.list_domains)
            return {"domains": sorted(domains)}

        @self.app.get("/roles")
        async def list_roles():
            """List every role named by a grouping rule."""
            roles = await asyncio.to_thread(self.authorizer.list_roles)
            return {"roles": sorted(roles)}

        @self.app.get("/members/{domain}")
        async def list_members(domain: str):
            """List role assignments in a domain."""
            members = await asyncio.to_thread(self.authorizer.list_members, domain)
            return {"members": [list(rule.as_tuple()) for rule in members]}

        @self.app.post("/members/{domain}")
        async def add_member(domain: str, request: RoleRequest):
            """Assign a role to a subject in a domain."""
            self._validate_role(request.role)
            set_request_context(request.subject, domain)

            added = await asyncio.to_thread(
                self.authorizer.assign_role, request.subject, request.role, domain
            )
            if not added:
                raise ValidationError("failed to add role", {"reason": "role already assigned"})
            return MessageResponse(message="role added")

        @self.app.put("/members/{domain}")
        async def replace_member(domain: str, request: RoleRequest):
            """Replace every role of a subject in a domain with one role."""
            self._validate_role(request.role)
            set_request_context(request.subject, domain)

            updated = await asyncio.to_thread(
                self.authorizer.replace_role, request.subject, request.role, domain
            )
            if not updated:
                raise ValidationError("failed to update role", {"reason": "role unchanged"})
            return MessageResponse(message="role updated")

        @self.app.delete("/members/{domain}")
        async def remove_member(domain: str, request: MemberRequest = Body(...)):
            """Remove every role of a subject in a domain."""
            set_request_context(request.subject, domain)

            removed = await asyncio.to_thread(
                self.authorizer.remove_all_roles, request.subject, domain
            )
            if not removed:
                raise ValidationError("failed to delete role")
            return MessageResponse(message="role deleted")

        @self.app.get("/policies")
        async def list_policies():
            """List permission rules."""
            policies = await asyncio.to_thread(self.authorizer.list_permission_rules)
            return {"policies": [list(rule.as_tuple()) for rule in policies]}

        @self.app.get("/groups")
        async def list_groups():
            """List grouping rules."""
            groups = await asyncio.to_thread(self.authorizer.list_grouping_rules)
            return {"groups": [list(rule.as_tuple()) for rule in groups]}

    def _validate_role(self, role: str):
        whitelist = self.config.role_whitelist
        if role not in whitelist:
            raise ValidationError(
                f"role must be one of: {', '.join(sorted(whitelist))}",
                {"role": role}
            )

    async def _check_dependencies(self):
        """Check RBAC service dependencies."""
        readable = await asyncio.to_thread(self.authorizer.is_storage_available)
        return {"policy_file": "ok" if readable else "error"}


def create_app(**config_overrides):
    """Create RBAC service application."""
    service = RBACService(**config_overrides)
    return service.app


if __name__ == "__main__":
    service = RBACService()
    service.run()
