"""Team management API endpoints"""

from typing import List

from fastapi import APIRouter, Depends, status

from ..dependencies import get_tenant_context, service_dependency
from ..tenancy.context import TenantContext
from .schemas import MemberInvite, MembershipResponse, MembershipUpdate
from .service import MembershipService

router = APIRouter(prefix="/team", tags=["team"])

get_membership_service = service_dependency(MembershipService)


@router.get("", response_model=List[MembershipResponse])
def list_members(
    ctx: TenantContext = Depends(get_tenant_context),
    service: MembershipService = Depends(get_membership_service),
):
    return service.list_members(ctx.user_id, ctx.company_id)


@router.post("", response_model=MembershipResponse, status_code=status.HTTP_201_CREATED)
def invite_member(
    invite: MemberInvite,
    ctx: TenantContext = Depends(get_tenant_context),
    service: MembershipService = Depends(get_membership_service),
):
    """Invite a user into the company (requires team.manage).

    Raises:
        409: The user already has a membership in this company
    """
    return service.invite_member(
        ctx.user_id,
        ctx.company_id,
        invite.user_id,
        invite.role,
        permissions=invite.permissions,
        activate=invite.activate,
    )


@router.post("/accept", response_model=MembershipResponse)
def accept_invitation(
    ctx: TenantContext = Depends(get_tenant_context),
    service: MembershipService = Depends(get_membership_service),
):
    return service.accept_invitation(ctx.user_id, ctx.company_id)


@router.get("/me/memberships", response_model=List[MembershipResponse])
def my_memberships(
    ctx: TenantContext = Depends(get_tenant_context),
    service: MembershipService = Depends(get_membership_service),
):
    """Active memberships of the caller in all companies."""
    return service.get_user_memberships(ctx.user_id)


@router.get("/{membership_id}", response_model=MembershipResponse)
def get_membership(
    membership_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    service: MembershipService = Depends(get_membership_service),
):
    return service.get_membership(ctx.user_id, ctx.company_id, membership_id)


@router.patch("/{membership_id}", response_model=MembershipResponse)
def update_membership(
    membership_id: str,
    update: MembershipUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    service: MembershipService = Depends(get_membership_service),
):
    return service.update_membership(
        ctx.user_id, ctx.company_id, membership_id, update.model_dump(exclude_unset=True)
    )


@router.delete("/{membership_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    membership_id: str,
    ctx: TenantContext = Depends(get_tenant_context),
    service: MembershipService = Depends(get_membership_service),
):
    service.remove_member(ctx.user_id, ctx.company_id, membership_id)
