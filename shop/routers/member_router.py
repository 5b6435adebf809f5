"""
Member router.

Registration, listing and renaming of members.
"""

from fastapi import APIRouter, Depends, status

from ..dependencies import get_member_service
from ..schemas import (
    CreateMemberRequest,
    ErrorResponse,
    IdResponse,
    MemberResponse,
    Result,
    UpdateMemberRequest,
    UpdateMemberResponse,
)
from ..services.member_service import MemberService

router = APIRouter(prefix="/api/v2/members", tags=["members"])


@router.post(
    "",
    response_model=IdResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Name already taken", "model": ErrorResponse}},
    summary="Register member",
)
def create_member(
    request: CreateMemberRequest,
    service: MemberService = Depends(get_member_service),
):
    address = request.address.to_address() if request.address else None
    return IdResponse(id=service.join(request.name, address))


@router.get("", response_model=Result[MemberResponse], summary="List members")
def list_members(service: MemberService = Depends(get_member_service)):
    members = [MemberResponse.from_entity(member) for member in service.find_members()]
    return Result[MemberResponse](count=len(members), data=members)


@router.put(
    "/{member_id}",
    response_model=UpdateMemberResponse,
    responses={
        404: {"description": "Member not found", "model": ErrorResponse},
        409: {"description": "Name already taken", "model": ErrorResponse},
    },
    summary="Rename member",
)
def update_member(
    member_id: int,
    request: UpdateMemberRequest,
    service: MemberService = Depends(get_member_service),
):
    member = service.update(member_id, request.name)
    return UpdateMemberResponse(id=member.id, name=member.name)
