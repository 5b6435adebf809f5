"""
Tests for member registration and renaming.
"""

import pytest

from shop.domain.exceptions import DuplicateMemberException, EntityNotFoundException
from shop.models import Address, Member
from shop.repositories.member_repository import MemberRepository
from shop.services.member_service import MemberService


@pytest.fixture
def member_service(db_session):
    return MemberService(db_session, MemberRepository(db_session))


class TestJoin:
    """Tests for MemberService.join"""

    def test_join_persists_member(self, db_session, member_service):
        member_id = member_service.join("kim", Address("Seoul", "Main St 1", "04524"))

        member = db_session.get(Member, member_id)
        assert member.name == "kim"
        assert member.address.city == "Seoul"

    def test_join_without_address(self, member_service):
        member_id = member_service.join("lee")
        assert member_service.find_one(member_id).address == Address()

    def test_duplicate_name_fails_and_first_persists(self, member_service):
        first_id = member_service.join("kim")

        with pytest.raises(DuplicateMemberException) as exc_info:
            member_service.join("kim")

        assert exc_info.value.details == {"name": "kim"}
        members = member_service.find_members()
        assert [m.id for m in members] == [first_id]


class TestQueries:
    """Tests for member lookups"""

    def test_find_members_ordered_by_id(self, member_service):
        ids = [member_service.join(name) for name in ("c", "a", "b")]
        assert [m.id for m in member_service.find_members()] == ids

    def test_find_one_missing(self, member_service):
        with pytest.raises(EntityNotFoundException) as exc_info:
            member_service.find_one(999)
        assert exc_info.value.details == {"entity": "Member", "id": 999}


class TestUpdate:
    """Tests for MemberService.update"""

    def test_rename(self, db_session, member_service):
        member_id = member_service.join("kim")

        member = member_service.update(member_id, "park")

        assert member.name == "park"
        db_session.expunge_all()
        assert db_session.get(Member, member_id).name == "park"

    def test_rename_to_same_name(self, member_service):
        member_id = member_service.join("kim")
        assert member_service.update(member_id, "kim").name == "kim"

    def test_rename_to_taken_name_fails(self, member_service):
        member_service.join("kim")
        member_id = member_service.join("lee")

        with pytest.raises(DuplicateMemberException):
            member_service.update(member_id, "kim")

        assert member_service.find_one(member_id).name == "lee"

    def test_rename_missing_member(self, member_service):
        with pytest.raises(EntityNotFoundException):
            member_service.update(404, "ghost")
