"""
Member registration and lookup.
"""

from typing import List, Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import transactional
from ..domain.exceptions import DuplicateMemberException
from ..models import Address, Member
from ..repositories.member_repository import MemberRepository

logger = structlog.get_logger(__name__)


class MemberService:
    """Member use cases; each write runs in its own transaction."""

    def __init__(self, db: Session, member_repository: MemberRepository):
        self.db = db
        self.member_repository = member_repository

    def join(self, name: str, address: Optional[Address] = None) -> int:
        """
        Register a new member.

        Args:
            name: Member name, must not be taken
            address: Home address

        Returns:
            New member id

        Raises:
            DuplicateMemberException: If the name is already registered.
                Nothing is written in that case.
        """
        try:
            with transactional(self.db):
                self._validate_duplicate_member(name)
                member = self.member_repository.save(Member(name=name, address=address or Address()))
                member_id = member.id
        except IntegrityError as e:
            # Lost a race with a concurrent registration; the unique index caught it
            logger.warning("Member insert hit unique constraint", name=name)
            raise DuplicateMemberException(name) from e

        logger.info("Member joined", member_id=member_id)
        return member_id

    def _validate_duplicate_member(self, name: str) -> None:
        if self.member_repository.find_by_name(name) is not None:
            raise DuplicateMemberException(name)

    def find_members(self) -> List[Member]:
        return self.member_repository.find_all()

    def find_one(self, member_id: int) -> Member:
        return self.member_repository.find_one(member_id)

    def update(self, member_id: int, name: str) -> Member:
        """
        Rename a member through change tracking.

        Raises:
            EntityNotFoundException: If no member has this id
            DuplicateMemberException: If another member has ``name``
        """
        try:
            with transactional(self.db):
                member = self.member_repository.find_one(member_id)
                if member.name != name:
                    self._validate_duplicate_member(name)
                member.name = name
        except IntegrityError as e:
            raise DuplicateMemberException(name) from e

        logger.info("Member renamed", member_id=member_id)
        return member
