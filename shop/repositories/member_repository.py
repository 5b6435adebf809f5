"""
Member persistence.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..domain.exceptions import EntityNotFoundException
from ..models import Member


class MemberRepository:
    """SQLAlchemy access to members."""

    def __init__(self, db: Session):
        """
        Initialize repository.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def save(self, member: Member) -> Member:
        """Add the member and flush so it gets an id."""
        self.db.add(member)
        self.db.flush()
        return member

    def find_one(self, member_id: int) -> Member:
        """
        Get member by ID.

        Raises:
            EntityNotFoundException: If no member has this id
        """
        member = self.db.get(Member, member_id)
        if member is None:
            raise EntityNotFoundException("Member", member_id)
        return member

    def find_all(self) -> List[Member]:
        return list(self.db.scalars(select(Member).order_by(Member.id)))

    def find_by_name(self, name: str) -> Optional[Member]:
        return self.db.scalars(select(Member).where(Member.name == name)).first()
