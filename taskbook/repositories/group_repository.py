"""Repositories for users, groups and group memberships."""

from uuid import UUID

from sqlmodel import select

from ..schemas.database import Group, User, UserGroup
from ..schemas.unified_models import RelationType
from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Read access to identity rows plus seeding helpers."""

    def get_entity_class(self) -> type[User]:
        return User

    def create_user(
        self,
        user_name: str,
        email: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
        **kwargs,
    ) -> User:
        """Insert a user row."""
        return self.add(
            User(
                user_name=user_name,
                email=email,
                first_name=first_name,
                last_name=last_name,
                **kwargs,
            )
        )

    def get_by_user_name(self, user_name: str) -> User | None:
        statement = select(User).where(User.user_name == user_name)
        return self.session.exec(statement).first()


class GroupRepository(BaseRepository[Group]):
    """Repository for group rows."""

    def get_entity_class(self) -> type[Group]:
        return Group

    def create_group(self, name: str, is_active: bool) -> Group:
        """Insert a group with a fresh identifier."""
        return self.add(Group(name=name, is_active=is_active))

    def rename(self, group_id: UUID, name: str, is_active: bool) -> Group | None:
        """Change name and active flag; None if the group does not exist."""
        return self.update(group_id, {"name": name, "is_active": is_active})


class UserGroupRepository(BaseRepository[UserGroup]):
    """Repository for membership and ownership edges.

    Primary key is the (user_id, group_id) pair, so a user holds at most one
    edge per group.
    """

    def get_entity_class(self) -> type[UserGroup]:
        return UserGroup

    def _pair(self, user_id: UUID, group_id: UUID):
        return select(UserGroup).where(
            UserGroup.user_id == user_id, UserGroup.group_id == group_id
        )

    def get_owned(self, user_id: UUID) -> list[UserGroup]:
        """Owner edges of a user with their groups loaded."""
        statement = self.with_relations(
            select(UserGroup).where(
                UserGroup.user_id == user_id,
                UserGroup.relation_type == RelationType.OWNER,
            ),
            UserGroup.group,
        )
        return list(self.session.exec(statement).all())

    def get_owned_by_group(self, user_id: UUID, group_id: UUID) -> UserGroup | None:
        statement = self.with_relations(
            self._pair(user_id, group_id).where(
                UserGroup.relation_type == RelationType.OWNER
            ),
            UserGroup.group,
        )
        return self.session.exec(statement).one_or_none()

    def is_owner(self, user_id: UUID, group_id: UUID) -> bool:
        statement = select(UserGroup.user_id).where(
            UserGroup.user_id == user_id,
            UserGroup.group_id == group_id,
            UserGroup.relation_type == RelationType.OWNER,
        )
        return self.session.exec(statement).first() is not None

    def get_members(self, group_id: UUID) -> list[UserGroup]:
        """Member edges of a group with group and user loaded."""
        statement = self.with_relations(
            select(UserGroup).where(
                UserGroup.group_id == group_id,
                UserGroup.relation_type == RelationType.MEMBER,
            ),
            UserGroup.group,
            UserGroup.user,
        )
        return list(self.session.exec(statement).all())

    def get_membership(self, user_id: UUID, group_id: UUID) -> UserGroup | None:
        """Edge of any kind for the pair, group and user loaded."""
        statement = self.with_relations(
            self._pair(user_id, group_id), UserGroup.group, UserGroup.user
        )
        return self.session.exec(statement).one_or_none()

    def get_for_user(self, user_id: UUID) -> list[UserGroup]:
        """Every edge of a user, group and user loaded."""
        statement = self.with_relations(
            select(UserGroup).where(UserGroup.user_id == user_id),
            UserGroup.group,
            UserGroup.user,
        )
        return list(self.session.exec(statement).all())

    def is_related(self, user_id: UUID, group_id: UUID) -> bool:
        statement = select(UserGroup.user_id).where(
            UserGroup.user_id == user_id, UserGroup.group_id == group_id
        )
        return self.session.exec(statement).first() is not None

    def add_edge(
        self, user_id: UUID, group_id: UUID, relation_type: RelationType
    ) -> UserGroup:
        """Insert an edge between a user and a group."""
        return self.add(
            UserGroup(user_id=user_id, group_id=group_id, relation_type=relation_type)
        )
