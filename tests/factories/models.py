"""Factories for the test models."""

from uuid import uuid4

from polyfactory.factories.sqlalchemy_factory import SQLAlchemyFactory

from tests.models import Account, Member, Organization, Post, User


class UserFactory(SQLAlchemyFactory[User]):
    """Factory for creating test User instances."""

    __model__ = User
    __set_primary_key__ = False

    @classmethod
    def name(cls) -> str:
        """Generate a display name."""
        return f"Test User {uuid4().hex[:4]}"

    @classmethod
    def email(cls) -> str:
        """Generate a unique email."""
        return f"user-{uuid4().hex[:8]}@example.com"


class AccountFactory(SQLAlchemyFactory[Account]):
    """Factory for creating unowned Account instances."""

    __model__ = Account
    __set_primary_key__ = False

    @classmethod
    def name(cls) -> str:
        return f"Account {uuid4().hex[:4]}"

    @classmethod
    def actor_id(cls) -> None:
        return None

    @classmethod
    def actor_type(cls) -> None:
        return None


class PostFactory(SQLAlchemyFactory[Post]):
    __model__ = Post
    __set_primary_key__ = False

    @classmethod
    def title(cls) -> str:
        return f"Post {uuid4().hex[:6]}"

    @classmethod
    def user_id(cls) -> None:
        return None


class OrganizationFactory(SQLAlchemyFactory[Organization]):
    __model__ = Organization
    __set_primary_key__ = False

    @classmethod
    def name(cls) -> str:
        return f"Org {uuid4().hex[:4]}"


class MemberFactory(SQLAlchemyFactory[Member]):
    __model__ = Member
    __set_primary_key__ = False

    @classmethod
    def uuid(cls) -> str:
        """Generate the external key."""
        return str(uuid4())

    @classmethod
    def name(cls) -> str:
        return f"Member {uuid4().hex[:4]}"
