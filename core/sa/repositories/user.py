from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from core.exceptions import ValidationError
from core.sa.models import User

class UserRepository:
    """Repository for managing User entities."""

    def __init__(self, session: Session):
        """Initialize the repository with a database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def create_user(self, name: str, email: Optional[str] = None) -> User:
        """Create a new user.

        Args:
            name: Display name of the user
            email: Optional email, unique across users

        Returns:
            The created User object

        Raises:
            ValidationError: If a user with the given email already exists
        """
        user = User(name=name, email=email)
        self.session.add(user)
        try:
            self.session.commit()
            return user
        except IntegrityError:
            self.session.rollback()
            raise ValidationError(f"User with email '{email}' already exists")

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.session.query(User).filter(User.id == user_id).one_or_none()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.session.query(User).filter(User.email == email).one_or_none()

    def list_user_ids(self) -> List[int]:
        """IDs of every user, in creation order."""
        return [row[0] for row in self.session.query(User.id).order_by(User.id).all()]
