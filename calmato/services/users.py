"""Credential store: user persistence over a SQLAlchemy session."""

from sqlalchemy.orm import Session

from calmato.core.database import lock_key
from calmato.models.user import User, UserRole


class UserRepository:
    """Reads and writes User rows. Emails are expected already lowercased."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_id(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def get_by_email(self, email: str) -> User | None:
        return self.session.query(User).filter(User.email == email).first()

    def email_exists(self, email: str) -> bool:
        return self.session.query(User.id).filter(User.email == email).first() is not None

    def list_all(self) -> list[User]:
        return self.session.query(User).order_by(User.id).all()

    def lock_email(self, email: str) -> None:
        """Hold the registration lock for `email` until commit or rollback."""
        lock_key(self.session, f"users.email:{email}")

    def add(self, email: str, name: str, password_hash: str, role: UserRole) -> User:
        """Insert a user and commit. IntegrityError propagates on a duplicate email."""
        user = User(
            email=email,
            name=name,
            password_hash=password_hash,
            role=role.value,
        )
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def rollback(self) -> None:
        self.session.rollback()
