"""SQLAlchemy ORM models for portal records."""
from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from yatri.database import Base


class Staff(Base):
    """A staff member enrolled in the training portal."""

    __tablename__ = "staff"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    staff_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)

    password: Mapped[str] = mapped_column(Text, nullable=False)  # bcrypt hash, never plaintext

    # Training state
    progress: Mapped[str] = mapped_column(Text, nullable=False, default="{}", server_default="{}")  # JSON text
    quiz_score: Mapped[str] = mapped_column(
        Text, nullable=False, default="Not taken", server_default="Not taken"
    )

    created_by: Mapped[str] = mapped_column(Text, nullable=False, default="Unknown", server_default="Unknown")

    def to_public_dict(self) -> dict:
        """Return the record without the password hash."""
        return {
            "id": self.id,
            "name": self.name,
            "staff_id": self.staff_id,
            "email": self.email,
            "progress": self.progress,
            "quiz_score": self.quiz_score,
            "created_by": self.created_by,
        }
