from datetime import datetime

from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    """Back-office account. Only admins may manage social integrations."""

    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    username: str = Field(unique=True, index=True)
    password_hash: str
    role: str = Field(default="admin")  # "admin" | "editor"
    created_at: datetime = Field(default_factory=datetime.utcnow)
