from sqlalchemy import Column, String, DateTime, Enum, Uuid
import uuid
from attendance.db.session import Base
from attendance.core.timeutils import utcnow
import enum


class RoleEnum(str, enum.Enum):
    user = "user"
    organizer = "organizer"
    admin = "admin"


class User(Base):
    """Platform user, owned by the identity service and read-only here."""

    __tablename__ = "users"
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    image_url = Column(String(512), nullable=True)
    role = Column(Enum(RoleEnum), default=RoleEnum.user, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
