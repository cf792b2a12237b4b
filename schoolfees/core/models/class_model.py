"""School classes (JSS1, Primary 4). Model named SchoolClass to avoid Python 'class' keyword."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from schoolfees.db.session import Base


class SchoolClass(Base):
    """Class master. Not linked to students by key; students store the class name as text."""

    __tablename__ = "classes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False, unique=True)
    description = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
