"""Billed student and the student <-> category assignment table."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Table
from sqlalchemy.orm import relationship

from schoolfees.db.session import Base


student_categories = Table(
    "student_categories",
    Base.metadata,
    Column("student_id", Integer, ForeignKey("students.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)


class Student(Base):
    """Student billed for the categories assigned to them. Soft delete via is_deleted.

    class_name is free text; it is matched against classes.name by value only.
    """

    __tablename__ = "students"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    student_id = Column(String(50), nullable=False, index=True)  # external identifier, e.g. "STU-0042"
    class_name = Column("class", String(50), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    categories = relationship("Category", secondary=student_categories, back_populates="students")
    payments = relationship("Payment", back_populates="student", passive_deletes=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
