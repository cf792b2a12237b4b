"""Fee category (Tuition, Uniform, Excursion). Soft delete via is_deleted."""

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, Numeric, String
from sqlalchemy.orm import relationship

from schoolfees.db.session import Base


class Category(Base):
    """Billable fee type with a fixed amount, assignable to many students.

    Name uniqueness is checked in the service among non-deleted rows, so a deleted
    category's name can be reused.
    """

    __tablename__ = "categories"
    __table_args__ = (CheckConstraint("amount >= 0", name="chk_category_amount_non_negative"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    description = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    students = relationship("Student", secondary="student_categories", back_populates="categories")
    payments = relationship("Payment", back_populates="category", passive_deletes=True)
