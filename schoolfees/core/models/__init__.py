from schoolfees.core.models.category import Category
from schoolfees.core.models.class_model import SchoolClass
from schoolfees.core.models.payment import Payment
from schoolfees.core.models.student import Student, student_categories

__all__ = [
    "Category",
    "Payment",
    "SchoolClass",
    "Student",
    "student_categories",
]
