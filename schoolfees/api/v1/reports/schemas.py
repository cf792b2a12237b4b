from typing import List

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class PaymentUploadSummary(BaseModel):
    """Outcome of a spreadsheet import. Serialized as successCount / errorCount / errors."""

    success_count: int = 0
    error_count: int = 0
    errors: List[str] = Field(default_factory=list)

    class Config:
        alias_generator = to_camel
        populate_by_name = True
