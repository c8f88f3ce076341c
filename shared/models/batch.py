"""Report model for a batch embedding regeneration run."""

from pydantic import BaseModel, ConfigDict, Field


class BatchJobResult(BaseModel):
    """Outcome of one regeneration run. Returned to the caller, never stored.

    Attributes:
        message:     Human readable summary.
        total_items: Number of eligible items the run considered.
        processed:   Number of items whose embedding was written.
        failed:      Number of items that failed.
        success:     IDs of the items that were written.
        errors:      One "Item {id}: {reason}" string per failed item.
    """

    model_config = ConfigDict(populate_by_name=True)

    message: str
    total_items: int = Field(default=0, serialization_alias="totalItems")
    processed: int = 0
    failed: int = 0
    success: list[str] = []
    errors: list[str] = []

    def record_success(self, item_id: str) -> None:
        self.success.append(item_id)
        self.processed += 1

    def record_failure(self, item_id: str, reason: str) -> None:
        self.errors.append(f"Item {item_id}: {reason}")
        self.failed += 1
