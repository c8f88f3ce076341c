"""Pydantic models for catalog items and their embedding input."""

from pydantic import BaseModel, ConfigDict

DEFAULT_CATEGORY = "other"


class Item(BaseModel):
    """A catalog item as read from the store.

    Only the fields that feed the embedding are modelled; the embedding column
    itself is write-only from this service's point of view.
    """

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str
    title: str | None = None
    details: str | None = None
    category: str | None = None
    location: str | None = None

    def is_embeddable(self) -> bool:
        """An item is eligible for embedding iff its title is non-null and non-empty."""
        return bool(self.title)

    def to_embedding_text(self) -> str:
        """Render the fixed item template.

        "Title: {title}. [Details: {details}.] Category: {category|other}. [Location: {location}.]"

        Optional segments are left out entirely when the field is empty.
        The same template is used by the single-item trigger and the batch job;
        search queries never go through it.
        """
        parts = [f"Title: {self.title}."]
        if self.details:
            parts.append(f"Details: {self.details}.")
        parts.append(f"Category: {self.category or DEFAULT_CATEGORY}.")
        if self.location:
            parts.append(f"Location: {self.location}.")
        return " ".join(parts)


class EmbedItemRequest(BaseModel):
    """Body of the single-item embedding trigger."""

    item_id: str | None = None
    title: str | None = None
    details: str | None = None
    category: str | None = None
    location: str | None = None

    def to_item(self) -> Item:
        return Item(
            id=self.item_id or "",
            title=self.title,
            details=self.details,
            category=self.category,
            location=self.location,
        )
