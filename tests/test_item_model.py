from shared.models.batch import BatchJobResult
from shared.models.item import EmbedItemRequest, Item


def test_embedding_text_with_all_fields():
    item = Item(id="1", title="Drill", details="18V cordless", category="tools", location="Garage shelf")

    assert item.to_embedding_text() == (
        "Title: Drill. Details: 18V cordless. Category: tools. Location: Garage shelf."
    )


def test_embedding_text_omits_missing_optional_segments():
    item = Item(id="1", title="Drill")

    text = item.to_embedding_text()

    assert text == "Title: Drill. Category: other."
    assert "Details:" not in text
    assert "Location:" not in text


def test_empty_details_are_treated_as_absent():
    item = Item(id="1", title="Milk", details="", category="food", location=None)

    assert "Details:" not in item.to_embedding_text()


def test_eligibility_requires_non_empty_title():
    assert Item(id="1", title="Milk").is_embeddable()
    assert not Item(id="2", title="").is_embeddable()
    assert not Item(id="3", title=None).is_embeddable()


def test_numeric_ids_are_coerced_to_strings():
    assert Item.model_validate({"id": 42, "title": "Tent"}).id == "42"


def test_embed_item_request_maps_to_item():
    request = EmbedItemRequest(item_id="abc", title="Tent", location="Attic")

    item = request.to_item()

    assert item.id == "abc"
    assert item.to_embedding_text() == "Title: Tent. Category: other. Location: Attic."


def test_batch_result_serialises_with_camel_case_total():
    result = BatchJobResult(message="done", total_items=2)
    result.record_success("a")
    result.record_failure("b", "boom")

    body = result.model_dump(by_alias=True)

    assert body == {
        "message": "done",
        "totalItems": 2,
        "processed": 1,
        "failed": 1,
        "success": ["a"],
        "errors": ["Item b: boom"],
    }
