"""Tests for entity validation."""

from datetime import datetime, timezone

import pytest

from errors import ValidationError
from schemas import MESSAGE, PROJECT


@pytest.mark.unit
def test_new_project_gets_defaults() -> None:
    doc = PROJECT.validate_new({"title": "Admin kit"})

    assert doc["title"] == "Admin kit"
    assert doc["type"] == "Template"
    assert isinstance(doc["createdAt"], datetime)
    # Unset optional fields are not stored at all.
    assert "rating" not in doc
    assert "description" not in doc


@pytest.mark.unit
def test_project_coerces_compatible_values() -> None:
    doc = PROJECT.validate_new({"title": 2024, "rating": "4.5", "createdAt": "2024-03-01T10:00:00Z"})

    assert doc["title"] == "2024"
    assert doc["rating"] == 4.5
    assert doc["createdAt"] == datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)


@pytest.mark.unit
@pytest.mark.parametrize("bad", [{"type": "Landing"}, {"rating": "five"}, {"type": None}])
def test_project_rejects_constraint_violations(bad: dict) -> None:
    with pytest.raises(ValidationError) as exc_info:
        PROJECT.validate_new(bad)
    assert exc_info.value.errors


@pytest.mark.unit
def test_unknown_fields_and_id_are_dropped() -> None:
    doc = PROJECT.validate_new({"_id": "abc", "title": "x", "stars": 5})

    assert "_id" not in doc
    assert "stars" not in doc


@pytest.mark.unit
@pytest.mark.parametrize("payload", [[], "text", 3])
def test_non_object_payload_is_rejected(payload: object) -> None:
    with pytest.raises(ValidationError):
        PROJECT.validate_new(payload)


@pytest.mark.unit
def test_new_message_defaults() -> None:
    doc = MESSAGE.validate_new({"senderName": "Ada", "body": "Hello"})

    assert doc["status"] == "unread"
    assert doc["type"] == "portal"
    assert doc["history"] == []
    assert isinstance(doc["timestamp"], datetime)


@pytest.mark.unit
def test_message_history_accepts_arbitrary_items() -> None:
    history = [{"status": "read", "at": "yesterday"}, "note", 3, None]
    doc = MESSAGE.validate_new({"history": history})
    assert doc["history"] == history


@pytest.mark.unit
def test_patch_contains_only_supplied_fields() -> None:
    assert MESSAGE.validate_patch({"status": "resolved"}) == {"status": "resolved"}
    assert PROJECT.validate_patch({}) == {}


@pytest.mark.unit
def test_patch_rejects_bad_status() -> None:
    with pytest.raises(ValidationError):
        MESSAGE.validate_patch({"status": "archived"})


@pytest.mark.unit
@pytest.mark.parametrize("rating", [float("nan"), float("inf"), float("-inf"), "NaN", "Infinity"])
def test_project_rejects_non_finite_rating(rating: object) -> None:
    with pytest.raises(ValidationError):
        PROJECT.validate_new({"title": "x", "rating": rating})
    with pytest.raises(ValidationError):
        PROJECT.validate_patch({"rating": rating})


@pytest.mark.unit
def test_message_history_rejects_non_finite_numbers() -> None:
    with pytest.raises(ValidationError):
        MESSAGE.validate_new({"history": [{"score": float("nan")}]})
    with pytest.raises(ValidationError):
        MESSAGE.validate_patch({"history": [1.0, float("inf")]})


@pytest.mark.unit
def test_timestamps_keep_millisecond_precision() -> None:
    supplied = PROJECT.validate_new({"createdAt": "2024-03-01T10:00:00.123456Z"})
    assert supplied["createdAt"] == datetime(2024, 3, 1, 10, 0, 0, 123000, tzinfo=timezone.utc)

    assert PROJECT.validate_new({})["createdAt"].microsecond % 1000 == 0
    assert MESSAGE.validate_new({})["timestamp"].microsecond % 1000 == 0
    patched = MESSAGE.validate_patch({"timestamp": "2024-01-01T09:00:00.999999Z"})
    assert patched["timestamp"].microsecond == 999000


@pytest.mark.unit
def test_booleans_are_cast_to_text() -> None:
    assert PROJECT.validate_new({"title": True})["title"] == "true"
    assert MESSAGE.validate_patch({"subject": False}) == {"subject": "false"}


@pytest.mark.unit
def test_scalar_history_becomes_single_item_list() -> None:
    assert MESSAGE.validate_new({"history": "x"})["history"] == ["x"]
    assert MESSAGE.validate_patch({"history": {"status": "read"}}) == {"history": [{"status": "read"}]}


@pytest.mark.unit
def test_blank_rating_clears_the_value() -> None:
    doc = PROJECT.validate_new({"title": "x", "rating": ""})
    assert "rating" in doc
    assert doc["rating"] is None

    assert PROJECT.validate_patch({"rating": "  "}) == {"rating": None}
