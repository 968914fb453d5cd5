"""Tests for whisker.element — the triggering element view."""

import pytest

from whisker.element import Element


class TestElement:
    """Element — read-only mapping of the client's attributes."""

    def test_mapping_access(self) -> None:
        el = Element({"id": "inc", "class": "btn"})
        assert el["id"] == "inc"
        assert len(el) == 2
        assert set(el) == {"id", "class"}

    def test_read_only(self) -> None:
        el = Element({"id": "inc"})
        with pytest.raises(TypeError):
            el._attrs["id"] = "other"  # type: ignore[index]

    def test_source_mapping_copied(self) -> None:
        attrs = {"id": "inc"}
        el = Element(attrs)
        attrs["id"] = "changed"
        assert el.id == "inc"

    def test_dataset_strips_prefix_and_snake_cases(self) -> None:
        el = Element({"data-count": "4", "data-user-id": "7", "id": "x"})
        assert dict(el.dataset) == {"count": "4", "user_id": "7"}

    def test_convenience_properties(self) -> None:
        el = Element({"id": "box", "value": "hi", "checked": True})
        assert el.id == "box"
        assert el.value == "hi"
        assert el.checked is True

    def test_empty_element(self) -> None:
        el = Element()
        assert el.id is None
        assert el.value is None
        assert el.checked is False
        assert dict(el.dataset) == {}

    def test_from_wire_reads_attrs(self) -> None:
        el = Element.from_wire({"target": "x#y", "attrs": {"data-count": "1"}})
        assert el.dataset["count"] == "1"

    def test_from_wire_ignores_malformed_attrs(self) -> None:
        assert len(Element.from_wire({"attrs": ["not", "a", "mapping"]})) == 0
        assert len(Element.from_wire({})) == 0

    def test_repr(self) -> None:
        assert repr(Element({"id": "a"})) == "Element({'id': 'a'})"
