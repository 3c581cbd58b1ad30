# ============================================================================
# Bulk Selection Tests
# ============================================================================
from app.services.lifecycle import SelectionSet


class TestSelectionSet:
    """Tests for selection against the rendered list"""

    def test_only_rendered_ids_selectable(self):
        selection = SelectionSet()
        selection.refresh(["1", "2", "3"])

        assert selection.select("2") is True
        assert selection.select("99") is False
        assert selection.ids == ["2"]

    def test_ids_follow_rendered_order(self):
        selection = SelectionSet()
        selection.refresh(["c", "a", "b"])
        selection.select("b")
        selection.select("c")

        assert selection.ids == ["c", "b"]

    def test_refresh_drops_stale_ids(self):
        """Ids that vanished from the list leave the selection"""
        selection = SelectionSet()
        selection.refresh(["1", "2", "3"])
        selection.select_all()

        dropped = selection.refresh(["2", "3", "4"])

        assert dropped == ["1"]
        assert selection.ids == ["2", "3"]
        assert "4" not in selection

    def test_replace_and_clear(self):
        selection = SelectionSet()
        selection.refresh(["1", "2", "3"])
        selection.select("1")

        assert selection.replace(["2", "3", "9"]) == ["2", "3"]
        assert len(selection) == 2

        selection.clear()
        assert selection.ids == []
