"""
Tests for the duplicate-safe long-to-wide pivot.
"""

import pandas as pd
import pytest

from sortie_tools.exceptions import DuplicateKeyError
from sortie_tools.reshape import spread_unique


class TestSpreadUnique:
    """Tests for spread_unique function."""

    def test_spreads_names_to_columns(self):
        """Each distinct name becomes a column, one row per key."""
        long_df = pd.DataFrame(
            {
                "id": [0, 0, 1, 1],
                "label": ["X", "Y", "X", "Y"],
                "value": [1.0, 2.0, 3.0, 4.0],
            }
        )
        wide = spread_unique(long_df, ["id"], "label", "value")

        assert list(wide.columns) == ["id", "X", "Y"]
        assert wide["id"].tolist() == [0, 1]
        assert wide["X"].tolist() == [1.0, 3.0]
        assert wide["Y"].tolist() == [2.0, 4.0]

    def test_keeps_first_appearance_order(self):
        """Rows and columns are not sorted alphabetically."""
        long_df = pd.DataFrame(
            {
                "key": ["b", "b", "a"],
                "name": ["Zeta", "Alpha", "Zeta"],
                "value": [1, 2, 3],
            }
        )
        wide = spread_unique(long_df, ["key"], "name", "value")

        assert wide["key"].tolist() == ["b", "a"]
        assert list(wide.columns) == ["key", "Zeta", "Alpha"]

    def test_missing_combinations_are_nan(self):
        """Absent (key, name) combinations give NaN, not dropped rows."""
        long_df = pd.DataFrame(
            {
                "stage": ["Sdl", "Adt", "Adt"],
                "var": ["Abs Den", "Abs Den", "Abs BA"],
                "value": [10.0, 5.0, 2.5],
            }
        )
        wide = spread_unique(long_df, ["stage"], "var", "value")

        assert len(wide) == 2
        sdl = wide[wide["stage"] == "Sdl"].iloc[0]
        assert sdl["Abs Den"] == 10.0
        assert pd.isna(sdl["Abs BA"])

    def test_multiple_index_columns(self):
        """Rows are identified by the full index column combination."""
        long_df = pd.DataFrame(
            {
                "step": [0, 0, 1],
                "stage": ["Sdl", "Adt", "Sdl"],
                "var": ["Den", "Den", "Den"],
                "value": [1.0, 2.0, 3.0],
            }
        )
        wide = spread_unique(long_df, ["step", "stage"], "var", "value")

        assert len(wide) == 3
        assert list(wide.columns) == ["step", "stage", "Den"]
        assert wide["Den"].tolist() == [1.0, 2.0, 3.0]

    def test_nan_keys_form_their_own_group(self):
        """Rows with a NaN key are kept."""
        long_df = pd.DataFrame(
            {
                "step": [0, 0],
                "subplot": [float("nan"), float("nan")],
                "var": ["A", "B"],
                "value": [1.0, 2.0],
            }
        )
        wide = spread_unique(long_df, ["step", "subplot"], "var", "value")

        assert len(wide) == 1
        assert wide["A"].iloc[0] == 1.0
        assert wide["B"].iloc[0] == 2.0

    def test_duplicate_cell_raises(self):
        """Two values for the same cell are an error, not an overwrite."""
        long_df = pd.DataFrame(
            {
                "id": [0, 0, 1],
                "label": ["X", "X", "X"],
                "value": [1.0, 2.0, 3.0],
            }
        )
        with pytest.raises(DuplicateKeyError, match="Duplicate values") as exc_info:
            spread_unique(long_df, ["id"], "label", "value")

        assert exc_info.value.keys == ["id", "label"]
        assert exc_info.value.duplicates == [(0, "X")]

    def test_duplicate_error_is_value_error(self):
        """DuplicateKeyError can be caught as ValueError."""
        long_df = pd.DataFrame({"id": [0, 0], "label": ["X", "X"], "value": [1, 2]})
        with pytest.raises(ValueError):
            spread_unique(long_df, ["id"], "label", "value")
