"""
SORTIE-ND summary output (.out) parser.

The summary file has one column per combination of life stage, variable and
species (e.g. "Sdl Abs Den: Balsam_Fir" for the absolute density of balsam
fir seedlings). This module reshapes it to one row per step, subplot, stage
and species, with one column per variable ("Abs Den", "Abs BA", ...).
"""

import logging
from pathlib import Path

import pandas as pd

from .config import SUMMARY_KEY_COLUMNS, SUMMARY_SKIP_ROWS, SUMMARY_TOTAL_MARKER
from .exceptions import ColumnNameError, DocumentStructureError
from .reshape import spread_unique

logger = logging.getLogger(__name__)

# "<Stage> <Variable>: <Species>", e.g. "Sdl Abs Den: Balsam_Fir"
COLUMN_PATTERN = r"^([A-Za-z]*) (.*): (.*)$"


def read_summary_output(
    filepath: Path | str, skip_rows: int = SUMMARY_SKIP_ROWS
) -> pd.DataFrame:
    """
    Read a summary output file and reshape it with reshape_summary_table().

    Args:
        filepath: Path to the tab-separated .out file
        skip_rows: Number of non-table lines before the column header
            (5 for the files we have seen, but it may vary)

    Returns:
        Reshaped summary DataFrame

    Raises:
        DuplicateKeyError: If a column header appears twice
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Summary output file not found: {filepath}")

    # Read the header row separately: read_csv would rename a repeated column
    # to "<name>.1", hiding the duplicate from reshape_summary_table()
    header = pd.read_csv(
        filepath, sep="\t", skiprows=skip_rows, header=None, nrows=1, dtype=str
    )
    names = header.iloc[0].tolist()

    df = pd.read_csv(
        filepath,
        sep="\t",
        skiprows=skip_rows + 1,
        header=None,
        names=list(range(len(names))),
    )
    df.columns = names
    logger.debug("Read %d rows x %d columns from %s", *df.shape, filepath)

    return reshape_summary_table(df)


def reshape_summary_table(df: pd.DataFrame) -> pd.DataFrame:
    """
    Reshape a wide summary table to Step/Subplot/Stage/Species rows.

    Columns ending in "Total:" (totals across species) are dropped. Variables
    that don't exist for a stage (e.g. basal area for seedlings) are NaN.

    Args:
        df: Summary table as read from the .out file

    Returns:
        DataFrame with columns Step, Subplot, Stage, Species followed by one
        column per variable, in order of first appearance

    Raises:
        DocumentStructureError: If Step or Subplot is missing
        ColumnNameError: If a column name can't be split into stage,
            variable and species
        DuplicateKeyError: If two columns parse to the same
            stage/variable/species (including a repeated column name)
    """
    missing = [col for col in SUMMARY_KEY_COLUMNS if col not in df.columns]
    if missing:
        raise DocumentStructureError(f"Summary table missing key columns: {missing}")

    # Positions, not names: a repeated column name must reach spread_unique()
    positions = [
        i
        for i, col in enumerate(df.columns)
        if col not in SUMMARY_KEY_COLUMNS
        and not str(col).endswith(SUMMARY_TOTAL_MARKER)
    ]
    value_cols = [df.columns[i] for i in positions]

    parts = pd.Series(value_cols, dtype=object).str.extract(COLUMN_PATTERN)
    bad = [col for col, ok in zip(value_cols, parts.notna().all(axis=1)) if not ok]
    if bad:
        raise ColumnNameError(bad)

    values = df.iloc[:, positions].reset_index(drop=True)
    values.columns = range(len(positions))

    # Keep file row order: all columns of the first step before the next step
    long_df = (
        pd.concat([df[SUMMARY_KEY_COLUMNS].reset_index(drop=True), values], axis=1)
        .melt(
            id_vars=SUMMARY_KEY_COLUMNS,
            var_name="_column",
            value_name="Value",
            ignore_index=False,
        )
        .sort_index(kind="stable")
        .reset_index(drop=True)
    )

    # Map each column position to its (Stage, Variable, Species) parts
    parts.columns = ["Stage", "Variable", "Species"]
    labels = parts.iloc[long_df["_column"].to_numpy(dtype=int)]
    long_df = pd.concat([long_df, labels.reset_index(drop=True)], axis=1)

    long_df = long_df[
        SUMMARY_KEY_COLUMNS + ["Stage", "Variable", "Species", "Value"]
    ]

    return spread_unique(
        long_df,
        index=SUMMARY_KEY_COLUMNS + ["Stage", "Species"],
        names_from="Variable",
        values_from="Value",
    )
