"""
Long-to-wide pivot that refuses to overwrite values.
"""

import pandas as pd

from .exceptions import DuplicateKeyError


def spread_unique(
    df: pd.DataFrame,
    index: list[str],
    names_from: str,
    values_from: str,
) -> pd.DataFrame:
    """
    Spread a long table so each distinct value of `names_from` becomes a column.

    Unlike DataFrame.pivot_table, duplicates are never aggregated: every
    (index..., names_from) combination must occur at most once. Rows and new
    columns keep their order of first appearance, missing cells are NaN and
    NaN keys are kept as their own group.

    Args:
        df: Long table
        index: Columns identifying one output row
        names_from: Column whose values become the new column names
        values_from: Column holding the cell values

    Returns:
        Wide DataFrame with the `index` columns followed by one column per
        distinct `names_from` value

    Raises:
        DuplicateKeyError: If a (index..., names_from) combination repeats
    """
    keys = index + [names_from]

    row_codes = df.groupby(index, sort=False, dropna=False).ngroup().to_numpy()
    col_codes, col_names = pd.factorize(df[names_from], sort=False)

    cells = pd.DataFrame(
        {"_row": row_codes, "_col": col_codes, "_value": df[values_from].to_numpy()}
    )

    dup_mask = cells.duplicated(subset=["_row", "_col"], keep=False).to_numpy()
    if dup_mask.any():
        dups = df.loc[dup_mask, keys].drop_duplicates()
        raise DuplicateKeyError(keys, list(dups.itertuples(index=False, name=None)))

    wide = cells.pivot(index="_row", columns="_col", values="_value")
    wide = wide.reindex(columns=range(len(col_names)))
    wide.columns = list(col_names)

    row_keys = df[index].drop_duplicates().reset_index(drop=True)
    return pd.concat([row_keys, wide.reset_index(drop=True)], axis=1)
