"""
Parameter files for many plots.

Each plot gets its own file; plots are processed one after the other with
no shared state, so a failing plot stops the batch with its error.
"""

import logging
from pathlib import Path

import pandas as pd

from .config import ReferenceTables
from .init_density import load_survey
from .param_file import create_param_file

logger = logging.getLogger(__name__)


def plots_for_fire_year(survey: pd.DataFrame, fire_year: int | str) -> list[str]:
    """
    Get the plot ids of one fire year.

    Transect plot ids start with the fire year, e.g. "1823-T1-0050".

    Args:
        survey: Survey DataFrame from load_survey()
        fire_year: Fire year (e.g. 1823)

    Returns:
        Unique plot ids containing the fire year, in file order
    """
    plot_ids = survey["plot_id"].astype(str)
    matching = plot_ids[plot_ids.str.contains(str(fire_year), regex=False)]
    return matching.unique().tolist()


def create_param_files(
    plot_ids: list[str],
    timesteps: int,
    templ_file: Path | str,
    out_dir: str,
    survey: pd.DataFrame | Path | str | None = None,
    reference: ReferenceTables | None = None,
    dest_dir: Path | str = ".",
) -> list[Path]:
    """
    Create one parameter file per plot with create_param_file().

    Args:
        plot_ids: Survey plot ids
        timesteps: Number of timesteps to run
        templ_file: Template parameter file
        out_dir: Directory where SORTIE writes its outputs
        survey: Survey DataFrame or path to the survey CSV (read once)
        reference: Reference tables (defaults to DEFAULT_REFERENCE)
        dest_dir: Directory where parameter files are written

    Returns:
        Paths of the written parameter files, in plot_ids order
    """
    if not isinstance(survey, pd.DataFrame):
        survey = load_survey(survey)

    written = []
    for i, plot_id in enumerate(plot_ids, start=1):
        logger.info(
            "[%d/%d] Creating parameter file for %s", i, len(plot_ids), plot_id
        )
        written.append(
            create_param_file(
                plot_id,
                timesteps,
                templ_file,
                out_dir,
                survey=survey,
                reference=reference,
                dest_dir=dest_dir,
            )
        )

    return written
