#!/usr/bin/env python3
"""
Create SORTIE-ND parameter files from FERLD transect data.

First creates the parameter file of one plot, then the files of every plot
burned in a given fire year.

Note: SORTIE needs absolute rather than relative paths for the output
directory.

Output: F<plot>_no_epi.xml files in the current directory
"""

import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sortie_tools import (
    create_param_file,
    create_param_files,
    load_survey,
    plots_for_fire_year,
)

# Example of an output directory on the Compute Canada server
OUT_DIR = "/project/6017193/sortie/Output"
TEMPL_FILE = Path("F1847T10050_no_epi.xml")
SURVEY_FILE = Path("transect_meas.csv")
TIMESTEPS = 100

PLOT_ID = "1823-T1-0050"
FIRE_YEAR = 1823


def main():
    """Create parameter files for one plot and for one fire year."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    survey = load_survey(SURVEY_FILE)

    # One parameter file for a specific plot
    path = create_param_file(PLOT_ID, TIMESTEPS, TEMPL_FILE, OUT_DIR, survey=survey)
    print(f"Created {path}")

    # Parameter files for all plots in a given fire year
    plot_ids = plots_for_fire_year(survey, FIRE_YEAR)
    print(f"Fire year {FIRE_YEAR}: {len(plot_ids)} plots")

    paths = create_param_files(
        plot_ids, TIMESTEPS, TEMPL_FILE, OUT_DIR, survey=survey
    )
    print(f"Created {len(paths)} parameter files")


if __name__ == "__main__":
    main()
