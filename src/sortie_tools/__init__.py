"""
SORTIE Tools - Library for preparing and reading SORTIE-ND files in Python.

This package provides utilities for:
- Building initial tree densities from transect survey data
- Writing SORTIE-ND parameter files from a template
- Reshaping summary output (.out) files
- Reading detailed output tree maps into per-life-stage tables
"""

from .config import DEFAULT_REFERENCE, ReferenceTables, load_reference_tables
from .exceptions import (
    ColumnNameError,
    DocumentStructureError,
    DuplicateKeyError,
    SortieDataError,
    TreeMapJoinError,
    UnknownStageError,
)
from .init_density import (
    InitialDensity,
    SpeciesDensity,
    density_list_to_xml,
    get_transect_init_dens,
    load_survey,
)
from .param_file import create_param_file, plot_slug
from .batch import create_param_files, plots_for_fire_year
from .summary_output import read_summary_output, reshape_summary_table
from .treemap import treemap_from_file
from .reshape import spread_unique

__all__ = [
    "ReferenceTables",
    "DEFAULT_REFERENCE",
    "load_reference_tables",
    "SortieDataError",
    "DocumentStructureError",
    "ColumnNameError",
    "DuplicateKeyError",
    "TreeMapJoinError",
    "UnknownStageError",
    "load_survey",
    "get_transect_init_dens",
    "density_list_to_xml",
    "InitialDensity",
    "SpeciesDensity",
    "create_param_file",
    "plot_slug",
    "create_param_files",
    "plots_for_fire_year",
    "read_summary_output",
    "reshape_summary_table",
    "treemap_from_file",
    "spread_unique",
]
