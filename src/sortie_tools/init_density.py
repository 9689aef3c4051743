"""
Initial tree densities for SORTIE-ND parameter files from transect surveys.

The survey table (transect_meas.csv) has one row per plot, year, species,
status and DBH class with a stem count. Counts are converted to stems/ha
using the area sampled for each DBH class, then grouped by species in the
same order as the tr_initialDensities element of the parameter file.
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd

from .config import (
    ALIVE_STATUS,
    DEFAULT_REFERENCE,
    DEFAULT_SURVEY_DATA,
    ReferenceTables,
)

logger = logging.getLogger(__name__)

SURVEY_COLUMNS = ["plot_id", "year", "species_id", "status_id", "dbh_class", "count"]


@dataclass
class InitialDensity:
    """Density (stems/ha, formatted as "450.0") of one size class."""

    size_class: str
    density: str


@dataclass
class SpeciesDensity:
    """All initial densities of one species (a tr_idVals element)."""

    species_name: str
    entries: list[InitialDensity] = field(default_factory=list)


def load_survey(filepath: Path | str | None = None) -> pd.DataFrame:
    """
    Load transect survey measurements from CSV.

    Args:
        filepath: Path to the survey CSV (defaults to transect_meas.csv,
            or $SORTIE_SURVEY_DATA)

    Returns:
        DataFrame with plot_id, year, species_id, status_id, dbh_class, count
    """
    if filepath is None:
        filepath = DEFAULT_SURVEY_DATA

    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Survey data file not found: {filepath}")

    df = pd.read_csv(
        filepath,
        dtype={"plot_id": str, "species_id": str, "status_id": str},
    )

    missing = [col for col in SURVEY_COLUMNS if col not in df.columns]
    if missing:
        raise ValueError(f"Survey data missing required columns: {missing}")

    return df


def size_class_label(
    dbh_class: float, reference: ReferenceTables = DEFAULT_REFERENCE
) -> str:
    """
    Convert a DBH class to a SORTIE size class name.

    The seedling class is "Seedling"; other classes are named after their
    upper bound, e.g. 7.5 -> "s10.0".
    """
    if dbh_class == reference.seedling_dbh:
        return "Seedling"
    return f"s{dbh_class + 2.5:.1f}"


def plot_area_ha(
    dbh_class: float, reference: ReferenceTables = DEFAULT_REFERENCE
) -> float:
    """Sampled area (ha) for a DBH class."""
    if dbh_class == reference.seedling_dbh:
        return reference.seedling_area_ha
    if dbh_class == reference.sapling_dbh:
        return reference.sapling_area_ha
    return reference.adult_area_ha


def format_density(count: float, area_ha: float) -> str:
    """Stems/ha rounded to an integer, written with one decimal ("450.0")."""
    return f"{round(count / area_ha):.1f}"


def get_transect_init_dens(
    plot: str,
    year: int,
    survey: pd.DataFrame | Path | str | None = None,
    reference: ReferenceTables | None = None,
) -> list[SpeciesDensity]:
    """
    Build the initial density list of one plot and survey year.

    Only living stems (status "A") of species in the reference species
    table are used; other species are dropped silently. Species without
    living stems in the plot are left out of the list.

    Args:
        plot: Survey plot_id (e.g. "1823-T1-0050")
        year: Survey year
        survey: Survey DataFrame or path to the survey CSV
        reference: Reference tables (defaults to DEFAULT_REFERENCE)

    Returns:
        List of SpeciesDensity in species table order, each with its size
        classes in increasing DBH order
    """
    if reference is None:
        reference = DEFAULT_REFERENCE
    if not isinstance(survey, pd.DataFrame):
        survey = load_survey(survey)

    dens_df = survey[
        (survey["plot_id"].astype(str) == str(plot))
        & (survey["year"] == int(year))
        & (survey["status_id"] == ALIVE_STATUS)
    ].copy()

    species_by_id = reference.species_by_id
    known = dens_df["species_id"].isin(list(species_by_id))
    if not known.all():
        logger.debug(
            "Plot %s: dropping %d row(s) of unmodelled species %s",
            plot,
            (~known).sum(),
            sorted(dens_df.loc[~known, "species_id"].unique()),
        )
    dens_df = dens_df[known].copy()

    if len(dens_df) == 0:
        logger.warning(
            "Plot %s has no living stems of modelled species in %s", plot, year
        )
        return []

    dens_df["species_name"] = pd.Categorical(
        dens_df["species_id"].map(species_by_id),
        categories=reference.species_names,
        ordered=True,
    )
    dens_df["size_class"] = [
        size_class_label(dbh, reference) for dbh in dens_df["dbh_class"]
    ]
    dens_df["density"] = [
        format_density(count, plot_area_ha(dbh, reference))
        for count, dbh in zip(dens_df["count"], dens_df["dbh_class"])
    ]

    dens_df = dens_df.sort_values(["species_name", "dbh_class"], kind="stable")

    result = []
    grouped = dens_df.groupby("species_name", sort=True, observed=True)
    for species_name, group in grouped:
        entries = [
            InitialDensity(size_class, density)
            for size_class, density in zip(group["size_class"], group["density"])
        ]
        result.append(SpeciesDensity(str(species_name), entries))

    return result


def density_list_to_xml(density_list: list[SpeciesDensity]) -> ET.Element:
    """
    Build the tr_initialDensities element of a parameter file.

    Layout:
        <tr_initialDensities>
          <tr_idVals whatSpecies="Balsam_Fir">
            <tr_initialDensity sizeClass="Seedling">5000.0</tr_initialDensity>
            ...
    """
    element = ET.Element("tr_initialDensities")
    for species in density_list:
        id_vals = ET.SubElement(
            element, "tr_idVals", {"whatSpecies": species.species_name}
        )
        for entry in species.entries:
            init_dens = ET.SubElement(
                id_vals, "tr_initialDensity", {"sizeClass": entry.size_class}
            )
            init_dens.text = entry.density
    return element
