"""
SORTIE-ND parameter file generation.

Creates a parameter file for one transect plot from a template: the initial
tree densities are replaced with the plot's survey data, and the number of
timesteps and output file names are set.

Note: SORTIE needs absolute rather than relative paths for the output
directory, e.g. "/project/6017193/sortie/Output" on the cluster. out_dir is
written as given.
"""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path

import pandas as pd

from .config import INIT_DENSITY_YEAR, ReferenceTables
from .exceptions import DocumentStructureError
from .init_density import SpeciesDensity, density_list_to_xml, get_transect_init_dens

logger = logging.getLogger(__name__)

# Positions (relative to the paramFile root) edited in the template
DENSITY_PARENT = "trees"
DENSITY_TAG = "tr_initialDensities"
TIMESTEPS_PATH = "plot/timesteps"
OUTPUT_FILENAME_PATH = "Output/ou_filename"
SHORT_OUTPUT_FILENAME_PATH = "ShortOutput/so_filename"


def plot_slug(plot_id: str) -> str:
    """Strip non-alphanumeric characters: "1823-T1-0050" -> "1823T10050"."""
    return "".join(ch for ch in str(plot_id) if ch.isalnum())


def param_filename(plot_id: str) -> str:
    """Name of the parameter file written for a plot."""
    return f"F{plot_slug(plot_id)}_no_epi.xml"


def _find_one(root: ET.Element, path: str) -> ET.Element:
    found = root.findall(path)
    if len(found) != 1:
        raise DocumentStructureError(
            f"Expected one {root.tag}/{path} in template, found {len(found)}"
        )
    return found[0]


def edit_param_tree(
    tree: ET.ElementTree,
    density_list: list[SpeciesDensity],
    timesteps: int,
    out_dir: str,
    slug: str,
) -> None:
    """
    Edit a parsed parameter file in place.

    All target elements are located before anything is changed, so a
    template missing one of them is left untouched.

    Args:
        tree: Parsed parameter file (root element paramFile)
        density_list: Initial densities from get_transect_init_dens()
        timesteps: Number of timesteps to run
        out_dir: Directory for SORTIE output files
        slug: Alphanumeric plot id used in output file names

    Raises:
        DocumentStructureError: If the template lacks any edited element
    """
    root = tree.getroot()
    if root.tag != "paramFile":
        raise DocumentStructureError(
            f"Template root is <{root.tag}>, expected <paramFile>"
        )

    density_parent = _find_one(root, DENSITY_PARENT)
    old_densities = _find_one(density_parent, DENSITY_TAG)
    timesteps_el = _find_one(root, TIMESTEPS_PATH)
    output_el = _find_one(root, OUTPUT_FILENAME_PATH)
    short_output_el = _find_one(root, SHORT_OUTPUT_FILENAME_PATH)

    # Replace density info at the same position
    new_densities = density_list_to_xml(density_list)
    new_densities.tail = old_densities.tail
    position = list(density_parent).index(old_densities)
    density_parent.remove(old_densities)
    density_parent.insert(position, new_densities)

    timesteps_el.text = str(timesteps)

    output_el.text = f"{out_dir}/F{slug}.gz.tar"
    short_output_el.text = f"{out_dir}/F{slug}.out"


def create_param_file(
    plot_id: str,
    timesteps: int,
    templ_file: Path | str,
    out_dir: str,
    survey: pd.DataFrame | Path | str | None = None,
    reference: ReferenceTables | None = None,
    dest_dir: Path | str = ".",
) -> Path:
    """
    Create a parameter file for one plot from a template.

    Initial densities come from the plot's survey data for 1991. The file
    is named F<slug>_no_epi.xml, where slug is the plot id without
    non-alphanumeric characters.

    Args:
        plot_id: Survey plot id (e.g. "1823-T1-0050")
        timesteps: Number of timesteps to run
        templ_file: Template parameter file
        out_dir: Directory where SORTIE writes its outputs (not checked)
        survey: Survey DataFrame or path to the survey CSV
        reference: Reference tables (defaults to DEFAULT_REFERENCE)
        dest_dir: Directory where the parameter file is written
            (default: current directory)

    Returns:
        Path of the written parameter file
    """
    templ_file = Path(templ_file)
    if not templ_file.exists():
        raise FileNotFoundError(f"Template parameter file not found: {templ_file}")

    tree = ET.parse(templ_file)

    dens_new = get_transect_init_dens(
        plot_id, INIT_DENSITY_YEAR, survey=survey, reference=reference
    )

    slug = plot_slug(plot_id)
    edit_param_tree(tree, dens_new, timesteps, out_dir, slug)

    filepath = Path(dest_dir) / param_filename(plot_id)
    ET.indent(tree)
    tree.write(filepath, encoding="UTF-8", xml_declaration=True)

    logger.info(
        "Wrote %s (%d species, %d timesteps)", filepath, len(dens_new), timesteps
    )
    return filepath
