"""
SORTIE-ND detailed output (tree map) parser.

A detailed output .xml file holds one time step. Its tr_treemap element
contains:

- one tm_speciesList element giving species names by position (code 0..N-1);
- one tm_treeSettings element per species and life stage, with codelists
  that map numeric variable codes to labels (one codelist for integer
  variables, one for float variables);
- one tree element per tree, whose children hold the values:

    <tree sp="1" tp="3"><int c="0">12</int><fl c="0">154.2</fl>...</tree>

treemap_from_file() turns this into one DataFrame per life stage, since
different variables are recorded at each stage.
"""

import logging
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from .config import DEFAULT_REFERENCE, ReferenceTables
from .exceptions import DocumentStructureError, TreeMapJoinError, UnknownStageError
from .reshape import spread_unique

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TreeSetting:
    """One codelist entry of a tm_treeSettings element."""

    species: str
    stage_code: int
    kind: str  # "int" or "fl"
    code: int
    label: str


@dataclass(frozen=True)
class TreeValue:
    """One child value of a tree element, before decoding."""

    kind: str
    code: int
    value: str


@dataclass(frozen=True)
class TreeRecord:
    """One tree element. tree_id is its 0-based position in the document."""

    tree_id: int
    species_code: int
    stage_code: int
    values: tuple[TreeValue, ...]


def normalize_kind(tag: str) -> str:
    """Map "tm_intCode"/"int" to "int" and "tm_floatCode"/"fl" to "fl"."""
    return "int" if "int" in tag else "fl"


def _require_attr(element: ET.Element, name: str, where: str) -> str:
    value = element.get(name)
    if value is None:
        raise DocumentStructureError(
            f"{where}: <{element.tag}> has no '{name}' attribute"
        )
    return value


def _to_int(text: str | None, what: str, where: str) -> int:
    try:
        return int(str(text).strip())
    except ValueError:
        raise DocumentStructureError(f"{where}: {what} {text!r} is not an integer")


def find_treemap(root: ET.Element) -> ET.Element:
    """Return the single tr_treemap element of a detailed output document."""
    treemaps = root.findall("tr_treemap")
    if len(treemaps) != 1:
        raise DocumentStructureError(
            f"Expected one tr_treemap under <{root.tag}>, found {len(treemaps)}"
        )
    return treemaps[0]


def parse_species_list(treemap: ET.Element) -> dict[int, str]:
    """
    Build the species registry from tm_speciesList.

    Returns:
        Dictionary mapping species code (position in list) to species name
    """
    species_list = treemap.find("tm_speciesList")
    if species_list is None:
        raise DocumentStructureError("tr_treemap has no tm_speciesList")

    return {
        i: _require_attr(entry, "speciesName", "tm_speciesList")
        for i, entry in enumerate(species_list)
    }


def parse_tree_settings(treemap: ET.Element) -> list[TreeSetting]:
    """
    Decode the codelists of every tm_treeSettings element.

    Returns:
        List of TreeSetting, one per codelist entry
    """
    settings = []

    for setting in treemap.findall("tm_treeSettings"):
        species = _require_attr(setting, "sp", "tm_treeSettings")
        where = f"tm_treeSettings sp={species}"
        stage_code = _to_int(_require_attr(setting, "tp", where), "tp", where)

        for codelist in setting:
            for entry in codelist:
                settings.append(
                    TreeSetting(
                        species=species,
                        stage_code=stage_code,
                        kind=normalize_kind(entry.tag),
                        code=_to_int(entry.text, "code", where),
                        label=_require_attr(entry, "label", where),
                    )
                )

    return settings


def parse_trees(treemap: ET.Element) -> list[TreeRecord]:
    """
    Extract every tree element in document order.

    Returns:
        List of TreeRecord with tree_id 0, 1, 2, ...
    """
    trees = []

    for tree_id, tree in enumerate(treemap.findall("tree")):
        where = f"tree {tree_id}"
        species_code = _to_int(_require_attr(tree, "sp", where), "sp", where)
        stage_code = _to_int(_require_attr(tree, "tp", where), "tp", where)

        values = tuple(
            TreeValue(
                kind=normalize_kind(child.tag),
                code=_to_int(_require_attr(child, "c", where), "c", where),
                value=(child.text or "").strip(),
            )
            for child in tree
        )
        trees.append(TreeRecord(tree_id, species_code, stage_code, values))

    return trees


def _settings_lookup(settings: list[TreeSetting]) -> dict[tuple, str]:
    lookup = {}
    for s in settings:
        key = (s.species, s.stage_code, s.kind, s.code)
        if key in lookup and lookup[key] != s.label:
            raise DocumentStructureError(
                f"Code {key} declared twice in tm_treeSettings "
                f"('{lookup[key]}' and '{s.label}')"
            )
        lookup[key] = s.label
    return lookup


def decode_trees(
    trees: list[TreeRecord],
    species: dict[int, str],
    settings: list[TreeSetting],
    life_stages: Mapping[int, str],
) -> pd.DataFrame:
    """
    Join tree values to species names, life stage names and variable labels.

    Every join must succeed: a tree referencing an undeclared species, stage
    or variable code aborts the extraction.

    Returns:
        Long DataFrame with columns id, species, stage, label, value (one
        row per value; a tree without values gets one row with no label)
    """
    unknown_stages = sorted({t.stage_code for t in trees} - set(life_stages))
    if unknown_stages:
        raise UnknownStageError(unknown_stages, dict(life_stages))

    labels = _settings_lookup(settings)
    rows = []

    for tree in trees:
        if tree.species_code not in species:
            raise TreeMapJoinError(
                f"Tree {tree.tree_id} has species code {tree.species_code}, "
                f"not in tm_speciesList (codes 0-{len(species) - 1})"
            )
        species_name = species[tree.species_code]
        stage = life_stages[tree.stage_code]

        if not tree.values:
            rows.append((tree.tree_id, species_name, stage, None, float("nan")))

        for v in tree.values:
            key = (species_name, tree.stage_code, v.kind, v.code)
            if key not in labels:
                raise TreeMapJoinError(
                    f"Tree {tree.tree_id}: no tm_treeSettings label for "
                    f"species={species_name}, tp={tree.stage_code}, "
                    f"kind={v.kind}, code={v.code}"
                )
            try:
                value = float(v.value)
            except ValueError:
                raise DocumentStructureError(
                    f"Tree {tree.tree_id}: value {v.value!r} of '{labels[key]}' "
                    "is not numeric"
                )
            rows.append((tree.tree_id, species_name, stage, labels[key], value))

    return pd.DataFrame(rows, columns=["id", "species", "stage", "label", "value"])


def treemap_from_file(
    filepath: Path | str,
    life_stages: Mapping[int, str] | None = None,
    reference: ReferenceTables | None = None,
) -> dict[str, pd.DataFrame]:
    """
    Read a detailed output file into one tree table per life stage.

    Args:
        filepath: Path to a detailed output .xml file (one time step,
            already extracted from the .gz.tar archive)
        life_stages: Tree "tp" code -> stage name. Overrides the registry
            of `reference` when both are given.
        reference: Reference tables whose life_stages are used (defaults
            to DEFAULT_REFERENCE: {1: seedling, 2: sapling, 3: adult,
            5: snag})

    Returns:
        Dictionary mapping stage name to a DataFrame with columns id,
        species and one column per variable label, one row per tree.
        A tree without values has NaN in every variable column.

    Raises:
        DocumentStructureError: Missing tr_treemap/tm_speciesList or a
            required attribute
        TreeMapJoinError: A tree references an undeclared code
        DuplicateKeyError: A tree has two values with the same label
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Detailed output file not found: {filepath}")

    if reference is None:
        reference = DEFAULT_REFERENCE
    if life_stages is None:
        life_stages = reference.life_stages

    root = ET.parse(filepath).getroot()
    treemap = find_treemap(root)

    species = parse_species_list(treemap)
    settings = parse_tree_settings(treemap)
    trees = parse_trees(treemap)
    logger.debug(
        "%s: %d species, %d settings entries, %d trees",
        filepath.name,
        len(species),
        len(settings),
        len(trees),
    )

    tree_df = decode_trees(trees, species, settings, life_stages)

    result = {}
    for stage, stage_df in tree_df.groupby("stage", sort=True):
        stage_df = stage_df.sort_values("id", kind="stable")
        stage_trees = stage_df[["id", "species"]].drop_duplicates()
        valued = stage_df.dropna(subset=["label"])
        if valued.empty:
            result[stage] = stage_trees.reset_index(drop=True)
            continue

        wide = spread_unique(
            valued,
            index=["id", "species"],
            names_from="label",
            values_from="value",
        )
        # Trees without values keep their row
        result[stage] = stage_trees.merge(wide, on=["id", "species"], how="left")

    return result
