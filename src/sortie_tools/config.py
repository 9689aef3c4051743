"""
Reference tables and defaults for SORTIE-ND file preparation and parsing.

The species translation table and the life-stage codes were derived from a
single reference parameter file (FERLD transects). They can be replaced
without code changes by loading a JSON file with load_reference_tables().
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path


# Default data paths
DEFAULT_SURVEY_DATA = Path(os.environ.get("SORTIE_SURVEY_DATA", "transect_meas.csv"))

# Survey year used for initial densities in parameter files
INIT_DENSITY_YEAR = 1991

# Summary output (.out) layout
SUMMARY_SKIP_ROWS = 5
SUMMARY_KEY_COLUMNS = ["Step", "Subplot"]
SUMMARY_TOTAL_MARKER = "Total:"

# Survey status code for living stems
ALIVE_STATUS = "A"

# (species_name in SORTIE, species_id in the transect survey), in the
# order species appear in the parameter file
DEFAULT_SPECIES_TABLE = (
    ("White_Cedar", "TOC"),
    ("Balsam_Fir", "ABA"),
    ("Mountain_Maple", "ASP"),
    ("White_Spruce", "PGL"),
    ("Jack_Pine", "PBA"),
    ("Trembling_Aspen", "PTR"),
    ("Paper_Birch", "BPA"),
)

# "tp" attribute of detailed output trees -> life stage name.
# Only verified against one parameter file.
DEFAULT_LIFE_STAGES = {
    1: "seedling",
    2: "sapling",
    3: "adult",
    5: "snag",
}


@dataclass
class ReferenceTables:
    """
    Lookup tables shared by the parameter file and tree map pipelines.

    Attributes:
        species: Ordered (species_name, species_id) pairs
        life_stages: Tree "tp" code -> life stage name
        seedling_dbh: DBH class (cm) holding seedlings
        sapling_dbh: DBH class (cm) holding saplings
        seedling_area_ha: Sampled area for seedlings
        sapling_area_ha: Sampled area for saplings
        adult_area_ha: Sampled area for all larger DBH classes
    """

    species: list[tuple[str, str]] = field(
        default_factory=lambda: list(DEFAULT_SPECIES_TABLE)
    )
    life_stages: dict[int, str] = field(
        default_factory=lambda: dict(DEFAULT_LIFE_STAGES)
    )
    seedling_dbh: float = 0.5
    sapling_dbh: float = 2.5
    seedling_area_ha: float = 0.0012  # 12 m2
    sapling_area_ha: float = 0.0064  # 64 m2
    adult_area_ha: float = 0.0256  # 256 m2

    def __post_init__(self):
        """Validate tables."""
        self.species = [(str(name), str(sp_id)) for name, sp_id in self.species]
        self.life_stages = {
            int(code): str(name) for code, name in self.life_stages.items()
        }

        if len(self.species) == 0:
            raise ValueError("species table cannot be empty")

        names = [name for name, _ in self.species]
        ids = [sp_id for _, sp_id in self.species]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate species names: {names}")
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate species ids: {ids}")

        if len(set(self.life_stages.values())) != len(self.life_stages):
            raise ValueError(
                f"Life stage names must be unique, got {self.life_stages}"
            )

        for name in ("seedling_area_ha", "sapling_area_ha", "adult_area_ha"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")

    @property
    def species_names(self) -> list[str]:
        """Species names in parameter file order."""
        return [name for name, _ in self.species]

    @property
    def species_by_id(self) -> dict[str, str]:
        """Survey species_id -> SORTIE species name."""
        return {sp_id: name for name, sp_id in self.species}


DEFAULT_REFERENCE = ReferenceTables()


def load_reference_tables(filepath: Path | str) -> ReferenceTables:
    """
    Load reference tables from a JSON file.

    Keys missing from the file keep their defaults. Example:

        {
            "species": [["Balsam_Fir", "ABA"], ["Paper_Birch", "BPA"]],
            "life_stages": {"1": "seedling", "2": "sapling", "3": "adult"}
        }

    Args:
        filepath: Path to JSON file

    Returns:
        ReferenceTables instance
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Reference table file not found: {filepath}")

    data = json.loads(filepath.read_text())

    unknown = set(data) - set(ReferenceTables.__dataclass_fields__)
    if unknown:
        raise ValueError(f"Unknown reference table keys: {sorted(unknown)}")

    return ReferenceTables(**data)
