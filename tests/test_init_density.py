"""
Tests for initial density lists built from transect surveys.
"""

import tempfile
from pathlib import Path

import pandas as pd
import pytest

from sortie_tools.config import ReferenceTables
from sortie_tools.init_density import (
    InitialDensity,
    SpeciesDensity,
    density_list_to_xml,
    format_density,
    get_transect_init_dens,
    load_survey,
    plot_area_ha,
    size_class_label,
)

PLOT = "1823-T1-0050"


@pytest.fixture
def survey():
    """Survey rows for one plot plus rows that must be filtered out."""
    return pd.DataFrame(
        {
            "plot_id": [PLOT, PLOT, PLOT, PLOT, PLOT, PLOT, "1847-T1-0050"],
            "year": [1991, 1991, 1991, 1991, 1992, 1991, 1991],
            "species_id": ["ABA", "ABA", "XYZ", "ABA", "ABA", "TOC", "PGL"],
            "status_id": ["A", "A", "A", "D", "A", "A", "A"],
            "dbh_class": [7.5, 0.5, 0.5, 2.5, 2.5, 2.5, 2.5],
            "count": [12, 6, 3, 4, 4, 1, 2],
        }
    )


@pytest.fixture
def temp_dir():
    """Create temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


class TestSizeClassLabel:
    def test_seedling_literal(self):
        assert size_class_label(0.5) == "Seedling"

    def test_sapling(self):
        assert size_class_label(2.5) == "s5.0"

    def test_adult_classes(self):
        assert size_class_label(7.5) == "s10.0"
        assert size_class_label(12.5) == "s15.0"


class TestPlotArea:
    def test_tiers(self):
        assert plot_area_ha(0.5) == 0.0012
        assert plot_area_ha(2.5) == 0.0064
        assert plot_area_ha(7.5) == 0.0256
        assert plot_area_ha(32.5) == 0.0256

    def test_custom_reference(self):
        reference = ReferenceTables(adult_area_ha=0.04)
        assert plot_area_ha(7.5, reference) == 0.04


class TestFormatDensity:
    def test_rounds_to_integer_with_one_decimal(self):
        assert format_density(6, 0.0012) == "5000.0"
        assert format_density(12, 0.0256) == "469.0"

    def test_zero_count(self):
        assert format_density(0, 0.0256) == "0.0"


class TestGetTransectInitDens:
    """Tests for get_transect_init_dens function."""

    def test_one_species_two_classes(self):
        """Seedling comes before s10.0 with densities in stems/ha."""
        survey = pd.DataFrame(
            {
                "plot_id": [PLOT, PLOT],
                "year": [1991, 1991],
                "species_id": ["ABA", "ABA"],
                "status_id": ["A", "A"],
                "dbh_class": [7.5, 0.5],
                "count": [12, 6],
            }
        )
        result = get_transect_init_dens(PLOT, 1991, survey=survey)

        assert result == [
            SpeciesDensity(
                "Balsam_Fir",
                [
                    InitialDensity("Seedling", "5000.0"),
                    InitialDensity("s10.0", "469.0"),
                ],
            )
        ]

    def test_filters_and_orders_species(self, survey):
        """Dead stems, other years, other plots and unknown species are left out."""
        result = get_transect_init_dens(PLOT, 1991, survey=survey)

        # White_Cedar comes before Balsam_Fir in the species table
        assert [s.species_name for s in result] == ["White_Cedar", "Balsam_Fir"]
        assert result[0].entries == [InitialDensity("s5.0", "156.0")]
        assert [e.size_class for e in result[1].entries] == ["Seedling", "s10.0"]

    def test_unknown_species_dropped_silently(self, survey):
        """Species ids outside the species table don't raise."""
        result = get_transect_init_dens(PLOT, 1991, survey=survey)

        names = [s.species_name for s in result]
        assert "XYZ" not in names
        assert len(names) == 2

    def test_plot_without_stems(self, survey):
        """A plot with no living modelled stems gives an empty list."""
        assert get_transect_init_dens("9999-T1-0001", 1991, survey=survey) == []

    def test_other_year(self, survey):
        result = get_transect_init_dens(PLOT, 1992, survey=survey)

        assert result == [
            SpeciesDensity("Balsam_Fir", [InitialDensity("s5.0", "625.0")])
        ]

    def test_custom_species_table(self, survey):
        """Only species in the given table are kept, in its order."""
        reference = ReferenceTables(species=[("Sapin", "ABA")])
        result = get_transect_init_dens(PLOT, 1991, survey=survey, reference=reference)

        assert [s.species_name for s in result] == ["Sapin"]

    def test_reads_survey_file(self, survey, temp_dir):
        """The survey can be given as a CSV path."""
        path = temp_dir / "transect_meas.csv"
        survey.to_csv(path, index=False)

        result = get_transect_init_dens(PLOT, 1991, survey=path)

        assert [s.species_name for s in result] == ["White_Cedar", "Balsam_Fir"]


class TestLoadSurvey:
    def test_missing_file_raises(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            load_survey(temp_dir / "missing.csv")

    def test_missing_columns_raises(self, temp_dir):
        path = temp_dir / "bad.csv"
        pd.DataFrame({"plot_id": [PLOT], "year": [1991]}).to_csv(path, index=False)

        with pytest.raises(ValueError, match="missing required columns"):
            load_survey(path)

    def test_ids_read_as_text(self, temp_dir):
        """Numeric-looking plot ids keep their leading zeros."""
        path = temp_dir / "transect_meas.csv"
        path.write_text(
            "plot_id,year,species_id,status_id,dbh_class,count\n"
            "0050,1991,ABA,A,0.5,6\n"
        )
        df = load_survey(path)

        assert df["plot_id"].tolist() == ["0050"]
        assert df["count"].tolist() == [6]


class TestDensityListToXml:
    def test_structure(self):
        """Species wrap size classes, attributes carry the names."""
        density_list = [
            SpeciesDensity(
                "Balsam_Fir",
                [
                    InitialDensity("Seedling", "5000.0"),
                    InitialDensity("s10.0", "469.0"),
                ],
            ),
            SpeciesDensity("Paper_Birch", [InitialDensity("s5.0", "156.0")]),
        ]
        element = density_list_to_xml(density_list)

        assert element.tag == "tr_initialDensities"
        id_vals = list(element)
        assert [e.tag for e in id_vals] == ["tr_idVals", "tr_idVals"]
        assert [e.get("whatSpecies") for e in id_vals] == ["Balsam_Fir", "Paper_Birch"]

        entries = list(id_vals[0])
        assert [e.tag for e in entries] == ["tr_initialDensity"] * 2
        assert [e.get("sizeClass") for e in entries] == ["Seedling", "s10.0"]
        assert [e.text for e in entries] == ["5000.0", "469.0"]

    def test_empty_list(self):
        element = density_list_to_xml([])

        assert element.tag == "tr_initialDensities"
        assert len(element) == 0
