import polars as pl

from orgview_common.finalize import finalize_tree, locale_sort_key, natural_sort_key
from orgview_common.frames import hierarchy_counts, hierarchy_to_frame, records_to_frame
from orgview_common.models import Area, Building, City, Unit, Vehicle
from orgview_common.pipeline import run_pipeline


def _unit(unit_id):
    return Unit(id=unit_id, original_id=unit_id, name=f"U{unit_id}", hierarchy="---", area_id="1", building_id="B")


def test_areas_sort_numerically_not_lexically():
    areas = [Area(id="10", name="AISP 10"), Area(id="2", name="AISP 2"), Area(id="1", name="AISP 1")]

    assert [a.id for a in finalize_tree(areas)] == ["1", "2", "10"]


def test_natural_sort_key_handles_mixed_identifiers():
    ids = ["AISP 10", "AISP 2", "No AISP", "AISP 1"]

    assert sorted(ids, key=natural_sort_key) == ["AISP 1", "AISP 2", "AISP 10", "No AISP"]
    assert sorted(["b", "10", "a", "9"], key=natural_sort_key) == ["9", "10", "a", "b"]


def test_cities_sort_alphabetically_within_area():
    area = Area(id="1", name="AISP 1", cities=(City(name="Zeta"), City(name="Alpha")))

    assert [c.name for c in finalize_tree([area])[0].cities] == ["Alpha", "Zeta"]


def test_city_sort_ignores_accents_and_case():
    names = ["Altos", "Água Branca", "agricolândia", "Beneditinos"]

    assert sorted(names, key=locale_sort_key) == ["agricolândia", "Água Branca", "Altos", "Beneditinos"]


def test_buildings_and_units_keep_insertion_order():
    city = City(
        name="X",
        buildings=(
            Building(id="Z", name="Z", city="X", units=(_unit("3"), _unit("1"))),
            Building(id="A", name="A", city="X", units=(_unit("2"),)),
        ),
    )
    finalized = finalize_tree([Area(id="1", name="AISP 1", cities=(city,))])

    buildings = finalized[0].cities[0].buildings
    assert [b.name for b in buildings] == ["Z", "A"]
    assert [u.id for u in buildings[0].units] == ["3", "1"]


def test_finalize_does_not_mutate_input():
    area = Area(id="1", name="AISP 1", cities=(City(name="Zeta"), City(name="Alpha")))
    finalize_tree([area])

    assert [c.name for c in area.cities] == ["Zeta", "Alpha"]


def test_hierarchy_frame_has_one_row_per_unit(sample_sheets):
    areas, _ = run_pipeline(sample_sheets)
    frame = hierarchy_to_frame(areas)

    assert frame.height == 3
    assert frame["area_id"].to_list() == ["1", "2", "10"]
    row = frame.filter(pl.col("unit_id") == "42").to_dicts()[0]
    assert row["vehicle_count"] == 2
    assert row["person_count"] == 1
    assert row["commander_pm"] == "Cel. Silva"


def test_empty_tree_frames_keep_columns():
    assert hierarchy_to_frame([]).height == 0
    assert "unit_name" in hierarchy_to_frame([]).columns
    assert records_to_frame([], Vehicle).columns == ["id", "model", "plate", "type", "unit_id"]


def test_hierarchy_counts(sample_sheets):
    areas, _ = run_pipeline(sample_sheets)

    assert hierarchy_counts(areas) == {
        "Areas": 3,
        "Cities": 3,
        "Buildings": 3,
        "Units": 3,
        "Vehicles": 2,
        "People": 2,
    }


def test_natural_sort_key_orders_long_digit_runs():
    long_run = "X" + "1" * 5000
    ids = [long_run, "X2", "X" + "0" * 10 + "3", "X10"]

    assert sorted(ids, key=natural_sort_key) == ["X2", "X" + "0" * 10 + "3", "X10", long_run]
    assert finalize_tree([Area(id=long_run, name="big"), Area(id="X2", name="small")])[0].id == "X2"
