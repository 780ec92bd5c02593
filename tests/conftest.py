import json

import pytest

from src.features import CountryFeature


def _square(x: float, y: float) -> dict:
    return {
        "type": "Polygon",
        "coordinates": [[[x, y], [x + 1, y], [x + 1, y + 1], [x, y + 1], [x, y]]],
    }


@pytest.fixture
def boundaries():
    return {
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "id": "ABC", "properties": {"name": "CountryX"}, "geometry": _square(0, 0)},
            {"type": "Feature", "id": "CLD", "properties": {"name": "Countryland"}, "geometry": _square(2, 0)},
            {"type": "Feature", "id": "ATA", "properties": {"name": "Antarctica"}, "geometry": _square(0, -80)},
        ],
    }


@pytest.fixture
def emissions_csv_text():
    return (
        '"CountryX","ABC","Methane emissions","EN.ATM.METH.KT.CE",10,,30\n'
        '"Countryland","CLD","Methane emissions","EN.ATM.METH.KT.CE",1.5,2.5,\n'
        '"World","WLD","Methane emissions","EN.ATM.METH.KT.CE",100,200,300\n'
    )


@pytest.fixture
def input_files(tmp_path, boundaries, emissions_csv_text):
    countries = tmp_path / "countries.geo.json"
    countries.write_text(json.dumps(boundaries))
    emissions = tmp_path / "emissions.csv"
    emissions.write_text(emissions_csv_text)
    return countries, emissions


@pytest.fixture
def features():
    return [
        CountryFeature(id="AAA", name="Alpha", geometry=None, emissions={1970: 50.0, 1971: None}),
        CountryFeature(id="BBB", name="Beta", geometry=None, emissions={1970: 30.0, 1971: 5.0}),
        CountryFeature(id="CCC", name="Gamma", geometry=None, emissions={1970: None, 1971: 7.0}),
        CountryFeature(id="DDD", name="Delta", geometry=None, emissions={1970: 30.0, 1971: None}),
        CountryFeature(id="EEE", name="Epsilon", geometry=None, emissions={1970: 10.0, 1971: None}),
    ]
