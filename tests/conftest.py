import pytest

from config import settings_from_dict
from loaders import csv_rows
from records import PhoneRecord


@pytest.fixture
def settings():
    return settings_from_dict(None)


@pytest.fixture
def make_record():
    """Build an active, fully provisioned T27G record; override any field by keyword."""
    def _make(extension="1119", **overrides):
        fields = dict(
            extension=extension,
            full_name="Ivanov Ivan",
            position="Engineer",
            city_phone="24-48-42",
            pickup_group="1",
            ring_group="6008",
            is_t27=True,
            is_active=True,
            mac_address="805ec0b4427c",
            voip_vlan="100",
            lan_vlan="10",
            location="Zags",
            sip_server="10.16.0.102",
            subnet="10.16.1.0/255.255.255.0",
            email="ivanov@nur.yanao.ru",
        )
        fields.update(overrides)
        return PhoneRecord(**fields)
    return _make


@pytest.fixture
def make_row():
    """A 25-cell positional row; cells are given by column name (extension=..., mac=...)."""
    def _make(**cells):
        row = [""] * csv_rows.COLUMN_COUNT
        for name, value in cells.items():
            row[getattr(csv_rows, f"COL_{name.upper()}")] = value
        return row
    return _make


@pytest.fixture
def write_csv(tmp_path):
    """Write a header plus the given rows as a comma separated file and return its path."""
    def _write(rows, name="directory.csv", delimiter=","):
        header = delimiter.join(f"col{i}" for i in range(csv_rows.COLUMN_COUNT))
        body = [delimiter.join(row) for row in rows]
        path = tmp_path / name
        path.write_text("\n".join([header] + body) + "\n", encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture
def sample_row(make_row):
    """The 1119 row used throughout the generator tests."""
    return make_row(
        full_name="Ivanov Ivan", position="Engineer", city_phone="24-48-42", extension="1119",
        pickup_group="1", ring_group="6008", t27="1", active="1", mac="805EC0B4427C",
        voip_vlan="100", lan_vlan="10", location="Zags", sip_server="10.16.0.102",
        subnet="10.16.1.0/255.255.255.0", email="ivanov@nur.yanao.ru",
    )
