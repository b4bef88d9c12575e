import sqlite3

import pytest

from errors import SourceError
from generator import ConfigGenerator
from loaders import load_database, load_from_connection
from loaders.database import profile_to_record


SCHEMA = """
CREATE TABLE locations (
    id INTEGER PRIMARY KEY,
    name TEXT,
    server TEXT,
    subnet TEXT,
    voip_vlan TEXT,
    vlan TEXT
);
CREATE TABLE profiles (
    id INTEGER PRIMARY KEY,
    name TEXT,
    email TEXT,
    device TEXT,
    location_id INTEGER,
    internal_number TEXT,
    external_number TEXT,
    ring_group TEXT,
    pickup_group TEXT,
    is_active INTEGER
);
CREATE TABLE devices (
    mac TEXT,
    device_model TEXT
);
"""


def _init_db(con):
    con.executescript(SCHEMA)
    con.executemany(
        "INSERT INTO locations (id, name, server, subnet, voip_vlan, vlan) VALUES (?, ?, ?, ?, ?, ?)",
        [
            (1, "Zags", "10.16.0.102", "10.16.1.0/255.255.255.0", "100", "10"),
            (2, "Mir", "10.16.0.103", None, "101", "11"),
        ],
    )
    con.executemany(
        "INSERT INTO profiles (id, name, email, device, location_id, internal_number, external_number,"
        " ring_group, pickup_group, is_active) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
        [
            (1, "Ivanov", "ivanov@nur.yanao.ru", "805EC0B4427C", 1, "1119", "24-48-42", "6008", "1", 1),
            (2, "Petrov", None, None, 1, "1120", None, None, None, 1),
            (3, "Sidorov", None, None, 1, "1121", "24-48-43", "0", None, 1),
            (4, "Inactive", None, None, 1, "1122", "24-48-44", "6009", None, 0),
            (5, "No subnet", None, None, 2, "1123", "24-48-45", "6010", None, 1),
            (6, "No location", None, None, None, "1124", "24-48-46", "6011", None, 1),
            (7, "Bad number", None, None, 1, "112", "24-48-47", "6012", None, 1),
            (8, "Fanvil user", None, "0c383e000001", 1, "1125", "24-48-48", "6013", None, 1),
        ],
    )
    con.executemany(
        "INSERT INTO devices (mac, device_model) VALUES (?, ?)",
        [("805ec0b4427c", "Yealink T27G"), ("0C383E000001", "Fanvil")],
    )
    con.commit()


@pytest.fixture
def conn():
    con = sqlite3.connect(":memory:")
    _init_db(con)
    yield con
    con.close()


def test_only_active_placed_profiles(conn):
    records = load_from_connection(conn)
    assert [r.extension for r in records] == ["1119", "1120", "1121", "1125"]


def test_location_data_joined(conn):
    r = load_from_connection(conn)[0]
    assert r.location == "Zags"
    assert r.sip_server == "10.16.0.102"
    assert r.subnet == "10.16.1.0/255.255.255.0"
    assert r.voip_vlan == "100"
    assert r.lan_vlan == "10"
    assert r.is_active


def test_device_model_sets_flags(conn):
    by_ext = {r.extension: r for r in load_from_connection(conn)}
    assert by_ext["1119"].is_t27
    assert by_ext["1119"].mac_address == "805ec0b4427c"
    assert by_ext["1125"].is_fanvil
    assert not by_ext["1120"].has_device_type()


def test_missing_or_zero_ring_group_is_local(conn):
    by_ext = {r.extension: r for r in load_from_connection(conn)}
    assert by_ext["1120"].is_local_only()
    assert by_ext["1121"].is_local_only()
    assert by_ext["1119"].ring_group == "6008"


def test_null_text_columns_become_empty(conn):
    r = {r.extension: r for r in load_from_connection(conn)}["1120"]
    assert r.email == ""
    assert r.city_phone == ""
    assert r.pickup_group == ""


def test_profile_without_server_is_dropped():
    row = {"location_name": "Zags", "server": None, "subnet": "x", "internal_number": "1119"}
    assert profile_to_record(row, {}) is None


def test_query_failure_raises_source_error():
    con = sqlite3.connect(":memory:")
    try:
        with pytest.raises(SourceError):
            load_from_connection(con)
    finally:
        con.close()


def test_load_database_file(tmp_path):
    path = tmp_path / "directory.sqlite"
    con = sqlite3.connect(path)
    _init_db(con)
    con.close()
    assert len(load_database(str(path))) == 4


def test_load_database_missing_file(tmp_path):
    with pytest.raises(SourceError):
        load_database(str(tmp_path / "missing.sqlite"))


def test_generator_reads_from_connection(conn, tmp_path):
    gen = ConfigGenerator(output_dir=str(tmp_path / "results")).load_connection(conn)
    assert [r.extension for r in gen.records] == ["1119", "1120", "1121", "1125"]
    files = gen.build_files()
    assert "tftpboot/805ec0b4427c.cfg" in files
    assert "tftpboot/0c383e000001.cfg" in files
    assert "Context = DLPN_DialPlan_Zags_244842" in files["UsersConf/User1119.conf"].splitlines()
    assert "UsersConf/User1120.conf" not in files
