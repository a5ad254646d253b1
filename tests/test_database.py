from certi.database import database, in_clause, pagination, row_to_dict, rows_to_dicts


def test_row_to_dict_on_sqlite_record(client):
    row = client.portal.call(
        database.fetch_one,
        "SELECT id, name, guard_name FROM roles WHERE name = :name",
        {"name": "validador"},
    )

    converted = row_to_dict(row)

    assert isinstance(converted, dict)
    assert set(converted) == {"id", "name", "guard_name"}
    assert converted["name"] == "validador"


def test_row_to_dict_passes_none_through():
    assert row_to_dict(None) is None


def test_rows_to_dicts_on_sqlite_records(client):
    rows = client.portal.call(database.fetch_all, "SELECT name FROM roles ORDER BY name")

    names = [row["name"] for row in rows_to_dicts(rows)]

    assert "super_admin" in names
    assert names == sorted(names)


def test_pagination_block():
    assert pagination(2, 10, 25) == {"current_page": 2, "last_page": 3, "per_page": 10, "total": 25}
    assert pagination(1, 10, 0)["last_page"] == 1


def test_in_clause():
    fragment, params = in_clause("r", ["a", "b"])

    assert fragment == ":r0, :r1"
    assert params == {"r0": "a", "r1": "b"}
