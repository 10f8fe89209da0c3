"""Tests for the base Collection."""

import pytest

from subscriberq.collection import Collection
from subscriberq.exceptions import InvalidConditionError, InvalidFieldError
from subscriberq.querydsl.compilers import postgres_compiler
from subscriberq.querydsl.expressions import Column
from subscriberq.querydsl.q import Q
from subscriberq.schema import Store


class StoreCollection(Collection):
    item_class = Store


@pytest.fixture
def stores(db):
    return StoreCollection(db, "store", id_field_name="store_id", table_prefix="")


@pytest.fixture
def rows(db):
    """Collection over newsletter_subscriber yielding plain dicts."""
    return Collection(db, "newsletter_subscriber", id_field_name="subscriber_id", table_prefix="")


def test_items_hydrate(stores):
    items = stores.set_order("store_id", "ASC").get_items()
    assert [s.code for s in items] == ["default", "french", "b2b"]
    assert isinstance(items[0], Store)
    assert stores.get_all_ids() == [1, 2, 3]


def test_plain_dict_rows(rows):
    first = rows.set_order("subscriber_id", "ASC").get_first_item()
    assert isinstance(first, dict)
    assert first["subscriber_email"] == "guest@example.com"


def test_empty_first_item(rows):
    assert rows.add_field_to_filter("subscriber_id", 999).get_first_item() is None


def test_table_prefix(db):
    collection = Collection(db, "store", table_prefix="mg_")
    assert collection.main_table == "mg_store"
    assert collection.get_table("store") == "mg_store"


def test_field_list_is_ored(rows):
    rows.add_field_to_filter(["customer_id", "store_id"], [42, 3])
    query = rows.get_select_sql()
    assert '("main_table"."customer_id" = ? OR "main_table"."store_id" = ?)' in query.sql
    assert sorted(rows.get_all_ids()) == [2, 4, 5]


def test_field_list_shared_condition(rows):
    rows.add_field_to_filter(["customer_id", "store_id"], {"gt": 2})
    assert sorted(rows.get_all_ids()) == [2, 3, 4, 5]


def test_field_list_length_mismatch(rows):
    with pytest.raises(InvalidConditionError):
        rows.add_field_to_filter(["customer_id", "store_id"], [1])
    with pytest.raises(InvalidConditionError):
        rows.add_field_to_filter([], 1)


def test_filter_lookups(rows):
    rows.add_field_to_filter("customer_id", {"gteq": 43, "lteq": 44})
    rows.add_field_to_filter("subscriber_email", {"like": "%@example.com"})
    rows.add_field_to_filter("subscriber_status", {"neq": 3})
    assert rows.get_all_ids() == [5]


def test_null_condition(rows):
    assert rows.add_field_to_filter("change_status_at", None).get_size() == 5
    assert rows.add_field_to_filter("change_status_at", {"notnull": True}).get_size() == 0


def test_add_filter_q_and_dict(rows):
    rows.add_filter(Q(store_id=3) | Q(customer_id=42))
    rows.add_filter({"subscriber_status": {"$eq": 1}})
    assert sorted(rows.get_all_ids()) == [2, 5]


def test_invalid_field(rows):
    with pytest.raises(InvalidFieldError):
        rows.add_field_to_filter("a.b.c", 1)


def test_invalid_lookup_leaves_select(rows):
    before = rows.get_select()
    with pytest.raises(InvalidConditionError):
        rows.add_field_to_filter("store_id", {"between": [1, 2]})
    assert rows.get_select() is before


def test_base_count_keeps_having(rows):
    rows.add_having_filter("store_id", 3)
    count = rows.get_select_count_sql()
    assert len(count.havings) == 1
    assert "HAVING" in postgres_compiler.compile(count).sql


def test_grouped_count_uses_subquery(rows):
    store_id = Column("main_table", "store_id")
    rows._set_select(rows.get_select().reset("columns").add_column(store_id).group(store_id))
    sql = postgres_compiler.compile(rows.get_select_count_sql()).sql
    assert sql.startswith("SELECT COUNT(*) FROM (SELECT")
    assert sql.endswith(') AS "grouped"')
    assert rows.get_size() == 3


def test_size_is_cached(rows, db):
    assert rows.get_size() == 5
    db.executescript("DELETE FROM newsletter_subscriber;")
    assert rows.get_size() == 5
    rows.clear()
    assert rows.get_size() == 0


def test_paging_out_of_range(rows):
    rows.set_order("subscriber_id", "ASC").set_page_size(2).set_cur_page(0)
    assert rows.get_all_ids() == [1, 2]
    rows.set_cur_page(9)
    assert rows.get_items() == []
    rows.set_page_size(None)
    assert len(rows) == 5


def test_debug_sql(rows):
    rows.add_field_to_filter("subscriber_email", "o'neil@example.com")
    sql = rows.get_select_sql(debug=True)
    assert isinstance(sql, str)
    assert "'o''neil@example.com'" in sql


def test_repr(rows):
    assert repr(rows) == "<Collection table='newsletter_subscriber' loaded=False>"


def test_condition_list_is_ored(rows):
    query = rows.add_field_to_filter("store_id", [1, 2]).get_select_sql()
    assert '("main_table"."store_id" = ? OR "main_table"."store_id" = ?)' in query.sql
    assert query.params == (1, 2)
    assert sorted(rows.get_all_ids()) == [1, 2, 3]


def test_condition_list_mixes_lookups(rows):
    rows.add_field_to_filter("customer_id", [0, {"gteq": 44}])
    assert sorted(rows.get_all_ids()) == [1, 4, 5]


def test_empty_condition_list(rows):
    before = rows.get_select()
    with pytest.raises(InvalidConditionError):
        rows.add_field_to_filter("store_id", [])
    assert rows.get_select() is before


def test_having_filter_loads_on_ungrouped_select(rows):
    rows.add_having_filter("store_id", 3)
    assert sorted(rows.get_all_ids()) == [4, 5]
