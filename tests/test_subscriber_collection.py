"""Tests for SubscriberCollection query composition and loading."""

import pytest

from subscriberq.constants import SubscriberStatus, SubscriberType
from subscriberq.exceptions import AttributeNotFoundError, InvalidFieldError
from subscriberq.metadata import StaticAttributeMetadata
from subscriberq.querydsl.compilers import postgres_compiler
from subscriberq.schema import Queue, Store, Subscriber
from subscriberq.subscriber import SubscriberCollection


def _ids(collection):
    return sorted(item.subscriber_id for item in collection)


class TestQueue:
    def test_queue_and_unsent_statement(self, subscribers):
        subscribers.use_queue(5).use_only_unsent()
        query = subscribers.get_select_sql()

        assert 'INNER JOIN "newsletter_queue_link" AS "link"' in query.sql
        assert '"link"."subscriber_id" = "main_table"."subscriber_id"' in query.sql
        assert '"link"."queue_id" = ?' in query.sql
        assert '"link"."letter_sent_at" IS NULL' in query.sql
        assert query.params == (5,)

    def test_queue_and_unsent_debug_sql(self, subscribers):
        subscribers.use_queue(5).use_only_unsent()
        sql = postgres_compiler.to_expr(subscribers.get_select())
        assert '"link"."queue_id" = 5' in sql
        assert '"link"."letter_sent_at" IS NULL' in sql

    def test_queue_and_unsent_rows(self, subscribers):
        assert _ids(subscribers.use_queue(5).use_only_unsent()) == [1, 5]

    def test_use_queue_accepts_model(self, subscribers):
        assert _ids(subscribers.use_queue(Queue(queue_id=6))) == [3]

    def test_flag_transitions_on_use_queue(self, subscribers):
        assert subscribers.get_queue_joined_flag() is False
        subscribers.use_queue(5)
        assert subscribers.get_queue_joined_flag() is True
        assert subscribers.queue_joined_flag is True

    def test_unsent_without_queue_is_noop(self, subscribers):
        before = subscribers.get_select()
        subscribers.use_only_unsent()
        assert subscribers.get_select() == before
        assert "letter_sent_at" not in subscribers.get_select_sql().sql

    def test_unsent_adds_exactly_one_condition(self, subscribers):
        subscribers.use_queue(5)
        wheres_before = len(subscribers.get_select().wheres)
        subscribers.use_only_unsent().use_only_unsent()
        wheres = subscribers.get_select().wheres
        assert len(wheres) == wheres_before + 1
        assert subscribers.get_select_sql().sql.count("letter_sent_at") == 1

    def test_use_queue_twice_joins_once(self, subscribers):
        subscribers.use_queue(5).use_queue(5)
        sql = subscribers.get_select_sql().sql
        assert sql.count("newsletter_queue_link") == 1
        assert sql.count('"link"."queue_id"') == 1
        assert _ids(subscribers) == [1, 2, 5]

    def test_use_queue_different_ids_narrow(self, subscribers):
        subscribers.use_queue(5).use_queue(6)
        assert subscribers.get_select().joined_aliases() == ("link",)
        assert subscribers.get_select_sql().params == (5, 6)
        assert _ids(subscribers) == []


class TestCustomerInfo:
    def test_joins_attribute_tables(self, subscribers):
        subscribers.show_customer_info()
        query = subscribers.get_select_sql()
        assert 'LEFT JOIN "customer_entity_varchar" AS "customer_lastname_table"' in query.sql
        assert 'LEFT JOIN "customer_entity_varchar" AS "customer_firstname_table"' in query.sql
        assert '"customer_lastname_table"."value" AS "customer_lastname"' in query.sql
        assert '"customer_firstname_table"."entity_id" = "main_table"."customer_id"' in query.sql
        # lastname (7) is joined before firstname (5)
        assert query.params == (7, 5)

    def test_loads_names(self, subscribers):
        items = {s.subscriber_id: s for s in subscribers.show_customer_info()}
        assert items[2].customer_firstname == "Jane"
        assert items[2].customer_lastname == "Doe"
        assert items[5].customer_firstname == "Max"
        assert items[5].customer_lastname is None
        assert items[1].customer_firstname is None

    def test_repeat_call_does_not_duplicate_joins(self, subscribers):
        subscribers.show_customer_info().show_customer_info()
        assert len(subscribers.get_select().joins) == 2

    def test_filter_on_mapped_name(self, subscribers):
        subscribers.show_customer_info().add_field_to_filter("customer_lastname", {"like": "Du%"})
        assert _ids(subscribers) == [3]

    def test_metadata_failure_propagates(self, db):
        collection = SubscriberCollection(db, StaticAttributeMetadata([]), table_prefix="")
        before = collection.get_select()
        with pytest.raises(AttributeNotFoundError):
            collection.show_customer_info()
        assert collection.get_select() == before


class TestSubscriberType:
    def test_type_values(self, subscribers):
        items = {s.subscriber_id: s for s in subscribers.add_subscriber_type_field()}
        assert items[1].type == SubscriberType.GUEST == 1
        assert items[2].type == SubscriberType.CUSTOMER == 2
        assert items[4].subscriber_type is SubscriberType.GUEST

    def test_type_column_sql(self, subscribers):
        query = subscribers.add_subscriber_type_field().get_select_sql()
        assert 'CASE WHEN "main_table"."customer_id" = ? THEN ? ELSE ? END AS "type"' in query.sql
        assert query.params == (0, 1, 2)

    def test_type_added_once(self, subscribers):
        subscribers.add_subscriber_type_field().add_subscriber_type_field()
        assert subscribers.get_select_sql().sql.count('AS "type"') == 1

    def test_type_is_filterable(self, subscribers):
        subscribers.add_field_to_filter("type", int(SubscriberType.GUEST))
        assert _ids(subscribers) == [1, 4]

    def test_order_by_type(self, subscribers):
        subscribers.add_subscriber_type_field().set_order("type", "ASC").set_order("subscriber_id", "ASC")
        assert [s.subscriber_id for s in subscribers] == [1, 4, 2, 3, 5]


class TestStoreInfo:
    def test_store_columns(self, subscribers):
        items = {s.subscriber_id: s for s in subscribers.show_store_info()}
        assert (items[4].website_id, items[4].group_id) == (2, 3)
        assert (items[1].website_id, items[1].group_id) == (1, 1)

    def test_store_join_sql(self, subscribers):
        sql = subscribers.show_store_info().get_select_sql().sql
        assert 'INNER JOIN "store" ON "store"."store_id" = "main_table"."store_id"' in sql
        assert '"store"."group_id", "store"."website_id"' in sql

    def test_filter_by_website(self, subscribers):
        subscribers.show_store_info().add_field_to_filter("website_id", 2)
        assert _ids(subscribers) == [4, 5]

    def test_prefixed_store_table_keeps_alias(self, db, metadata):
        collection = SubscriberCollection(db, metadata, table_prefix="mg_").show_store_info()
        sql = collection.get_select_sql().sql
        assert 'FROM "mg_newsletter_subscriber" AS "main_table"' in sql
        assert 'INNER JOIN "mg_store" AS "store"' in sql


class TestFilters:
    def test_only_subscribed(self, subscribers):
        query = subscribers.use_only_subscribed().get_select_sql()
        assert '"main_table"."subscriber_status" = ?' in query.sql
        assert query.params == (SubscriberStatus.SUBSCRIBED,)
        assert _ids(subscribers) == [1, 2, 5]

    def test_only_subscribed_with_other_filters(self, subscribers):
        subscribers.add_store_filter([2, 3]).use_only_subscribed()
        assert all(s.subscriber_status == SubscriberStatus.SUBSCRIBED for s in subscribers)
        assert _ids(subscribers) == [5]

    def test_only_customers(self, subscribers):
        assert '"main_table"."customer_id" > ?' in subscribers.use_only_customers().get_select_sql().sql
        assert _ids(subscribers) == [2, 3, 5]

    def test_store_filter_list(self, subscribers):
        assert _ids(subscribers.add_store_filter([1, 2])) == [1, 2, 3]

    def test_store_filter_single_id(self, subscribers):
        query = subscribers.add_store_filter(3).get_select_sql()
        assert '"main_table"."store_id" IN (?)' in query.sql
        assert _ids(subscribers) == [4, 5]

    def test_store_filter_models(self, subscribers):
        assert _ids(subscribers.add_store_filter([Store(store_id=3), 1])) == [1, 2, 4, 5]

    def test_store_filter_single_model(self, subscribers):
        assert _ids(subscribers.add_store_filter(Store(store_id=2))) == [3]

    def test_link_filter_without_queue_join(self, subscribers):
        before = subscribers.get_select()
        with pytest.raises(InvalidFieldError) as exc:
            subscribers.add_field_to_filter("link.queue_id", 5)
        assert exc.value.details["alias"] == "link"
        assert subscribers.get_select() is before

    def test_store_filter_empty_matches_nothing(self, subscribers):
        query = subscribers.add_store_filter([]).get_select_sql()
        assert "1 = 0" in query.sql
        assert "IN ()" not in query.sql
        assert subscribers.get_items() == []
        assert subscribers.get_size() == 0

    def test_chained_filters(self, subscribers):
        subscribers.use_only_subscribed().use_only_customers().add_store_filter([1, 3])
        assert _ids(subscribers) == [2, 5]


class TestHavingFilter:
    def test_load_after_having_filter(self, subscribers):
        subscribers.add_subscriber_type_field().add_having_filter("type", int(SubscriberType.CUSTOMER))
        assert _ids(subscribers) == [2, 3, 5]

    def test_ungrouped_having_compiles_into_where(self, subscribers):
        query = subscribers.add_subscriber_type_field().add_having_filter("type", 2).get_select_sql()
        assert "HAVING" not in query.sql
        assert 'WHERE CASE WHEN "main_table"."customer_id" = ? THEN ? ELSE ? END = ?' in query.sql
        assert query.params == (0, 1, 2, 0, 1, 2, 2)
        assert subscribers.get_select().havings != ()

    def test_having_with_order_and_paging(self, subscribers):
        subscribers.add_having_filter("type", int(SubscriberType.GUEST)).set_order("subscriber_id")
        assert [s.subscriber_id for s in subscribers] == [4, 1]
        subscribers.set_page_size(1).set_cur_page(2)
        assert [s.subscriber_id for s in subscribers] == [1]


class TestCount:
    def test_count_matches_filters(self, subscribers):
        subscribers.use_only_subscribed()
        assert subscribers.get_size() == 3

    def test_count_strips_having(self, subscribers):
        subscribers.add_subscriber_type_field().add_having_filter("type", int(SubscriberType.CUSTOMER))
        count = subscribers.get_select_count_sql()

        assert count.havings == ()
        assert subscribers.get_select().havings != ()
        sql = postgres_compiler.compile(count).sql
        assert sql.startswith("SELECT COUNT(*) FROM")
        assert "HAVING" not in sql
        assert 'AS "type"' not in sql
        assert subscribers.get_size() == 5

    def test_count_ignores_paging_and_order(self, subscribers):
        subscribers.set_order("subscriber_id").set_page_size(2)
        sql = subscribers.get_connection().compiler.compile(subscribers.get_select_count_sql()).sql
        assert "ORDER BY" not in sql
        assert "LIMIT" not in sql
        assert subscribers.get_size() == 5
        assert len(subscribers) == 2

    def test_count_with_queue(self, subscribers):
        assert subscribers.use_queue(5).use_only_unsent().get_size() == 2


class TestLoading:
    def test_rows_hydrate_to_subscribers(self, subscribers):
        items = subscribers.get_items()
        assert len(items) == 5
        assert all(isinstance(s, Subscriber) for s in items)
        first = subscribers.get_first_item()
        assert first.id == first.subscriber_id
        assert first.email.endswith("@example.com")

    def test_paging(self, subscribers):
        subscribers.set_order("subscriber_id", "ASC").set_page_size(2).set_cur_page(2)
        assert [s.subscriber_id for s in subscribers] == [3, 4]

    def test_reconfigure_after_load_reloads(self, subscribers):
        assert len(subscribers) == 5
        assert subscribers.is_loaded()
        subscribers.use_only_customers()
        assert not subscribers.is_loaded()
        assert len(subscribers) == 3

    def test_clone_is_independent(self, subscribers):
        subscribers.use_queue(5)
        other = subscribers.clone()
        other.use_only_unsent().use_only_customers()

        assert "letter_sent_at" not in subscribers.get_select_sql().sql
        assert _ids(subscribers) == [1, 2, 5]
        assert _ids(other) == [5]
        assert other.get_queue_joined_flag() is True

    def test_all_ids(self, subscribers):
        assert sorted(subscribers.use_only_customers().get_all_ids()) == [2, 3, 5]

    def test_str_is_debug_sql(self, subscribers):
        subscribers.use_only_customers()
        assert '"main_table"."customer_id" > 0' in str(subscribers)


def test_field_map_extends_base_map(subscribers):
    fields = subscribers.field_map
    assert fields.default_alias == "main_table"
    assert fields.is_mapped("type")
    assert fields.resolve("subscriber_email").table == "main_table"
