"""Pytest configuration and fixtures for subscriberq tests."""

import pytest
from dotenv import load_dotenv

from subscriberq.dbs.sqlite import SQLiteAdapter
from subscriberq.metadata import StaticAttributeMetadata
from subscriberq.subscriber import SubscriberCollection

# Load environment variables
load_dotenv()

SCHEMA = """
CREATE TABLE newsletter_subscriber (
    subscriber_id INTEGER PRIMARY KEY,
    store_id INTEGER,
    change_status_at TEXT,
    customer_id INTEGER NOT NULL DEFAULT 0,
    subscriber_email TEXT,
    subscriber_status INTEGER NOT NULL,
    subscriber_confirm_code TEXT
);
CREATE TABLE newsletter_queue_link (
    queue_link_id INTEGER PRIMARY KEY,
    queue_id INTEGER NOT NULL,
    subscriber_id INTEGER NOT NULL,
    letter_sent_at TEXT
);
CREATE TABLE store (
    store_id INTEGER PRIMARY KEY,
    code TEXT,
    website_id INTEGER,
    group_id INTEGER,
    name TEXT
);
CREATE TABLE customer_entity_varchar (
    value_id INTEGER PRIMARY KEY,
    attribute_id INTEGER NOT NULL,
    entity_id INTEGER NOT NULL,
    value TEXT
);
CREATE TABLE eav_entity_type (
    entity_type_id INTEGER PRIMARY KEY,
    entity_type_code TEXT NOT NULL,
    entity_table TEXT NOT NULL
);
CREATE TABLE eav_attribute (
    attribute_id INTEGER PRIMARY KEY,
    entity_type_id INTEGER NOT NULL,
    attribute_code TEXT NOT NULL,
    backend_type TEXT,
    backend_table TEXT
);
"""

FIXTURES = """
INSERT INTO store VALUES (1, 'default', 1, 1, 'Default Store View');
INSERT INTO store VALUES (2, 'french', 1, 1, 'French Store View');
INSERT INTO store VALUES (3, 'b2b', 2, 3, 'B2B Store View');

INSERT INTO newsletter_subscriber VALUES (1, 1, NULL, 0, 'guest@example.com', 1, 'c1');
INSERT INTO newsletter_subscriber VALUES (2, 1, NULL, 42, 'jane@example.com', 1, 'c2');
INSERT INTO newsletter_subscriber VALUES (3, 2, NULL, 43, 'jean@example.com', 3, 'c3');
INSERT INTO newsletter_subscriber VALUES (4, 3, NULL, 0, 'buyer@example.com', 2, 'c4');
INSERT INTO newsletter_subscriber VALUES (5, 3, NULL, 44, 'max@example.com', 1, 'c5');

INSERT INTO newsletter_queue_link VALUES (1, 5, 1, NULL);
INSERT INTO newsletter_queue_link VALUES (2, 5, 2, '2024-03-01 10:00:00');
INSERT INTO newsletter_queue_link VALUES (3, 5, 5, NULL);
INSERT INTO newsletter_queue_link VALUES (4, 6, 3, NULL);

INSERT INTO eav_entity_type VALUES (1, 'customer', 'customer_entity');
INSERT INTO eav_attribute VALUES (5, 1, 'firstname', 'varchar', NULL);
INSERT INTO eav_attribute VALUES (7, 1, 'lastname', 'varchar', NULL);
INSERT INTO eav_attribute VALUES (9, 1, 'email', 'static', NULL);

INSERT INTO customer_entity_varchar VALUES (1, 5, 42, 'Jane');
INSERT INTO customer_entity_varchar VALUES (2, 7, 42, 'Doe');
INSERT INTO customer_entity_varchar VALUES (3, 5, 43, 'Jean');
INSERT INTO customer_entity_varchar VALUES (4, 7, 43, 'Dupont');
INSERT INTO customer_entity_varchar VALUES (5, 5, 44, 'Max');
"""


@pytest.fixture
def db():
    """In-memory SQLite database seeded with subscribers, queue links, stores and EAV rows."""
    adapter = SQLiteAdapter(":memory:")
    adapter.executescript(SCHEMA + FIXTURES)
    yield adapter
    adapter.close()


@pytest.fixture
def metadata():
    return StaticAttributeMetadata()


@pytest.fixture
def subscribers(db, metadata):
    """Fresh subscriber collection over the seeded database, no table prefix."""
    return SubscriberCollection(db, metadata, table_prefix="")
