"""Attribute metadata providers.

Customer names are stored EAV-style: one row per (entity, attribute) in a
typed value table. Providers tell collections which table holds an attribute
and which attribute id to join on.
"""

from typing import Dict, Iterable, Optional, Tuple

from .abc import AttributeMetadataProvider, DatabaseAdapter
from .constants import ENTITY_TYPE_CUSTOMER
from .exceptions import AttributeNotFoundError
from .logger import Logger
from .querydsl.expressions import Comparison, col, lit
from .querydsl.select import Select
from .schema import AttributeMetadata
from .settings import settings as api_settings

__all__ = (
    "StaticAttributeMetadata",
    "DatabaseAttributeMetadata",
    "DEFAULT_CUSTOMER_ATTRIBUTES",
)

DEFAULT_CUSTOMER_ATTRIBUTES: Tuple[AttributeMetadata, ...] = (
    AttributeMetadata(
        entity_type=ENTITY_TYPE_CUSTOMER,
        attribute_code="firstname",
        attribute_id=5,
        attribute_table="customer_entity_varchar",
        entity_type_id=1,
    ),
    AttributeMetadata(
        entity_type=ENTITY_TYPE_CUSTOMER,
        attribute_code="lastname",
        attribute_id=7,
        attribute_table="customer_entity_varchar",
        entity_type_id=1,
    ),
)


class StaticAttributeMetadata(AttributeMetadataProvider):
    """In-memory attribute registry.

    Useful when attribute ids are fixed by installation, and in tests.
    """

    def __init__(self, attributes: Optional[Iterable[AttributeMetadata]] = None) -> None:
        self._attributes: Dict[Tuple[str, str], AttributeMetadata] = {}
        for attribute in DEFAULT_CUSTOMER_ATTRIBUTES if attributes is None else attributes:
            self.register(attribute)

    def register(self, attribute: AttributeMetadata) -> None:
        self._attributes[(attribute.entity_type, attribute.attribute_code)] = attribute

    def get_attribute_metadata(self, entity_type: str, attribute_code: str) -> AttributeMetadata:
        try:
            return self._attributes[(entity_type, attribute_code)]
        except KeyError:
            raise AttributeNotFoundError(
                "Attribute is not defined for entity type",
                entity_type=entity_type,
                attribute_code=attribute_code,
            ) from None


class DatabaseAttributeMetadata(AttributeMetadataProvider):
    """Reads attribute definitions from the EAV configuration tables.

    The backing table is the attribute's ``backend_table`` when set, the
    entity table itself for ``static`` attributes, and otherwise
    ``<entity_table>_<backend_type>`` (e.g. ``customer_entity_varchar``).
    Results are cached per (entity_type, attribute_code) for the lifetime
    of the provider.
    """

    def __init__(
        self,
        db: DatabaseAdapter,
        attribute_table: Optional[str] = None,
        entity_type_table: Optional[str] = None,
        table_prefix: Optional[str] = None,
    ) -> None:
        self._db = db
        prefix = api_settings.TABLE_PREFIX if table_prefix is None else table_prefix
        self.table_prefix = prefix
        self.attribute_table = prefix + (attribute_table or api_settings.EAV_ATTRIBUTE_TABLE)
        self.entity_type_table = prefix + (entity_type_table or api_settings.EAV_ENTITY_TYPE_TABLE)
        self._cache: Dict[Tuple[str, str], AttributeMetadata] = {}
        self.logger = Logger(self.__class__.__name__)

    def _build_select(self, entity_type: str, attribute_code: str) -> Select:
        select = Select.from_table(self.attribute_table, "attr", all_columns=False)
        select = select.join(
            self.entity_type_table,
            "entity_type",
            Comparison(col("entity_type", "entity_type_id"), "=", col("attr", "entity_type_id")),
            columns=["entity_type_id", "entity_table"],
        )
        select = select.add_columns(
            {
                "attribute_id": col("attr", "attribute_id"),
                "backend_type": col("attr", "backend_type"),
                "backend_table": col("attr", "backend_table"),
            }
        )
        return select.where(
            Comparison(col("entity_type", "entity_type_code"), "=", lit(entity_type)),
            Comparison(col("attr", "attribute_code"), "=", lit(attribute_code)),
        ).limit(1)

    def _backing_table(self, row: Dict) -> str:
        if row.get("backend_table"):
            return row["backend_table"]
        entity_table = self.table_prefix + row["entity_table"]
        backend_type = row.get("backend_type") or "static"
        if backend_type == "static":
            return entity_table
        return f"{entity_table}_{backend_type}"

    def get_attribute_metadata(self, entity_type: str, attribute_code: str) -> AttributeMetadata:
        key = (entity_type, attribute_code)
        if key in self._cache:
            return self._cache[key]
        query = self._db.compiler.compile(self._build_select(entity_type, attribute_code))
        self.logger.sql(query, "Attribute lookup")
        row = self._db.fetch_one(query)
        if row is None:
            raise AttributeNotFoundError(
                "Attribute is not defined for entity type",
                entity_type=entity_type,
                attribute_code=attribute_code,
            )
        metadata = AttributeMetadata(
            entity_type=entity_type,
            attribute_code=attribute_code,
            attribute_id=int(row["attribute_id"]),
            attribute_table=self._backing_table(row),
            backend_type=row.get("backend_type") or "static",
            entity_type_id=row.get("entity_type_id"),
        )
        self._cache[key] = metadata
        self.logger.debug(
            "Resolved %s.%s -> %s (attribute_id=%s)",
            entity_type,
            attribute_code,
            metadata.attribute_table,
            metadata.attribute_id,
        )
        return metadata

    def clear_cache(self) -> None:
        self._cache.clear()
