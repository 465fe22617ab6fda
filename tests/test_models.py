from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import configure_mappers
from sqlalchemy.schema import CreateTable

from venue_office.db.base import Base
from venue_office.schemas import BookingSave, Invoice, LobbyInvoiceCreate, RoomCreate


def test_orm_mappings_are_valid():
    configure_mappers()


def test_tables_compile_for_postgres():
    dialect = postgresql.dialect()
    for table in Base.metadata.sorted_tables:
        assert str(CreateTable(table).compile(dialect=dialect))


def test_revision_link_is_unique():
    column = Base.metadata.tables["invoices"].c.past_invoice_id
    assert column.unique


def test_schemas_build():
    for schema in (BookingSave, Invoice, LobbyInvoiceCreate, RoomCreate):
        assert schema.model_json_schema()
