"""Tests for schema definitions and SQL builders."""

import json

import pytest

from database import _database_name, _get_connection_kwargs
from database.lib.schema_manager import SchemaManager, constraint_ddl, table_ddl
from storage import StorageError
from storage.postgres import ASSET_COLUMNS, build_update, row_to_asset


def test_load_schema_files():
    schemas = SchemaManager(pool=None).load_schema_files()

    assert 1 in schemas
    tables = {table['name'] for table in schemas[1]['tables']}
    assert tables == {'users', 'assets', 'compliance', 'transactions', 'regulatory_updates'}


def test_table_ddl():
    table = {
        'name': 'things',
        'columns': [
            {'name': 'id', 'type': 'SERIAL', 'primary_key': True},
            {'name': 'code', 'type': 'TEXT', 'nullable': False, 'unique': True},
            {'name': 'score', 'type': 'INT', 'default': '0'},
        ]
    }

    assert table_ddl(table) == (
        "CREATE TABLE IF NOT EXISTS things ("
        "id SERIAL, code TEXT NOT NULL, score INT DEFAULT 0, "
        "PRIMARY KEY (id), UNIQUE (code))"
    )


def test_compliance_cascades_with_asset():
    schema = SchemaManager(pool=None).load_schema_files()[1]
    compliance = next(t for t in schema['tables'] if t['name'] == 'compliance')

    statements = constraint_ddl(compliance)

    assert any("REFERENCES assets(id) ON DELETE CASCADE" in s for s in statements)
    assert "UNIQUE (asset_id)" in table_ddl(compliance)


def test_build_update():
    query, args = build_update(
        'assets', {'name': 'Loft', 'metadata': {'sqft': 10}}, ASSET_COLUMNS, stamp_column='updated_at'
    )

    assert query == (
        "UPDATE assets SET name = $1, metadata = $2::jsonb, updated_at = now() "
        "WHERE id = $3 RETURNING *"
    )
    assert args[0] == 'Loft'
    assert json.loads(args[1]) == {'sqft': 10}


def test_build_update_without_changes_reads_row():
    query, args = build_update('transactions', {}, ('status',))
    assert query == "SELECT * FROM transactions WHERE id = $1"
    assert args == []


def test_build_update_rejects_unknown_columns():
    with pytest.raises(StorageError):
        build_update('assets', {'user_id': 2}, ASSET_COLUMNS)


def test_row_to_asset_decodes_metadata():
    row = {
        'id': 1, 'name': 'Loft', 'user_id': 1, 'type': 'real_estate', 'subtype': None,
        'description': None, 'location': None, 'company': None, 'value': 10.0,
        'tokenized': 50.0, 'tokenized_value': 5.0, 'liquidity': 'low',
        'blockchain': 'polygon', 'status': 'draft', 'ipfs_hash': None,
        'contract_address': None, 'metadata': '{"sqft": 10}',
        'created_at': '2024-01-01T00:00:00+00:00', 'updated_at': None
    }
    asset = row_to_asset(row)
    assert asset.metadata == {'sqft': 10}
    assert asset.to_json()['tokenizedValue'] == 5.0


def test_connection_helpers():
    assert _database_name("postgresql://u:p@host:5432/tokens?sslmode=require") == "tokens"
    kwargs = _get_connection_kwargs("postgresql://u:p@host:5432/tokens?sslmode=require")
    assert kwargs.get('ssl') is not None
    assert 'ssl' not in _get_connection_kwargs("postgresql://u:p@host:5432/tokens")
