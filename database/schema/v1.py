"""Schema v1 - Initial database schema.

This version includes tables for:
- Users
- Assets and their metadata
- Compliance records (one per asset)
- Token transactions
- Regulatory updates
"""

schema = {
    'version': 1,
    'tables': [
        {
            'name': 'users',
            'columns': [
                {'name': 'id', 'type': 'SERIAL', 'primary_key': True},
                {'name': 'username', 'type': 'TEXT', 'nullable': False, 'unique': True},
                {'name': 'password', 'type': 'TEXT', 'nullable': False},
                {'name': 'email', 'type': 'TEXT', 'nullable': False, 'unique': True},
                {'name': 'full_name', 'type': 'TEXT', 'nullable': False},
                {'name': 'company', 'type': 'TEXT'},
                {'name': 'plan', 'type': 'TEXT', 'nullable': False, 'default': "'Starter'"},
                {'name': 'created_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'}
            ]
        },
        {
            'name': 'assets',
            'columns': [
                {'name': 'id', 'type': 'SERIAL', 'primary_key': True},
                {'name': 'name', 'type': 'TEXT', 'nullable': False},
                {'name': 'user_id', 'type': 'INT', 'nullable': False},
                {'name': 'type', 'type': 'TEXT', 'nullable': False},
                {'name': 'subtype', 'type': 'TEXT'},
                {'name': 'description', 'type': 'TEXT'},
                {'name': 'location', 'type': 'TEXT'},
                {'name': 'company', 'type': 'TEXT'},
                {'name': 'value', 'type': 'DOUBLE PRECISION', 'nullable': False},
                {'name': 'tokenized', 'type': 'DOUBLE PRECISION', 'nullable': False, 'default': '0'},
                {'name': 'tokenized_value', 'type': 'DOUBLE PRECISION', 'nullable': False, 'default': '0'},
                {'name': 'liquidity', 'type': 'TEXT', 'nullable': False, 'default': "'low'"},
                {'name': 'blockchain', 'type': 'TEXT', 'nullable': False},
                {'name': 'status', 'type': 'TEXT', 'nullable': False, 'default': "'draft'"},
                {'name': 'ipfs_hash', 'type': 'TEXT'},
                {'name': 'contract_address', 'type': 'TEXT'},
                {'name': 'metadata', 'type': 'JSONB', 'nullable': False, 'default': "'{}'"},
                {'name': 'created_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'},
                {'name': 'updated_at', 'type': 'TIMESTAMPTZ'}
            ],
            'foreign_keys': [
                {'columns': ['user_id'], 'references': 'users(id)'}
            ],
            'indexes': [
                {'name': 'idx_assets_user', 'columns': ['user_id']},
                {'name': 'idx_assets_type', 'columns': ['type']}
            ]
        },
        {
            'name': 'compliance',
            'columns': [
                {'name': 'id', 'type': 'SERIAL', 'primary_key': True},
                {'name': 'asset_id', 'type': 'INT', 'nullable': False, 'unique': True},
                {'name': 'jurisdiction', 'type': 'TEXT', 'nullable': False},
                {'name': 'kyc_required', 'type': 'BOOLEAN', 'nullable': False, 'default': 'true'},
                {'name': 'kyc_completed', 'type': 'BOOLEAN', 'nullable': False, 'default': 'false'},
                {'name': 'template_used', 'type': 'TEXT'},
                {'name': 'regulatory_notes', 'type': 'TEXT'},
                {'name': 'compliance_score', 'type': 'INT'},
                {'name': 'updated_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'}
            ],
            'foreign_keys': [
                {'columns': ['asset_id'], 'references': 'assets(id) ON DELETE CASCADE'}
            ]
        },
        {
            'name': 'transactions',
            'columns': [
                {'name': 'id', 'type': 'SERIAL', 'primary_key': True},
                {'name': 'asset_id', 'type': 'INT', 'nullable': False},
                {'name': 'buyer_id', 'type': 'INT'},
                {'name': 'seller_id', 'type': 'INT'},
                {'name': 'token_amount', 'type': 'DOUBLE PRECISION', 'nullable': False},
                {'name': 'value_amount', 'type': 'DOUBLE PRECISION', 'nullable': False},
                {'name': 'transaction_type', 'type': 'TEXT', 'nullable': False},
                {'name': 'status', 'type': 'TEXT', 'nullable': False},
                {'name': 'transaction_hash', 'type': 'TEXT'},
                {'name': 'created_at', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'}
            ],
            'foreign_keys': [
                {'columns': ['asset_id'], 'references': 'assets(id) ON DELETE CASCADE'}
            ],
            'indexes': [
                {'name': 'idx_transactions_asset', 'columns': ['asset_id']},
                {'name': 'idx_transactions_buyer', 'columns': ['buyer_id']},
                {'name': 'idx_transactions_seller', 'columns': ['seller_id']}
            ]
        },
        {
            'name': 'regulatory_updates',
            'columns': [
                {'name': 'id', 'type': 'SERIAL', 'primary_key': True},
                {'name': 'title', 'type': 'TEXT', 'nullable': False},
                {'name': 'description', 'type': 'TEXT', 'nullable': False},
                {'name': 'jurisdiction', 'type': 'TEXT', 'nullable': False},
                {'name': 'severity', 'type': 'TEXT', 'nullable': False},
                {'name': 'asset_types_affected', 'type': 'TEXT[]', 'nullable': False, 'default': "'{}'"},
                {'name': 'action_required', 'type': 'BOOLEAN', 'nullable': False, 'default': 'false'},
                {'name': 'action_description', 'type': 'TEXT'},
                {'name': 'publish_date', 'type': 'TIMESTAMPTZ', 'nullable': False, 'default': 'now()'},
                {'name': 'expiry_date', 'type': 'TIMESTAMPTZ'}
            ],
            'indexes': [
                {'name': 'idx_regulatory_jurisdiction', 'columns': ['jurisdiction']}
            ]
        }
    ]
}
