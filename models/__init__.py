"""Data model for users, assets, compliance records, transactions and regulatory updates."""
from .enums import (
    AssetStatus, AssetType, Blockchain, Liquidity, Severity,
    TransactionStatus, TransactionType
)
from .metadata import (
    AssetMetadata, EquipmentMetadata, InvoiceMetadata, METADATA_MODELS,
    RealEstateMetadata, validate_metadata
)
from .entities import (
    ASSET_REQUIRED_FIELDS, COMPLIANCE_REQUIRED_FIELDS, TOKENIZED_VALUE_TOLERANCE,
    TRANSACTION_REQUIRED_FIELDS, Asset, AssetCreate, AssetUpdate, CamelModel,
    Compliance, ComplianceCreate, ComplianceUpdate, RegulatoryUpdate,
    RegulatoryUpdateCreate, Transaction, TransactionCreate, TransactionUpdate,
    User, UserCreate, derive_tokenized_value, tokenized_value_matches
)

__all__ = [
    # Enums
    'AssetStatus', 'AssetType', 'Blockchain', 'Liquidity', 'Severity',
    'TransactionStatus', 'TransactionType',
    # Metadata
    'AssetMetadata', 'EquipmentMetadata', 'InvoiceMetadata', 'METADATA_MODELS',
    'RealEstateMetadata', 'validate_metadata',
    # Entities
    'CamelModel', 'User', 'UserCreate', 'Asset', 'AssetCreate', 'AssetUpdate',
    'Compliance', 'ComplianceCreate', 'ComplianceUpdate', 'Transaction',
    'TransactionCreate', 'TransactionUpdate', 'RegulatoryUpdate',
    'RegulatoryUpdateCreate',
    # Invariant helpers
    'ASSET_REQUIRED_FIELDS', 'COMPLIANCE_REQUIRED_FIELDS',
    'TRANSACTION_REQUIRED_FIELDS', 'TOKENIZED_VALUE_TOLERANCE',
    'derive_tokenized_value', 'tokenized_value_matches'
]
