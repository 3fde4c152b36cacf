"""Demo data loaded into an empty store at startup.

One user owning four assets, a compliance record per asset, four
transactions and three regulatory updates.
"""
import logging
from datetime import datetime, timedelta, timezone

from models import (
    AssetCreate, ComplianceCreate, RegulatoryUpdateCreate, TransactionCreate,
    UserCreate
)

from . import Storage

logger = logging.getLogger(__name__)

SAMPLE_USER = {
    'username': 'johnsmith',
    'password': 'hashed_password',
    'email': 'john@example.com',
    'fullName': 'John Smith',
    'company': 'ABC Corp',
    'plan': 'Growth'
}

SAMPLE_ASSETS = [
    {
        'name': 'Downtown Office Complex',
        'type': 'real_estate',
        'subtype': 'commercial',
        'description': 'Prime commercial office space in downtown area',
        'location': 'San Francisco, CA',
        'value': 750000,
        'tokenized': 85,
        'tokenizedValue': 637500,
        'liquidity': 'high',
        'blockchain': 'ethereum',
        'status': 'active',
        'ipfsHash': 'ipfs://Qm123456789',
        'contractAddress': '0x1234567890abcdef',
        'metadata': {'floors': 12, 'sqft': 25000, 'year_built': 2010}
    },
    {
        'name': 'Q4 2023 Invoice Bundle',
        'type': 'invoice',
        'subtype': 'tech_services',
        'description': 'Collection of Q4 invoices for technology services',
        'company': 'Tech Services',
        'value': 120000,
        'tokenized': 100,
        'tokenizedValue': 120000,
        'liquidity': 'medium',
        'blockchain': 'polygon',
        'status': 'active',
        'ipfsHash': 'ipfs://Qm987654321',
        'contractAddress': '0xabcdef1234567890',
        'metadata': {'invoice_count': 8, 'due_date': '2023-12-31'}
    },
    {
        'name': 'CNC Machine Fleet',
        'type': 'equipment',
        'subtype': 'manufacturing',
        'description': 'Fleet of industrial CNC machines for manufacturing',
        'company': 'Manufacturing',
        'value': 350000,
        'tokenized': 60,
        'tokenizedValue': 210000,
        'liquidity': 'low',
        'blockchain': 'polygon',
        'status': 'pending',
        'ipfsHash': 'ipfs://Qm567890123',
        'contractAddress': '0x567890abcdef1234',
        'metadata': {'machine_count': 5, 'year': 2020, 'manufacturer': 'Industrial Inc.'}
    },
    {
        'name': 'Westfield Retail Space',
        'type': 'real_estate',
        'subtype': 'retail',
        'description': 'Retail storefront in popular shopping district',
        'location': 'Chicago, IL',
        'value': 480000,
        'tokenized': 35,
        'tokenizedValue': 168000,
        'liquidity': 'medium',
        'blockchain': 'ethereum',
        'status': 'compliance_issue',
        'ipfsHash': 'ipfs://Qm345678901',
        'contractAddress': '0x3456789012abcdef',
        'metadata': {'sqft': 3500, 'year_built': 2015}
    }
]

# keyed by position in SAMPLE_ASSETS
SAMPLE_COMPLIANCE = [
    {'jurisdiction': 'US', 'kycCompleted': True, 'templateUsed': 'US_RE_STD_1',
     'regulatoryNotes': '', 'complianceScore': 92},
    {'jurisdiction': 'US', 'kycCompleted': True, 'templateUsed': 'US_GEN_STD_1',
     'regulatoryNotes': '', 'complianceScore': 92},
    {'jurisdiction': 'US', 'kycCompleted': True, 'templateUsed': 'US_GEN_STD_1',
     'regulatoryNotes': '', 'complianceScore': 92},
    {'jurisdiction': 'EU', 'kycCompleted': False, 'templateUsed': 'US_RE_STD_1',
     'regulatoryNotes': 'Missing EU MiCA compliance documentation', 'complianceScore': 65},
]

# assetIndex refers to SAMPLE_ASSETS, party is filled with the sample user id
SAMPLE_TRANSACTIONS = [
    {'assetIndex': 1, 'party': 'seller', 'tokenAmount': 5, 'valueAmount': 12500,
     'transactionType': 'sale', 'status': 'completed', 'transactionHash': '0xabcd1234567890'},
    {'assetIndex': 0, 'party': 'buyer', 'tokenAmount': 3, 'valueAmount': 22500,
     'transactionType': 'purchase', 'status': 'completed', 'transactionHash': '0x1234abcd567890'},
    {'assetIndex': 2, 'party': None, 'tokenAmount': 10, 'valueAmount': 35000,
     'transactionType': 'offer', 'status': 'pending'},
    {'assetIndex': 3, 'party': 'seller', 'tokenAmount': 8, 'valueAmount': 16800,
     'transactionType': 'listing', 'status': 'active'},
]


def sample_regulatory_updates(now: datetime):
    expiry = now + timedelta(days=45)
    return [
        {
            'title': 'MiCA Compliance Update Required',
            'description': 'New EU regulations affecting real estate tokenization. '
                           'Action needed for specific assets.',
            'jurisdiction': 'EU',
            'severity': 'warning',
            'assetTypesAffected': ['real_estate'],
            'actionRequired': True,
            'actionDescription': 'Update compliance documentation according to new MiCA guidelines',
            'publishDate': now,
            'expiryDate': expiry
        },
        {
            'title': 'SEC Framework Update',
            'description': 'New guidelines for fractional ownership of equipment assets. '
                           'No immediate action required.',
            'jurisdiction': 'US',
            'severity': 'info',
            'assetTypesAffected': ['equipment'],
            'actionRequired': False,
            'publishDate': now
        },
        {
            'title': 'Tax Reporting Change',
            'description': 'Updated requirements for quarterly reporting on tokenized assets.',
            'jurisdiction': 'US',
            'severity': 'info',
            'assetTypesAffected': ['real_estate', 'invoice', 'equipment'],
            'actionRequired': False,
            'actionDescription': 'Prepare for new reporting format in next quarter',
            'publishDate': now,
            'expiryDate': expiry
        }
    ]


async def seed_sample_data(storage: Storage) -> bool:
    """Load the demo records into an empty store.

    Args:
        storage: Store to fill

    Returns:
        True if data was loaded, False if the store already had users
    """
    if await storage.get_all_users():
        logger.info("Store already holds data, skipping sample data")
        return False

    user = await storage.create_user(UserCreate.model_validate(SAMPLE_USER))

    assets = []
    for asset_data, compliance_data in zip(SAMPLE_ASSETS, SAMPLE_COMPLIANCE):
        asset = await storage.create_asset(
            AssetCreate.model_validate({**asset_data, 'userId': user.id})
        )
        await storage.create_compliance(
            ComplianceCreate.model_validate({**compliance_data, 'assetId': asset.id})
        )
        assets.append(asset)

    for tx_data in SAMPLE_TRANSACTIONS:
        fields = {k: v for k, v in tx_data.items() if k not in ('assetIndex', 'party')}
        fields['assetId'] = assets[tx_data['assetIndex']].id
        if tx_data['party'] == 'buyer':
            fields['buyerId'] = user.id
        elif tx_data['party'] == 'seller':
            fields['sellerId'] = user.id
        await storage.create_transaction(TransactionCreate.model_validate(fields))

    for update_data in sample_regulatory_updates(datetime.now(timezone.utc)):
        await storage.create_regulatory_update(RegulatoryUpdateCreate.model_validate(update_data))

    logger.info(f"Loaded sample data: 1 user, {len(assets)} assets")
    return True
