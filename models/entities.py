"""Entity, create and update models.

Entities are what the store hands back. ``*Create`` models describe the
fields a caller may supply when creating a record, ``*Update`` models the
fields a partial update may touch. Everything speaks camelCase on the wire
and snake_case in Python.
"""
import math
from datetime import datetime
from typing import Annotated, Any, Dict, List, Optional

from pydantic import (
    BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr,
    field_validator, model_validator
)
from pydantic.alias_generators import to_camel

from .enums import (
    AssetStatus, AssetType, Blockchain, Liquidity, Severity,
    TransactionStatus, TransactionType
)

Amount = Annotated[float, Field(strict=True, ge=0, allow_inf_nan=False)]
Percentage = Annotated[float, Field(strict=True, ge=0, le=100, allow_inf_nan=False)]
TokenAmount = Annotated[float, Field(strict=True, gt=0, allow_inf_nan=False)]
Score = Annotated[StrictInt, Field(ge=0, le=100)]
Id = Annotated[StrictInt, Field(gt=0)]
Text = Annotated[StrictStr, Field(min_length=1)]

# relative tolerance when checking a supplied tokenizedValue
TOKENIZED_VALUE_TOLERANCE = 1e-6


def derive_tokenized_value(value: float, tokenized: float) -> float:
    """Value of the tokenized share of an asset."""
    return value * tokenized / 100


def tokenized_value_matches(value: float, tokenized: float, tokenized_value: float) -> bool:
    return math.isclose(
        tokenized_value,
        derive_tokenized_value(value, tokenized),
        rel_tol=TOKENIZED_VALUE_TOLERANCE,
        abs_tol=1e-9
    )


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True
    )

    def to_json(self) -> Dict[str, Any]:
        """Render as a camelCase JSON-ready dict."""
        return self.model_dump(mode='json', by_alias=True)


# Users

class User(CamelModel):
    id: int
    username: str
    password: str
    email: str
    full_name: str
    company: Optional[str] = None
    plan: str = "Starter"
    created_at: datetime

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode='json', by_alias=True, exclude={'password'})


class UserCreate(CamelModel):
    username: Text
    password: Text
    email: Annotated[StrictStr, Field(pattern=r'^[^@\s]+@[^@\s]+$')]
    full_name: Text
    company: Optional[StrictStr] = None
    plan: Optional[Text] = None


# Assets

class Asset(CamelModel):
    id: int
    name: str
    user_id: int
    type: AssetType
    subtype: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    company: Optional[str] = None
    value: float
    tokenized: float = 0
    tokenized_value: float = 0
    liquidity: Liquidity = Liquidity.LOW
    blockchain: Blockchain
    status: AssetStatus = AssetStatus.DRAFT
    ipfs_hash: Optional[str] = None
    contract_address: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: Optional[datetime] = None


class AssetCreate(CamelModel):
    name: Text
    user_id: Id
    type: AssetType
    subtype: Optional[StrictStr] = None
    description: Optional[StrictStr] = None
    location: Optional[StrictStr] = None
    company: Optional[StrictStr] = None
    value: Amount
    tokenized: Optional[Percentage] = None
    tokenized_value: Optional[Amount] = None
    liquidity: Optional[Liquidity] = None
    blockchain: Blockchain
    status: Optional[AssetStatus] = None
    ipfs_hash: Optional[StrictStr] = None
    contract_address: Optional[StrictStr] = None
    metadata: Optional[Dict[str, Any]] = None


class AssetUpdate(CamelModel):
    name: Optional[Text] = None
    type: Optional[AssetType] = None
    subtype: Optional[StrictStr] = None
    description: Optional[StrictStr] = None
    location: Optional[StrictStr] = None
    company: Optional[StrictStr] = None
    value: Optional[Amount] = None
    tokenized: Optional[Percentage] = None
    tokenized_value: Optional[Amount] = None
    liquidity: Optional[Liquidity] = None
    blockchain: Optional[Blockchain] = None
    status: Optional[AssetStatus] = None
    ipfs_hash: Optional[StrictStr] = None
    contract_address: Optional[StrictStr] = None
    metadata: Optional[Dict[str, Any]] = None


# fields an update may not clear with an explicit null
ASSET_REQUIRED_FIELDS = (
    'name', 'type', 'value', 'tokenized', 'tokenized_value',
    'liquidity', 'blockchain', 'status'
)


# Compliance

class Compliance(CamelModel):
    id: int
    asset_id: int
    jurisdiction: str
    kyc_required: bool = True
    kyc_completed: bool = False
    template_used: Optional[str] = None
    regulatory_notes: Optional[str] = None
    compliance_score: Optional[int] = None
    updated_at: datetime


class ComplianceCreate(CamelModel):
    asset_id: Id
    jurisdiction: Text
    kyc_required: Optional[StrictBool] = None
    kyc_completed: Optional[StrictBool] = None
    template_used: Optional[StrictStr] = None
    regulatory_notes: Optional[StrictStr] = None
    compliance_score: Optional[Score] = None


class ComplianceUpdate(CamelModel):
    jurisdiction: Optional[Text] = None
    kyc_required: Optional[StrictBool] = None
    kyc_completed: Optional[StrictBool] = None
    template_used: Optional[StrictStr] = None
    regulatory_notes: Optional[StrictStr] = None
    compliance_score: Optional[Score] = None


COMPLIANCE_REQUIRED_FIELDS = ('jurisdiction', 'kyc_required', 'kyc_completed')


# Transactions

class Transaction(CamelModel):
    id: int
    asset_id: int
    buyer_id: Optional[int] = None
    seller_id: Optional[int] = None
    token_amount: float
    value_amount: float
    transaction_type: TransactionType
    status: TransactionStatus
    transaction_hash: Optional[str] = None
    created_at: datetime


def _one_party(buyer_id: Optional[int], seller_id: Optional[int]) -> None:
    if buyer_id is not None and seller_id is not None:
        raise ValueError("only one of buyerId and sellerId may be set")


class TransactionCreate(CamelModel):
    asset_id: Id
    buyer_id: Optional[Id] = None
    seller_id: Optional[Id] = None
    token_amount: TokenAmount
    value_amount: Amount
    transaction_type: TransactionType
    status: TransactionStatus
    transaction_hash: Optional[StrictStr] = None

    @model_validator(mode='after')
    def _check_parties(self):
        _one_party(self.buyer_id, self.seller_id)
        return self


class TransactionUpdate(CamelModel):
    buyer_id: Optional[Id] = None
    seller_id: Optional[Id] = None
    token_amount: Optional[TokenAmount] = None
    value_amount: Optional[Amount] = None
    status: Optional[TransactionStatus] = None
    transaction_hash: Optional[StrictStr] = None


TRANSACTION_REQUIRED_FIELDS = ('token_amount', 'value_amount', 'status')


# Regulatory updates

class RegulatoryUpdate(CamelModel):
    id: int
    title: str
    description: str
    jurisdiction: str
    severity: Severity
    asset_types_affected: List[AssetType] = Field(default_factory=list)
    action_required: bool = False
    action_description: Optional[str] = None
    publish_date: datetime
    expiry_date: Optional[datetime] = None


class RegulatoryUpdateCreate(CamelModel):
    title: Text
    description: Text
    jurisdiction: Text
    severity: Severity
    asset_types_affected: List[AssetType] = Field(default_factory=list)
    action_required: StrictBool = False
    action_description: Optional[StrictStr] = None
    publish_date: Optional[datetime] = None
    expiry_date: Optional[datetime] = None

    @field_validator('asset_types_affected')
    @classmethod
    def _dedupe(cls, value):
        # a set of types, kept in first-seen order
        seen = []
        for asset_type in value:
            if asset_type not in seen:
                seen.append(asset_type)
        return seen
