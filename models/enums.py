from enum import Enum


class AssetType(str, Enum):
    REAL_ESTATE = "real_estate"
    INVOICE = "invoice"
    EQUIPMENT = "equipment"


class AssetStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    ACTIVE = "active"
    COMPLIANCE_ISSUE = "compliance_issue"


class Blockchain(str, Enum):
    ETHEREUM = "ethereum"
    POLYGON = "polygon"


class Liquidity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TransactionType(str, Enum):
    OFFER = "offer"
    SALE = "sale"
    PURCHASE = "purchase"
    LISTING = "listing"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ACTIVE = "active"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"
