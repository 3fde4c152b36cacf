"""IPFS module for storing asset documents and metadata.

``ContentStore`` is the port the tokenization pipeline stores content
through. Adapters:

- ``SimulatedContentStore``: random ``ipfs://Qm...`` references after a delay
- ``IPFSHTTPStore``: the ``/api/v0/add`` endpoint of an IPFS node's HTTP API
"""
import asyncio
import json
import logging
import secrets
import string
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests
from pydantic import BaseModel

logger = logging.getLogger(__name__)

IPFS_SCHEME = 'ipfs://'
DEFAULT_GATEWAY = 'https://ipfs.io/ipfs/'

_HASH_ALPHABET = string.ascii_lowercase + string.digits


class ContentStoreError(Exception):
    """Raised when content cannot be stored."""
    pass


class Document(BaseModel):
    """An uploaded file."""
    filename: str
    content: bytes
    content_type: str = 'application/octet-stream'


class ContentStore(ABC):
    """Port for content-addressed storage."""

    @abstractmethod
    async def store_file(self, document: Document) -> str:
        """Store a document and return its ``ipfs://`` reference."""

    @abstractmethod
    async def store_metadata(self, metadata: Dict[str, Any]) -> str:
        """Store a JSON document and return its ``ipfs://`` reference."""


class SimulatedContentStore(ContentStore):
    """Pretends to pin content and hands back made-up references."""

    def __init__(self, file_delay: float = 1.0, metadata_delay: Optional[float] = None):
        self.file_delay = file_delay
        self.metadata_delay = file_delay / 2 if metadata_delay is None else metadata_delay

    @staticmethod
    def _fake_hash() -> str:
        return 'Qm' + ''.join(secrets.choice(_HASH_ALPHABET) for _ in range(26))

    async def store_file(self, document: Document) -> str:
        await asyncio.sleep(self.file_delay)
        ref = IPFS_SCHEME + self._fake_hash()
        logger.info(f"Stored file {document.filename} with reference {ref}")
        return ref

    async def store_metadata(self, metadata: Dict[str, Any]) -> str:
        await asyncio.sleep(self.metadata_delay)
        ref = IPFS_SCHEME + self._fake_hash()
        logger.info(f"Stored metadata with reference {ref}")
        return ref


class IPFSHTTPStore(ContentStore):
    """Adds content through an IPFS node's HTTP API."""

    def __init__(self, api_url: str, timeout: float = 30.0):
        self.api_url = api_url.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()

    def _add(self, filename: str, content: bytes, content_type: str) -> str:
        try:
            response = self.session.post(
                f"{self.api_url}/api/v0/add",
                params={'pin': 'true'},
                files={'file': (filename, content, content_type)},
                timeout=self.timeout
            )
            response.raise_for_status()
            cid = response.json()['Hash']
        except requests.exceptions.RequestException as e:
            raise ContentStoreError(f"Failed to store {filename} on IPFS: {e}") from e
        except (KeyError, ValueError) as e:
            raise ContentStoreError(f"Invalid response from IPFS node: {e}") from e
        return IPFS_SCHEME + cid

    async def store_file(self, document: Document) -> str:
        ref = await asyncio.to_thread(
            self._add, document.filename, document.content, document.content_type
        )
        logger.info(f"Stored file {document.filename} with reference {ref}")
        return ref

    async def store_metadata(self, metadata: Dict[str, Any]) -> str:
        body = json.dumps(metadata, default=str).encode()
        ref = await asyncio.to_thread(self._add, 'metadata.json', body, 'application/json')
        logger.info(f"Stored metadata with reference {ref}")
        return ref


def create_content_store(settings: Dict[str, Any], delay: Optional[float] = None) -> ContentStore:
    """Build the store selected by the ``content_store`` setting."""
    if settings.get('content_store') == 'ipfs':
        return IPFSHTTPStore(settings['ipfs_api_url'], timeout=settings.get('external_call_timeout', 30.0))
    return SimulatedContentStore(settings.get('simulated_delay', 1.0) if delay is None else delay)


def format_ipfs_uri(uri: Optional[str], gateway: str = DEFAULT_GATEWAY) -> str:
    """Turn an ``ipfs://`` reference into a gateway URL; other URIs pass through."""
    if not uri:
        return ''
    if uri.startswith(IPFS_SCHEME):
        return gateway.rstrip('/') + '/' + uri[len(IPFS_SCHEME):]
    return uri


def is_valid_ipfs_hash(value: str) -> bool:
    """Loose CIDv0 check: starts with Qm and is at least 44 characters."""
    return value.startswith('Qm') and len(value) >= 44


def file_name_from_hash(value: str) -> str:
    return f"asset-doc-{value[:8]}.pdf"


__all__ = [
    'ContentStore', 'ContentStoreError', 'Document', 'SimulatedContentStore',
    'IPFSHTTPStore', 'create_content_store', 'format_ipfs_uri',
    'is_valid_ipfs_hash', 'file_name_from_hash', 'DEFAULT_GATEWAY'
]
