"""Tests for the content store adapters and IPFS helpers."""

import json
from unittest import mock

import pytest
import requests

from ipfs import (
    ContentStoreError, Document, IPFSHTTPStore, SimulatedContentStore,
    create_content_store, file_name_from_hash, format_ipfs_uri, is_valid_ipfs_hash
)


@pytest.mark.asyncio
async def test_simulated_store_returns_ipfs_references():
    store = SimulatedContentStore(0)

    file_ref = await store.store_file(Document(filename="a.pdf", content=b"1"))
    metadata_ref = await store.store_metadata({"name": "x"})

    for ref in (file_ref, metadata_ref):
        assert ref.startswith("ipfs://Qm")
        assert len(ref) == len("ipfs://Qm") + 26
    assert file_ref != metadata_ref


def test_simulated_metadata_delay_defaults_to_half():
    assert SimulatedContentStore(2.0).metadata_delay == 1.0


@pytest.mark.asyncio
async def test_http_store_adds_file():
    store = IPFSHTTPStore("http://ipfs.local:5001/")
    response = mock.Mock()
    response.json.return_value = {"Name": "a.pdf", "Hash": "QmAbc", "Size": "4"}

    with mock.patch.object(store.session, "post", return_value=response) as post:
        ref = await store.store_file(Document(filename="a.pdf", content=b"%PDF", content_type="application/pdf"))

    assert ref == "ipfs://QmAbc"
    args, kwargs = post.call_args
    assert args[0] == "http://ipfs.local:5001/api/v0/add"
    assert kwargs["params"] == {"pin": "true"}
    assert kwargs["files"]["file"] == ("a.pdf", b"%PDF", "application/pdf")


@pytest.mark.asyncio
async def test_http_store_sends_metadata_as_json():
    store = IPFSHTTPStore("http://ipfs.local:5001")
    response = mock.Mock()
    response.json.return_value = {"Hash": "QmMeta"}

    with mock.patch.object(store.session, "post", return_value=response) as post:
        ref = await store.store_metadata({"description": "Office", "sqft": 100})

    assert ref == "ipfs://QmMeta"
    filename, body, content_type = post.call_args.kwargs["files"]["file"]
    assert filename == "metadata.json"
    assert json.loads(body) == {"description": "Office", "sqft": 100}
    assert content_type == "application/json"


@pytest.mark.asyncio
async def test_http_store_errors():
    store = IPFSHTTPStore("http://ipfs.local:5001")

    with mock.patch.object(store.session, "post", side_effect=requests.exceptions.ConnectionError("refused")):
        with pytest.raises(ContentStoreError):
            await store.store_metadata({})

    response = mock.Mock()
    response.json.return_value = {"Message": "no Hash here"}
    with mock.patch.object(store.session, "post", return_value=response):
        with pytest.raises(ContentStoreError):
            await store.store_metadata({})


def test_create_content_store():
    assert isinstance(create_content_store({'content_store': 'simulated'}, delay=0), SimulatedContentStore)
    store = create_content_store({'content_store': 'ipfs', 'ipfs_api_url': 'http://node:5001'})
    assert isinstance(store, IPFSHTTPStore)
    assert store.api_url == 'http://node:5001'


def test_format_ipfs_uri():
    assert format_ipfs_uri("ipfs://QmAbc") == "https://ipfs.io/ipfs/QmAbc"
    assert format_ipfs_uri("ipfs://QmAbc", "https://gw.example/ipfs") == "https://gw.example/ipfs/QmAbc"
    assert format_ipfs_uri("https://example.com/a.pdf") == "https://example.com/a.pdf"
    assert format_ipfs_uri(None) == ""


def test_hash_helpers():
    assert is_valid_ipfs_hash("Qm" + "a" * 44)
    assert not is_valid_ipfs_hash("Qm123")
    assert not is_valid_ipfs_hash("bafy" + "a" * 50)
    assert file_name_from_hash("QmAbcdefghij") == "asset-doc-QmAbcdef.pdf"
