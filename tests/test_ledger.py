"""Tests for the token minters."""

from concurrent.futures import ThreadPoolExecutor
from unittest import mock

import pytest
import requests

from ledger import SimulatedLedger, UnsupportedChainError, create_minter, token_symbol
from ledger.rpc import LedgerRPC, NodeAuthError, NodeConnectionError, NodeError


def _response(payload, status_code=200):
    response = mock.Mock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


def test_token_symbol():
    assert token_symbol("Downtown Office") == "TOKDOW"
    assert token_symbol("ab") == "TOKAB"


@pytest.mark.asyncio
async def test_simulated_ledger():
    result = await SimulatedLedger(0).mint("ethereum", "Office", "TOKOFF", 1000)

    assert result.contract_address.startswith("0x")
    assert len(result.contract_address) == 42
    assert len(result.transaction_hash) == 66

    with pytest.raises(UnsupportedChainError):
        await SimulatedLedger(0).mint("solana", "Office", "TOKOFF", 1000)


def test_create_minter():
    assert isinstance(create_minter({'ledger': 'simulated'}, delay=0), SimulatedLedger)
    minter = create_minter({'ledger': 'rpc', 'ledger_rpc_url': 'http://node:8545'})
    assert isinstance(minter, LedgerRPC)
    assert minter.url == 'http://node:8545'


@pytest.mark.asyncio
async def test_rpc_mint():
    client = LedgerRPC("http://node:8545")
    reply = _response({"jsonrpc": "2.0", "id": 1, "result": {
        "contractAddress": "0xabc", "transactionHash": "0xdef"
    }})

    with mock.patch.object(client.session, "post", return_value=reply) as post:
        result = await client.mint("polygon", "Office", "TOKOFF", 500)

    assert result.contract_address == "0xabc"
    assert result.transaction_hash == "0xdef"
    payload = post.call_args.kwargs["json"]
    assert payload["method"] == "token_create"
    assert payload["params"] == ["polygon", "Office", "TOKOFF", 500]
    assert payload["jsonrpc"] == "2.0"


def test_rpc_request_ids_increase():
    client = LedgerRPC("http://node:8545")
    with mock.patch.object(client.session, "post", return_value=_response({"result": {}})) as post:
        assert client.token_create("polygon", "Office", "TOKOFF", 1) == {}
        client.token_create("polygon", "Office", "TOKOFF", 1)
    ids = [c.kwargs["json"]["id"] for c in post.call_args_list]
    assert ids == [1, 2]


def test_rpc_request_ids_unique_across_threads():
    client = LedgerRPC("http://node:8545")
    ids = []

    def record(url, json, timeout):
        ids.append(json["id"])
        return _response({"result": {}})

    with mock.patch.object(client.session, "post", side_effect=record):
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(
                lambda _: client.token_create("polygon", "Office", "TOKOFF", 1),
                range(200)
            ))

    assert sorted(ids) == list(range(1, 201))


def test_rpc_node_error():
    client = LedgerRPC("http://node:8545")
    reply = _response({"error": {"code": -32000, "message": "out of gas"}}, status_code=500)

    with mock.patch.object(client.session, "post", return_value=reply):
        with pytest.raises(NodeError) as exc_info:
            client.token_create("polygon", "Office", "TOKOFF", 1)

    assert exc_info.value.code == -32000
    assert exc_info.value.method == "token_create"
    assert "Contract deployment failed" in str(exc_info.value)


def test_rpc_auth_and_connection_errors():
    client = LedgerRPC("http://node:8545", auth=("user", "pass"))
    assert client.session.auth == ("user", "pass")

    with mock.patch.object(client.session, "post", return_value=_response({}, status_code=401)):
        with pytest.raises(NodeAuthError):
            client.token_create("polygon", "Office", "TOKOFF", 1)

    with mock.patch.object(client.session, "post", side_effect=requests.exceptions.Timeout()):
        with pytest.raises(NodeConnectionError):
            client.token_create("polygon", "Office", "TOKOFF", 1)


@pytest.mark.asyncio
async def test_rpc_mint_rejects_malformed_result():
    client = LedgerRPC("http://node:8545")
    with mock.patch.object(client.session, "post", return_value=_response({"result": {"address": "0x1"}})):
        with pytest.raises(NodeError):
            await client.mint("ethereum", "Office", "TOKOFF", 1)

    with pytest.raises(UnsupportedChainError):
        await client.mint("bitcoin", "Office", "TOKOFF", 1)
