"""JSON-RPC client for a token factory node."""
import asyncio
import logging
import threading
from typing import Any, Optional

import requests

from . import LedgerError, MintResult, SUPPORTED_CHAINS, TokenMinter, UnsupportedChainError

logger = logging.getLogger(__name__)


class RPCError(LedgerError):
    """Base exception for RPC errors"""
    def __init__(self, message: str, code: Optional[int] = None, method: Optional[str] = None):
        self.code = code
        self.method = method
        super().__init__(f"RPC Error [{code}] in {method}: {message}" if code else message)


class NodeConnectionError(RPCError):
    """Raised when connection to node fails"""
    pass


class NodeAuthError(RPCError):
    """Raised when authentication failed"""
    pass


class NodeError(RPCError):
    """Error returned by the node

    Common error codes:
    -32600 - Invalid request
    -32601 - Method not found
    -32602 - Invalid params
    -32603 - Internal error
    -32000 - Contract deployment failed
    """
    ERROR_MESSAGES = {
        -32600: "Invalid request",
        -32601: "Method not found",
        -32602: "Invalid params",
        -32603: "Internal error",
        -32000: "Contract deployment failed",
    }

    def __init__(self, message: str, code: int, method: str):
        standard_msg = self.ERROR_MESSAGES.get(code, "Unknown error")
        full_msg = f"{standard_msg} - {message}" if message != standard_msg else message
        super().__init__(full_msg, code, method)


class RPCMethod:
    """Descriptor class for RPC methods"""
    def __init__(self, method_name: str):
        self.method_name = method_name

    def __get__(self, obj, objtype=None):
        if obj is None:
            return self

        def caller(*args) -> Any:
            return obj._call_method(self.method_name, *args)

        return caller


class LedgerRPC(TokenMinter):
    """Token factory RPC client"""

    def __init__(self, url: str, auth: Optional[tuple] = None, timeout: float = 30.0):
        self.url = url
        self.timeout = timeout

        self.session = requests.Session()
        if auth:
            self.session.auth = auth
        self.session.headers['content-type'] = 'application/json'

        self._request_id = 0
        self._request_id_lock = threading.Lock()

    def _get_request_id(self) -> int:
        # mint calls run on worker threads
        with self._request_id_lock:
            self._request_id += 1
            return self._request_id

    def _call_method(self, method: str, *args) -> Any:
        """Make RPC call to the node

        Raises:
            NodeConnectionError: Connection to node failed or the reply was malformed
            NodeAuthError: Authentication failed
            NodeError: Node returned an error object
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": list(args),
            "id": self._get_request_id()
        }

        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)

            if response.status_code == 401:
                raise NodeAuthError("Authentication failed - check ledger credentials")

            # error objects may come with a non-2xx status
            result = response.json()
            if result.get('error') is not None:
                error = result['error']
                raise NodeError(
                    error.get('message', 'Unknown error'),
                    error.get('code', -32603),
                    method
                )

            response.raise_for_status()
            return result['result']

        except requests.exceptions.Timeout as e:
            raise NodeConnectionError(f"Request timed out after {self.timeout} seconds") from e
        except requests.exceptions.ConnectionError as e:
            raise NodeConnectionError(f"Failed to connect to ledger node at {self.url}") from e
        except requests.exceptions.RequestException as e:
            raise NodeConnectionError(f"Request failed: {str(e)}") from e
        except (KeyError, ValueError, AttributeError) as e:
            raise NodeConnectionError(f"Invalid response format: {str(e)}") from e

    token_create = RPCMethod('token_create')

    async def mint(self, chain: str, name: str, symbol: str, supply: int) -> MintResult:
        if chain not in SUPPORTED_CHAINS:
            raise UnsupportedChainError(f"Unsupported chain: {chain}")
        result = await asyncio.to_thread(self.token_create, chain, name, symbol, supply)
        try:
            minted = MintResult(
                contract_address=result['contractAddress'],
                transaction_hash=result['transactionHash']
            )
        except (KeyError, TypeError) as e:
            raise NodeError(f"Malformed token_create result: {result!r}", -32603, 'token_create') from e
        logger.info(f"Minted {symbol} on {chain} at {minted.contract_address}")
        return minted


__all__ = ['LedgerRPC', 'RPCError', 'NodeConnectionError', 'NodeAuthError', 'NodeError']
