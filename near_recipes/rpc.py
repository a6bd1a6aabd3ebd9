"""
NEAR JSON-RPC client implementing the read-only ViewProvider interface.

Only view queries are issued: contract view calls, access key lists, account
state and the latest final block. Transactions are never broadcast from here;
the wallet does that.
"""

import base64
import json
import logging
from typing import Any, Dict, Iterable, List, Optional

import aiohttp
import base58

from .amounts import Amount
from .exceptions import NetworkError, ViewCallError
from .schemas import AccessKeyListView, AccountView, BlockView, parse_view
from .types import AccessKey, Action
from .utils import json_bytes

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_STORAGE_AMOUNT_PER_BYTE = 10**19


class NearRpcClient:
    """
    Async JSON-RPC client for a NEAR node.

    Args:
        node_url: RPC endpoint, e.g. https://rpc.mainnet.near.org
        http_session: Shared aiohttp session; one is created when omitted
        known_public_keys: Keys the wallet reported at login. When given, only
            these keys are considered for signing.
        storage_amount_per_byte: yoctoNEAR locked per byte of account storage
        timeout: Total request timeout in seconds
    """

    def __init__(
        self,
        node_url: str,
        http_session: Optional[aiohttp.ClientSession] = None,
        known_public_keys: Optional[Iterable[str]] = None,
        storage_amount_per_byte: int = DEFAULT_STORAGE_AMOUNT_PER_BYTE,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.node_url = node_url
        self._session = http_session
        self._owns_session = http_session is None
        self.known_public_keys = (
            set(known_public_keys) if known_public_keys is not None else None
        )
        self.storage_amount_per_byte = int(storage_amount_per_byte)
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._request_id = 0

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    def _http(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def _call(self, method: str, params: Dict[str, Any]) -> Any:
        """
        Send one JSON-RPC request and return its `result`.

        Raises:
            NetworkError: On transport failures, HTTP errors or RPC errors
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": str(self._request_id),
            "method": method,
            "params": params,
        }
        try:
            async with self._http().post(self.node_url, json=payload) as response:
                if response.status != 200:
                    text = await response.text()
                    raise NetworkError(
                        f"RPC {method} failed with HTTP {response.status}: {text[:200]}",
                        endpoint=self.node_url,
                        status_code=response.status,
                    )
                body = await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise NetworkError(
                f"RPC {method} request failed: {e}", endpoint=self.node_url
            ) from e

        if "error" in body:
            error = body["error"]
            raise NetworkError(
                f"RPC {method} returned an error: {error.get('message', error)}",
                endpoint=self.node_url,
                details={"error": error, "params": params},
            )
        return body["result"]

    async def _query(self, params: Dict[str, Any]) -> Dict[str, Any]:
        result = await self._call("query", params)
        # Contract panics come back as a successful response carrying `error`
        if isinstance(result, dict) and "error" in result:
            raise NetworkError(
                f"Query {params.get('request_type')} failed: {result['error']}",
                endpoint=self.node_url,
                details={"params": params, "error": result["error"]},
            )
        return result

    async def view(self, contract: str, method: str, args: Dict[str, Any]) -> Any:
        """Call a view method and decode its JSON result."""
        params = {
            "request_type": "call_function",
            "finality": "final",
            "account_id": contract,
            "method_name": method,
            "args_base64": base64.b64encode(json_bytes(args)).decode("ascii"),
        }
        try:
            result = await self._query(params)
        except NetworkError as e:
            raise ViewCallError(
                f"View call {contract}.{method} failed: {e}",
                contract=contract,
                method=method,
                endpoint=e.endpoint,
                status_code=e.status_code,
                details=e.details,
            ) from e

        raw = bytes(result.get("result", []))
        logger.debug(f"view {contract}.{method}({args}) -> {len(raw)} bytes")
        if not raw:
            return None
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ViewCallError(
                f"View call {contract}.{method} returned non-JSON data",
                contract=contract,
                method=method,
                endpoint=self.node_url,
            ) from e

    async def access_keys(self, account_id: str) -> List[AccessKey]:
        result = await self._query(
            {
                "request_type": "view_access_key_list",
                "finality": "final",
                "account_id": account_id,
            }
        )
        keys = parse_view(AccessKeyListView, result, "view_access_key_list").keys
        return [key.to_access_key() for key in keys]

    async def resolve_access_key(
        self, account_id: str, receiver_id: str, actions: List[Action]
    ) -> Optional[AccessKey]:
        """
        Pick the key that will sign `actions` for `receiver_id`.

        A function-call key that allows the call is preferred so the wallet
        can sign without a confirmation page; full access is the fallback.
        """
        keys = await self.access_keys(account_id)
        if self.known_public_keys is not None:
            keys = [key for key in keys if key.public_key in self.known_public_keys]

        function_call_keys = [
            key
            for key in keys
            if not key.is_full_access and key.allows(receiver_id, actions)
        ]
        if function_call_keys:
            return function_call_keys[0]

        for key in keys:
            if key.is_full_access:
                return key
        return None

    async def latest_final_block_hash(self) -> bytes:
        result = await self._call("block", {"finality": "final"})
        block = parse_view(BlockView, result, "block")
        return base58.b58decode(block.header.hash)

    async def native_balance(self, account_id: str) -> Amount:
        result = await self._query(
            {
                "request_type": "view_account",
                "finality": "final",
                "account_id": account_id,
            }
        )
        account = parse_view(AccountView, result, "view_account")
        return account.available_balance(self.storage_amount_per_byte)
