"""
core/blockchain.py — Chain Gateway
===================================
Abstraction layer over 2 possible ledger backends:
  1. "simulation" — in-memory Sui-like ledger, no external dependencies (start here)
  2. "sui"        — a Sui full node over JSON-RPC

Set BLOCKCHAIN_BACKEND in .env to switch.

Both backends expose the same two primitives the core relies on:
  resolve_object(id)     → ObjectSnapshot or None. Never raises: any read
                           error is treated as "does not exist".
  submit(call, signer)   → TransactionResult, or ChainSubmissionError.
                           Not idempotent — callers never retry blindly.
"""

import hashlib
import json
import logging
import secrets
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import httpx

from config import Settings
from core.errors import ChainSubmissionError
from core.signer import IssuerSigner

logger = logging.getLogger("suikyc.blockchain")

# Object type suffixes of the deployed Move package (prefix is the package id)
DID_OBJECT_TYPE = "::did_manager::DIDObject"
SCHEMA_OBJECT_TYPE = "::vc_manager::SchemaObject"
VC_OBJECT_TYPE = "::vc_manager::VCObject"
CLOCK_OBJECT_TYPE = "0x2::clock::Clock"


# ── Transaction and result types ──────────────────────────────────────────────
@dataclass(frozen=True)
class ObjectArg:
    """Reference to an existing on-chain object."""
    object_id: str


@dataclass(frozen=True)
class PureArg:
    """A plain value with its Move type tag (address, 0x1::string::String, vector<u8> ...)."""
    value: Any
    type_tag: str


@dataclass
class MoveCall:
    package: str
    module: str
    function: str
    arguments: List[Any] = field(default_factory=list)

    @property
    def target(self) -> str:
        return f"{self.package}::{self.module}::{self.function}"


@dataclass
class ObjectSnapshot:
    object_id: str
    object_type: str
    version: str = "1"
    fields: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CreatedObject:
    object_id: str
    object_type: str


@dataclass
class TransactionResult:
    digest: str
    created_objects: List[CreatedObject] = field(default_factory=list)

    def find_created(self, type_suffix: str) -> Optional[CreatedObject]:
        """First created object whose type ends with type_suffix."""
        for obj in self.created_objects:
            if obj.object_type.endswith(type_suffix):
                return obj
        return None


# ── Simulated Ledger (default, works with zero setup) ────────────────────────
class SimulatedChain:
    """
    In-memory ledger that understands the three entry functions of the
    KYC Move package. Objects are typed like their on-chain counterparts.
    Data resets when the server restarts (the DB mirror is what persists).
    """

    def __init__(self, package_id: str, issuer_did_id: str = "", clock_id: str = "0x6"):
        self.package_id = package_id
        self.issuer_did_id = issuer_did_id
        self.clock_id = clock_id
        self.objects: Dict[str, ObjectSnapshot] = {}
        self.transactions: List[dict] = []
        self._handlers: Dict[tuple, Callable] = {
            ("did_manager", "create_did"): self._create_did,
            ("vc_manager", "create_schema"): self._create_schema,
            ("vc_manager", "issue_vc"): self._issue_vc,
        }

    async def connect(self):
        logger.info("SimulatedChain: ready (in-memory mode)")
        self._put(self.clock_id, CLOCK_OBJECT_TYPE, {"timestamp_ms": self._now_ms()})
        if self.issuer_did_id:
            # The issuer's DID is deployed out of band on a real network
            self._put(self.issuer_did_id, self.package_id + DID_OBJECT_TYPE, {"controller": "issuer"})

    async def disconnect(self):
        logger.info("SimulatedChain: disconnected")

    async def ping(self) -> str:
        return f"ok — simulated chain, {len(self.objects)} objects, {len(self.transactions)} txs"

    async def resolve_object(self, object_id: str) -> Optional[ObjectSnapshot]:
        obj = self.objects.get(object_id)
        if obj is None:
            logger.warning(f"Object {object_id} does not exist")
        return obj

    async def submit(self, call: MoveCall, signer: IssuerSigner) -> TransactionResult:
        if call.package != self.package_id:
            raise ChainSubmissionError(f"Package {call.package} is not published on this chain")
        handler = self._handlers.get((call.module, call.function))
        if handler is None:
            raise ChainSubmissionError(f"No entry function {call.target}")

        creations = handler(call.arguments, signer)

        created = []
        for type_suffix, fields in creations:
            object_id = self._new_object_id()
            self._put(object_id, self.package_id + type_suffix, fields)
            created.append(CreatedObject(object_id, self.package_id + type_suffix))

        digest = self._digest(call, signer)
        self.transactions.append({
            "digest": digest,
            "target": call.target,
            "sender": signer.address,
            "created": [c.object_id for c in created],
        })
        logger.info(f"Tx {digest[:16]}... executed [{call.target}] created={len(created)}")
        return TransactionResult(digest=digest, created_objects=created)

    # ── Entry functions ────────────────────────────────────────────────────
    def _create_did(self, args: list, signer: IssuerSigner) -> list:
        if args:
            raise ChainSubmissionError("create_did takes no arguments")
        return [(DID_OBJECT_TYPE, {"controller": signer.address})]

    def _create_schema(self, args: list, signer: IssuerSigner) -> list:
        name, required_fields = self._pure_values(args, ["0x1::string::String", "vector<0x1::string::String>"])
        return [(SCHEMA_OBJECT_TYPE, {"name": name, "required_fields": list(required_fields)})]

    def _issue_vc(self, args: list, signer: IssuerSigner) -> list:
        if len(args) != 10:
            raise ChainSubmissionError(f"issue_vc expects 10 arguments, got {len(args)}")
        did = self._object(args[0], DID_OBJECT_TYPE)
        schema = self._object(args[1], SCHEMA_OBJECT_TYPE)
        self._object(args[9], CLOCK_OBJECT_TYPE)
        recipient, *values, proof = self._pure_values(
            args[2:9],
            ["address"] + ["0x1::string::String"] * 5 + ["vector<u8>"],
        )
        field_names = schema.fields["required_fields"]
        if len(field_names) != len(values):
            raise ChainSubmissionError("Claim count does not match schema")
        return [(VC_OBJECT_TYPE, {
            "issuer_did": did.object_id,
            "schema": schema.object_id,
            "recipient": recipient,
            "claims": dict(zip(field_names, values)),
            "proof": bytes(proof).hex(),
            "issued_at_ms": self._now_ms(),
        })]

    # ── Helpers ────────────────────────────────────────────────────────────
    def _object(self, arg: Any, type_suffix: str) -> ObjectSnapshot:
        if not isinstance(arg, ObjectArg):
            raise ChainSubmissionError(f"Expected an object argument, got {arg!r}")
        obj = self.objects.get(arg.object_id)
        if obj is None or not obj.object_type.endswith(type_suffix):
            raise ChainSubmissionError(f"Object {arg.object_id} is not a {type_suffix.lstrip(':')}")
        return obj

    def _pure_values(self, args: list, type_tags: List[str]) -> list:
        if len(args) != len(type_tags):
            raise ChainSubmissionError(f"Expected {len(type_tags)} arguments, got {len(args)}")
        values = []
        for arg, type_tag in zip(args, type_tags):
            if not isinstance(arg, PureArg) or arg.type_tag != type_tag:
                raise ChainSubmissionError(f"Expected a pure {type_tag} argument, got {arg!r}")
            values.append(arg.value)
        return values

    def _put(self, object_id: str, object_type: str, fields: dict):
        self.objects[object_id] = ObjectSnapshot(object_id, object_type, "1", fields)

    def _new_object_id(self) -> str:
        return "0x" + secrets.token_hex(32)

    def _digest(self, call: MoveCall, signer: IssuerSigner) -> str:
        payload = json.dumps({
            "target": call.target,
            "arguments": [repr(a) for a in call.arguments],
            "sender": signer.address,
            "seq": len(self.transactions),
            "nonce": secrets.token_hex(8),
        }, sort_keys=True)
        return hashlib.sha3_256(payload.encode()).hexdigest()

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)


# ── Sui Backend ───────────────────────────────────────────────────────────────
class SuiChain:
    """
    Connects to a Sui full node (localnet, devnet, testnet or mainnet).
    Requires: SUI_RPC_URL in .env

    Transactions are built node-side with unsafe_moveCall, signed locally
    by the issuer keypair, then executed with WaitForLocalExecution so the
    call returns only once effects are final.
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 30.0,
        gas_budget: int = 50_000_000,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.gas_budget = gas_budget
        self._transport = transport
        self.client: Optional[httpx.AsyncClient] = None
        self._request_id = 0

    async def connect(self):
        self.client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        chain_id = await self._rpc("sui_getChainIdentifier", [])
        logger.info(f"Sui connected — {self.rpc_url} chain {chain_id}")

    async def disconnect(self):
        if self.client:
            await self.client.aclose()
        self.client = None

    async def ping(self) -> str:
        try:
            checkpoint = await self._rpc("sui_getLatestCheckpointSequenceNumber", [])
            return f"ok — Sui checkpoint #{checkpoint}"
        except ChainSubmissionError as e:
            return f"unreachable — {e.message}"

    async def resolve_object(self, object_id: str) -> Optional[ObjectSnapshot]:
        try:
            result = await self._rpc("sui_getObject", [object_id, {"showType": True, "showContent": True}])
        except Exception as e:
            logger.warning(f"Object {object_id} could not be read: {e}")
            return None

        data = (result or {}).get("data")
        if not data:
            logger.warning(f"Object {object_id} does not exist: {(result or {}).get('error')}")
            return None
        content = data.get("content") or {}
        return ObjectSnapshot(
            object_id=data["objectId"],
            object_type=data.get("type", ""),
            version=str(data.get("version", "")),
            fields=content.get("fields", {}),
        )

    async def submit(self, call: MoveCall, signer: IssuerSigner) -> TransactionResult:
        built = await self._rpc("unsafe_moveCall", [
            signer.address,
            call.package,
            call.module,
            call.function,
            [],
            [self._encode_arg(a) for a in call.arguments],
            None,
            str(self.gas_budget),
        ])
        tx_bytes = self._expect(built, "txBytes", "unsafe_moveCall")

        result = await self._rpc("sui_executeTransactionBlock", [
            tx_bytes,
            [signer.sign_transaction(tx_bytes)],
            {"showEffects": True, "showObjectChanges": True},
            "WaitForLocalExecution",
        ])

        digest = self._expect(result, "digest", "sui_executeTransactionBlock")
        status = (result.get("effects") or {}).get("status") or {}
        if status.get("status") != "success":
            raise ChainSubmissionError(
                f"Transaction {digest} failed [{call.target}]: {status.get('error', 'unknown error')}"
            )

        created = [
            CreatedObject(change["objectId"], change.get("objectType", ""))
            for change in result.get("objectChanges") or []
            if change.get("type") == "created" and change.get("objectId")
        ]
        logger.info(f"Tx {digest} executed [{call.target}] created={len(created)}")
        return TransactionResult(digest=digest, created_objects=created)

    @staticmethod
    def _expect(result: Any, key: str, method: str) -> Any:
        if not isinstance(result, dict) or not result.get(key):
            raise ChainSubmissionError(f"{method} returned an unexpected result")
        return result[key]

    async def _rpc(self, method: str, params: list) -> Any:
        if not self.client:
            raise ChainSubmissionError("Not connected to Sui")
        self._request_id += 1
        payload = {"jsonrpc": "2.0", "id": self._request_id, "method": method, "params": params}
        try:
            response = await self.client.post(self.rpc_url, json=payload)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ChainSubmissionError(f"{method} failed: {e}")

        if body.get("error"):
            error = body["error"]
            raise ChainSubmissionError(f"{method} rejected: {error.get('message', error)}")
        return body.get("result")

    @staticmethod
    def _encode_arg(arg: Any) -> Any:
        if isinstance(arg, ObjectArg):
            return arg.object_id
        if isinstance(arg, PureArg):
            if isinstance(arg.value, (bytes, bytearray)):
                return list(arg.value)
            return arg.value
        raise ChainSubmissionError(f"Unsupported argument {arg!r}")


# ── Factory: picks the right backend from settings ───────────────────────────
def create_blockchain(settings: Settings):
    backend = settings.BLOCKCHAIN_BACKEND.lower()
    if backend == "sui":
        logger.info("Using Sui JSON-RPC backend")
        return SuiChain(
            rpc_url=settings.SUI_RPC_URL,
            timeout=settings.SUI_RPC_TIMEOUT,
            gas_budget=settings.SUI_GAS_BUDGET,
        )
    logger.info("Using simulated ledger backend (development mode)")
    return SimulatedChain(
        package_id=settings.SUI_PACKAGE_ID,
        issuer_did_id=settings.DID_OBJECT_ID,
        clock_id=settings.SUI_CLOCK_OBJECT_ID,
    )
