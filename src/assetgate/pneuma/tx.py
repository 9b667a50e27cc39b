"""
Transaction Executor - submit and evaluate contract operations.

Two call kinds, both addressed by a function name plus positional string
arguments that are passed through untouched:

- evaluate: a read-only query served by a single peer.  Not ordered, so it
  may observe state from before or after a submit that is still in flight.
- submit: endorse at a peer, order through an orderer, then wait until the
  peer reports the transaction's validation code.

No call is retried.  A submit that fails after the ``endorse`` stage may
still be committed by the ledger; callers must treat it as at-least-once.
"""

from __future__ import annotations

import binascii
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from ..errors import EvaluateError, SubmitError
from ..sigil.crypto import new_nonce, transaction_id
from ..utils import b64decode, b64encode, utc_now_rfc3339
from .rpc import RemoteCallError, creator, get_json, post_signed

if TYPE_CHECKING:
    from .gateway import Gateway, Network
    from .profile import Endpoint

DEFAULT_COMMIT_TIMEOUT = 120.0
DEFAULT_POLL_INTERVAL = 2.0

PENDING = "PENDING"
VALID = "VALID"


def _decode_result(data: dict[str, Any]) -> bytes:
    result = data.get("result")
    if result is None:
        return b""
    try:
        return b64decode(result)
    except (binascii.Error, ValueError, AttributeError) as exc:
        raise RemoteCallError(f"Malformed result payload: {exc}") from exc


@dataclass(frozen=True)
class Contract:
    network: "Network"
    name: str

    @property
    def gateway(self) -> "Gateway":
        return self.network.gateway

    def _base_url(self, endpoint: "Endpoint") -> str:
        return f"{endpoint.url}/v1/channels/{self.network.name}/chaincodes/{self.name}"

    def _peer(self) -> Optional["Endpoint"]:
        return self.network.peers[0] if self.network.peers else None

    def new_proposal(self, function: str, args: tuple[Any, ...]) -> dict[str, Any]:
        identity = self.gateway.identity
        nonce = new_nonce()
        return {
            "type": "proposal",
            "txId": transaction_id(nonce, identity.certificate),
            "nonce": b64encode(nonce),
            "channel": self.network.name,
            "chaincode": self.name,
            "function": function,
            "args": [str(arg) for arg in args],
            "creator": creator(identity),
            "timestamp": utc_now_rfc3339(),
        }

    # ---- evaluate ----

    def evaluate_transaction(self, function: str, *args: Any) -> bytes:
        """
        Run a read-only query on one peer.

        Returns:
            Raw result payload

        Raises:
            EvaluateError: Session closed, no peer, or the query failed
        """
        if self.gateway.closed:
            raise EvaluateError("Gateway session is closed", function=function)
        peer = self._peer()
        if peer is None:
            raise EvaluateError(f"No peers discovered on channel {self.network.name}", function=function)

        proposal = self.new_proposal(function, args)
        try:
            data = post_signed(
                self.gateway.client,
                f"{self._base_url(peer)}/evaluate",
                proposal,
                self.gateway.identity,
            )
            return _decode_result(data)
        except RemoteCallError as exc:
            raise EvaluateError(
                f"Failed to evaluate {function}: {exc}",
                function=function,
                tx_id=proposal["txId"],
            ) from exc

    # ---- submit ----

    def submit_transaction(
        self,
        function: str,
        *args: Any,
        commit_timeout: float = DEFAULT_COMMIT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> bytes:
        """
        Endorse, order and commit a state-changing transaction.

        Args:
            function: Contract function name
            *args: Positional arguments (coerced to str)
            commit_timeout: Seconds to wait for the validation code
            poll_interval: Seconds between commit status polls

        Returns:
            Raw result payload from endorsement

        Raises:
            SubmitError: With ``stage`` set to endorse, order or commit
        """
        if self.gateway.closed:
            raise SubmitError("Gateway session is closed", stage="endorse", function=function)
        peer = self._peer()
        if peer is None:
            raise SubmitError(
                f"No peers discovered on channel {self.network.name}",
                stage="endorse",
                function=function,
            )

        proposal = self.new_proposal(function, args)
        tx_id = proposal["txId"]

        def fail(stage: str, exc: Exception) -> SubmitError:
            return SubmitError(
                f"Failed to submit {function} ({stage}): {exc}",
                stage=stage,
                function=function,
                tx_id=tx_id,
            )

        # Stage 1: endorsement
        try:
            endorsed = post_signed(
                self.gateway.client,
                f"{self._base_url(peer)}/endorse",
                proposal,
                self.gateway.identity,
            )
            result = _decode_result(endorsed)
        except RemoteCallError as exc:
            raise fail("endorse", exc) from exc

        # Stage 2: ordering
        if not self.network.orderers:
            raise fail("order", RemoteCallError(f"no orderers discovered on channel {self.network.name}"))
        orderer = self.network.orderers[0]
        envelope = {
            "type": "transaction",
            "txId": tx_id,
            "channel": self.network.name,
            "proposal": proposal,
            "endorsements": endorsed.get("endorsements", []),
            "creator": creator(self.gateway.identity),
            "timestamp": utc_now_rfc3339(),
        }
        try:
            ordered = post_signed(
                self.gateway.client,
                f"{orderer.url}/v1/broadcast",
                envelope,
                self.gateway.identity,
            )
        except RemoteCallError as exc:
            raise fail("order", exc) from exc
        if ordered.get("status") != "SUCCESS":
            raise fail("order", RemoteCallError(f"orderer returned status {ordered.get('status')!r}"))

        # Stage 3: commit
        try:
            status = self.wait_for_commit(tx_id, timeout=commit_timeout, poll_interval=poll_interval)
        except (RemoteCallError, TimeoutError) as exc:
            raise fail("commit", exc) from exc
        if status != VALID:
            raise fail("commit", RemoteCallError(f"transaction {tx_id} invalidated with code {status}"))

        return result

    def wait_for_commit(
        self,
        tx_id: str,
        timeout: float = DEFAULT_COMMIT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> str:
        """
        Poll the peer until it reports a validation code for ``tx_id``.

        A 404 for the transaction counts as pending until ``timeout``.

        Returns:
            The validation code (e.g. "VALID", "MVCC_READ_CONFLICT")

        Raises:
            TimeoutError: If no code is reported within timeout
        """
        peer = self._peer()
        if peer is None:
            raise RemoteCallError(f"No peers discovered on channel {self.network.name}")
        url = f"{peer.url}/v1/channels/{self.network.name}/transactions/{tx_id}"

        start = time.monotonic()
        while True:
            try:
                status = get_json(self.gateway.client, url).get("status")
            except RemoteCallError as exc:
                # The peer has not seen the block carrying tx_id yet.
                if exc.status_code != 404:
                    raise
                status = PENDING
            if status and status != PENDING:
                return str(status)
            if time.monotonic() - start >= timeout:
                break
            time.sleep(poll_interval)

        raise TimeoutError(f"Transaction {tx_id} not committed within {timeout}s")
