"""
prtscan - SNMP Transport Primitives.

Async SNMPv2c GET and GETBULK subtree walk, independent of any vendor logic.

Features:
- Async/await with pysnmp.hlapi.v3arch.asyncio
- Prefix-based subtree boundary detection
- Per-varbind error flags (noSuchObject etc.) kept separate from
  whole-request failures
- Whole-request failures raise TransportError

The only retries performed are the SNMP-level retries configured on the
target; retry-with-mutation policy belongs to the caller.

Usage:
    from prtscan.models import SNMPTarget
    from prtscan.snmp.transport import SNMPSession

    session = SNMPSession(SNMPTarget("192.168.1.50", community="public"))

    varbinds = await session.get(["1.3.6.1.2.1.1.1.0"])
    if varbinds[0].ok:
        print(varbinds[0].text)

    supplies = await session.walk("1.3.6.1.2.1.43.11.1.1.6.1")
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from pysnmp.hlapi.v3arch.asyncio import (
    bulk_cmd, get_cmd,
    SnmpEngine, CommunityData,
    UdpTransportTarget, ContextData,
    ObjectType, ObjectIdentity,
)

from ..exceptions import TransportError
from ..models import SNMPTarget
from .values import PlainValue, decode_int, decode_string, error_name, to_plain

log = logging.getLogger("prtscan.snmp")


@dataclass(frozen=True)
class VarBind:
    """
    One (OID, value) pair from a response.

    error is set when this specific value is unavailable; the rest of
    the response is still usable.
    """
    oid: str
    value: PlainValue = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.value is not None

    @property
    def text(self) -> str:
        """Value as display text ("" when unavailable)."""
        return decode_string(self.value) if self.ok else ""

    @property
    def int_value(self) -> Optional[int]:
        return decode_int(self.value) if self.ok else None


class SNMPSession:
    """
    Async SNMPv2c session bound to one target.

    Attributes:
        target: SNMPTarget (host, community, timeout, retries, port)
        engine: pysnmp SnmpEngine, shared across sessions when supplied
        bulk_size: Max-repetitions for GETBULK
        max_iterations: Safety limit for walk iterations
    """

    def __init__(
        self,
        target: SNMPTarget,
        engine: Optional[SnmpEngine] = None,
        bulk_size: int = 25,
        max_iterations: int = 500,
    ):
        self.target = target
        self.engine = engine or SnmpEngine()
        self.bulk_size = bulk_size
        self.max_iterations = max_iterations
        self.auth = CommunityData(target.community, mpModel=1)

    @property
    def host(self) -> str:
        return self.target.ip

    async def _transport(self) -> UdpTransportTarget:
        try:
            return await UdpTransportTarget.create(
                (self.target.ip, self.target.port),
                timeout=self.target.timeout,
                retries=self.target.retries,
            )
        except Exception as e:
            raise TransportError(f"Cannot open transport to {self.target.ip}: {e}",
                                 host=self.target.ip) from e

    def _overall_timeout(self) -> float:
        # pysnmp handles per-request timeout; this bounds the whole exchange
        return self.target.timeout * (self.target.retries + 1) + 2

    async def get(self, oids: Sequence[str]) -> List[VarBind]:
        """
        GET one or more scalar OIDs in a single PDU.

        Returns:
            One VarBind per requested OID, in request order

        Raises:
            TransportError: timeout, unreachable host, malformed response
        """
        oids = list(oids)
        if not oids:
            return []

        transport = await self._transport()
        object_types = [ObjectType(ObjectIdentity(oid)) for oid in oids]

        try:
            error_indication, error_status, error_index, var_binds = await asyncio.wait_for(
                get_cmd(
                    self.engine,
                    self.auth,
                    transport,
                    ContextData(),
                    *object_types
                ),
                timeout=self._overall_timeout()
            )
        except asyncio.TimeoutError as e:
            raise TransportError(f"Timeout querying {self.target.ip}",
                                 host=self.target.ip, oid=oids[0]) from e
        except Exception as e:
            raise TransportError(f"SNMP GET failed on {self.target.ip}: {type(e).__name__}: {e}",
                                 host=self.target.ip, oid=oids[0]) from e

        if error_indication:
            log.debug(f"{self.target.ip}: GET {oids[0]}: {error_indication}")
            raise TransportError(f"{error_indication}", host=self.target.ip, oid=oids[0])

        if error_status:
            # Whole PDU rejected (e.g. noSuchName under v1 semantics); every
            # requested value is unavailable but the device did answer.
            status = error_status.prettyPrint()
            log.debug(f"{self.target.ip}: GET status {status} at index {error_index}")
            return [VarBind(oid=oid, error=status) for oid in oids]

        if len(var_binds) != len(oids):
            raise TransportError(
                f"Malformed response from {self.target.ip}: "
                f"expected {len(oids)} varbinds, got {len(var_binds)}",
                host=self.target.ip,
            )

        results = []
        for requested, var_bind in zip(oids, var_binds):
            oid, value = var_bind[0], var_bind[1]
            err = error_name(value)
            if err:
                results.append(VarBind(oid=requested, error=err))
            else:
                results.append(VarBind(oid=str(oid), value=to_plain(value)))
        return results

    async def walk(self, root_oid: str) -> List[VarBind]:
        """
        Walk every OID under root_oid using GETBULK.

        Stops when the response leaves the subtree, on endOfMibView,
        or after max_iterations requests.

        Raises:
            TransportError: any request in the walk failed
        """
        base_oid = root_oid.rstrip(".")
        prefix = base_oid + "."
        results: List[VarBind] = []
        last_oid = base_oid

        log.debug(f"Walking {base_oid} on {self.target.ip}")
        start_time = datetime.now()
        transport = await self._transport()

        for iteration in range(self.max_iterations):
            try:
                error_indication, error_status, error_index, var_binds = await asyncio.wait_for(
                    bulk_cmd(
                        self.engine,
                        self.auth,
                        transport,
                        ContextData(),
                        0,  # non-repeaters
                        self.bulk_size,  # max-repetitions
                        ObjectType(ObjectIdentity(last_oid)),
                        lexicographicMode=False
                    ),
                    timeout=self._overall_timeout()
                )
            except asyncio.TimeoutError as e:
                raise TransportError(f"Timeout walking {base_oid} on {self.target.ip}",
                                     host=self.target.ip, oid=base_oid) from e
            except Exception as e:
                raise TransportError(
                    f"SNMP walk failed on {self.target.ip}: {type(e).__name__}: {e}",
                    host=self.target.ip, oid=base_oid) from e

            if error_indication:
                raise TransportError(f"{error_indication}", host=self.target.ip, oid=base_oid)

            if error_status:
                log.debug(f"{self.target.ip}: walk {base_oid} status {error_status.prettyPrint()}")
                break

            if not var_binds:
                break

            in_subtree = False
            for var_bind in var_binds:
                oid_str, value = str(var_bind[0]), var_bind[1]
                if not oid_str.startswith(prefix) or error_name(value):
                    in_subtree = False
                    break
                results.append(VarBind(oid=oid_str, value=to_plain(value)))
                last_oid = oid_str
                in_subtree = True

            if not in_subtree or len(var_binds) < self.bulk_size:
                break
        else:
            log.warning(f"Walk of {base_oid} on {self.target.ip} hit {self.max_iterations} iterations")

        elapsed = (datetime.now() - start_time).total_seconds()
        log.debug(f"Walk {base_oid} on {self.target.ip}: {len(results)} results in {elapsed:.2f}s")
        return results


# =============================================================================
# Convenience Functions
# =============================================================================

async def snmp_get(
    target: SNMPTarget,
    oids: Sequence[str],
    engine: Optional[SnmpEngine] = None,
) -> List[VarBind]:
    """
    One-off SNMP GET.

    Example:
        varbinds = await snmp_get(SNMPTarget("192.168.1.50"), ["1.3.6.1.2.1.1.1.0"])
    """
    return await SNMPSession(target, engine=engine).get(oids)


async def snmp_walk(
    target: SNMPTarget,
    root_oid: str,
    engine: Optional[SnmpEngine] = None,
) -> List[VarBind]:
    """
    One-off SNMP subtree walk.

    Example:
        varbinds = await snmp_walk(SNMPTarget("192.168.1.50"), "1.3.6.1.2.1.43.11.1.1.6.1")
    """
    return await SNMPSession(target, engine=engine).walk(root_oid)
