"""
Shared test doubles.

FakeSession stands in for SNMPSession: it answers GETs and walks from an
OID -> value table and can be taken offline to simulate timeouts.
OIDs in `failing` time out on GET; walk roots in `failing` time out on walk.
"""

from typing import Dict, Iterable, List, Optional, Set

import pytest

from prtscan.exceptions import TransportError
from prtscan.models import SNMPTarget
from prtscan.oids import oid_sort_key
from prtscan.snmp.transport import VarBind


class FakeSession:
    """Scripted SNMP session."""

    def __init__(
        self,
        host: str = "10.0.0.5",
        values: Optional[Dict[str, object]] = None,
        offline: bool = False,
        failing: Iterable[str] = (),
        communities: Optional[Set[str]] = None,
    ):
        self.host = host
        self.values = dict(values or {})
        self.offline = offline
        self.failing = set(failing)
        self.communities = communities
        self.get_calls: List[List[str]] = []
        self.walk_calls: List[str] = []

    async def get(self, oids) -> List[VarBind]:
        oids = list(oids)
        self.get_calls.append(oids)
        if self.offline or self.failing.intersection(oids):
            raise TransportError(f"Timeout querying {self.host}", host=self.host, oid=oids[0])
        return [
            VarBind(oid=oid, value=self.values[oid]) if oid in self.values
            else VarBind(oid=oid, error="noSuchObject")
            for oid in oids
        ]

    async def walk(self, root_oid: str) -> List[VarBind]:
        self.walk_calls.append(root_oid)
        if self.offline or root_oid in self.failing:
            raise TransportError(f"Timeout walking {self.host}", host=self.host, oid=root_oid)
        prefix = root_oid.rstrip(".") + "."
        matched = sorted((oid for oid in self.values if oid.startswith(prefix)), key=oid_sort_key)
        return [VarBind(oid=oid, value=self.values[oid]) for oid in matched]


class FakeSessionFactory:
    """
    Maps target IPs to FakeSessions.

    Unknown IPs, and communities a session does not accept, get an
    offline session.
    """

    def __init__(self, sessions: Optional[Dict[str, FakeSession]] = None):
        self.sessions = dict(sessions or {})
        self.targets: List[SNMPTarget] = []

    def __call__(self, target: SNMPTarget) -> FakeSession:
        self.targets.append(target)
        session = self.sessions.get(target.ip)
        if session is None:
            return FakeSession(target.ip, offline=True)
        if session.communities is not None and target.community not in session.communities:
            return FakeSession(target.ip, offline=True)
        return session

    def ips(self) -> List[str]:
        return [t.ip for t in self.targets]


@pytest.fixture
def session_factory():
    return FakeSessionFactory()
