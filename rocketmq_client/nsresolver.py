"""Name server address resolvers and trace configuration."""

from __future__ import annotations

import os
import urllib.error
import urllib.request
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from . import rlog
from .auth import Credentials
from .message import AccessChannel

DEFAULT_NAMESRV_ADDR = "http://jmenv.tbsite.net:8080/rocketmq/nsaddr"
NAMESRV_ENV = "NAMESRV_ADDR"


class NsResolver(ABC):
    """Source of name server addresses."""

    @abstractmethod
    def resolve(self) -> Optional[list[str]]:
        """Return the current addresses, or None if there are none."""

    @abstractmethod
    def description(self) -> str:
        """Return a human-readable description of this resolver."""


class EnvResolver(NsResolver):
    """Reads ';'-separated addresses from the NAMESRV_ADDR variable."""

    def resolve(self) -> Optional[list[str]]:
        value = os.environ.get(NAMESRV_ENV, "")
        return value.split(";") if value else None

    def description(self) -> str:
        return "env resolver of var NAMESRV_ADDR"


class PassthroughResolver(NsResolver):
    """Returns a fixed address list, falling back to the environment."""

    def __init__(self, addr: Optional[list[str]], failback: Optional[NsResolver] = None) -> None:
        self.addr = addr
        self.failback = failback if failback is not None else EnvResolver()

    def resolve(self) -> Optional[list[str]]:
        if self.addr is not None:
            return self.addr
        return self.failback.resolve()

    def description(self) -> str:
        return f"passthrough resolver of [{' '.join(self.addr or [])}]"


class HttpResolver(NsResolver):
    """Fetches addresses over HTTP, keeping a local snapshot for outages."""

    def __init__(
        self,
        instance: str,
        domain: str = DEFAULT_NAMESRV_ADDR,
        *,
        timeout: float = 10.0,
        snapshot_dir: Optional[str | os.PathLike] = None,
        failback: Optional[NsResolver] = None,
    ) -> None:
        self.instance = instance
        self.domain = domain
        self.timeout = timeout
        self.snapshot_dir = Path(snapshot_dir) if snapshot_dir is not None else None
        self.failback = failback if failback is not None else EnvResolver()

    def resolve(self) -> Optional[list[str]]:
        addrs = self._get()
        if addrs:
            return addrs
        addrs = self._load_snapshot()
        if addrs:
            return addrs
        return self.failback.resolve()

    def description(self) -> str:
        return f"passthrough resolver of domain:{self.domain} instance:{self.instance}"

    def _get(self) -> Optional[list[str]]:
        try:
            with urllib.request.urlopen(self.domain, timeout=self.timeout) as resp:
                status = resp.status
                body = resp.read()
        except urllib.error.HTTPError as exc:
            rlog.error("name server http fetch failed",
                       {"NameServerDomain": self.domain, "err": exc, "StatusCode": exc.code})
            return None
        except (OSError, ValueError) as exc:
            rlog.error("name server http fetch failed",
                       {"NameServerDomain": self.domain, "err": exc})
            return None
        if status != 200:
            rlog.error("name server http fetch failed",
                       {"NameServerDomain": self.domain, "err": None, "StatusCode": status})
            return None
        if not body:
            return None
        self._save_snapshot(body)
        return body.decode("utf-8", errors="replace").split(";")

    def _save_snapshot(self, body: bytes) -> None:
        file_path = self.snapshot_file_path(self.instance)
        try:
            Path(file_path).write_bytes(body)
        except OSError as exc:
            rlog.error("name server snapshot save failed", {"filePath": file_path, "err": exc})
            return
        rlog.info("name server snapshot save successfully", {"filePath": file_path})

    def _load_snapshot(self) -> Optional[list[str]]:
        file_path = self.snapshot_file_path(self.instance)
        path = Path(file_path)
        if not path.exists():
            rlog.warning("name server snapshot local file not exists", {"filePath": file_path})
            return None
        try:
            data = path.read_bytes()
        except OSError:
            return None
        rlog.info("load the name server snapshot local file", {"filePath": file_path})
        return data.decode("utf-8", errors="replace").split(";")

    def snapshot_file_path(self, instance_name: str) -> str:
        """Return the snapshot file for ``instance_name``, creating its directory."""
        store = self.snapshot_dir
        if store is None:
            try:
                home = Path.home()
            except RuntimeError as exc:
                rlog.error("name server domain, can't get user home directory", {"err": exc})
                home = Path("")
            store = home / "logs" / "rocketmq_client" / "snapshot"
        if not store.exists():
            try:
                store.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                rlog.fatal("can't create name server snapshot directory",
                           {"path": str(store), "err": exc})
        return str(store / f"nameserver_addr-{instance_name}")


@dataclass
class TraceConfig:
    """Configuration of message tracing."""

    trace_topic: str = ""
    group_name: str = ""
    access: AccessChannel = AccessChannel.LOCAL
    namesrv_addrs: list[str] = field(default_factory=list)
    resolver: Optional[NsResolver] = None
    credentials: Credentials = field(default_factory=Credentials)