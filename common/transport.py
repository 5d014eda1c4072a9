from __future__ import annotations

from typing import Optional

from requests.adapters import BaseAdapter, HTTPAdapter
from requests.structures import CaseInsensitiveDict


class IdentifyingTransport(BaseAdapter):
    """
    Transport adapter that appends "(<client_name>/<version>)" to the User-Agent
    of every outbound request so the API provider can attribute traffic to this server.

    The caller's PreparedRequest is never touched: the header is set on a copy,
    which is then handed to the inner transport. Whatever the inner transport
    returns or raises is passed through as-is.
    """

    def __init__(self, transport: Optional[BaseAdapter] = None, client_name: str = "", version: str = ""):
        super().__init__()
        self.transport = transport if transport is not None else HTTPAdapter()
        self.client_name = client_name
        self.version = version

    @property
    def identity(self) -> str:
        return f"({self.client_name}/{self.version})"

    def user_agent_for(self, current: Optional[str]) -> str:
        if not current:
            return self.identity
        return f"{current} {self.identity}"

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        clone = request.copy()
        if clone.headers is None:
            clone.headers = CaseInsensitiveDict()
        clone.headers["User-Agent"] = self.user_agent_for(clone.headers.get("User-Agent"))
        return self.transport.send(
            clone,
            stream=stream,
            timeout=timeout,
            verify=verify,
            cert=cert,
            proxies=proxies,
        )

    def close(self) -> None:
        self.transport.close()
