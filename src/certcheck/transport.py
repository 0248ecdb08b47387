import errno
import logging
import select
import socket
import time
from pathlib import Path

import idna
from OpenSSL import SSL

from . import util
from .certificate import Certificate
from .chain import parse_pem_chain
from .exceptions import TransportError

__module__ = "certcheck.transport"

logger = logging.getLogger(__name__)


def load_pem_chain(path: str) -> tuple[list[Certificate], bytes]:
    """Reads every PEM certificate from a file, returning (chain, leftover bytes)"""
    data = Path(path).expanduser().read_bytes()
    logger.debug(f"read {len(data)} bytes from {path}")
    return parse_pem_chain(data)


def prepare_context() -> SSL.Context:
    ctx = SSL.Context(SSL.TLS_CLIENT_METHOD)
    # the presented chain is evaluated afterwards, never rejected during the handshake
    ctx.set_verify(SSL.VERIFY_NONE, lambda *args: True)
    return ctx


def _handshake(conn: SSL.Connection, sock: socket.socket, timeout: int) -> None:
    deadline = time.monotonic() + timeout
    while True:
        try:
            conn.do_handshake()
            return
        except (SSL.WantReadError, SSL.WantWriteError) as ex:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise TimeoutError(f"TLS handshake timed out after {timeout}s") from ex
            if isinstance(ex, SSL.WantReadError):
                ready = select.select([sock], [], [], remaining)[0]
            else:
                ready = select.select([], [sock], [], remaining)[1]
            if not ready:
                raise TimeoutError(f"TLS handshake timed out after {timeout}s") from ex


def fetch_chain(
    host: str, port: int = 443, server_name: str = None, timeout: int = 10
) -> tuple[list[Certificate], str]:
    """Performs a TLS handshake and returns (presented chain, peer IP address)

    SNI is sent for server_name (or host) unless it is an IP address.
    Timeouts, resets and refusals propagate as the built-in exceptions.
    """
    server_name = server_name or host
    logger.info(f"{host}:{port} retrieving certificate chain (SNI {server_name})")
    sock = socket.create_connection((host, port), timeout=timeout)
    try:
        peer_address = sock.getpeername()[0]
        sock.setblocking(False)
        conn = SSL.Connection(prepare_context(), sock)
        if server_name and not util.is_ip_address(server_name):
            conn.set_tlsext_host_name(idna.encode(server_name))
        conn.set_connect_state()
        try:
            _handshake(conn, sock, timeout)
        except SSL.SysCallError as ex:
            if ex.args and ex.args[0] == errno.ECONNRESET:
                raise ConnectionResetError(
                    errno.ECONNRESET, f"connection reset by {host}:{port}"
                ) from ex
            raise TransportError(f"{host}:{port} TLS handshake failed: {ex}") from ex
        except SSL.Error as ex:
            raise TransportError(f"{host}:{port} TLS handshake failed: {ex}") from ex
        chain = [Certificate(cert) for cert in conn.get_peer_cert_chain() or []]
        logger.debug(f"{host}:{port} peer {peer_address} presented {len(chain)} certs")
        return chain, peer_address
    finally:
        sock.close()
