""" The :class:`Connection` owns a single connected TCP socket, and nothing
    else: it knows whether it is open, who the peer is, and how to move raw
    bytes in either direction. The framing of those bytes is handled in
    :mod:`yak.protocol.message`.
"""

import logging
import socket

from .exceptions import (
    TransportClosedError,
    TransportConnectionError,
    TransportError,
    TransportTimeout,
)

logger = logging.getLogger(__name__)

default_host = '127.0.0.1'
chunk_size = 65536


class Connection:
    """ A persistent, half-duplex byte stream to a single peer. A
        :class:`Connection` is normally created via :func:`connect` on the
        client side, or by a :class:`yak.Server` accepting an inbound
        connection; *sock* is the already connected socket, *peer* is the
        name or address of the remote end, and *port* is its port number.

        The optional *timeout* applies to every read and write on the
        socket; the optional *maximum* is the largest payload length that
        will be accepted when receiving a message. Both default to None,
        meaning no limit.

        Once closed, a :class:`Connection` is never reopened. Any attempt to
        use a closed connection raises :class:`TransportClosedError`.

        :ivar peer: The name of the peer, or None if closed.
        :ivar port: The port number of the peer, or 0 if closed.
    """

    def __init__(self, sock, peer=None, port=0, timeout=None, maximum=None):

        self.socket = sock
        self.peer = peer
        self.port = port
        self.maximum = maximum

        # There is no text transcoding or newline translation anywhere in
        # the read/write path; the socket is used as-is, in blocking mode
        # unless a timeout is requested.

        sock.settimeout(timeout)


    def __enter__(self):
        return self


    def __exit__(self, *exc_info):
        self.close()


    def __repr__(self):

        if self.is_open:
            return '<Connection %s:%d>' % (self.peer, self.port)
        else:
            return '<Connection closed>'


    def close(self):
        """ Close the connection. It is always safe to call this method,
            regardless of whether the connection is still open. The peer
            name and port number are cleared.
        """

        sock = self.socket
        self.socket = None
        self.peer = None
        self.port = 0

        if sock is None:
            return

        # Shutting down first wakes up any other thread blocked reading
        # from this socket, and tells the peer we are gone.

        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            logger.debug('error shutting down socket: %s', e)

        try:
            sock.close()
        except OSError as e:
            logger.debug('error closing socket: %s', e)


    def fileno(self):
        """ Return the file descriptor of the underlying socket. This is what
            allows a :class:`Connection` to be registered directly with a
            poller.
        """

        return self._socket().fileno()


    @property
    def is_open(self):
        return self.socket is not None


    def read(self, count):
        """ Read *count* bytes from the connection, blocking until they have
            all arrived. Fewer bytes are returned only if the peer closed its
            end of the connection. Data is received in bounded chunks so that
            a very large *count* only translates to memory as the bytes
            actually arrive.

            Any I/O error closes the connection before being raised as a
            :class:`TransportError`.
        """

        sock = self._socket()

        if count == 1:
            chunks = None
        else:
            chunks = bytearray()

        remaining = count

        while remaining > 0:
            try:
                chunk = sock.recv(min(remaining, chunk_size))
            except socket.timeout as e:
                self.close()
                raise TransportTimeout('read timed out') from e
            except OSError as e:
                self.close()
                raise TransportError('read failed: %s' % (e)) from e

            if chunk == b'':
                # Peer closed its end of the connection.
                break

            if chunks is None:
                return chunk

            chunks += chunk
            remaining -= len(chunk)

        if chunks is None:
            return b''

        return bytes(chunks)


    def write(self, data):
        """ Write all of *data* to the connection. Any I/O error closes the
            connection before being raised as a :class:`TransportError`.
        """

        sock = self._socket()

        try:
            sock.sendall(data)
        except socket.timeout as e:
            self.close()
            raise TransportTimeout('write timed out') from e
        except OSError as e:
            self.close()
            raise TransportError('write failed: %s' % (e)) from e


    def _socket(self):

        sock = self.socket

        if sock is None:
            raise TransportClosedError()

        return sock


# end of class Connection



def connect(host=None, port=None, timeout=None, maximum=None):
    """ Open a :class:`Connection` to the service listening on *host* and
        *port*; the loopback address is assumed if *host* is not specified.
        Every address the host name resolves to is tried in turn. A
        :class:`TransportConnectionError` is raised if no connection can be
        established, in which case no socket is left open.
    """

    if host is None:
        host = default_host

    port = _check_port(port)

    try:
        addresses = socket.getaddrinfo(host, port, socket.AF_UNSPEC, socket.SOCK_STREAM)
    except socket.gaierror as e:
        raise TransportConnectionError('cannot resolve %s: %s' % (host, e)) from e

    last_error = None

    for family, type, proto, canonname, address in addresses:
        try:
            sock = socket.socket(family, type, proto)
        except OSError as e:
            last_error = e
            continue

        try:
            sock.settimeout(timeout)
            sock.connect(address)
        except OSError as e:
            last_error = e
            sock.close()
            continue

        logger.debug('connected to %s:%d via %s', host, port, address[0])
        return Connection(sock, host, port, timeout, maximum)

    error = 'cannot connect to %s:%d' % (host, port)
    if last_error is not None:
        error = '%s: %s' % (error, last_error)

    raise TransportConnectionError(error) from last_error



def _check_port(port):

    if port is None:
        raise ValueError('a port number must be specified')

    try:
        port = int(port)
    except (TypeError, ValueError):
        raise ValueError('invalid port number: %r' % (port,))

    if port < 1 or port > 65535:
        raise ValueError('invalid port number: %d (must be 1-65535)' % (port))

    return port


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
