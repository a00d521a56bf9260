""" Exception classes for Yak. There are two families: a
    :class:`TransportError` means the connection is no longer usable and
    has already been closed, while a :class:`RemoteError` is an ordinary
    outcome of a single request and leaves the connection open.
"""

import errno


class YakError(Exception):
    """ Base class for all Yak errors.
    """
    pass


class TransportError(YakError):
    """ Base class for all non-retriable errors: connection failures, I/O
        failures, and protocol violations. By the time one of these is
        raised the affected connection has been closed.
    """
    pass


class TransportConnectionError(TransportError):
    """ The transport could not establish a connection.
    """
    pass


class TransportTimeout(TransportError):
    """ A read or write did not complete within the configured timeout.
    """
    pass


class TransportPortError(TransportError):
    """ No suitable port could be bound.
    """
    pass


class TransportClosedError(TransportError):
    """ An operation was attempted on a closed connection.
    """

    errno = errno.EBADF

    def __init__(self, message='bad file descriptor: connection is closed'):
        super().__init__(message)


# ---------------- Protocol Errors ----------------

class ProtocolError(TransportError):
    """ Base class for framing errors. Once the framing is out of step there
        is no safe point to resume reading, so every protocol error is fatal
        to the connection.
    """
    pass


class TruncatedHeader(ProtocolError):
    """ The stream ended before a complete message header arrived.
    """

    def __init__(self, message='truncated message header', received=0):
        super().__init__(message)
        self.received = received


class MalformedHeader(ProtocolError):
    """ The message header contains an unexpected byte.
    """

    def __init__(self, expected, received):
        message = 'malformed message, expecting %s, got 0x%02x' % (expected, received)
        super().__init__(message)
        self.expected = expected
        self.received = received


class LengthOverflow(ProtocolError):
    """ The payload length in the message header cannot be represented.
    """
    pass


class MessageTooLong(ProtocolError):
    """ The payload length exceeds the configured maximum.
    """

    def __init__(self, length, maximum):
        message = 'message length %d exceeds maximum %d' % (length, maximum)
        super().__init__(message)
        self.length = length
        self.maximum = maximum


class TruncatedPayload(ProtocolError):
    """ The stream ended before the complete payload arrived.
    """
    pass


class MissingTerminator(ProtocolError):
    """ The payload is not followed by the final newline.
    """

    def __init__(self, received):
        message = "malformed message, expecting '\\n' (ASCII 0x0a), got 0x%02x" % (received)
        super().__init__(message)
        self.received = received


class UnexpectedType(ProtocolError):
    """ A reply arrived with a type other than result or error.
    """

    def __init__(self, type):
        message = 'unexpected message type received as answer: %r' % (type)
        super().__init__(message)
        self.type = type


# ---------------- Application Errors ----------------

class RemoteError(YakError):
    """ The peer answered a request with an error message. The text of the
        error is passed through verbatim.
    """

    def __init__(self, text):
        super().__init__(text)
        self.text = text


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
