""" A class representation of a Yak message, and the functions that map
    messages to and from the bytes on the wire. Nothing here performs any
    I/O of its own; :func:`decode` pulls bytes from whatever stream-like
    object it is handed.

    A message on the wire looks like this::

        type ':' length '\\n' payload '\\n'

    The *type* is a single ASCII character, the *length* is the decimal
    number of bytes in the *payload*, and the payload itself can contain
    anything at all, including embedded newlines, since it is delimited by
    its length rather than by the trailing newline.
"""

from ..exceptions import (
    LengthOverflow,
    MalformedHeader,
    MessageTooLong,
    MissingTerminator,
    TruncatedHeader,
    TruncatedPayload,
)
from . import fields


_colon = ord(fields.SEPARATOR)
_newline = ord(fields.NEWLINE)
_zero = ord('0')
_nine = ord('9')


class Message:
    """ The :class:`Message` is a very thin encapsulation of what it means to
        be a message in a Yak context: a single-character *type*, and the
        *payload* bytes. The length of the message is always derived from
        the payload, there is no way for the two to disagree.

        Iterating over a :class:`Message` yields the (type, payload) pair,
        so the result of :func:`yak.receive_message` can be unpacked
        directly into its two parts.

        :ivar type: The message type, a one-character string.
        :ivar payload: The message content, as bytes.
    """

    def __init__(self, type, payload=b''):

        self.type = _normalize_type(type)
        self.payload = _as_bytes(payload)


    def __bytes__(self):
        return self.encode()


    def __eq__(self, other):

        if isinstance(other, Message):
            return self.type == other.type and self.payload == other.payload

        return NotImplemented


    def __iter__(self):
        return iter((self.type, self.payload))


    def __repr__(self):
        return 'Message(%r, %r)' % (self.type, self.payload)


    def encode(self):
        """ Return the full frame for this message, ready to be written to
            the wire.
        """

        header = '%s:%d\n' % (self.type, len(self.payload))
        return header.encode('ascii') + self.payload + fields.NEWLINE


    @property
    def length(self):
        return len(self.payload)


    @property
    def text(self):
        """ The payload decoded as UTF-8. Invalid byte sequences are replaced
            rather than raising an exception; the bytes are always available
            via the *payload* attribute.
        """

        return self.payload.decode(fields.ENCODING, errors='replace')


# end of class Message



def encode(type, payload=b''):
    """ Return the bytes representing a single message of the given *type*
        with the given *payload*. The *type* is a single ASCII character,
        expressed as a string, bytes, or an integer; the *payload* can be a
        string (encoded as UTF-8), None (an empty payload), or any object
        supporting the buffer protocol.
    """

    return Message(type, payload).encode()



def decode(stream, maximum=None):
    """ Read exactly one message from *stream*, which must have a
        ``read(count)`` method that returns fewer than *count* bytes only
        when the stream has ended. A :class:`Message` is returned.

        The first read asks for the four bytes of the smallest possible
        header, which covers every message with a single-digit length in
        one call; longer headers are then read one byte at a time. The
        payload itself is always read in one request.

        If *maximum* is set, a header announcing a longer payload raises
        :class:`MessageTooLong` before any of the payload is read.
    """

    header = stream.read(fields.HEADER_MINIMUM)

    if len(header) < fields.HEADER_MINIMUM:
        raise TruncatedHeader(received=len(header))

    type = header[0]

    if type > 127:
        raise MalformedHeader('an ASCII message type', type)

    if header[1] != _colon:
        raise MalformedHeader("':' (ASCII 0x3a)", header[1])

    byte = header[2]
    if byte < _zero or byte > _nine:
        raise MalformedHeader('a digit', byte)

    length = byte - _zero
    byte = header[3]
    received = fields.HEADER_MINIMUM

    while byte != _newline:

        if byte < _zero or byte > _nine:
            raise MalformedHeader('a digit', byte)

        length = length * 10 + (byte - _zero)

        if length > fields.LENGTH_LIMIT:
            raise LengthOverflow('message length exceeds %d' % (fields.LENGTH_LIMIT))

        next_byte = stream.read(1)
        if len(next_byte) != 1:
            raise TruncatedHeader(received=received)

        byte = next_byte[0]
        received += 1

    if maximum is not None and length > maximum:
        raise MessageTooLong(length, maximum)

    if length > 0:
        payload = stream.read(length)
    else:
        payload = b''

    if len(payload) != length:
        error = 'truncated payload, expecting %d bytes, got %d' % (length, len(payload))
        raise TruncatedPayload(error)

    terminator = stream.read(1)

    if len(terminator) != 1:
        raise TruncatedPayload('truncated payload, missing final newline')

    if terminator[0] != _newline:
        raise MissingTerminator(terminator[0])

    return Message(chr(type), bytes(payload))



def _as_bytes(payload):
    """ Return the supplied *payload* as bytes.
    """

    if payload is None:
        return b''

    if isinstance(payload, bytes):
        return payload

    if isinstance(payload, str):
        return payload.encode(fields.ENCODING)

    # Anything else had better support the buffer protocol. Going through
    # a memoryview flattens multi-byte elements, for example a numpy array
    # of 32-bit integers, into their raw bytes.

    return memoryview(payload).tobytes()



def _normalize_type(type):
    """ Return the message *type* as a one-character string, raising a
        ValueError if it is not a single ASCII character.
    """

    if isinstance(type, int):
        if type < 0 or type > 127:
            raise ValueError('message type must be a single ASCII character, got %r' % (type))
        return chr(type)

    if isinstance(type, (bytes, bytearray)):
        type = type.decode('latin-1')

    if isinstance(type, str) and len(type) == 1 and type.isascii():
        return type

    raise ValueError('message type must be a single ASCII character, got %r' % (type,))


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
