import io
import pytest
import yak

try:
    import numpy
except ImportError:
    numpy = None


def decode(raw, maximum=None):
    return yak.decode(io.BytesIO(raw), maximum)


def test_encode():

    assert yak.encode('X', b'hello') == b'X:5\nhello\n'
    assert yak.encode('R', 'hello') == b'R:5\nhello\n'
    assert yak.encode(b'E', b'') == b'E:0\n\n'
    assert yak.encode(ord('X'), None) == b'X:0\n\n'

    # The length is the number of bytes, not characters.

    assert yak.encode('X', 'caf\u00e9') == b'X:5\ncaf\xc3\xa9\n'

    payload = b'a' * 123
    encoded = yak.encode('X', payload)
    assert encoded.startswith(b'X:123\n')
    assert encoded.endswith(payload + b'\n')
    assert len(encoded) == 6 + 123 + 1


def test_encode_bad_type():

    for bad_type in ('', 'XY', '\u00e9', b'XY', 200, -1, None):
        with pytest.raises(ValueError):
            yak.encode(bad_type, b'hello')


def test_encode_buffer():

    assert yak.encode('X', bytearray(b'abc')) == b'X:3\nabc\n'
    assert yak.encode('X', memoryview(b'abc')) == b'X:3\nabc\n'

    if numpy is not None:
        array = numpy.arange(4, dtype=numpy.uint16)
        encoded = yak.encode('X', array)
        assert encoded == b'X:8\n' + array.tobytes() + b'\n'


def test_round_trip():
    """ Payloads are delimited by their length, so any byte at all can
        appear in them, including the newline used to terminate a message.
    """

    payloads = (
        b'',
        b'\n',
        b'\n\n\n',
        b'\x00',
        b'X:5\nhello\n',
        bytes(range(256)),
        b'x' * 10,
        b'y' * 99999,
    )

    for payload in payloads:
        for type in ('X', 'R', 'E', 'Z', ':'):
            message = decode(yak.encode(type, payload))
            assert message.type == type
            assert message.payload == payload
            assert message.length == len(payload)


def test_sequential():

    stream = io.BytesIO(yak.encode('X', 'one') + yak.encode('R', '') + yak.encode('E', 'three'))

    assert tuple(yak.decode(stream)) == ('X', b'one')
    assert tuple(yak.decode(stream)) == ('R', b'')
    assert tuple(yak.decode(stream)) == ('E', b'three')

    with pytest.raises(yak.TruncatedHeader):
        yak.decode(stream)


def test_minimal_header():

    message = decode(b'R:0\n\n')
    assert message.type == 'R'
    assert message.payload == b''
    assert message.text == ''


def test_multi_digit_length():

    payload = b'z' * 123
    stream = io.BytesIO(b'X:123\n' + payload + b'\nleftover')
    message = yak.decode(stream)

    assert message.payload == payload
    assert stream.read() == b'leftover'


def test_leading_zeros():

    message = decode(b'X:005\nhello\n')
    assert message.payload == b'hello'


def test_truncated_header():

    for raw in (b'', b'X', b'X:', b'X:5'):
        with pytest.raises(yak.TruncatedHeader) as caught:
            decode(raw)
        assert caught.value.received == len(raw)

    with pytest.raises(yak.TruncatedHeader):
        decode(b'X:12')

    with pytest.raises(yak.TruncatedHeader):
        decode(b'X:1234')


def test_malformed_header():

    with pytest.raises(yak.MalformedHeader) as caught:
        decode(b'X;5\nhello\n')

    assert caught.value.received == ord(';')
    assert "':'" in str(caught.value)

    bad_headers = (
        b'X:a\nhello\n',
        b'X:\n\nhello\n',
        b'X:5a\nhello\n',
        b'X:12 \n',
        b'X:1-\n',
        b'\xff:5\nhello\n',
    )

    for raw in bad_headers:
        with pytest.raises(yak.MalformedHeader):
            decode(raw)


def test_length_overflow():

    with pytest.raises(yak.LengthOverflow):
        decode(b'X:99999999999999999999\n')

    with pytest.raises(yak.LengthOverflow):
        decode(b'X:9223372036854775808\n')


def test_truncated_payload():

    with pytest.raises(yak.TruncatedPayload):
        decode(b'X:5\nhel')

    with pytest.raises(yak.TruncatedPayload):
        decode(b'X:5\nhello')

    with pytest.raises(yak.TruncatedPayload):
        decode(b'X:0\n')


def test_missing_terminator():

    with pytest.raises(yak.MissingTerminator) as caught:
        decode(b'X:5\nhello!')

    assert caught.value.received == ord('!')

    with pytest.raises(yak.MissingTerminator):
        decode(b'X:4\nhello\n')


def test_maximum():

    message = decode(b'X:5\nhello\n', maximum=5)
    assert message.payload == b'hello'

    with pytest.raises(yak.MessageTooLong) as caught:
        decode(b'X:6\nhello!\n', maximum=5)

    assert caught.value.length == 6
    assert caught.value.maximum == 5


def test_protocol_errors_are_fatal():
    """ Every framing error is a TransportError, which callers treat as
        non-retriable; an error answer from the peer is not.
    """

    classes = (
        yak.TruncatedHeader,
        yak.MalformedHeader,
        yak.LengthOverflow,
        yak.MessageTooLong,
        yak.TruncatedPayload,
        yak.MissingTerminator,
        yak.UnexpectedType,
    )

    for error_class in classes:
        assert issubclass(error_class, yak.ProtocolError)
        assert issubclass(error_class, yak.TransportError)

    assert not issubclass(yak.RemoteError, yak.TransportError)


def test_message():

    message = yak.Message('R', 'result')

    assert message.type == 'R'
    assert message.payload == b'result'
    assert message.length == 6
    assert bytes(message) == b'R:6\nresult\n'
    assert message == yak.Message(b'R', b'result')
    assert message != yak.Message('E', b'result')

    type, payload = message
    assert type == 'R'
    assert payload == b'result'

    message = yak.Message('R', b'\xffbad')
    assert message.text == '\ufffdbad'


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
