""" Thin wrapper around :mod:`msgspec` providing the equivalent of
    :func:`json.loads` and :func:`json.dumps`. This is used for the
    configuration files; message payloads are opaque bytes and never
    pass through here.
"""

import msgspec


# The msgspec 'encode' operation returns bytes; everything that uses this
# module is expected to read and write files in binary mode.

encoder = msgspec.json.Encoder()
decoder = msgspec.json.Decoder()

dumps = encoder.encode


def loads(raw_json):
    """ Decode the supplied *raw_json*, which may be bytes or a string.
        Invalid JSON raises a ValueError, the same as the standard
        library would.
    """

    try:
        return decoder.decode(raw_json)
    except msgspec.DecodeError as e:
        raise ValueError(str(e)) from e


def pretty(dumpable):
    """ Return the JSON encoding of *dumpable*, indented for the benefit of
        anyone reading a configuration file by hand.
    """

    raw_json = dumps(dumpable)
    return msgspec.json.format(raw_json, indent=4) + b'\n'


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
