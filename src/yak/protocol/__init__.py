from . import fields
from . import message
from . import request


"""
Yak Protocol Layer
==================

Message Model (message.py)
    Message representation, and the codec mapping it to and from bytes
    - encode()
    - decode()
    No I/O of its own: decode() reads from anything with a read() method

Field Vocabulary (fields.py)
    Type codes and framing constants
    Prevents string drift across the system

Request/Response (request.py)
    One round trip per request, strictly half-duplex
    - send_message() / receive_message()
    - request()
    - Client
    - Server

---------------------------------------------------------------------

Below the Protocol Layer
------------------------

Connection (yak.connection)
    Moves raw bytes over one TCP socket
    Open/closed state and peer identity only

---------------------------------------------------------------------

Error Policy
------------

Any I/O or framing failure closes the connection before the exception is
raised; there is no safe way to resynchronize with a peer once a message
has been partially read or written. An error reported by the peer is an
ordinary answer, and leaves the connection open.

---------------------------------------------------------------------
"""


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
