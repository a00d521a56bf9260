""" Python implementation of Yak, yet another kind of messaging system. A
    client sends a command over a persistent connection and receives
    exactly one answer; a server answers commands by handing them to an
    evaluator.
"""

# Utility components.

from . import exceptions
from . import json

from .exceptions import (
    YakError,
    TransportError,
    TransportConnectionError,
    TransportTimeout,
    TransportPortError,
    TransportClosedError,
    ProtocolError,
    TruncatedHeader,
    MalformedHeader,
    LengthOverflow,
    MessageTooLong,
    TruncatedPayload,
    MissingTerminator,
    UnexpectedType,
    RemoteError,
)

# Submodules used by multiple other components.

from . import config
home = config.directory

from . import connection
from . import protocol
from . import evaluate

# Primary public-facing interfaces.

from . import begin
get = begin.get

from .connection import Connection, connect
from .protocol.message import Message, encode, decode
from .protocol.request import (
    Client,
    Server,
    client,
    receive_message,
    request,
    send,
    send_message,
)
from .evaluate import Evaluator, NamespaceEvaluator

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
