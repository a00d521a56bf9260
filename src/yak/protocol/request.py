""" Classes and methods implemented here implement the request/response
    aspects of the client/server API. The protocol is strictly half-duplex:
    a client sends one command and blocks for exactly one reply, and a
    server answers commands, and nothing else.
"""

import atexit
import logging
import queue
import socket
import threading
import zmq

from .. import config
from ..connection import Connection, connect, default_host
from ..exceptions import (
    RemoteError,
    TransportError,
    TransportPortError,
    TruncatedHeader,
    UnexpectedType,
)
from . import fields
from . import message

logger = logging.getLogger(__name__)

minimum_port = 10079
maximum_port = 13679
zmq_context = zmq.Context()



def send_message(connection, type, payload=b''):
    """ Send a single message of the given *type* and *payload* on the
        supplied :class:`yak.Connection`. The connection is closed if
        anything goes wrong, including invalid arguments; a peer waiting on
        the other end must never be left blocked for a message that is not
        going to arrive.
    """

    try:
        frame = message.encode(type, payload)
        connection.write(frame)
    except Exception:
        connection.close()
        raise



def receive_message(connection):
    """ Receive a single message from the supplied :class:`yak.Connection`,
        returning a :class:`yak.Message` instance; unpacking the result
        yields the (type, payload) pair. Any failure closes the connection
        before the exception is raised: a partially read message leaves no
        safe place to resume reading.
    """

    try:
        return message.decode(connection, connection.maximum)
    except Exception:
        connection.close()
        raise



def request(connection, command):
    """ Send the *command* string to the peer on *connection*, and wait for
        the answer. A result is returned as a string; an error reported by
        the peer is raised as a :class:`yak.RemoteError`, and the connection
        remains open for further requests. A reply of any other type is a
        protocol violation, and closes the connection.
    """

    send_message(connection, fields.COMMAND, command)
    reply = receive_message(connection)

    if reply.type == fields.RESULT:
        return reply.text

    if reply.type == fields.ERROR:
        raise RemoteError(reply.text)

    connection.close()
    raise UnexpectedType(reply.type)



class Client:
    """ Issue requests over a persistent connection to a single server; the
        *port* number must be specified, the *address* defaults to the
        loopback address. A :class:`Client` instance is callable, invoking
        it is the same as calling :func:`request`.

        Requests from multiple threads are serialized: the protocol only
        allows one request in flight on any one connection.
    """

    def __init__(self, address=None, port=None, timeout=None, maximum=None):

        self.connection = connect(address, port, timeout, maximum)
        self.address = self.connection.peer
        self.port = self.connection.port
        self.lock = threading.Lock()


    def __call__(self, command):
        return self.request(command)


    def __enter__(self):
        return self


    def __exit__(self, *exc_info):
        self.close()


    def close(self):
        self.connection.close()


    @property
    def is_open(self):
        return self.connection.is_open


    def request(self, command):
        """ Send the *command* string to the server and return its answer.
            See :func:`request` for the handling of errors.
        """

        with self.lock:
            return request(self.connection, command)


# end of class Client



class Server:
    """ Accept connections on a TCP socket, and answer any commands that
        arrive on them. Commands are passed to the *evaluator*, which is any
        callable that accepts the command string and returns the result; if
        the evaluator raises an exception, the text of that exception is
        returned to the client as an error. See :mod:`yak.evaluate` for a
        ready-made evaluator.

        The default behavior is to listen on the loopback address, on the
        first available port in the default range. The *avoid* set
        enumerates port numbers that should not be automatically assigned;
        this is ignored if a fixed *port* is specified. Use an empty string
        for the *hostname* to listen on every interface.

        The optional *timeout* and *maximum* are applied to every accepted
        connection; see :class:`yak.Connection`. If a *service* name is
        provided, the hostname and port are saved in the configuration for
        that service, so that clients can find this server via
        :func:`yak.get`.

        Any number of :class:`Server` instances can be active at once.

        :ivar hostname: The hostname on which this server can be contacted.
        :ivar port: The port on which this server is listening for connections.
    """

    worker_count = 10
    poll_interval = 1000

    def __init__(self, evaluator, hostname=None, port=None, avoid=(),
                 timeout=None, maximum=None, service=None):

        if hostname is None:
            hostname = default_host

        self.evaluator = evaluator
        self.hostname = hostname
        self.timeout = timeout
        self.maximum = maximum
        self.service = service

        self.socket = self._listen(port, avoid)
        self.port = self.socket.getsockname()[1]

        if service is not None:
            block = dict()
            block['hostname'] = hostname
            block['port'] = self.port

            try:
                config.get(service).update(block)
            except Exception:
                self.socket.close()
                raise

        # Connections are only ever registered with the poller while they
        # are idle. A connection with data waiting is removed from the
        # poller and handed to a worker thread; the worker hands it back
        # via the ready queue when it is finished, and wakes up the poller
        # via the signal socket. The poller is only manipulated from the
        # thread running run().

        self.jobs = queue.SimpleQueue()
        self.ready = queue.SimpleQueue()
        self.connections = set()
        self.idle = dict()
        self.connections_lock = threading.Lock()

        internal = 'inproc://yak.Server:signal:%d' % (id(self))
        self._signal_rx = zmq_context.socket(zmq.PAIR)
        self._signal_rx.bind(internal)
        self._signal_tx = zmq_context.socket(zmq.PAIR)
        self._signal_tx.connect(internal)
        self._signal_lock = threading.Lock()

        logger.info('listening on %s:%d', hostname, self.port)

        self.shutdown = False
        self.thread = threading.Thread(target=self.run)
        self.thread.daemon = True
        self.thread.start()

        self.workers = list()
        for thread_number in range(self.worker_count):
            thread = threading.Thread(target=self._worker_main)
            thread.daemon = True
            thread.start()
            self.workers.append(thread)


    def __enter__(self):
        return self


    def __exit__(self, *exc_info):
        self.stop()


    def _listen(self, port, avoid):
        """ Return a listening socket bound to the requested *port*, or to
            the first available port in the default range if *port* is None.
        """

        if port is None:
            trials = list()
            avoided = list()

            for trial in range(minimum_port, maximum_port + 1):
                if trial in avoid:
                    avoided.append(trial)
                else:
                    trials.append(trial)

            # There are a lot of ports in the default range; surely one of
            # them is available? Re-take an avoided port only as a last resort.

            trials.extend(avoided)
        else:
            port = int(port)
            trials = (port,)

        for trial in trials:
            listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

            try:
                listener.bind((self.hostname, trial))
                listener.listen()
            except OSError:
                # Assume this port is in use.
                listener.close()
                continue

            return listener

        if port is None:
            error = 'no ports available in range %d:%d' % (minimum_port, maximum_port)
        else:
            error = 'port already in use: %d' % (port)

        raise TransportPortError(error)


    @property
    def active(self):
        """ The number of connections currently open.
        """

        with self.connections_lock:
            return len(self.connections)


    def req_handler(self, connection, command):
        """ Pass the *command* string to the evaluator, and send the result
            back on the *connection*. Subclasses can override this method to
            handle commands some other way, as long as exactly one reply is
            sent for each command.
        """

        # Reducing the result to bytes is part of the evaluation: a result
        # that cannot be printed is reported to the client as an error.

        try:
            result = self.evaluator(command)
            payload = _as_reply(result)
        except Exception as e:
            logger.debug('evaluation of %r failed', command, exc_info=True)
            reply_type = fields.ERROR
            payload = _as_reply(_error_text(e))
        else:
            reply_type = fields.RESULT

        peer = connection.peer

        try:
            send_message(connection, reply_type, payload)
        except TransportError as e:
            logger.warning('reply to %s failed: %s', peer, e)


    def req_incoming(self, connection):
        """ Handle exactly one incoming message on *connection*. Commands are
            handed off to :func:`req_handler`; error messages and messages of
            any other type are logged and otherwise ignored, a server never
            answers anything but a command. A malformed message closes the
            connection.
        """

        peer = connection.peer

        try:
            incoming = receive_message(connection)
        except TruncatedHeader as e:
            if e.received == 0:
                logger.debug('%s disconnected', peer)
            else:
                logger.warning('closed connection from %s: %s', peer, e)
            return
        except TransportError as e:
            logger.warning('closed connection from %s: %s', peer, e)
            return

        if incoming.type == fields.COMMAND:
            self.req_handler(connection, incoming.text)
        elif incoming.type == fields.ERROR:
            logger.warning('error message from %s: %s', peer, incoming.text)
        else:
            logger.info('ignoring %r message from %s: %s', incoming.type, peer, incoming.text)


    def run(self):

        # Plain sockets are registered with the poller by file descriptor,
        # which is also what the poller reports back for them. The idle
        # dictionary maps each registered descriptor to its connection.

        listener = self.socket.fileno()

        poller = zmq.Poller()
        poller.register(listener, zmq.POLLIN)
        poller.register(self._signal_rx, zmq.POLLIN)

        while self.shutdown == False:
            sockets = poller.poll(self.poll_interval)
            for active, flag in sockets:
                if active == self._signal_rx:
                    self._signal_rx.recv()
                    self._rearm(poller)
                elif active == listener:
                    self._accept(poller)
                else:
                    poller.unregister(active)
                    connection = self.idle.pop(active)
                    self.jobs.put(connection)


    def stop(self):
        """ Stop accepting connections, close any open connections, and shut
            down the background threads. Calling this more than once has no
            further effect.
        """

        if self.shutdown == True:
            return

        self.shutdown = True
        self._signal()
        self.thread.join()

        self.socket.close()

        with self.connections_lock:
            connections = tuple(self.connections)
            self.connections.clear()

        for connection in connections:
            connection.close()

        # The workers wake up on a None in the job queue, and put it back
        # again so that the next worker wakes up too.

        self.jobs.put(None)
        for thread in self.workers:
            thread.join(1)

        with self._signal_lock:
            self._signal_tx.close()
        self._signal_rx.close()

    close = stop


    def _accept(self, poller):

        try:
            sock, address = self.socket.accept()
        except OSError as e:
            logger.warning('accept failed: %s', e)
            return

        connection = Connection(sock, address[0], address[1], self.timeout, self.maximum)
        logger.info('accepted connection from %s:%d', address[0], address[1])

        with self.connections_lock:
            self.connections.add(connection)

        self._register(poller, connection)


    def _rearm(self, poller):
        """ Register any connections handed back by the worker threads with
            the *poller*, or forget them if they have been closed.
        """

        while True:
            try:
                connection = self.ready.get_nowait()
            except queue.Empty:
                break

            if connection.is_open and self.shutdown == False:
                self._register(poller, connection)
            else:
                with self.connections_lock:
                    self.connections.discard(connection)


    def _register(self, poller, connection):

        descriptor = connection.fileno()
        self.idle[descriptor] = connection
        poller.register(descriptor, zmq.POLLIN)


    def _signal(self):
        """ Wake up the thread running :func:`run`. The lock is required,
            ZeroMQ sockets are not thread-safe and any worker thread can be
            sending a signal.
        """

        with self._signal_lock:
            if self._signal_tx.closed:
                return
            self._signal_tx.send(b'')


    def _worker_main(self):
        """ This is the 'main' method for the worker threads responsible for
            handling incoming messages. Multiple threads are allocated to
            this function so that a long-running command on one connection
            does not hold up any other connection.
        """

        while True:
            connection = self.jobs.get()

            if connection is None:
                self.jobs.put(None)
                break

            try:
                self.req_incoming(connection)
            except Exception:
                logger.exception('unhandled error on connection to %s', connection.peer)
                connection.close()

            if self.shutdown == True:
                connection.close()
                continue

            self.ready.put(connection)
            self._signal()


# end of class Server



def _as_reply(result):
    """ Reduce the value returned by an evaluator to a reply payload, as
        bytes. Text that cannot be encoded as UTF-8, such as a lone
        surrogate, has the offending characters replaced.
    """

    if result is None:
        return b''

    if isinstance(result, (bytes, bytearray, memoryview)):
        return bytes(result)

    if isinstance(result, str):
        text = result
    else:
        text = str(result)

    return text.encode(fields.ENCODING, errors='replace')



def _error_text(exception):
    """ Return the text sent back to the client for an evaluator
        *exception*: its message, or its class name if the message is empty
        or cannot be printed.
    """

    name = exception.__class__.__name__

    try:
        text = str(exception)
    except Exception as e:
        logger.debug('cannot print %s exception: %s', name, e.__class__.__name__)
        text = ''

    if text == '':
        text = name

    return text



client_connections = dict()
client_lock = threading.Lock()

def client(address=None, port=None, timeout=None, maximum=None):
    """ Factory function for a :class:`Client` instance. Use of this method is
        encouraged to streamline re-use of established connections; a new
        :class:`Client` is created if the cached one has been closed.
    """

    if address is None:
        address = default_host

    key = (address, int(port))

    with client_lock:
        try:
            instance = client_connections[key]
        except KeyError:
            instance = None

        if instance is None or instance.is_open == False:
            instance = Client(address, port, timeout, maximum)
            client_connections[key] = instance

    return instance



def send(address, port, command):
    """ Use :func:`client` to connect to the specified *address* and *port*,
        and send the *command* string. This method blocks until the answer
        arrives, and returns it.
    """

    connection = client(address, port)
    return connection.request(command)



def shutdown():

    with client_lock:
        instances = tuple(client_connections.values())
        client_connections.clear()

    for instance in instances:
        instance.close()


atexit.register(shutdown)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
