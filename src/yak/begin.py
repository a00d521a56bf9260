""" Implementation of the top-level :func:`get` method, the entry point for
    clients that know a service by name rather than by host and port.
"""

from . import config
from .protocol import request


def get(service):
    """ Return a connected :class:`yak.Client` for the named *service*, using
        the hostname, port, and limits recorded in its configuration. The
        same :class:`yak.Client` instance is returned on subsequent calls,
        as long as its connection remains open.
    """

    if service is None:
        raise ValueError('the service name must be specified')

    service = str(service)
    configuration = config.get(service)

    # The server may have been restarted on a different port since this
    # configuration was first loaded.

    configuration.load()
    port = configuration['port']

    if port is None:
        raise RuntimeError("no configuration available for '%s'" % (service))

    # A server listening on every interface records an empty hostname.

    hostname = configuration['hostname'] or None
    timeout = configuration['timeout']
    maximum = configuration['maximum']

    return request.client(hostname, port, timeout, maximum)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
