import os
import pytest
import socket

import yak


@pytest.fixture
def home(tmp_path, monkeypatch):
    """ Point the Yak configuration directory at a scratch location for the
        duration of a single test.
    """

    directory = os.path.join(str(tmp_path), 'yak')

    monkeypatch.setenv('YAK_HOME', directory)
    monkeypatch.setattr(yak.config.directory, 'found', None)
    yak.config.forget()

    yield directory

    yak.config.forget()
    yak.protocol.request.shutdown()


@pytest.fixture
def pair():
    """ Two connected :class:`yak.Connection` instances, one for each end
        of a socket pair. Tests use one end as the system under test and
        play the peer by hand on the other.
    """

    left, right = socket.socketpair()

    near = yak.Connection(left, 'near', 1)
    far = yak.Connection(right, 'far', 2)

    yield near, far

    near.close()
    far.close()


@pytest.fixture
def namespace():

    namespace = dict()
    namespace['answer'] = 42
    namespace['calls'] = list()
    namespace['record'] = lambda *args: namespace['calls'].append(args)

    return namespace


@pytest.fixture
def server(namespace):

    evaluator = yak.NamespaceEvaluator(namespace)
    instance = yak.Server(evaluator)

    yield instance

    instance.stop()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
