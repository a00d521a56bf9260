""" Configuration handling for Yak services. Each named service has a small
    JSON file recording where its server can be found, and any limits to
    apply to connections: the hostname and port, the read/write timeout
    in seconds, and the maximum payload length in bytes. A server
    registered under a service name writes the hostname and port; clients
    read them back via :func:`yak.get`.
"""

import os
import threading

from . import json


_cache = dict()
_cache_lock = threading.Lock()

defaults = dict()
defaults['hostname'] = None
defaults['port'] = None
defaults['timeout'] = None
defaults['maximum'] = None


class Configuration:
    """ A convenience class to represent the configuration of a single
        *service*. To first order an instance acts like a dictionary; any
        value not explicitly set is None.
    """

    def __init__(self, service):

        self.service = service.lower()
        self._block = dict(defaults)

        self.load()


    def __contains__(self, key):
        return self._block.get(key) is not None


    def __getitem__(self, key):
        return self._block[key]


    def __len__(self):
        """ The number of configured values; unset values do not count.
        """

        count = 0
        for value in self._block.values():
            if value is not None:
                count += 1

        return count


    def filename(self):
        """ Return the full path to the file where this configuration is
            stored.
        """

        base_dir = directory()
        return os.path.join(base_dir, 'service', self.service + '.json')


    def get(self, key, default=None):

        value = self._block.get(key)

        if value is None:
            return default

        return value


    def load(self):
        """ Load the configuration from disk. A missing file is not an
            error; it simply means nothing has been configured yet.
        """

        filename = self.filename()

        try:
            reader = open(filename, 'rb')
        except FileNotFoundError:
            return

        with reader:
            raw_json = reader.read()

        block = json.loads(raw_json)

        if isinstance(block, dict):
            pass
        else:
            raise ValueError('configuration file must contain a JSON object: ' + filename)

        self._block.update(block)


    def save(self):
        """ Write the configuration to disk, creating the configuration
            directory if necessary.
        """

        filename = self.filename()
        service_dir = os.path.dirname(filename)

        if os.path.exists(service_dir):
            if os.access(service_dir, os.W_OK) != True:
                raise OSError('cannot write to configuration directory: ' + service_dir)
        else:
            os.makedirs(service_dir, mode=0o775)

        raw_json = json.pretty(self._block)

        # Write to a temporary file and rename it into place, so that a
        # client never loads a partially written file.

        temporary = filename + '.tmp'
        with open(temporary, 'wb') as writer:
            writer.write(raw_json)

        os.replace(temporary, filename)


    def update(self, block, save=True):
        """ Update the configuration with the contents of the *block*
            dictionary, and save it to disk unless *save* is False.
        """

        self._block.update(block)

        if save == True:
            self.save()


# end of class Configuration



def directory(default=None):
    """ Return the base directory for Yak configuration files. The
        ``YAK_HOME`` environment variable takes precedence; otherwise the
        directory is ``.yak`` in the user's home directory. Passing an
        absolute *default* path overrides both, and creates the directory
        if needed. The answer is cached after the first call, so later
        changes to ``YAK_HOME`` have no effect unless a *default* is given.
    """

    if default is not None:
        chosen = os.path.expandvars(str(default))

        if not os.path.isabs(chosen):
            raise ValueError('configuration directory must be an absolute path: ' + chosen)

        os.makedirs(chosen, mode=0o775, exist_ok=True)

        os.environ['YAK_HOME'] = chosen
        directory.found = chosen

    if directory.found is None:
        chosen = os.environ.get('YAK_HOME')

        if chosen is None:
            user_home = os.environ.get('HOME')
            if user_home is None:
                raise RuntimeError('neither YAK_HOME nor HOME is set, cannot locate the Yak configuration directory')
            chosen = os.path.join(user_home, '.yak')

        directory.found = chosen

    return directory.found

directory.found = None



def forget(service=None):
    """ Discard the cached :class:`Configuration` for *service*, or for every
        service if none is specified. The next call to :func:`get` will load
        the configuration from disk again.
    """

    with _cache_lock:
        if service is None:
            _cache.clear()
        else:
            _cache.pop(service.lower(), None)



def get(service):
    """ Retrieve the locally cached :class:`Configuration` instance for
        the specified *service*, loading it from disk the first time. The
        service name is case-insensitive.
    """

    service = service.lower()

    try:
        config = _cache[service]
    except KeyError:
        with _cache_lock:
            try:
                config = _cache[service]
            except KeyError:
                config = Configuration(service)
                _cache[service] = config

    return config


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
