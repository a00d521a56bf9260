""" Evaluators turn the command string of a request into a result. A
    :class:`yak.Server` accepts any callable in this role: it is called with
    the command string, and either returns the result or raises an
    exception whose text becomes the error sent back to the client.
"""

import re
import threading


_assignment = re.compile(r'^\s*([A-Za-z_]\w*)\s*=(?!=)(.*)$', re.DOTALL)
_symbol = re.compile(r'^\s*([A-Za-z_]\w*)\s*$')
_invocation = re.compile(r'^\s*([A-Za-z_]\w*)\s*,(.*)$', re.DOTALL)


class Evaluator:
    """ Base class for evaluators. Subclasses implement :func:`evaluate`;
        instances are callable, and can be handed directly to a
        :class:`yak.Server`.
    """

    def __call__(self, command):
        return self.evaluate(command)


    def evaluate(self, command):
        """ Return the result of the *command* string. The result is reduced
            to text by the server; None becomes an empty result. Raise an
            exception to report an error.
        """

        raise NotImplementedError('evaluate() must be implemented by a subclass')


# end of class Evaluator



class NamespaceEvaluator(Evaluator):
    """ Evaluate commands against a dictionary of global bindings, the
        *namespace*; a new, empty namespace is created if one is not
        provided. Four forms of command are recognized:

        * ``name``: the value bound to *name*. If the value is callable it
          is instead invoked with no arguments, as for the next form.
        * ``name, arg, arg, ...``: if *name* is bound to a callable, it is
          invoked with the evaluated arguments. The result is empty.
        * ``name = expression``: bind the value of *expression* to *name*.
          The result is empty.
        * anything else is evaluated as a single Python expression, and the
          printed form of its value is the result.

        Several connections may share a single evaluator; access to the
        namespace is serialized.
    """

    def __init__(self, namespace=None):

        if namespace is None:
            namespace = dict()

        self.namespace = namespace
        self.lock = threading.RLock()


    def evaluate(self, command):

        with self.lock:
            return self._evaluate(command)


    def _evaluate(self, command):

        matched = _symbol.match(command)
        if matched:
            name = matched.group(1)

            if name in self.namespace:
                value = self.namespace[name]

                if callable(value):
                    value()
                    return None

                return _printed(value)

            # Not a global binding; it may still be a keyword constant such
            # as None, or a builtin.

            try:
                value = eval(name, self.namespace)
            except NameError:
                raise NameError("undefined variable '%s'" % (name)) from None

            return _printed(value)

        matched = _assignment.match(command)
        if matched:
            name = matched.group(1)
            expression = matched.group(2)
            self.namespace[name] = eval(expression, self.namespace)
            return None

        matched = _invocation.match(command)
        if matched:
            name = matched.group(1)
            value = self.namespace.get(name)

            if callable(value):
                arguments = eval('(' + matched.group(2) + ',)', self.namespace)
                value(*arguments)
                return None

        value = eval(command, self.namespace)
        return _printed(value)


# end of class NamespaceEvaluator



def _printed(value):
    """ Return the printed form of *value*.
    """

    if value is None:
        return ''

    return str(value)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
