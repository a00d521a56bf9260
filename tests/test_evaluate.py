import pytest
import yak


def test_lookup(namespace):

    evaluator = yak.NamespaceEvaluator(namespace)

    assert evaluator('answer') == '42'
    assert evaluator('  answer  ') == '42'

    namespace['nothing'] = None
    assert evaluator('nothing') == ''


def test_constants_and_builtins(namespace):
    """ A bare name that is not bound in the namespace is still evaluated,
        so keyword constants and builtins work as expected.
    """

    evaluator = yak.NamespaceEvaluator(namespace)

    assert evaluator('None') == ''
    assert evaluator('True') == 'True'
    assert evaluator('False') == 'False'
    assert evaluator('len') == str(len)
    assert evaluator('len("four")') == '4'

    # A binding in the namespace takes precedence over a builtin.

    namespace['len'] = 7
    assert evaluator('len') == '7'


def test_undefined(namespace):

    evaluator = yak.NamespaceEvaluator(namespace)

    with pytest.raises(NameError) as caught:
        evaluator('ls')

    assert str(caught.value) == "undefined variable 'ls'"


def test_invoke(namespace):
    """ A bare name bound to a callable invokes it; a name followed by a
        comma invokes it with arguments. Either way the result is empty.
    """

    evaluator = yak.NamespaceEvaluator(namespace)

    assert evaluator('record') is None
    assert evaluator('record, 1') is None
    assert evaluator('record, answer, "x", [1, 2]') is None

    assert namespace['calls'] == [(), (1,), (42, 'x', [1, 2])]


def test_assign(namespace):

    evaluator = yak.NamespaceEvaluator(namespace)

    assert evaluator('x = 5') is None
    assert namespace['x'] == 5

    assert evaluator('y=x * 2') is None
    assert evaluator('y') == '10'

    assert evaluator('greeting = "hello world"') is None
    assert evaluator('greeting') == 'hello world'


def test_expression(namespace):

    evaluator = yak.NamespaceEvaluator(namespace)

    assert evaluator('answer == 42') == 'True'
    assert evaluator('answer + 1') == '43'
    assert evaluator('[answer] * 2') == '[42, 42]'
    assert evaluator('None') == ''

    # A comma after a name that is not callable makes a tuple.

    assert evaluator('answer, 1') == '(42, 1)'

    with pytest.raises(SyntaxError):
        evaluator('answer +')

    with pytest.raises(ZeroDivisionError):
        evaluator('answer / 0')


def test_empty_namespace():

    evaluator = yak.NamespaceEvaluator()

    assert evaluator('value = 3') is None
    assert evaluator.namespace['value'] == 3


def test_base_class():

    evaluator = yak.Evaluator()

    with pytest.raises(NotImplementedError):
        evaluator('anything')

    class Upper(yak.Evaluator):
        def evaluate(self, command):
            return command.upper()

    assert Upper()('quiet') == 'QUIET'


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
