"""Tree-walking evaluation of template expressions.

Expressions are parsed once at compile time with ``ast.parse`` and walked
here at render time against a `Frame`. Nothing is compiled or ``exec``-ed.

Name Resolution:
    1. names assigned by the template (``<% x = ... %>``, loop targets)
    2. the render locals
    3. ``locals`` (the locals mapping itself) and ``self`` (the render scope)
    4. environment globals (``len``, ``range``, ...)
    Anything else raises UndefinedError.

Deferred Values:
    Call results, filter results and arguments, the objects that attribute
    access and subscripts read from, and the final value of an output
    expression go through `resolve`: awaitables are awaited and coroutine
    functions are invoked, repeatedly, until a concrete value remains. Evaluation is
    sequential; each suspension finishes before the next expression starts.
"""

from __future__ import annotations

import ast
import asyncio
import concurrent.futures
import inspect
import operator
from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING, Any

from etch.environment.exceptions import UndefinedError

if TYPE_CHECKING:
    from etch.render_context import RenderContext

_MISSING = object()


async def resolve(value: Any) -> Any:
    """Unwrap deferred values until a concrete one is reached.

    Re-checks after every step, so a coroutine that returns a coroutine
    function (or another awaitable) is unwrapped too.

    Example:
        >>> async def later():
        ...     return "<p>ready</p>"
        >>> await resolve(later)
        '<p>ready</p>'
    """
    while True:
        if inspect.isawaitable(value):
            value = await value
        elif isinstance(value, concurrent.futures.Future):
            value = await asyncio.wrap_future(value)
        elif inspect.iscoroutinefunction(value):
            value = value()
        else:
            return value


class Frame:
    """Name-resolution scope for one render.

    ``vars`` holds template-assigned names; included templates share it with
    the template that includes them.
    """

    __slots__ = ("diag", "globals", "locals", "scope", "vars")

    def __init__(
        self,
        locals: Mapping[str, Any],  # noqa: A002
        *,
        scope: Any = None,
        globals: Mapping[str, Any] | None = None,  # noqa: A002
        diag: RenderContext | None = None,
    ):
        self.locals = locals
        self.scope = scope
        self.globals = globals or {}
        self.vars: dict[str, Any] = {}
        self.diag = diag

    def lookup(self, name: str) -> Any:
        value = self.vars.get(name, _MISSING)
        if value is not _MISSING:
            return value
        value = self.locals.get(name, _MISSING)
        if value is not _MISSING:
            return value
        if name == "locals":
            return self.locals
        if name == "self":
            return self.scope
        value = self.globals.get(name, _MISSING)
        if value is not _MISSING:
            return value
        raise UndefinedError(
            name,
            available_names=frozenset(self.vars) | frozenset(self.locals),
        )


def get_attribute(obj: Any, name: str) -> Any:
    """``obj.name`` for templates: mapping keys first, then attributes.

    Keys win for mappings so ``user.items`` reads the user's data rather than
    ``dict.items``; objects fall back to subscription.
    """
    if isinstance(obj, Mapping):
        try:
            return obj[name]
        except KeyError:
            return getattr(obj, name)
    try:
        return getattr(obj, name)
    except AttributeError:
        try:
            return obj[name]
        except (KeyError, TypeError, IndexError):
            raise AttributeError(
                f"'{type(obj).__name__}' object has no attribute '{name}'"
            ) from None


_BINOPS: dict[type[ast.operator], Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
    ast.MatMult: operator.matmul,
    ast.LShift: operator.lshift,
    ast.RShift: operator.rshift,
    ast.BitAnd: operator.and_,
    ast.BitOr: operator.or_,
    ast.BitXor: operator.xor,
}

_UNARYOPS: dict[type[ast.unaryop], Callable[[Any], Any]] = {
    ast.Not: operator.not_,
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
    ast.Invert: operator.invert,
}

_CMPOPS: dict[type[ast.cmpop], Callable[[Any, Any], Any]] = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.Is: operator.is_,
    ast.IsNot: operator.is_not,
    ast.In: lambda a, b: a in b,
    ast.NotIn: lambda a, b: a not in b,
}


async def evaluate(node: ast.expr, frame: Frame) -> Any:
    """Evaluate one expression node."""
    return await _DISPATCH[type(node)](node, frame)


async def _constant(node: ast.Constant, frame: Frame) -> Any:
    return node.value


async def _name(node: ast.Name, frame: Frame) -> Any:
    return frame.lookup(node.id)


async def _attribute(node: ast.Attribute, frame: Frame) -> Any:
    return get_attribute(await _base(node, frame), node.attr)


async def _subscript(node: ast.Subscript, frame: Frame) -> Any:
    obj = await _base(node, frame)
    return obj[await resolve(await evaluate(node.slice, frame))]


async def _base(node: ast.Attribute | ast.Subscript, frame: Frame) -> Any:
    """The object an attribute or subscript reads from, resolved if deferred."""
    return await resolve(await evaluate(node.value, frame))


async def _slice(node: ast.Slice, frame: Frame) -> slice:
    lower = await evaluate(node.lower, frame) if node.lower else None
    upper = await evaluate(node.upper, frame) if node.upper else None
    step = await evaluate(node.step, frame) if node.step else None
    return slice(lower, upper, step)


async def evaluate_arguments(
    args: list[ast.expr], keywords: list[ast.keyword], frame: Frame
) -> tuple[list[Any], dict[str, Any]]:
    """Evaluate call arguments left to right, expanding ``*`` and ``**``."""
    positional: list[Any] = []
    for arg in args:
        if isinstance(arg, ast.Starred):
            positional.extend(await evaluate(arg.value, frame))
        else:
            positional.append(await evaluate(arg, frame))
    named: dict[str, Any] = {}
    for kw in keywords:
        if kw.arg is None:
            named.update(await evaluate(kw.value, frame))
        else:
            named[kw.arg] = await evaluate(kw.value, frame)
    return positional, named


async def _call(node: ast.Call, frame: Frame) -> Any:
    func = await evaluate(node.func, frame)
    args, kwargs = await evaluate_arguments(node.args, node.keywords, frame)
    return await resolve(func(*args, **kwargs))


async def _binop(node: ast.BinOp, frame: Frame) -> Any:
    left = await evaluate(node.left, frame)
    right = await evaluate(node.right, frame)
    return _BINOPS[type(node.op)](left, right)


async def _unaryop(node: ast.UnaryOp, frame: Frame) -> Any:
    return _UNARYOPS[type(node.op)](await evaluate(node.operand, frame))


async def _boolop(node: ast.BoolOp, frame: Frame) -> Any:
    is_and = isinstance(node.op, ast.And)
    value: Any = None
    for operand in node.values:
        value = await evaluate(operand, frame)
        if is_and and not value:
            return value
        if not is_and and value:
            return value
    return value


async def _compare(node: ast.Compare, frame: Frame) -> bool:
    left = await evaluate(node.left, frame)
    for op, comparator in zip(node.ops, node.comparators, strict=True):
        right = await evaluate(comparator, frame)
        if not _CMPOPS[type(op)](left, right):
            return False
        left = right
    return True


async def _ifexp(node: ast.IfExp, frame: Frame) -> Any:
    if await evaluate(node.test, frame):
        return await evaluate(node.body, frame)
    return await evaluate(node.orelse, frame)


async def _elements(elts: list[ast.expr], frame: Frame) -> list[Any]:
    values: list[Any] = []
    for elt in elts:
        if isinstance(elt, ast.Starred):
            values.extend(await evaluate(elt.value, frame))
        else:
            values.append(await evaluate(elt, frame))
    return values


async def _list(node: ast.List, frame: Frame) -> list[Any]:
    return await _elements(node.elts, frame)


async def _tuple(node: ast.Tuple, frame: Frame) -> tuple[Any, ...]:
    return tuple(await _elements(node.elts, frame))


async def _set(node: ast.Set, frame: Frame) -> set[Any]:
    return set(await _elements(node.elts, frame))


async def _dict(node: ast.Dict, frame: Frame) -> dict[Any, Any]:
    result: dict[Any, Any] = {}
    for key, value in zip(node.keys, node.values, strict=True):
        if key is None:
            result.update(await evaluate(value, frame))
        else:
            result[await evaluate(key, frame)] = await evaluate(value, frame)
    return result


async def _joinedstr(node: ast.JoinedStr, frame: Frame) -> str:
    parts: list[str] = []
    for value in node.values:
        parts.append(str(await evaluate(value, frame)))
    return "".join(parts)


async def _formatted(node: ast.FormattedValue, frame: Frame) -> str:
    value = await evaluate(node.value, frame)
    if node.conversion == ord("r"):
        value = repr(value)
    elif node.conversion == ord("s"):
        value = str(value)
    elif node.conversion == ord("a"):
        value = ascii(value)
    spec = await evaluate(node.format_spec, frame) if node.format_spec else ""
    return format(value, spec)


_DISPATCH: dict[type[ast.AST], Callable[[Any, Frame], Awaitable[Any]]] = {
    ast.Constant: _constant,
    ast.Name: _name,
    ast.Attribute: _attribute,
    ast.Subscript: _subscript,
    ast.Slice: _slice,
    ast.Call: _call,
    ast.BinOp: _binop,
    ast.UnaryOp: _unaryop,
    ast.BoolOp: _boolop,
    ast.Compare: _compare,
    ast.IfExp: _ifexp,
    ast.List: _list,
    ast.Tuple: _tuple,
    ast.Set: _set,
    ast.Dict: _dict,
    ast.JoinedStr: _joinedstr,
    ast.FormattedValue: _formatted,
}

SUPPORTED_EXPRESSIONS: frozenset[type[ast.AST]] = frozenset(_DISPATCH)


async def assign(target: ast.expr, value: Any, frame: Frame) -> None:
    """Bind ``value`` to an assignment or loop target."""
    if isinstance(target, ast.Name):
        frame.vars[target.id] = value
    elif isinstance(target, (ast.Tuple, ast.List)):
        values = list(value)
        if len(values) != len(target.elts):
            raise ValueError(
                f"cannot unpack {len(values)} values into {len(target.elts)} targets"
            )
        for elt, item in zip(target.elts, values, strict=True):
            await assign(elt, item, frame)
    elif isinstance(target, ast.Attribute):
        _set_attribute(await _base(target, frame), target.attr, value)
    elif isinstance(target, ast.Subscript):
        obj = await _base(target, frame)
        obj[await resolve(await evaluate(target.slice, frame))] = value
    else:
        raise TypeError(f"cannot assign to {type(target).__name__}")


async def augment(node: ast.AugAssign, frame: Frame) -> None:
    """``target op= value``; the target is read, combined, then written back.

    The object and key of an attribute or subscript target are evaluated once
    and shared by the read and the write.
    """
    target = node.target
    combine = _BINOPS[type(node.op)]
    if isinstance(target, ast.Name):
        current = frame.lookup(target.id)
        frame.vars[target.id] = combine(current, await evaluate(node.value, frame))
    elif isinstance(target, ast.Attribute):
        obj = await _base(target, frame)
        current = get_attribute(obj, target.attr)
        _set_attribute(obj, target.attr, combine(current, await evaluate(node.value, frame)))
    elif isinstance(target, ast.Subscript):
        obj = await _base(target, frame)
        key = await resolve(await evaluate(target.slice, frame))
        obj[key] = combine(obj[key], await evaluate(node.value, frame))
    else:
        raise TypeError(f"cannot assign to {type(target).__name__}")


def _set_attribute(obj: Any, attr: str, value: Any) -> None:
    if isinstance(obj, dict):
        obj[attr] = value
    else:
        setattr(obj, attr, value)
