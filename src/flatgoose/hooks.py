"""Hook Pipeline — pre/post middleware around every model operation.

Each :class:`~flatgoose.schema.Schema` owns one :class:`HookChain`. Handlers
are registered per :class:`Operation` and phase while the schema is being
built; the chain is frozen once a model is created from it.

Invocation is the same for every operation (see :meth:`HookChain.run`):

    pre handlers (registration order) -> core operation -> post handlers

A failing pre handler aborts before the core operation runs. A failing
post handler stops the remaining post handlers, but the core operation has
already committed. Handler exceptions propagate unmodified.
"""

from __future__ import annotations

import inspect
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, TypeVar

from flatgoose.errors import InvalidArgumentError

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class Operation(StrEnum):
    """Every operation a model exposes."""

    CREATE = "create"
    SAVE = "save"
    INSERT_MANY = "insert_many"
    FIND = "find"
    FIND_ONE = "find_one"
    FIND_BY_ID = "find_by_id"
    FIND_BY_ID_AND_DELETE = "find_by_id_and_delete"
    FIND_BY_ID_AND_UPDATE = "find_by_id_and_update"
    FIND_ONE_AND_DELETE = "find_one_and_delete"
    FIND_ONE_AND_UPDATE = "find_one_and_update"
    UPDATE_ONE = "update_one"
    UPDATE_MANY = "update_many"
    DELETE_ONE = "delete_one"
    DELETE_MANY = "delete_many"
    REPLACE_ONE = "replace_one"
    COUNT_DOCUMENTS = "count_documents"
    EXISTS = "exists"

    @classmethod
    def parse(cls, name: Operation | str) -> Operation:
        """Resolve *name*, accepting camelCase spellings (``"findOne"``)."""
        if isinstance(name, Operation):
            return name
        if isinstance(name, str):
            snake = re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()
            try:
                return cls(snake)
            except ValueError:
                pass
        msg = f"Unknown operation: {name!r}"
        raise InvalidArgumentError(msg)


class Phase(StrEnum):
    PRE = "pre"
    POST = "post"

    @classmethod
    def parse(cls, name: Phase | str) -> Phase:
        try:
            return cls(name)
        except ValueError:
            msg = f"Hook phase must be 'pre' or 'post', got {name!r}"
            raise InvalidArgumentError(msg) from None


@dataclass
class HookContext:
    """State shared by the handlers of one operation call.

    Attributes:
        operation: The operation being run.
        model: Name of the model the operation targets.
        args: Operation arguments. Pre handlers may replace entries; the
            core operation reads its arguments from here.
        result: The core operation's result (set before post handlers run).
    """

    operation: Operation
    model: str
    args: dict[str, Any] = field(default_factory=dict)
    result: Any = None


Hook = Callable[[HookContext], Any]


class HookChain:
    """Ordered pre/post handlers keyed by operation."""

    def __init__(self) -> None:
        self._handlers: dict[tuple[Phase, Operation], list[Hook]] = {}
        self._frozen = False

    def register(self, phase: Phase | str, operation: Operation | str, fn: Hook) -> Hook:
        """Append *fn* to the handler list for *phase* x *operation*."""
        if self._frozen:
            msg = "Hooks cannot be registered after a model has been built from the schema"
            raise InvalidArgumentError(msg)
        if not callable(fn):
            msg = f"Hook must be callable, got {fn!r}"
            raise InvalidArgumentError(msg)
        if inspect.iscoroutinefunction(fn):
            msg = f"Hook {getattr(fn, '__name__', fn)!r} is a coroutine function; hooks run synchronously"
            raise InvalidArgumentError(msg)
        key = (Phase.parse(phase), Operation.parse(operation))
        self._handlers.setdefault(key, []).append(fn)
        return fn

    def handlers(self, phase: Phase | str, operation: Operation | str) -> tuple[Hook, ...]:
        key = (Phase.parse(phase), Operation.parse(operation))
        return tuple(self._handlers.get(key, ()))

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def run(self, context: HookContext, core: Callable[[HookContext], _T]) -> _T:
        """Run pre handlers, then *core*, then post handlers."""
        for fn in self.handlers(Phase.PRE, context.operation):
            fn(context)

        result = core(context)
        context.result = result

        post = self.handlers(Phase.POST, context.operation)
        for fn in post:
            fn(context)

        if post:
            logger.debug(
                "Ran hooks for %s.%s (%d post)", context.model, context.operation, len(post)
            )
        return result
