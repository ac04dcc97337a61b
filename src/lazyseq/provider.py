"""
Boundary for providers that execute a pipeline somewhere else.

A provider receives a plan: the ordered list of operations requested on
a query, each holding the caller's functions as opaque descriptions. The
core validates arguments but never calls those functions on a provided
query; turning the plan into a foreign query and running it is the
provider's job. The plan runs when the query is first pulled.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, FrozenSet, Iterable, Optional, Tuple

from lazyseq.sequences import Cursor, IteratorCursor, Sequence

logger = logging.getLogger(__name__)

ORDERING_OPERATIONS = frozenset({"order_by", "order_by_descending", "then_by", "then_by_descending"})


@dataclass(frozen=True)
class Operation:
    """One requested operator and its (unevaluated) arguments."""
    name: str
    arguments: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class Negation:
    """Predicate description meaning "not predicate"; recorded by ``all``."""
    predicate: Callable[[Any], bool]

    def __call__(self, item: Any) -> bool:
        return not self.predicate(item)


@dataclass(frozen=True)
class KeyValueSelector:
    """Selector description producing ``(key, value)`` pairs; recorded by ``to_dict``."""
    key_selector: Callable[[Any], Any]
    value_selector: Optional[Callable[[Any], Any]] = None

    def __call__(self, item: Any) -> Tuple[Any, Any]:
        value = item if self.value_selector is None else self.value_selector(item)
        return self.key_selector(item), value


class QueryProvider(ABC):
    """Executes plans of operations outside the process."""

    supported_operations: FrozenSet[str] = frozenset({
        "where", "select", "distinct", "skip", "take", "group_by",
    }) | ORDERING_OPERATIONS

    def supports(self, name: str) -> bool:
        """Whether an operation can be recorded instead of run in process."""
        return name in self.supported_operations

    @abstractmethod
    def execute(self, plan: Tuple[Operation, ...]) -> Iterable[Any]:
        """Run the plan and return its results."""


class ProviderSequence(Sequence[Any]):
    """Results of a plan; every cursor executes the plan again."""

    def __init__(self, provider: QueryProvider, plan: Tuple[Operation, ...]):
        self.provider = provider
        self.plan = plan

    def cursor(self) -> Cursor[Any]:
        return IteratorCursor(self._execute)

    def _execute(self):
        logger.debug("Executing plan on %s: %s", type(self.provider).__name__,
                     [operation.name for operation in self.plan])
        return iter(self.provider.execute(self.plan))
