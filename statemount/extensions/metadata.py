"""Select states by their declared metadata."""

from contextlib import contextmanager
from typing import Any, Callable, Iterator, Mapping

from ..session import ExecutionContext, current_context, extend_context

MetadataPredicate = Callable[[Mapping[str, Any]], bool]


@contextmanager
def with_metadata(predicate: MetadataPredicate) -> Iterator[ExecutionContext]:
    """
    Only consider states whose metadata satisfies ``predicate``.

    Nested blocks require every predicate to hold.
    """
    outer = current_context().predicate
    if outer is None:
        combined = predicate
    else:
        def combined(metadata: Mapping[str, Any]) -> bool:
            return outer(metadata) and predicate(metadata)

    with extend_context(predicate=combined) as context:
        yield context


def metadata_matches(**expected: Any) -> MetadataPredicate:
    """Predicate that holds when the metadata has all ``expected`` items."""
    def predicate(metadata: Mapping[str, Any]) -> bool:
        return all(metadata.get(key) == value for key, value in expected.items())

    return predicate
