from .tokenizer import EntityIterator
from .tokens import EntityType


def stream(source, opts=None, *, debug=False):
    """Yield ``(event, data)`` tuples for every entity in ``source``.

    Events are ``"start"`` with ``(name, attrs)``, ``"end"`` with the tag name,
    ``"text"`` and ``"comment"`` with their decoded content.
    """
    iterator = EntityIterator(source, opts, debug=debug)
    if not iterator.has_entity:
        return
    while True:
        kind = iterator.type
        if kind == EntityType.TAG_OPEN:
            yield "start", (iterator.value, iterator.parameters)
        elif kind == EntityType.TAG_CLOSE:
            yield "end", iterator.value
        elif kind == EntityType.COMMENT:
            yield "comment", iterator.value
        else:
            yield "text", iterator.value
        if not iterator.advance():
            break
