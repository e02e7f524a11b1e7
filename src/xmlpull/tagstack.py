class TagStack:
    __slots__ = ("_names",)

    def __init__(self, names=None):
        self._names = list(names) if names else []

    def push(self, name):
        self._names.append(name)

    def pop(self):
        """Remove and return the innermost open name, or None when empty."""
        if not self._names:
            return None
        return self._names.pop()

    def peek(self):
        return self._names[-1] if self._names else None

    def copy(self):
        return TagStack(self._names)

    def __len__(self):
        return len(self._names)

    def __iter__(self):
        return iter(self._names)

    def __repr__(self):
        return f"TagStack({self._names!r})"
