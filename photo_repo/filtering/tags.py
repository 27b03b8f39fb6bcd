from typing import AbstractSet, Iterable, List, Set, Tuple

from .expression import Expression, compile_expression


class TagFilter:
    """
    Decides which photos belong in the output directory.

    A photo matches when:
      1. none of its tags is disallowed,
      2. it carries every required tag,
      3. every boolean expression evaluates true against its tags.
    Empty sets and an empty expression list do not reject anything.
    """
    def __init__(self,
                 required: Iterable[str] = (),
                 disallowed: Iterable[str] = (),
                 bool_expr: Iterable[str] = ()):
        self.required: Set[str] = _as_set(required)
        self.disallowed: Set[str] = _as_set(disallowed)
        self._compiled: List[Tuple[str, Expression]] = _compile_all(bool_expr)

    @property
    def bool_expr(self) -> List[str]:
        return [text for text, _ in self._compiled]

    def matches(self, tags: AbstractSet[str]) -> bool:
        if self.disallowed and not self.disallowed.isdisjoint(tags):
            return False
        if self.required and not self.required.issubset(tags):
            return False
        return all(expr.evaluate(tags) for _, expr in self._compiled)

    # --- Mutators ---
    # Each one validates everything before touching any field.

    def add(self,
            required: Iterable[str] = (),
            disallowed: Iterable[str] = (),
            bool_expr: Iterable[str] = ()):
        """Merges tags into the sets and appends expressions not already present."""
        required = _as_set(required)
        disallowed = _as_set(disallowed)
        known = set(self.bool_expr)
        new_exprs = [(text, expr) for text, expr in _compile_all(bool_expr) if text not in known]

        self.required |= required
        self.disallowed |= disallowed
        self._compiled.extend(new_exprs)

    def set_required(self, tags: Iterable[str]):
        self.required = _as_set(tags)

    def set_disallowed(self, tags: Iterable[str]):
        self.disallowed = _as_set(tags)

    def set_bool_expr(self, exprs: Iterable[str]):
        self._compiled = _compile_all(exprs)

    def __eq__(self, other):
        if not isinstance(other, TagFilter):
            return NotImplemented
        return (self.required == other.required
                and self.disallowed == other.disallowed
                and self.bool_expr == other.bool_expr)

    def __repr__(self):
        return (f"TagFilter(required={sorted(self.required)!r}, "
                f"disallowed={sorted(self.disallowed)!r}, bool_expr={self.bool_expr!r})")


def _as_set(tags: Iterable[str]) -> Set[str]:
    # A bare string is one tag, not a sequence of characters
    if isinstance(tags, str):
        return {tags}
    return set(tags)


def _compile_all(exprs: Iterable[str]) -> List[Tuple[str, Expression]]:
    """Compiles and deduplicates (keeping first occurrence). Raises on the first bad one."""
    if isinstance(exprs, str):
        exprs = [exprs]
    compiled = []
    seen = set()
    for text in exprs:
        expr = compile_expression(text)
        if text in seen:
            continue
        seen.add(text)
        compiled.append((text, expr))
    return compiled
