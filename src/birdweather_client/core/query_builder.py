"""Structured construction of GraphQL query documents.

Each endpoint declares the filters it recognises once, as an ordered
:class:`FilterSet`. Binding caller values keeps only the filters that are
actually set, so the rendered document declares exactly the variables it
sends. Order always follows the declaration order, which keeps documents
byte-for-byte stable for a given set of active filters.

Example::

    >>> filters = FilterSet([Variable("period", "InputDuration"), Variable("speciesIds", "[ID!]")])
    >>> doc = QueryDocument("detections", "detections", DETECTION_SELECTION, filters)
    >>> bound = filters.bind({"period": None, "speciesIds": ["305"]})
    >>> print(doc.render(bound, include_after=True))
"""

import textwrap
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

INDENT = "  "


def is_present(value: Any) -> bool:
    """A filter is active unless its value is None or empty. False and 0 count as set."""
    if value is None:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return len(value) > 0
    return True


@dataclass(frozen=True)
class Variable:
    """One recognised filter option.

    Attributes:
        name: Variable name, without the ``$``.
        wire_type: GraphQL input type, e.g. ``[ID!]`` or ``InputDuration``.
        argument: Field argument it binds to; defaults to ``name``.
    """
    name: str
    wire_type: str
    argument: Optional[str] = None

    def declaration(self) -> str:
        return f"${self.name}: {self.wire_type}"

    def binding(self) -> str:
        return f"{self.argument or self.name}: ${self.name}"


FIRST = Variable("first", "Int")
AFTER = Variable("after", "String")


@dataclass
class BoundFilters:
    """The active subset of a FilterSet together with its values."""
    active: List[Variable] = field(default_factory=list)
    values: Dict[str, Any] = field(default_factory=dict)

    def declarations(self) -> List[str]:
        return [v.declaration() for v in self.active]

    def arguments(self) -> List[str]:
        return [v.binding() for v in self.active]

    def names(self) -> List[str]:
        return [v.name for v in self.active]


@dataclass
class FilterSet:
    """Ordered list of the filters an endpoint recognises."""
    variables: List[Variable] = field(default_factory=list)

    def __post_init__(self):
        names = [v.name for v in self.variables]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate filter names: {names}")

    def bind(self, values: Mapping[str, Any]) -> BoundFilters:
        """Select the filters whose values are present, in declaration order."""
        known = {v.name for v in self.variables}
        unknown = [k for k in values if k not in known]
        if unknown:
            raise ValueError(f"Unrecognised filters: {unknown}")

        bound = BoundFilters()
        for var in self.variables:
            value = values.get(var.name)
            if is_present(value):
                bound.active.append(var)
                bound.values[var.name] = value
        return bound


def _block(items: Sequence[str], depth: int) -> str:
    """Render ``(a, b)`` across lines, or nothing when there are no items."""
    if not items:
        return ""
    pad = INDENT * (depth + 1)
    inner = (",\n" + pad).join(items)
    return f"(\n{pad}{inner}\n{INDENT * depth})"


@dataclass
class QueryDocument:
    """A query against one top-level (or nested) field.

    Attributes:
        operation: Operation name.
        field_name: Field that carries the filters, usually a connection.
        selection: Selection set placed inside the field, without braces.
        filters: Filters recognised by the field.
        paginated: Whether the field is a connection taking first/after.
        parents: Fields wrapping the field, outermost first, each with the
            names of the ``required`` variables it takes as arguments.
        required: Variables always declared on the operation, bound on a
            parent field rather than on the field (e.g. ``station(id: $id)``).
    """
    operation: str
    field_name: str
    selection: str
    filters: FilterSet = field(default_factory=FilterSet)
    paginated: bool = True
    parents: Sequence[Tuple[str, Sequence[str]]] = ()
    required: Sequence[Variable] = ()

    def render(self, bound: Optional[BoundFilters] = None, include_after: bool = False) -> str:
        """Render the document for the given active filters.

        The first request of a paginated sequence uses ``include_after=False``;
        follow-up requests add the ``$after`` cursor variable.
        """
        bound = bound or BoundFilters()
        if include_after and not self.paginated:
            raise ValueError(f"{self.operation} is not paginated")

        field_vars: List[Variable] = []
        if self.paginated:
            field_vars.append(FIRST)
        field_vars.extend(bound.active)
        if include_after:
            field_vars.append(AFTER)

        declarations = [v.declaration() for v in self.required] + [v.declaration() for v in field_vars]
        required_by_name = {v.name: v for v in self.required}

        lines = [f"query {self.operation}{_block(declarations, 0)} {{"]
        depth = 1
        for parent, arg_names in self.parents:
            args = [required_by_name[a].binding() for a in arg_names]
            lines.append(f"{INDENT * depth}{parent}{_block(args, depth)} {{")
            depth += 1

        lines.append(f"{INDENT * depth}{self.field_name}{_block([v.binding() for v in field_vars], depth)} {{")
        for sel_line in textwrap.dedent(self.selection).strip("\n").splitlines():
            lines.append(f"{INDENT * (depth + 1)}{sel_line.rstrip()}")
        for level in range(depth, 0, -1):
            lines.append(f"{INDENT * level}}}")
        lines.append("}")
        return "\n".join(lines) + "\n"

    def variables(self, bound: BoundFilters, first: Optional[int] = None,
                  after: Optional[str] = None, required: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Assemble the variables object matching :meth:`render`."""
        values: Dict[str, Any] = dict(required or {})
        if self.paginated:
            values["first"] = first
        values.update(bound.values)
        if after is not None:
            values["after"] = after
        return values
