from typing import Iterable, List

from TM1link.Exceptions.Exceptions import TM1linkInvalidMDXException


class MdxMember:
    """ A member in MDX notation: [dimension].[hierarchy].[element] """

    def __init__(self, dimension: str, hierarchy: str, name: str):
        self.dimension = dimension
        self.hierarchy = hierarchy or dimension
        self.name = name

    def to_mdx(self) -> str:
        return f"[{self.dimension}].[{self.hierarchy}].[{self.name}]"

    def __eq__(self, other):
        return isinstance(other, MdxMember) and self.to_mdx().lower() == other.to_mdx().lower()

    def __hash__(self):
        return hash(self.to_mdx().lower())

    def __repr__(self):
        return self.to_mdx()


class MdxTuple:
    def __init__(self, members: Iterable[MdxMember] = None):
        self.members = list(members or [])

    def add_member(self, member: MdxMember):
        self.members.append(member)

    def to_mdx(self) -> str:
        return "(" + ", ".join(member.to_mdx() for member in self.members) + ")"


class MdxAxis:
    """ Axis of an MDX query. Either a custom set expression or a list of tuples """

    def __init__(self, tuples: Iterable[MdxTuple] = None, custom_expression: str = None, non_empty: bool = False,
                 ignore_bad_tuples: bool = False):
        self.tuples = list(tuples or [])
        self.custom_expression = custom_expression
        self.non_empty = non_empty
        self.ignore_bad_tuples = ignore_bad_tuples

    def add_tuple(self, mdx_tuple: MdxTuple):
        self.tuples.append(mdx_tuple)

    def is_empty(self) -> bool:
        return not self.custom_expression and not self.tuples

    def to_mdx(self) -> str:
        if self.custom_expression:
            return self.custom_expression
        if not self.tuples:
            return ""
        prefix = ""
        if self.non_empty:
            prefix += "NON EMPTY "
        if self.ignore_bad_tuples:
            prefix += "TM1IGNORE_BADTUPLES "
        return prefix + "{" + ",".join(mdx_tuple.to_mdx() for mdx_tuple in self.tuples) + "}"


class MdxQuery:
    """ Structural MDX builder

    >>> query = MdxQuery("Sales")
    >>> query.add_member_to_columns("Year", "Year", "2024")
    >>> query.add_member_to_where("Version", "Version", "Actual")
    >>> query.to_mdx()
    'SELECT {([Year].[Year].[2024])} ON 0 FROM [Sales] WHERE ([Version].[Version].[Actual])'

    Member names are not escaped.
    """

    def __init__(self, cube: str = None):
        self.cube = cube
        self.with_members: List[str] = []
        self.axes: List[MdxAxis] = []
        self.where: List[MdxMember] = []

    def set_cube(self, cube: str) -> 'MdxQuery':
        self.cube = cube
        return self

    def add_with_statement(self, statement: str) -> 'MdxQuery':
        self.with_members.append(statement)
        return self

    def _axis(self, ordinal: int) -> MdxAxis:
        while len(self.axes) <= ordinal:
            self.axes.append(MdxAxis())
        return self.axes[ordinal]

    def add_expression_to_axis(self, ordinal: int, expression: str) -> 'MdxQuery':
        self._axis(ordinal).custom_expression = expression
        return self

    def add_tuple_to_axis(self, ordinal: int, mdx_tuple: MdxTuple) -> 'MdxQuery':
        self._axis(ordinal).add_tuple(mdx_tuple)
        return self

    def add_member_to_columns(self, dimension: str, hierarchy: str, name: str) -> 'MdxQuery':
        return self.add_tuple_to_axis(0, MdxTuple([MdxMember(dimension, hierarchy, name)]))

    def add_member_to_rows(self, dimension: str, hierarchy: str, name: str) -> 'MdxQuery':
        return self.add_tuple_to_axis(1, MdxTuple([MdxMember(dimension, hierarchy, name)]))

    def add_member_to_where(self, dimension: str, hierarchy: str, name: str) -> 'MdxQuery':
        self.where.append(MdxMember(dimension, hierarchy, name))
        return self

    def non_empty(self, ordinal: int) -> 'MdxQuery':
        self._axis(ordinal).non_empty = True
        return self

    def to_mdx(self) -> str:
        if not self.axes or all(axis.is_empty() for axis in self.axes):
            raise TM1linkInvalidMDXException("MDX query must have at least one axis")
        if not self.cube:
            raise TM1linkInvalidMDXException("MDX query must have a cube")

        mdx = ""
        if self.with_members:
            mdx += "WITH " + " ".join(self.with_members) + " "

        axes = [f"{axis.to_mdx()} ON {ordinal}" for ordinal, axis in enumerate(self.axes) if not axis.is_empty()]
        mdx += "SELECT " + ", ".join(axes) + f" FROM [{self.cube}]"

        if self.where:
            mdx += " WHERE (" + ",".join(member.to_mdx() for member in self.where) + ")"
        return mdx

    def __str__(self):
        return self.to_mdx()
