import csv
from io import StringIO
from typing import Any, Iterable, List, Sequence

from TM1link.Exceptions.Exceptions import TM1linkInvalidArgument, TM1linkInvalidMDXException, TM1linkProtocolException
from TM1link.Utils.MDXUtils import MdxQuery, MdxTuple, MdxMember
from TM1link.Utils.Utils import dimension_hierarchy_from_header, require_pandas

VALUE_COLUMN = "Value"


class Table:
    """ Row oriented table with named columns

    The last column holds the values, all others hold element names
    """

    def __init__(self, headers: Iterable[str], rows: Iterable[Sequence[Any]] = None):
        self.headers = list(headers)
        self.rows: List[List[Any]] = []
        for row in rows or []:
            self.add_row(row)

    @classmethod
    def from_rows(cls, rows: Iterable[Sequence[Any]]) -> 'Table':
        """ first row is the header """
        rows = iter(rows)
        try:
            headers = next(rows)
        except StopIteration:
            raise TM1linkInvalidArgument("Table requires a header row")
        return cls(headers, rows)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def __len__(self):
        return len(self.rows)

    def __iter__(self):
        return iter(self.rows)

    def add_row(self, row: Sequence[Any]):
        if len(row) != len(self.headers):
            raise TM1linkInvalidArgument(
                f"Row has {len(row)} values but table has {len(self.headers)} columns")
        self.rows.append(list(row))

    def add_column(self, name: str, values: Sequence[Any]):
        if name in self.headers:
            raise TM1linkInvalidArgument(f"Column '{name}' already exists")
        if len(values) != self.row_count:
            raise TM1linkInvalidArgument(f"Expected {self.row_count} values, got {len(values)}")
        self.headers.append(name)
        for row, value in zip(self.rows, values):
            row.append(value)

    def delete_row(self, index: int):
        if index < 0 or index >= self.row_count:
            raise TM1linkInvalidArgument(f"Index out of range: {index}")
        del self.rows[index]

    def column(self, name: str) -> List[Any]:
        position = self._column_index(name)
        return [row[position] for row in self.rows]

    def _column_index(self, name: str) -> int:
        try:
            return self.headers.index(name)
        except ValueError:
            raise TM1linkInvalidArgument(f"Column '{name}' does not exist") from None

    def sort_by_columns(self, column_names: Iterable[str]):
        """ stable sort, first column is the primary key """
        positions = [self._column_index(name) for name in column_names]
        self.rows.sort(key=lambda row: tuple(row[position] for position in positions))

    def find_uniform_column_indices(self) -> List[int]:
        """ indices of columns in which all rows carry the same value. With <= 1 row every column is uniform """
        if self.row_count <= 1:
            return list(range(len(self.headers)))

        uniform = []
        for position in range(len(self.headers)):
            first_value = self.rows[0][position]
            if all(row[position] == first_value for row in self.rows[1:]):
                uniform.append(position)
        return uniform

    def to_mdx(self, cube_name: str) -> str:
        """ MDX that addresses every row of the table

        Uniform dimension columns end up in the WHERE clause, the others form one tuple per row on axis 0
        """
        if len(self.headers) < 2:
            raise TM1linkInvalidMDXException("Table must contain at least one dimension column and one value column")
        if not self.rows:
            raise TM1linkInvalidMDXException("Table must contain at least one row")

        dimension_positions = range(len(self.headers) - 1)
        uniform = set(self.find_uniform_column_indices())
        axis_positions = [position for position in dimension_positions if position not in uniform]
        if not axis_positions:
            axis_positions = [0]
        where_positions = [position for position in dimension_positions if position not in axis_positions]

        dimension_hierarchies = [dimension_hierarchy_from_header(header) for header in self.headers[:-1]]

        # one tuple per row, so cell ordinals line up with row positions
        query = MdxQuery(cube_name)
        for row in self.rows:
            query.add_tuple_to_axis(0, MdxTuple(
                MdxMember(*dimension_hierarchies[position], str(row[position])) for position in axis_positions))

        where_members = []
        for position in where_positions:
            member = MdxMember(*dimension_hierarchies[position], str(self.rows[0][position]))
            if member not in where_members:
                where_members.append(member)
        query.where = where_members
        return query.to_mdx()

    def to_csv(self, delimiter: str = ",", quote_character: str = '"') -> str:
        stream = StringIO()
        writer = csv.writer(stream, delimiter=delimiter, quotechar=quote_character, lineterminator="\n")
        writer.writerow(self.headers)
        writer.writerows(self.rows)
        return stream.getvalue()

    @require_pandas
    def to_dataframe(self):
        import pandas as pd

        return pd.DataFrame(self.rows, columns=self.headers)

    def __eq__(self, other):
        return isinstance(other, Table) and self.headers == other.headers and self.rows == other.rows

    def __repr__(self):
        return f"Table(headers={self.headers}, rows={self.row_count})"


def build_table_from_cellset(cellset) -> Table:
    """ project a Cellset onto a Table

    One column per hierarchy on each axis in axis order, followed by the Value column.
    Cell k maps to tuple k mod c0 on axis 0, (k div c0) mod c1 on axis 1 and (k div (c0 * c1)) mod c2 on axis 2
    """
    axes = cellset.axes
    headers = [hierarchy.unique_name for axis in axes for hierarchy in axis.hierarchies]
    headers.append(VALUE_COLUMN)
    table = Table(headers)

    cardinalities = [axis.cardinality for axis in axes]
    for k, cell in enumerate(cellset.cells):
        row = []
        stride = 1
        for axis, cardinality in zip(axes, cardinalities):
            if cardinality == 0:
                raise TM1linkProtocolException(f"Axis {axis.ordinal} of cellset '{cellset.id}' has no tuples")
            position = (k // stride) % cardinality
            row.extend(member.name for member in axis.tuples[position].members)
            stride *= cardinality
        row.append(cell.value)
        table.add_row(row)
    return table
