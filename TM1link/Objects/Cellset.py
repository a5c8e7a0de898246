# -*- coding: utf-8 -*-

from decimal import Decimal
from typing import Dict, List, Optional, Union

from TM1link.Exceptions.Exceptions import TM1linkProtocolException
from TM1link.Utils.Utils import CellUpdateableProperty, extract_cell_updateable_property


class Member:
    """ Member of a tuple on a cellset axis """

    def __init__(self, name: str, unique_name: str = None, member_type: str = None, ordinal: int = None,
                 display_info: int = None, display_info_above: int = None, attributes: Dict = None):
        self.name = name
        self.unique_name = unique_name
        self.type = member_type
        self.ordinal = ordinal
        self.display_info = display_info
        self.display_info_above = display_info_above
        self.attributes = attributes or {}

    @classmethod
    def from_dict(cls, member_as_dict: Dict) -> 'Member':
        return cls(
            name=member_as_dict['Name'],
            unique_name=member_as_dict.get('UniqueName'),
            member_type=member_as_dict.get('Type'),
            ordinal=member_as_dict.get('Ordinal'),
            display_info=member_as_dict.get('DisplayInfo'),
            display_info_above=member_as_dict.get('DisplayInfoAbove'),
            attributes=member_as_dict.get('Attributes'))

    def __repr__(self):
        return f"Member({self.unique_name or self.name})"


class CellsetTuple:
    """ One position on an axis, a member per hierarchy of the axis """

    def __init__(self, ordinal: int, members: List[Member]):
        self.ordinal = ordinal
        self.members = members

    @classmethod
    def from_dict(cls, tuple_as_dict: Dict, ordinal: int) -> 'CellsetTuple':
        return cls(
            ordinal=tuple_as_dict.get('Ordinal', ordinal),
            members=[Member.from_dict(member) for member in tuple_as_dict.get('Members', [])])


class CellsetHierarchy:
    """ Hierarchy placed on a cellset axis """

    def __init__(self, name: str, unique_name: str, dimension_name: str = None):
        self.name = name
        self.unique_name = unique_name
        self.dimension_name = dimension_name or name

    @classmethod
    def from_dict(cls, hierarchy_as_dict: Dict) -> 'CellsetHierarchy':
        dimension = hierarchy_as_dict.get('Dimension') or {}
        return cls(
            name=hierarchy_as_dict['Name'],
            unique_name=hierarchy_as_dict.get('UniqueName') or f"[{hierarchy_as_dict['Name']}]",
            dimension_name=dimension.get('Name'))


class CellsetAxis:
    """ Axis of a cellset. Cardinality is the number of tuples on the axis """

    def __init__(self, ordinal: int, cardinality: int, hierarchies: List[CellsetHierarchy],
                 tuples: List[CellsetTuple]):
        self.ordinal = ordinal
        self.cardinality = cardinality
        self.hierarchies = hierarchies
        self.tuples = tuples

    @classmethod
    def from_dict(cls, axis_as_dict: Dict) -> 'CellsetAxis':
        tuples = [CellsetTuple.from_dict(tuple_as_dict, ordinal)
                  for ordinal, tuple_as_dict in enumerate(axis_as_dict.get('Tuples') or [])]
        return cls(
            ordinal=axis_as_dict['Ordinal'],
            cardinality=axis_as_dict.get('Cardinality', len(tuples)),
            hierarchies=[CellsetHierarchy.from_dict(hierarchy) for hierarchy in axis_as_dict.get('Hierarchies') or []],
            tuples=tuples)


class Cell:
    """ A cell of a cellset. Only the properties that were requested are set """

    def __init__(self, ordinal: int, value: Union[float, str, None] = None, formatted_value: str = None,
                 consolidated: Optional[bool] = None, rule_derived: Optional[bool] = None,
                 updateable: Optional[int] = None):
        self.ordinal = ordinal
        self.value = value
        self.formatted_value = formatted_value
        self.consolidated = consolidated
        self.rule_derived = rule_derived
        self.updateable = updateable

    @classmethod
    def from_dict(cls, cell_as_dict: Dict, default_ordinal: int) -> 'Cell':
        """ Alternative constructor. Numeric values are read as float

        :param cell_as_dict: cell as returned in the Cells collection
        :param default_ordinal: ordinal to use when Ordinal was not requested
        :return: Cell
        """
        value = cell_as_dict.get('Value')
        if isinstance(value, (int, Decimal)) and not isinstance(value, bool):
            value = float(value)
        return cls(
            ordinal=cell_as_dict.get('Ordinal', default_ordinal),
            value=value,
            formatted_value=cell_as_dict.get('FormattedValue'),
            consolidated=cell_as_dict.get('Consolidated'),
            rule_derived=cell_as_dict.get('RuleDerived'),
            updateable=cell_as_dict.get('Updateable'))

    @property
    def is_updateable(self) -> bool:
        """ requires the Updateable property to be extracted with the cell """
        if self.updateable is None:
            raise ValueError("cell must be extracted with property 'Updateable'")
        return not extract_cell_updateable_property(self.updateable, CellUpdateableProperty.CELL_IS_NOT_UPDATEABLE)

    def __eq__(self, other):
        return isinstance(other, Cell) and (self.ordinal, self.value) == (other.ordinal, other.value)

    def __repr__(self):
        return f"Cell({self.ordinal}, {self.value!r})"


class Cellset:
    """ Cellset with axes (0 = columns, 1 = rows, 2 = titles) and flat, row-major ordered cells """

    def __init__(self, cellset_id: str, cube_name: str = None, axes: List[CellsetAxis] = None,
                 cells: List[Cell] = None):
        self.id = cellset_id
        self.cube_name = cube_name
        self.axes = axes or []
        self.cells = cells or []

    @classmethod
    def from_dict(cls, cellset_as_dict: Dict) -> 'Cellset':
        """ build from the response of /Cellsets('id')?$expand=Cube,Axes,... and validate the axes """
        cube = cellset_as_dict.get('Cube') or {}
        axes = sorted((CellsetAxis.from_dict(axis) for axis in cellset_as_dict.get('Axes') or []),
                      key=lambda axis: axis.ordinal)
        cellset = cls(cellset_as_dict.get('ID'), cube.get('Name'), axes)
        cellset.validate_axes()
        return cellset

    @property
    def expected_cell_count(self) -> int:
        """ product of the axis cardinalities """
        count = 1
        for axis in self.axes:
            count *= axis.cardinality
        return count

    def validate_axes(self):
        """ Axes must be ordered by ordinal and every tuple must have a member per hierarchy """
        for position, axis in enumerate(self.axes):
            if axis.ordinal != position:
                raise TM1linkProtocolException(f"Unexpected ordinal {axis.ordinal} for axis at position {position}")
            if len(axis.tuples) != axis.cardinality:
                raise TM1linkProtocolException(
                    f"Axis {axis.ordinal} has {len(axis.tuples)} tuples, expected {axis.cardinality}")
            for axis_tuple in axis.tuples:
                if len(axis_tuple.members) != len(axis.hierarchies):
                    raise TM1linkProtocolException(
                        f"Tuple {axis_tuple.ordinal} on axis {axis.ordinal} does not align with the axis hierarchies")

    def validate_cells(self):
        if len(self.cells) != self.expected_cell_count:
            raise TM1linkProtocolException(
                f"Cellset '{self.id}' has {len(self.cells)} cells, expected {self.expected_cell_count}")

    def __len__(self):
        return len(self.cells)
