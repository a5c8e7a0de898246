# -*- coding: utf-8 -*-

import collections
import json
from typing import Dict, Iterable, List, Union

from TM1link.Objects.Axis import ViewAxisSelection, ViewTitleSelection
from TM1link.Objects.Subset import Subset, AnonymousSubset
from TM1link.Objects.View import View
from TM1link.Utils.MDXUtils import MdxQuery


class NativeView(View):
    """ Abstraction of TM1 NativeView (classic cube view)

    """

    def __init__(self,
                 cube_name: str,
                 view_name: str,
                 suppress_empty_columns: bool = False,
                 suppress_empty_rows: bool = False,
                 format_string: str = "0.#########",
                 titles: Iterable[ViewTitleSelection] = None,
                 columns: Iterable[ViewAxisSelection] = None,
                 rows: Iterable[ViewAxisSelection] = None):
        super().__init__(cube_name, view_name)
        self.suppress_empty_columns = suppress_empty_columns
        self.suppress_empty_rows = suppress_empty_rows
        self.format_string = format_string
        self.titles: List[ViewTitleSelection] = list(titles or [])
        self.columns: List[ViewAxisSelection] = list(columns or [])
        self.rows: List[ViewAxisSelection] = list(rows or [])

    @property
    def suppress_empty_cells(self) -> bool:
        return self.suppress_empty_columns and self.suppress_empty_rows

    @suppress_empty_cells.setter
    def suppress_empty_cells(self, value: bool):
        self.suppress_empty_columns = value
        self.suppress_empty_rows = value

    def add_column(self, dimension_name: str, subset: Union[Subset, AnonymousSubset] = None):
        """ Put a dimension on the columns

        :param dimension_name:
        :param subset: defaults to an anonymous subset of all elements
        """
        self.columns.append(ViewAxisSelection(dimension_name, subset or AnonymousSubset(dimension_name)))

    def add_row(self, dimension_name: str, subset: Union[Subset, AnonymousSubset] = None):
        self.rows.append(ViewAxisSelection(dimension_name, subset or AnonymousSubset(dimension_name)))

    def add_title(self, dimension_name: str, selection: str, subset: Union[Subset, AnonymousSubset] = None):
        """ Put a dimension on the titles

        :param dimension_name:
        :param selection: name of the selected element
        :param subset: defaults to an anonymous subset holding only the selected element
        """
        self.titles.append(ViewTitleSelection(
            dimension_name, subset or AnonymousSubset(dimension_name, elements=[selection]), selection))

    @staticmethod
    def _selection_to_set(axis_selection: ViewAxisSelection) -> str:
        subset = axis_selection.subset
        dimension, hierarchy = axis_selection.dimension_name, axis_selection.hierarchy_name
        if not isinstance(subset, AnonymousSubset):
            return f'TM1SubsetToSet([{dimension}].[{hierarchy}],"{subset.name}")'
        if subset.expression:
            return subset.expression
        if subset.elements:
            return "{" + ",".join(f"[{dimension}].[{hierarchy}].[{element}]" for element in subset.elements) + "}"
        return f"{{TM1SubsetAll([{dimension}].[{hierarchy}])}}"

    def _axis_expression(self, selections: List[ViewAxisSelection], suppress_empty: bool) -> str:
        expression = "*".join(self._selection_to_set(selection) for selection in selections)
        return "NON EMPTY " + expression if suppress_empty else expression

    @property
    def mdx(self) -> str:
        """ MDX query equivalent to the view. Registered subsets are referenced through TM1SubsetToSet """
        query = MdxQuery(self.cube)
        query.add_expression_to_axis(0, self._axis_expression(self.columns, self.suppress_empty_columns))
        if self.rows:
            query.add_expression_to_axis(1, self._axis_expression(self.rows, self.suppress_empty_rows))
        for title in self.titles:
            query.add_member_to_where(title.dimension_name, title.hierarchy_name, title.selected)
        return query.to_mdx()

    @classmethod
    def from_dict(cls, view_as_dict: Dict, cube_name: str = None) -> 'NativeView':
        """ Alternative constructor

        :param view_as_dict: view with expanded Columns, Rows and Titles
        :param cube_name: name of the cube, read from the dict when missing
        :return: NativeView
        """
        def build_subset(selection: Dict):
            if not selection['Subset'].get('Name'):
                subset_as_dict = dict(selection['Subset'], Name='')
                subset = Subset.from_dict(subset_as_dict)
                return AnonymousSubset(subset.dimension_name, subset.hierarchy_name, subset.alias,
                                       subset.expression, subset.elements)
            return Subset.from_dict(selection['Subset'])

        titles = []
        for selection in view_as_dict.get('Titles', []):
            subset = build_subset(selection)
            titles.append(ViewTitleSelection(subset.dimension_name, subset, selection['Selected']['Name']))
        columns = [ViewAxisSelection(subset.dimension_name, subset)
                   for subset in map(build_subset, view_as_dict.get('Columns', []))]
        rows = [ViewAxisSelection(subset.dimension_name, subset)
                for subset in map(build_subset, view_as_dict.get('Rows', []))]

        return cls(
            cube_name=cube_name or view_as_dict['Cube']['Name'],
            view_name=view_as_dict['Name'],
            suppress_empty_columns=view_as_dict.get('SuppressEmptyColumns', False),
            suppress_empty_rows=view_as_dict.get('SuppressEmptyRows', False),
            format_string=view_as_dict.get('FormatString', "0.#########"),
            titles=titles,
            columns=columns,
            rows=rows)

    @property
    def body(self) -> str:
        body_as_dict = collections.OrderedDict()
        body_as_dict['@odata.type'] = 'ibm.tm1.api.v1.NativeView'
        body_as_dict['Name'] = self.name
        body_as_dict['Columns'] = [column.body_as_dict for column in self.columns]
        body_as_dict['Rows'] = [row.body_as_dict for row in self.rows]
        body_as_dict['Titles'] = [title.body_as_dict for title in self.titles]
        body_as_dict['SuppressEmptyColumns'] = self.suppress_empty_columns
        body_as_dict['SuppressEmptyRows'] = self.suppress_empty_rows
        body_as_dict['FormatString'] = self.format_string
        return json.dumps(body_as_dict, ensure_ascii=False)
