# -*- coding: utf-8 -*-
import asyncio
import functools
import json
import math
from collections import OrderedDict
from concurrent.futures.thread import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import ijson
from mdxpy import MdxBuilder, Member
from requests import Response

from TM1link.Exceptions import TM1linkNotFound, TM1linkProtocolException
from TM1link.Objects.Cellset import Cell, Cellset
from TM1link.Services.ObjectService import ObjectService
from TM1link.Services.RestService import RestService
from TM1link.Utils import MdxQuery, Table, add_url_parameters, build_table_from_cellset, decohints, \
    extract_axes_hierarchy_names, format_url

CELLSET_AXES_EXPAND = (
    "Cube($select=Name),"
    "Axes($select=Ordinal,Cardinality;"
    "$expand=Hierarchies($select=Name,UniqueName;$expand=Dimension($select=Name)),"
    "Tuples($select=Ordinal;$expand=Members($select=Name,UniqueName,Type,Ordinal,DisplayInfo,DisplayInfoAbove,"
    "Attributes)))")


@decohints
def tidy_cellset(func):
    """ Delete the cellset once the wrapped call returns, unless delete_cellset=False is passed
    """

    @functools.wraps(func)
    def wrapper(self, cellset_id, *args, **kwargs):
        try:
            return func(self, cellset_id, *args, **kwargs)

        finally:
            if kwargs.get("delete_cellset", True):
                self.delete_cellset(cellset_id=cellset_id, sandbox_name=kwargs.get("sandbox_name", None))

    return wrapper


class CellService(ObjectService):
    """ Reading and writing cube cells through cellsets, MDX and views

    """

    def __init__(self, tm1_rest: RestService):
        """

        :param tm1_rest: connection
        """
        super().__init__(tm1_rest)

    def create_cellset(self, mdx: Union[str, MdxBuilder, MdxQuery], sandbox_name: str = None, **kwargs) -> str:
        """ Create a cellset on the server from an MDX query and return its id

        :param mdx: MDX Query, as string or builder
        :param sandbox_name: str
        :return:
        """
        url = add_url_parameters("/ExecuteMDX", **{"!sandbox": sandbox_name})
        data = {
            "MDX": mdx if isinstance(mdx, str) else mdx.to_mdx()
        }
        response = self._rest.POST(url=url, data=json.dumps(data, ensure_ascii=False), **kwargs)
        return self._read_cellset_id(response)

    def create_cellset_from_view(self, cube_name: str, view_name: str, private: bool = False,
                                 sandbox_name: str = None, **kwargs) -> str:
        """ Create a cellset on the server from a view and return its id

        :param cube_name: cube
        :param view_name: view
        :param private: True for a private view
        :param sandbox_name: str
        :return:
        """
        url = format_url(
            "/Cubes('{cube_name}')/{views}('{view_name}')/tm1.Execute",
            cube_name=cube_name,
            views="PrivateViews" if private else "Views",
            view_name=view_name)
        url = add_url_parameters(url, **{"!sandbox": sandbox_name})
        return self._read_cellset_id(self._rest.POST(url=url, **kwargs))

    @staticmethod
    def _read_cellset_id(response: Response) -> str:
        try:
            return response.json()["ID"]
        except (ValueError, KeyError):
            raise TM1linkProtocolException(f"Response lacks cellset ID: '{response.text}'")

    def delete_cellset(self, cellset_id: str, sandbox_name: str = None, **kwargs):
        """ Delete a cellset. Deleting a cellset that is already gone is not an error

        :param cellset_id:
        :param sandbox_name: str
        :return:
        """
        url = format_url("/Cellsets('{}')", cellset_id)
        url = add_url_parameters(url, **{"!sandbox": sandbox_name})
        try:
            self._rest.DELETE(url, **kwargs)
        except TM1linkNotFound:
            pass

    def extract_cellset_cellcount(self, cellset_id: str, sandbox_name: str = None, **kwargs) -> int:
        """ Cell count of an existing cellset

        :param cellset_id:
        :param sandbox_name: str
        :return:
        """
        url = format_url("/Cellsets('{}')/Cells/$count", cellset_id)
        url = add_url_parameters(url, **{"!sandbox": sandbox_name})
        response = self._rest.GET(url, **kwargs)
        try:
            return int(response.content)
        except ValueError:
            raise TM1linkProtocolException(f"Unexpected cell count for cellset '{cellset_id}': '{response.text}'")

    @staticmethod
    def _build_cells_expand(cell_properties: Iterable[str] = None, top: int = None, skip: int = None,
                            skip_zeros: bool = False, skip_consolidated_cells: bool = False,
                            skip_rule_derived_cells: bool = False) -> str:
        # work on a copy, the caller's list stays untouched
        cell_properties = list(cell_properties) if cell_properties else ["Value"]

        if skip_rule_derived_cells:
            cell_properties.append("RuleDerived")
            # RuleDerived alone returns wrong flags on some 11.8 builds
            cell_properties.append("Updateable")

        if skip_consolidated_cells:
            cell_properties.append("Consolidated")

        if skip or skip_zeros or skip_rule_derived_cells or skip_consolidated_cells:
            cell_properties.append("Ordinal")

        # keep first occurrence only
        cell_properties = list(OrderedDict.fromkeys(cell_properties))

        filters = []
        if skip_zeros:
            filters.append("Value ne 0 and Value ne null and Value ne ''")
        if skip_consolidated_cells:
            filters.append("Consolidated eq false")
        if skip_rule_derived_cells:
            filters.append("RuleDerived eq false")

        return "Cells($select={cell_properties}{top_cells}{skip_cells}{filter_cells})".format(
            cell_properties=",".join(cell_properties),
            top_cells=f";$top={top}" if top else "",
            skip_cells=f";$skip={skip}" if skip else "",
            filter_cells=f";$filter={' and '.join(filters)}" if filters else "")

    def extract_cellset_cells_raw(
            self,
            cellset_id: str,
            cell_properties: Iterable[str] = None,
            top: int = None,
            skip: int = None,
            skip_zeros: bool = False,
            skip_consolidated_cells: bool = False,
            skip_rule_derived_cells: bool = False,
            sandbox_name: str = None,
            **kwargs) -> List[Cell]:
        """ Retrieve a page of cells from the cellset

        :param cellset_id:
        :param cell_properties: cell properties to return, e.g. Value, Ordinal, RuleDerived
        :param top: maximum number of cells
        :param skip: cells to skip from the start
        :param skip_zeros: leave out empty and zero cells, whatever the MDX suppresses
        :param skip_consolidated_cells: leave out consolidated cells
        :param skip_rule_derived_cells: leave out cells calculated by rules
        :param sandbox_name: str
        :return: list of Cell. Without Ordinal in the response the position after skip is used
        """
        expand = self._build_cells_expand(
            cell_properties=cell_properties,
            top=top,
            skip=skip,
            skip_zeros=skip_zeros,
            skip_consolidated_cells=skip_consolidated_cells,
            skip_rule_derived_cells=skip_rule_derived_cells)
        url = format_url("/Cellsets('{}')", cellset_id) + "?$expand=" + expand
        url = add_url_parameters(url, **{"!sandbox": sandbox_name})
        response = self._rest.GET(url=url, **kwargs)

        offset = skip or 0
        try:
            return [
                Cell.from_dict(cell, default_ordinal=offset + index)
                for index, cell
                in enumerate(ijson.items(response.content, "Cells.item", use_float=True))]
        except ijson.JSONError as e:
            raise TM1linkProtocolException(f"Failed to parse cells of cellset '{cellset_id}': {e}") from e

    def extract_cellset_cells_parallel(self, cellset_id: str, cell_properties: Iterable[str] = None,
                                       sandbox_name: str = None, max_workers: int = 8, **kwargs) -> List[Cell]:
        """ Retrieve all cells of the cellset in max_workers slabs of ceil(count / max_workers) cells

        :param cellset_id:
        :param cell_properties: properties to be queried from the cell
        :param sandbox_name: str
        :param max_workers: number of concurrent requests
        :return: list of Cell in ordinal order
        """
        cell_count = self.extract_cellset_cellcount(cellset_id, sandbox_name=sandbox_name, **kwargs)
        if cell_count == 0:
            return []

        slab_size = math.ceil(cell_count / max_workers)
        skips = [worker * slab_size for worker in range(max_workers) if worker * slab_size < cell_count]
        cell_properties = list(cell_properties) if cell_properties else None

        def _extract_slab(skip: int) -> Tuple[int, List[Cell]]:
            return skip, self.extract_cellset_cells_raw(
                cellset_id,
                cell_properties=cell_properties,
                top=slab_size,
                skip=skip,
                sandbox_name=sandbox_name,
                **kwargs)

        cells: List[Optional[Cell]] = [None] * cell_count
        for skip, slab in self._run_in_parallel(_extract_slab, skips, max_workers):
            cells[skip:skip + len(slab)] = slab
        return cells

    @staticmethod
    def _run_in_parallel(func, arguments: Sequence, max_workers: int) -> List[Any]:
        """ fan out func over arguments, raise the first error after all workers have returned """

        async def _run_async():
            loop = asyncio.get_event_loop()
            results, errors = [], []

            with ThreadPoolExecutor(max_workers) as executor:
                futures = [loop.run_in_executor(executor, func, argument) for argument in arguments]
                for future in futures:
                    try:
                        results.append(await future)
                    except Exception as e:
                        errors.append(e)

            if errors:
                raise errors[0]
            return results

        return asyncio.run(_run_async())

    def extract_cellset_axes(self, cellset_id: str, sandbox_name: str = None, **kwargs) -> Cellset:
        """ Retrieve cube, axes, hierarchies, tuples and members of the cellset

        :param cellset_id:
        :param sandbox_name: str
        :return: Cellset without cells
        """
        url = format_url("/Cellsets('{}')", cellset_id) + "?$expand=" + CELLSET_AXES_EXPAND
        url = add_url_parameters(url, **{"!sandbox": sandbox_name})
        response = self._rest.GET(url=url, **kwargs)
        try:
            cellset_as_dict = response.json()
        except ValueError:
            raise TM1linkProtocolException(f"Failed to parse axes of cellset '{cellset_id}'")
        cellset_as_dict.setdefault("ID", cellset_id)
        try:
            return Cellset.from_dict(cellset_as_dict)
        except (KeyError, TypeError) as e:
            raise TM1linkProtocolException(f"Unexpected axes of cellset '{cellset_id}': {e}") from e

    @tidy_cellset
    def extract_cellset(self, cellset_id: str, cell_properties: Iterable[str] = None, sandbox_name: str = None,
                        delete_cellset: bool = True, **kwargs) -> Cellset:
        """ Retrieve axes and all cells of the cellset

        :param cellset_id:
        :param cell_properties: properties to be queried from the cell. Default: Value
        :param sandbox_name: str
        :param delete_cellset: delete the cellset afterwards
        :return: Cellset
        """
        cellset = self.extract_cellset_axes(cellset_id, sandbox_name=sandbox_name, **kwargs)
        cellset.cells = self.extract_cellset_cells_raw(
            cellset_id, cell_properties=cell_properties, sandbox_name=sandbox_name, **kwargs)
        cellset.validate_cells()
        return cellset

    def extract_cellset_composition(self, cellset_id: str, sandbox_name: str = None,
                                    **kwargs) -> Tuple[str, List[str], List[str], List[str]]:
        """ Dimension names per axis of a cellset

        :param cellset_id:
        :param sandbox_name: str
        :return: cube, titles, rows, columns as unique hierarchy names
        """
        url = format_url("/Cellsets('{}')", cellset_id) + \
            "?$expand=Cube($select=Name),Axes($expand=Hierarchies($select=UniqueName))"
        url = add_url_parameters(url, **{"!sandbox": sandbox_name})
        response_json = self._rest.GET(url=url, **kwargs).json()
        return (response_json["Cube"]["Name"], *extract_axes_hierarchy_names(response_json))

    def update_cellset(self, cellset_id: str, values: Iterable, ordinal_offset: int = 0, sandbox_name: str = None,
                       **kwargs) -> Response:
        """ Write values into the cells of a cellset in ordinal order

        The value at position i is written to the cell with ordinal ordinal_offset + i

        :param cellset_id:
        :param values: numbers and strings
        :param ordinal_offset: ordinal of the first value
        :param sandbox_name: str
        :return:
        """
        url = format_url("/Cellsets('{}')/Cells", cellset_id)
        url = add_url_parameters(url, **{"!sandbox": sandbox_name})
        data = [{"Ordinal": ordinal_offset + o, "Value": value} for o, value in enumerate(values)]
        return self._rest.PATCH(url, json.dumps(data, ensure_ascii=False), **kwargs)

    def update_cellset_parallel(self, cellset_id: str, values: Sequence, sandbox_name: str = None,
                                max_workers: int = 8, **kwargs):
        """ Write values into the cells of a cellset in ordinal order in max_workers slabs

        :param cellset_id:
        :param values: sequence of values in ordinal order
        :param sandbox_name: str
        :param max_workers: number of concurrent requests
        """
        values = list(values)
        cell_count = self.extract_cellset_cellcount(cellset_id, sandbox_name=sandbox_name, **kwargs)
        if cell_count == 0 or not values:
            return

        slab_size = math.ceil(cell_count / max_workers)
        skips = [skip for skip in range(0, cell_count, slab_size) if skip < len(values)]

        def _update_slab(skip: int):
            return self.update_cellset(
                cellset_id,
                values[skip:min(skip + slab_size, len(values))],
                ordinal_offset=skip,
                sandbox_name=sandbox_name,
                **kwargs)

        self._run_in_parallel(_update_slab, skips, max_workers)

    def write_values_through_cellset(self, mdx: Union[str, MdxBuilder, MdxQuery], values: Iterable,
                                     sandbox_name: str = None, **kwargs):
        """ Bulk write through a temporary cellset, much faster than write_values

        Cells of the resulting cellset, e.g.
        [[61, 29 ,13],
        [42, 54, 15],
        [17, 28, 81]]

        Cells are addressed by ordinal, row by row.
        61 is ordinal 0, 29 is ordinal 1.

        :param mdx: MDX query
        :param values: one value per cell, in ordinal order
        :param sandbox_name: str
        """
        cellset_id = self.create_cellset(mdx=mdx, sandbox_name=sandbox_name, **kwargs)
        try:
            self.update_cellset(cellset_id=cellset_id, values=values, sandbox_name=sandbox_name, **kwargs)
        finally:
            self.delete_cellset(cellset_id=cellset_id, sandbox_name=sandbox_name)

    def execute_mdx(self, mdx: Union[str, MdxBuilder, MdxQuery], cell_properties: Iterable[str] = None,
                    sandbox_name: str = None, **kwargs) -> Cellset:
        """ Execute MDX and return the cellset. The cellset is removed from the server afterwards

        :param mdx: MDX Query
        :param cell_properties: properties to be queried from the cell. Default: Value
        :param sandbox_name: str
        :return: Cellset
        """
        cellset_id = self.create_cellset(mdx=mdx, sandbox_name=sandbox_name, **kwargs)
        return self.extract_cellset(
            cellset_id, cell_properties=cell_properties, sandbox_name=sandbox_name, delete_cellset=True, **kwargs)

    def execute_mdx_table(self, mdx: Union[str, MdxBuilder, MdxQuery], sandbox_name: str = None, **kwargs) -> Table:
        return self.cellset_to_table(self.execute_mdx(mdx, sandbox_name=sandbox_name, **kwargs))

    def execute_mdx_cellcount(self, mdx: Union[str, MdxBuilder, MdxQuery], sandbox_name: str = None,
                              **kwargs) -> int:
        """ Cell count of the cellset produced by an MDX query

        :param mdx: MDX Query
        :param sandbox_name: str
        :return: cell count
        """
        cellset_id = self.create_cellset(mdx, sandbox_name=sandbox_name, **kwargs)
        try:
            return self.extract_cellset_cellcount(cellset_id, sandbox_name=sandbox_name, **kwargs)
        finally:
            self.delete_cellset(cellset_id, sandbox_name=sandbox_name)

    def execute_view(self, cube_name: str, view_name: str, private: bool = False,
                     cell_properties: Iterable[str] = None, sandbox_name: str = None, **kwargs) -> Cellset:
        """ get view content as cellset

        :param cube_name: cube
        :param view_name: view
        :param private: True for a private view
        :param cell_properties: cell properties to return, e.g. Value, Updateable
        :param sandbox_name: str
        :return: Cellset
        """
        cellset_id = self.create_cellset_from_view(
            cube_name=cube_name, view_name=view_name, private=private, sandbox_name=sandbox_name, **kwargs)
        return self.extract_cellset(
            cellset_id, cell_properties=cell_properties, sandbox_name=sandbox_name, delete_cellset=True, **kwargs)

    def execute_view_table(self, cube_name: str, view_name: str, private: bool = False, sandbox_name: str = None,
                           **kwargs) -> Table:
        return self.cellset_to_table(
            self.execute_view(cube_name, view_name, private=private, sandbox_name=sandbox_name, **kwargs))

    @staticmethod
    def cellset_to_table(cellset: Cellset) -> Table:
        """ one row per cell: the member names of the cell's tuple on every axis and the cell value

        :param cellset: Cellset with axes and cells
        :return: Table
        """
        return build_table_from_cellset(cellset)

    def get_dimension_names_for_writing(self, cube_name: str, **kwargs) -> List[str]:
        """ Get dimensions of a cube in their natural order

        :param cube_name:
        :return:
        """
        from TM1link.Services import CubeService
        cube_service = CubeService(self._rest)
        return cube_service.get_dimension_names(cube_name, **kwargs)

    def _element_unique_names(self, cube_name: str, elements: Union[str, Iterable],
                              dimensions: List[str] = None, element_separator: str = ",",
                              hierarchy_element_separator: str = "::", **kwargs) -> List[str]:
        if isinstance(elements, str):
            elements = elements.split(element_separator)
        elements = list(elements)

        unique_names = []
        for position, element_definition in enumerate(elements):
            if isinstance(element_definition, Member):
                unique_names.append(element_definition.unique_name)
                continue
            if isinstance(element_definition, str):
                if not dimensions:
                    dimensions = self.get_dimension_names_for_writing(cube_name=cube_name, **kwargs)
                if position >= len(dimensions):
                    raise ValueError(f"Cube '{cube_name}' has {len(dimensions)} dimensions, "
                                     f"got {len(elements)} elements")
                dimension_name = dimensions[position]
                if hierarchy_element_separator in element_definition:
                    hierarchy_name, element_name = element_definition.split(hierarchy_element_separator, 1)
                else:
                    hierarchy_name, element_name = dimension_name, element_definition
                element_definition = (dimension_name, hierarchy_name, element_name.strip())
            unique_names.append(Member.of(*element_definition).unique_name)
        return unique_names

    def get_value(self, cube_name: str, elements: Union[str, Iterable], dimensions: List[str] = None,
                  sandbox_name: str = None, element_separator: str = ",", hierarchy_element_separator: str = "::",
                  **kwargs) -> Union[str, float, None]:
        """ Read a single cell

        :param cube_name: cube
        :param elements: coordinates as string or iterable of "Dim::Hier::Elem" parts
            - Example: "Hierarchy1::Element1, Element9, Element2"
            - Dimensions are derived from the position.
              without hierarchy the same-named hierarchy is used
        or
        Iterable of element names, mdxpy.Member or (dimension, [hierarchy,] element) tuples
        :param dimensions: dimension names in cube order
        :param sandbox_name: str
        :param element_separator: separator between the dimensions in elements
        :param hierarchy_element_separator: separator between hierarchy and element
        :return:
        """
        unique_names = self._element_unique_names(
            cube_name, elements, dimensions, element_separator, hierarchy_element_separator, **kwargs)

        mdx = MdxQuery(cube_name).add_expression_to_axis(0, "{(" + ",".join(unique_names) + ")}")
        cellset = self.execute_mdx(mdx, sandbox_name=sandbox_name, **kwargs)
        if len(cellset.cells) != 1:
            raise TM1linkProtocolException(f"Expected exactly one cell, got {len(cellset.cells)}")
        return cellset.cells[0].value

    @staticmethod
    def _compose_odata_tuple(dimensions: Iterable[str], element_tuple: Iterable[str]) -> Dict:
        return {
            "Tuple@odata.bind": [
                format_url("Dimensions('{}')/Hierarchies('{}')/Elements('{}')", dimension, dimension, element)
                for dimension, element
                in zip(dimensions, element_tuple)]}

    def write_value(self, value: Union[str, float], cube_name: str, element_tuple: Iterable[str],
                    dimensions: Iterable[str] = None, sandbox_name: str = None, **kwargs) -> Response:
        """ Write a single cell

        :param value: number or string
        :param cube_name: cube to write to
        :param element_tuple: one element name per dimension
        :param dimensions: dimension names in cube order, saves a lookup when given
        :param sandbox_name: str
        :return: response
        """
        if not dimensions:
            dimensions = self.get_dimension_names_for_writing(cube_name=cube_name)
        url = format_url("/Cubes('{}')/tm1.Update", cube_name)
        url = add_url_parameters(url, **{"!sandbox": sandbox_name})
        body_as_dict = OrderedDict()
        body_as_dict["Cells"] = [self._compose_odata_tuple(dimensions, element_tuple)]
        body_as_dict["Value"] = "" if value is None else str(value)
        return self._rest.POST(url=url, data=json.dumps(body_as_dict, ensure_ascii=False), **kwargs)

    def write_values(self, cube_name: str, cellset_as_dict: Dict, dimensions: Iterable[str] = None,
                     sandbox_name: str = None, **kwargs) -> Response:
        """ Write many cells through tm1.Update

        For cellsets with > 1000 cells look into `write_values_through_cellset` or the DataLoadService

        :param cube_name: name of the cube
        :param cellset_as_dict: coordinates -> value, e.g. {("2024", "France", "Revenue"): 243}
        :param dimensions: dimension names in cube order, saves a lookup when given
        :param sandbox_name: str
        :return: Response
        """
        if not dimensions:
            dimensions = self.get_dimension_names_for_writing(cube_name=cube_name)
        url = format_url("/Cubes('{}')/tm1.Update", cube_name)
        url = add_url_parameters(url, **{"!sandbox": sandbox_name})

        updates = []
        for element_tuple, value in cellset_as_dict.items():
            body_as_dict = OrderedDict()
            body_as_dict["Cells"] = [self._compose_odata_tuple(dimensions, element_tuple)]
            body_as_dict["Value"] = "" if value is None else value
            updates.append(body_as_dict)
        return self._rest.POST(url=url, data=json.dumps(updates, ensure_ascii=False), **kwargs)
