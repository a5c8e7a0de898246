# -*- coding: utf-8 -*-
import json
from typing import Iterable, List, Optional

from requests import Response

from TM1link.Objects.Cube import Cube
from TM1link.Services.CellService import CellService
from TM1link.Services.ObjectService import ObjectService
from TM1link.Services.RestService import RestService
from TM1link.Services.ViewService import ViewService
from TM1link.Utils import format_url, require_version, require_data_admin, case_and_space_insensitive_equals, \
    MODEL_OBJECTS_FILTER, CONTROL_OBJECTS_FILTER

SANDBOX_DIMENSION = "Sandboxes"


def _cube_url(cube_name: str, suffix: str = "") -> str:
    return format_url("/Cubes('{}')", cube_name) + suffix


def _without_sandbox_dimension(dimension_names: List[str]) -> List[str]:
    # servers with EnableSandboxDimension=T put the sandbox dimension first
    if dimension_names and case_and_space_insensitive_equals(dimension_names[0], SANDBOX_DIMENSION):
        return dimension_names[1:]
    return dimension_names


class CubeService(ObjectService):
    """ Cubes, plus the cells and views that live in them (tm1.cubes.cells, tm1.cubes.views)

    """

    def __init__(self, rest: RestService):
        super().__init__(rest)
        self.cells = CellService(rest)
        self.views = ViewService(rest)

    def _get_cubes(self, odata_filter: Optional[str] = None, **kwargs) -> List[Cube]:
        url = "/Cubes?$expand=Dimensions($select=Name)"
        if odata_filter:
            url += "&$filter=" + odata_filter
        response = self._rest.GET(url, **kwargs)
        return [Cube.from_dict(cube_as_dict) for cube_as_dict in response.json()["value"]]

    def get(self, cube_name: str, **kwargs) -> Cube:
        """ Read a cube with its dimension names

        :param cube_name: name of the cube
        :return: instance of TM1link.Cube
        """
        response = self._rest.GET(_cube_url(cube_name, "?$expand=Dimensions($select=Name)"), **kwargs)
        cube = Cube.from_json(response.text)
        cube.dimensions = _without_sandbox_dimension(cube.dimensions)
        return cube

    def get_all(self, **kwargs) -> List[Cube]:
        return self._get_cubes(**kwargs)

    def get_model_cubes(self, **kwargs) -> List[Cube]:
        """ cubes whose name starts with neither } nor { """
        return self._get_cubes(MODEL_OBJECTS_FILTER, **kwargs)

    def get_control_cubes(self, **kwargs) -> List[Cube]:
        """ cubes whose name starts with } or { """
        return self._get_cubes(CONTROL_OBJECTS_FILTER, **kwargs)

    def get_all_names(self, skip_control_cubes: bool = False, **kwargs) -> List[str]:
        url = "/Cubes?$select=Name"
        if skip_control_cubes:
            url += "&$filter=" + MODEL_OBJECTS_FILTER
        response = self._rest.GET(url, **kwargs)
        return [cube["Name"] for cube in response.json()["value"]]

    def exists(self, cube_name: str, **kwargs) -> bool:
        return self._exists(_cube_url(cube_name), **kwargs)

    def create(self, cube: Cube, **kwargs) -> Response:
        return self._rest.POST("/Cubes", cube.body, **kwargs)

    def update(self, cube: Cube, **kwargs) -> Response:
        """ PATCH name, dimensions and rules of an existing cube

        :param cube: instance of TM1link.Cube
        :return: response
        """
        return self._rest.PATCH(_cube_url(cube.name), cube.body, **kwargs)

    def update_or_create(self, cube: Cube, **kwargs) -> Response:
        if self.exists(cube.name, **kwargs):
            return self.update(cube, **kwargs)
        return self.create(cube, **kwargs)

    @require_data_admin
    def delete(self, cube_name: str, **kwargs) -> Response:
        return self._rest.DELETE(_cube_url(cube_name), **kwargs)

    def get_dimension_names(self, cube_name: str, skip_sandbox_dimension: bool = True, **kwargs) -> List[str]:
        """ Dimension names of a cube in cube order

        :param cube_name: name of the cube
        :param skip_sandbox_dimension: drop a leading 'Sandboxes' dimension
        :return: list of dimension names
        """
        response = self._rest.GET(_cube_url(cube_name, "/Dimensions?$select=Name"), **kwargs)
        dimension_names = [dimension["Name"] for dimension in response.json()["value"]]
        if skip_sandbox_dimension:
            return _without_sandbox_dimension(dimension_names)
        return dimension_names

    def get_measure_dimension(self, cube_name: str, **kwargs) -> str:
        return self.get_dimension_names(cube_name, **kwargs)[-1]

    def check_rules(self, cube_name: str, **kwargs) -> List[dict]:
        """ Compile the rules of a cube on the server

        :param cube_name: name of the cube
        :return: syntax errors, empty if the rules compile
        """
        response = self._rest.POST(_cube_url(cube_name, "/tm1.CheckRules"), **kwargs)
        return response.json()["value"]

    @require_version()
    def get_storage_dimension_order(self, cube_name: str, **kwargs) -> List[str]:
        url = _cube_url(cube_name, "/tm1.DimensionsStorageOrder()?$select=Name")
        response = self._rest.GET(url, **kwargs)
        return [dimension["Name"] for dimension in response.json()["value"]]

    @require_data_admin
    @require_version()
    def update_storage_dimension_order(self, cube_name: str, dimension_names: Iterable[str], **kwargs) -> float:
        """ Reorder the dimensions of a cube in memory

        :param cube_name: name of the cube
        :param dimension_names: all dimension names of the cube in the new storage order
        :return: percent change in memory usage, e.g. -23.07
        """
        payload = {
            "Dimensions@odata.bind": [format_url("Dimensions('{}')", dimension) for dimension in dimension_names]}
        response = self._rest.POST(
            _cube_url(cube_name, "/tm1.ReorderDimensions"), json.dumps(payload, ensure_ascii=False), **kwargs)
        return response.json()["value"]

    @require_data_admin
    @require_version()
    def load(self, cube_name: str, **kwargs) -> Response:
        return self._rest.POST(_cube_url(cube_name, "/tm1.Load"), **kwargs)

    @require_data_admin
    @require_version()
    def unload(self, cube_name: str, **kwargs) -> Response:
        return self._rest.POST(_cube_url(cube_name, "/tm1.Unload"), **kwargs)

    def lock(self, cube_name: str, **kwargs) -> Response:
        """ keep other users from changing data and rules of the cube """
        return self._rest.POST(_cube_url(cube_name, "/tm1.Lock"), **kwargs)

    def unlock(self, cube_name: str, **kwargs) -> Response:
        return self._rest.POST(_cube_url(cube_name, "/tm1.Unlock"), **kwargs)
