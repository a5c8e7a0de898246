# -*- coding: utf-8 -*-
from typing import List

from requests import Response

from TM1link.Exceptions import TM1linkConflict, TM1linkException
from TM1link.Objects.Dimension import Dimension
from TM1link.Services.HierarchyService import HierarchyService
from TM1link.Services.ObjectService import ObjectService
from TM1link.Services.RestService import RestService
from TM1link.Services.SubsetService import SubsetService
from TM1link.Utils import case_and_space_insensitive_equals, format_url, CaseAndSpaceInsensitiveSet, \
    MODEL_OBJECTS_FILTER

LEAVES_HIERARCHY = "Leaves"


def _dimension_url(dimension_name: str) -> str:
    return format_url("/Dimensions('{}')", dimension_name)


def _is_leaves(hierarchy_name: str) -> bool:
    return case_and_space_insensitive_equals(hierarchy_name, LEAVES_HIERARCHY)


class DimensionService(ObjectService):
    """ Dimensions, plus their hierarchies and subsets (tm1.dimensions.hierarchies, tm1.dimensions.subsets)

    The 'Leaves' hierarchy is maintained by the server and never written.
    """

    def __init__(self, rest: RestService):
        super().__init__(rest)
        self.hierarchies = HierarchyService(rest)
        self.subsets = SubsetService(rest)

    def create(self, dimension: Dimension, **kwargs) -> Response:
        """ Create the dimension with hierarchies, elements and edges, then its element attributes.
        A dimension left half created by a failing request is deleted again.

        :param dimension: instance of TM1link.Dimension
        :return: response of the dimension POST
        """
        if self.exists(dimension.name, **kwargs):
            raise TM1linkConflict(
                f"Dimension '{dimension.name}' already exists",
                status_code=409,
                reason="Conflict",
                headers={},
                method="POST",
                url="/Dimensions")
        try:
            response = self._rest.POST("/Dimensions", dimension.body, **kwargs)
            for hierarchy in dimension:
                if not _is_leaves(hierarchy.name):
                    self.hierarchies.update_element_attributes(hierarchy, **kwargs)
        except TM1linkException:
            if self.exists(dimension.name, **kwargs):
                self.delete(dimension.name, **kwargs)
            raise
        return response

    def get(self, dimension_name: str, **kwargs) -> Dimension:
        url = _dimension_url(dimension_name) + "?$expand=Hierarchies($expand=*)"
        return Dimension.from_json(self._rest.GET(url, **kwargs).text)

    def get_all(self, skip_control_dims: bool = False, **kwargs) -> List[Dimension]:
        url = "/Dimensions?$expand=Hierarchies($expand=*)"
        if skip_control_dims:
            url += "&$filter=" + MODEL_OBJECTS_FILTER
        response = self._rest.GET(url, **kwargs)
        return [Dimension.from_dict(dimension_as_dict) for dimension_as_dict in response.json()["value"]]

    def get_all_names(self, skip_control_dims: bool = False, **kwargs) -> List[str]:
        url = "/Dimensions?$select=Name"
        if skip_control_dims:
            url += "&$filter=" + MODEL_OBJECTS_FILTER
        response = self._rest.GET(url, **kwargs)
        return [dimension["Name"] for dimension in response.json()["value"]]

    def exists(self, dimension_name: str, **kwargs) -> bool:
        return self._exists(_dimension_url(dimension_name), **kwargs)

    def update(self, dimension: Dimension, **kwargs):
        """ Write every hierarchy of the dimension object and drop the hierarchies it no longer has

        :param dimension: instance of TM1link.Dimension
        """
        obsolete = CaseAndSpaceInsensitiveSet(*self.hierarchies.get_all_names(dimension.name, **kwargs))
        for hierarchy in dimension:
            obsolete.discard(hierarchy.name)
            if _is_leaves(hierarchy.name):
                continue
            if self.hierarchies.exists(hierarchy.dimension_name, hierarchy.name, **kwargs):
                self.hierarchies.update(hierarchy, **kwargs)
            else:
                self.hierarchies.create(hierarchy, **kwargs)

        for hierarchy_name in obsolete:
            if not _is_leaves(hierarchy_name):
                self.hierarchies.delete(dimension.name, hierarchy_name, **kwargs)

    def update_or_create(self, dimension: Dimension, **kwargs):
        if self.exists(dimension.name, **kwargs):
            self.update(dimension, **kwargs)
        else:
            self.create(dimension, **kwargs)

    def delete(self, dimension_name: str, **kwargs) -> Response:
        return self._rest.DELETE(_dimension_url(dimension_name), **kwargs)
