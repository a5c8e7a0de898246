# -*- coding: utf-8 -*-
import json
from typing import Dict, List, Optional, Tuple

from requests import Response

from TM1link.Exceptions import TM1linkNotFound
from TM1link.Objects.Element import Element
from TM1link.Objects.ElementAttribute import ElementAttribute
from TM1link.Objects.Hierarchy import Hierarchy
from TM1link.Services.ElementService import ElementService
from TM1link.Services.ObjectService import ObjectService
from TM1link.Services.RestService import RestService
from TM1link.Services.SubsetService import SubsetService
from TM1link.Utils import format_url, CaseAndSpaceInsensitiveDict, CaseAndSpaceInsensitiveSet


class HierarchyService(ObjectService):
    """ Hierarchies of a dimension with their elements (tm1.hierarchies.elements)

    """

    def __init__(self, rest: RestService):
        super().__init__(rest)
        self.subsets = SubsetService(rest)
        self.elements = ElementService(rest)

    def create(self, hierarchy: Hierarchy, **kwargs) -> Response:
        """ POST a hierarchy into its dimension, then create its element attributes

        :param hierarchy:
        :return:
        """
        url = format_url("/Dimensions('{}')/Hierarchies", hierarchy.dimension_name)
        response = self._rest.POST(url, hierarchy.body, **kwargs)

        self.update_element_attributes(hierarchy, **kwargs)

        return response

    def get(self, dimension_name: str, hierarchy_name: str, **kwargs) -> Hierarchy:
        """ get hierarchy

        :param dimension_name: name of the dimension
        :param hierarchy_name: name of the hierarchy
        :return:
        """
        url = format_url(
            "/Dimensions('{}')/Hierarchies('{}')?$expand=Edges,Elements,ElementAttributes,Subsets,DefaultMember",
            dimension_name,
            hierarchy_name)
        response = self._rest.GET(url, **kwargs)
        return Hierarchy.from_dict(response.json(), dimension_name)

    def get_all(self, dimension_name: str, **kwargs) -> List[Hierarchy]:
        url = format_url(
            "/Dimensions('{}')/Hierarchies?$expand=Edges,Elements,ElementAttributes,Subsets,DefaultMember",
            dimension_name)
        response = self._rest.GET(url, **kwargs)
        return [Hierarchy.from_dict(hierarchy, dimension_name) for hierarchy in response.json()["value"]]

    def get_all_names(self, dimension_name: str, **kwargs) -> List[str]:
        """ Hierarchy names of a dimension, Leaves included

        :param dimension_name:
        :return:
        """
        url = format_url("/Dimensions('{}')/Hierarchies?$select=Name", dimension_name)
        response = self._rest.GET(url, **kwargs)
        return [hierarchy["Name"] for hierarchy in response.json()["value"]]

    def update(self, hierarchy: Hierarchy, keep_existing_attributes: bool = False, **kwargs) -> List[Response]:
        """ Write a hierarchy in two steps:
        1. Update Hierarchy
        2. Update Element-Attributes

        :param hierarchy: instance of TM1link.Hierarchy
        :param keep_existing_attributes: only add attributes, never delete one
        :return: list of responses
        """
        url = format_url("/Dimensions('{}')/Hierarchies('{}')", hierarchy.dimension_name, hierarchy.name)
        responses = [self._rest.PATCH(url, hierarchy.body, **kwargs)]
        responses.extend(self.update_element_attributes(
            hierarchy=hierarchy,
            keep_existing_attributes=keep_existing_attributes,
            **kwargs))
        return responses

    def update_or_create(self, hierarchy: Hierarchy, **kwargs):
        """ update or create, depending on whether the hierarchy exists

        :param hierarchy:
        :return:
        """
        if self.exists(dimension_name=hierarchy.dimension_name, hierarchy_name=hierarchy.name, **kwargs):
            self.update(hierarchy=hierarchy, **kwargs)
        else:
            self.create(hierarchy=hierarchy, **kwargs)

    def exists(self, dimension_name: str, hierarchy_name: str, **kwargs) -> bool:
        """

        :param dimension_name:
        :param hierarchy_name:
        :return:
        """
        url = format_url("/Dimensions('{}')/Hierarchies?$select=Name", dimension_name)
        try:
            response = self._rest.GET(url, **kwargs)
        except TM1linkNotFound:
            return False

        existing_hierarchies = CaseAndSpaceInsensitiveSet(*[hierarchy["Name"] for hierarchy in response.json()["value"]])
        return hierarchy_name in existing_hierarchies

    def delete(self, dimension_name: str, hierarchy_name: str, **kwargs) -> Response:
        url = format_url("/Dimensions('{}')/Hierarchies('{}')", dimension_name, hierarchy_name)
        return self._rest.DELETE(url, **kwargs)

    def update_element_attributes(self, hierarchy: Hierarchy, keep_existing_attributes: bool = False,
                                  **kwargs) -> List[Response]:
        """ Bring the element attributes on the server in line with the hierarchy object

        Attributes whose type changed are deleted and created again

        :param hierarchy: Instance of TM1link.Hierarchy
        :param keep_existing_attributes: only add attributes, never delete one
        :return:
        """
        existing_element_attributes = CaseAndSpaceInsensitiveDict({
            ea.name: ea
            for ea
            in self.elements.get_element_attributes(hierarchy.dimension_name, hierarchy.name, **kwargs)})
        wanted = CaseAndSpaceInsensitiveSet(*[ea.name for ea in hierarchy.element_attributes])

        attributes_to_create, attributes_to_delete = [], []
        for element_attribute in hierarchy.element_attributes:
            existing = existing_element_attributes.get(element_attribute.name)
            if existing is None:
                attributes_to_create.append(element_attribute)
            elif existing.attribute_type != element_attribute.attribute_type:
                attributes_to_delete.append(element_attribute.name)
                attributes_to_create.append(element_attribute)

        if not keep_existing_attributes:
            attributes_to_delete.extend(name for name in existing_element_attributes if name not in wanted)

        responses = []
        for name in attributes_to_delete:
            responses.append(self.elements.delete_element_attribute(
                hierarchy.dimension_name, hierarchy.name, name, **kwargs))
        for element_attribute in attributes_to_create:
            responses.append(self.elements.create_element_attribute(
                hierarchy.dimension_name, hierarchy.name, element_attribute, **kwargs))
        return responses

    def get_default_member(self, dimension_name: str, hierarchy_name: str = None, **kwargs) -> Optional[str]:
        url = format_url(
            "/Dimensions('{}')/Hierarchies('{}')/DefaultMember?$select=Name",
            dimension_name,
            hierarchy_name or dimension_name)
        try:
            return self._rest.GET(url, **kwargs).json()["Name"]
        except TM1linkNotFound:
            return None

    def remove_all_edges(self, dimension_name: str, hierarchy_name: str = None, **kwargs) -> Response:
        url = format_url("/Dimensions('{}')/Hierarchies('{}')", dimension_name, hierarchy_name or dimension_name)
        return self._rest.PATCH(url=url, data=json.dumps({"Edges": []}), **kwargs)

    def add_edges(self, dimension_name: str, hierarchy_name: str = None, edges: Dict[Tuple[str, str], float] = None,
                  **kwargs) -> Response:
        return self.elements.add_edges(dimension_name, hierarchy_name, edges, **kwargs)

    def remove_edge(self, dimension_name: str, hierarchy_name: str, parent: str, component: str,
                    **kwargs) -> Response:
        return self.elements.remove_edge(dimension_name, hierarchy_name, parent, component, **kwargs)

    def add_elements(self, dimension_name: str, hierarchy_name: str, elements: List[Element], **kwargs):
        return self.elements.add_elements(dimension_name, hierarchy_name, elements, **kwargs)

    def add_element_attributes(self, dimension_name: str, hierarchy_name: str,
                               element_attributes: List[ElementAttribute], **kwargs):
        return self.elements.add_element_attributes(dimension_name, hierarchy_name, element_attributes, **kwargs)
