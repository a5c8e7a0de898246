# -*- coding: utf-8 -*-
import json
from typing import Dict, Iterable, List, Tuple

from requests import Response

from TM1link.Exceptions import TM1linkNotFound
from TM1link.Objects.Element import Element
from TM1link.Objects.ElementAttribute import ElementAttribute
from TM1link.Services.ObjectService import ObjectService
from TM1link.Services.RestService import RestService
from TM1link.Utils import format_url


class ElementService(ObjectService):
    """ Elements, edges and element attributes of a hierarchy

    """

    ELEMENTS_URL = "/Dimensions('{}')/Hierarchies('{}')/Elements"

    def __init__(self, rest: RestService):
        super().__init__(rest)

    def get(self, dimension_name: str, hierarchy_name: str, element_name: str, **kwargs) -> Element:
        url = format_url(self.ELEMENTS_URL + "('{}')?$expand=*", dimension_name, hierarchy_name, element_name)
        response = self._rest.GET(url, **kwargs)
        return Element.from_dict(response.json())

    def get_all(self, dimension_name: str, hierarchy_name: str, **kwargs) -> List[Element]:
        return self.get_elements(dimension_name, hierarchy_name, **kwargs)

    def get_all_names(self, dimension_name: str, hierarchy_name: str, **kwargs) -> List[str]:
        return self.get_element_names(dimension_name, hierarchy_name, **kwargs)

    def create(self, dimension_name: str, hierarchy_name: str, element: Element, **kwargs) -> Response:
        url = format_url(self.ELEMENTS_URL, dimension_name, hierarchy_name)
        return self._rest.POST(url, element.body, **kwargs)

    def update(self, dimension_name: str, hierarchy_name: str, element: Element, **kwargs) -> Response:
        url = format_url(self.ELEMENTS_URL + "('{}')", dimension_name, hierarchy_name, element.name)
        return self._rest.PATCH(url, element.body, **kwargs)

    def exists(self, dimension_name: str, hierarchy_name: str, element_name: str, **kwargs) -> bool:
        url = format_url(self.ELEMENTS_URL + "('{}')", dimension_name, hierarchy_name, element_name)
        return self._exists(url, **kwargs)

    def update_or_create(self, dimension_name: str, hierarchy_name: str, element: Element, **kwargs) -> Response:
        if self.exists(dimension_name, hierarchy_name, element.name, **kwargs):
            return self.update(dimension_name, hierarchy_name, element, **kwargs)

        return self.create(dimension_name, hierarchy_name, element, **kwargs)

    def delete(self, dimension_name: str, hierarchy_name: str, element_name: str, **kwargs) -> Response:
        url = format_url(self.ELEMENTS_URL + "('{}')", dimension_name, hierarchy_name, element_name)
        return self._rest.DELETE(url, **kwargs)

    def get_elements(self, dimension_name: str, hierarchy_name: str, **kwargs) -> List[Element]:
        url = format_url(self.ELEMENTS_URL + "?$select=Name,Type,Level,Index", dimension_name, hierarchy_name)
        response = self._rest.GET(url, **kwargs)
        return [Element.from_dict(element) for element in response.json()["value"]]

    def get_element_names(self, dimension_name: str, hierarchy_name: str, **kwargs) -> List[str]:
        """ Get all element names

        :param dimension_name:
        :param hierarchy_name:
        :return: List of element-names
        """
        url = format_url(self.ELEMENTS_URL + "?$select=Name", dimension_name, hierarchy_name)
        response = self._rest.GET(url, **kwargs)
        return [element["Name"] for element in response.json()['value']]

    def get_leaf_element_names(self, dimension_name: str, hierarchy_name: str, **kwargs) -> List[str]:
        url = format_url(self.ELEMENTS_URL + "?$select=Name&$filter=Type ne 3", dimension_name, hierarchy_name)
        response = self._rest.GET(url, **kwargs)
        return [element["Name"] for element in response.json()['value']]

    def get_consolidated_element_names(self, dimension_name: str, hierarchy_name: str, **kwargs) -> List[str]:
        url = format_url(self.ELEMENTS_URL + "?$select=Name&$filter=Type eq 3", dimension_name, hierarchy_name)
        response = self._rest.GET(url, **kwargs)
        return [element["Name"] for element in response.json()['value']]

    def get_number_of_elements(self, dimension_name: str, hierarchy_name: str, **kwargs) -> int:
        url = format_url(self.ELEMENTS_URL + "/$count", dimension_name, hierarchy_name)
        return int(self._rest.GET(url, **kwargs).text)

    def get_edges(self, dimension_name: str, hierarchy_name: str, **kwargs) -> Dict[Tuple[str, str], float]:
        url = format_url(
            "/Dimensions('{}')/Hierarchies('{}')/Edges?$select=ParentName,ComponentName,Weight",
            dimension_name,
            hierarchy_name)
        response = self._rest.GET(url, **kwargs)
        return {(edge["ParentName"], edge["ComponentName"]): edge["Weight"] for edge in response.json()["value"]}

    def get_parents(self, dimension_name: str, hierarchy_name: str, element_name: str, **kwargs) -> List[str]:
        url = format_url(
            self.ELEMENTS_URL + "('{}')/Parents?$select=Name", dimension_name, hierarchy_name, element_name)
        response = self._rest.GET(url=url, **kwargs)
        return [record["Name"] for record in response.json()["value"]]

    def add_elements(self, dimension_name: str, hierarchy_name: str, elements: Iterable[Element], **kwargs):
        """ POST elements. The server rejects the batch if an element exists already.

        :param dimension_name:
        :param hierarchy_name:
        :param elements:
        :return:
        """
        url = format_url(self.ELEMENTS_URL, dimension_name, hierarchy_name)
        body = [element.body_as_dict for element in elements]
        return self._rest.POST(url=url, data=json.dumps(body, ensure_ascii=False), **kwargs)

    def add_edges(self, dimension_name: str, hierarchy_name: str = None, edges: Dict[Tuple[str, str], float] = None,
                  **kwargs) -> Response:
        """ POST parent-child edges. The server rejects the batch if an edge exists already.

        :param dimension_name:
        :param hierarchy_name:
        :param edges: {(parent, component): weight}
        :return:
        """
        if not hierarchy_name:
            hierarchy_name = dimension_name

        url = format_url("/Dimensions('{}')/Hierarchies('{}')/Edges", dimension_name, hierarchy_name)
        body = [{"ParentName": parent, "ComponentName": component, "Weight": float(weight)}
                for (parent, component), weight
                in (edges or {}).items()]
        return self._rest.POST(url=url, data=json.dumps(body, ensure_ascii=False), **kwargs)

    def remove_edge(self, dimension_name: str, hierarchy_name: str, parent: str, component: str, **kwargs) -> Response:
        """ DELETE a single edge; parent and component must exist

        :param dimension_name:
        :param hierarchy_name:
        :param parent:
        :param component:
        :return:
        """
        url = format_url(
            self.ELEMENTS_URL + "('{}')/Edges(ParentName='{}',ComponentName='{}')",
            dimension_name,
            hierarchy_name,
            parent,
            parent,
            component)
        return self._rest.DELETE(url=url, **kwargs)

    def get_element_attributes(self, dimension_name: str, hierarchy_name: str, **kwargs) -> List[ElementAttribute]:
        """ Element attributes defined on a hierarchy

        :param dimension_name:
        :param hierarchy_name:
        :return:
        """
        url = format_url("/Dimensions('{}')/Hierarchies('{}')/ElementAttributes", dimension_name, hierarchy_name)
        response = self._rest.GET(url, **kwargs)
        return [ElementAttribute.from_dict(ea) for ea in response.json()['value']]

    def get_element_attribute_names(self, dimension_name: str, hierarchy_name: str, **kwargs) -> List[str]:
        url = format_url(
            "/Dimensions('{}')/Hierarchies('{}')/ElementAttributes?$select=Name", dimension_name, hierarchy_name)
        response = self._rest.GET(url, **kwargs)
        return [ea["Name"] for ea in response.json()['value']]

    def create_element_attribute(self, dimension_name: str, hierarchy_name: str, element_attribute: ElementAttribute,
                                 **kwargs) -> Response:
        """ like AttrInsert

        :param dimension_name:
        :param hierarchy_name:
        :param element_attribute: instance of TM1link.ElementAttribute
        :return:
        """
        url = format_url("/Dimensions('{}')/Hierarchies('{}')/ElementAttributes", dimension_name, hierarchy_name)
        return self._rest.POST(url, element_attribute.body, **kwargs)

    def delete_element_attribute(self, dimension_name: str, hierarchy_name: str, element_attribute: str, **kwargs):
        """ like AttrDelete. Attributes that don't exist are ignored

        :param dimension_name:
        :param hierarchy_name:
        :param element_attribute: name of the attribute
        :return:
        """
        url = format_url(
            "/Dimensions('{}')/Hierarchies('{}')/Elements('{}')",
            self.ELEMENT_ATTRIBUTES_PREFIX + dimension_name,
            self.ELEMENT_ATTRIBUTES_PREFIX + hierarchy_name,
            element_attribute)
        try:
            return self._rest.DELETE(url, **kwargs)
        except TM1linkNotFound:
            return None

    def add_element_attributes(self, dimension_name: str, hierarchy_name: str,
                               element_attributes: Iterable[ElementAttribute], **kwargs):
        """ POST element attributes. The server rejects the batch if one exists already.

        :param dimension_name:
        :param hierarchy_name:
        :param element_attributes:
        :return:
        """
        url = format_url("/Dimensions('{}')/Hierarchies('{}')/ElementAttributes", dimension_name, hierarchy_name)
        body = [element_attribute.body_as_dict for element_attribute in element_attributes]
        return self._rest.POST(url=url, data=json.dumps(body, ensure_ascii=False), **kwargs)
