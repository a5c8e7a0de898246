# -*- coding: utf-8 -*-

import collections
import json
from typing import List, Dict, Iterable, Optional, Tuple, Union

from TM1link.Objects.Element import Element
from TM1link.Objects.ElementAttribute import ElementAttribute
from TM1link.Objects.TM1Object import TM1Object
from TM1link.Utils.Utils import CaseAndSpaceInsensitiveDict, CaseAndSpaceInsensitiveTuplesDict, \
    lower_and_drop_spaces, case_and_space_insensitive_equals


class Hierarchy(TM1Object):
    """ Abstraction of TM1 Hierarchy

    Elements are kept in a CaseAndSpaceInsensitiveDict: element name -> Element
    Edges are kept in a CaseAndSpaceInsensitiveTuplesDict: (parent, component) -> weight

    The owning dimension is referenced by name only
    """

    def __init__(
            self,
            name: str,
            dimension_name: str,
            elements: Optional[Iterable[Element]] = None,
            element_attributes: Optional[Iterable[ElementAttribute]] = None,
            edges: Optional[Dict] = None,
            subsets: Optional[Iterable[str]] = None,
            default_member: Optional[str] = None):
        self.name = name
        self.dimension_name = dimension_name
        self._elements = CaseAndSpaceInsensitiveDict()
        for element in elements or []:
            self._elements[element.name] = element
        self._element_attributes = list(element_attributes or [])
        self._edges = CaseAndSpaceInsensitiveTuplesDict(edges or {})
        self._subsets = list(subsets or [])
        self.default_member = default_member

    @classmethod
    def from_dict(cls, hierarchy_as_dict: Dict, dimension_name: str = None) -> 'Hierarchy':
        edges = {
            (edge['ParentName'], edge['ComponentName']): edge['Weight']
            for edge
            in hierarchy_as_dict.get('Edges', [])}

        if not dimension_name:
            unique_name = hierarchy_as_dict.get('UniqueName') or ''
            dimension_name = unique_name[1:unique_name.find("].[")] if "].[" in unique_name else \
                hierarchy_as_dict['Name']

        return cls(
            name=hierarchy_as_dict['Name'],
            dimension_name=dimension_name,
            elements=[Element.from_dict(element) for element in hierarchy_as_dict.get('Elements', [])],
            element_attributes=[ElementAttribute.from_dict(attribute)
                                for attribute in hierarchy_as_dict.get('ElementAttributes', [])],
            edges=edges,
            subsets=[subset['Name'] for subset in hierarchy_as_dict.get('Subsets', [])],
            default_member=hierarchy_as_dict['DefaultMember']['Name']
            if hierarchy_as_dict.get('DefaultMember') else None)

    @property
    def unique_name(self) -> str:
        return f"[{self.dimension_name}].[{self.name}]"

    @property
    def elements(self) -> Dict[str, Element]:
        """ elements by name. The dict ignores case and spaces in its keys """
        return self._elements

    @property
    def element_attributes(self) -> List[ElementAttribute]:
        return self._element_attributes

    @property
    def edges(self) -> Dict[Tuple[str, str], float]:
        """ (parent, component) -> weight """
        return self._edges

    @property
    def subsets(self) -> List[str]:
        return self._subsets

    def contains_element(self, element_name: str) -> bool:
        return element_name in self._elements

    def get_element(self, element_name: str) -> Element:
        if element_name not in self._elements:
            raise ValueError(f"Element: '{element_name}' not found in Hierarchy: '{self.name}'")
        return self._elements[element_name]

    def add_element(self, element_name: str, element_type: Union[str, Element.Types]):
        """

        :param element_name: unique within the hierarchy
        :param element_type: Numeric, String or Consolidated
        """
        if element_name in self._elements:
            raise ValueError("Element name must be unique")
        self._elements[element_name] = Element(name=element_name, element_type=element_type)

    def update_element(self, element_name: str, element_type: Union[str, Element.Types]):
        self._elements[element_name].element_type = element_type

    def remove_element(self, element_name: str):
        """ Remove an element together with all edges it takes part in. Unknown names are ignored """
        if element_name not in self._elements:
            return
        del self._elements[element_name]
        self.remove_edges_related_to_element(element_name)

    def add_edge(self, parent: str, component: str, weight: float):
        """

        :param parent: name of the consolidated element
        :param component: name of the child
        :param weight: e.g. 1 or -1
        """
        self._edges[(parent, component)] = weight

    def remove_edge(self, parent: str, component: str):
        if (parent, component) in self._edges:
            del self._edges[(parent, component)]

    def remove_edges_related_to_element(self, element_name: str):
        adjusted_name = lower_and_drop_spaces(element_name)
        for edge in [edge for edge in self._edges if adjusted_name in
                     (lower_and_drop_spaces(edge[0]), lower_and_drop_spaces(edge[1]))]:
            del self._edges[edge]

    def add_element_attribute(self, name: str, attribute_type: str):
        # attributes that already exist are kept as they are
        attribute = ElementAttribute(name, attribute_type)
        if attribute not in self._element_attributes:
            self._element_attributes.append(attribute)

    def remove_element_attribute(self, name: str):
        self._element_attributes = [
            attribute
            for attribute
            in self._element_attributes if not case_and_space_insensitive_equals(attribute.name, name)]

    @property
    def body(self) -> str:
        return json.dumps(self.body_as_dict, ensure_ascii=False)

    @property
    def body_as_dict(self) -> Dict:
        return self._construct_body()

    def _construct_body(self, element_attributes: bool = False) -> Dict:
        """ element attributes are created separately, so they are only included on request

        :param element_attributes: include element attributes in body
        """
        body_as_dict = collections.OrderedDict()
        body_as_dict['Name'] = self.name
        body_as_dict['Elements'] = [element.body_as_dict for element in self._elements.values()]
        body_as_dict['Edges'] = [
            {'ParentName': parent, 'ComponentName': component, 'Weight': weight}
            for (parent, component), weight
            in self._edges.items()]
        if element_attributes:
            body_as_dict['ElementAttributes'] = [attribute.body_as_dict for attribute in self._element_attributes]
        return body_as_dict

    def __iter__(self):
        return iter(self._elements.values())

    def __len__(self):
        return len(self._elements)

    def __contains__(self, item):
        return self.contains_element(item)

    def __getitem__(self, item):
        return self.get_element(item)
