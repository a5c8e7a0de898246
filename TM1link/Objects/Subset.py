# -*- coding: utf-8 -*-

import collections
import json
from typing import Iterable, Dict, List, Optional

from TM1link.Objects.TM1Object import TM1Object
from TM1link.Utils import format_url


class Subset(TM1Object):
    """ Abstraction of the TM1 Subset (dynamic and static)

    """

    def __init__(self, subset_name: str, dimension_name: str, hierarchy_name: str = None, alias: str = None,
                 expression: str = None, elements: Iterable[str] = None):
        """

        :param subset_name: String
        :param dimension_name: String
        :param hierarchy_name: String, defaults to the dimension name
        :param alias: String, alias that is active in this subset
        :param expression: String, MDX expression of a dynamic subset
        :param elements: List, element names of a static subset
        """
        self.name = subset_name
        self.dimension_name = dimension_name
        self.hierarchy_name = hierarchy_name or dimension_name
        self.alias = alias
        self.expression = expression
        self.elements = list(elements or [])

    @property
    def type(self) -> str:
        """ dynamic when an MDX expression is set, static otherwise """
        return 'dynamic' if self.expression else 'static'

    @property
    def is_dynamic(self) -> bool:
        return bool(self.expression)

    @property
    def is_static(self) -> bool:
        return not self.is_dynamic

    @classmethod
    def from_dict(cls, subset_as_dict: Dict) -> 'Subset':
        """ Alternative constructor

        :param subset_as_dict: subset with expanded Hierarchy (and its Dimension) and Elements
        :return: subset, an instance of this class
        """
        hierarchy = subset_as_dict['Hierarchy']
        return cls(
            subset_name=subset_as_dict['Name'],
            dimension_name=hierarchy['Dimension']['Name'] if 'Dimension' in hierarchy else hierarchy['Name'],
            hierarchy_name=hierarchy['Name'],
            alias=subset_as_dict.get('Alias') or None,
            expression=subset_as_dict.get('Expression'),
            elements=[element['Name'] for element in subset_as_dict.get('Elements') or []]
            if not subset_as_dict.get('Expression') else None)

    def add_elements(self, elements: Iterable[str]):
        self.elements.extend(elements)

    @property
    def body(self) -> str:
        return json.dumps(self.body_as_dict, ensure_ascii=False)

    @property
    def body_as_dict(self) -> Dict:
        body_as_dict = collections.OrderedDict()
        body_as_dict['Name'] = self.name
        self._add_common_properties(body_as_dict)
        return body_as_dict

    def _add_common_properties(self, body_as_dict: Dict):
        # a dynamic subset sends its expression, a static one binds its elements by reference
        if self.alias:
            body_as_dict['Alias'] = self.alias
        body_as_dict['Hierarchy@odata.bind'] = format_url(
            "Dimensions('{}')/Hierarchies('{}')", self.dimension_name, self.hierarchy_name)
        if self.is_dynamic:
            body_as_dict['Expression'] = self.expression
        elif self.elements:
            body_as_dict['Elements@odata.bind'] = [
                format_url("Dimensions('{}')/Hierarchies('{}')/Elements('{}')",
                           self.dimension_name, self.hierarchy_name, element)
                for element
                in self.elements]


class AnonymousSubset(Subset):
    """ Unregistered subset, only used inside native views """

    def __init__(self, dimension_name: str, hierarchy_name: Optional[str] = None, alias: str = None,
                 expression: str = None, elements: Iterable[str] = None):
        super().__init__(
            subset_name='',
            dimension_name=dimension_name,
            hierarchy_name=hierarchy_name,
            alias=alias,
            expression=expression,
            elements=elements)

    @property
    def body_as_dict(self) -> Dict:
        body_as_dict = collections.OrderedDict()
        self._add_common_properties(body_as_dict)
        return body_as_dict
