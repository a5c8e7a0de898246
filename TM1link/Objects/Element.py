# -*- coding: utf-8 -*-

import collections
import json
from typing import Union, Dict

from TM1link.Objects.TM1Object import TM1Object, TM1ObjectType


class Element(TM1Object):
    """ Abstraction of TM1 Element

    """

    class Types(TM1ObjectType):
        NUMERIC = 1
        STRING = 2
        CONSOLIDATED = 3

    def __init__(self, name: str, element_type: Union[Types, str], attributes: Dict = None,
                 unique_name: str = None, index: int = None, level: int = None):
        """

        :param name: name of the element
        :param element_type: Numeric, String or Consolidated
        :param attributes: attribute name -> value
        :param unique_name: e.g. [Region].[Region].[Europe], set by the server
        :param index: position in the hierarchy, set by the server
        :param level: 0 for leaves, set by the server
        """
        self.name = name
        self.element_type = element_type
        self.attributes = attributes or {}
        self.unique_name = unique_name
        self.index = index
        self.level = level

    @classmethod
    def from_dict(cls, element_as_dict: Dict) -> 'Element':
        """ Alternative constructor

        :param element_as_dict: element as returned by GET .../Elements(..)
        :return: element, an instance of this class
        """
        return cls(
            name=element_as_dict['Name'],
            element_type=element_as_dict['Type'],
            attributes=element_as_dict.get('Attributes'),
            unique_name=element_as_dict.get('UniqueName'),
            index=element_as_dict.get('Index'),
            level=element_as_dict.get('Level'))

    @property
    def element_type(self) -> Types:
        return self._element_type

    @element_type.setter
    def element_type(self, value: Union[Types, str]):
        self._element_type = Element.Types(value)

    @property
    def is_consolidated(self) -> bool:
        return self._element_type == Element.Types.CONSOLIDATED

    @property
    def body(self) -> str:
        return json.dumps(self.body_as_dict, ensure_ascii=False)

    @property
    def body_as_dict(self) -> Dict:
        # attributes are written through the attribute cube, not with the element
        body_as_dict = collections.OrderedDict()
        body_as_dict['Name'] = self.name
        body_as_dict['Type'] = str(self._element_type)
        return body_as_dict
