# -*- coding: utf-8 -*-

import json
from typing import Dict, Union

from TM1link.Objects.TM1Object import TM1Object, TM1ObjectType
from TM1link.Utils import case_and_space_insensitive_equals


class ElementAttribute(TM1Object):
    """ Abstraction of TM1 Element Attributes

    Attributes compare equal to their name, ignoring case and spaces:
        ElementAttribute("Long Name", "Alias") == "longname"
    """

    class Types(TM1ObjectType):
        NUMERIC = 1
        STRING = 2
        ALIAS = 3

    def __init__(self, name: str, attribute_type: Union[Types, str]):
        """

        :param name: name of the attribute
        :param attribute_type: Numeric, String or Alias
        """
        self.name = name
        self.attribute_type = attribute_type

    @property
    def attribute_type(self) -> str:
        """ Numeric, String or Alias """
        return str(self._attribute_type)

    @attribute_type.setter
    def attribute_type(self, value: Union[Types, str]):
        self._attribute_type = ElementAttribute.Types(value)

    @property
    def body_as_dict(self) -> Dict:
        return {"Name": self.name, "Type": self.attribute_type}

    @property
    def body(self) -> str:
        return json.dumps(self.body_as_dict, ensure_ascii=False)

    @classmethod
    def from_dict(cls, element_attribute_as_dict: Dict) -> 'ElementAttribute':
        """ Alternative constructor

        :param element_attribute_as_dict: entry of GET /Dimensions(..)/Hierarchies(..)/ElementAttributes
        :return: ElementAttribute
        """
        return cls(name=element_attribute_as_dict['Name'],
                   attribute_type=element_attribute_as_dict['Type'])

    def __eq__(self, other: Union[str, 'ElementAttribute']):
        if isinstance(other, str):
            return case_and_space_insensitive_equals(self.name, other)
        if isinstance(other, ElementAttribute):
            return case_and_space_insensitive_equals(self.name, other.name)
        return NotImplemented

    def __hash__(self):
        return hash(self.name.replace(" ", "").lower())
