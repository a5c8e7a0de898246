# -*- coding: utf-8 -*-

import collections
import json
from typing import Dict, Iterable, List, Optional

from TM1link.Objects.TM1Object import TM1Object
from TM1link.Utils import format_url


class Cube(TM1Object):
    """ Abstraction of a TM1 Cube

    """

    def __init__(self, name: str, dimensions: Iterable[str], rules: Optional[str] = None,
                 drillthrough_rules: Optional[str] = None):
        """

        :param name: name of the Cube
        :param dimensions: list of (existing) dimension names
        :param rules: rules as text
        :param drillthrough_rules: drill rules as text
        """
        self._name = name
        self.dimensions = list(dimensions)
        self.rules = rules
        self.drillthrough_rules = drillthrough_rules

    @property
    def name(self) -> str:
        return self._name

    @property
    def dimensions(self) -> List[str]:
        return self._dimensions

    @dimensions.setter
    def dimensions(self, value: List[str]):
        self._dimensions = value

    @property
    def has_rules(self) -> bool:
        """ False for missing rules and for rules of whitespace only """
        return bool(self.rules and self.rules.strip())

    @classmethod
    def from_json(cls, cube_as_json: str) -> 'Cube':
        """ Alternative constructor

        :param cube_as_json: cube as JSON string
        :return: cube, an instance of this class
        """
        return cls.from_dict(json.loads(cube_as_json))

    @classmethod
    def from_dict(cls, cube_as_dict: Dict) -> 'Cube':
        """ Alternative constructor

        :param cube_as_dict: cube as returned by TM1, with expanded Dimensions
        :return: cube, an instance of this class
        """
        return cls(
            name=cube_as_dict['Name'],
            dimensions=[dimension['Name'] for dimension in cube_as_dict.get('Dimensions', [])],
            rules=cube_as_dict.get('Rules') or None,
            drillthrough_rules=cube_as_dict.get('DrillthroughRules') or None)

    @property
    def body(self) -> str:
        return json.dumps(self.body_as_dict, ensure_ascii=False)

    @property
    def body_as_dict(self) -> Dict:
        """ Name, dimensions bound by reference and, when there are any, the rules.
        Drillthrough rules live in a separate control cube and are not part of the body
        """
        body_as_dict = collections.OrderedDict()
        body_as_dict['Name'] = self.name
        body_as_dict['Dimensions@odata.bind'] = [
            format_url("Dimensions('{}')", dimension) for dimension in self.dimensions]
        if self.has_rules:
            body_as_dict['Rules'] = self.rules
        return body_as_dict
