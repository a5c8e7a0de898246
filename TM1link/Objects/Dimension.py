# -*- coding: utf-8 -*-

import collections
import json
from typing import Dict, Iterable, List, Optional

from TM1link.Objects.Hierarchy import Hierarchy
from TM1link.Objects.TM1Object import TM1Object
from TM1link.Utils.Utils import case_and_space_insensitive_equals


class Dimension(TM1Object):
    """ Abstraction of TM1 Dimension

        A Dimension is a container for hierarchies.
    """

    def __init__(self, name: str, hierarchies: Optional[Iterable[Hierarchy]] = None):
        """

        :param name: Name of the dimension
        :param hierarchies: List of TM1link.Objects.Hierarchy instances
        """
        self._name = name
        self._hierarchies = list(hierarchies or [])

    @classmethod
    def from_json(cls, dimension_as_json: str) -> 'Dimension':
        return cls.from_dict(json.loads(dimension_as_json))

    @classmethod
    def from_dict(cls, dimension_as_dict: Dict) -> 'Dimension':
        """ Alternative constructor

        :param dimension_as_dict: dimension with expanded Hierarchies
        :return: dimension, an instance of this class
        """
        return cls(
            name=dimension_as_dict['Name'],
            hierarchies=[
                Hierarchy.from_dict(hierarchy, dimension_name=dimension_as_dict['Name'])
                for hierarchy in dimension_as_dict.get('Hierarchies', [])])

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str):
        # renaming the dimension renames its same-named hierarchy too
        for hierarchy in self._hierarchies:
            hierarchy.dimension_name = value
            if case_and_space_insensitive_equals(hierarchy.name, self._name):
                hierarchy.name = value
        self._name = value

    @property
    def unique_name(self) -> str:
        return f"[{self._name}]"

    @property
    def hierarchies(self) -> List[Hierarchy]:
        return self._hierarchies

    @property
    def hierarchy_names(self) -> List[str]:
        return [hierarchy.name for hierarchy in self._hierarchies]

    @property
    def default_hierarchy(self) -> Hierarchy:
        """ the hierarchy named like the dimension """
        return self.get_hierarchy(self._name)

    def contains_hierarchy(self, hierarchy_name: str) -> bool:
        return any(case_and_space_insensitive_equals(hierarchy.name, hierarchy_name)
                   for hierarchy in self._hierarchies)

    def get_hierarchy(self, hierarchy_name: str) -> Hierarchy:
        """ Hierarchy by name, ignoring case and spaces

        :param hierarchy_name:
        :return: TM1link.Hierarchy
        """
        for hierarchy in self._hierarchies:
            if case_and_space_insensitive_equals(hierarchy.name, hierarchy_name):
                return hierarchy
        raise ValueError(f"Hierarchy: '{hierarchy_name}' not found in dimension: '{self._name}'")

    def add_hierarchy(self, hierarchy: Hierarchy):
        if self.contains_hierarchy(hierarchy.name):
            raise ValueError(f"Hierarchy: '{hierarchy.name}' already exists in dimension: '{self._name}'")
        self._hierarchies.append(hierarchy)

    def remove_hierarchy(self, hierarchy_name: str):
        """ Drop a hierarchy from the dimension. Leaves is maintained by TM1 and can not be removed

        :param hierarchy_name:
        """
        if case_and_space_insensitive_equals(hierarchy_name, "leaves"):
            raise ValueError("'Leaves' hierarchy must not be removed from dimension")
        self._hierarchies = [hierarchy for hierarchy in self._hierarchies
                             if not case_and_space_insensitive_equals(hierarchy.name, hierarchy_name)]

    @property
    def body(self) -> str:
        return json.dumps(self.body_as_dict, ensure_ascii=False)

    @property
    def body_as_dict(self) -> Dict:
        # Leaves is managed by TM1 and rejected when sent
        body_as_dict = collections.OrderedDict()
        body_as_dict['Name'] = self._name
        body_as_dict['UniqueName'] = self.unique_name
        body_as_dict['Hierarchies'] = [
            hierarchy.body_as_dict
            for hierarchy in self._hierarchies
            if not case_and_space_insensitive_equals(hierarchy.name, "Leaves")]
        return body_as_dict

    def __iter__(self):
        return iter(self._hierarchies)

    def __len__(self):
        return len(self._hierarchies)

    def __contains__(self, item):
        return self.contains_hierarchy(item)

    def __getitem__(self, item):
        return self.get_hierarchy(item)
