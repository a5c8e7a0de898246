# -*- coding: utf-8 -*-
import json
from typing import Iterable, List

from requests import Response

from TM1link.Objects.Subset import Subset
from TM1link.Services.ObjectService import ObjectService
from TM1link.Services.RestService import RestService
from TM1link.Utils import format_url

SUBSET_EXPAND = "?$expand=Hierarchy($select=Dimension,Name),Elements($select=Name)&$select=*,Alias"


def _subsets_url(dimension_name: str, hierarchy_name: str = None, private: bool = False,
                 subset_name: str = None) -> str:
    collection = "PrivateSubsets" if private else "Subsets"
    url = format_url(
        "/Dimensions('{}')/Hierarchies('{}')/" + collection, dimension_name, hierarchy_name or dimension_name)
    if subset_name is not None:
        url += format_url("('{}')", subset_name)
    return url


class SubsetService(ObjectService):
    """ Public and private subsets of a hierarchy. Static subsets hold an element list,
    dynamic subsets an MDX expression.

    """

    def __init__(self, rest: RestService):
        super().__init__(rest)

    def get(self, subset_name: str, dimension_name: str, hierarchy_name: str = None, private: bool = False,
            **kwargs) -> Subset:
        """ Read a subset with its elements (static) or expression (dynamic)

        :param subset_name: name of the subset
        :param dimension_name: name of the dimension
        :param hierarchy_name: name of the hierarchy, defaults to the dimension name
        :param private: True for a private subset of the current user
        :return: instance of TM1link.Subset
        """
        url = _subsets_url(dimension_name, hierarchy_name, private, subset_name) + SUBSET_EXPAND
        return Subset.from_dict(self._rest.GET(url, **kwargs).json())

    def get_all_names(self, dimension_name: str, hierarchy_name: str = None, private: bool = False,
                      **kwargs) -> List[str]:
        url = _subsets_url(dimension_name, hierarchy_name, private) + "?$select=Name"
        response = self._rest.GET(url, **kwargs)
        return [subset["Name"] for subset in response.json()["value"]]

    def exists(self, subset_name: str, dimension_name: str, hierarchy_name: str = None, private: bool = False,
               **kwargs) -> bool:
        return self._exists(_subsets_url(dimension_name, hierarchy_name, private, subset_name), **kwargs)

    def create(self, subset: Subset, private: bool = False, **kwargs) -> Response:
        url = _subsets_url(subset.dimension_name, subset.hierarchy_name, private)
        return self._rest.POST(url, subset.body, **kwargs)

    def update(self, subset: Subset, private: bool = False, **kwargs) -> Response:
        """ Static subsets get their element list replaced, dynamic subsets get their expression patched

        :param subset: instance of TM1link.Subset
        :param private: True for a private subset of the current user
        :return: response
        """
        if subset.is_static:
            return self.update_static_elements(
                subset.name, subset.dimension_name, subset.hierarchy_name, subset.elements, private, **kwargs)

        url = _subsets_url(subset.dimension_name, subset.hierarchy_name, private, subset.name)
        return self._rest.PATCH(url, subset.body, **kwargs)

    def update_static_elements(self, subset_name: str, dimension_name: str, hierarchy_name: str,
                               elements: Iterable[str], private: bool = False, **kwargs) -> Response:
        url = _subsets_url(dimension_name, hierarchy_name, private, subset_name) + "/Elements/$ref"
        references = [
            {"@odata.id": format_url("Dimensions('{}')/Hierarchies('{}')/Elements('{}')",
                                     dimension_name, hierarchy_name, element)}
            for element
            in elements]
        return self._rest.PUT(url, json.dumps(references, ensure_ascii=False), **kwargs)

    def update_or_create(self, subset: Subset, private: bool = False, **kwargs) -> Response:
        if self.exists(subset.name, subset.dimension_name, subset.hierarchy_name, private, **kwargs):
            return self.update(subset, private, **kwargs)
        return self.create(subset, private, **kwargs)

    def delete(self, subset_name: str, dimension_name: str, hierarchy_name: str = None,
               private: bool = False, **kwargs) -> Response:
        return self._rest.DELETE(_subsets_url(dimension_name, hierarchy_name, private, subset_name), **kwargs)
