# -*- coding: utf-8 -*-

import collections
import json
from typing import Dict, Union

from TM1link.Objects.Subset import Subset, AnonymousSubset
from TM1link.Utils import format_url


class ViewAxisSelection:
    """ Describes what is selected in a dimension on an axis. Can be a Registered Subset or an Anonymous Subset

    """

    def __init__(self, dimension_name: str, subset: Union[Subset, AnonymousSubset]):
        """

        :param dimension_name: name of the dimension
        :param subset: registered Subset, bound by reference, or AnonymousSubset, sent inline
        """
        self.dimension_name = dimension_name
        self.hierarchy_name = subset.hierarchy_name or dimension_name
        self.subset = subset

    @property
    def body(self) -> str:
        return json.dumps(self.body_as_dict, ensure_ascii=False)

    @property
    def body_as_dict(self) -> Dict:
        body_as_dict = collections.OrderedDict()
        if isinstance(self.subset, AnonymousSubset):
            body_as_dict['Subset'] = self.subset.body_as_dict
        else:
            body_as_dict['Subset@odata.bind'] = format_url(
                "Dimensions('{}')/Hierarchies('{}')/Subsets('{}')",
                self.dimension_name, self.hierarchy_name, self.subset.name)
        return body_as_dict


class ViewTitleSelection(ViewAxisSelection):
    """ Describes what is selected in a dimension on the view title

    """

    def __init__(self, dimension_name: str, subset: Union[AnonymousSubset, Subset], selected: str):
        """

        :param dimension_name: name of the dimension
        :param subset: Subset or AnonymousSubset offering the elements
        :param selected: name of the element shown in the title
        """
        super().__init__(dimension_name, subset)
        self.selected = selected

    @property
    def body_as_dict(self) -> Dict:
        body_as_dict = super().body_as_dict
        body_as_dict['Selected@odata.bind'] = format_url(
            "Dimensions('{}')/Hierarchies('{}')/Elements('{}')",
            self.dimension_name, self.hierarchy_name, self.selected)
        return body_as_dict
