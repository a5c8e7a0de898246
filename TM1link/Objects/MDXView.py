# -*- coding: utf-8 -*-

import collections
import json
from typing import Dict

from TM1link.Objects.View import View


class MDXView(View):
    """ Abstraction of TM1 MDX View

    """

    def __init__(self, cube_name: str, view_name: str, mdx: str):
        super().__init__(cube_name, view_name)
        self._mdx = mdx

    @property
    def mdx(self) -> str:
        return self._mdx

    @mdx.setter
    def mdx(self, value: str):
        self._mdx = value

    @classmethod
    def from_dict(cls, view_as_dict: Dict, cube_name: str = None) -> 'MDXView':
        """ Alternative constructor

        :param view_as_dict: view as returned by GET /Cubes(..)/Views(..)
        :param cube_name: name of the cube, read from the dict when missing
        :return: MDXView
        """
        return cls(cube_name=cube_name or view_as_dict['Cube']['Name'],
                   view_name=view_as_dict['Name'],
                   mdx=view_as_dict['MDX'])

    @property
    def body(self) -> str:
        mdx_view_as_dict = collections.OrderedDict()
        mdx_view_as_dict['@odata.type'] = 'ibm.tm1.api.v1.MDXView'
        mdx_view_as_dict['Name'] = self.name
        mdx_view_as_dict['MDX'] = self._mdx
        return json.dumps(mdx_view_as_dict, ensure_ascii=False)
