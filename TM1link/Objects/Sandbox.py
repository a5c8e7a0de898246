# -*- coding: utf-8 -*-

import json
from typing import Dict

from TM1link.Objects.TM1Object import TM1Object


class Sandbox(TM1Object):
    """ Abstraction of a TM1 Sandbox """

    def __init__(self, name: str, include_in_sandbox_dimension: bool = True, loaded: bool = False,
                 active: bool = False, queued: bool = False):
        """

        :param name: name of the Sandbox
        :param include_in_sandbox_dimension:
        :params loaded, active, queued: reported by the server, ignored on create
        """
        self.name = name
        self.include_in_sandbox_dimension = include_in_sandbox_dimension
        self.loaded = loaded
        self.active = active
        self.queued = queued

    @classmethod
    def from_dict(cls, sandbox_as_dict: Dict) -> 'Sandbox':
        """ Alternative constructor

        :param sandbox_as_dict: sandbox as returned by GET /Sandboxes
        :return: Sandbox
        """
        return cls(
            name=sandbox_as_dict['Name'],
            include_in_sandbox_dimension=sandbox_as_dict.get('IncludeInSandboxDimension', True),
            loaded=sandbox_as_dict.get('IsLoaded', False),
            active=sandbox_as_dict.get('IsActive', False),
            queued=sandbox_as_dict.get('IsQueued', False))

    @property
    def body(self) -> str:
        """ JSON to create a sandbox. The state flags are owned by the server and not sent """
        return json.dumps(
            {'Name': self.name, 'IncludeInSandboxDimension': self.include_in_sandbox_dimension},
            ensure_ascii=False)
