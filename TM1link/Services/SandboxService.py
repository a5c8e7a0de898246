# -*- coding: utf-8 -*-
import json
from typing import List

from requests import Response

from TM1link.Objects.Sandbox import Sandbox
from TM1link.Services.ObjectService import ObjectService
from TM1link.Services.RestService import RestService
from TM1link.Utils import format_url


class SandboxService(ObjectService):
    """ Sandboxes of the current user: create, read, publish, reset and merge

    """

    def __init__(self, rest: RestService):
        super().__init__(rest)

    def get(self, sandbox_name: str, **kwargs) -> Sandbox:
        """ Read a sandbox by name

        :param sandbox_name:
        :return: instance of TM1link.Sandbox
        """
        url = format_url("/Sandboxes('{}')", sandbox_name)
        response = self._rest.GET(url=url, **kwargs)
        return Sandbox.from_dict(response.json())

    def get_all(self, **kwargs) -> List[Sandbox]:
        """ Sandboxes visible to the current user

        :return: List of TM1link.Sandbox instances
        """
        url = "/Sandboxes?$select=Name,IncludeInSandboxDimension,IsLoaded,IsActive,IsQueued"
        response = self._rest.GET(url, **kwargs)
        return [Sandbox.from_dict(sandbox_as_dict=sandbox) for sandbox in response.json()["value"]]

    def get_all_names(self, **kwargs) -> List[str]:
        response = self._rest.GET("/Sandboxes?$select=Name", **kwargs)
        return [sandbox["Name"] for sandbox in response.json()["value"]]

    def create(self, sandbox: Sandbox, **kwargs) -> Response:
        """ POST a new sandbox

        :param sandbox: Sandbox
        :return: response
        """
        return self._rest.POST(url="/Sandboxes", data=sandbox.body, **kwargs)

    def update(self, sandbox: Sandbox, **kwargs) -> Response:
        url = format_url("/Sandboxes('{}')", sandbox.name)
        return self._rest.PATCH(url=url, data=sandbox.body, **kwargs)

    def delete(self, sandbox_name: str, **kwargs) -> Response:
        """ Remove a sandbox with its changes

        :param sandbox_name:
        :return: response
        """
        url = format_url("/Sandboxes('{}')", sandbox_name)
        return self._rest.DELETE(url, **kwargs)

    def exists(self, sandbox_name: str, **kwargs) -> bool:
        url = format_url("/Sandboxes('{}')", sandbox_name)
        return self._exists(url, **kwargs)

    def publish(self, sandbox_name: str, **kwargs) -> Response:
        """ Commit the changes of a sandbox to base data

        :param sandbox_name: str
        :return: response
        """
        url = format_url("/Sandboxes('{}')/tm1.Publish", sandbox_name)
        return self._rest.POST(url=url, **kwargs)

    def reset(self, sandbox_name: str, **kwargs) -> Response:
        """ Discard all changes of a sandbox

        :param sandbox_name: str
        :return: response
        """
        url = format_url("/Sandboxes('{}')/tm1.DiscardChanges", sandbox_name)
        return self._rest.POST(url=url, **kwargs)

    def merge(self, source_sandbox_name: str, target_sandbox_name: str, clean_after: bool = False,
              **kwargs) -> Response:
        """ Apply the changes of one sandbox to another

        :param source_sandbox_name: str
        :param target_sandbox_name: str
        :param clean_after: discard the source changes once merged
        :return: response
        """
        url = format_url("/Sandboxes('{}')/tm1.Merge", source_sandbox_name)
        payload = {
            "Target@odata.bind": format_url("Sandboxes('{}')", target_sandbox_name),
            "CleanAfter": clean_after}
        return self._rest.POST(url=url, data=json.dumps(payload, ensure_ascii=False), **kwargs)
