# -*- coding: utf-8 -*-

from typing import Dict, List

from requests import Response

from TM1link.Services.ObjectService import ObjectService
from TM1link.Services.RestService import RestService
from TM1link.Utils import deprecated_in_version_gate, format_url

# a thread listing itself
OWN_THREAD_FUNCTIONS = ("GET /Threads", "GET /api/v1/Threads")


class ThreadService(ObjectService):
    """ Service to query and cancel threads. Threads are gone in v12, see JobService

    """

    def __init__(self, rest: RestService):
        super().__init__(rest)

    @deprecated_in_version_gate("threads")
    def get_all(self, **kwargs) -> List[Dict]:
        return self._rest.GET("/Threads", **kwargs).json()["value"]

    @deprecated_in_version_gate("threads")
    def get_active(self, **kwargs) -> List[Dict]:
        """ Threads that are not idle, without the thread answering this request """
        url = "/Threads?$filter=Function ne 'GET /Threads' and State ne 'Idle'"
        return self._rest.GET(url, **kwargs).json()["value"]

    @deprecated_in_version_gate("threads")
    def cancel(self, thread_id: int, **kwargs) -> Response:
        """ Cancel the operation a thread is running

        :param thread_id: ID of the thread
        :return: response
        """
        return self._rest.POST(format_url("/Threads('{}')/tm1.CancelOperation", str(thread_id)), **kwargs)

    @deprecated_in_version_gate("threads")
    def cancel_all_running(self, **kwargs) -> List[Dict]:
        """ Cancel all user threads that are busy. System and pseudo threads are left alone

        :return: the canceled threads
        """
        canceled = []
        for thread in self.get_all(**kwargs):
            if thread["State"] == "Idle" or thread["Type"] == "System" or thread["Name"] == "Pseudo":
                continue
            if thread["Function"] in OWN_THREAD_FUNCTIONS:
                continue
            self.cancel(thread["ID"], **kwargs)
            canceled.append(thread)
        return canceled
