# -*- coding: utf-8 -*-

from typing import Dict, List

from requests import Response

from TM1link.Services.ObjectService import ObjectService
from TM1link.Services.RestService import RestService
from TM1link.Services.UserService import UserService
from TM1link.Utils import case_and_space_insensitive_equals, format_url, require_admin


class SessionService(ObjectService):
    """ Service to query and close sessions

    """

    def __init__(self, rest: RestService):
        super().__init__(rest)
        self.users = UserService(rest)

    def get_all(self, include_user: bool = True, include_threads: bool = True, **kwargs) -> List[Dict]:
        """ All open sessions on the server

        :param include_user: expand the user that owns the session
        :param include_threads: expand the threads of the session
        :return: sessions as dict
        """
        url = "/Sessions"
        expands = [name for name, include in (("User", include_user), ("Threads", include_threads)) if include]
        if expands:
            url += "?$expand=" + ",".join(expands)
        return self._rest.GET(url, **kwargs).json()["value"]

    def get_current(self, **kwargs) -> Dict:
        """ The session of this connection """
        response_json = self._rest.GET("/ActiveSession", **kwargs).json()
        response_json.pop("@odata.context", None)
        return response_json

    def get_threads_for_current(self, exclude_idle: bool = True, **kwargs) -> List[Dict]:
        # the request itself shows up as a thread of the session
        url = "/ActiveSession/Threads?$filter=Function ne 'GET /ActiveSession/Threads' " \
              "and Function ne 'GET /api/v1/ActiveSession/Threads'"
        if exclude_idle:
            url += " and State ne 'Idle'"
        return self._rest.GET(url, **kwargs).json()["value"]

    def close(self, session_id, **kwargs) -> Response:
        return self._rest.POST(format_url("/Sessions('{}')/tm1.Close", str(session_id)), **kwargs)

    @require_admin
    def close_all(self, **kwargs) -> List[Dict]:
        """ Close the sessions of all other users. Sessions without a user, e.g. of chores, stay open

        :return: the closed sessions
        """
        current_user = self.users.get_current(**kwargs)
        closed = []
        for session in self.get_all(include_threads=False, **kwargs):
            user_name = (session.get("User") or {}).get("Name")
            if not user_name or case_and_space_insensitive_equals(user_name, current_user.name):
                continue
            self.close(session["ID"], **kwargs)
            closed.append(session)
        return closed
