# -*- coding: utf-8 -*-

from typing import List

from requests import Response

from TM1link.Objects.User import User
from TM1link.Services.ObjectService import ObjectService
from TM1link.Services.RestService import RestService
from TM1link.Services.SecurityService import USER_SELECT, SecurityService
from TM1link.Utils import case_and_space_insensitive_equals, format_url, require_admin


class UserService(ObjectService):
    """ Service to query who is logged in and to disconnect users

    """

    def __init__(self, rest: RestService):
        super().__init__(rest)
        self._security = SecurityService(rest)

    def get_all(self, **kwargs) -> List[User]:
        return self._security.get_all_users(**kwargs)

    def get_active(self, **kwargs) -> List[User]:
        """ Users with at least one open session

        :return: List of TM1link.User instances
        """
        response = self._rest.GET("/Users?$filter=IsActive eq true&" + USER_SELECT, **kwargs)
        return [User.from_dict(user) for user in response.json()["value"]]

    def is_active(self, user_name: str, **kwargs) -> bool:
        url = format_url("/Users('{}')/IsActive", user_name)
        return bool(self._rest.GET(url, **kwargs).json()["value"])

    def get_current(self, **kwargs) -> User:
        return self._security.get_current_user(**kwargs)

    def disconnect(self, user_name: str, **kwargs) -> Response:
        """ Close all sessions of a user

        :param user_name:
        :return: response
        """
        return self._rest.POST(format_url("/Users('{}')/tm1.Disconnect", user_name), **kwargs)

    @require_admin
    def disconnect_all(self, **kwargs) -> List[str]:
        """ Disconnect every active user except the one running this session

        :return: names of the disconnected users
        """
        current_user = self.get_current(**kwargs)
        disconnected = []
        for user in self.get_active(**kwargs):
            if case_and_space_insensitive_equals(user.name, current_user.name):
                continue
            self.disconnect(user.name, **kwargs)
            disconnected.append(user.name)
        return disconnected
