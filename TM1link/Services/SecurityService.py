# -*- coding: utf-8 -*-

import json
from typing import Iterable, List

from requests import Response

from TM1link.Objects.User import User
from TM1link.Services.ObjectService import ObjectService
from TM1link.Services.ProcessService import ProcessService
from TM1link.Services.RestService import RestService
from TM1link.Utils import CaseAndSpaceInsensitiveSet, format_url, is_control_object, require_security_admin

USER_SELECT = "$select=Name,FriendlyName,Type,Enabled&$expand=Groups($select=Name)"


class SecurityService(ObjectService):
    """ Service to handle users and groups

    Names are resolved against the server before writing, so 'marius wirtz' finds 'Marius Wirtz'
    """

    BUILT_IN_GROUPS = tuple(str(user_type) for user_type in User.TYPES_BY_PRECEDENCE)

    def __init__(self, rest: RestService):
        super().__init__(rest)
        self._processes = ProcessService(rest)

    def determine_actual_user_name(self, user_name: str, **kwargs) -> str:
        return self.determine_actual_object_name(object_class="Users", object_name=user_name, **kwargs)

    def determine_actual_group_name(self, group_name: str, **kwargs) -> str:
        return self.determine_actual_object_name(object_class="Groups", object_name=group_name, **kwargs)

    @require_security_admin
    def create_user(self, user: User, **kwargs) -> Response:
        """ Create a user together with its group assignments

        :param user: instance of TM1link.User
        :return: response
        """
        return self._rest.POST("/Users", user.body, **kwargs)

    @require_security_admin
    def create_group(self, group_name: str, **kwargs) -> Response:
        return self._rest.POST("/Groups", json.dumps({"Name": group_name}, ensure_ascii=False), **kwargs)

    def get_user(self, user_name: str, **kwargs) -> User:
        """ Get a user with its groups

        :param user_name: name in any spelling
        :return: instance of TM1link.User
        """
        user_name = self.determine_actual_user_name(user_name, **kwargs)
        url = format_url("/Users('{}')?", user_name) + USER_SELECT
        return User.from_dict(self._rest.GET(url, **kwargs).json())

    def get_current_user(self, **kwargs) -> User:
        """ User that owns this session """
        return User.from_dict(self._rest.GET("/ActiveUser?" + USER_SELECT, **kwargs).json())

    def get_all_users(self, **kwargs) -> List[User]:
        response = self._rest.GET("/Users?" + USER_SELECT, **kwargs)
        return [User.from_dict(user) for user in response.json()["value"]]

    def get_all_user_names(self, **kwargs) -> List[str]:
        response = self._rest.GET("/Users?$select=Name", **kwargs)
        return [user["Name"] for user in response.json()["value"]]

    def get_users_from_group(self, group_name: str, **kwargs) -> List[User]:
        """ Members of a group

        :param group_name:
        :return: List of TM1link.User instances
        """
        url = format_url(
            "/Groups('{}')?$expand=Users($select=Name,FriendlyName,Type,Enabled;$expand=Groups($select=Name))",
            group_name)
        return [User.from_dict(user) for user in self._rest.GET(url, **kwargs).json()["Users"]]

    def get_user_names_from_group(self, group_name: str, **kwargs) -> List[str]:
        url = format_url("/Groups('{}')/Users?$select=Name", group_name)
        return [user["Name"] for user in self._rest.GET(url, **kwargs).json()["value"]]

    def get_groups(self, user_name: str, **kwargs) -> List[str]:
        """ Names of the groups a user belongs to

        :param user_name: name in any spelling
        """
        user_name = self.determine_actual_user_name(user_name, **kwargs)
        url = format_url("/Users('{}')/Groups?$select=Name", user_name)
        return [group["Name"] for group in self._rest.GET(url, **kwargs).json()["value"]]

    def get_all_groups(self, **kwargs) -> List[str]:
        response = self._rest.GET("/Groups?$select=Name", **kwargs)
        return [group["Name"] for group in response.json()["value"]]

    def get_custom_security_groups(self, **kwargs) -> List[str]:
        """ Groups created for the model, without the admin groups and the control groups, e.g. }tp_Everyone """
        builtin = CaseAndSpaceInsensitiveSet(*self.BUILT_IN_GROUPS)
        return [
            group
            for group
            in self.get_all_groups(**kwargs)
            if group not in builtin and not is_control_object(group)]

    @require_security_admin
    def update_user(self, user: User, **kwargs) -> Response:
        """ Update a user. Group memberships the user object no longer lists are removed

        :param user: instance of TM1link.User
        :return: response
        """
        user.name = self.determine_actual_user_name(user.name, **kwargs)
        wanted_groups = CaseAndSpaceInsensitiveSet(*user.groups)
        for group in self.get_groups(user.name, **kwargs):
            if group not in wanted_groups:
                self.remove_user_from_group(group, user.name, **kwargs)
        return self._rest.PATCH(format_url("/Users('{}')", user.name), user.body, **kwargs)

    @require_security_admin
    def update_user_password(self, user_name: str, password: str, **kwargs) -> Response:
        url = format_url("/Users('{}')", user_name)
        return self._rest.PATCH(url, json.dumps({"Password": password}, ensure_ascii=False), **kwargs)

    @require_security_admin
    def delete_user(self, user_name: str, **kwargs) -> Response:
        user_name = self.determine_actual_user_name(user_name, **kwargs)
        return self._rest.DELETE(format_url("/Users('{}')", user_name), **kwargs)

    @require_security_admin
    def delete_group(self, group_name: str, **kwargs) -> Response:
        group_name = self.determine_actual_group_name(group_name, **kwargs)
        return self._rest.DELETE(format_url("/Groups('{}')", group_name), **kwargs)

    @require_security_admin
    def add_user_to_groups(self, user_name: str, groups: Iterable[str], **kwargs) -> Response:
        """ Add a user to groups, keeping its current memberships

        :param user_name: name of user
        :param groups: iterable of group names in any spelling
        :return: response
        """
        user_name = self.determine_actual_user_name(user_name, **kwargs)
        body = {
            "Name": user_name,
            "Groups@odata.bind": [
                format_url("Groups('{}')", self.determine_actual_group_name(group, **kwargs))
                for group
                in groups]}
        return self._rest.PATCH(format_url("/Users('{}')", user_name), json.dumps(body, ensure_ascii=False), **kwargs)

    @require_security_admin
    def remove_user_from_group(self, group_name: str, user_name: str, **kwargs) -> Response:
        user_name = self.determine_actual_user_name(user_name, **kwargs)
        group_name = self.determine_actual_group_name(group_name, **kwargs)
        url = format_url("/Users('{}')/Groups?$id=Groups('{}')", user_name, group_name)
        return self._rest.DELETE(url, **kwargs)

    def user_exists(self, user_name: str, **kwargs) -> bool:
        return self._exists(format_url("/Users('{}')", user_name), **kwargs)

    def group_exists(self, group_name: str, **kwargs) -> bool:
        return self._exists(format_url("/Groups('{}')", group_name), **kwargs)

    def security_refresh(self, **kwargs) -> Response:
        """ Re-evaluate the security rules of all cubes """
        return self._processes.execute_ti_code(["SecurityRefresh;"], **kwargs)
