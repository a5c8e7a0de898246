# -*- coding: utf-8 -*-

import collections
import json
from typing import Dict, Iterable, List, Union

from TM1link.Objects.TM1Object import TM1Object, TM1ObjectType
from TM1link.Utils.Utils import CaseAndSpaceInsensitiveSet, format_url


class UserType(TM1ObjectType):
    USER = 0
    SECURITY_ADMIN = 1
    DATA_ADMIN = 2
    ADMIN = 3
    OPERATIONS_ADMIN = 4

    def __str__(self):
        # spelled like the built-in groups: SecurityAdmin, DataAdmin, ...
        return "".join(part.capitalize() for part in self.name.split("_"))

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lookup = value.replace(" ", "").replace("_", "").upper()
            for member in cls:
                if member.name.replace("_", "") == lookup:
                    return member
        raise ValueError(f"Invalid {cls.__qualname__}: '{value}'")


class User(TM1Object):
    """ Abstraction of a TM1 User

    Without explicit user_type the type is derived from the admin groups the user belongs to.
    Setting a user_type other than User adds the matching group, since TM1 grants the privileges
    through group membership only.
    """

    TYPES_BY_PRECEDENCE = (UserType.ADMIN, UserType.SECURITY_ADMIN, UserType.DATA_ADMIN, UserType.OPERATIONS_ADMIN)

    def __init__(self, name: str, groups: Iterable[str] = (), friendly_name: str = None, password: str = None,
                 user_type: Union[UserType, str, int] = None, enabled: bool = True):
        """

        :param name: name of the user
        :param groups: names of the groups the user belongs to
        :param friendly_name: display name, defaults to the name
        :param password: only sent when set
        :param user_type: UserType, its name or its number
        :param enabled: bool
        """
        self.name = name
        self._groups = CaseAndSpaceInsensitiveSet(*groups)
        self.friendly_name = friendly_name
        self.password = password
        self.enabled = enabled
        if user_type is None:
            user_type = next(
                (candidate for candidate in self.TYPES_BY_PRECEDENCE if str(candidate) in self._groups),
                UserType.USER)
        self.user_type = user_type

    @classmethod
    def from_dict(cls, user_as_dict: Dict) -> 'User':
        """ Alternative constructor, from the JSON of GET /Users('..')?$expand=Groups

        :param user_as_dict: user as dict
        :return: User
        """
        return cls(
            name=user_as_dict['Name'],
            friendly_name=user_as_dict.get('FriendlyName'),
            enabled=user_as_dict.get('Enabled', True),
            user_type=user_as_dict.get('Type'),
            groups=[group['Name'] for group in user_as_dict.get('Groups') or []])

    @property
    def user_type(self) -> UserType:
        return self._user_type

    @user_type.setter
    def user_type(self, value: Union[UserType, str, int]):
        self._user_type = UserType(value)
        if self._user_type is not UserType.USER:
            self.add_group(str(self._user_type))

    @property
    def groups(self) -> List[str]:
        return list(self._groups)

    @property
    def is_admin(self) -> bool:
        return str(UserType.ADMIN) in self._groups

    def add_group(self, group_name: str):
        self._groups.add(group_name)

    def remove_group(self, group_name: str):
        self._groups.discard(group_name)

    @property
    def body(self) -> str:
        return json.dumps(self.body_as_dict, ensure_ascii=False)

    @property
    def body_as_dict(self) -> Dict:
        body_as_dict = collections.OrderedDict()
        body_as_dict['Name'] = self.name
        body_as_dict['FriendlyName'] = self.friendly_name or self.name
        body_as_dict['Enabled'] = self.enabled
        body_as_dict['Type'] = str(self._user_type)
        if self.password:
            body_as_dict['Password'] = self.password
        body_as_dict['Groups@odata.bind'] = [format_url("Groups('{}')", group) for group in self._groups]
        return body_as_dict
