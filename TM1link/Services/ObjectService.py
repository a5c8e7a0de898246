# -*- coding: utf-8 -*-
from typing import Dict

from TM1link.Exceptions import TM1linkInvalidArgument, TM1linkNotFound
from TM1link.Services.RestService import RestService
from TM1link.Utils import format_url, lower_and_drop_spaces, verify_version


class ObjectService:
    """ Parent class for all Object Services

    """

    ELEMENT_ATTRIBUTES_PREFIX = "}ElementAttributes_"

    BINARY_HTTP_HEADER_PRE_V12 = {"Content-Type": "application/octet-stream; odata.streaming=true"}
    BINARY_HTTP_HEADER = {"Content-Type": "application/json;charset=UTF-8"}

    def __init__(self, rest_service: RestService):
        """ Constructor, Create an instance of ObjectService

        :param rest_service:
        """
        self._rest = rest_service

    @property
    def binary_http_header(self) -> Dict:
        # resolved per call, the version is fetched lazily on reused sessions
        if verify_version("12", self.version):
            return self.BINARY_HTTP_HEADER
        return self.BINARY_HTTP_HEADER_PRE_V12

    def determine_actual_object_name(self, object_class: str, object_name: str, **kwargs) -> str:
        """ Name of an object as it is spelled on the server, matched ignoring case and spaces

        :param object_class: entity set, e.g. Users or Groups
        :param object_name: name in any spelling
        """
        url = format_url(
            "/{}?$select=Name&$filter=tolower(replace(Name, ' ', '')) eq '{}'",
            object_class, lower_and_drop_spaces(object_name))
        matches = self._rest.GET(url, **kwargs).json()["value"]
        if not matches:
            raise TM1linkInvalidArgument(f"'{object_name}' does not exist in '{object_class}'")
        return matches[0]["Name"]

    def _exists(self, url: str, **kwargs) -> bool:
        """ Check if resource exists in the TM1 Server

        :param url:
        :return:
        """
        try:
            self._rest.GET(url, **kwargs)
            return True
        except TM1linkNotFound:
            return False

    @property
    def version(self) -> str:
        return self._rest.version

    @property
    def is_admin(self) -> bool:
        return self._rest.is_admin

    @property
    def is_data_admin(self) -> bool:
        return self._rest.is_data_admin

    @property
    def is_security_admin(self) -> bool:
        return self._rest.is_security_admin

    @property
    def is_ops_admin(self) -> bool:
        return self._rest.is_ops_admin
