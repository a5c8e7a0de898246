# -*- coding: utf-8 -*-
import json
from typing import Dict

from requests import Response

from TM1link.Services.ObjectService import ObjectService
from TM1link.Services.RestService import RestService
from TM1link.Utils import deprecated_in_version, require_ops_admin


class ConfigurationService(ObjectService):

    def __init__(self, rest: RestService):
        super().__init__(rest)

    def _get_configuration(self, url: str, **kwargs) -> Dict:
        config = self._rest.GET(url, **kwargs).json()
        config.pop("@odata.context", None)
        return config

    def get_all(self, **kwargs) -> Dict:
        return self._get_configuration("/Configuration", **kwargs)

    def get_server_name(self, **kwargs) -> str:
        """Name of the server instance

        :Returns:
            String, the server name
        """
        return self._rest.GET("/Configuration/ServerName/$value", **kwargs).text

    def get_product_version(self, **kwargs) -> str:
        """Product version reported by the server

        :Returns:
            String, the version
        """
        return self._rest.GET("/Configuration/ProductVersion/$value", **kwargs).text

    @deprecated_in_version()
    def get_admin_host(self, **kwargs) -> str:
        return self._rest.GET("/Configuration/AdminHost/$value", **kwargs).text

    @deprecated_in_version()
    def get_data_directory(self, **kwargs) -> str:
        return self._rest.GET("/Configuration/DataBaseDirectory/$value", **kwargs).text

    @require_ops_admin
    def get_static(self, **kwargs) -> Dict:
        """Settings from tm1s.cfg as a nested dictionary

        :return: config as dictionary
        """
        return self._get_configuration("/StaticConfiguration", **kwargs)

    @require_ops_admin
    def get_active(self, **kwargs) -> Dict:
        """Settings in effect right now; these can differ from tm1s.cfg until a restart

        :return: config as dictionary
        """
        return self._get_configuration("/ActiveConfiguration", **kwargs)

    @require_ops_admin
    def update_static(self, configuration: Dict, **kwargs) -> Response:
        """Write settings to tm1s.cfg, the server picks up dynamic settings right away

        :param configuration: nested dictionary, e.g. {"Administration": {"PerformanceMonitorOn": True}}
        """
        return self._rest.PATCH("/StaticConfiguration", json.dumps(configuration, ensure_ascii=False), **kwargs)
