import unittest

import responses

from TM1link.Exceptions import TM1linkNotOpsAdminException, TM1linkVersionDeprecationException
from .MockedTestBase import MockedTestBase


class TestConfigurationService(MockedTestBase):

    def test_get_all(self):
        self.mock(responses.GET, "/Configuration", json={
            "@odata.context": "$metadata#Configuration",
            "ServerName": "tm1srv01",
            "AdminHost": "localhost"})

        self.assertEqual(
            {"ServerName": "tm1srv01", "AdminHost": "localhost"},
            self.tm1.configuration.get_all())

    def test_get_server_name(self):
        self.mock(responses.GET, "/Configuration/ServerName/$value", body="tm1srv01")
        self.assertEqual("tm1srv01", self.tm1.configuration.get_server_name())

    def test_get_data_directory(self):
        self.mock(responses.GET, "/Configuration/DataBaseDirectory/$value", body=r"C:\tm1\data")
        self.assertEqual(r"C:\tm1\data", self.tm1.configuration.get_data_directory())

    def test_get_active(self):
        self.mock(responses.GET, "/ActiveConfiguration", json={
            "@odata.context": "$metadata#ActiveConfiguration",
            "Administration": {"ServerName": "tm1srv01"}})

        self.assertEqual(
            {"Administration": {"ServerName": "tm1srv01"}},
            self.tm1.configuration.get_active())

    def test_update_static(self):
        self.mock(responses.PATCH, "/StaticConfiguration", status=204)

        self.tm1.configuration.update_static({"Administration": {"PerformanceMonitorOn": True}})

        self.assertEqual(
            {"Administration": {"PerformanceMonitorOn": True}},
            self.request_json(self.calls_to("PATCH", "StaticConfiguration")[0]))


class TestConfigurationServiceV12(MockedTestBase):
    mocked_server_version = "12.4.0"

    def test_data_directory_deprecated(self):
        with self.assertRaises(TM1linkVersionDeprecationException):
            self.tm1.configuration.get_data_directory()

    def test_admin_host_deprecated(self):
        with self.assertRaises(TM1linkVersionDeprecationException):
            self.tm1.configuration.get_admin_host()


class TestConfigurationServiceWithoutOpsAdmin(MockedTestBase):

    def get_tm1_kwargs(self):
        kwargs = super().get_tm1_kwargs()
        kwargs["user"] = "planner"
        return kwargs

    def test_get_static(self):
        self.mock(responses.GET, "/ActiveUser/Groups", json={"value": [{"Name": "DataAdmin"}]})

        with self.assertRaises(TM1linkNotOpsAdminException):
            self.tm1.configuration.get_static()


if __name__ == "__main__":
    unittest.main()
