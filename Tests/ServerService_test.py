import unittest
from datetime import datetime

import pytz
import responses

from TM1link.Exceptions import (
    TM1linkInvalidArgument,
    TM1linkNotDataAdminException,
    TM1linkProcessFailed,
    TM1linkVersionDeprecationException,
    TM1linkVersionException,
)
from .MockedTestBase import MockedTestBase


class TestServerService(MockedTestBase):

    def test_get_message_log_entries(self):
        self.mock(responses.GET, "/MessageLogEntries", json={"value": [{"Message": "done"}]})

        entries = self.tm1.server.get_message_log_entries(
            since=datetime(2024, 1, 2, 8, 30), top=10, logger="TM1.Process", level="error",
            msg_contains=["load", "finished"], msg_contains_operator="OR")

        self.assertEqual([{"Message": "done"}], entries)
        url = self.decoded_url(self.rsps.calls[-1])
        self.assertIn("$orderby=TimeStamp desc", url)
        self.assertIn(
            "$filter=TimeStamp ge 2024-01-02T08:30:00Z and Logger eq 'TM1.Process' and Level eq 1 and "
            "(contains(toupper(Message),toupper('load')) or contains(toupper(Message),toupper('finished')))",
            url)
        self.assertTrue(url.endswith("&$top=10"))

    def test_timestamps_with_timezone_are_sent_as_utc(self):
        self.mock(responses.GET, "/MessageLogEntries", json={"value": []})
        vienna = pytz.timezone("Europe/Vienna")

        self.tm1.server.get_message_log_entries(reverse=False, until=vienna.localize(datetime(2024, 1, 2, 9, 0)))

        url = self.decoded_url(self.rsps.calls[-1])
        self.assertIn("$orderby=TimeStamp asc", url)
        self.assertIn("TimeStamp le 2024-01-02T08:00:00Z", url)

    def test_invalid_msg_contains_operator(self):
        with self.assertRaises(TM1linkInvalidArgument):
            self.tm1.server.get_message_log_entries(msg_contains="load", msg_contains_operator="xor")

    def test_get_transaction_log_entries(self):
        self.mock(responses.GET, "/TransactionLogEntries", json={"value": []})

        self.tm1.server.get_transaction_log_entries(user="Marius", cube="Sales", element_tuple_filter={"Actual": "eq"})

        url = self.decoded_url(self.rsps.calls[-1])
        self.assertIn("$filter=User eq 'Marius' and Cube eq 'Sales' and Tuple/any(e: e eq 'Actual')", url)

    def test_get_audit_log_entries(self):
        self.mock(responses.GET, "/AuditLogEntries", json={"value": [{"ObjectName": "Sales"}]})

        entries = self.tm1.server.get_audit_log_entries(object_type="Cube", top=5)

        self.assertEqual([{"ObjectName": "Sales"}], entries)
        url = self.decoded_url(self.rsps.calls[-1])
        self.assertIn("$expand=AuditDetails&$filter=ObjectType eq 'Cube'&$top=5", url)

    def test_message_log_delta_requests(self):
        self.mock(responses.GET, "/TailMessageLog()", json={
            "value": [], "@odata.deltaLink": "MessageLogEntries/!delta('A1')"})
        self.mock(responses.GET, "/MessageLogEntries/!delta('A1')", json={
            "value": [{"Message": "new"}], "@odata.deltaLink": "MessageLogEntries/!delta('A2')"})

        self.tm1.server.initialize_message_log_delta_requests()
        entries = self.tm1.server.execute_message_log_delta_request()

        self.assertEqual([{"Message": "new"}], entries)
        self.assertEqual(
            ["odata.track-changes", "odata.track-changes"],
            [call.request.headers["Prefer"] for call in self.rsps.calls[-2:]])
        self.assertNotIn("Prefer", self.tm1.connection._headers)

    def test_delta_request_without_initialize(self):
        with self.assertRaises(TM1linkInvalidArgument):
            self.tm1.server.execute_transaction_log_delta_request()

    def test_write_to_message_log(self):
        self.mock(responses.POST, "/ExecuteProcessWithReturn",
                  json={"ProcessExecuteStatusCode": "CompletedSuccessfully", "ErrorLogFile": None})

        self.tm1.server.write_to_message_log("info", "Marius' load done")

        body = self.request_json(self.calls_to("POST", "ExecuteProcessWithReturn")[0])
        self.assertTrue(body["Process"]["PrologProcedure"].endswith("LogOutput('INFO', 'Marius'' load done');"))

    def test_write_to_message_log_failure(self):
        self.mock(responses.POST, "/ExecuteProcessWithReturn",
                  json={"ProcessExecuteStatusCode": "Aborted", "ErrorLogFile": {"Filename": "TM1ProcessError.log"}})

        with self.assertRaises(TM1linkProcessFailed):
            self.tm1.server.write_to_message_log("ERROR", "failed")

    def test_write_to_message_log_invalid_level(self):
        with self.assertRaises(TM1linkInvalidArgument):
            self.tm1.server.write_to_message_log("LOUD", "hello")

    def test_start_performance_monitor(self):
        self.mock(responses.PATCH, "/StaticConfiguration", status=204)

        self.tm1.server.start_performance_monitor()

        self.assertEqual(
            {"Administration": {"PerformanceMonitorOn": True}},
            self.request_json(self.calls_to("PATCH", "StaticConfiguration")[0]))

    def test_activate_audit_log(self):
        self.mock(responses.PATCH, "/StaticConfiguration", status=204)

        self.tm1.server.activate_audit_log()

        self.assertEqual(
            {"Administration": {"AuditLog": {"Enable": True}}},
            self.request_json(self.calls_to("PATCH", "StaticConfiguration")[0]))

    def test_update_message_logger_level(self):
        self.mock(responses.PATCH, "/Loggers('TM1.Process')", status=204)

        self.tm1.server.update_message_logger_level("TM1.Process", "Debug")

        self.assertEqual({"Level": "Debug"}, self.request_json(self.calls_to("PATCH", "Loggers")[0]))

    def test_save_data(self):
        self.mock(responses.POST, "/Processes", status=201)
        temporary_process = r"/Processes\('(?:}|%7D)TM1link[^']+'\)"
        self.rsps.add(responses.POST, self.re_url(temporary_process + r"/tm1\.Execute"), status=204)
        self.rsps.add(responses.DELETE, self.re_url(temporary_process), status=204)

        self.tm1.server.save_data()

        created = self.request_json(self.calls_to("POST", "/Processes")[0])
        self.assertTrue(created["PrologProcedure"].endswith("SaveDataAll;"))


class TestServerServiceV12(MockedTestBase):
    mocked_server_version = "12.4.0"

    def test_logs_deprecated(self):
        with self.assertRaises(TM1linkVersionDeprecationException):
            self.tm1.server.get_message_log_entries()
        with self.assertRaises(TM1linkVersionDeprecationException):
            self.tm1.server.initialize_transaction_log_delta_requests()
        with self.assertRaises(TM1linkVersionDeprecationException):
            self.tm1.server.get_audit_log_entries()

    def test_save_data_deprecated(self):
        with self.assertRaises(TM1linkVersionDeprecationException):
            self.tm1.server.save_data()


class TestServerServiceBelowAuditLogVersion(MockedTestBase):
    mocked_server_version = "11.5.00000.10"

    def test_audit_log_requires_11_6(self):
        with self.assertRaises(TM1linkVersionException):
            self.tm1.server.get_audit_log_entries()


class TestServerServiceWithoutDataAdmin(MockedTestBase):

    def get_tm1_kwargs(self):
        kwargs = super().get_tm1_kwargs()
        kwargs["user"] = "planner"
        return kwargs

    def test_get_transaction_log_entries(self):
        self.mock(responses.GET, "/ActiveUser/Groups", json={"value": [{"Name": "OperationsAdmin"}]})

        with self.assertRaises(TM1linkNotDataAdminException):
            self.tm1.server.get_transaction_log_entries()


if __name__ == "__main__":
    unittest.main()
