import unittest

import responses

from TM1link.Exceptions import TM1linkServerError, TM1linkVersionException
from TM1link.Objects import Process
from .MockedTestBase import MockedTestBase


class TestProcess(unittest.TestCase):

    def test_procedures_get_generated_statements(self):
        process = Process("import", prolog_procedure="x=1;")
        self.assertTrue(process.prolog_procedure.startswith(Process.BEGIN_GENERATED_STATEMENTS))
        self.assertTrue(process.prolog_procedure.endswith("x=1;"))

        # only once
        process.prolog_procedure = process.prolog_procedure
        self.assertEqual(1, process.prolog_procedure.count(Process.BEGIN_GENERATED_STATEMENTS))

    def test_variables(self):
        process = Process("import")
        process.add_variable("vRegion", "String")
        process.add_variable("vValue", "Numeric")
        self.assertEqual([1, 2], [variable["Position"] for variable in process.variables])
        self.assertEqual("VarType=33\fColType=827\f", process.variables_ui_data[1])

        process.remove_variable("vRegion")
        self.assertEqual(["vValue"], [variable["Name"] for variable in process.variables])
        self.assertEqual(1, len(process.variables_ui_data))

    def test_parameters(self):
        process = Process("import")
        process.add_parameter("pYear", "Year?", "2024")
        process.add_parameter("pRate", "Rate?", 1.5)
        self.assertEqual(["String", "Numeric"], [parameter["Type"] for parameter in process.parameters])
        process.remove_parameter("pYear")
        self.assertEqual(["pRate"], [parameter["Name"] for parameter in process.parameters])

    def test_ascii_body(self):
        process = Process("import", datasource_type="ASCII", datasource_ascii_delimiter_char=",",
                          datasource_data_source_name_for_server="plan.csv")
        datasource = process.body_as_dict["DataSource"]
        self.assertEqual("ASCII", datasource["Type"])
        self.assertEqual(",", datasource["asciiDelimiterChar"])
        self.assertEqual("plan.csv", datasource["dataSourceNameForServer"])
        self.assertNotIn("view", datasource)

    def test_invalid_datasource_type(self):
        with self.assertRaises(ValueError):
            Process("import", datasource_type="Excel")


class TestProcessService(MockedTestBase):

    def test_get_all_names_without_control_processes(self):
        self.mock(responses.GET, "/Processes", json={"value": [{"Name": "import"}]})

        self.assertEqual(["import"], self.tm1.processes.get_all_names(skip_control_processes=True))
        self.assertIn("$filter=startswith(Name,", self.rsps.calls[-1].request.url)

    def test_get(self):
        self.mock(responses.GET, "/Processes('import')", json={
            "Name": "import",
            "PrologProcedure": "x=1;",
            "DataSource": {"Type": "ASCII", "asciiDelimiterChar": ";", "dataSourceNameForServer": "plan.csv"},
            "Parameters": [{"Name": "pYear", "Prompt": "", "Value": "2024", "Type": "String"}]})

        process = self.tm1.processes.get("import")

        self.assertEqual("ASCII", process.datasource_type)
        self.assertEqual("plan.csv", process.datasource["dataSourceNameForServer"])
        self.assertEqual("pYear", process.parameters[0]["Name"])

    def test_execute_with_parameters(self):
        self.mock(responses.POST, "/Processes('import')/tm1.Execute", status=204)

        self.tm1.processes.execute("import", parameters={"pYear": "2024", "pRate": 1.5})

        self.assertEqual(
            {"Parameters": [{"Name": "pYear", "Value": "2024"}, {"Name": "pRate", "Value": 1.5}]},
            self.request_json(self.calls_to("POST", "tm1.Execute")[0]))

    def test_execute_with_return(self):
        self.mock(responses.POST, "/Processes('import')/tm1.ExecuteWithReturn", json={
            "ProcessExecuteStatusCode": "HasMinorErrors",
            "ErrorLogFile": {"Filename": "TM1ProcessError_import.log"}})

        success, status, error_log_file = self.tm1.processes.execute_with_return("import")

        self.assertFalse(success)
        self.assertEqual("HasMinorErrors", status)
        self.assertEqual("TM1ProcessError_import.log", error_log_file)

    def test_execute_process_with_return(self):
        self.mock(responses.POST, "/ExecuteProcessWithReturn",
                  json={"ProcessExecuteStatusCode": "CompletedSuccessfully", "ErrorLogFile": None})

        process = Process("unbound", prolog_procedure="x=1;")
        process.add_parameter("pYear", "Year?", "2023")
        result = self.tm1.processes.execute_process_with_return(process, parameters={"pYear": "2024"})

        self.assertEqual((True, "CompletedSuccessfully", None), result)
        body = self.request_json(self.calls_to("POST", "ExecuteProcessWithReturn")[0])
        self.assertEqual("unbound", body["Process"]["Name"])
        self.assertEqual(["2024"], [parameter["Value"] for parameter in body["Process"]["Parameters"]])

    def test_execute_ti_code_removes_process(self):
        self.mock(responses.POST, "/Processes", status=201)
        temporary_process = r"/Processes\('(?:}|%7D)TM1link[^']+'\)"
        self.rsps.add(responses.POST, self.re_url(temporary_process + r"/tm1\.Execute"), status=500, json={})
        self.rsps.add(responses.DELETE, self.re_url(temporary_process), status=204)

        with self.assertRaises(TM1linkServerError):
            self.tm1.processes.execute_ti_code(["x=1;", "y=2;"])

        created = self.request_json(self.calls_to("POST", "/Processes")[0])
        self.assertTrue(created["Name"].startswith("}TM1link"))
        self.assertTrue(created["PrologProcedure"].endswith("x=1;\r\ny=2;"))
        self.assertEqual(1, len(self.calls_to("DELETE", "Processes")))

    def test_compile(self):
        self.mock(responses.POST, "/Processes('import')/tm1.Compile", json={"value": [{"LineNumber": 3}]})
        self.assertEqual([{"LineNumber": 3}], self.tm1.processes.compile("import"))

    def test_error_log_file_content(self):
        self.mock(responses.GET, "/ErrorLogFiles('TM1ProcessError_import.log')/Content", body="Data: invalid key")
        self.assertEqual(
            "Data: invalid key",
            self.tm1.processes.get_error_log_file_content("TM1ProcessError_import.log"))


class TestProcessServiceBelowMinimumVersion(MockedTestBase):
    mocked_server_version = "11.2.00000.10"

    def test_execute_process_with_return_version_gate(self):
        with self.assertRaises(TM1linkVersionException):
            self.tm1.processes.execute_process_with_return(Process("unbound"))


if __name__ == "__main__":
    unittest.main()
