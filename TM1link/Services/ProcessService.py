# -*- coding: utf-8 -*-

import json
import uuid
from typing import Dict, Iterable, List, Tuple

from requests import Response

from TM1link.Objects.Process import Process
from TM1link.Services.ObjectService import ObjectService
from TM1link.Services.RestService import RestService
from TM1link.Utils import format_url, require_admin, require_version, MODEL_OBJECTS_FILTER

PROCESS_SELECT = (
    "$select=*,UIData,VariablesUIData,"
    "DataSource/dataSourceNameForServer,"
    "DataSource/dataSourceNameForClient,"
    "DataSource/asciiDecimalSeparator,"
    "DataSource/asciiDelimiterChar,"
    "DataSource/asciiDelimiterType,"
    "DataSource/asciiHeaderRecords,"
    "DataSource/asciiQuoteCharacter,"
    "DataSource/asciiThousandSeparator,"
    "DataSource/view,"
    "DataSource/query,"
    "DataSource/userName,"
    "DataSource/password,"
    "DataSource/usesUnicode,"
    "DataSource/subset")


class ProcessService(ObjectService):
    """ TurboIntegrator processes: maintenance, compilation and execution

    """

    def __init__(self, rest: RestService):
        super().__init__(rest)

    def _process_url(self, process_name: str, suffix: str = "") -> str:
        return format_url("/Processes('{}')", process_name) + suffix

    def get(self, name_process: str, **kwargs) -> Process:
        """ Read a process with procedures, parameters, variables and data source

        :param name_process: name of the process
        :return: instance of TM1link.Process
        """
        response = self._rest.GET(self._process_url(name_process, "?" + PROCESS_SELECT), **kwargs)
        return Process.from_dict(response.json())

    def get_all(self, skip_control_processes: bool = False, **kwargs) -> List[Process]:
        url = "/Processes?" + PROCESS_SELECT
        if skip_control_processes:
            url += "&$filter=" + MODEL_OBJECTS_FILTER
        response = self._rest.GET(url, **kwargs)
        return [Process.from_dict(process_as_dict) for process_as_dict in response.json()["value"]]

    def get_all_names(self, skip_control_processes: bool = False, **kwargs) -> List[str]:
        """ Names of all processes

        :param skip_control_processes: leave out processes whose name starts with } or {
        :return: list of process names
        """
        url = "/Processes?$select=Name"
        if skip_control_processes:
            url += "&$filter=" + MODEL_OBJECTS_FILTER
        response = self._rest.GET(url, **kwargs)
        return [process["Name"] for process in response.json()["value"]]

    def exists(self, name: str, **kwargs) -> bool:
        return self._exists(self._process_url(name), **kwargs)

    def create(self, process: Process, **kwargs) -> Response:
        return self._rest.POST("/Processes", process.body, **kwargs)

    def update(self, process: Process, **kwargs) -> Response:
        return self._rest.PATCH(self._process_url(process.name), process.body, **kwargs)

    def update_or_create(self, process: Process, **kwargs) -> Response:
        if self.exists(process.name, **kwargs):
            return self.update(process, **kwargs)
        return self.create(process, **kwargs)

    def delete(self, name: str, **kwargs) -> Response:
        return self._rest.DELETE(self._process_url(name), **kwargs)

    def compile(self, name: str, **kwargs) -> List:
        """ Syntax check of a stored process

        :param name: name of the process
        :return: syntax errors, empty when the process compiles
        """
        response = self._rest.POST(self._process_url(name, "/tm1.Compile"), **kwargs)
        return response.json()["value"]

    def compile_process(self, process: Process, **kwargs) -> List:
        """ Syntax check of a process that is not stored on the server """
        payload = json.dumps({"Process": process.body_as_dict}, ensure_ascii=False)
        return self._rest.POST("/CompileProcess", payload, **kwargs).json()["value"]

    @staticmethod
    def _parameters_body(parameters: Dict = None) -> Dict:
        if not parameters:
            return {}
        return {"Parameters": [{"Name": name, "Value": value} for name, value in parameters.items()]}

    @staticmethod
    def _parse_execution_summary(execution_summary: Dict) -> Tuple[bool, str, str]:
        status = execution_summary["ProcessExecuteStatusCode"]
        error_log_file = execution_summary.get("ErrorLogFile")
        return (
            status == "CompletedSuccessfully",
            status,
            error_log_file["Filename"] if error_log_file else None)

    def _run(self, url: str, payload: Dict, timeout: float, cancel_at_timeout: bool, **kwargs) -> Response:
        return self._rest.POST(
            url,
            json.dumps(payload, ensure_ascii=False),
            timeout=timeout,
            cancel_at_timeout=cancel_at_timeout,
            **kwargs)

    def execute(self, process_name: str, parameters: Dict = None, timeout: float = None,
                cancel_at_timeout: bool = False, **kwargs) -> Response:
        """ Run a stored process, e.g.
        tm1.processes.execute("Bedrock.Server.Wait", parameters={"pWaitSec": 2})

        :param process_name: name of the process
        :param parameters: parameter name -> value
        :param timeout: seconds to wait for the server to respond
        :param cancel_at_timeout: cancel the process on the server when the timeout is hit
        :return: response
        """
        return self._run(
            self._process_url(process_name, "/tm1.Execute"), self._parameters_body(parameters),
            timeout, cancel_at_timeout, **kwargs)

    def execute_with_return(self, process_name: str, parameters: Dict = None, timeout: float = None,
                            cancel_at_timeout: bool = False, **kwargs) -> Tuple[bool, str, str]:
        """ Run a stored process and report how it ended

        :return: success, status, error log file name (None when no log was written)
        """
        response = self._run(
            self._process_url(process_name, "/tm1.ExecuteWithReturn?$expand=*"), self._parameters_body(parameters),
            timeout, cancel_at_timeout, **kwargs)
        return self._parse_execution_summary(response.json())

    @require_version()
    def execute_process_with_return(self, process: Process, parameters: Dict = None, timeout: float = None,
                                    cancel_at_timeout: bool = False, **kwargs) -> Tuple[bool, str, str]:
        """ Run a process that is not stored on the server (unbound process)

        :param process: instance of TM1link.Process
        :param parameters: parameter name -> value, replacing the defaults of the process
        :param timeout: seconds to wait for the server to respond
        :param cancel_at_timeout: cancel the process on the server when the timeout is hit
        :return: success, status, error log file name (None when no log was written)
        """
        for name, value in (parameters or {}).items():
            process.remove_parameter(name=name)
            process.add_parameter(name=name, prompt=name, value=value)

        response = self._run(
            "/ExecuteProcessWithReturn?$expand=*", {"Process": process.body_as_dict},
            timeout, cancel_at_timeout, **kwargs)
        return self._parse_execution_summary(response.json())

    @require_admin
    def execute_ti_code(self, lines_prolog: Iterable[str], lines_epilog: Iterable[str] = None,
                        **kwargs) -> Response:
        """ Run TI statements through a temporary process that is removed afterwards

        :param lines_prolog: TI statements for the prolog
        :param lines_epilog: TI statements for the epilog
        """
        process_name = "}TM1link" + str(uuid.uuid4())
        process = Process(
            name=process_name,
            prolog_procedure="\r\n".join(lines_prolog),
            epilog_procedure="\r\n".join(lines_epilog) if lines_epilog else "")
        self.create(process, **kwargs)
        try:
            return self.execute(process_name, **kwargs)
        finally:
            self.delete(process_name, **kwargs)

    def get_error_log_file_content(self, file_name: str, **kwargs) -> str:
        """ Text of a log file from the server log directory, e.g. TM1ProcessError_20240102_load.log """
        url = format_url("/ErrorLogFiles('{}')/Content", file_name)
        return self._rest.GET(url, **kwargs).text

    def get_processerrorlogs(self, process_name: str, **kwargs) -> List:
        """ ProcessErrorLog entries of a process, one per failed run """
        response = self._rest.GET(self._process_url(process_name, "/ErrorLogs"), **kwargs)
        return response.json()["value"]
