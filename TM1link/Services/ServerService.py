# -*- coding: utf-8 -*-

import json
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Union

from requests import Response

from TM1link.Exceptions import TM1linkInvalidArgument, TM1linkProcessFailed, TM1linkProtocolException
from TM1link.Objects.Process import Process
from TM1link.Services.ConfigurationService import ConfigurationService
from TM1link.Services.ObjectService import ObjectService
from TM1link.Services.ProcessService import ProcessService
from TM1link.Services.RestService import RestService
from TM1link.Utils import (
    CaseAndSpaceInsensitiveDict,
    CaseAndSpaceInsensitiveSet,
    deprecated_in_version,
    deprecated_in_version_gate,
    format_url,
    odata_timestamp,
    require_admin,
    require_data_admin,
    require_ops_admin,
    require_version,
)

MESSAGE_LOG_LEVELS = CaseAndSpaceInsensitiveDict({"ERROR": 1, "WARNING": 2, "INFO": 3, "DEBUG": 4, "UNKNOWN": 5})
WRITABLE_MESSAGE_LOG_LEVELS = CaseAndSpaceInsensitiveSet("FATAL", "ERROR", "WARN", "INFO", "DEBUG")
TRACK_CHANGES_HEADER = {"Prefer": "odata.track-changes"}


class ServerService(ObjectService):
    """ Service to read the server logs and to run server wide maintenance

    The message, transaction and audit logs are gone in v12. Reading a log as a stream of changes
    works in two steps: initialize_*_delta_requests remembers where the log ends,
    each execute_*_delta_request returns the entries written since the previous call.
    """

    def __init__(self, rest: RestService):
        super().__init__(rest)
        self.configuration = ConfigurationService(rest)
        self._processes = ProcessService(rest)
        self._delta_links = {}

    @staticmethod
    def _timestamp_filters(since: datetime = None, until: datetime = None) -> List[str]:
        filters = []
        if since:
            filters.append(f"TimeStamp ge {odata_timestamp(since)}")
        if until:
            filters.append(f"TimeStamp le {odata_timestamp(until)}")
        return filters

    @staticmethod
    def _with_filters_and_top(url: str, filters: List[str], top: int = None) -> str:
        if filters:
            url += "&$filter=" + " and ".join(filters)
        if top:
            url += f"&$top={top}"
        return url

    def _initialize_delta_requests(self, tail_function: str, filter: str = None, **kwargs):
        url = f"/{tail_function}()"
        if filter:
            url += f"?$filter={filter}"
        response = self._rest.GET(url, headers=TRACK_CHANGES_HEADER, **kwargs)
        self._delta_links[tail_function] = self._read_delta_link(response)

    def _execute_delta_request(self, tail_function: str, **kwargs) -> List[Dict]:
        if tail_function not in self._delta_links:
            raise TM1linkInvalidArgument(f"Delta requests for '{tail_function}' have not been initialized")
        response = self._rest.GET("/" + self._delta_links[tail_function], headers=TRACK_CHANGES_HEADER, **kwargs)
        self._delta_links[tail_function] = self._read_delta_link(response)
        return response.json()["value"]

    @staticmethod
    def _read_delta_link(response: Response) -> str:
        try:
            return response.json()["@odata.deltaLink"]
        except (ValueError, KeyError):
            raise TM1linkProtocolException(f"No delta link in response from '{response.url}'")

    @deprecated_in_version_gate("message_log")
    def initialize_message_log_delta_requests(self, filter: str = None, **kwargs):
        self._initialize_delta_requests("TailMessageLog", filter, **kwargs)

    @deprecated_in_version_gate("message_log")
    def execute_message_log_delta_request(self, **kwargs) -> List[Dict]:
        return self._execute_delta_request("TailMessageLog", **kwargs)

    @deprecated_in_version_gate("transaction_log")
    def initialize_transaction_log_delta_requests(self, filter: str = None, **kwargs):
        self._initialize_delta_requests("TailTransactionLog", filter, **kwargs)

    @deprecated_in_version_gate("transaction_log")
    def execute_transaction_log_delta_request(self, **kwargs) -> List[Dict]:
        return self._execute_delta_request("TailTransactionLog", **kwargs)

    @deprecated_in_version_gate("audit_log")
    def initialize_audit_log_delta_requests(self, filter: str = None, **kwargs):
        self._initialize_delta_requests("TailAuditLog", filter, **kwargs)

    @deprecated_in_version_gate("audit_log")
    def execute_audit_log_delta_request(self, **kwargs) -> List[Dict]:
        return self._execute_delta_request("TailAuditLog", **kwargs)

    @deprecated_in_version_gate("message_log")
    @require_admin
    def get_message_log_entries(self, reverse: bool = True, since: datetime = None, until: datetime = None,
                                top: int = None, logger: str = None, level: str = None,
                                msg_contains: Union[str, Iterable[str]] = None, msg_contains_operator: str = "and",
                                **kwargs) -> List[Dict]:
        """ Query the message log (tm1server.log)

        :param reverse: newest entries first
        :param since: datetime, UTC is assumed when it carries no tz information
        :param until: datetime, UTC is assumed when it carries no tz information
        :param top: maximum number of entries
        :param logger: e.g. TM1.Server, TM1.Chore, TM1.Mdx.Interface, TM1.Process
        :param level: ERROR, WARNING, INFO, DEBUG or UNKNOWN
        :param msg_contains: substring, or several substrings, of the message. Case is ignored
        :param msg_contains_operator: 'and' or 'or', how several substrings are combined
        :return: log entries as dict
        """
        msg_contains_operator = msg_contains_operator.strip().lower()
        if msg_contains_operator not in ("and", "or"):
            raise TM1linkInvalidArgument("'msg_contains_operator' must be either 'and' or 'or'")

        url = "/MessageLogEntries?$orderby=TimeStamp " + ("desc" if reverse else "asc")
        filters = self._timestamp_filters(since, until)
        if logger:
            filters.append(format_url("Logger eq '{}'", logger))
        if level:
            if level not in MESSAGE_LOG_LEVELS:
                raise TM1linkInvalidArgument(f"Invalid message log level: '{level}'")
            filters.append(f"Level eq {MESSAGE_LOG_LEVELS[level]}")
        if msg_contains:
            substrings = [msg_contains] if isinstance(msg_contains, str) else list(msg_contains)
            conditions = [format_url("contains(toupper(Message),toupper('{}'))", s) for s in substrings]
            filters.append("(" + f" {msg_contains_operator} ".join(conditions) + ")")

        url = self._with_filters_and_top(url, filters, top)
        return self._rest.GET(url, **kwargs).json()["value"]

    @deprecated_in_version_gate("message_log")
    @require_admin
    def get_last_process_message_from_message_log(self, process_name: str, **kwargs) -> Optional[str]:
        """ Latest message log entry of a process, e.g. "Process 'load': finished executing normally"

        :param process_name: name of the process
        :return: the message, None when the process has not logged anything
        """
        url = format_url(
            "/MessageLogEntries?$orderby=TimeStamp desc&$top=1"
            "&$filter=Logger eq 'TM1.Process' and contains(Message, '{}')",
            process_name)
        entries = self._rest.GET(url, **kwargs).json()["value"]
        return entries[0]["Message"] if entries else None

    @require_admin
    def write_to_message_log(self, level: str, message: str, **kwargs):
        """ Write an entry into the message log through an unbound process

        :param level: FATAL, ERROR, WARN, INFO or DEBUG
        :param message: text of the entry
        """
        if level not in WRITABLE_MESSAGE_LOG_LEVELS:
            raise TM1linkInvalidArgument(f"Invalid message log level: '{level}'")

        escaped_message = message.replace("'", "''")
        process = Process(name="", prolog_procedure=f"LogOutput('{level.upper()}', '{escaped_message}');")
        success, status, error_log_file = self._processes.execute_process_with_return(process, **kwargs)
        if not success:
            raise TM1linkProcessFailed("LogOutput", status, error_log_file)

    @deprecated_in_version_gate("transaction_log")
    @require_data_admin
    def get_transaction_log_entries(self, reverse: bool = True, user: str = None, cube: str = None,
                                    since: datetime = None, until: datetime = None, top: int = None,
                                    element_tuple_filter: Dict[str, str] = None, **kwargs) -> List[Dict]:
        """ Query the transaction log, the record of all cell changes

        :param reverse: newest entries first
        :param user: name of the user that changed the cells
        :param cube: name of the cube
        :param since: datetime, UTC is assumed when it carries no tz information
        :param until: datetime, UTC is assumed when it carries no tz information
        :param top: maximum number of entries
        :param element_tuple_filter: element name -> comparison operator, e.g. {'Actual': 'eq', '2020': 'ge'}
        :return: log entries as dict
        """
        url = "/TransactionLogEntries?$orderby=TimeStamp " + ("desc" if reverse else "asc")
        filters = []
        if user:
            filters.append(format_url("User eq '{}'", user))
        if cube:
            filters.append(format_url("Cube eq '{}'", cube))
        if element_tuple_filter:
            conditions = [format_url("e {} '{}'", operator, element)
                          for element, operator in element_tuple_filter.items()]
            filters.append("Tuple/any(e: " + " or ".join(conditions) + ")")
        filters += self._timestamp_filters(since, until)

        url = self._with_filters_and_top(url, filters, top)
        return self._rest.GET(url, **kwargs).json()["value"]

    @deprecated_in_version_gate("audit_log")
    @require_version()
    @require_data_admin
    def get_audit_log_entries(self, user: str = None, object_type: str = None, object_name: str = None,
                              since: datetime = None, until: datetime = None, top: int = None,
                              **kwargs) -> List[Dict]:
        """ Query the audit log, the record of changes to objects and security

        :param user: name of the user
        :param object_type: e.g. Cube, Dimension, Process
        :param object_name: name of the object
        :param since: datetime, UTC is assumed when it carries no tz information
        :param until: datetime, UTC is assumed when it carries no tz information
        :param top: maximum number of entries
        :return: log entries as dict, with their AuditDetails
        """
        url = "/AuditLogEntries?$expand=AuditDetails"
        filters = []
        if user:
            filters.append(format_url("UserName eq '{}'", user))
        if object_type:
            filters.append(format_url("ObjectType eq '{}'", object_type))
        if object_name:
            filters.append(format_url("ObjectName eq '{}'", object_name))
        filters += self._timestamp_filters(since, until)

        url = self._with_filters_and_top(url, filters, top)
        return self._rest.GET(url, **kwargs).json()["value"]

    @deprecated_in_version()
    @require_data_admin
    def save_data(self, **kwargs) -> Response:
        """ Write all cube data to disk """
        return self._processes.execute_ti_code(["SaveDataAll;"], **kwargs)

    @require_data_admin
    def delete_persistent_feeders(self, **kwargs) -> Response:
        return self._processes.execute_ti_code(["DeleteAllPersistentFeeders;"], **kwargs)

    @require_ops_admin
    def start_performance_monitor(self, **kwargs) -> Response:
        return self.configuration.update_static({"Administration": {"PerformanceMonitorOn": True}}, **kwargs)

    @require_ops_admin
    def stop_performance_monitor(self, **kwargs) -> Response:
        return self.configuration.update_static({"Administration": {"PerformanceMonitorOn": False}}, **kwargs)

    @require_ops_admin
    def activate_audit_log(self, **kwargs) -> Response:
        return self.configuration.update_static({"Administration": {"AuditLog": {"Enable": True}}}, **kwargs)

    @require_ops_admin
    def deactivate_audit_log(self, **kwargs) -> Response:
        return self.configuration.update_static({"Administration": {"AuditLog": {"Enable": False}}}, **kwargs)

    @require_admin
    def get_all_message_logger_level(self, **kwargs) -> List[Dict]:
        """ Loggers with their levels, e.g. {'Name': 'TM1.Server', 'Level': 'Info'} """
        return self._rest.GET("/Loggers", **kwargs).json()["value"]

    @require_admin
    def update_message_logger_level(self, logger: str, level: str, **kwargs) -> Response:
        """ Change the level of one logger, e.g. update_message_logger_level('TM1.Process', 'Debug')

        :param logger: name of the logger
        :param level: Fatal, Error, Warning, Info, Debug or Off
        """
        url = format_url("/Loggers('{}')", logger)
        return self._rest.PATCH(url, json.dumps({"Level": level}), **kwargs)
