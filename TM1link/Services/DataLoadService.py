# -*- coding: utf-8 -*-
import random
from typing import Any, Iterable, Sequence, Union

from TM1link.Exceptions import TM1linkInvalidArgument, TM1linkNotFound, TM1linkProcessFailed, TM1linkRestException
from TM1link.Objects.Process import Process
from TM1link.Services.FileService import FileService
from TM1link.Services.ObjectService import ObjectService
from TM1link.Services.ProcessService import ProcessService
from TM1link.Services.RestService import RestService
from TM1link.Utils import Table, verify_version

TEMP_FILE_PREFIX = "tm1link_dataload_temp_"


def _ti_string(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


class DataLoadService(ObjectService):
    """ Bulk load of tabular data into a cube

    The table is uploaded as CSV file and loaded by an unbound TI process with the file as ASCII data source

    """

    def __init__(self, rest: RestService):
        super().__init__(rest)
        self.files = FileService(rest)
        self.processes = ProcessService(rest)

    def load_table(self, cube_name: str, table: Union[Table, Iterable[Sequence[Any]]], sandbox_name: str = None,
                   remove_file: bool = True, **kwargs):
        """ Write a table into a cube

        :param cube_name: name of the target cube
        :param table: TM1link.Table or list of rows with a header row first.
        One column per cube dimension, in cube order, followed by the numeric value column
        :param sandbox_name: name of the sandbox to write to. Base when None
        :param remove_file: choose False to keep the uploaded file. Helpful for troubleshooting
        :return: None. Raises TM1linkProcessFailed when the load process does not complete successfully
        """
        if not isinstance(table, Table):
            table = Table.from_rows(table)
        if len(table.headers) < 2:
            raise TM1linkInvalidArgument("Table must hold at least one dimension column and a value column")

        file_name = f"{TEMP_FILE_PREFIX}{random.randint(0, 10 ** 9)}.csv"
        self.files.create(file_name=file_name, file_content=table.to_csv().encode("utf-8"), **kwargs)
        try:
            process = self._build_load_process(
                cube_name=cube_name,
                file_name=file_name,
                column_count=len(table.headers),
                sandbox_name=sandbox_name)

            success, status, error_log_file = self.processes.execute_process_with_return(process=process, **kwargs)
            if not success:
                raise TM1linkProcessFailed(
                    process_name=process.name,
                    status=status,
                    error_log_file=error_log_file,
                    error_log=self._read_error_log(error_log_file, **kwargs))
        finally:
            if remove_file:
                try:
                    self.files.delete(file_name, **kwargs)
                except TM1linkNotFound:
                    pass

    def _read_error_log(self, error_log_file: str, **kwargs) -> str:
        if not error_log_file:
            return None
        try:
            return self.processes.get_error_log_file_content(file_name=error_log_file, **kwargs)
        except TM1linkRestException:
            return None

    def _build_load_process(self, cube_name: str, file_name: str, column_count: int,
                            sandbox_name: str = None) -> Process:
        # v11 adds the blb extension to documents created through the contents api
        data_source_name = file_name
        if not verify_version(required_version="12", version=self.version):
            data_source_name += ".blb"

        process = Process(
            name=file_name[:-len(".csv")],
            datasource_type='ASCII',
            datasource_ascii_header_records=1,
            datasource_data_source_name_for_server=data_source_name,
            datasource_data_source_name_for_client=data_source_name,
            datasource_ascii_delimiter_char=',',
            datasource_ascii_decimal_separator='.',
            datasource_ascii_thousand_separator=',',
            datasource_ascii_quote_character='"')

        variables = [f"v{n}" for n in range(1, column_count + 1)]
        for variable in variables[:-1]:
            process.add_variable(name=variable, variable_type='String')
        process.add_variable(name=variables[-1], variable_type='Numeric')

        prolog = "SetInputCharacterSet('TM1CS_UTF8');"
        if sandbox_name:
            prolog += f"\r\nServerActiveSandboxSet({_ti_string(sandbox_name)});SetUseActiveSandboxProperty(1);"
        process.prolog_procedure = prolog
        process.data_procedure = "CellPutN({},{},{});".format(
            variables[-1], _ti_string(cube_name), ",".join(variables[:-1]))
        return process
