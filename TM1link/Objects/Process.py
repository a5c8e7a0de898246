# -*- coding: utf-8 -*-

import json
import re
from typing import Optional, Iterable, Dict, List, Union

from TM1link.Objects.TM1Object import TM1Object


def _procedure(attribute: str) -> property:
    """ TI code property that always starts with the generated statements block """

    def getter(process: "Process") -> str:
        return getattr(process, attribute)

    def setter(process: "Process", code: str):
        setattr(process, attribute, Process.add_generated_string_to_code(code))

    return property(getter, setter)


class Process(TM1Object):
    """ Abstraction of a TurboIntegrator process

    """
    BEGIN_GENERATED_STATEMENTS = "#****Begin: Generated Statements***"
    END_GENERATED_STATEMENTS = "#****End: Generated Statements****"
    AUTO_GENERATED_STATEMENTS = "{}\r\n{}\r\n".format(BEGIN_GENERATED_STATEMENTS, END_GENERATED_STATEMENTS)

    DATASOURCE_TYPES = ('None', 'ASCII', 'ODBC', 'TM1CubeView', 'TM1DimensionSubset')

    # keys of the DataSource object that are relevant per datasource type
    DATASOURCE_PROPERTIES = {
        'None': (),
        'ASCII': ('asciiDecimalSeparator', 'asciiDelimiterChar', 'asciiDelimiterType', 'asciiHeaderRecords',
                  'asciiQuoteCharacter', 'asciiThousandSeparator', 'dataSourceNameForClient',
                  'dataSourceNameForServer'),
        'ODBC': ('dataSourceNameForClient', 'dataSourceNameForServer', 'userName', 'password', 'query',
                 'usesUnicode'),
        'TM1CubeView': ('dataSourceNameForClient', 'dataSourceNameForServer', 'view'),
        'TM1DimensionSubset': ('dataSourceNameForClient', 'dataSourceNameForServer', 'subset'),
    }

    @staticmethod
    def add_generated_string_to_code(code: str) -> str:
        pattern = r"(?s)#\*\*\*\*Begin: Generated Statements(.*)#\*\*\*\*End: Generated Statements\*\*\*\*"
        if re.search(pattern=pattern, string=code or ''):
            return code
        return Process.AUTO_GENERATED_STATEMENTS + (code or '')

    def __init__(self,
                 name: str,
                 has_security_access: Optional[bool] = False,
                 ui_data: str = "CubeAction=1511\fDataAction=1503\fCubeLogChanges=0\f",
                 parameters: Iterable[Dict] = None,
                 variables: Iterable[Dict] = None,
                 variables_ui_data: Iterable[str] = None,
                 prolog_procedure: str = '',
                 metadata_procedure: str = '',
                 data_procedure: str = '',
                 epilog_procedure: str = '',
                 datasource_type: str = 'None',
                 datasource_ascii_decimal_separator: str = '.',
                 datasource_ascii_delimiter_char: str = ';',
                 datasource_ascii_delimiter_type: str = 'Character',
                 datasource_ascii_header_records: int = 1,
                 datasource_ascii_quote_character: str = '',
                 datasource_ascii_thousand_separator: str = ',',
                 datasource_data_source_name_for_client: str = '',
                 datasource_data_source_name_for_server: str = '',
                 datasource_user_name: str = '',
                 datasource_password: str = '',
                 datasource_query: str = '',
                 datasource_uses_unicode: bool = True,
                 datasource_view: str = '',
                 datasource_subset: str = ''):
        """

        :param name: name of the process - mandatory
        :param parameters: list of dicts with Name, Prompt, Value and Type
        :param variables: list of dicts with Name, Type, Position, StartByte and EndByte
        :param datasource_type: None, ASCII, ODBC, TM1CubeView or TM1DimensionSubset
        """
        if datasource_type not in self.DATASOURCE_TYPES:
            raise ValueError(f"Invalid datasource type: '{datasource_type}'")

        self.name = name
        self.has_security_access = has_security_access
        self.ui_data = ui_data
        self.parameters: List[Dict] = list(parameters or [])
        self.variables: List[Dict] = list(variables or [])
        self.variables_ui_data: List[str] = list(variables_ui_data or [])
        self.prolog_procedure = prolog_procedure
        self.metadata_procedure = metadata_procedure
        self.data_procedure = data_procedure
        self.epilog_procedure = epilog_procedure
        self.datasource_type = datasource_type
        self.datasource = {
            'asciiDecimalSeparator': datasource_ascii_decimal_separator,
            'asciiDelimiterChar': datasource_ascii_delimiter_char,
            'asciiDelimiterType': datasource_ascii_delimiter_type,
            'asciiHeaderRecords': datasource_ascii_header_records,
            'asciiQuoteCharacter': datasource_ascii_quote_character,
            'asciiThousandSeparator': datasource_ascii_thousand_separator,
            'dataSourceNameForClient': datasource_data_source_name_for_client,
            'dataSourceNameForServer': datasource_data_source_name_for_server,
            'userName': datasource_user_name,
            'password': datasource_password,
            'query': datasource_query,
            'usesUnicode': datasource_uses_unicode,
            'view': datasource_view,
            'subset': datasource_subset}

    @classmethod
    def from_json(cls, process_as_json: str) -> 'Process':
        return cls.from_dict(json.loads(process_as_json))

    @classmethod
    def from_dict(cls, process_as_dict: Dict) -> 'Process':
        """ Alternative constructor

        :param process_as_dict: response of /Processes('x')?$expand=* as dictionary
        :return: an instance of this class
        """
        datasource = process_as_dict.get('DataSource') or {}
        process = cls(
            name=process_as_dict['Name'],
            has_security_access=process_as_dict.get('HasSecurityAccess', False),
            ui_data=process_as_dict.get('UIData', ''),
            parameters=process_as_dict.get('Parameters'),
            variables=process_as_dict.get('Variables'),
            variables_ui_data=process_as_dict.get('VariablesUIData'),
            prolog_procedure=process_as_dict.get('PrologProcedure', ''),
            metadata_procedure=process_as_dict.get('MetadataProcedure', ''),
            data_procedure=process_as_dict.get('DataProcedure', ''),
            epilog_procedure=process_as_dict.get('EpilogProcedure', ''),
            datasource_type=datasource.get('Type', 'None'))
        process.datasource.update({key: value for key, value in datasource.items() if key != 'Type'})
        return process

    prolog_procedure = _procedure('_prolog_procedure')
    metadata_procedure = _procedure('_metadata_procedure')
    data_procedure = _procedure('_data_procedure')
    epilog_procedure = _procedure('_epilog_procedure')

    def add_variable(self, name: str, variable_type: str):
        """

        :param name: -
        :param variable_type: 'String' or 'Numeric'
        """
        self.variables.append({
            'Name': name,
            'Type': variable_type,
            'Position': len(self.variables) + 1,
            'StartByte': 0,
            'EndByte': 0})

        # VarType 33 -> Numeric, VarType 32 -> String, ColType 827 -> Other
        var_type = 33 if variable_type == 'Numeric' else 32
        self.variables_ui_data.append(f"VarType={var_type}\fColType=827\f")

    def remove_variable(self, name: str):
        for position, variable in enumerate(self.variables):
            if variable['Name'] == name:
                del self.variables[position]
                if position < len(self.variables_ui_data):
                    del self.variables_ui_data[position]
                return

    def add_parameter(self, name: str, prompt: str, value: Union[str, int, float],
                      parameter_type: Optional[str] = None):
        """

        :param parameter_type: 'String' or 'Numeric'. Derived from value if not given
        """
        if not parameter_type:
            parameter_type = 'String' if isinstance(value, str) else 'Numeric'
        self.parameters.append({'Name': name, 'Prompt': prompt, 'Value': value, 'Type': parameter_type})

    def remove_parameter(self, name: str):
        self.parameters = [parameter for parameter in self.parameters if parameter['Name'] != name]

    @property
    def body(self) -> str:
        return json.dumps(self.body_as_dict, ensure_ascii=False)

    @property
    def body_as_dict(self) -> Dict:
        datasource = {'Type': self.datasource_type}
        for key in self.DATASOURCE_PROPERTIES[self.datasource_type]:
            datasource[key] = self.datasource[key]
        if self.datasource_type == 'ASCII' and self.datasource['asciiDelimiterType'] == 'FixedWidth':
            del datasource['asciiDelimiterChar']

        return {
            'Name': self.name,
            'PrologProcedure': self._prolog_procedure,
            'MetadataProcedure': self._metadata_procedure,
            'DataProcedure': self._data_procedure,
            'EpilogProcedure': self._epilog_procedure,
            'HasSecurityAccess': self.has_security_access,
            'UIData': self.ui_data,
            'DataSource': datasource,
            'Parameters': self.parameters,
            'Variables': self.variables,
            'VariablesUIData': self.variables_ui_data}
