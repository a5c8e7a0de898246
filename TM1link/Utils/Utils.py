import collections
import functools
import re
import urllib.parse as urlparse
from datetime import datetime
from enum import Enum, unique
from itertools import zip_longest
from typing import Callable, Dict, Iterable, List, Tuple

import pytz
from requests.adapters import HTTPAdapter

from TM1link.Exceptions.Exceptions import (
    TM1linkVersionException,
    TM1linkVersionDeprecationException,
    TM1linkNotAdminException,
    TM1linkNotDataAdminException,
    TM1linkNotSecurityAdminException,
    TM1linkNotOpsAdminException,
    TM1linkInvalidArgument,
)

# minimum server version per operation
VERSION_GATES = {
    "execute_process_with_return": "11.3",
    "get_storage_dimension_order": "11.4",
    "update_storage_dimension_order": "11.4",
    "file_service": "11.4",
    "load": "11.6",
    "unload": "11.6",
    "get_audit_log_entries": "11.6",
    "jobs": "12",
}

# operations that are not available anymore from the given version on
DEPRECATION_GATES = {
    "impersonate": "12",
    "get_admin_host": "12",
    "get_data_directory": "12",
    "threads": "12",
    "message_log": "12",
    "transaction_log": "12",
    "audit_log": "12",
    "save_data": "12",
}

# control objects start with } or {
MODEL_OBJECTS_FILTER = "startswith(Name,'}') eq false and startswith(Name,'{') eq false"
CONTROL_OBJECTS_FILTER = "(startswith(Name,'}') or startswith(Name,'{'))"


def decohints(decorator: Callable) -> Callable:
    """
    Decorator for decorators to see parameters of decorated functions in the IDE
    """
    return decorator


@decohints
def require_admin(func):
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        if not self.is_admin:
            raise TM1linkNotAdminException(func.__name__)
        return func(self, *args, **kwargs)

    return wrapper


@decohints
def require_data_admin(func):
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        if not self.is_data_admin:
            raise TM1linkNotDataAdminException(func.__name__)
        return func(self, *args, **kwargs)

    return wrapper


@decohints
def require_security_admin(func):
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        if not self.is_security_admin:
            raise TM1linkNotSecurityAdminException(func.__name__)
        return func(self, *args, **kwargs)

    return wrapper


@decohints
def require_ops_admin(func):
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        if not self.is_ops_admin:
            raise TM1linkNotOpsAdminException(func.__name__)
        return func(self, *args, **kwargs)

    return wrapper


@decohints
def require_version(version: str = None):
    """Higher order function to check required version for TM1link function

    Without explicit version the minimum version is looked up in VERSION_GATES by function name
    """

    def wrap(func):
        required_version = version or VERSION_GATES[func.__name__]

        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            if not verify_version(required_version=required_version, version=self.version):
                raise TM1linkVersionException(func.__name__, required_version, self.version)
            return func(self, *args, **kwargs)

        return wrapper

    return wrap


def require_version_gate(operation: str):
    """ like require_version, but the minimum version is looked up for a named gate, e.g. 'file_service' """
    return require_version(VERSION_GATES[operation])


@decohints
def deprecated_in_version(version: str = None):
    """Higher order function to block functions that are not available anymore in newer versions

    Without explicit version the version is looked up in DEPRECATION_GATES by function name
    """

    def wrap(func):
        deprecated_version = version or DEPRECATION_GATES[func.__name__]

        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            if verify_version(required_version=deprecated_version, version=self.version):
                raise TM1linkVersionDeprecationException(func.__name__, deprecated_version)
            return func(self, *args, **kwargs)

        return wrapper

    return wrap


def deprecated_in_version_gate(operation: str):
    """ like deprecated_in_version, for a named gate shared by several functions, e.g. 'threads' """
    return deprecated_in_version(DEPRECATION_GATES[operation])


@decohints
def require_pandas(func):
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            import pandas

            return func(self, *args, **kwargs)
        except ImportError:
            raise ImportError(f"Function '{func.__name__}' requires pandas")

    return wrapper


def build_url_friendly_object_name(object_name: str) -> str:
    """ escape characters that break an OData key literal

    Single quotes are rejected: they would terminate the key literal
    """
    if "'" in object_name:
        raise TM1linkInvalidArgument(f"Invalid object name: '{object_name}'. Single quotes are not allowed")
    return object_name.replace("%", "%25").replace("#", "%23").replace("?", "%3F").replace("&", "%26")


def format_url(url, *args: str, **kwargs: str) -> str:
    """build url and escape args and kwargs

    :param url: url with {} placeholders
    :param args: arguments to placeholders
    :return:
    """
    args = [build_url_friendly_object_name(arg) if isinstance(arg, str) else arg for arg in args]

    kwargs = {
        key: build_url_friendly_object_name(value) if isinstance(value, str) else value for key, value in kwargs.items()
    }

    return url.format(*args, **kwargs)


def add_url_parameters(url, **kwargs: str) -> str:
    """Add query options to a url; options with value None are left out

    :param url: str
    :param kwargs: key:value pairs of url parameters. For example, {'!sandbox':'Budget'}
    :return: str
    """
    parameters = []
    for key, value in kwargs.items():
        if value is not None:
            value = value.replace("'", "''") if isinstance(value, str) else str(value)
            parameters.append(key + "=" + value)

    if not parameters:
        return url

    url_parts = list(urlparse.urlparse(url))
    query_part = url_parts[4]
    if query_part:
        query_part += "&"
    query_part += "&".join(parameters)

    url_parts[4] = query_part
    return urlparse.urlunparse(url_parts)


def _version_segments(version: str) -> List[int]:
    segments = []
    for segment in str(version).split("."):
        segments.append(int(segment) if segment.isdigit() else 0)
    return segments


def vge(a: str, b: str) -> bool:
    """ True if version a is greater than or equal to version b

    Segments are compared numerically. The shorter version is padded with zeros.
    Non-numeric segments count as 0.
    """
    for segment_a, segment_b in zip_longest(_version_segments(a), _version_segments(b), fillvalue=0):
        if segment_a != segment_b:
            return segment_a > segment_b
    return True


def verify_version(required_version: str, version: str) -> bool:
    return vge(version, required_version)


def verify_version_gate(operation: str, version: str) -> bool:
    """ check an operation against the central gate tables

    :param operation: name of the operation, e.g. 'load'
    :param version: server version
    """
    if operation in DEPRECATION_GATES and vge(version, DEPRECATION_GATES[operation]):
        return False
    if operation in VERSION_GATES:
        return vge(version, VERSION_GATES[operation])
    return True


def lower_and_drop_spaces(item: str) -> str:
    return item.replace(" ", "").lower()


def case_and_space_insensitive_equals(item1: str, item2: str) -> bool:
    return lower_and_drop_spaces(item1) == lower_and_drop_spaces(item2)


def is_control_object(name: str) -> bool:
    return name.startswith("}") or name.startswith("{")


def utc_localize_time(timestamp: datetime) -> datetime:
    """ timestamps without tz information are taken as UTC """
    if timestamp.tzinfo:
        return timestamp.astimezone(pytz.utc)
    return pytz.utc.localize(timestamp)


def odata_timestamp(timestamp: datetime) -> str:
    return utc_localize_time(timestamp).strftime("%Y-%m-%dT%H:%M:%SZ")


def dimension_hierarchy_from_header(header: str) -> Tuple[str, str]:
    """ '[dim].[hier]' or plain 'dim' (hierarchy = dimension) """
    if header.startswith("[") and header.endswith("]"):
        parts = [part.strip("[]") for part in re.split(r"\]\.\[", header)]
        if len(parts) == 1:
            return parts[0], parts[0]
        return parts[0], parts[1]
    return header, header


@unique
class CellUpdateableProperty(Enum):
    SECURITY_RESTRICTED = 1
    UPDATE_CUBE_APPLICABLE = 2
    RULE_IS_APPLIED = 3
    PICKLIST_EXISTS = 4
    SANDBOX_VALUE_IS_DIFFERENT_TO_BASE = 5
    CELL_IS_NOT_UPDATEABLE = 29


def extract_cell_updateable_property(decimal_value: int, cell_property: CellUpdateableProperty) -> bool:
    """ read one bit, counting from the right, from the Updateable property of a cell

    :param decimal_value: Updateable value of a cell
    :param cell_property: flag to test
    :return: bool
    """
    return (decimal_value & (1 << cell_property.value - 1)) != 0


class CaseAndSpaceInsensitiveDict(collections.abc.MutableMapping):
    """
    A case-and-space-insensitive dict-like object with string keys.

    The structure remembers the case of the last key set. Querying and membership tests are
    case-and-space-insensitive:
        data = CaseAndSpaceInsensitiveDict()
        data['Travel Expenses'] = 100
        assert data['travelexpenses'] == 100

    Entries are ordered.
    """

    def __init__(self, data=None, **kwargs):
        self._store = collections.OrderedDict()
        self.update(data or {}, **kwargs)

    def _adjust_key(self, key):
        if not isinstance(key, str):
            raise TypeError("Keys must be strings.")
        return lower_and_drop_spaces(key)

    def __setitem__(self, key, value):
        self._store[self._adjust_key(key)] = (key, value)

    def __getitem__(self, key):
        try:
            return self._store[self._adjust_key(key)][1]
        except KeyError:
            raise KeyError(f"Key '{key}' not found.") from None

    def __delitem__(self, key):
        try:
            del self._store[self._adjust_key(key)]
        except KeyError:
            raise KeyError(f"Key '{key}' not found.") from None

    def __iter__(self):
        return (key for key, _ in self._store.values())

    def __len__(self):
        return len(self._store)

    def __eq__(self, other):
        if isinstance(other, collections.abc.Mapping):
            other = CaseAndSpaceInsensitiveDict(other)
        else:
            return NotImplemented
        return dict(self.adjusted_items()) == dict(other.adjusted_items())

    def adjusted_items(self):
        return ((adjusted_key, value) for adjusted_key, (_, value) in self._store.items())

    def copy(self):
        return CaseAndSpaceInsensitiveDict(self._store.values())

    def __repr__(self):
        return str(dict(self.items()))


class CaseAndSpaceInsensitiveTuplesDict(CaseAndSpaceInsensitiveDict):
    """
    A case-and-space-insensitive dict-like object with tuples of strings as keys, e.g. edges:
        data[('Total Year', 'Q1')] = 1
        assert data[('totalyear', 'q1')] == 1
    """

    def _adjust_key(self, key):
        if not isinstance(key, tuple):
            raise TypeError("Keys must be tuples of strings.")
        return tuple(lower_and_drop_spaces(item) for item in key)

    def copy(self):
        return CaseAndSpaceInsensitiveTuplesDict(self._store.values())


class CaseAndSpaceInsensitiveSet(collections.abc.MutableSet):
    """
    A case-and-space-insensitive set-like object for strings.
        data = CaseAndSpaceInsensitiveSet('Apple', 'Banana')
        assert 'apple' in data
    """

    def __init__(self, *values):
        self._store = {}
        for value in values:
            if isinstance(value, str):
                self.add(value)
            elif isinstance(value, Iterable):
                for item in value:
                    self.add(item)

    def _adjust_value(self, value):
        if not isinstance(value, str):
            raise TypeError("Value must be string.")
        return lower_and_drop_spaces(value)

    def __contains__(self, value):
        return self._adjust_value(value) in self._store

    def __iter__(self):
        return iter(self._store.values())

    def __len__(self):
        return len(self._store)

    def add(self, value):
        self._store[self._adjust_value(value)] = value

    def discard(self, value):
        self._store.pop(self._adjust_value(value), None)

    def __repr__(self):
        return str(list(self._store.values()))


class HTTPAdapterWithSocketOptions(HTTPAdapter):
    def __init__(self, *args, **kwargs):
        self.socket_options = kwargs.pop("socket_options", None)
        self.ssl_context = kwargs.pop("ssl_context", None)
        super(HTTPAdapterWithSocketOptions, self).__init__(*args, **kwargs)

    def init_poolmanager(self, *args, **kwargs):
        if self.socket_options is not None:
            kwargs["socket_options"] = self.socket_options
        if self.ssl_context is not None:
            kwargs["ssl_context"] = self.ssl_context
        super(HTTPAdapterWithSocketOptions, self).init_poolmanager(*args, **kwargs)


def extract_axes_hierarchy_names(raw_cellset_as_dict: Dict) -> Tuple[List[str], ...]:
    """ unique names of the hierarchies per axis, as (titles, rows, columns) """
    axes = [[] for _ in range(3)]
    for position, axis in enumerate(raw_cellset_as_dict.get("Axes") or []):
        ordinal = axis.get("Ordinal", position)
        if ordinal > 2:
            continue
        axes[ordinal] = [hierarchy["UniqueName"] for hierarchy in axis.get("Hierarchies") or []]
    columns, rows, titles = axes
    return titles, rows, columns
