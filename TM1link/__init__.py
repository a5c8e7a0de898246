"""
A python module for TM1.

TM1link wraps the TM1 REST API into concise Python classes and Services that simplify TM1 interactions from python.

Usage:
>>> with TM1Service(address='', port=8001, user='admin', password='apple', ssl=False) as tm1:
>>>     subset = Subset(dimension_name='Month', subset_name='Q1', elements=['Jan', 'Feb', 'Mar'])
>>>     tm1.subsets.create(subset, private=True)

"""

# __init__ can hoist attributes from submodules into higher namespaces for convenience

from TM1link.Services.ObjectService import ObjectService
from TM1link.Services.RestService import RestService, AuthenticationMode
from TM1link.Services.TM1Service import TM1Service
from TM1link.Services.BatchService import BatchService
from TM1link.Services.CellService import CellService
from TM1link.Services.ConfigurationService import ConfigurationService
from TM1link.Services.CubeService import CubeService
from TM1link.Services.DataLoadService import DataLoadService
from TM1link.Services.DimensionService import DimensionService
from TM1link.Services.ElementService import ElementService
from TM1link.Services.FileService import FileService
from TM1link.Services.HierarchyService import HierarchyService
from TM1link.Services.JobService import JobService
from TM1link.Services.ProcessService import ProcessService
from TM1link.Services.SandboxService import SandboxService
from TM1link.Services.SecurityService import SecurityService
from TM1link.Services.ServerService import ServerService
from TM1link.Services.SessionService import SessionService
from TM1link.Services.SubsetService import SubsetService
from TM1link.Services.ThreadService import ThreadService
from TM1link.Services.UserService import UserService
from TM1link.Services.ViewService import ViewService

from TM1link.Objects.Axis import ViewAxisSelection, ViewTitleSelection
from TM1link.Objects.Batch import BatchRequest, BatchResponse
from TM1link.Objects.Cellset import Cellset
from TM1link.Objects.Cube import Cube
from TM1link.Objects.Dimension import Dimension
from TM1link.Objects.Element import Element
from TM1link.Objects.ElementAttribute import ElementAttribute
from TM1link.Objects.Hierarchy import Hierarchy
from TM1link.Objects.MDXView import MDXView
from TM1link.Objects.NativeView import NativeView
from TM1link.Objects.Process import Process
from TM1link.Objects.Sandbox import Sandbox
from TM1link.Objects.Subset import Subset, AnonymousSubset
from TM1link.Objects.User import User, UserType
from TM1link.Objects.View import View

from TM1link.Utils import Utils
from TM1link.Utils.MDXUtils import MdxQuery
from TM1link.Utils.TableUtils import Table

__version__ = "1.0.0"
