from TM1link.Services.RestService import RestService, AuthenticationMode
from TM1link.Services.ObjectService import ObjectService
from TM1link.Services.CellService import CellService
from TM1link.Services.ViewService import ViewService
from TM1link.Services.CubeService import CubeService
from TM1link.Services.ElementService import ElementService
from TM1link.Services.SubsetService import SubsetService
from TM1link.Services.HierarchyService import HierarchyService
from TM1link.Services.DimensionService import DimensionService
from TM1link.Services.ProcessService import ProcessService
from TM1link.Services.FileService import FileService
from TM1link.Services.SandboxService import SandboxService
from TM1link.Services.ConfigurationService import ConfigurationService
from TM1link.Services.BatchService import BatchService
from TM1link.Services.DataLoadService import DataLoadService
from TM1link.Services.SecurityService import SecurityService
from TM1link.Services.UserService import UserService
from TM1link.Services.SessionService import SessionService
from TM1link.Services.ThreadService import ThreadService
from TM1link.Services.JobService import JobService
from TM1link.Services.ServerService import ServerService
from TM1link.Services.TM1Service import TM1Service
